"""Implementations of :class:`~imapadmin.interfaces.protocol.ProtocolInterface`
that do not need a network connection.

"""
