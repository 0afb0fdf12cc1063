from __future__ import annotations

from abc import abstractmethod
from collections.abc import Mapping, Sequence, Set
from typing import Optional, Protocol

from ..flags import FlagOp
from ..headers import HeaderRecord
from ..mailbox import MailboxRecord, QuotaInfo
from ..namespace import NamespaceId
from ..selection import Selection

__all__ = ['ProtocolInterface']


class ProtocolInterface(Protocol):
    """The protocol layer of an authenticated IMAP connection, as consumed by
    the cache and the command handlers. Every method blocks until the server
    responds.

    Every method raises :exc:`~imapadmin.exceptions.ProtocolError` if the
    server rejects the command or the connection fails.

    """

    __slots__: Sequence[str] = []

    @property
    @abstractmethod
    def user(self) -> str:
        """The login user name."""
        ...

    @property
    @abstractmethod
    def capabilities(self) -> Set[str]:
        """The capabilities announced by the server, e.g. ``ACL``."""
        ...

    @abstractmethod
    def fetch_namespaces(self) -> Mapping[NamespaceId, tuple[str, str]]:
        """Return the ``(prefix, delimiter)`` of the namespaces reported by
        the ``NAMESPACE`` command. Missing namespaces are omitted.

        See Also:
            `RFC 2342 <https://tools.ietf.org/html/rfc2342>`_

        """
        ...

    @abstractmethod
    def fetch_folders(self, qualifier: str, filter_: str,
                      details: bool) -> Sequence[MailboxRecord]:
        """List mailboxes with ``LIST``.

        Args:
            qualifier: The ``LIST`` reference name.
            filter_: The ``LIST`` mailbox pattern.
            details: Also return the subscription state and the message
                counts of every mailbox.

        """
        ...

    @abstractmethod
    def fetch_users(self, nsid: NamespaceId) -> Sequence[MailboxRecord]:
        """List the top-level mailboxes of the other users or shared
        namespace.

        Args:
            nsid: The namespace to list.

        """
        ...

    @abstractmethod
    def fetch_headers(self, name: str) -> Sequence[HeaderRecord]:
        """Fetch the headers of all messages in the selected mailbox.

        Args:
            name: The selected mailbox name.

        """
        ...

    @abstractmethod
    def fetch_quota(self, name: str) -> Optional[QuotaInfo]:
        """Look up the quota root of a mailbox with ``GETQUOTAROOT``.

        Args:
            name: The mailbox name.

        Returns:
            The quota, or None if the mailbox has no quota root.

        """
        ...

    @abstractmethod
    def fetch_rights(self, name: str) -> str:
        """Look up the rights of the login user with ``MYRIGHTS``.

        Args:
            name: The mailbox name.

        """
        ...

    @abstractmethod
    def fetch_acl(self, name: str) -> Mapping[str, str]:
        """Look up the rights of every identifier with ``GETACL``.

        Args:
            name: The mailbox name.

        """
        ...

    @abstractmethod
    def select_mailbox(self, name: str, readonly: bool) -> bool:
        """Select the mailbox with ``SELECT`` or ``EXAMINE``.

        Args:
            name: The mailbox name.
            readonly: True to request read-only access.

        Returns:
            True if the server granted read-only access.

        """
        ...

    @abstractmethod
    def close_mailbox(self) -> None:
        """Close the selected mailbox, without expunging."""
        ...

    @abstractmethod
    def create_folder(self, name: str) -> None:
        """Create a mailbox."""
        ...

    @abstractmethod
    def delete_folder(self, name: str) -> None:
        """Delete a mailbox."""
        ...

    @abstractmethod
    def rename_folder(self, name: str, new_name: str) -> None:
        """Rename a mailbox and its inferiors."""
        ...

    @abstractmethod
    def subscribe(self, name: str, subscribed: bool) -> None:
        """Subscribe or unsubscribe a mailbox."""
        ...

    @abstractmethod
    def store_flags(self, items: Selection, op: FlagOp,
                    flags: Set[str]) -> None:
        """Change the flags of messages in the selected mailbox.

        Args:
            items: The messages to change.
            op: The flag operation.
            flags: The flags operand.

        """
        ...

    @abstractmethod
    def copy_messages(self, items: Selection, destination: str) -> None:
        """Copy messages of the selected mailbox to another mailbox.

        Args:
            items: The messages to copy.
            destination: The destination mailbox name.

        """
        ...

    @abstractmethod
    def expunge(self) -> int:
        """Expunge the selected mailbox.

        Returns:
            The number of expunged messages.

        """
        ...

    @abstractmethod
    def set_acl(self, name: str, identifier: str, rights: str) -> None:
        """Change the rights of an identifier on a mailbox with ``SETACL``.
        Rights starting with ``-`` are removed, ``+`` are added, otherwise
        they are replaced.

        """
        ...

    @abstractmethod
    def delete_acl(self, name: str, identifier: str) -> None:
        """Remove the rights of an identifier with ``DELETEACL``."""
        ...

    @abstractmethod
    def set_quota(self, root: str, storage_limit: Optional[int],
                  message_limit: Optional[int]) -> None:
        """Change the limits of a quota root with ``SETQUOTA``. A limit of
        None removes the resource limit.

        """
        ...
