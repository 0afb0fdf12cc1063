from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import Any, Final, Optional, TextIO

from .cache import CacheState, Info
from .config import AdminConfig
from .extra import ExtraAttributeStore
from .interfaces.protocol import ProtocolInterface
from .namespace import Namespaces
from .resolver import NameResolver

__all__ = ['SessionContext']

_log = logging.getLogger(__name__)


def _accept(prompt: str) -> bool:
    return True


class SessionContext:
    """Everything a command handler needs for one authenticated session. The
    context is created by :meth:`.start` after login and torn down by
    :meth:`.close` before the connection is closed.

    Args:
        protocol: The protocol collaborator of the logged-in connection.
        config: The session configuration.
        namespaces: The namespaces of the session.
        outfile: Where command output is written.
        confirm: Asks the user a yes or no question.

    """

    def __init__(self, protocol: ProtocolInterface, config: AdminConfig,
                 namespaces: Namespaces, *,
                 outfile: Optional[TextIO] = None,
                 confirm: Callable[[str], bool] = _accept) -> None:
        super().__init__()
        self.protocol: Final = protocol
        self.config: Final = config
        self.outfile: Final = outfile or sys.stdout
        self.confirm: Final = confirm
        self.namespaces_enabled = config.enable_namespaces
        self._build(namespaces)

    def _build(self, namespaces: Namespaces) -> None:
        capabilities = self.protocol.capabilities
        self.namespaces = namespaces
        self.extras = ExtraAttributeStore(
            self.protocol,
            rights_enabled=self.config.enable_rights and 'ACL' in capabilities,
            quota_enabled=self.config.enable_quota and 'QUOTA' in capabilities)
        self.cache = CacheState(self.protocol, namespaces, self.extras,
                                caching=self.config.caching,
                                lifetime=self.config.lifetime)
        self.resolver = NameResolver(self.cache, self.confirm)

    @classmethod
    def load_namespaces(cls, protocol: ProtocolInterface,
                        config: AdminConfig,
                        enabled: Optional[bool] = None) -> Namespaces:
        """Build the namespaces of the session, fetching them from the server
        if it supports the ``NAMESPACE`` extension.

        Args:
            protocol: The protocol collaborator.
            config: The session configuration.
            enabled: Overrides :attr:`AdminConfig.enable_namespaces`.

        """
        if enabled is None:
            enabled = config.enable_namespaces
        enabled = enabled and 'NAMESPACE' in protocol.capabilities
        entries = protocol.fetch_namespaces() if enabled else {}
        namespaces = Namespaces(protocol.user, entries,
                                config.default_delimiter, enabled)
        _log.debug('namespaces: %r', namespaces)
        return namespaces

    @classmethod
    def start(cls, protocol: ProtocolInterface, config: AdminConfig,
              **kwargs: Any) -> SessionContext:
        """Create the context for a logged-in connection.

        Args:
            protocol: The protocol collaborator of the logged-in connection.
            config: The session configuration.
            kwargs: Passed to the constructor.

        """
        namespaces = cls.load_namespaces(protocol, config)
        return cls(protocol, config, namespaces, **kwargs)

    def set_namespaces(self, enabled: bool) -> None:
        """Enable or disable the use of namespaces. All cached state is
        discarded.

        """
        self.cache.close_mailbox()
        self.namespaces_enabled = enabled
        self._build(self.load_namespaces(self.protocol, self.config, enabled))

    def write(self, line: str = '') -> None:
        """Write a line of command output."""
        print(line, file=self.outfile)

    def error(self, msg: str) -> None:
        """Write an error message for a failed command."""
        print(f'Error: {msg}', file=self.outfile)

    def close(self) -> None:
        """Close any open mailbox and discard all cached state."""
        self.cache.close_mailbox()
        self.cache.clear(Info.ALL)
        self.resolver.listed_folders = None
        self.resolver.listed_users = None

    def __enter__(self) -> SessionContext:
        return self

    def __exit__(self, *exc_details: Any) -> None:
        self.close()
