"""Classification and qualification of mailbox names by namespace.

See Also:
    `RFC 2342 <https://tools.ietf.org/html/rfc2342>`_

"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Final, Optional, Protocol, TypeVar

__all__ = ['NamespaceId', 'Namespace', 'Namespaces']


class _Named(Protocol):

    @property
    def name(self) -> str:
        ...


_NamedT = TypeVar('_NamedT', bound=_Named)


class NamespaceId(enum.IntEnum):
    """Identifies one of the namespaces known to a session."""

    #: The mailboxes owned by the logged-in user.
    PERSONAL = 0

    #: The mailboxes of other users.
    OTHERS = 1

    #: Mailboxes shared by all users.
    SHARED = 2

    #: Pseudo-namespace for saved search results.
    SEARCH = 3


@dataclass(frozen=True)
class Namespace:
    """One namespace as reported by the server.

    Args:
        prefix: The namespace prefix, ending with the delimiter if not empty.
        delimiter: The hierarchy delimiter used inside the namespace.
        valid: False if the server did not report the namespace.

    """

    prefix: str
    delimiter: str
    valid: bool = True

    @property
    def qualifier(self) -> str:
        """The prefix without its trailing delimiter."""
        if self.prefix.endswith(self.delimiter):
            return self.prefix[:-len(self.delimiter)]
        return self.prefix


class Namespaces(Mapping[NamespaceId, Namespace]):
    """The namespaces of a session, used to classify mailbox names and to map
    between fully qualified names and friendly names.

    A friendly name is account relative: personal mailboxes are shown under
    the user name (``INBOX`` becomes the user name itself), mailboxes of
    other namespaces lose their namespace prefix.

    Args:
        user: The login user name.
        entries: The ``(prefix, delimiter)`` pairs reported by the server.
        default_delimiter: The delimiter for namespaces that are missing.
        enabled: False to ignore any namespace data from the server.

    """

    #: The qualifier of the search results pseudo-namespace.
    search_qualifier: Final = 'Search Results'

    __slots__ = ['user', 'default_delimiter', '_namespaces']

    def __init__(self, user: str,
                 entries: Mapping[NamespaceId, tuple[str, str]] = {},
                 default_delimiter: str = '.',
                 enabled: bool = True) -> None:
        super().__init__()
        self.user: Final = user
        self.default_delimiter: Final = default_delimiter
        namespaces: dict[NamespaceId, Namespace] = {}
        for nsid in (NamespaceId.PERSONAL, NamespaceId.OTHERS,
                     NamespaceId.SHARED):
            entry = entries.get(nsid) if enabled else None
            if entry is not None and entry[1]:
                prefix, delimiter = entry
                if prefix and not prefix.endswith(delimiter):
                    prefix += delimiter
                namespaces[nsid] = Namespace(prefix, delimiter)
            else:
                namespaces[nsid] = Namespace('', default_delimiter, False)
        personal = namespaces[NamespaceId.PERSONAL]
        namespaces[NamespaceId.SEARCH] = Namespace(
            self.search_qualifier + personal.delimiter, personal.delimiter)
        self._namespaces: Final = namespaces

    def __getitem__(self, nsid: NamespaceId) -> Namespace:
        return self._namespaces[nsid]

    def __iter__(self) -> Iterator[NamespaceId]:
        return iter(self._namespaces)

    def __len__(self) -> int:
        return len(self._namespaces)

    @property
    def personal(self) -> Namespace:
        """The personal namespace."""
        return self._namespaces[NamespaceId.PERSONAL]

    @property
    def delimiter(self) -> str:
        """The hierarchy delimiter of the personal namespace."""
        return self.personal.delimiter

    def find(self, name: Optional[str], substring: bool = True) \
            -> Optional[NamespaceId]:
        """Classify a mailbox name or a qualifier.

        With ``substring``, the name is matched against the namespace
        prefixes and is always classified, falling back to the personal
        namespace. Without it, the name must equal a namespace qualifier.

        Args:
            name: The mailbox name or qualifier.
            substring: Match prefixes instead of whole qualifiers.

        """
        if name is None:
            return None
        elif name.upper() == 'INBOX':
            return NamespaceId.PERSONAL
        elif not substring:
            for nsid in (NamespaceId.PERSONAL, NamespaceId.OTHERS,
                         NamespaceId.SHARED):
                if self[nsid].valid and name == self[nsid].qualifier:
                    return nsid
            return None
        for nsid in (NamespaceId.PERSONAL, NamespaceId.OTHERS,
                     NamespaceId.SHARED):
            prefix = self[nsid].prefix
            if prefix and (name.startswith(prefix)
                           or name == self[nsid].qualifier):
                return nsid
        search = self[NamespaceId.SEARCH]
        if name.startswith(search.prefix) or name == search.qualifier:
            return NamespaceId.SEARCH
        for nsid in (NamespaceId.OTHERS, NamespaceId.SHARED):
            if self[nsid].valid and not self[nsid].prefix:
                return nsid
        return NamespaceId.PERSONAL

    def _relative(self, name: str, nsid: NamespaceId) -> str:
        namespace = self[nsid]
        if nsid == NamespaceId.PERSONAL:
            inbox = 'INBOX' + namespace.delimiter
            if name.upper() == 'INBOX':
                return ''
            elif namespace.prefix and name.startswith(namespace.prefix):
                return name[len(namespace.prefix):]
            elif name[:len(inbox)].upper() == inbox.upper():
                return name[len(inbox):]
            return name
        elif name == namespace.qualifier:
            return ''
        elif name.startswith(namespace.prefix):
            return name[len(namespace.prefix):]
        return name

    def friendly_name(self, name: str) -> tuple[str, NamespaceId]:
        """Build the friendly name of a fully qualified mailbox name.

        Args:
            name: The fully qualified mailbox name.

        Returns:
            The friendly name and the namespace of the mailbox.

        """
        nsid = self.find(name) or NamespaceId.PERSONAL
        rest = self._relative(name, nsid)
        if nsid != NamespaceId.PERSONAL:
            return rest or self[nsid].qualifier, nsid
        account = self.user or 'INBOX'
        if not rest:
            return account, nsid
        return account + self.delimiter + rest, nsid

    def formal_name(self, friendly: str) -> Optional[str]:
        """The inverse of :meth:`.friendly_name` for personal mailboxes.

        Args:
            friendly: A friendly mailbox name.

        Returns:
            The fully qualified name, or None if the friendly name does not
            start with the user name.

        """
        account = self.user or 'INBOX'
        if friendly == account:
            return 'INBOX'
        head = account + self.delimiter
        if not friendly.startswith(head):
            return None
        rest = friendly[len(head):]
        if self.personal.prefix:
            return self.personal.prefix + rest
        return rest

    def normalize(self, qualifier: Optional[str],
                  filter_: Optional[str]) -> tuple[str, str]:
        """Build the reference name and pattern for a ``LIST`` command.

        Args:
            qualifier: The qualifier, None for the server root.
            filter_: The mailbox filter, empty or None for everything.

        """
        delimiter = self.default_delimiter
        ref_name = qualifier or ''
        if ref_name.endswith(delimiter):
            ref_name = ref_name[:-len(delimiter)]
        pattern = filter_ or '*'
        if ref_name and pattern != '*' and not pattern.startswith(delimiter):
            pattern = delimiter + pattern
        return ref_name, pattern

    def filter_mailboxes(self, records: Iterable[_NamedT],
                         nsid: NamespaceId) -> list[_NamedT]:
        """Keep only the mailboxes that belong to the namespace.

        Args:
            records: The mailbox records.
            nsid: The namespace to keep.

        """
        return [record for record in records
                if self.find(record.name) == nsid]

    def sort_key(self, name: Optional[str]) -> tuple[int, str]:
        """The sort key for mailbox names. ``INBOX`` and its children come
        first, followed by the namespaces in order.

        Args:
            name: The mailbox name.

        """
        if name is None:
            return 9, ''
        elif name.startswith('INBOX'):
            return 0, name
        nsid = self.find(name)
        if nsid is None:
            return 8, name
        return nsid + 1, name

    def sort_mailboxes(self, records: Iterable[_NamedT]) -> list[_NamedT]:
        """Sort mailbox records by :meth:`.sort_key`.

        Args:
            records: The mailbox records.

        """
        return sorted(records, key=lambda record: self.sort_key(record.name))

    def has_delimiter(self, name: str,
                      nsid: NamespaceId = NamespaceId.PERSONAL) -> bool:
        """True if the name contains the hierarchy delimiter of the
        namespace.

        """
        return self[nsid].delimiter in name

    def trim_delimiter(self, name: str,
                       nsid: NamespaceId = NamespaceId.PERSONAL) -> str:
        """Remove a trailing hierarchy delimiter."""
        delimiter = self[nsid].delimiter
        while name.endswith(delimiter):
            name = name[:-len(delimiter)]
        return name

    def __repr__(self) -> str:
        parts: Sequence[str] = [f'{nsid.name}={ns.prefix!r}'
                                for nsid, ns in self._namespaces.items()
                                if ns.valid]
        return '<Namespaces user=%r %s>' % (self.user, ' '.join(parts))
