from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Union, overload

from .exceptions import ProtocolError
from .namespace import Namespaces

if TYPE_CHECKING:
    from .interfaces.protocol import ProtocolInterface

__all__ = ['QuotaInfo', 'ExtraData', 'MailboxRecord', 'MailboxSnapshot',
           'MailboxRef']

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuotaInfo:
    """The quota root of a mailbox with its usage and limits.

    See Also:
        `RFC 2087 <https://tools.ietf.org/html/rfc2087>`_

    Args:
        root: The quota root name, empty if the mailbox has no quota root.
        storage_usage: The storage used, in kilobytes.
        storage_limit: The storage limit, in kilobytes.
        message_usage: The number of messages.
        message_limit: The message count limit.

    """

    root: str
    storage_usage: int = 0
    storage_limit: int = 0
    message_usage: int = 0
    message_limit: int = 0

    @classmethod
    def none(cls) -> QuotaInfo:
        """The quota of a mailbox that was looked up but has no quota root."""
        return cls('')

    @property
    def has_root(self) -> bool:
        return bool(self.root)


@dataclass
class ExtraData:
    """Expensive attributes of a mailbox, loaded lazily.

    Args:
        rights: The ACL rights of the login user, if loaded.
        quota: The quota information, if loaded.

    """

    rights: Optional[str] = None
    quota: Optional[QuotaInfo] = None


@dataclass(eq=False)
class MailboxRecord:
    """One server mailbox, as returned by a ``LIST`` command.

    Args:
        name: The fully qualified mailbox name.
        delimiter: The hierarchy delimiter.
        attributes: The mailbox attributes, e.g. ``\\Noselect``.
        subscribed: True if the user is subscribed to the mailbox.
        messages: The message count, if listed with details.
        recent: The recent message count, if listed with details.
        unseen: The unseen message count, if listed with details.
        extra: The lazily loaded extra attributes.

    """

    name: str
    delimiter: str
    attributes: frozenset[str] = frozenset()
    subscribed: bool = False
    messages: Optional[int] = None
    recent: Optional[int] = None
    unseen: Optional[int] = None
    extra: Optional[ExtraData] = field(default=None, repr=False)

    @property
    def selectable(self) -> bool:
        """False if the mailbox has the ``\\Noselect`` attribute."""
        return not any(attr.lower() == '\\noselect'
                       for attr in self.attributes)

    @property
    def has_details(self) -> bool:
        """True if the message counts are available."""
        return self.messages is not None

    def get_extra(self) -> ExtraData:
        """Return the extra attributes, allocating them on first use."""
        if self.extra is None:
            self.extra = ExtraData()
        return self.extra


class MailboxSnapshot(Sequence[MailboxRecord]):
    """The ordered mailbox records produced by one listing. The snapshot
    itself is never modified, :meth:`.append` and :meth:`.remove` return new
    snapshots that share the untouched records.

    Args:
        records: The mailbox records.

    """

    __slots__ = ['_records']

    def __init__(self, records: Iterable[MailboxRecord] = ()) -> None:
        super().__init__()
        self._records = tuple(records)

    @overload
    def __getitem__(self, index: int) -> MailboxRecord:
        ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[MailboxRecord]:
        ...

    def __getitem__(self, index: Union[int, slice]) \
            -> Union[MailboxRecord, Sequence[MailboxRecord]]:
        return self._records[index]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[MailboxRecord]:
        return iter(self._records)

    def search(self, name: str) -> Optional[int]:
        """Return the index of the mailbox with exactly the given name.

        Args:
            name: The fully qualified mailbox name.

        """
        for i, record in enumerate(self._records):
            if record.name == name:
                return i
        return None

    def append(self, record: MailboxRecord) -> MailboxSnapshot:
        """Return a new snapshot with the record added at the end."""
        return MailboxSnapshot(self._records + (record, ))

    def remove(self, index: int) -> MailboxSnapshot:
        """Return a new snapshot without the record at the index."""
        return MailboxSnapshot(self._records[:index]
                               + self._records[index + 1:])

    def __repr__(self) -> str:
        names = [record.name for record in self._records]
        return '<MailboxSnapshot %r>' % (names, )


class MailboxRef:
    """A cursor into a :class:`MailboxSnapshot`. The position is None before
    the first call to :meth:`.next`, and a position outside of the snapshot
    marks the cursor as invalid.

    Args:
        snapshot: The referenced snapshot.
        index: The initial position.

    """

    __slots__ = ['_snapshot', '_index', '_readonly']

    def __init__(self, snapshot: MailboxSnapshot,
                 index: Optional[int] = None) -> None:
        super().__init__()
        self._snapshot = snapshot
        self._index = index
        self._readonly: Optional[bool] = None

    @classmethod
    def of(cls, records: Iterable[MailboxRecord],
           index: Optional[int] = None) -> MailboxRef:
        """Build a reference to a new snapshot of the records."""
        return cls(MailboxSnapshot(records), index)

    @property
    def snapshot(self) -> MailboxSnapshot:
        """The referenced snapshot."""
        return self._snapshot

    @property
    def index(self) -> Optional[int]:
        """The current position."""
        return self._index

    @property
    def readonly(self) -> Optional[bool]:
        """The mode granted by the server by :meth:`.open`, or None if the
        mailbox was not opened through this reference.

        """
        return self._readonly

    @property
    def is_valid(self) -> bool:
        """True if the position references a record."""
        return self._index is not None \
            and 0 <= self._index < len(self._snapshot)

    @property
    def record(self) -> MailboxRecord:
        """The referenced record.

        Raises:
            IndexError: The position is not valid.

        """
        if self._index is None or not self.is_valid:
            raise IndexError(self._index)
        return self._snapshot[self._index]

    @property
    def name(self) -> str:
        """The fully qualified name of the referenced record."""
        return self.record.name

    def __len__(self) -> int:
        return len(self._snapshot)

    def __iter__(self) -> Iterator[MailboxRecord]:
        return iter(self._snapshot)

    def reset(self) -> None:
        """Move before the first record."""
        self._index = None

    def next(self) -> bool:
        """Advance to the next record.

        Returns:
            False once the cursor moved past the last record.

        """
        if self._index is None:
            self._index = 0
        elif self._index < len(self._snapshot):
            self._index += 1
        return self._index < len(self._snapshot)

    def move(self, index: int) -> bool:
        """Move to the given position.

        Returns:
            True if the new position is valid.

        """
        self._index = index
        return self.is_valid

    def at(self, index: Optional[int]) -> MailboxRef:
        """Return a new reference to the same snapshot."""
        return MailboxRef(self._snapshot, index)

    def search(self, name: str) -> Optional[int]:
        """Return the index of the mailbox with exactly the given name.

        Args:
            name: The fully qualified mailbox name.

        """
        return self._snapshot.search(name)

    def _is_inferior(self, record: MailboxRecord, root: str,
                     namespaces: Namespaces) -> bool:
        name, nsid = namespaces.friendly_name(record.name)
        return nsid == namespaces.find(self.name) and name.startswith(root)

    def recurse(self, position: Optional[int],
                namespaces: Namespaces) -> Optional[MailboxRef]:
        """Step through the sub-tree of the referenced mailbox. The first call,
        with a ``position`` of None, returns the root itself. Each following
        call is given the position of the previous result and returns the
        next inferior mailbox of the same namespace, in snapshot order.

        Args:
            position: The position of the previous result, or None.
            namespaces: Used to compare names across namespaces.

        Returns:
            The next mailbox of the sub-tree, or None when done.

        """
        if not self.is_valid:
            return None
        elif position is None:
            return self.at(self._index)
        start = 0 if position == self._index else position + 1
        root_name, _ = namespaces.friendly_name(self.name)
        root = root_name + self.record.delimiter
        for i in range(start, len(self._snapshot)):
            if i != self._index and self._is_inferior(
                    self._snapshot[i], root, namespaces):
                return self.at(i)
        return None

    def walk(self, namespaces: Namespaces) -> Iterator[MailboxRef]:
        """Generate the referenced mailbox followed by its sub-tree.

        See Also:
            :meth:`.recurse`

        """
        ref = self.recurse(None, namespaces)
        while ref is not None:
            yield ref
            ref = self.recurse(ref.index, namespaces)

    def append(self, name: str, delimiter: str) -> bool:
        """Replace the referenced snapshot with a copy that has a new record
        at the end. Other references to the old snapshot are not affected.

        Args:
            name: The new mailbox name.
            delimiter: The new mailbox delimiter.

        Returns:
            False if the snapshot is empty.

        """
        if not self._snapshot:
            return False
        record = MailboxRecord(name, delimiter)
        self._snapshot = self._snapshot.append(record)
        return True

    def delete(self, target: MailboxRef) -> bool:
        """Replace the referenced snapshot with a copy that does not contain
        the target record. The target is matched by position if it
        references the same snapshot, otherwise by name.

        Args:
            target: The reference to the deleted mailbox.

        Returns:
            False if the target was not found.

        """
        if not self._snapshot or not target.is_valid:
            return False
        elif target.snapshot is self._snapshot:
            index = target.index
        else:
            index = self._snapshot.search(target.name)
        if index is None:
            return False
        self._snapshot = self._snapshot.remove(index)
        if self._index is not None:
            if self._index == index:
                self._index = None
            elif self._index > index:
                self._index -= 1
        return True

    def open(self, protocol: ProtocolInterface, readonly: bool) -> bool:
        """Select the referenced mailbox and record the granted mode.

        Args:
            protocol: The protocol collaborator.
            readonly: True to request read-only access.

        Returns:
            False if the reference is invalid or the server refused.

        """
        self._readonly = None
        if not self.is_valid:
            return False
        try:
            granted = protocol.select_mailbox(self.name, readonly)
        except ProtocolError as exc:
            _log.warning('could not open %r: %s', self.name, exc)
            return False
        self._readonly = granted
        return True

    def __repr__(self) -> str:
        name = self.name if self.is_valid else None
        return '<MailboxRef index=%r name=%r>' % (self._index, name)
