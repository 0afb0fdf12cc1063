"""The client-side cache of server state for one administration session.

The cache tracks which categories of server state are loaded with an
:class:`Info` bit set. Command handlers call :meth:`CacheState.load` for the
categories they need and :meth:`CacheState.clear` for the categories their
operation may have changed on the server.

"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable, Sequence
from typing import Final, Optional

from .exceptions import ProtocolError
from .extra import ExtraAttributeStore, PendingExtra
from .headers import HeaderRecord, sort_headers
from .interfaces.protocol import ProtocolInterface
from .mailbox import MailboxRecord, MailboxRef, MailboxSnapshot
from .namespace import NamespaceId, Namespaces

__all__ = ['Info', 'CacheState']

_log = logging.getLogger(__name__)


class Info(enum.IntFlag):
    """The categories of cached server state."""

    #: The mailbox listing for the qualifier and filter.
    FOLDERS = 1

    #: The message counts and subscriptions of the listed mailboxes.
    DETAILS = 2

    #: The quota of the listed mailboxes.
    QUOTA = 4

    #: The rights of the login user on the listed mailboxes.
    RIGHTS = 8

    #: The listing of the shared namespace.
    SHARED = 32

    #: The listing of the other users namespace.
    OTHERS = 64

    #: The message headers of the current mailbox.
    HEADERS = 128

    #: Every category.
    ALL = FOLDERS | DETAILS | QUOTA | RIGHTS | SHARED | OTHERS | HEADERS


_folder_info: Final = Info.DETAILS | Info.QUOTA | Info.RIGHTS
_extra_info: Final = Info.QUOTA | Info.RIGHTS
_user_info: Final = Info.SHARED | Info.OTHERS


def _without(info: Info, remove: Info) -> Info:
    return Info(int(info) & ~int(remove))


class CacheState:
    """Caches server state for one session and tracks which parts of it are
    valid.

    The bits of :data:`Info.DETAILS`, :data:`Info.QUOTA` and
    :data:`Info.RIGHTS` describe the folder listing and are never valid
    without :data:`Info.FOLDERS`.

    Args:
        protocol: The protocol collaborator.
        namespaces: The namespaces of the session.
        extras: Loads the rights and quota of mailboxes.
        caching: False to re-fetch all state before every load.
        lifetime: Seconds after which loaded state expires, zero to disable
            expiry.
        clock: Returns the current time in seconds.

    """

    def __init__(self, protocol: ProtocolInterface, namespaces: Namespaces,
                 extras: Optional[ExtraAttributeStore] = None, *,
                 caching: bool = True, lifetime: float = 0.0,
                 clock: Callable[[], float] = time.monotonic) -> None:
        super().__init__()
        self.protocol: Final = protocol
        self.namespaces: Final = namespaces
        self.extras: Final = extras or ExtraAttributeStore(protocol)
        self._caching = caching
        self._lifetime = lifetime
        self._clock = clock
        self._valid = Info(0)
        self._loaded: dict[Info, float] = {}
        self._current: Optional[MailboxRef] = None
        self._folders: Optional[MailboxRef] = None
        self._users: Optional[MailboxRef] = None
        self._headers: Optional[tuple[HeaderRecord, ...]] = None
        self._qualifier: Optional[str] = None
        self._filter: Optional[str] = None

    @property
    def valid(self) -> Info:
        """The categories that are currently loaded."""
        return self._valid

    @property
    def caching(self) -> bool:
        """False if all state is re-fetched before every load. Disabling
        caching clears all state.

        """
        return self._caching

    @caching.setter
    def caching(self, caching: bool) -> None:
        self._caching = caching
        if not caching:
            self.clear(Info.ALL)

    @property
    def lifetime(self) -> float:
        """Seconds after which loaded state expires, zero to disable."""
        return self._lifetime

    @lifetime.setter
    def lifetime(self, lifetime: float) -> None:
        if lifetime < 0:
            raise ValueError(lifetime)
        self._lifetime = lifetime

    @property
    def current(self) -> Optional[MailboxRef]:
        """The currently open mailbox."""
        return self._current

    @property
    def current_readonly(self) -> Optional[bool]:
        """The mode granted by the server for the current mailbox."""
        if self._current is None:
            return None
        return self._current.readonly

    @property
    def folders(self) -> Optional[MailboxRef]:
        """The folder listing, if loaded."""
        return self._folders

    @property
    def users(self) -> Optional[MailboxRef]:
        """The other users or shared listing, if loaded."""
        return self._users

    @property
    def headers(self) -> Optional[Sequence[HeaderRecord]]:
        """The message headers of the current mailbox, if loaded."""
        return self._headers

    @property
    def qualifier(self) -> Optional[str]:
        """The reference name for folder listings. None lists from the server
        root, while an empty string restricts the listing to the namespace
        with an empty prefix. ``INBOX`` is replaced by the personal
        namespace qualifier. Changing the qualifier resets the filter and
        clears the folder listing.

        """
        return self._qualifier

    @qualifier.setter
    def qualifier(self, qualifier: Optional[str]) -> None:
        if qualifier is not None and qualifier.upper() == 'INBOX':
            qualifier = self.namespaces.personal.qualifier
        if qualifier == self._qualifier:
            return
        _log.debug('qualifier changed to %r', qualifier)
        self._qualifier = qualifier
        self._filter = ''
        self.clear(Info.FOLDERS)

    @property
    def filter(self) -> Optional[str]:
        """The mailbox pattern for folder listings. Changing the filter
        clears the folder listing.

        """
        return self._filter

    @filter.setter
    def filter(self, filter_: Optional[str]) -> None:
        if filter_ == self._filter:
            return
        _log.debug('filter changed to %r', filter_)
        self._filter = filter_
        self.clear(Info.FOLDERS)

    def _missing(self, what: Info) -> Info:
        return _without(what, self._valid)

    def _fetch_folders(self, details: bool) -> MailboxRef:
        qualifier, filter_ = self.namespaces.normalize(
            self._qualifier, self._filter)
        records: Sequence[MailboxRecord] = self.protocol.fetch_folders(
            qualifier, filter_, details)
        nsid = self.namespaces.find(self._qualifier, substring=False)
        if nsid is not None:
            records = self.namespaces.filter_mailboxes(records, nsid)
        _log.debug('fetched %d folders for %r %r', len(records),
                   qualifier, filter_)
        return MailboxRef.of(self.namespaces.sort_mailboxes(records))

    def _fetch_users(self, nsid: NamespaceId) -> MailboxRef:
        records = list(self.protocol.fetch_users(nsid))
        namespace = self.namespaces[nsid]
        if not namespace.valid:
            _log.info('namespace %s is not available', nsid.name)
        elif nsid == NamespaceId.OTHERS:
            inbox = MailboxRecord('INBOX', self.namespaces.delimiter)
            records.insert(0, inbox)
        else:
            records = self.namespaces.filter_mailboxes(records, nsid)
        _log.debug('fetched %d %s users', len(records), nsid.name)
        return MailboxRef.of(self.namespaces.sort_mailboxes(records))

    def load(self, what: Info) -> bool:
        """Make sure the categories are loaded, fetching whatever is missing.
        Requesting any per-folder category implies :data:`Info.FOLDERS`, and
        requesting both user listings loads :data:`Info.OTHERS`.

        Every missing category is fetched before any of them is stored, so a
        failed fetch leaves the cache unchanged.

        Args:
            what: The categories to load.

        Returns:
            False if a fetch failed or a precondition was not met.

        """
        self.expire()
        if what & _folder_info:
            what |= Info.FOLDERS
        if what & Info.OTHERS:
            what = _without(what, Info.SHARED)
        missing = self._missing(what)
        if not missing:
            return True
        elif missing & Info.HEADERS and self._current is None:
            _log.error('cannot load headers: no current mailbox')
            return False
        folders: Optional[MailboxRef] = None
        users: Optional[MailboxRef] = None
        headers: Optional[tuple[HeaderRecord, ...]] = None
        pending: Sequence[PendingExtra] = []
        try:
            if missing & (Info.FOLDERS | Info.DETAILS):
                folders = self._fetch_folders(bool(what & Info.DETAILS))
                extras = Info(what & _extra_info)
            else:
                extras = Info(missing & _extra_info)
            if extras:
                target = folders if folders is not None else self._folders
                assert target is not None
                pending = self.extras.fetch(
                    target, rights=bool(extras & Info.RIGHTS),
                    quota=bool(extras & Info.QUOTA))
            if missing & Info.OTHERS:
                users = self._fetch_users(NamespaceId.OTHERS)
            elif missing & Info.SHARED:
                users = self._fetch_users(NamespaceId.SHARED)
            if missing & Info.HEADERS:
                assert self._current is not None
                headers = tuple(self.protocol.fetch_headers(
                    self._current.name))
        except ProtocolError as exc:
            _log.error('loading %r failed: %s', missing, exc)
            return False
        now = self._clock()
        if folders is not None:
            self._folders = folders
            self._loaded[Info.FOLDERS] = now
            self._valid = _without(self._valid, _folder_info) \
                | Info.FOLDERS | Info(what & Info.DETAILS)
        for update in pending:
            update.apply()
        self._valid |= extras
        if users is not None:
            self._users = users
            self._loaded[_user_info] = now
            self._valid = _without(self._valid, _user_info) \
                | Info(missing & _user_info)
        if headers is not None:
            self._headers = headers
            self._loaded[Info.HEADERS] = now
            self._valid |= Info.HEADERS
        _log.debug('loaded %r, valid %r', missing, self._valid)
        return True

    def clear(self, what: Info) -> None:
        """Invalidate the categories. Clearing :data:`Info.FOLDERS` also
        invalidates the per-folder categories, and clearing either user
        listing invalidates both. Clearing :data:`Info.RIGHTS` or
        :data:`Info.QUOTA` alone drops that attribute from the records of
        the cached folders. The current mailbox is not affected.

        Args:
            what: The categories to clear.

        """
        if what & Info.FOLDERS:
            what |= _folder_info
            self._folders = None
            self._loaded.pop(Info.FOLDERS, None)
        elif what & _extra_info and self._folders is not None:
            self.extras.forget(self._folders,
                               rights=bool(what & Info.RIGHTS),
                               quota=bool(what & Info.QUOTA))
        if what & _user_info:
            what |= _user_info
            self._users = None
            self._loaded.pop(_user_info, None)
        if what & Info.HEADERS:
            self._headers = None
            self._loaded.pop(Info.HEADERS, None)
        if self._valid & what:
            _log.debug('cleared %r', Info(self._valid & what))
        self._valid = _without(self._valid, what)

    def expire(self) -> bool:
        """Clear the categories that are older than the lifetime, or all of
        them if caching is disabled.

        Returns:
            True if anything was cleared.

        """
        before = self._valid
        if not self._caching:
            self.clear(Info.ALL)
        elif self._lifetime > 0:
            now = self._clock()
            for info, loaded in list(self._loaded.items()):
                if now - loaded > self._lifetime:
                    self.clear(info)
        return self._valid != before

    def open_mailbox(self, ref: Optional[MailboxRef],
                     readonly: bool) -> bool:
        """Open the referenced mailbox, closing any other mailbox first. The
        headers are kept only when the same mailbox is opened again.

        Args:
            ref: The mailbox to open.
            readonly: True to request read-only access.

        Returns:
            False if the reference is invalid or the server refused, in which
            case no mailbox is current.

        """
        if ref is None or not ref.is_valid:
            return False
        name = ref.name
        if self._current is not None and self._current.name != name:
            self.close_mailbox()
        elif self._current is None:
            self.clear(Info.HEADERS)
        target = ref.at(ref.index)
        if not target.open(self.protocol, readonly):
            self._current = None
            self.clear(Info.HEADERS)
            return False
        self._current = target
        _log.debug('opened %r, readonly=%r', name, target.readonly)
        return True

    def reopen_mailbox(self, readonly: bool) -> bool:
        """Open the current mailbox again, e.g. to change the access mode.

        Args:
            readonly: True to request read-only access.

        """
        return self.open_mailbox(self._current, readonly)

    def close_mailbox(self) -> bool:
        """Close the current mailbox and drop its headers.

        Returns:
            True if a mailbox was open.

        """
        current = self._current
        self._current = None
        self.clear(Info.HEADERS)
        if current is None:
            return False
        try:
            self.protocol.close_mailbox()
        except ProtocolError as exc:
            _log.warning('closing %r failed: %s', current.name, exc)
        return True

    def folder_append(self, name: str, delimiter: str) -> bool:
        """Add a mailbox that was created on the server to the folder listing,
        without fetching the listing again.

        Args:
            name: The new mailbox name.
            delimiter: The new mailbox delimiter.

        Returns:
            False if the folder listing is not loaded.

        """
        if self._folders is None:
            return False
        ref = self._folders.at(None)
        if not ref.append(name, delimiter):
            self.clear(Info.FOLDERS)
            return False
        records = self.namespaces.sort_mailboxes(ref.snapshot)
        self._folders = MailboxRef(MailboxSnapshot(records))
        return True

    def folder_delete(self, target: MailboxRef) -> bool:
        """Remove a mailbox that was deleted on the server from the folder
        listing, without fetching the listing again.

        Args:
            target: The deleted mailbox.

        Returns:
            False if the folder listing is not loaded or does not contain the
            mailbox.

        """
        if self._folders is None:
            return False
        ref = self._folders.at(None)
        if not ref.delete(target):
            return False
        self._folders = ref
        return True

    def set_subscribed(self, name: str, subscribed: bool) -> bool:
        """Update the subscription state of a listed mailbox."""
        if self._folders is None:
            return False
        index = self._folders.search(name)
        if index is None:
            return False
        self._folders.snapshot[index].subscribed = subscribed
        return True

    def sort_headers(self, field: Optional[str],
                     reverse: bool = False) -> bool:
        """Re-order the loaded headers. Positional message numbers follow the
        new order.

        Args:
            field: The sort field, see :data:`~imapadmin.headers.sort_fields`.
            reverse: Sort in descending order.

        Returns:
            False if the headers are not loaded.

        """
        if self._headers is None:
            return False
        self._headers = tuple(sort_headers(self._headers, field, reverse))
        return True

    def __repr__(self) -> str:
        current = self._current.name if self._current is not None else None
        return '<CacheState valid=%r current=%r qualifier=%r filter=%r>' % (
            self._valid, current, self._qualifier, self._filter)
