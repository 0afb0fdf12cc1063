from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from typing import Final, NamedTuple, Optional

from .cache import CacheState, Info
from .exceptions import DuplicateName, ArgumentCount, MailboxExists, \
    MailboxNotFound, NameNotUnique, NoCurrentMailbox, NotFoundError, \
    NotListed, ProtocolError, UsageError, UserExists, UserNotFound, \
    WildcardMisuse
from .mailbox import MailboxRef, MailboxSnapshot
from .namespace import NamespaceId

__all__ = ['Resolved', 'NameResolver']

_log = logging.getLogger(__name__)

_num_pattern = re.compile(r'[0-9]+', re.ASCII)


class Resolved(NamedTuple):
    """The result of resolving a qualifier argument.

    Args:
        name: The fully qualified name.
        verbatim: True if the name was used as given, without checking that
            it exists.

    """

    name: str
    verbatim: bool = False


def _accept(prompt: str) -> bool:
    return True


class NameResolver:
    """Resolves mailbox and user name fragments given by the user into fully
    qualified names, using the listings of the cache.

    A fragment may be empty or ``.`` for the current mailbox, a number that
    references the last listing, or part of a name. A leading ``.`` is
    ignored. Partial names match a listed name that ends with the fragment
    after a hierarchy delimiter, and must match exactly one of them.

    Args:
        cache: The session cache.
        confirm: Asks the user a yes or no question.

    Attributes:
        listed_folders: The folders shown by the last ``list`` command.
        listed_users: The users shown by the last ``user -list`` or
            ``shared -list`` command.

    """

    def __init__(self, cache: CacheState,
                 confirm: Callable[[str], bool] = _accept) -> None:
        super().__init__()
        self.cache: Final = cache
        self.namespaces: Final = cache.namespaces
        self.confirm = confirm
        self.listed_folders: Optional[MailboxRef] = None
        self.listed_users: Optional[MailboxRef] = None

    def _load(self, what: Info) -> None:
        if not self.cache.load(what):
            raise ProtocolError(f'Could not load {what!r}')

    def _search(self, snapshot: MailboxSnapshot, fragment: str,
                kind: str) -> Optional[int]:
        index = snapshot.search(fragment)
        if index is not None:
            return index
        friendly = [self.namespaces.friendly_name(record.name)[0]
                    for record in snapshot]
        if fragment in friendly:
            return friendly.index(fragment)
        lower = fragment.lower()
        matches: list[int] = []
        for i, record in enumerate(snapshot):
            tail = (record.delimiter + fragment).lower()
            for candidate in (record.name.lower(), friendly[i].lower()):
                if candidate == lower or candidate.endswith(tail):
                    matches.append(i)
                    break
        if len(matches) > 1:
            raise NameNotUnique(fragment, kind)
        return matches[0] if matches else None

    def _listed(self, listing: Optional[MailboxRef], arg: str,
                command: str) -> str:
        if listing is None:
            raise NotListed(command)
        num = int(arg)
        if num == 0 or num > len(listing):
            raise NotFoundError(f'Not a valid reference: {num}')
        return listing.snapshot[num - 1].name

    def find_mailbox(self, fragment: str) -> MailboxRef:
        """Find an existing mailbox.

        Args:
            fragment: The mailbox name fragment.

        Raises:
            :exc:`~imapadmin.exceptions.AdminError`

        """
        if not fragment or fragment == '.':
            current = self.cache.current
            if current is None:
                raise NoCurrentMailbox()
            return current.at(current.index)
        self._load(Info.FOLDERS)
        folders = self.cache.folders
        assert folders is not None
        if _num_pattern.fullmatch(fragment):
            fragment = self._listed(self.listed_folders, fragment, 'list')
        elif fragment.startswith('.'):
            fragment = fragment[1:]
        index = self._search(folders.snapshot, fragment, 'Folder')
        if index is None:
            formal = self.namespaces.formal_name(fragment)
            if formal is not None and formal != fragment:
                index = self._search(folders.snapshot, formal, 'Folder')
        if index is None:
            raise MailboxNotFound(fragment)
        return folders.at(index)

    def qualifier_prefix(self) -> str:
        """The prefix for new mailbox names, built from the qualifier. If the
        qualifier is neither a namespace nor an existing mailbox, the user is
        asked whether to ignore it.

        Raises:
            :exc:`~imapadmin.exceptions.AdminError`

        """
        qualifier = self.cache.qualifier
        if not qualifier:
            return ''
        nsid = self.namespaces.find(qualifier, substring=False)
        if nsid is not None:
            return self.namespaces[nsid].prefix
        qualifier = self.namespaces.formal_name(qualifier) or qualifier
        self._load(Info.FOLDERS)
        folders = self.cache.folders
        assert folders is not None
        index = folders.search(qualifier)
        if index is None:
            if self.confirm('Qualifier is not a mailbox and will be '
                            'ignored. Continue'):
                return ''
            raise UsageError('Cancelled')
        return qualifier + folders.snapshot[index].delimiter

    def new_mailbox_name(self, fragment: str) -> str:
        """Build the name of a mailbox that is about to be created, prefixed
        by the :meth:`.qualifier_prefix`.

        Args:
            fragment: The new mailbox name, relative to the qualifier.

        Raises:
            :exc:`~imapadmin.exceptions.AdminError`

        """
        if fragment.startswith('.'):
            fragment = fragment[1:]
        if not fragment:
            raise UsageError('Invalid name')
        name = self.qualifier_prefix() + fragment
        self._load(Info.FOLDERS)
        folders = self.cache.folders
        assert folders is not None
        for record in folders:
            if record.name == name \
                    or record.name.endswith(record.delimiter + name):
                raise MailboxExists(record.name)
        return name

    def _check_args(self, args: Sequence[str]) -> None:
        if not args:
            raise ArgumentCount('No mailbox(es) specified')
        elif '*' in args:
            raise WildcardMisuse()
        self._load(Info.FOLDERS)

    @classmethod
    def _check_duplicates(cls, names: Sequence[str]) -> None:
        seen: set[str] = set()
        for name in names:
            if name in seen:
                raise DuplicateName(name)
            seen.add(name)

    def find_mailboxes(self, args: Sequence[str]) -> Sequence[MailboxRef]:
        """Find every mailbox of an argument list. Each mailbox may only be
        given once.

        Args:
            args: The mailbox name fragments.

        Raises:
            :exc:`~imapadmin.exceptions.AdminError`

        """
        self._check_args(args)
        refs = [self.find_mailbox(arg) for arg in args]
        self._check_duplicates([ref.name for ref in refs])
        return refs

    def new_mailbox_names(self, args: Sequence[str]) -> Sequence[str]:
        """Build the names of mailboxes that are about to be created.

        See Also:
            :meth:`.new_mailbox_name`

        Raises:
            :exc:`~imapadmin.exceptions.AdminError`

        """
        self._check_args(args)
        names = [self.new_mailbox_name(arg) for arg in args]
        self._check_duplicates(names)
        return names

    def _load_users(self) -> MailboxRef:
        if not self.cache.valid & (Info.OTHERS | Info.SHARED):
            self._load(Info.OTHERS)
        users = self.cache.users
        assert users is not None
        return users

    @property
    def users_namespace(self) -> NamespaceId:
        """The namespace of the loaded user listing."""
        if self.cache.valid & Info.SHARED:
            return NamespaceId.SHARED
        return NamespaceId.OTHERS

    def find_user(self, fragment: str, must_exist: bool = True) -> str:
        """Find a user in the loaded other users or shared listing. An empty
        fragment or ``.`` is the login user.

        Args:
            fragment: The user name fragment.
            must_exist: If False, the user must not exist and the returned
                name is the new user mailbox name.

        Raises:
            :exc:`~imapadmin.exceptions.AdminError`

        """
        if not fragment or fragment == '.':
            fragment = 'INBOX'
        users = self._load_users()
        if _num_pattern.fullmatch(fragment):
            fragment = self._listed(self.listed_users, fragment, 'user -list')
        elif fragment.startswith('.'):
            fragment = fragment[1:]
        index = self._search(users.snapshot, fragment, 'User')
        if index is None and must_exist \
                and fragment in self.namespaces.user:
            index = users.search('INBOX')
        if must_exist:
            if index is None:
                raise UserNotFound(fragment)
            return users.snapshot[index].name
        elif index is not None:
            record = users.snapshot[index]
            if record.name == fragment \
                    or record.name.endswith(record.delimiter + fragment):
                raise UserExists(record.name)
        return self.namespaces[self.users_namespace].prefix + fragment

    def resolve_qualifier(self, arg: str, nsid: NamespaceId) -> Resolved:
        """Resolve the argument of the ``user`` or ``shared`` command into a
        new qualifier. ``*`` is the namespace itself, a name containing the
        hierarchy delimiter is used verbatim, anything else must be a listed
        user.

        Args:
            arg: The user name fragment.
            nsid: The namespace of the listing.

        Raises:
            :exc:`~imapadmin.exceptions.AdminError`

        """
        if arg == '*':
            users = self.cache.users
            if users is None or not len(users):
                raise NotFoundError('No visible users')
            return Resolved(self.namespaces[nsid].qualifier)
        elif arg != '.' and self.namespaces.has_delimiter(arg, nsid):
            name = self.namespaces.trim_delimiter(arg, nsid)
            if not name:
                raise UsageError('Invalid name')
            _log.warning('Name containing delimiter is used without '
                         'validation: %s', name)
            return Resolved(name, True)
        return Resolved(self.find_user(arg))
