from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence, Set
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Final, Optional

from ..exceptions import ProtocolError
from ..flags import FlagOp
from ..headers import HeaderRecord
from ..interfaces.protocol import ProtocolInterface
from ..listtree import ListTree
from ..mailbox import MailboxRecord, QuotaInfo
from ..namespace import NamespaceId
from ..selection import Selection

__all__ = ['Message', 'DictServer']

_log = logging.getLogger(__name__)

_default_namespaces: Mapping[NamespaceId, tuple[str, str]] = {
    NamespaceId.PERSONAL: ('INBOX.', '.'),
    NamespaceId.OTHERS: ('user.', '.'),
    NamespaceId.SHARED: ('', '.')}

_admin_rights: Final = 'lrswipcda'


@dataclass
class Message:
    """A message stored by :class:`DictServer`.

    Args:
        uid: The message UID.
        literal: The message header bytes.
        flags: The message flags.
        recent: True if the message is ``\\Recent``.

    """

    uid: int
    literal: bytes
    flags: set[str] = field(default_factory=set)
    recent: bool = False

    @property
    def size(self) -> int:
        return len(self.literal)


@dataclass
class _Folder:
    messages: list[Message] = field(default_factory=list)
    acl: dict[str, str] = field(default_factory=dict)
    subscribed: bool = False
    next_uid: int = 1

    def append(self, literal: bytes, flags: Iterable[str] = (),
               recent: bool = False) -> Message:
        msg = Message(self.next_uid, literal, set(flags), recent)
        self.next_uid += 1
        self.messages.append(msg)
        return msg


class DictServer(ProtocolInterface):
    """An in-memory server that answers the protocol calls of an
    administration session, for example usage and testing. Every call is
    counted in :attr:`.calls`, and the calls named in :attr:`.failing` raise
    :exc:`~imapadmin.exceptions.ProtocolError`.

    Args:
        user: The login user name.
        namespaces: The ``(prefix, delimiter)`` of each namespace.
        capabilities: The announced capabilities.

    """

    def __init__(self, user: str = 'admin',
                 namespaces: Optional[
                     Mapping[NamespaceId, tuple[str, str]]] = None,
                 capabilities: Iterable[str] = ('NAMESPACE', 'ACL',
                                                'QUOTA')) -> None:
        super().__init__()
        self._user = user
        self._namespaces = dict(_default_namespaces if namespaces is None
                                else namespaces)
        self._capabilities = frozenset(capabilities)
        self._delimiter = self._namespaces.get(
            NamespaceId.PERSONAL, ('', '.'))[1]
        self._folders: dict[str, _Folder] = {'INBOX': _Folder()}
        self._quota: dict[str, tuple[Optional[int], Optional[int]]] = {}
        self._selected: Optional[str] = None
        self._readonly = False
        self.calls: Counter[str] = Counter()
        self.failing: set[str] = set()

    @classmethod
    def demo(cls, user: str = 'admin') -> DictServer:
        """Build a server with a few folders, users and messages."""
        server = cls(user)
        for name in ('INBOX.Sent', 'INBOX.Drafts', 'INBOX.Sales',
                     'INBOX.Sales.2024', 'user.alice', 'user.alice.Sent',
                     'user.bob', 'public', 'public.news'):
            server.add_folder(name)
        server.subscribe('INBOX', True)
        server.subscribe('INBOX.Sent', True)
        for i, subject in enumerate(('Welcome', 'Meeting', 'Invoice'), 1):
            server.add_message('INBOX', subject=subject,
                               sender=f'sender{i}@example.com',
                               to=f'{user}@example.com',
                               date=f'Mon, {i} Jan 2024 10:00:00 +0000',
                               flags=['\\Seen'] if i == 1 else [])
        server.add_message('INBOX.Sales', subject='Offer',
                           sender='sales@example.com')
        server._quota['user.alice'] = (10240, None)
        return server

    def _call(self, name: str) -> None:
        self.calls[name] += 1
        if name in self.failing:
            raise ProtocolError('Simulated failure', name.upper())

    def _folder(self, name: str, command: str) -> _Folder:
        folder = self._folders.get(name)
        if folder is None:
            raise ProtocolError(f'Mailbox does not exist: {name}', command)
        return folder

    def _selected_folder(self, command: str, write: bool = False) -> _Folder:
        if self._selected is None:
            raise ProtocolError('No mailbox selected', command)
        elif write and self._readonly:
            raise ProtocolError('Mailbox is read-only', command)
        return self._folder(self._selected, command)

    def _tree(self) -> ListTree:
        return ListTree(self._delimiter).update(*self._folders)

    def add_folder(self, name: str) -> None:
        """Add a mailbox without counting a call."""
        self._folders.setdefault(name, _Folder())

    def add_message(self, name: str, *, subject: str = '',
                    sender: str = '', to: str = '', date: str = '',
                    flags: Iterable[str] = (),
                    recent: bool = False) -> Message:
        """Add a message to a mailbox without counting a call."""
        msg = EmailMessage()
        for header, value in (('From', sender), ('To', to),
                              ('Subject', subject), ('Date', date)):
            if value:
                msg[header] = value
        literal = bytes(msg)
        return self._folders[name].append(literal, flags, recent)

    def messages(self, name: str) -> Sequence[Message]:
        """The messages of a mailbox."""
        return self._folders[name].messages

    def exists(self, name: str) -> bool:
        return name in self._folders

    def quota_limits(self, root: str) \
            -> Optional[tuple[Optional[int], Optional[int]]]:
        return self._quota.get(root)

    @property
    def user(self) -> str:
        return self._user

    @property
    def capabilities(self) -> Set[str]:
        return self._capabilities

    @property
    def selected(self) -> Optional[str]:
        """The selected mailbox name."""
        return self._selected

    def fetch_namespaces(self) -> Mapping[NamespaceId, tuple[str, str]]:
        self._call('fetch_namespaces')
        return dict(self._namespaces)

    def _record(self, name: str, attributes: frozenset[str],
                details: bool) -> MailboxRecord:
        folder = self._folders.get(name)
        if not details or folder is None:
            return MailboxRecord(name, self._delimiter, attributes)
        msgs = folder.messages
        return MailboxRecord(
            name, self._delimiter, attributes, folder.subscribed,
            messages=len(msgs),
            recent=sum(1 for msg in msgs if msg.recent),
            unseen=sum(1 for msg in msgs if '\\Seen' not in msg.flags))

    def fetch_folders(self, qualifier: str, filter_: str,
                      details: bool) -> Sequence[MailboxRecord]:
        self._call('fetch_folders')
        return [self._record(entry.name, entry.attributes, details)
                for entry in self._tree().list_matching(qualifier, filter_)]

    def _top_level(self, prefix: str) -> Iterable[str]:
        tree = self._tree()
        personal = self._namespaces.get(NamespaceId.PERSONAL, ('', ''))[0]
        others = self._namespaces.get(NamespaceId.OTHERS, ('', ''))[0]
        for entry in tree.list_matching(prefix, '%'):
            name = entry.name
            if prefix or not (name == 'INBOX' or
                              (personal and name.startswith(personal)) or
                              (others and
                               (name + self._delimiter).startswith(others))):
                yield name

    def fetch_users(self, nsid: NamespaceId) -> Sequence[MailboxRecord]:
        self._call('fetch_users')
        namespace = self._namespaces.get(nsid)
        if namespace is None:
            return []
        prefix, delimiter = namespace
        return [MailboxRecord(name, delimiter)
                for name in self._top_level(prefix)]

    def fetch_headers(self, name: str) -> Sequence[HeaderRecord]:
        self._call('fetch_headers')
        folder = self._folder(name, 'FETCH')
        return [HeaderRecord(i, msg.uid, msg.size, frozenset(msg.flags),
                             msg.literal)
                for i, msg in enumerate(folder.messages, 1)]

    def _quota_root(self, name: str) -> Optional[str]:
        parts = name.split(self._delimiter)
        for i in range(len(parts), 0, -1):
            root = self._delimiter.join(parts[:i])
            if root in self._quota:
                return root
        return None

    def _usage(self, root: str) -> tuple[int, int]:
        storage = messages = 0
        for name, folder in self._folders.items():
            if name == root or name.startswith(root + self._delimiter):
                messages += len(folder.messages)
                storage += sum(msg.size for msg in folder.messages)
        return (storage + 1023) // 1024, messages

    def fetch_quota(self, name: str) -> Optional[QuotaInfo]:
        self._call('fetch_quota')
        self._folder(name, 'GETQUOTAROOT')
        root = self._quota_root(name)
        if root is None:
            return None
        storage_limit, message_limit = self._quota[root]
        storage, messages = self._usage(root)
        return QuotaInfo(root, storage, storage_limit or 0,
                         messages, message_limit or 0)

    def fetch_rights(self, name: str) -> str:
        self._call('fetch_rights')
        folder = self._folder(name, 'MYRIGHTS')
        return folder.acl.get(self._user, _admin_rights)

    def fetch_acl(self, name: str) -> Mapping[str, str]:
        self._call('fetch_acl')
        return dict(self._folder(name, 'GETACL').acl)

    def select_mailbox(self, name: str, readonly: bool) -> bool:
        self._call('select_mailbox')
        self._folder(name, 'EXAMINE' if readonly else 'SELECT')
        self._selected = name
        self._readonly = readonly
        _log.debug('selected %r, readonly=%r', name, readonly)
        return readonly

    def close_mailbox(self) -> None:
        self._call('close_mailbox')
        self._selected = None

    def create_folder(self, name: str) -> None:
        self._call('create_folder')
        if name in self._folders:
            raise ProtocolError(f'Mailbox already exists: {name}', 'CREATE')
        self._folders[name] = _Folder()

    def delete_folder(self, name: str) -> None:
        self._call('delete_folder')
        self._folder(name, 'DELETE')
        if name == 'INBOX':
            raise ProtocolError('Cannot delete INBOX', 'DELETE')
        del self._folders[name]
        self._quota.pop(name, None)
        if self._selected == name:
            self._selected = None

    def rename_folder(self, name: str, new_name: str) -> None:
        self._call('rename_folder')
        self._folder(name, 'RENAME')
        if new_name in self._folders:
            raise ProtocolError(f'Mailbox already exists: {new_name}',
                                'RENAME')
        for before, after in self._tree().get_renames(name, new_name):
            self._folders[after] = self._folders.pop(before)

    def subscribe(self, name: str, subscribed: bool) -> None:
        self._call('subscribe')
        command = 'SUBSCRIBE' if subscribed else 'UNSUBSCRIBE'
        self._folder(name, command).subscribed = subscribed

    def _find(self, folder: _Folder, items: Selection,
              command: str) -> list[Message]:
        if items.uid:
            by_uid = {msg.uid: msg for msg in folder.messages}
            return [by_uid[uid] for uid in items if uid in by_uid]
        count = len(folder.messages)
        for seq in items:
            if not 0 < seq <= count:
                raise ProtocolError(f'Invalid sequence number: {seq}',
                                    command)
        return [folder.messages[seq - 1] for seq in items]

    def store_flags(self, items: Selection, op: FlagOp,
                    flags: Set[str]) -> None:
        self._call('store_flags')
        folder = self._selected_folder('STORE', write=True)
        for msg in self._find(folder, items, 'STORE'):
            msg.flags = set(op.apply(msg.flags, flags))

    def copy_messages(self, items: Selection, destination: str) -> None:
        self._call('copy_messages')
        folder = self._selected_folder('COPY')
        dest = self._folder(destination, 'COPY')
        for msg in self._find(folder, items, 'COPY'):
            dest.append(msg.literal, msg.flags, recent=True)

    def expunge(self) -> int:
        self._call('expunge')
        folder = self._selected_folder('EXPUNGE', write=True)
        before = len(folder.messages)
        folder.messages = [msg for msg in folder.messages
                           if '\\Deleted' not in msg.flags]
        return before - len(folder.messages)

    def set_acl(self, name: str, identifier: str, rights: str) -> None:
        self._call('set_acl')
        acl = self._folder(name, 'SETACL').acl
        current = set(acl.get(identifier, ''))
        if rights.startswith('-'):
            current -= set(rights[1:])
        elif rights.startswith('+'):
            current |= set(rights[1:])
        else:
            current = set(rights)
        acl[identifier] = ''.join(r for r in _admin_rights if r in current)

    def delete_acl(self, name: str, identifier: str) -> None:
        self._call('delete_acl')
        self._folder(name, 'DELETEACL').acl.pop(identifier, None)

    def set_quota(self, root: str, storage_limit: Optional[int],
                  message_limit: Optional[int]) -> None:
        self._call('set_quota')
        if storage_limit is None and message_limit is None:
            self._quota.pop(root, None)
        else:
            self._quota[root] = (storage_limit, message_limit)
