
import unittest

from imapadmin.backend.dict import DictServer
from imapadmin.cache import CacheState, Info
from imapadmin.exceptions import ArgumentCount, DuplicateName, \
    MailboxExists, MailboxNotFound, NameNotUnique, NoCurrentMailbox, \
    NotFoundError, NotListed, UsageError, UserExists, UserNotFound, \
    WildcardMisuse
from imapadmin.mailbox import MailboxRecord, MailboxRef
from imapadmin.namespace import NamespaceId, Namespaces
from imapadmin.resolver import NameResolver, Resolved


class TestNameResolver(unittest.TestCase):

    def setUp(self) -> None:
        self.server = DictServer.demo()
        namespaces = Namespaces(self.server.user,
                                self.server.fetch_namespaces())
        self.cache = CacheState(self.server, namespaces)
        self.answer = True
        self.prompts: list[str] = []
        self.resolver = NameResolver(self.cache, self._confirm)

    def _confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.answer

    def test_find_current(self) -> None:
        with self.assertRaises(NoCurrentMailbox):
            self.resolver.find_mailbox('')
        self.cache.load(Info.FOLDERS)
        folders = self.cache.folders
        assert folders is not None
        self.cache.open_mailbox(folders.at(folders.search('INBOX.Sent')),
                                True)
        self.assertEqual('INBOX.Sent', self.resolver.find_mailbox('.').name)
        self.assertEqual('INBOX.Sent', self.resolver.find_mailbox('').name)

    def test_find_mailbox(self) -> None:
        self.assertEqual('INBOX.Drafts',
                         self.resolver.find_mailbox('INBOX.Drafts').name)
        self.assertEqual('INBOX.Drafts',
                         self.resolver.find_mailbox('Drafts').name)
        self.assertEqual('INBOX.Drafts',
                         self.resolver.find_mailbox('.drafts').name)
        self.assertEqual('INBOX.Drafts',
                         self.resolver.find_mailbox('admin.Drafts').name)
        self.assertEqual('user.alice.Sent',
                         self.resolver.find_mailbox('alice.Sent').name)
        self.assertEqual('INBOX', self.resolver.find_mailbox('admin').name)

    def test_find_mailbox_errors(self) -> None:
        with self.assertRaises(NameNotUnique):
            self.resolver.find_mailbox('Sent')
        with self.assertRaises(MailboxNotFound):
            self.resolver.find_mailbox('Archive')
        with self.assertRaises(MailboxNotFound):
            self.resolver.find_mailbox('rafts')

    def test_find_listed(self) -> None:
        with self.assertRaises(NotListed):
            self.resolver.find_mailbox('1')
        self.resolver.listed_folders = MailboxRef.of([
            MailboxRecord('INBOX.Sales', '.'),
            MailboxRecord('INBOX.Sales.2024', '.')])
        self.assertEqual('INBOX.Sales.2024',
                         self.resolver.find_mailbox('2').name)
        with self.assertRaises(NotFoundError):
            self.resolver.find_mailbox('3')
        with self.assertRaises(NotFoundError):
            self.resolver.find_mailbox('0')

    def test_find_mailboxes(self) -> None:
        refs = self.resolver.find_mailboxes(['Drafts', 'public'])
        self.assertEqual(['INBOX.Drafts', 'public'],
                         [ref.name for ref in refs])
        with self.assertRaises(ArgumentCount):
            self.resolver.find_mailboxes([])
        with self.assertRaises(WildcardMisuse):
            self.resolver.find_mailboxes(['Drafts', '*'])
        with self.assertRaises(DuplicateName):
            self.resolver.find_mailboxes(['Drafts', 'INBOX.Drafts'])

    def test_new_mailbox_name(self) -> None:
        self.assertEqual('Projects',
                         self.resolver.new_mailbox_name('Projects'))
        self.cache.qualifier = 'INBOX'
        self.assertEqual('INBOX.Projects',
                         self.resolver.new_mailbox_name('.Projects'))
        with self.assertRaises(MailboxExists):
            self.resolver.new_mailbox_name('Sales')
        with self.assertRaises(UsageError):
            self.resolver.new_mailbox_name('.')
        self.assertEqual([], self.prompts)

    def test_new_mailbox_name_qualified(self) -> None:
        self.cache.qualifier = 'INBOX.Sales'
        self.assertEqual('INBOX.Sales.2025',
                         self.resolver.new_mailbox_name('2025'))
        self.cache.qualifier = 'user'
        self.assertEqual('user.carol',
                         self.resolver.new_mailbox_name('carol'))

    def test_new_mailbox_name_bad_qualifier(self) -> None:
        self.cache.qualifier = 'Nowhere'
        self.assertEqual('Projects',
                         self.resolver.new_mailbox_name('Projects'))
        self.assertEqual(1, len(self.prompts))
        self.answer = False
        with self.assertRaises(UsageError):
            self.resolver.new_mailbox_name('Projects')

    def test_new_mailbox_names(self) -> None:
        self.assertEqual(['A', 'B'],
                         self.resolver.new_mailbox_names(['A', 'B']))
        with self.assertRaises(DuplicateName):
            self.resolver.new_mailbox_names(['A', '.A'])

    def test_find_user(self) -> None:
        self.assertEqual('user.alice', self.resolver.find_user('alice'))
        self.assertEqual('user.bob', self.resolver.find_user('user.bob'))
        self.assertEqual('INBOX', self.resolver.find_user(''))
        self.assertEqual('INBOX', self.resolver.find_user('admin'))
        self.assertEqual(NamespaceId.OTHERS, self.resolver.users_namespace)
        with self.assertRaises(UserNotFound):
            self.resolver.find_user('carol')

    def test_find_new_user(self) -> None:
        self.assertEqual('user.carol',
                         self.resolver.find_user('carol', must_exist=False))
        with self.assertRaises(UserExists):
            self.resolver.find_user('bob', must_exist=False)

    def test_find_listed_user(self) -> None:
        with self.assertRaises(NotListed):
            self.resolver.find_user('1')
        self.resolver.listed_users = self.cache.users
        self.assertEqual('user.alice', self.resolver.find_user('2'))

    def test_find_shared(self) -> None:
        self.cache.load(Info.SHARED)
        self.assertEqual(NamespaceId.SHARED, self.resolver.users_namespace)
        self.assertEqual('public', self.resolver.find_user('public'))
        self.assertEqual('news', self.resolver.find_user('news',
                                                         must_exist=False))

    def test_resolve_qualifier(self) -> None:
        with self.assertRaises(NotFoundError):
            self.resolver.resolve_qualifier('*', NamespaceId.OTHERS)
        self.cache.load(Info.OTHERS)
        self.assertEqual(Resolved('user'), self.resolver.resolve_qualifier(
            '*', NamespaceId.OTHERS))
        self.assertEqual(Resolved('user.bob'),
                         self.resolver.resolve_qualifier(
                             'bob', NamespaceId.OTHERS))
        self.assertEqual(Resolved('user.carol', True),
                         self.resolver.resolve_qualifier(
                             'user.carol.', NamespaceId.OTHERS))
        with self.assertRaises(UsageError):
            self.resolver.resolve_qualifier('..', NamespaceId.OTHERS)
