
import unittest

from imapadmin.mailbox import MailboxRecord
from imapadmin.namespace import Namespace, NamespaceId, Namespaces


class TestNamespaces(unittest.TestCase):

    def setUp(self) -> None:
        self.namespaces = Namespaces('admin', {
            NamespaceId.PERSONAL: ('INBOX.', '.'),
            NamespaceId.OTHERS: ('user', '.'),
            NamespaceId.SHARED: ('', '.')})

    def test_entries(self) -> None:
        self.assertEqual(Namespace('INBOX.', '.'),
                         self.namespaces[NamespaceId.PERSONAL])
        self.assertEqual(Namespace('user.', '.'),
                         self.namespaces[NamespaceId.OTHERS])
        self.assertEqual('user', self.namespaces[NamespaceId.OTHERS].qualifier)
        self.assertEqual('Search Results.',
                         self.namespaces[NamespaceId.SEARCH].prefix)
        self.assertEqual(4, len(self.namespaces))

    def test_disabled(self) -> None:
        namespaces = Namespaces('admin', {
            NamespaceId.PERSONAL: ('INBOX.', '/')}, '.', enabled=False)
        for nsid in (NamespaceId.PERSONAL, NamespaceId.OTHERS,
                     NamespaceId.SHARED):
            self.assertFalse(namespaces[nsid].valid)
        self.assertEqual('.', namespaces.delimiter)

    def test_find(self) -> None:
        find = self.namespaces.find
        self.assertIsNone(find(None))
        self.assertEqual(NamespaceId.PERSONAL, find('inbox'))
        self.assertEqual(NamespaceId.PERSONAL, find('INBOX.Sent'))
        self.assertEqual(NamespaceId.OTHERS, find('user.bob.Sent'))
        self.assertEqual(NamespaceId.OTHERS, find('user'))
        self.assertEqual(NamespaceId.SEARCH, find('Search Results.x'))
        self.assertEqual(NamespaceId.SHARED, find('public'))

    def test_find_exact(self) -> None:
        find = self.namespaces.find
        self.assertEqual(NamespaceId.PERSONAL, find('INBOX', False))
        self.assertEqual(NamespaceId.OTHERS, find('user', False))
        self.assertEqual(NamespaceId.SHARED, find('', False))
        self.assertIsNone(find('user.bob', False))

    def test_find_exact_invalid(self) -> None:
        namespaces = Namespaces('admin', {
            NamespaceId.PERSONAL: ('', '/')})
        self.assertEqual(NamespaceId.PERSONAL, namespaces.find('', False))
        self.assertIsNone(namespaces.find('user', False))

    def test_friendly_name(self) -> None:
        friendly = self.namespaces.friendly_name
        self.assertEqual(('admin', NamespaceId.PERSONAL), friendly('INBOX'))
        self.assertEqual(('admin.Sent', NamespaceId.PERSONAL),
                         friendly('INBOX.Sent'))
        self.assertEqual(('bob.Sent', NamespaceId.OTHERS),
                         friendly('user.bob.Sent'))
        self.assertEqual(('user', NamespaceId.OTHERS), friendly('user'))
        self.assertEqual(('public', NamespaceId.SHARED), friendly('public'))

    def test_formal_name(self) -> None:
        self.assertEqual('INBOX', self.namespaces.formal_name('admin'))
        self.assertEqual('INBOX.Sent',
                         self.namespaces.formal_name('admin.Sent'))
        self.assertIsNone(self.namespaces.formal_name('bob.Sent'))

    def test_normalize(self) -> None:
        normalize = self.namespaces.normalize
        self.assertEqual(('', '*'), normalize(None, None))
        self.assertEqual(('user', '*'), normalize('user.', ''))
        self.assertEqual(('INBOX', '.Sales*'), normalize('INBOX', 'Sales*'))

    def test_sort_mailboxes(self) -> None:
        records = [MailboxRecord(name, '.') for name in (
            'public', 'user.bob', 'INBOX.Sent', 'INBOX', 'Search Results.x')]
        self.assertEqual(
            ['INBOX', 'INBOX.Sent', 'user.bob', 'public', 'Search Results.x'],
            [record.name
             for record in self.namespaces.sort_mailboxes(records)])
        self.assertEqual((9, ''), self.namespaces.sort_key(None))

    def test_filter_mailboxes(self) -> None:
        records = [MailboxRecord(name, '.') for name in (
            'INBOX', 'user.bob', 'user.carol.Sent', 'public')]
        self.assertEqual(
            ['user.bob', 'user.carol.Sent'],
            [record.name for record in self.namespaces.filter_mailboxes(
                records, NamespaceId.OTHERS)])

    def test_delimiter(self) -> None:
        self.assertTrue(self.namespaces.has_delimiter('bob.Sent',
                                                      NamespaceId.OTHERS))
        self.assertFalse(self.namespaces.has_delimiter('bob'))
        self.assertEqual('user.bob',
                         self.namespaces.trim_delimiter('user.bob..'))
