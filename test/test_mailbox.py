
import unittest
from unittest.mock import MagicMock

from imapadmin.exceptions import ProtocolError
from imapadmin.mailbox import MailboxRecord, MailboxRef, MailboxSnapshot, \
    QuotaInfo
from imapadmin.namespace import NamespaceId, Namespaces


def _ref(*names: str) -> MailboxRef:
    return MailboxRef.of(MailboxRecord(name, '.') for name in names)


class TestMailboxSnapshot(unittest.TestCase):

    def test_search(self) -> None:
        snapshot = MailboxSnapshot(MailboxRecord(name, '.')
                                   for name in ('A', 'B'))
        self.assertEqual(1, snapshot.search('B'))
        self.assertIsNone(snapshot.search('b'))

    def test_copy_on_write(self) -> None:
        snapshot = MailboxSnapshot([MailboxRecord('A', '.')])
        appended = snapshot.append(MailboxRecord('B', '.'))
        self.assertEqual(1, len(snapshot))
        self.assertEqual(2, len(appended))
        self.assertIs(snapshot[0], appended[0])
        self.assertEqual(0, len(appended.remove(0).remove(0)))


class TestMailboxRef(unittest.TestCase):

    def setUp(self) -> None:
        self.namespaces = Namespaces('admin', {
            NamespaceId.PERSONAL: ('', '.')})

    def test_cursor(self) -> None:
        ref = _ref('A', 'B')
        self.assertFalse(ref.is_valid)
        with self.assertRaises(IndexError):
            ref.record
        self.assertTrue(ref.next())
        self.assertEqual('A', ref.name)
        self.assertTrue(ref.next())
        self.assertFalse(ref.next())
        self.assertFalse(ref.is_valid)
        self.assertTrue(ref.move(1))
        self.assertEqual('B', ref.name)
        ref.reset()
        self.assertIsNone(ref.index)

    def test_recurse(self) -> None:
        ref = _ref('A', 'A.X', 'A.X.Y', 'B').at(0)
        self.assertEqual(['A', 'A.X', 'A.X.Y'],
                         [sub.name for sub in ref.walk(self.namespaces)])
        self.assertEqual(['A.X', 'A.X.Y'],
                         [sub.name for sub in
                          ref.at(1).walk(self.namespaces)])
        self.assertEqual(['B'], [sub.name for sub in
                                 ref.at(3).walk(self.namespaces)])

    def test_recurse_not_sorted(self) -> None:
        ref = _ref('A.X', 'B', 'A', 'AB', 'A.Y').at(2)
        self.assertEqual(['A', 'A.X', 'A.Y'],
                         [sub.name for sub in ref.walk(self.namespaces)])

    def test_recurse_same_namespace(self) -> None:
        namespaces = Namespaces('admin', {
            NamespaceId.PERSONAL: ('INBOX.', '.'),
            NamespaceId.OTHERS: ('user.', '.'),
            NamespaceId.SHARED: ('', '.')})
        ref = _ref('INBOX.Sales', 'admin.Sales.X', 'INBOX.Sales.Y',
                   'user.admin.Sales.Z').at(0)
        self.assertEqual(['INBOX.Sales', 'INBOX.Sales.Y'],
                         [sub.name for sub in ref.walk(namespaces)])

    def test_recurse_invalid(self) -> None:
        self.assertIsNone(_ref('A').recurse(None, self.namespaces))

    def test_append(self) -> None:
        ref = _ref('A', 'B')
        other = ref.at(1)
        self.assertTrue(ref.append('C', '.'))
        self.assertEqual(3, len(ref))
        self.assertEqual(2, len(other))
        self.assertIsNot(ref.snapshot, other.snapshot)
        self.assertIs(ref.snapshot[1], other.record)

    def test_append_empty(self) -> None:
        ref = _ref()
        self.assertFalse(ref.append('C', '.'))
        self.assertEqual(0, len(ref))

    def test_delete(self) -> None:
        ref = _ref('A', 'B', 'C').at(2)
        self.assertTrue(ref.delete(ref.at(0)))
        self.assertEqual(['B', 'C'], [record.name for record in ref])
        self.assertEqual('C', ref.name)
        self.assertTrue(ref.delete(_ref('C').at(0)))
        self.assertIsNone(ref.index)
        self.assertFalse(ref.delete(_ref('Z').at(0)))

    def test_open(self) -> None:
        protocol = MagicMock()
        protocol.select_mailbox.return_value = True
        ref = _ref('A').at(0)
        self.assertTrue(ref.open(protocol, False))
        self.assertTrue(ref.readonly)
        protocol.select_mailbox.assert_called_once_with('A', False)

    def test_open_failed(self) -> None:
        protocol = MagicMock()
        protocol.select_mailbox.side_effect = ProtocolError('denied')
        ref = _ref('A').at(0)
        self.assertFalse(ref.open(protocol, True))
        self.assertIsNone(ref.readonly)
        self.assertFalse(_ref('A').open(protocol, True))


class TestQuotaInfo(unittest.TestCase):

    def test_none(self) -> None:
        self.assertFalse(QuotaInfo.none().has_root)
        self.assertTrue(QuotaInfo('user.bob', 10, 100).has_root)
