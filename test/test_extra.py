
import unittest
from unittest.mock import MagicMock

from imapadmin.exceptions import ProtocolError
from imapadmin.extra import ExtraAttributeStore
from imapadmin.mailbox import MailboxRecord, QuotaInfo


class TestExtraAttributeStore(unittest.TestCase):

    def setUp(self) -> None:
        self.protocol = MagicMock()
        self.protocol.fetch_rights.return_value = 'lrs'
        self.protocol.fetch_quota.return_value = QuotaInfo('user.bob', 5, 10)
        self.store = ExtraAttributeStore(self.protocol)

    def test_get_rights_once(self) -> None:
        record = MailboxRecord('user.bob', '.')
        self.assertEqual('lrs', self.store.get_rights(record))
        self.assertEqual('lrs', self.store.get_rights(record))
        self.protocol.fetch_rights.assert_called_once_with('user.bob')

    def test_get_quota_no_root(self) -> None:
        self.protocol.fetch_quota.return_value = None
        record = MailboxRecord('INBOX', '.')
        self.assertEqual(QuotaInfo.none(), self.store.get_quota(record))
        self.assertEqual(QuotaInfo.none(), self.store.get_quota(record))
        self.protocol.fetch_quota.assert_called_once_with('INBOX')

    def test_get_failed(self) -> None:
        self.protocol.fetch_rights.side_effect = ProtocolError('denied')
        record = MailboxRecord('INBOX', '.')
        self.assertIsNone(self.store.get_rights(record))
        self.assertIsNone(self.store.get_rights(record))
        self.assertEqual(2, self.protocol.fetch_rights.call_count)

    def test_disabled(self) -> None:
        store = ExtraAttributeStore(self.protocol, rights_enabled=False,
                                    quota_enabled=False)
        record = MailboxRecord('INBOX', '.')
        self.assertIsNone(store.get_rights(record))
        self.assertIsNone(store.get_quota(record))
        self.assertEqual([], list(store.fetch([record], rights=True,
                                              quota=True)))
        self.protocol.fetch_rights.assert_not_called()

    def test_fetch(self) -> None:
        loaded = MailboxRecord('A', '.')
        loaded.get_extra().rights = 'l'
        records = [loaded, MailboxRecord('B', '.'),
                   MailboxRecord('C', '.', frozenset({'\\Noselect'}))]
        pending = self.store.fetch(records, rights=True, quota=True)
        self.assertEqual(2, len(pending))
        self.assertIsNone(records[1].extra)
        for update in pending:
            update.apply()
        self.assertEqual('l', records[0].get_extra().rights)
        self.assertEqual('lrs', records[1].get_extra().rights)
        self.assertIsNone(records[2].extra)
        self.assertEqual(1, self.protocol.fetch_rights.call_count)
        self.assertEqual(2, self.protocol.fetch_quota.call_count)

    def test_fetch_failed(self) -> None:
        self.protocol.fetch_quota.side_effect = [
            QuotaInfo('A'), ProtocolError('failed')]
        records = [MailboxRecord('A', '.'), MailboxRecord('B', '.')]
        with self.assertRaises(ProtocolError):
            self.store.fetch(records, rights=False, quota=True)
        self.assertIsNone(records[0].extra)
        self.assertIsNone(records[1].extra)

    def test_forget(self) -> None:
        records = [MailboxRecord('A', '.'), MailboxRecord('B', '.'),
                   MailboxRecord('C', '.')]
        self.store.get_rights(records[0])
        self.store.get_quota(records[0])
        self.store.get_quota(records[1])
        self.assertEqual(2, self.store.forget(records, rights=False,
                                              quota=True))
        self.assertEqual('lrs', records[0].get_extra().rights)
        self.assertIsNone(records[0].get_extra().quota)
        self.assertIsNone(records[1].get_extra().quota)
        self.assertEqual(0, self.store.forget(records, rights=False,
                                              quota=True))
        self.assertEqual(QuotaInfo('user.bob', 5, 10),
                         self.store.get_quota(records[0]))
        self.assertEqual(3, self.protocol.fetch_quota.call_count)
