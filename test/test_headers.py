
import unittest

from imapadmin.exceptions import UsageError
from imapadmin.headers import HeaderRecord, sort_headers


def _header(index: int, uid: int, subject: str, date: str,
            size: int = 0) -> HeaderRecord:
    literal = (f'Subject: {subject}\r\nDate: {date}\r\n'
               f'From: user{index}@example.com\r\n\r\n').encode('ascii')
    return HeaderRecord(index, uid, size, frozenset({'\\Seen'}), literal)


class TestHeaderRecord(unittest.TestCase):

    def test_get_header(self) -> None:
        header = _header(1, 10, 'Hello', 'Tue, 2 Jan 2024 10:00:00 +0000')
        self.assertEqual('Hello', header.get_header('subject'))
        self.assertEqual('user1@example.com', header.get_header('From'))
        self.assertEqual('', header.get_header('To'))
        self.assertIsNotNone(header.date)
        self.assertFalse(header.deleted)

    def test_missing_date(self) -> None:
        self.assertIsNone(HeaderRecord(1, 1).date)
        self.assertTrue(HeaderRecord(1, 1, flags=frozenset(
            {'\\Deleted'})).deleted)


class TestSortHeaders(unittest.TestCase):

    def setUp(self) -> None:
        self.headers = [
            _header(1, 30, 'beta', 'Wed, 3 Jan 2024 10:00:00 +0000', 300),
            _header(2, 10, 'Alpha', 'Mon, 1 Jan 2024 10:00:00 +0000', 100),
            _header(3, 20, 'gamma', 'Tue, 2 Jan 2024 10:00:00 +0000', 200)]

    def _uids(self, field, reverse=False):
        return [header.uid for header in
                sort_headers(self.headers, field, reverse)]

    def test_fields(self) -> None:
        self.assertEqual([10, 20, 30], self._uids('uid'))
        self.assertEqual([30, 10, 20], self._uids('id'))
        self.assertEqual([10, 20, 30], self._uids('size'))
        self.assertEqual([10, 30, 20], self._uids('subject'))
        self.assertEqual([10, 20, 30], self._uids('date'))
        self.assertEqual([30, 10, 20], self._uids('from'))
        self.assertEqual([30, 20, 10], self._uids('UID', True))

    def test_no_field(self) -> None:
        self.assertEqual([30, 10, 20], self._uids(None))
        self.assertEqual([20, 10, 30], self._uids(None, True))

    def test_invalid_field(self) -> None:
        with self.assertRaises(UsageError):
            sort_headers(self.headers, 'color')
