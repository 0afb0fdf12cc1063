
import unittest

from imapadmin.exceptions import AmbiguousSelection, HeadersNotLoaded, \
    InvalidRange, InvertedRange, ItemOutOfRange, NoItemsSelected, \
    NotANumber, UsageError, WildcardMisuse
from imapadmin.headers import HeaderRecord
from imapadmin.selection import Selection, resolve_item, resolve_items


class TestSelection(unittest.TestCase):

    def test_dedup(self) -> None:
        selection = Selection([3, 1, 3, 2])
        self.assertEqual([3, 1, 2], selection)
        self.assertTrue(selection.uid)

    def test_sequence_set(self) -> None:
        self.assertEqual('1:3,7', Selection([7, 2, 1, 3]).sequence_set)
        self.assertEqual('5', str(Selection([5])))
        self.assertEqual('', Selection([]).sequence_set)

    def test_equality(self) -> None:
        self.assertEqual(Selection([1, 2]), Selection([1, 2]))
        self.assertNotEqual(Selection([1, 2]), Selection([1, 2], False))


class TestResolveItems(unittest.TestCase):

    def setUp(self) -> None:
        self.headers = [HeaderRecord(i, 100 + i) for i in range(1, 6)]

    def test_positional(self) -> None:
        self.assertEqual([101, 103],
                         resolve_items(['1', '3'], self.headers))
        self.assertEqual([102, 103, 104],
                         resolve_items(['2:4'], self.headers))
        self.assertEqual([105, 101, 102],
                         resolve_items(['5', '1:2', '2'], self.headers))

    def test_offset(self) -> None:
        self.assertEqual([104], resolve_items(['dest', '4'], self.headers,
                                              offset=1))

    def test_follows_header_order(self) -> None:
        headers = list(reversed(self.headers))
        self.assertEqual([105], resolve_items(['1'], headers))

    def test_all(self) -> None:
        self.assertEqual([101, 102, 103, 104, 105],
                         resolve_items(['*'], self.headers))
        self.assertEqual([101, 102, 103, 104, 105],
                         resolve_items([], self.headers, default_all=True))

    def test_id_and_uid(self) -> None:
        selection = resolve_items(['7', '0'], self.headers, use_id=True)
        self.assertEqual([7, 0], selection)
        self.assertFalse(selection.uid)
        selection = resolve_items(['999'], self.headers, use_uid=True)
        self.assertEqual([999], selection)
        self.assertTrue(selection.uid)
        with self.assertRaises(AmbiguousSelection):
            resolve_items(['1'], self.headers, use_id=True, use_uid=True)
        with self.assertRaises(NotANumber):
            resolve_items(['x'], self.headers, use_uid=True)

    def test_errors(self) -> None:
        with self.assertRaises(HeadersNotLoaded):
            resolve_items(['1'], None)
        with self.assertRaises(NoItemsSelected):
            resolve_items([], self.headers)
        with self.assertRaises(ItemOutOfRange):
            resolve_items(['6'], self.headers)
        with self.assertRaises(ItemOutOfRange):
            resolve_items(['0'], self.headers)
        with self.assertRaises(ItemOutOfRange):
            resolve_items(['0:2'], self.headers)
        with self.assertRaises(ItemOutOfRange):
            resolve_items(['4:6'], self.headers)
        with self.assertRaises(InvertedRange):
            resolve_items(['4:2'], self.headers)
        with self.assertRaises(WildcardMisuse):
            resolve_items(['1', '*'], self.headers)
        for arg in ('', 'abc', '-1'):
            with self.assertRaises(NotANumber):
                resolve_items([arg], self.headers)
        for arg in ('3:', '1:x', '2:4:6'):
            with self.assertRaises(InvalidRange):
                resolve_items([arg], self.headers)

    def test_resolve_item(self) -> None:
        self.assertEqual(102, resolve_item(['2'], self.headers))
        self.assertEqual(2, resolve_item(['2'], self.headers, use_id=True))
        with self.assertRaises(UsageError):
            resolve_item(['1:2'], self.headers)
