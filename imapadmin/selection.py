"""Resolution of message item arguments into message identifiers.

Items are given as positional numbers of the loaded headers, either alone
(``3``) or as inclusive ranges (``2:4``). A single ``*`` selects every loaded
message. With ``use_id`` or ``use_uid`` the arguments are message sequence
numbers or UIDs that are passed through to the server unchecked.

"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence
from typing import Optional, Union, overload

from .exceptions import AmbiguousSelection, HeadersNotLoaded, \
    InvalidRange, InvertedRange, ItemOutOfRange, NoItemsSelected, \
    NotANumber, UsageError, WildcardMisuse
from .headers import HeaderRecord

__all__ = ['Selection', 'resolve_items', 'resolve_item']

_num_pattern = re.compile(r'[0-9]+', re.ASCII)


class Selection(Sequence[int]):
    """The resolved message identifiers, in resolution order.

    Args:
        values: The message identifiers.
        uid: True if the values are UIDs, False for sequence numbers.

    Attributes:
        uid: True if the values are UIDs, False for sequence numbers.

    """

    __slots__ = ['_values', 'uid']

    def __init__(self, values: Iterable[int], uid: bool = True) -> None:
        super().__init__()
        self._values = tuple(dict.fromkeys(values))
        self.uid = uid

    @overload
    def __getitem__(self, index: int) -> int:
        ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[int]:
        ...

    def __getitem__(self, index: Union[int, slice]) \
            -> Union[int, Sequence[int]]:
        return self._values[index]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[int]:
        return iter(self._values)

    @property
    def sequence_set(self) -> str:
        """The values as an IMAP sequence set, using as few groups as
        possible, e.g. ``1:3,7``.

        See Also:
            `RFC 3501 9. <https://tools.ietf.org/html/rfc3501#section-9>`_

        """
        seqs = sorted(self._values)
        if not seqs:
            return ''
        groups: list[tuple[int, int]] = []
        low = high = seqs[0]
        for value in seqs[1:]:
            if value == high + 1:
                high = value
            else:
                groups.append((low, high))
                low = high = value
        groups.append((low, high))
        return ','.join(str(low) if low == high else f'{low}:{high}'
                        for low, high in groups)

    def __eq__(self, other) -> bool:
        if isinstance(other, Selection):
            return self.uid == other.uid and self._values == other._values
        elif isinstance(other, (list, tuple)):
            return list(self._values) == list(other)
        return super().__eq__(other)

    def __hash__(self) -> int:
        return hash((type(self), self._values, self.uid))

    def __str__(self) -> str:
        return self.sequence_set

    def __repr__(self) -> str:
        attr = 'uids' if self.uid else 'ids'
        return '<Selection %s=%r>' % (attr, list(self._values))


def _parse_number(arg: str) -> int:
    if not _num_pattern.fullmatch(arg):
        raise NotANumber(arg)
    return int(arg)


def _parse_range(arg: str, count: int) -> range:
    parts = arg.split(':')
    if len(parts) != 2 or not all(_num_pattern.fullmatch(part)
                                  for part in parts):
        raise InvalidRange(arg)
    low, high = int(parts[0]), int(parts[1])
    if low > high:
        raise InvertedRange(arg)
    elif low == 0 or high > count:
        raise ItemOutOfRange(arg)
    return range(low, high + 1)


def resolve_items(args: Sequence[str],
                  headers: Optional[Sequence[HeaderRecord]], *,
                  offset: int = 0, use_id: bool = False,
                  use_uid: bool = False,
                  default_all: bool = False) -> Selection:
    """Resolve message item arguments against the loaded headers.

    Args:
        args: The command arguments.
        headers: The loaded headers of the current mailbox.
        offset: The number of leading arguments that are not items.
        use_id: The arguments are message sequence numbers.
        use_uid: The arguments are message UIDs.
        default_all: Select every message if no items are given.

    Raises:
        :exc:`~imapadmin.exceptions.AdminError`

    """
    if use_id and use_uid:
        raise AmbiguousSelection()
    elif headers is None:
        raise HeadersNotLoaded()
    items = args[offset:]
    if not items:
        if not default_all:
            raise NoItemsSelected()
        return Selection(header.uid for header in headers)
    elif len(items) == 1 and items[0] == '*':
        return Selection(header.uid for header in headers)
    elif use_id or use_uid:
        return Selection((_parse_number(arg) for arg in items), uid=use_uid)
    count = len(headers)
    uids: list[int] = []
    for arg in items:
        if arg == '*':
            raise WildcardMisuse()
        elif ':' in arg:
            uids.extend(headers[num - 1].uid
                        for num in _parse_range(arg, count))
        else:
            num = _parse_number(arg)
            if num == 0 or num > count:
                raise ItemOutOfRange(arg)
            uids.append(headers[num - 1].uid)
    return Selection(uids)


def resolve_item(args: Sequence[str],
                 headers: Optional[Sequence[HeaderRecord]], *,
                 offset: int = 0, use_id: bool = False,
                 use_uid: bool = False) -> int:
    """Like :func:`resolve_items`, but exactly one message must be selected.

    Returns:
        The identifier of the selected message.

    Raises:
        :exc:`~imapadmin.exceptions.AdminError`

    """
    selection = resolve_items(args, headers, offset=offset,
                              use_id=use_id, use_uid=use_uid)
    if len(selection) != 1:
        raise UsageError('Only one item allowed')
    return selection[0]
