from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from email.parser import BytesHeaderParser
from email.policy import default as default_policy
from functools import cached_property
from typing import Any, Final, Optional

from .exceptions import UsageError

__all__ = ['HeaderRecord', 'sort_fields', 'sort_headers']

_parser = BytesHeaderParser(policy=default_policy)


@dataclass(frozen=True)
class HeaderRecord:
    """One message of the open mailbox.

    Args:
        index: The message sequence number, only valid while the mailbox
            stays open.
        uid: The message UID.
        size: The message size in bytes.
        flags: The message flags, e.g. ``\\Seen``.
        literal: The raw message header bytes.

    """

    index: int
    uid: int
    size: int = 0
    flags: frozenset[str] = frozenset()
    literal: bytes = b''

    @cached_property
    def parsed(self) -> EmailMessage:
        """The message headers parsed from :attr:`.literal`."""
        msg = _parser.parsebytes(self.literal)
        assert isinstance(msg, EmailMessage)
        return msg

    def get_header(self, name: str) -> str:
        """Return the decoded header value, or an empty string.

        Args:
            name: The header name.

        """
        value = self.parsed.get(name)
        return '' if value is None else str(value)

    @property
    def date(self) -> Optional[datetime]:
        """The parsed ``Date`` header, if present and valid."""
        value = self.parsed.get('date')
        return getattr(value, 'datetime', None)

    @property
    def deleted(self) -> bool:
        return '\\Deleted' in self.flags


def _date_key(header: HeaderRecord) -> float:
    when = header.date
    return when.timestamp() if when is not None else 0.0


def _text_key(name: str) -> Callable[[HeaderRecord], Any]:
    return lambda header: header.get_header(name).lower()


#: The fields that :func:`sort_headers` accepts.
sort_fields: Final[dict[str, Callable[[HeaderRecord], Any]]] = {
    'size': lambda header: header.size,
    'flags': lambda header: ' '.join(sorted(header.flags)),
    'id': lambda header: header.index,
    'uid': lambda header: header.uid,
    'to': _text_key('to'),
    'from': _text_key('from'),
    'subject': _text_key('subject'),
    'date': _date_key}


def sort_headers(headers: Iterable[HeaderRecord], field: Optional[str],
                 reverse: bool = False) -> Sequence[HeaderRecord]:
    """Sort the message headers by one of the :data:`sort_fields`.

    Args:
        headers: The message headers.
        field: The sort field name, or None to keep the order.
        reverse: Sort in descending order.

    Raises:
        :exc:`~imapadmin.exceptions.UsageError`

    """
    if field is None:
        ret = list(headers)
        if reverse:
            ret.reverse()
        return ret
    try:
        key = sort_fields[field.lower()]
    except KeyError as exc:
        raise UsageError(f'Invalid sort field: {field}') from exc
    return sorted(headers, key=key, reverse=reverse)
