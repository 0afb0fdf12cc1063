"""Defines convenience classes for working with IMAP flags.

See Also:
    `RFC 3501 2.3.2 <https://tools.ietf.org/html/rfc3501#section-2.3.2>`_

"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Set

__all__ = ['FlagOp', 'system_flags', 'normalize_flag', 'normalize_flags']

#: The system flags that may be given without the leading backslash.
system_flags: frozenset[str] = frozenset({
    '\\Seen', '\\Answered', '\\Flagged', '\\Deleted', '\\Draft'})

_by_name = {flag[1:].lower(): flag for flag in system_flags}


class FlagOp(enum.Enum):
    """Types of operations when updating flags."""

    #: All existing flags should be replaced with the flag set.
    REPLACE = enum.auto()

    #: The flag set should be added to the existing set.
    ADD = enum.auto()

    #: The flag set should be removed from the existing set.
    DELETE = enum.auto()

    @property
    def store_item(self) -> str:
        """The silent ``STORE`` data item name of the operation."""
        if self == FlagOp.ADD:
            return '+FLAGS.SILENT'
        elif self == FlagOp.DELETE:
            return '-FLAGS.SILENT'
        else:
            return 'FLAGS.SILENT'

    def apply(self, flag_set: Set[str], operand: Set[str]) -> frozenset[str]:
        """Apply the flag operation on the two sets, returning the result.

        Args:
            flag_set: The flag set being operated on.
            operand: The flags to use as the operand.

        """
        if self == FlagOp.ADD:
            return frozenset(flag_set | operand)
        elif self == FlagOp.DELETE:
            return frozenset(flag_set - operand)
        else:  # op == FlagOp.REPLACE
            return frozenset(operand)


def normalize_flag(flag: str) -> str:
    """Return the canonical spelling of a system flag, e.g. ``seen`` becomes
    ``\\Seen``. Keywords are returned unchanged.

    """
    return _by_name.get(flag.lstrip('\\').lower(), flag)


def normalize_flags(flags: Iterable[str]) -> frozenset[str]:
    return frozenset(normalize_flag(flag) for flag in flags)
