"""Commands that operate on the messages of the current mailbox.

Messages are given as positional numbers of the last ``show`` output, as
``a:b`` ranges of them, or with the ``-id`` and ``-uid`` options as message
sequence numbers or UIDs.

"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, NamedTuple

from . import CommandSpec, Invocation
from ..cache import Info
from ..exceptions import NoCurrentMailbox, ProtocolError, UsageError
from ..flags import FlagOp, normalize_flags
from ..headers import HeaderRecord
from ..mailbox import MailboxRef
from ..selection import Selection, resolve_items

if TYPE_CHECKING:
    from ..session import SessionContext

__all__ = ['commands']

_log = logging.getLogger(__name__)

_item_pattern = re.compile(r'[0-9*]')


class _Column(NamedTuple):
    option: str
    title: str
    width: int
    right: bool
    value: Callable[[HeaderRecord], str]


def _format_date(header: HeaderRecord) -> str:
    when = header.date
    return when.strftime('%Y-%m-%d %H:%M') if when is not None else ''


_columns: Sequence[_Column] = [
    _Column('id', 'ID', 6, True, lambda header: str(header.index)),
    _Column('uid', 'UID', 6, True, lambda header: str(header.uid)),
    _Column('from', 'From', 20, False,
            lambda header: header.get_header('from')),
    _Column('to', 'To', 20, False, lambda header: header.get_header('to')),
    _Column('date', 'Date', 16, True, _format_date),
    _Column('size', 'kByte', 6, True,
            lambda header: str((header.size + 1023) // 1024)),
    _Column('flags', 'Flags', 32, False,
            lambda header: ' '.join(sorted(header.flags))),
    _Column('subject', 'Subject', 40, False,
            lambda header: header.get_header('subject'))]


def _cell(column: _Column, text: str) -> str:
    if len(text) > column.width:
        text = text[:column.width - 1] + '~'
    if column.right:
        return text.rjust(column.width)
    return text.ljust(column.width)


def _current(ctx: SessionContext) -> MailboxRef:
    current = ctx.cache.current
    if current is None:
        raise NoCurrentMailbox()
    return current


def _load_headers(ctx: SessionContext) -> Sequence[HeaderRecord]:
    _current(ctx)
    if not ctx.cache.load(Info.HEADERS):
        raise ProtocolError('Could not load the message headers')
    headers = ctx.cache.headers
    assert headers is not None
    return headers


def _writable(ctx: SessionContext) -> None:
    current = _current(ctx)
    if ctx.cache.current_readonly:
        if not ctx.confirm(f"Current mailbox '{current.name}' is readonly. "
                           'Change mode'):
            raise UsageError('Cancelled')
        _log.info('setting write mode for %r', current.name)
        if not ctx.cache.reopen_mailbox(False):
            raise ProtocolError(f'Could not reopen mailbox: {current.name}')


def _items(ctx: SessionContext, cmd: Invocation, offset: int = 0,
           default_all: bool = False) -> Selection:
    return resolve_items(cmd.args, _load_headers(ctx), offset=offset,
                         use_id=cmd.has('id'), use_uid=cmd.has('uid'),
                         default_all=default_all)


def _plural(count: int) -> str:
    return '' if count == 1 else 's'


def do_show(ctx: SessionContext, cmd: Invocation) -> bool:
    if cmd.args:
        ref = ctx.resolver.find_mailbox(cmd.arg(0))
        current = ctx.cache.current
        if current is None or current.name != ref.name:
            if not ctx.cache.open_mailbox(ref, True):
                ctx.error(f'Could not open mailbox: {ref.name}')
                return False
    brief = cmd.has('brief')
    wanted = {column.option for column in _columns if cmd.has(column.option)}
    if brief:
        wanted |= {'to', 'from', 'subject'}
    if not wanted:
        wanted = {'to', 'from', 'subject'}
    headers = _load_headers(ctx)
    if not headers:
        ctx.write('No mails')
        return True
    columns = [column for column in _columns if column.option in wanted]
    ctx.write('     # ' + ' '.join(_cell(column, column.title)
                                   for column in columns).rstrip())
    for num, header in enumerate(headers, 1):
        row = ' '.join(_cell(column, column.value(header))
                       for column in columns)
        ctx.write(f'{num:6d} {row}'.rstrip())
    return True


def do_sort(ctx: SessionContext, cmd: Invocation) -> bool:
    keys = [column.option for column in _columns if cmd.has(column.option)]
    revert = cmd.has('revert')
    if len(keys) > 1 or (not keys and not revert):
        raise UsageError('Exactly one sort key (and/or -revert) must be '
                         'specified')
    headers = _load_headers(ctx)
    field = keys[0] if keys else None
    ctx.cache.sort_headers(field, revert)
    ctx.write(f'Sorted {len(headers)} mail{_plural(len(headers))}')
    return True


def _flag_args(cmd: Invocation) -> tuple[list[str], int]:
    custom: list[str] = []
    if cmd.has('custom'):
        for arg in cmd.args:
            if _item_pattern.match(arg):
                break
            custom.append(arg)
    return custom, len(custom)


def _do_flags(ctx: SessionContext, cmd: Invocation, op: FlagOp) -> bool:
    custom, offset = _flag_args(cmd)
    flags = set(custom)
    if cmd.has('deleted'):
        flags.add('\\Deleted')
    if cmd.has('seen'):
        flags.add('\\Seen')
    if cmd.has('flagged'):
        flags.add('\\Flagged')
    if not flags:
        raise UsageError('No flags specified')
    _writable(ctx)
    items = _items(ctx, cmd, offset)
    ctx.cache.clear(Info.DETAILS | Info.HEADERS)
    ctx.protocol.store_flags(items, op, normalize_flags(flags))
    ctx.write(f'Updated {len(items)} mail{_plural(len(items))}')
    return True


def do_set(ctx: SessionContext, cmd: Invocation) -> bool:
    return _do_flags(ctx, cmd, FlagOp.ADD)


def do_unset(ctx: SessionContext, cmd: Invocation) -> bool:
    return _do_flags(ctx, cmd, FlagOp.DELETE)


def do_copy(ctx: SessionContext, cmd: Invocation) -> bool:
    destination = ctx.resolver.find_mailbox(cmd.arg(0))
    current = _current(ctx)
    items = _items(ctx, cmd, 1)
    ctx.write(f'Copying {len(items)} mail{_plural(len(items))} '
              f"to mailbox '{destination.name}'")
    if destination.name == current.name:
        ctx.cache.clear(Info.HEADERS)
    ctx.cache.clear(Info.DETAILS)
    ctx.protocol.copy_messages(items, destination.name)
    return True


def do_expunge(ctx: SessionContext, cmd: Invocation) -> bool:
    _writable(ctx)
    if cmd.args:
        items = _items(ctx, cmd)
        ctx.cache.clear(Info.DETAILS | Info.HEADERS)
        ctx.protocol.store_flags(items, FlagOp.ADD,
                                 frozenset({'\\Deleted'}))
    headers = _load_headers(ctx)
    deleted = sum(1 for header in headers if header.deleted)
    if not deleted:
        ctx.write('No messages are marked as deleted')
        return True
    name = _current(ctx).name
    if not ctx.confirm(f"Expunge {deleted} messages from mailbox '{name}'"):
        return False
    count = ctx.protocol.expunge()
    if count > 0:
        ctx.cache.clear(Info.HEADERS | Info.DETAILS)
    ctx.write(f'Expunged {count} mail{_plural(count)}')
    return True


_show_options = [column.option for column in _columns]

#: The message commands.
commands: Sequence[CommandSpec] = [
    CommandSpec.of('show', do_show, options=_show_options + ['brief'],
                   max_args=1, help='show the messages of a mailbox'),
    CommandSpec.of('sort', do_sort, options=_show_options + ['revert'],
                   help='sort the messages of the current mailbox'),
    CommandSpec.of('set', do_set,
                   options=['id', 'uid', 'deleted', 'seen', 'flagged',
                            'custom'],
                   min_args=1, max_args=None, help='set message flags'),
    CommandSpec.of('unset', do_unset,
                   options=['id', 'uid', 'deleted', 'seen', 'flagged',
                            'custom'],
                   min_args=1, max_args=None, help='remove message flags'),
    CommandSpec.of('copy', do_copy, options=['id', 'uid'], min_args=2,
                   max_args=None, help='copy messages to a mailbox'),
    CommandSpec.of('expunge', do_expunge, options=['id', 'uid'],
                   max_args=None, help='expunge deleted messages')]
