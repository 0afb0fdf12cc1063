"""Commands that list and manage mailboxes."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from . import CommandSpec, Invocation
from ..cache import Info
from ..exceptions import NoCurrentMailbox, UsageError
from ..mailbox import MailboxRecord, MailboxRef

if TYPE_CHECKING:
    from ..session import SessionContext

__all__ = ['commands', 'format_folder']


def format_folder(ctx: SessionContext, num: int, record: MailboxRecord, *,
                  details: bool = False, rights: bool = False,
                  quota: bool = False) -> str:
    """Format one line of a folder listing.

    Args:
        ctx: The session context.
        num: The reference number of the line.
        record: The listed mailbox.
        details: Include the message counts and the subscription state.
        rights: Include the rights of the login user.
        quota: Include the storage usage and limit.

    """
    name, _ = ctx.namespaces.friendly_name(record.name)
    parts = [f'{num:4d}  {name}']
    if details:
        if record.has_details:
            parts.append(f'{record.messages} mails, {record.recent} recent,'
                         f' {record.unseen} unseen')
        if record.subscribed:
            parts.append('subscribed')
        if not record.selectable:
            parts.append('noselect')
    extra = record.extra
    if rights and extra is not None and extra.rights is not None:
        parts.append(f'rights={extra.rights}')
    if quota and extra is not None and extra.quota is not None \
            and extra.quota.has_root:
        parts.append(f'quota={extra.quota.storage_usage}'
                     f'/{extra.quota.storage_limit}kB')
    return '  '.join(parts)


def do_list(ctx: SessionContext, cmd: Invocation) -> bool:
    show_all = cmd.has('all')
    details = show_all or cmd.has('counts')
    rights = show_all or cmd.has('rights')
    quota = show_all or cmd.has('quota')
    if not (rights or quota):
        details = True
    what = Info.FOLDERS
    if details:
        what |= Info.DETAILS
    if rights:
        what |= Info.RIGHTS | Info.DETAILS
    if quota:
        what |= Info.QUOTA | Info.DETAILS
    ctx.cache.filter = cmd.arg(0)
    if not ctx.cache.load(what):
        return False
    folders = ctx.cache.folders
    assert folders is not None
    records: Sequence[MailboxRecord] = folders.snapshot
    if cmd.has('subscription'):
        records = [record for record in records if record.subscribed]
    listed = MailboxRef.of(records)
    ctx.resolver.listed_folders = listed
    for num, record in enumerate(listed, 1):
        ctx.write(format_folder(ctx, num, record, details=details,
                                rights=rights, quota=quota))
    if not len(listed):
        ctx.write('No mailboxes found')
    return True


def do_open(ctx: SessionContext, cmd: Invocation) -> bool:
    read, write = cmd.has('read'), cmd.has('write')
    if not ctx.cache.load(Info.DETAILS):
        return False
    ref = ctx.resolver.find_mailbox(cmd.arg(0))
    current = ctx.cache.current
    action = 'current'
    if current is None or current.name != ref.name:
        action = 'opened'
    elif (read and not current.readonly) or (write and current.readonly):
        action = 'reopened'
    if action != 'current':
        ctx.cache.close_mailbox()
        if not ctx.cache.open_mailbox(ref, not write):
            ctx.error(f'Could not open mailbox: {ref.name}')
            return False
    mode = 'Readonly' if ctx.cache.current_readonly else 'Writable'
    ctx.write(f'Mailbox {action}: {ref.name} '
              f'({ref.record.messages or 0} mails {mode})')
    return True


def do_close(ctx: SessionContext, cmd: Invocation) -> bool:
    current = ctx.cache.current
    if not ctx.cache.close_mailbox():
        ctx.error(NoCurrentMailbox().message)
    else:
        assert current is not None
        ctx.write(f'Mailbox closed: {current.name}')
    return True


def do_create(ctx: SessionContext, cmd: Invocation) -> bool:
    names = ctx.resolver.new_mailbox_names(cmd.args)
    for name in names:
        ctx.protocol.create_folder(name)
        ctx.write(f'Mailbox created: {name}')
        nsid = ctx.namespaces.find(name)
        delimiter = ctx.namespaces[nsid].delimiter \
            if nsid is not None else ctx.namespaces.delimiter
        ctx.cache.folder_append(name, delimiter)
        ctx.cache.clear(Info.QUOTA | Info.RIGHTS)
    return True


def _delete_one(ctx: SessionContext, ref: MailboxRef) -> None:
    current = ctx.cache.current
    if current is not None and current.name == ref.name:
        ctx.cache.close_mailbox()
    ctx.protocol.delete_folder(ref.name)
    ctx.write(f'Mailbox deleted: {ref.name}')
    ctx.cache.folder_delete(ref)


def do_delete(ctx: SessionContext, cmd: Invocation) -> bool:
    recurse = cmd.has('recurse')
    if not ctx.cache.load(Info.DETAILS):
        return False
    refs = ctx.resolver.find_mailboxes(cmd.args)
    targets: list[list[MailboxRef]] = []
    non_empty: list[str] = []
    for ref in refs:
        tree = list(ref.walk(ctx.namespaces)) if recurse else [ref]
        targets.append(tree)
        non_empty.extend(sub.name for sub in tree if sub.record.messages)
    if len(non_empty) > 1:
        if not ctx.confirm(f'Do you want to delete {len(non_empty)} '
                           'non empty mailboxes'):
            return False
    elif non_empty:
        if not ctx.confirm(f"Mailbox '{non_empty[0]}' is not empty. "
                           'Continue'):
            return False
    deleted: set[str] = set()
    for tree in targets:
        # inferiors first, the root last
        for sub in reversed(tree):
            if sub.name not in deleted:
                _delete_one(ctx, sub)
                deleted.add(sub.name)
    return True


def do_rename(ctx: SessionContext, cmd: Invocation) -> bool:
    ref = ctx.resolver.find_mailbox(cmd.arg(0))
    new_name = ctx.resolver.new_mailbox_name(cmd.arg(1))
    if ref.name == new_name:
        raise UsageError(f'Both names are equal: {new_name}')
    current = ctx.cache.current
    if current is not None and current.name == ref.name:
        ctx.cache.close_mailbox()
    ctx.protocol.rename_folder(ref.name, new_name)
    ctx.cache.clear(Info.FOLDERS)
    ctx.write(f"Renamed '{ref.name}' to '{new_name}'")
    return True


def do_subscribe(ctx: SessionContext, cmd: Invocation) -> bool:
    add, remove = cmd.has('add'), cmd.has('remove')
    if not (add or remove):
        if len(cmd.args) > 1:
            raise UsageError('List mode, only one filter argument allowed')
        listing = Invocation('list', frozenset({'subscription'}), cmd.args)
        return do_list(ctx, listing)
    if not ctx.cache.load(Info.DETAILS):
        return False
    action = 'subscribed' if add else 'unsubscribed'
    for ref in ctx.resolver.find_mailboxes(cmd.args):
        ctx.protocol.subscribe(ref.name, add)
        ctx.cache.set_subscribed(ref.name, add)
        ctx.write(f'Mailbox {action}: {ref.name}')
    return True


#: The mailbox commands.
commands: Sequence[CommandSpec] = [
    CommandSpec.of('list', do_list,
                   options=['all', 'counts', 'rights', 'quota',
                            'subscription'],
                   max_args=1, help='list the mailboxes'),
    CommandSpec.of('open', do_open, options=['read', 'write'],
                   exclusive=[['read', 'write']], max_args=1,
                   help='open a mailbox'),
    CommandSpec.of('close', do_close, help='close the current mailbox'),
    CommandSpec.of('create', do_create, min_args=1, max_args=None,
                   help='create mailboxes'),
    CommandSpec.of('delete', do_delete, options=['recurse'], min_args=1,
                   max_args=None, help='delete mailboxes'),
    CommandSpec.of('rename', do_rename, min_args=2, max_args=2,
                   help='rename a mailbox'),
    CommandSpec.of('subscribe', do_subscribe, options=['add', 'remove'],
                   exclusive=[['add', 'remove']], max_args=None,
                   help='list or change subscriptions')]
