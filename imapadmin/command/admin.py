"""Commands that manage the cache, users, quota and access rights."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING, Optional

from . import CommandSpec, Invocation
from ..cache import Info
from ..exceptions import ArgumentCount, NotANumber, UsageError
from ..mailbox import MailboxRef
from ..namespace import NamespaceId

if TYPE_CHECKING:
    from ..session import SessionContext

__all__ = ['commands', 'rights_presets']

_log = logging.getLogger(__name__)

_num_pattern = re.compile(r'[0-9]+', re.ASCII)

#: The rights granted by the ``rights`` command options.
rights_presets: dict[str, str] = {
    'all': 'lrswipcda',
    'read': 'lrs',
    'write': 'lrswipcd'}


def _number(arg: str) -> int:
    if not _num_pattern.fullmatch(arg):
        raise NotANumber(arg)
    return int(arg)


def do_cache(ctx: SessionContext, cmd: Invocation) -> bool:
    if cmd.has('off') or cmd.has('clear'):
        ctx.cache.clear(Info.ALL)
        ctx.write('Cache cleared')
    if cmd.has('on'):
        ctx.cache.caching = True
    elif cmd.has('off'):
        ctx.cache.caching = False
    state = 'enabled' if ctx.cache.caching else 'disabled'
    ctx.write(f'Caching {state}')
    return True


def _list_users(ctx: SessionContext) -> None:
    users = ctx.cache.users
    assert users is not None
    listed = MailboxRef.of(users)
    ctx.resolver.listed_users = listed
    for num, record in enumerate(listed, 1):
        name, _ = ctx.namespaces.friendly_name(record.name)
        ctx.write(f'{num:4d}  {name}')
    if not len(listed):
        ctx.write('No visible users')


def _set_qualifier(ctx: SessionContext, arg: str, nsid: NamespaceId) -> bool:
    if arg in ('+', '-'):
        enabled = arg == '+'
        ctx.set_namespaces(enabled)
        ctx.write('Namespaces {}abled'.format('en' if enabled else 'dis'))
        return True
    resolved = ctx.resolver.resolve_qualifier(arg, nsid)
    qualifier = resolved.name
    if qualifier == ctx.namespaces.personal.prefix + 'INBOX':
        qualifier = 'INBOX'
    ctx.cache.qualifier = qualifier
    ctx.write(f"Qualifier now: '{ctx.cache.qualifier}'")
    return True


def _user_args(cmd: Invocation) -> tuple[Optional[str], int, int]:
    args = cmd.args
    if (cmd.has('remove') and len(args) > 1) or len(args) > 3:
        raise ArgumentCount('Extra arguments not allowed')
    user: Optional[str] = None
    storage = messages = 0
    if len(args) == 3:
        user = args[0]
        storage, messages = _number(args[1]), _number(args[2])
    elif len(args) == 2:
        if _num_pattern.fullmatch(args[0]):
            storage, messages = _number(args[0]), _number(args[1])
        else:
            user, storage = args[0], _number(args[1])
    elif len(args) == 1:
        user = args[0]
    return user, storage, messages


def _limit(value: int) -> Optional[int]:
    return value if value > 0 else None


def _manage_user(ctx: SessionContext, cmd: Invocation,
                 nsid: NamespaceId) -> bool:
    add = cmd.has('add')
    user, storage, messages = _user_args(cmd)
    if user is None:
        user = ctx.cache.qualifier
    if not user:
        raise ArgumentCount('Required user argument missing')
    if ctx.namespaces.has_delimiter(user, nsid):
        user = ctx.namespaces.trim_delimiter(user, nsid)
        if not user:
            raise UsageError('Invalid name')
        _log.warning('Name containing delimiter is used without '
                     'validation: %s', user)
    else:
        user = ctx.resolver.find_user(user, must_exist=not add)
    if cmd.has('remove'):
        if not ctx.confirm(f"Remove mailbox '{user}'"):
            return False
        ctx.protocol.delete_folder(user)
        ctx.cache.clear(Info.OTHERS | Info.SHARED)
        ctx.write(f'Mailbox deleted: {user}')
        return True
    prompt = f"Add new mailbox '{user}'" if add \
        else f"Set quota for '{user}'"
    if storage > 0:
        prompt += f', {storage} kByte storage limit'
    if messages > 0:
        prompt += f', max {messages} messages'
    if not ctx.confirm(prompt):
        return False
    if add:
        ctx.protocol.create_folder(user)
        ctx.cache.clear(Info.OTHERS | Info.SHARED)
        ctx.write(f'Mailbox created: {user}')
    if not add or storage > 0 or messages > 0:
        ctx.protocol.set_quota(user, _limit(storage), _limit(messages))
        ctx.cache.clear(Info.QUOTA)
        ctx.write(f"Quota limits for '{user}' updated")
    return True


def _do_user(ctx: SessionContext, cmd: Invocation,
             nsid: NamespaceId) -> bool:
    if not cmd.options and not cmd.args:
        ctx.cache.qualifier = None
        ctx.write('Qualifier cleared')
        return True
    what = Info.OTHERS if nsid == NamespaceId.OTHERS else Info.SHARED
    if not ctx.cache.load(what):
        return False
    if cmd.has('list'):
        _list_users(ctx)
        return True
    elif not cmd.options:
        if len(cmd.args) != 1:
            raise ArgumentCount('Needs a single user argument')
        return _set_qualifier(ctx, cmd.args[0], nsid)
    return _manage_user(ctx, cmd, nsid)


def do_user(ctx: SessionContext, cmd: Invocation) -> bool:
    return _do_user(ctx, cmd, NamespaceId.OTHERS)


def do_shared(ctx: SessionContext, cmd: Invocation) -> bool:
    return _do_user(ctx, cmd, NamespaceId.SHARED)


def _show_quota(ctx: SessionContext, ref: MailboxRef) -> bool:
    quota = ctx.extras.get_quota(ref.record)
    if quota is None:
        ctx.error('Quota is not available')
        return False
    elif not quota.has_root:
        ctx.write(f"Mailbox '{ref.name}' has no quota limits")
        return True
    ctx.write(f"Mailbox '{ref.name}' has quota root '{quota.root}'")
    if quota.storage_limit:
        ctx.write(f'Storage: {quota.storage_usage} of '
                  f'{quota.storage_limit} kByte used')
    if quota.message_limit:
        ctx.write(f'Messages: {quota.message_usage} of '
                  f'{quota.message_limit} used')
    return True


def do_quota(ctx: SessionContext, cmd: Invocation) -> bool:
    ref = ctx.resolver.find_mailbox(cmd.arg(0))
    if len(cmd.args) == 1:
        return _show_quota(ctx, ref)
    try:
        storage = _number(cmd.arg(1))
        messages = _number(cmd.arg(2, '0'))
    except NotANumber as exc:
        raise UsageError('Invalid quota argument') from exc
    if cmd.has('mbyte'):
        storage *= 1024
    ctx.protocol.set_quota(ref.name, _limit(storage), _limit(messages))
    ctx.write(f"Quota limits for '{ref.name}' updated")
    ref.record.get_extra().quota = None
    ctx.cache.clear(Info.QUOTA)
    return True


def _list_acl(ctx: SessionContext, refs: Sequence[MailboxRef]) -> bool:
    for ref in refs:
        name = ref.name
        for identifier, rights in sorted(ctx.protocol.fetch_acl(ref.name)
                                         .items()):
            if identifier.startswith('-'):
                ctx.write(f'{name:30s} {identifier[1:]:20s} {"":10s} '
                          f'{rights}')
            else:
                ctx.write(f'{name:30s} {identifier:20s} {rights}')
            name = ''
    return True


def do_rights(ctx: SessionContext, cmd: Invocation) -> bool:
    custom = cmd.has('custom')
    if custom and len(cmd.args) < 2:
        raise ArgumentCount('Missing argument(s)')
    modes = [mode for mode in ('all', 'read', 'write', 'none', 'custom')
             if cmd.has(mode)]
    if not modes:
        if cmd.args:
            ref = ctx.resolver.find_mailbox(cmd.arg(0))
            refs = list(ref.walk(ctx.namespaces)) \
                if cmd.has('recurse') else [ref]
        else:
            if not ctx.cache.load(Info.FOLDERS):
                return False
            folders = ctx.cache.folders
            assert folders is not None
            refs = [folders.at(i) for i in range(len(folders))]
        return _list_acl(ctx, refs)
    rights: Optional[str]
    if custom:
        rights = cmd.arg(1)
    elif cmd.has('none'):
        rights = None
    else:
        rights = rights_presets[modes[0]]
    if rights is not None and cmd.has('deny'):
        rights = '-' + rights
    ref = ctx.resolver.find_mailbox(cmd.arg(0))
    targets = list(ref.walk(ctx.namespaces)) \
        if cmd.has('recurse') else [ref]
    identifiers = list(cmd.args[2 if custom else 1:]) or [ctx.protocol.user]
    for identifier in identifiers:
        for target in targets:
            target.record.get_extra().rights = None
            if rights is None:
                ctx.protocol.delete_acl(target.name, identifier)
            else:
                ctx.protocol.set_acl(target.name, identifier, rights)
            _log.debug('rights of %r on %r: %r', identifier, target.name,
                       rights)
        ctx.write(f'Rights changed for {identifier}: {len(targets)} '
                  f'mailbox{"" if len(targets) == 1 else "es"}')
    ctx.cache.clear(Info.RIGHTS)
    return True


#: The administration commands.
commands: Sequence[CommandSpec] = [
    CommandSpec.of('cache', do_cache, options=['on', 'off', 'clear'],
                   exclusive=[['on', 'off']],
                   help='control the cache'),
    CommandSpec.of('user', do_user,
                   options=['add', 'remove', 'quota', 'list'],
                   exclusive=[['add', 'remove', 'quota', 'list']],
                   max_args=None, help='select or manage other users'),
    CommandSpec.of('shared', do_shared,
                   options=['add', 'remove', 'quota', 'list'],
                   exclusive=[['add', 'remove', 'quota', 'list']],
                   max_args=None, help='select or manage shared folders'),
    CommandSpec.of('quota', do_quota, options=['mbyte'], min_args=1,
                   max_args=3, help='show or change quota limits'),
    CommandSpec.of('rights', do_rights,
                   options=['all', 'read', 'write', 'none', 'custom',
                            'deny', 'recurse'],
                   exclusive=[['all', 'read', 'write', 'none', 'custom']],
                   max_args=None, help='show or change access rights')]
