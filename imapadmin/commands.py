from __future__ import annotations

import logging
import shlex
from collections.abc import Collection, Iterable, Mapping
from typing import TYPE_CHECKING

from .cache import Info
from .command import CommandSpec, Invocation
from .command import admin, items, mailbox
from .exceptions import AdminError, AmbiguousCommand, InvalidOption, \
    UnknownCommand, UsageError

if TYPE_CHECKING:
    from .session import SessionContext

__all__ = ['builtin_commands', 'CommandRegistry']

_log = logging.getLogger(__name__)

#: List of built-in commands. These commands are automatically registered by a
#: new :class:`CommandRegistry` object.
builtin_commands: Collection[CommandSpec] = [
    *mailbox.commands, *items.commands, *admin.commands]


def _expand(given: str, names: Iterable[str]) -> list[str]:
    names = list(names)
    if given in names:
        return [given]
    return sorted(name for name in names if name.startswith(given))


class CommandRegistry:
    """Manages the set of all known administration commands, and parses and
    runs command lines. Command and option names may be abbreviated to any
    unique prefix.

    """

    __slots__ = ['commands']

    def __init__(self) -> None:
        super().__init__()
        self.commands: dict[str, CommandSpec] = {}
        self._load_commands()

    def _load_commands(self) -> None:
        for spec in builtin_commands:
            self.register(spec)
        self.register(CommandSpec.of('help', self._help, max_args=1,
                                     help='describe the commands'))

    def register(self, spec: CommandSpec) -> None:
        """Register a new command.

        Args:
            spec: The new command declaration.

        """
        self.commands[spec.name] = spec

    def deregister(self, name: str) -> None:
        """Deregister a command by name. Does nothing if the command is not
        registered.

        Args:
            name: The command name.

        """
        self.commands.pop(name.lower(), None)

    def lookup(self, name: str) -> CommandSpec:
        """Find the command by its name or a unique prefix of it.

        Raises:
            :exc:`~imapadmin.exceptions.UsageError`

        """
        matches = _expand(name.lower(), self.commands)
        if not matches:
            raise UnknownCommand(name)
        elif len(matches) > 1:
            raise AmbiguousCommand(name, matches)
        return self.commands[matches[0]]

    def parse(self, line: str) -> tuple[CommandSpec, Invocation]:
        """Parse a command line into the command and its options and
        arguments. Options start with ``-`` and come before the arguments,
        and ``--`` ends the options.

        Args:
            line: The command line.

        Raises:
            :exc:`~imapadmin.exceptions.UsageError`

        """
        try:
            words = shlex.split(line)
        except ValueError as exc:
            raise UsageError(f'Invalid command line: {exc}') from exc
        if not words:
            raise UsageError('Command not given')
        spec = self.lookup(words[0])
        options: set[str] = set()
        rest = words[1:]
        while rest and rest[0].startswith('-') and len(rest[0]) > 1:
            word = rest.pop(0)
            if word == '--':
                break
            given = word.lstrip('-').lower()
            matches = _expand(given, spec.options)
            if not matches:
                raise InvalidOption(spec.name, given)
            elif len(matches) > 1:
                raise AmbiguousCommand('-' + given, matches)
            options.add(matches[0])
        invocation = Invocation(spec.name, frozenset(options), tuple(rest))
        spec.check(invocation)
        return spec, invocation

    def execute(self, ctx: SessionContext, line: str) -> bool:
        """Parse and run one command line. Failures are reported to the
        user through :meth:`~imapadmin.session.SessionContext.error`.

        Args:
            ctx: The session context.
            line: The command line.

        Returns:
            True if the command succeeded.

        """
        try:
            spec, invocation = self.parse(line)
            _log.debug('running %r', invocation)
            return spec.handler(ctx, invocation)
        except AdminError as exc:
            _log.debug('command failed: %r', line, exc_info=True)
            ctx.error(exc.message)
            return False
        finally:
            if not ctx.cache.caching:
                ctx.cache.clear(Info.ALL)

    def run(self, ctx: SessionContext, lines: Iterable[str]) -> bool:
        """Run every non-empty line that is not a ``#`` comment.

        Returns:
            True if all commands succeeded.

        """
        success = True
        for line in lines:
            line = line.strip()
            if line and not line.startswith('#'):
                success = self.execute(ctx, line) and success
        return success

    def _help(self, ctx: SessionContext, cmd: Invocation) -> bool:
        specs: Mapping[str, CommandSpec] = self.commands
        if cmd.args:
            spec = self.lookup(cmd.arg(0))
            specs = {spec.name: spec}
        for name, spec in sorted(specs.items()):
            options = ' '.join('-' + opt for opt in sorted(spec.options))
            ctx.write(f'{name:10s} {spec.help}')
            if options and cmd.args:
                ctx.write(f'{"":10s} options: {options}')
        return True
