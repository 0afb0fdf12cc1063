"""Base definitions for administration commands.

A command is declared by a :class:`CommandSpec`, which names the options the
command accepts and the number of non-option arguments it needs, and points
at the handler function that runs it.

"""

from __future__ import annotations

from collections.abc import Callable, Collection, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from ..exceptions import ArgumentCount, UsageError

if TYPE_CHECKING:
    from ..session import SessionContext

__all__ = ['Handler', 'Invocation', 'CommandSpec']

#: The handler of a command, returning False if the command failed.
Handler = Callable[['SessionContext', 'Invocation'], bool]


@dataclass(frozen=True)
class Invocation:
    """A parsed command line.

    Args:
        command: The full command name.
        options: The full names of the given options.
        args: The non-option arguments.

    """

    command: str
    options: frozenset[str] = frozenset()
    args: Sequence[str] = ()

    def has(self, option: str) -> bool:
        """True if the option was given."""
        return option in self.options

    def arg(self, index: int, default: str = '') -> str:
        """Return a non-option argument, or the default if not given."""
        if index < len(self.args):
            return self.args[index]
        return default


@dataclass(frozen=True)
class CommandSpec:
    """Declares a command.

    Args:
        name: The command name.
        handler: The function that runs the command.
        options: The option names that the command accepts.
        min_args: The minimum number of non-option arguments.
        max_args: The maximum number of non-option arguments, or None for
            no limit.
        exclusive: Groups of options of which at most one may be given.
        help: A one-line description of the command.

    """

    name: str
    handler: Handler = field(compare=False)
    options: frozenset[str] = frozenset()
    min_args: int = 0
    max_args: Optional[int] = 0
    exclusive: Sequence[frozenset[str]] = ()
    help: str = ''

    @classmethod
    def of(cls, name: str, handler: Handler, *,
           options: Collection[str] = (),
           exclusive: Collection[Collection[str]] = (),
           **kwargs) -> CommandSpec:
        """Build a command spec from plain collections."""
        return cls(name, handler, frozenset(options),
                   exclusive=tuple(frozenset(group) for group in exclusive),
                   **kwargs)

    def check(self, invocation: Invocation) -> None:
        """Check the parsed options and arguments against the declaration.

        Raises:
            :exc:`~imapadmin.exceptions.UsageError`

        """
        for group in self.exclusive:
            given = sorted(group & invocation.options)
            if len(given) > 1:
                raise UsageError('Options cannot be combined: '
                                 + ' '.join('-' + opt for opt in given))
        self.check_count(invocation.args)

    def check_count(self, args: Sequence[str]) -> None:
        if self.max_args == 0 and args:
            raise ArgumentCount('No non-option arguments permitted')
        elif len(args) < self.min_args or \
                (self.max_args is not None and len(args) > self.max_args):
            raise ArgumentCount('Invalid non-option argument count')
