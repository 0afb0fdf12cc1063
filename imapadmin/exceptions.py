"""Module containing the general exceptions that may be used by imapadmin.

Every exception derives from :class:`AdminError`, which carries the
message that is shown to the user when a command fails. The intermediate
classes group the failures by kind, so that callers may react to a whole
category without enumerating the individual errors.

"""

from __future__ import annotations

from typing import Optional

__all__ = ['AdminError', 'NotFoundError', 'AmbiguousError',
           'PreconditionError', 'UsageError', 'ProtocolError',
           'MailboxNotFound', 'UserNotFound', 'ItemOutOfRange',
           'NameNotUnique', 'WildcardMisuse', 'AmbiguousSelection',
           'AmbiguousCommand', 'NoCurrentMailbox', 'HeadersNotLoaded',
           'NotListed', 'NotANumber', 'InvalidRange', 'InvertedRange',
           'NoItemsSelected', 'UnknownCommand', 'InvalidOption',
           'ArgumentCount', 'MailboxExists', 'UserExists', 'DuplicateName']


class AdminError(Exception):
    """The base exception for all errors that are reported back to the user
    of the administration tool.

    Args:
        msg: The user-facing message.

    """

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self.message = msg


class NotFoundError(AdminError):
    """A name, id, or uid did not resolve against the loaded data."""
    pass


class AmbiguousError(AdminError):
    """An argument matched more than one entry, or a wildcard was used where
    it is not allowed.

    """
    pass


class PreconditionError(AdminError):
    """An operation required state that has not been loaded or established,
    e.g. an open mailbox.

    """
    pass


class UsageError(AdminError):
    """The arguments given to a command were malformed."""
    pass


class ProtocolError(AdminError):
    """The protocol collaborator failed to fetch or mutate server state.

    Args:
        msg: The failure reason, usually the server response text.
        command: The protocol command that failed, if known.

    """

    def __init__(self, msg: str, command: Optional[str] = None) -> None:
        if command is not None:
            msg = f'{command} failed: {msg}'
        super().__init__(msg)
        self.command = command


class MailboxNotFound(NotFoundError):
    """The mailbox name or reference could not be found.

    Args:
        name: The name that was searched for.

    """

    def __init__(self, name: str) -> None:
        super().__init__(f'Folder not found: {name}')
        self.name = name


class UserNotFound(NotFoundError):
    """The user name or reference could not be found.

    Args:
        name: The name that was searched for.

    """

    def __init__(self, name: str) -> None:
        super().__init__(f'User not found: {name}')
        self.name = name


class ItemOutOfRange(NotFoundError):
    """A positional message number or range was outside the loaded headers.

    Args:
        arg: The offending argument.

    """

    def __init__(self, arg: str) -> None:
        super().__init__(f'Number out of range: {arg}')
        self.arg = arg


class NameNotUnique(AmbiguousError):
    """A name fragment matched more than one entry.

    Args:
        name: The name fragment.
        kind: What was being searched, e.g. ``'Folder'`` or ``'User'``.

    """

    def __init__(self, name: str, kind: str = 'Folder') -> None:
        super().__init__(f'{kind} name is not unique: {name}')
        self.name = name


class WildcardMisuse(AmbiguousError):
    """The ``*`` wildcard was given where only explicit items are allowed."""

    def __init__(self) -> None:
        super().__init__("Incorrect use of '*'")


class AmbiguousSelection(AmbiguousError):
    """Selection by message id and by message uid were both requested."""

    def __init__(self) -> None:
        super().__init__('Cannot select by id and uid at the same time')


class AmbiguousCommand(AmbiguousError):
    """A command or option prefix matched more than one name.

    Args:
        name: The given prefix.
        choices: The names that matched the prefix.

    """

    def __init__(self, name: str, choices: list[str]) -> None:
        super().__init__(f'Ambiguous: {name} ({", ".join(choices)})')
        self.name = name
        self.choices = choices


class NoCurrentMailbox(PreconditionError):
    """The operation needs an open mailbox, but none is open."""

    def __init__(self) -> None:
        super().__init__('No current mailbox')


class HeadersNotLoaded(PreconditionError):
    """The message headers of the current mailbox have not been loaded."""

    def __init__(self) -> None:
        super().__init__('Message headers are not loaded')


class NotListed(PreconditionError):
    """A numeric reference was used before anything was listed.

    Args:
        command: The command that produces the listing.

    """

    def __init__(self, command: str = 'list') -> None:
        super().__init__(f"Please run '{command}' before using "
                         'numeric references')


class NotANumber(UsageError):
    """The argument had to be an unsigned number.

    Args:
        arg: The offending argument.

    """

    def __init__(self, arg: str) -> None:
        super().__init__(f'Not a number: {arg!r}')
        self.arg = arg


class InvalidRange(UsageError):
    """The argument contained a ``:`` but was not a valid ``a:b`` range.

    Args:
        arg: The offending argument.

    """

    def __init__(self, arg: str) -> None:
        super().__init__(f'Invalid range: {arg!r}')
        self.arg = arg


class InvertedRange(UsageError):
    """The start of an ``a:b`` range was greater than its end.

    Args:
        arg: The offending argument.

    """

    def __init__(self, arg: str) -> None:
        super().__init__(f'Range start is greater than end: {arg}')
        self.arg = arg


class NoItemsSelected(UsageError):
    """A command that operates on messages was given no message items."""

    def __init__(self) -> None:
        super().__init__('No mail items selected')


class UnknownCommand(UsageError):
    """The command name is not registered.

    Args:
        name: The given command name.

    """

    def __init__(self, name: str) -> None:
        super().__init__(f'Unknown command: {name}')
        self.name = name


class InvalidOption(UsageError):
    """The option is not declared by the command.

    Args:
        command: The command name.
        option: The given option.

    """

    def __init__(self, command: str, option: str) -> None:
        super().__init__(f'Invalid option for {command}: -{option}')
        self.option = option


class ArgumentCount(UsageError):
    """The command received too few or too many non-option arguments."""
    pass


class MailboxExists(UsageError):
    """A mailbox that is about to be created already exists.

    Args:
        name: The mailbox name.

    """

    def __init__(self, name: str) -> None:
        super().__init__(f'Folder already exists: {name}')
        self.name = name


class UserExists(UsageError):
    """A user that is about to be created already exists.

    Args:
        name: The user name.

    """

    def __init__(self, name: str) -> None:
        super().__init__(f'User already exists: {name}')
        self.name = name


class DuplicateName(UsageError):
    """The same mailbox was given more than once.

    Args:
        name: The duplicated mailbox name.

    """

    def __init__(self, name: str) -> None:
        super().__init__(f'Duplicated mailbox name: {name}')
        self.name = name
