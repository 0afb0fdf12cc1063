from __future__ import annotations

from argparse import ArgumentParser, Namespace
from collections.abc import Sequence
from typing import Any, Final, Optional, TypeVar

__all__ = ['ConfigT', 'AdminConfig']

#: Type variable with an upper bound of :class:`AdminConfig`.
ConfigT = TypeVar('ConfigT', bound='AdminConfig')


class AdminConfig:
    """Configurable settings that control how the administration session
    caches server state and which server extensions it uses.

    Args:
        args: The command-line arguments.
        caching: False to re-fetch all server state for every command.
        lifetime: Seconds after which cached state expires, zero to keep it
            until it is invalidated.
        enable_rights: Use the ``ACL`` extension, if the server supports it.
        enable_quota: Use the ``QUOTA`` extension, if the server supports it.
        enable_namespaces: Use the ``NAMESPACE`` extension, if the server
            supports it.
        default_delimiter: The hierarchy delimiter to assume when the server
            reports no namespaces.
        debug: If true, log the cache activity.
        extra: Additional keywords used for special circumstances.

    Attributes:
        args: The command-line arguments.

    """

    def __init__(self, args: Optional[Namespace] = None, *,
                 caching: bool = True,
                 lifetime: float = 0.0,
                 enable_rights: bool = True,
                 enable_quota: bool = True,
                 enable_namespaces: bool = True,
                 default_delimiter: str = '.',
                 debug: bool = False,
                 **extra: Any) -> None:
        super().__init__()
        if lifetime < 0:
            raise ValueError(lifetime)
        self.args = args if args is not None else Namespace()
        self.caching: Final = caching
        self.lifetime: Final = lifetime
        self.enable_rights: Final = enable_rights
        self.enable_quota: Final = enable_quota
        self.enable_namespaces: Final = enable_namespaces
        self.default_delimiter: Final = default_delimiter
        self.debug: Final = debug
        self.extra: Final = extra

    @classmethod
    def add_arguments(cls, parser: ArgumentParser) -> None:
        """Add the command-line arguments that are parsed by
        :meth:`.from_args`.

        Args:
            parser: The argument parser.

        """
        group = parser.add_argument_group('cache arguments')
        group.add_argument('--no-cache', dest='caching',
                           action='store_false',
                           help='fetch server state for every command')
        group.add_argument('--lifetime', metavar='SEC', type=float,
                           default=0.0,
                           help='seconds until cached state expires')
        group.add_argument('--no-rights', dest='enable_rights',
                           action='store_false',
                           help='do not use the ACL extension')
        group.add_argument('--no-quota', dest='enable_quota',
                           action='store_false',
                           help='do not use the QUOTA extension')
        group.add_argument('--no-namespaces', dest='enable_namespaces',
                           action='store_false',
                           help='do not use the NAMESPACE extension')
        group.add_argument('--delimiter', dest='default_delimiter',
                           metavar='CHAR', default='.',
                           help='hierarchy delimiter without namespaces')

    @classmethod
    def parse_args(cls, args: Namespace) -> dict[str, Any]:
        """Build the keyword arguments of the constructor from the parsed
        command-line arguments.

        Args:
            args: The command-line arguments.

        """
        return {'caching': getattr(args, 'caching', True),
                'lifetime': getattr(args, 'lifetime', 0.0),
                'enable_rights': getattr(args, 'enable_rights', True),
                'enable_quota': getattr(args, 'enable_quota', True),
                'enable_namespaces': getattr(args, 'enable_namespaces', True),
                'default_delimiter': getattr(args, 'default_delimiter', '.'),
                'debug': getattr(args, 'debug', False)}

    @classmethod
    def from_args(cls: type[ConfigT], args: Namespace,
                  **overrides: Any) -> ConfigT:
        """Build and return a new configuration object using command-line
        arguments.

        Args:
            args: The command-line arguments.
            overrides: Override any of the resulting keyword arguments.

        """
        kwargs = cls.parse_args(args)
        kwargs.update(overrides)
        return cls(args, **kwargs)

    @classmethod
    def from_argv(cls: type[ConfigT], argv: Sequence[str],
                  **overrides: Any) -> ConfigT:
        """Build and return a new configuration object from a list of
        command-line arguments.

        Args:
            argv: The command-line arguments, without the program name.
            overrides: Override any of the resulting keyword arguments.

        """
        parser = ArgumentParser(add_help=False)
        cls.add_arguments(parser)
        return cls.from_args(parser.parse_args(argv), **overrides)
