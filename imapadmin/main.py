"""Administration shell for IMAP mailboxes, users, quota and access rights."""

from __future__ import annotations

import logging
import logging.config
import sys
from argparse import ArgumentParser, FileType, Namespace
from collections.abc import Callable, Iterable
from typing import TextIO

from . import __version__
from .backend.dict import DictServer
from .commands import CommandRegistry
from .config import AdminConfig
from .session import SessionContext

__all__ = ['main']

_log = logging.getLogger(__name__)


def main() -> int:
    parser = ArgumentParser(description=__doc__)
    parser.add_argument('--debug', action='store_true',
                        help='increase printed output for debugging')
    parser.add_argument('--version', action='version',
                        version='%(prog)s ' + __version__)
    parser.add_argument('--logging-cfg', metavar='PATH',
                        help='config file for logging')
    parser.add_argument('--outfile', metavar='PATH',
                        type=FileType('w'), default=sys.stdout,
                        help='the output file (default: stdout)')
    parser.add_argument('--user', metavar='NAME', default='admin',
                        help='the login user of the demo server')
    parser.add_argument('--yes', action='store_true',
                        help='answer yes to every confirmation')
    parser.add_argument('commands', nargs='*', metavar='COMMAND',
                        help='commands to run, read from stdin if omitted')
    AdminConfig.add_arguments(parser)
    args = parser.parse_args()

    if args.logging_cfg:
        logging.config.fileConfig(args.logging_cfg)
    else:
        logging.basicConfig(level=logging.WARNING)
    if args.debug:
        logging.getLogger(__package__).setLevel(logging.DEBUG)

    config = AdminConfig.from_args(args)
    return run(args, config)


def _ask(outfile: TextIO, always: bool) -> Callable[[str], bool]:
    def confirm(prompt: str) -> bool:
        if always:
            return True
        elif not sys.stdin.isatty():
            _log.warning('%s: declined, stdin is not a terminal', prompt)
            return False
        print(f'{prompt} [y/N]? ', end='', file=outfile, flush=True)
        return sys.stdin.readline().strip().lower() in ('y', 'yes')
    return confirm


def _lines(args: Namespace) -> Iterable[str]:
    if args.commands:
        return args.commands
    return sys.stdin


def run(args: Namespace, config: AdminConfig) -> int:
    protocol = DictServer.demo(args.user)
    registry = CommandRegistry()
    with SessionContext.start(protocol, config, outfile=args.outfile,
                              confirm=_ask(args.outfile, args.yes)) as ctx:
        success = registry.run(ctx, _lines(args))
    return 0 if success else 1
