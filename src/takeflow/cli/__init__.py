"""takeflow command line interface.

Each command lives in ``takeflow.cli.commands`` and contributes its own
subparser through ``register_parser``; the chosen subparser sets ``handler``.
"""
from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

from takeflow.cli.commands import config, serve, version
from takeflow.observability.logging import LOG_FORMAT_CONSOLE, configure_logging

_COMMANDS = (serve, config, version)


def _log_level(args: argparse.Namespace) -> int:
    if args.verbose:
        return logging.DEBUG
    if args.quiet:
        return logging.WARNING
    return logging.INFO


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="takeflow",
        description="Serve takes and manage takeflow configuration.",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level.")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Log warnings and errors only.")

    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")
    for command in _COMMANDS:
        command.register_parser(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Parse ``argv`` and run the selected command, returning its exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(LOG_FORMAT_CONSOLE, _log_level(args))
    result = args.handler(args)
    return result if isinstance(result, int) else 0


__all__ = ["build_parser", "main"]
