"""Version command: prints the installed takeflow and Python versions."""
from __future__ import annotations

import argparse
import platform
from importlib import metadata

__all__ = ["register_parser", "run"]


def _installed_version() -> str:
    try:
        return metadata.version("takeflow")
    except metadata.PackageNotFoundError:
        return "unknown"


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("version", help="Show the takeflow version.")
    parser.set_defaults(handler=run)


def run(_: argparse.Namespace) -> int:
    print(f"takeflow {_installed_version()} (Python {platform.python_version()})")
    return 0
