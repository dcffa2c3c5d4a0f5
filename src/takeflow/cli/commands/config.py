"""Config command for the takeflow CLI.

``validate`` checks that a file loads into a TakeflowConfig; ``show`` prints
the effective configuration as JSON, optionally with override files merged in.
"""
from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import Final

from takeflow.config.loader import load_config_with_overrides
from takeflow.config.models import TakeflowConfig
from takeflow.exceptions import ConfigError

__all__ = ["register_parser", "run"]

EXIT_SUCCESS: Final = 0
EXIT_ERROR: Final = 1
EXIT_VALIDATION_FAILED: Final = 2


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "config",
        help="Validate or print takeflow configuration.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  takeflow config validate takeflow.yaml\n"
            "  takeflow config show takeflow.yaml --override prod.yaml\n"
        ),
    )
    parser.set_defaults(handler=run)
    actions = parser.add_subparsers(dest="action", required=True)

    validate = actions.add_parser("validate", help="Check that a config file loads.")
    validate.add_argument("config_file", type=Path)

    show = actions.add_parser("show", help="Print the effective configuration as JSON.")
    show.add_argument("config_file", type=Path)
    show.add_argument(
        "--override",
        dest="overrides",
        type=Path,
        action="append",
        default=[],
        help="Config file merged over the base file; may be repeated.",
    )


def _show(config: TakeflowConfig) -> None:
    print(json.dumps(dataclasses.asdict(config), indent=2))


def run(args: argparse.Namespace) -> int:
    """Run ``config validate`` or ``config show``.

    Returns:
        0 on success, 1 when a file is missing, 2 when the config is invalid.
    """
    overrides: list[Path] = getattr(args, "overrides", [])
    missing = [path for path in (args.config_file, *overrides) if not path.is_file()]
    if missing:
        print(f"Error: Configuration file not found: {missing[0]}", file=sys.stderr)
        return EXIT_ERROR

    try:
        config = load_config_with_overrides(args.config_file, *overrides)
    except ConfigError as e:
        print(f"Validation failed: {e}", file=sys.stderr)
        return EXIT_VALIDATION_FAILED

    if args.action == "show":
        _show(config)
    else:
        print(f"Configuration file is valid: {args.config_file}")
    return EXIT_SUCCESS
