"""Serve command for the takeflow CLI.

Imports a take given as ``module:attribute`` and serves it over HTTP with
uvicorn, wrapped in the fallback chain described by the configuration.
"""
from __future__ import annotations

import argparse
import importlib
import logging
import sys
from typing import Final

import uvicorn

from takeflow.config.loader import load_config
from takeflow.exceptions import ConfigError
from takeflow.observability.logging import configure_logging
from takeflow.server.starlette_app import TakeApp
from takeflow.take import Take

__all__ = ["load_take", "register_parser", "run"]

EXIT_SUCCESS: Final = 0
EXIT_ERROR: Final = 1

logger = logging.getLogger(__name__)


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "serve",
        help="Serve a take over HTTP.",
        description="Serve a take, given as module:attribute, with uvicorn.",
    )
    parser.add_argument("target", help="Take to serve, e.g. 'myapp.site:take'.")
    parser.add_argument("--config", type=str, default=None, help="Path to a YAML config file.")
    parser.add_argument("--host", type=str, default=None, help="Override server.host.")
    parser.add_argument("--port", type=int, default=None, help="Override server.port.")
    parser.set_defaults(handler=run)


def load_take(target: str) -> Take:
    """Import ``module:attribute`` and return it as a take.

    A callable attribute that is not a take is called without arguments and
    must return one.
    """
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Target must look like 'module:attribute', got {target!r}")
    module = importlib.import_module(module_name)
    obj = module
    for part in attribute.split("."):
        obj = getattr(obj, part)
    if not isinstance(obj, Take) and callable(obj):
        obj = obj()
    if not isinstance(obj, Take):
        raise TypeError(f"{target} is not a Take")
    return obj


def _log_level(args: argparse.Namespace, configured: str) -> str:
    """Global -v/-q flags win over the configured level."""
    if getattr(args, "verbose", False):
        return "DEBUG"
    if getattr(args, "quiet", False):
        return "WARNING"
    return configured


def run(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
        take = load_take(args.target)
    except (ConfigError, ImportError, AttributeError, TypeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    configure_logging(config.logging.format, _log_level(args, config.logging.level))
    host = args.host or config.server.host
    port = args.port or config.server.port
    logger.info("Serving %s on %s:%d", args.target, host, port)
    uvicorn.run(TakeApp(take, config=config).build(), host=host, port=port, log_config=None)
    return EXIT_SUCCESS
