"""Shared CLI utilities and argument parsers."""

import argparse
from typing import Optional


def add_verbosity_args(parser: argparse.ArgumentParser) -> None:
    """Add verbosity-related arguments to a parser."""
    group = parser.add_argument_group("Output options")
    group.add_argument(
        "--log-level",
        metavar="LEVEL",
        type=str.lower,
        choices=["debug", "info", "warning", "error"],
        help="debug, info, warning, error (default: info)",
    )
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )
    group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )


def get_log_level(args: argparse.Namespace) -> Optional[str]:
    """Determine log level from parsed arguments.

    Args:
        args: Parsed command line arguments

    Returns:
        Log level name (debug, info, warning, error), or None when the
        command line doesn't set one
    """
    if getattr(args, "debug", False):
        return "debug"
    elif getattr(args, "quiet", False):
        return "warning"
    elif getattr(args, "verbose", False):
        return "debug"
    else:
        return getattr(args, "log_level", None)
