"""Command-line interface for Artify (the ``artify`` console script)."""

import sys

from .commands import build_parser, main

__all__ = ["build_parser", "main", "run_cli"]


def run_cli() -> None:
    """Console script entry point; exits with the command's status."""
    sys.exit(main(sys.argv[1:]))
