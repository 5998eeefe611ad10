"""Command-line interface for backtor-restic."""

from .worker import create_parser, execute_worker

__all__ = ["create_parser", "execute_worker"]
