"""Core repository operations for backtor-restic.

Command execution, output parsing, the repository guard and the
backup/remove use cases built on them.
"""

from .guard import RepositoryGuard
from .operations import (
    BackupRequest,
    BackupResult,
    RemoveRequest,
    RemoveResult,
    create_backup,
    parse_backup_request,
    parse_remove_request,
    remove_backup,
)
from .repository import RepositoryHandle, RepositoryState, ResticRepository
from .runner import CommandOutcome, CommandRunner

__all__ = [
    "BackupRequest",
    "BackupResult",
    "CommandOutcome",
    "CommandRunner",
    "RemoveRequest",
    "RemoveResult",
    "RepositoryGuard",
    "RepositoryHandle",
    "RepositoryState",
    "ResticRepository",
    "create_backup",
    "parse_backup_request",
    "parse_remove_request",
    "remove_backup",
]
