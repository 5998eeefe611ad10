"""Core worker operations: create_backup, remove_backup.

Both take a typed request, hold the repository guard for the whole
unlock/engine/parse sequence and return a typed result or raise.
"""

import logging
import math
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from ..__util__ import (
    IdentifierMismatch,
    InvalidField,
    MissingField,
    ResultNotFound,
    SourceNotFound,
)
from .parser import (
    SNAPSHOT_REMOVED,
    SNAPSHOT_SAVED,
    extract_processed_size_mb,
    extract_snapshot_id,
)
from .repository import ResticRepository

logger = logging.getLogger(__name__)

DEFAULT_BACKUP_TIMEOUT = 60


@dataclass(frozen=True)
class BackupRequest:
    """Request to snapshot ``<source root>/<backup_name>``."""

    backup_name: str
    timeout_seconds: int = DEFAULT_BACKUP_TIMEOUT


@dataclass(frozen=True)
class BackupResult:
    """Outcome of a successful backup.

    Attributes:
        data_id: Snapshot id as printed by restic, usable for a later removal
        data_size_mb: Best-effort size estimate in MiB, not a measured value
    """

    data_id: str
    data_size_mb: int

    def to_output(self) -> dict[str, Any]:
        return {"dataId": self.data_id, "dataSizeMB": self.data_size_mb}


@dataclass(frozen=True)
class RemoveRequest:
    """Request to forget snapshot ``data_id``; ``backup_name`` is only logged."""

    backup_name: str
    data_id: str


@dataclass(frozen=True)
class RemoveResult:
    """Successful removal. Carries nothing."""

    def to_output(self) -> dict[str, Any]:
        return {}


def _required_string(input_data: Mapping[str, Any], key: str) -> str:
    value = input_data.get(key)
    if value is None or value == "":
        raise MissingField(key)
    if not isinstance(value, str):
        raise InvalidField(key, f"expected a string, got {type(value).__name__}")
    return value


def _resolve_timeout(value: Any, default: int) -> int:
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value) or int(value) <= 0:
        return default
    return int(value)


def parse_backup_request(
    input_data: Mapping[str, Any], default_timeout: int = DEFAULT_BACKUP_TIMEOUT
) -> BackupRequest:
    """Build a BackupRequest from task input data.

    ``timeoutSeconds`` falls back to ``default_timeout`` when absent,
    non-numeric or not positive.

    Raises:
        MissingField: If backupName is absent or empty
        InvalidField: If backupName is not a plain relative directory name
    """
    backup_name = _required_string(input_data, "backupName")
    name_path = Path(backup_name)
    if not name_path.parts:
        raise InvalidField("backupName", "must name a directory below the source root")
    if name_path.is_absolute() or ".." in name_path.parts:
        raise InvalidField("backupName", "must be a path relative to the source root")

    return BackupRequest(
        backup_name=backup_name,
        timeout_seconds=_resolve_timeout(input_data.get("timeoutSeconds"), default_timeout),
    )


def parse_remove_request(input_data: Mapping[str, Any]) -> RemoveRequest:
    """Build a RemoveRequest from task input data.

    Raises:
        MissingField: If backupName or dataId is absent or empty
        InvalidField: If either is not a string
    """
    return RemoveRequest(
        backup_name=_required_string(input_data, "backupName"),
        data_id=_required_string(input_data, "dataId"),
    )


def estimate_tree_size_mb(path: Path) -> int:
    """Apparent size of the regular files below ``path``, rounded up to MiB."""
    total = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            try:
                st = os.lstat(os.path.join(root, name))
            except OSError:
                continue
            if stat.S_ISREG(st.st_mode):
                total += st.st_size
    return math.ceil(total / (1024 * 1024))


def create_backup(
    request: BackupRequest, repository: ResticRepository, source_root: Path | str
) -> BackupResult:
    """Snapshot the request's source directory into the repository.

    Args:
        request: Validated backup request
        repository: Repository to write to; its guard is held throughout
        source_root: Directory holding one subdirectory per backup name

    Returns:
        BackupResult with the new snapshot id

    Raises:
        SourceNotFound: If the source directory doesn't exist
        EngineExecutionError: If unlock or backup failed
        EngineTimeoutError: If the backup exceeded the request timeout
        ResultNotFound: If restic didn't confirm a saved snapshot
    """
    source_dir = Path(source_root) / request.backup_name
    logger.info("Creating backup. backupName=%s", request.backup_name)

    with repository.guard:
        repository.unlock()

        if not source_dir.is_dir():
            raise SourceNotFound(source_dir)

        logger.info("Calling restic (timeout %ds)...", request.timeout_seconds)
        outcome = repository.backup(source_dir, timeout=request.timeout_seconds)

        try:
            data_id = extract_snapshot_id(outcome.output, SNAPSHOT_SAVED)
        except ResultNotFound:
            logger.warning("Snapshot not created. result=%s", outcome.output)
            raise

        data_size_mb = extract_processed_size_mb(outcome.output)
        if data_size_mb is None:
            data_size_mb = estimate_tree_size_mb(source_dir)

    logger.info(
        "Backup finished. backupName=%s dataId=%s (~%d MB)",
        request.backup_name,
        data_id,
        data_size_mb,
    )
    return BackupResult(data_id=data_id, data_size_mb=data_size_mb)


def remove_backup(
    request: RemoveRequest,
    repository: ResticRepository,
    timeout: Optional[float] = None,
) -> RemoveResult:
    """Forget the snapshot ``request.data_id`` and confirm restic removed exactly it.

    Raises:
        EngineExecutionError: If unlock or forget failed
        EngineTimeoutError: If forget exceeded ``timeout``
        ResultNotFound: If restic didn't confirm a removal
        IdentifierMismatch: If restic reports removing a different snapshot
    """
    logger.info(
        "Deleting backup. backupName=%s dataId=%s", request.backup_name, request.data_id
    )

    with repository.guard:
        repository.unlock()
        outcome = repository.forget(request.data_id, timeout=timeout)

        try:
            removed_id = extract_snapshot_id(outcome.output, SNAPSHOT_REMOVED)
        except ResultNotFound:
            logger.warning("Snapshot removal not confirmed. result=%s", outcome.output)
            raise

        if removed_id != request.data_id:
            raise IdentifierMismatch(request.data_id, removed_id)

    logger.info("Delete dataId %s successful", request.data_id)
    return RemoveResult()
