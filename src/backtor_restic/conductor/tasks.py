"""Task handlers mapping Conductor input data to the core operations."""

import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from ..core.operations import (
    DEFAULT_BACKUP_TIMEOUT,
    create_backup,
    parse_backup_request,
    parse_remove_request,
    remove_backup,
)
from ..core.repository import ResticRepository
from .worker import TaskHandler

logger = logging.getLogger(__name__)

BACKUP_TASK = "backup"
REMOVE_TASK = "remove"


def build_handlers(
    repository: ResticRepository,
    source_root: Path | str,
    default_timeout: int = DEFAULT_BACKUP_TIMEOUT,
    remove_timeout: Optional[float] = None,
) -> dict[str, TaskHandler]:
    """Return the handler for each task type served by this worker."""

    def backup_task(input_data: Mapping[str, Any]) -> dict[str, Any]:
        logger.debug("Executing backupTask")
        request = parse_backup_request(input_data, default_timeout=default_timeout)
        return create_backup(request, repository, source_root).to_output()

    def remove_task(input_data: Mapping[str, Any]) -> dict[str, Any]:
        logger.debug("Executing removeTask")
        request = parse_remove_request(input_data)
        return remove_backup(request, repository, timeout=remove_timeout).to_output()

    return {BACKUP_TASK: backup_task, REMOVE_TASK: remove_task}
