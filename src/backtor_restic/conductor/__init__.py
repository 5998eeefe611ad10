"""Conductor integration: REST client, polling worker and task handlers."""

from .client import ConductorClient, ConductorError, TaskResult, TaskStatus
from .tasks import BACKUP_TASK, REMOVE_TASK, build_handlers
from .worker import TaskWorker, execute

__all__ = [
    "BACKUP_TASK",
    "REMOVE_TASK",
    "ConductorClient",
    "ConductorError",
    "TaskResult",
    "TaskStatus",
    "TaskWorker",
    "build_handlers",
    "execute",
]
