"""Minimal Conductor REST client: poll, ack and update tasks."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import httpx

from ..__util__ import BackupWorkerError

logger = logging.getLogger(__name__)


class ConductorError(BackupWorkerError):
    """Conductor could not be reached or rejected a request."""


class TaskStatus(str, Enum):
    """Terminal task states a worker may report."""

    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    FAILED_WITH_TERMINAL_ERROR = "FAILED_WITH_TERMINAL_ERROR"


@dataclass
class TaskResult:
    """Status update for one polled task."""

    task_id: str
    workflow_instance_id: str
    worker_id: str
    status: TaskStatus
    output_data: dict[str, Any] = field(default_factory=dict)
    reason_for_incompletion: Optional[str] = None

    def to_json(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "taskId": self.task_id,
            "workflowInstanceId": self.workflow_instance_id,
            "workerId": self.worker_id,
            "status": self.status.value,
            "outputData": self.output_data,
        }
        if self.reason_for_incompletion:
            body["reasonForIncompletion"] = self.reason_for_incompletion
        return body


class ConductorClient:
    """Client for the Conductor task API."""

    def __init__(
        self,
        base_url: str,
        http: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ) -> None:
        """
        Args:
            base_url: Conductor API root, e.g. http://conductor:8080/api
            http: Preconfigured httpx client (tests pass one with a mock transport)
            timeout: Per-request timeout in seconds when creating the client
        """
        self.base_url = base_url.rstrip("/")
        self.http = http or httpx.Client(timeout=httpx.Timeout(timeout, connect=10.0))

    def close(self) -> None:
        self.http.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ConductorError(
                f"Conductor returned {e.response.status_code} for {method} {url}: "
                f"{e.response.text.strip()}"
            ) from e
        except httpx.HTTPError as e:
            raise ConductorError(f"Conductor request {method} {url} failed: {e}") from e
        return response

    def poll_task(self, task_type: str, worker_id: str) -> Optional[dict[str, Any]]:
        """Fetch the next pending task of ``task_type``, or None if there is none."""
        response = self._request(
            "GET", f"/tasks/poll/{task_type}", params={"workerid": worker_id}
        )
        if response.status_code == 204 or not response.content.strip():
            return None
        task = response.json()
        if not task or not task.get("taskId"):
            return None
        logger.debug("Polled %s task %s", task_type, task["taskId"])
        return task

    def ack_task(self, task_id: str, worker_id: str) -> bool:
        """Acknowledge a polled task; False means Conductor refused it."""
        response = self._request(
            "POST", f"/tasks/{task_id}/ack", params={"workerid": worker_id}
        )
        return response.text.strip().lower() == "true"

    def update_task(self, result: TaskResult) -> None:
        logger.debug("Updating task %s: %s", result.task_id, result.status.value)
        self._request("POST", "/tasks", json=result.to_json())
