"""Polling worker delivering Conductor tasks to local handlers.

One polling thread per registered task type feeds a shared thread pool.
A task is only polled when a pool slot is free, so Conductor never hands
this worker more tasks than it can run.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Mapping, Optional

from ..__util__ import BackupWorkerError, RequestError
from .client import ConductorClient, ConductorError, TaskResult, TaskStatus

logger = logging.getLogger(__name__)

TaskHandler = Callable[[Mapping[str, Any]], dict[str, Any]]


def execute(task: Mapping[str, Any], handler: TaskHandler, worker_id: str) -> TaskResult:
    """Run ``handler`` on the task's input data and build the status update.

    Invalid input is reported as a terminal failure; every other error as a
    plain failure so that Conductor's retry policy applies.
    """
    result = TaskResult(
        task_id=task["taskId"],
        workflow_instance_id=task.get("workflowInstanceId", ""),
        worker_id=worker_id,
        status=TaskStatus.COMPLETED,
    )
    task_type = task.get("taskType") or task.get("taskDefName", "?")
    try:
        result.output_data = handler(task.get("inputData") or {})
    except RequestError as e:
        logger.error("Rejecting %s task %s: %s", task_type, result.task_id, e)
        result.status = TaskStatus.FAILED_WITH_TERMINAL_ERROR
        result.reason_for_incompletion = str(e)
    except BackupWorkerError as e:
        logger.error("%s task %s failed: %s", task_type, result.task_id, e)
        result.status = TaskStatus.FAILED
        result.reason_for_incompletion = str(e)
    except Exception as e:
        logger.exception("Unexpected error in %s task %s", task_type, result.task_id)
        result.status = TaskStatus.FAILED
        result.reason_for_incompletion = f"{type(e).__name__}: {e}"
    return result


class TaskWorker:
    """Poll Conductor for registered task types and execute them."""

    def __init__(
        self,
        client: ConductorClient,
        worker_id: str,
        poll_interval: float = 0.5,
        thread_count: int = 1,
    ) -> None:
        self.client = client
        self.worker_id = worker_id
        self.poll_interval = poll_interval
        self.thread_count = thread_count
        self.handlers: dict[str, TaskHandler] = {}
        self._stop = threading.Event()
        self._slots = threading.BoundedSemaphore(thread_count)
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pollers: list[threading.Thread] = []

    def register(self, task_type: str, handler: TaskHandler) -> None:
        self.handlers[task_type] = handler

    def start(self) -> None:
        """Start one polling thread per registered task type."""
        if not self.handlers:
            raise ValueError("No task handlers registered")
        self._stop.clear()
        self._executor = ThreadPoolExecutor(
            max_workers=self.thread_count, thread_name_prefix="task"
        )
        for task_type in self.handlers:
            poller = threading.Thread(
                target=self._poll_loop,
                args=(task_type,),
                name=f"poll-{task_type}",
                daemon=True,
            )
            poller.start()
            self._pollers.append(poller)
        logger.info(
            "Polling %s every %.1fs as %s (threads: %d)",
            ", ".join(self.handlers),
            self.poll_interval,
            self.worker_id,
            self.thread_count,
        )

    def stop(self) -> None:
        """Stop polling and wait for running tasks to finish."""
        self._stop.set()
        for poller in self._pollers:
            poller.join()
        self._pollers.clear()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        logger.info("Worker stopped")

    def run_forever(self) -> None:
        """Start polling and block until interrupted."""
        self.start()
        try:
            while not self._stop.wait(1.0):
                pass
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
        finally:
            self.stop()

    def poll_once(self, task_type: str) -> bool:
        """Poll and dispatch at most one task; True if one was dispatched.

        A pool slot is reserved before polling and stays reserved until the
        task finishes, so no task is acked while every slot is busy.
        """
        if self._executor is None:
            raise RuntimeError("Worker not started")
        if not self._slots.acquire(timeout=self.poll_interval):
            return False
        try:
            task = self.client.poll_task(task_type, self.worker_id)
            if task is None:
                self._slots.release()
                return False
            if not self.client.ack_task(task["taskId"], self.worker_id):
                logger.warning("Conductor refused ack for task %s", task["taskId"])
                self._slots.release()
                return False
            future = self._executor.submit(self._run_task, task, task_type)
        except BaseException:
            self._slots.release()
            raise
        future.add_done_callback(lambda _: self._slots.release())
        return True

    def _poll_loop(self, task_type: str) -> None:
        while not self._stop.is_set():
            try:
                dispatched = self.poll_once(task_type)
            except ConductorError as e:
                logger.warning("Polling %s failed: %s", task_type, e)
                dispatched = False
            if not dispatched:
                self._stop.wait(self.poll_interval)

    def _run_task(self, task: Mapping[str, Any], task_type: str) -> None:
        logger.debug("Executing %s task %s", task_type, task["taskId"])
        result = execute(task, self.handlers[task_type], self.worker_id)
        try:
            self.client.update_task(result)
        except ConductorError as e:
            logger.error("Could not report result of task %s: %s", task["taskId"], e)
