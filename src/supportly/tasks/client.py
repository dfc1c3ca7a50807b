"""Tasks client with idempotent enqueue.

Provides multiple backends selectable via TASKS_BACKEND env var:
- inline (default): records tasks without executing them (dev/tests)
- http: sends tasks to the worker via HTTP POST
- cloud_tasks: sends tasks to Google Cloud Tasks
"""

from __future__ import annotations

import os
from collections import OrderedDict, deque
from typing import Any, Protocol

# Ids remembered for in-process dedupe; the oldest are forgotten first
MAX_SEEN_TASK_IDS = 10_000


class TaskContract(Protocol):
    """Anything that can be enqueued: a worker path, an id and a payload."""

    url_path: str

    @property
    def task_id(self) -> str: ...

    def to_payload(self, correlation_id: str | None = None) -> dict[str, Any]: ...


class TasksClient:
    """Tasks client with idempotent enqueue by task_id.

    Tracks the most recent task_ids to ensure idempotency (same task_id =
    no-op) within the process; the cloud_tasks backend also dedupes by task
    name. The inline backend keeps the same number of recorded tasks.
    """

    def __init__(
        self,
        backend: str | None = None,
        max_seen_ids: int = MAX_SEEN_TASK_IDS,
    ) -> None:
        self._max_seen_ids = max_seen_ids
        self._seen_ids: OrderedDict[str, None] = OrderedDict()
        self._recorded_tasks: deque[dict[str, Any]] = deque(maxlen=max_seen_ids)
        self._backend = backend or os.environ.get("TASKS_BACKEND", "inline")

    def enqueue(self, task: TaskContract, correlation_id: str | None = None) -> bool:
        """Enqueue task for execution by the worker.

        Args:
            task: Task contract (see supportly.tasks.contracts).
            correlation_id: Optional correlation ID for tracing.

        Returns:
            True if the task was handed to the backend.
            False if no-op (task_id already seen) or the http backend failed.

        Raises:
            ValueError: If TASKS_BACKEND is unknown.
        """
        task_id = task.task_id
        if task_id in self._seen_ids:
            return False

        payload = task.to_payload(correlation_id)

        if self._backend == "inline":
            self._remember(task_id)
            self._recorded_tasks.append({
                "task_id": task_id,
                "url_path": task.url_path,
                "payload": payload,
                "correlation_id": correlation_id,
            })
            return True

        if self._backend == "http":
            from supportly.tasks.http_backend import enqueue_http

            sent = enqueue_http(task_id, task.url_path, payload, correlation_id)
        elif self._backend == "cloud_tasks":
            from supportly.tasks.cloud_tasks_backend import enqueue_cloud_task

            sent = enqueue_cloud_task(task_id, task.url_path, payload, correlation_id)
        else:
            raise ValueError(f"Unknown TASKS_BACKEND: {self._backend}")

        # Failed sends may be retried with the same task_id
        if sent:
            self._remember(task_id)
        return sent

    def _remember(self, task_id: str) -> None:
        self._seen_ids[task_id] = None
        while len(self._seen_ids) > self._max_seen_ids:
            self._seen_ids.popitem(last=False)

    def was_enqueued(self, task_id: str) -> bool:
        return task_id in self._seen_ids

    def get_recorded_tasks(self) -> list[dict[str, Any]]:
        """Tasks recorded by the inline backend (useful for testing)."""
        return list(self._recorded_tasks)

    def clear(self) -> None:
        """Clear seen task_ids and recorded tasks (useful for testing)."""
        self._seen_ids.clear()
        self._recorded_tasks.clear()
