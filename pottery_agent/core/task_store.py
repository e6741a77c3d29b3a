"""
In-memory A2A task store. Keyed by task id; lost on restart.
"""

import logging
import threading
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any

from pottery_agent.core.config import TASK_STORE_MAX_TASKS

logger = logging.getLogger(__name__)

SUBMITTED = "submitted"
WORKING = "working"
COMPLETED = "completed"
CANCELLED = "cancelled"
FAILED = "failed"

TERMINAL_STATES: frozenset[str] = frozenset({COMPLETED, CANCELLED, FAILED})


class TaskStore:
    """
    Holds the latest task object (A2A result shape) per task id.

    At most max_tasks are kept: once over the bound, the oldest finished tasks are
    dropped. Tasks still submitted or working are never evicted.
    """

    def __init__(self, max_tasks: int = TASK_STORE_MAX_TASKS) -> None:
        self.max_tasks = max_tasks
        self._tasks: OrderedDict[str, dict[str, Any]] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def _evict(self, keep: str) -> None:
        for task_id in list(self._tasks):
            if len(self._tasks) <= self.max_tasks:
                break
            if task_id != keep and (self._tasks[task_id].get("status") or {}).get("state") in TERMINAL_STATES:
                del self._tasks[task_id]
                logger.info("[task_store:evict] task_id=%s", task_id)

    def save(self, task: dict[str, Any]) -> None:
        task_id = task.get("id")
        if not task_id:
            return
        with self._lock:
            self._tasks[task_id] = task
            self._tasks.move_to_end(task_id)
            self._evict(keep=task_id)
        logger.info("[task_store:save] task_id=%s state=%s", task_id, (task.get("status") or {}).get("state"))

    def get(self, task_id: str) -> dict[str, Any] | None:
        """Return a shallow copy of the task so callers cannot mutate the store."""
        with self._lock:
            task = self._tasks.get(task_id)
            return dict(task) if task is not None else None

    def state(self, task_id: str) -> str | None:
        with self._lock:
            task = self._tasks.get(task_id)
        if task is None:
            return None
        return (task.get("status") or {}).get("state")

    def set_state(self, task_id: str, state: str) -> dict[str, Any] | None:
        """Replace the task's status with a fresh one in the given state."""
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                return None
            task = dict(task)
            task["status"] = {"state": state, "timestamp": datetime.now(timezone.utc).isoformat()}
            self._tasks[task_id] = task
        logger.info("[task_store:set_state] task_id=%s state=%s", task_id, state)
        return dict(task)

    def cancel(self, task_id: str) -> dict[str, Any] | None:
        return self.set_state(task_id, CANCELLED)

    def is_cancelled(self, task_id: str) -> bool:
        return self.state(task_id) == CANCELLED

    def clear(self) -> None:
        with self._lock:
            self._tasks.clear()


task_store = TaskStore()
