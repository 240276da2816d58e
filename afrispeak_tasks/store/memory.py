from __future__ import annotations

import copy
from itertools import count

from afrispeak_tasks.models.task import Task, TaskStatus, TaskType
from afrispeak_tasks.store.base import TaskStore


class InMemoryTaskStore(TaskStore):
    """Store backed by a plain dict with sequential integer ids.

    Safe within a single asyncio event loop (no concurrent mutation).
    Stored tasks are copies, so callers holding the originals cannot
    change what the store sees.
    """

    def __init__(self) -> None:
        self._tasks: dict[int, Task] = {}
        self._ids = count(1)

    # ── Lifecycle ────────────────────────────────────────────────────

    async def init(self) -> None:
        pass

    async def reset(self) -> None:
        self._tasks.clear()
        self._ids = count(1)

    async def close(self) -> None:
        pass

    # ── Tasks ────────────────────────────────────────────────────────

    async def insert_tasks(self, tasks: list[Task]) -> list[Task]:
        for task in tasks:
            if not isinstance(task, Task):
                raise TypeError(f"Expected Task, got {type(task).__name__}")

        for task in tasks:
            task.id = next(self._ids)
            self._tasks[task.id] = copy.deepcopy(task)
        return tasks

    async def get_task(self, task_id: int) -> Task | None:
        task = self._tasks.get(task_id)
        return copy.deepcopy(task) if task is not None else None

    async def list_tasks(
        self,
        *,
        task_type: TaskType | None = None,
        status: TaskStatus | None = None,
        batch_name: str | None = None,
    ) -> list[Task]:
        result = []
        for task_id in sorted(self._tasks):
            task = self._tasks[task_id]
            if task_type is not None and task.type != task_type:
                continue
            if status is not None and task.status != status:
                continue
            if batch_name is not None and task.batch_name != batch_name:
                continue
            result.append(copy.deepcopy(task))
        return result
