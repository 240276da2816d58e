from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType

from afrispeak_tasks.models.task import Task, TaskStatus, TaskType


class TaskStore(ABC):
    """Abstract tabular record store for :class:`Task` rows.

    Each :meth:`insert_tasks` call is one request: either every task in
    it is persisted or none is.  Nothing spans calls, so a failed call
    leaves earlier calls committed.
    """

    # ── Lifecycle ────────────────────────────────────────────────────

    @abstractmethod
    async def init(self) -> None:
        """Create tables / indices (idempotent)."""
        ...

    @abstractmethod
    async def reset(self) -> None:
        """Drop all data and recreate from scratch."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release any held resources (connections, file handles)."""
        ...

    async def __aenter__(self) -> TaskStore:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ── Tasks ────────────────────────────────────────────────────────

    @abstractmethod
    async def insert_tasks(self, tasks: list[Task]) -> list[Task]:
        """Persist *tasks* atomically and return them with ``id`` set."""
        ...

    @abstractmethod
    async def get_task(self, task_id: int) -> Task | None:
        """Return a task by ID, or ``None``."""
        ...

    @abstractmethod
    async def list_tasks(
        self,
        *,
        task_type: TaskType | None = None,
        status: TaskStatus | None = None,
        batch_name: str | None = None,
    ) -> list[Task]:
        """Return tasks ordered by ``id``, with optional filters."""
        ...

    async def count_tasks(
        self,
        *,
        task_type: TaskType | None = None,
        status: TaskStatus | None = None,
        batch_name: str | None = None,
    ) -> int:
        """Count tasks matching the filters."""
        tasks = await self.list_tasks(
            task_type=task_type, status=status, batch_name=batch_name
        )
        return len(tasks)
