from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from afrispeak_tasks.db.models import Base, TaskRecord
from afrispeak_tasks.models.task import Task, TaskPriority, TaskStatus, TaskType
from afrispeak_tasks.store.base import TaskStore

logger = logging.getLogger(__name__)


def postgres_url(
    host: str,
    port: int,
    database: str,
    user: str,
    password: str,
) -> str:
    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{database}"


class SqlTaskStore(TaskStore):
    """Store backed by SQLAlchemy's async engine.

    Production deployments point it at Postgres (``postgresql+asyncpg``);
    any async SQLAlchemy URL works.  Translates to/from the domain
    :class:`Task` dataclass at the boundary.
    """

    def __init__(self, url: str, *, echo: bool = False, **engine_kwargs: Any) -> None:
        self._engine = create_async_engine(url, echo=echo, **engine_kwargs)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> SqlTaskStore:
        """Build from a ``{"url": ...}`` dict or Postgres connection fields."""
        config = dict(config)
        url = config.pop("url", None)
        if url is None:
            url = postgres_url(
                host=config.pop("host", "localhost"),
                port=int(config.pop("port", 5432)),
                database=config.pop("database", "afrispeak"),
                user=config.pop("user", "postgres"),
                password=config.pop("password", "postgres"),
            )
        return cls(url, **config)

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Yield an auto-committing session that is closed after use."""
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # ── Lifecycle ────────────────────────────────────────────────────

    async def init(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def reset(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await self.init()

    async def close(self) -> None:
        await self._engine.dispose()

    # ── Tasks ────────────────────────────────────────────────────────

    async def insert_tasks(self, tasks: list[Task]) -> list[Task]:
        async with self._session() as s:
            rows = [
                TaskRecord(**task.to_record(), created_at=task.created_at)
                for task in tasks
            ]
            s.add_all(rows)
            await s.flush()
            for task, row in zip(tasks, rows):
                task.id = row.id
        logger.debug("Inserted %d task rows", len(rows))
        return tasks

    async def get_task(self, task_id: int) -> Task | None:
        async with self._session() as s:
            row = await s.get(TaskRecord, task_id)
        if row is None:
            return None
        return _task_from_orm(row)

    async def list_tasks(
        self,
        *,
        task_type: TaskType | None = None,
        status: TaskStatus | None = None,
        batch_name: str | None = None,
    ) -> list[Task]:
        stmt = select(TaskRecord).order_by(TaskRecord.id)
        if task_type is not None:
            stmt = stmt.where(TaskRecord.type == task_type.value)
        if status is not None:
            stmt = stmt.where(TaskRecord.status == status.value)
        if batch_name is not None:
            stmt = stmt.where(TaskRecord.content["batch_name"].as_string() == batch_name)
        async with self._session() as s:
            rows = list((await s.execute(stmt)).scalars().all())
        return [_task_from_orm(r) for r in rows]


def _task_from_orm(row: TaskRecord) -> Task:
    return Task(
        id=row.id,
        type=TaskType(row.type),
        language=row.language,
        priority=TaskPriority(row.priority),
        status=TaskStatus(row.status),
        content=dict(row.content),
        created_by=row.created_by,
        created_at=row.created_at,
    )
