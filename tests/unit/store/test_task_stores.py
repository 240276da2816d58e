from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from afrispeak_tasks.models import Task, TaskPriority, TaskStatus, TaskType
from afrispeak_tasks.store.base import TaskStore
from afrispeak_tasks.store.memory import InMemoryTaskStore
from afrispeak_tasks.store.sql import SqlTaskStore, postgres_url


def _task(batch: str = "Batch1", task_type: TaskType = TaskType.TTS, **content: str) -> Task:
    return Task(
        type=task_type,
        language="Akan",
        priority=TaskPriority.MEDIUM,
        content={"task_title": "t", "task_description": "d", "batch_name": batch, **content},
        created_by="admin-1",
    )


@pytest.fixture(params=["memory", "sqlite"])
async def store(request: pytest.FixtureRequest, tmp_path: Path) -> AsyncGenerator[TaskStore]:
    """Run every test against both the in-memory and the SQL store."""
    if request.param == "memory":
        task_store: TaskStore = InMemoryTaskStore()
    else:
        task_store = SqlTaskStore(f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}")
    await task_store.init()

    yield task_store

    await task_store.close()


# ── Inserts ──────────────────────────────────────────────────────────


async def test_insert_assigns_sequential_ids(store: TaskStore) -> None:
    tasks = await store.insert_tasks([_task(), _task(), _task()])
    assert [t.id for t in tasks] == [1, 2, 3]

    more = await store.insert_tasks([_task()])
    assert more[0].id == 4


async def test_get_task_round_trip(store: TaskStore) -> None:
    [created] = await store.insert_tasks(
        [_task(task_type=TaskType.TRANSCRIPTION, audio_url="https://a/1.mp3")]
    )
    assert created.id is not None

    fetched = await store.get_task(created.id)

    assert fetched is not None
    assert fetched.type == TaskType.TRANSCRIPTION
    assert fetched.status == TaskStatus.PENDING
    assert fetched.priority == TaskPriority.MEDIUM
    assert fetched.content["audio_url"] == "https://a/1.mp3"
    assert fetched.created_by == "admin-1"


async def test_get_task_returns_none_for_missing(store: TaskStore) -> None:
    assert await store.get_task(999) is None


# ── Listing ──────────────────────────────────────────────────────────


async def test_list_filters(store: TaskStore) -> None:
    await store.insert_tasks(
        [
            _task("Batch1"),
            _task("Batch2"),
            _task("Batch1", task_type=TaskType.TRANSLATION),
        ]
    )

    assert len(await store.list_tasks()) == 3
    assert len(await store.list_tasks(batch_name="Batch1")) == 2
    assert len(await store.list_tasks(task_type=TaskType.TRANSLATION)) == 1
    assert await store.list_tasks(status=TaskStatus.COMPLETED) == []
    assert await store.count_tasks(batch_name="Batch2", task_type=TaskType.TTS) == 1


async def test_list_is_ordered_by_id(store: TaskStore) -> None:
    await store.insert_tasks([_task(task_title_hint=str(i)) for i in range(5)])
    tasks = await store.list_tasks()
    assert [t.content["task_title_hint"] for t in tasks] == ["0", "1", "2", "3", "4"]


async def test_reset_clears_all_data(store: TaskStore) -> None:
    await store.insert_tasks([_task(), _task()])
    await store.reset()
    assert await store.count_tasks() == 0


# ── In-memory specifics ──────────────────────────────────────────────


async def test_memory_insert_is_all_or_nothing() -> None:
    store = InMemoryTaskStore()
    with pytest.raises(TypeError):
        await store.insert_tasks([_task(), {"type": "tts"}])  # type: ignore[list-item]
    assert await store.count_tasks() == 0


async def test_memory_returns_copies() -> None:
    store = InMemoryTaskStore()
    [created] = await store.insert_tasks([_task()])
    assert created.id is not None

    fetched = await store.get_task(created.id)
    assert fetched is not None
    fetched.content["task_title"] = "changed"

    again = await store.get_task(created.id)
    assert again is not None
    assert again.content["task_title"] == "t"


# ── SQL specifics ────────────────────────────────────────────────────


async def test_sql_from_config_url(tmp_path: Path) -> None:
    store = SqlTaskStore.from_config({"url": f"sqlite+aiosqlite:///{tmp_path / 'cfg.db'}"})
    await store.init()
    await store.insert_tasks([_task()])
    assert await store.count_tasks() == 1
    await store.close()


def test_postgres_url() -> None:
    assert postgres_url("db", 5433, "afrispeak", "app", "secret") == (
        "postgresql+asyncpg://app:secret@db:5433/afrispeak"
    )
