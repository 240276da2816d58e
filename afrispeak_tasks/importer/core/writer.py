from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from itertools import batched

from afrispeak_tasks.exceptions import ChunkInsertError
from afrispeak_tasks.models.task import Task
from afrispeak_tasks.store.base import TaskStore

logger = logging.getLogger(__name__)

CHUNK_SIZE = 50

ChunkCallback = Callable[[int, int, int], None]
"""Called before each chunk with ``(chunk_number, total_chunks, chunk_len)``."""


class ChunkedTaskWriter:
    """Persists tasks through a :class:`TaskStore` in fixed-size chunks.

    Chunks are submitted strictly one after another.  The first failing
    chunk stops the write; chunks already accepted by the store are not
    rolled back.
    """

    def __init__(self, store: TaskStore, chunk_size: int = CHUNK_SIZE) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self._store = store
        self._chunk_size = chunk_size
        self.chunks_written = 0

    async def write(
        self,
        tasks: Sequence[Task],
        on_chunk: ChunkCallback | None = None,
    ) -> int:
        """Insert *tasks* and return how many were persisted.

        Raises:
            ChunkInsertError: a chunk was rejected.  ``inserted_count`` on
                the error holds the number of tasks committed before it.
        """
        total_chunks = math.ceil(len(tasks) / self._chunk_size)
        inserted = 0
        self.chunks_written = 0

        for chunk_number, chunk in enumerate(batched(tasks, self._chunk_size), start=1):
            if on_chunk is not None:
                on_chunk(chunk_number, total_chunks, len(chunk))
            logger.info(
                "Inserting batch %d of %d (%d tasks)",
                chunk_number,
                total_chunks,
                len(chunk),
            )
            try:
                await self._store.insert_tasks(list(chunk))
            except Exception as exc:
                logger.error("Error inserting batch %d: %s", chunk_number, exc)
                raise ChunkInsertError(
                    chunk_number=chunk_number,
                    total_chunks=total_chunks,
                    inserted_count=inserted,
                    reason=str(exc),
                ) from exc
            inserted += len(chunk)
            self.chunks_written += 1

        return inserted
