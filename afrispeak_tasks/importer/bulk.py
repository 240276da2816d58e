"""Bulk task import: classify → parse → map → persist."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from contextlib import ExitStack

from afrispeak_tasks.exceptions import (
    EmptyFileError,
    NotAuthenticatedError,
    NoValidTasksError,
    TaskImportError,
    UnparseableFileError,
    UploadFailedException,
)
from afrispeak_tasks.identity import IdentityProvider
from afrispeak_tasks.importer.core.mapper import AsrMapper, get_mapper, image_storage_path
from afrispeak_tasks.importer.core.parser import (
    UploadedFile,
    open_archive_images,
    parse_tabular,
)
from afrispeak_tasks.importer.core.types import (
    ImportResult,
    ImportState,
    UploadProgress,
)
from afrispeak_tasks.importer.core.writer import CHUNK_SIZE, ChunkCallback, ChunkedTaskWriter
from afrispeak_tasks.models.task import TaskBatch, TaskType
from afrispeak_tasks.storage.base import StorageBackend
from afrispeak_tasks.store.base import TaskStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[UploadProgress], None]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class BulkTaskImporter:
    """Turns one uploaded file into many persisted tasks.

    Usage::

        importer = BulkTaskImporter(
            store=InMemoryTaskStore(),
            storage=DiskStorage("./data/storage"),
            identity=StaticIdentity("admin-1"),
        )
        batch = TaskBatch("Batch1", TaskType.TRANSLATION, target_language="Akan")
        result = await importer.import_file(batch, UploadedFile.from_path("rows.csv"))

    Every remote call is awaited before the next one starts; nothing is
    retried.
    """

    def __init__(
        self,
        store: TaskStore,
        storage: StorageBackend,
        identity: IdentityProvider,
        *,
        chunk_size: int = CHUNK_SIZE,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._store = store
        self._storage = storage
        self._identity = identity
        self._chunk_size = chunk_size
        self._clock = clock

    async def import_file(
        self,
        batch: TaskBatch,
        file: UploadedFile,
        *,
        progress: UploadProgress | None = None,
        on_progress: ProgressCallback | None = None,
        on_chunk: ChunkCallback | None = None,
    ) -> ImportResult:
        """Import *file* under the settings of *batch*.

        Args:
            batch: Batch-level settings stamped onto every task.
            file: The uploaded file.
            progress: Counter object updated during ASR archive imports.
                A fresh one is used when omitted.
            on_progress: Called after every change to *progress*.
            on_chunk: Called before each chunk insert of a tabular import.

        Raises:
            TaskImportError: on any input rejection, setup failure, or
                chunk failure.  Per-entry ASR failures are counted in the
                result instead.
        """
        user_id = self._identity.current_user_id()
        if not user_id:
            raise NotAuthenticatedError("User ID not found. Cannot process upload.")

        batch.validate()

        if batch.task_type == TaskType.ASR:
            if not file.has_zip_extension:
                raise UnparseableFileError(
                    "Incorrect file type for ASR bulk upload. Please upload a ZIP."
                )
            return await self._import_archive(
                batch,
                file,
                user_id,
                progress if progress is not None else UploadProgress(),
                on_progress,
            )

        return await self._import_tabular(batch, file, user_id, on_chunk)

    # ── tabular (CSV / Excel) ────────────────────────────────────────

    async def _import_tabular(
        self,
        batch: TaskBatch,
        file: UploadedFile,
        user_id: str,
        on_chunk: ChunkCallback | None,
    ) -> ImportResult:
        logger.info("Starting bulk task creation for %s", batch.task_type.value.upper())

        rows = parse_tabular(file, batch.task_type)
        if not rows:
            raise EmptyFileError()

        mapping = get_mapper(batch.task_type).run(rows, batch, user_id)
        if not mapping.tasks:
            raise NoValidTasksError()

        writer = ChunkedTaskWriter(self._store, chunk_size=self._chunk_size)
        inserted = await writer.write(mapping.tasks, on_chunk=on_chunk)

        logger.info(
            "Successfully created %d tasks in batch '%s'", inserted, batch.batch_name
        )
        return ImportResult(
            batch_name=batch.batch_name,
            task_type=batch.task_type,
            inserted_count=inserted,
            excluded_count=mapping.excluded_count,
            chunks_written=writer.chunks_written,
            exclusions=[o.reason for o in mapping.exclusions if o.reason],
        )

    # ── ASR (zip of images) ──────────────────────────────────────────

    async def _import_archive(
        self,
        batch: TaskBatch,
        file: UploadedFile,
        user_id: str,
        progress: UploadProgress,
        on_progress: ProgressCallback | None,
    ) -> ImportResult:
        def update(**changes: object) -> None:
            for name, value in changes.items():
                setattr(progress, name, value)
            if on_progress is not None:
                on_progress(progress)

        update(
            total_files=0,
            processed_files=0,
            errors=0,
            current_file=None,
            state=ImportState.READING_ARCHIVE,
            status_message="Reading zip file...",
        )

        with ExitStack() as stack:
            try:
                entries = stack.enter_context(open_archive_images(file))
            except TaskImportError as exc:
                logger.error("Error processing zip file %s: %s", file.name, exc)
                update(state=ImportState.FAILED, status_message=f"Error: {exc.message}")
                raise

            update(
                total_files=len(entries),
                status_message=f"Found {len(entries)} images. Starting uploads...",
            )

            mapper = AsrMapper()
            success_count = 0
            error_count = 0
            failed: list[str] = []

            for number, entry in enumerate(entries, start=1):
                update(
                    current_file=entry.name,
                    state=ImportState.UPLOADING,
                    status_message=f"Processing file {number} of {len(entries)}: "
                    f"{entry.name}",
                )
                try:
                    data = entry.read()
                    path = image_storage_path(user_id, entry.name, self._clock())
                    try:
                        self._storage.write(path, data)
                    except Exception as exc:
                        raise UploadFailedException(str(exc)) from exc

                    image_url = self._storage.resolve_uri(path)
                    if not image_url:
                        raise UploadFailedException(
                            "Could not get public URL for uploaded image."
                        )

                    task = mapper.build_task(entry.name, image_url, batch, user_id)
                    update(state=ImportState.INSERTING)
                    await self._store.insert_tasks([task])
                except Exception as exc:
                    error_count += 1
                    failed.append(entry.name)
                    logger.error("Error processing file %s: %s", entry.name, exc)
                    update(errors=error_count, failed_entries=list(failed))
                    continue

                success_count += 1
                update(processed_files=success_count, errors=error_count)

        update(
            current_file=None,
            state=ImportState.COMPLETE,
            status_message=f"Processing complete. {success_count} tasks created, "
            f"{error_count} errors.",
        )
        logger.info(
            "Bulk ASR upload finished: %d tasks created, %d errors",
            success_count,
            error_count,
        )
        return ImportResult(
            batch_name=batch.batch_name,
            task_type=batch.task_type,
            inserted_count=success_count,
            error_count=error_count,
            failed_entries=failed,
        )
