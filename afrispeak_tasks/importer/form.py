from __future__ import annotations

import logging
from dataclasses import dataclass, field

from afrispeak_tasks.exceptions import (
    ImportInProgressError,
    InvalidBatchError,
    UnparseableFileError,
)
from afrispeak_tasks.importer.bulk import BulkTaskImporter, ProgressCallback
from afrispeak_tasks.importer.core.parser import (
    TABULAR_MEDIA_TYPES,
    ZIP_MEDIA_TYPES,
    UploadedFile,
)
from afrispeak_tasks.importer.core.types import ImportResult, UploadProgress
from afrispeak_tasks.importer.core.writer import ChunkCallback
from afrispeak_tasks.models.task import (
    DEFAULT_SOURCE_LANGUAGE,
    TaskBatch,
    TaskPriority,
    TaskType,
)

logger = logging.getLogger(__name__)


@dataclass
class BulkTaskForm:
    """Operator-facing state of one bulk-import form.

    Holds the selections made so far and guards against submitting the
    same form twice while an import is still running.
    """

    importer: BulkTaskImporter
    batch_name: str = ""
    task_type: TaskType | None = None
    language: str = ""
    source_language: str = DEFAULT_SOURCE_LANGUAGE
    priority: TaskPriority = TaskPriority.MEDIUM
    file: UploadedFile | None = None
    progress: UploadProgress | None = None
    is_submitting: bool = field(default=False, init=False)

    def select_task_type(self, task_type: TaskType | str) -> None:
        self.task_type = TaskType(task_type)
        self.language = ""
        if self.task_type == TaskType.TRANSLATION:
            self.source_language = DEFAULT_SOURCE_LANGUAGE

    def select_file(self, file: UploadedFile | None) -> None:
        """Accept *file* if its type fits the selected task type.

        A rejected file clears the current selection.  A zip-named file
        is accepted for ASR whatever its declared media type.
        """
        self.progress = None
        if file is None:
            self.file = None
            return

        if self.task_type in (TaskType.TRANSLATION, TaskType.TTS, TaskType.TRANSCRIPTION):
            if file.media_type not in TABULAR_MEDIA_TYPES:
                self.file = None
                raise UnparseableFileError(
                    f"Invalid file type for {self.task_type.value}. "
                    "Please upload a CSV or Excel file."
                )
        elif self.task_type == TaskType.ASR:
            if file.media_type not in ZIP_MEDIA_TYPES:
                logger.warning(
                    "ASR upload: detected file type '%s' for file '%s'",
                    file.media_type,
                    file.name,
                )
                if not file.has_zip_extension:
                    self.file = None
                    raise UnparseableFileError(
                        "Invalid file type for ASR bulk upload. "
                        "Please upload a ZIP file (.zip extension)."
                    )

        self.file = file

    def to_batch(self) -> TaskBatch:
        if (
            not self.batch_name
            or self.task_type is None
            or not self.language
            or self.file is None
        ):
            raise InvalidBatchError(
                "Please fill in Batch Name, Task Type, Language, and select a file."
            )
        return TaskBatch(
            batch_name=self.batch_name,
            task_type=self.task_type,
            target_language=self.language,
            source_language=self.source_language,
            priority=self.priority,
        )

    async def submit(
        self,
        *,
        on_progress: ProgressCallback | None = None,
        on_chunk: ChunkCallback | None = None,
    ) -> ImportResult:
        """Run the import for the current selections.

        Raises:
            ImportInProgressError: this form is already submitting.
            TaskImportError: see :meth:`BulkTaskImporter.import_file`.
        """
        if self.is_submitting:
            raise ImportInProgressError()

        batch = self.to_batch()
        assert self.file is not None

        self.is_submitting = True
        self.progress = UploadProgress() if batch.task_type == TaskType.ASR else None
        try:
            result = await self.importer.import_file(
                batch,
                self.file,
                progress=self.progress,
                on_progress=on_progress,
                on_chunk=on_chunk,
            )
        finally:
            self.is_submitting = False

        self._reset_after_success(batch.task_type)
        return result

    def _reset_after_success(self, task_type: TaskType) -> None:
        self.file = None
        self.batch_name = ""
        self.source_language = DEFAULT_SOURCE_LANGUAGE
        if task_type != TaskType.ASR:
            self.task_type = None
            self.language = ""
            self.priority = TaskPriority.MEDIUM
