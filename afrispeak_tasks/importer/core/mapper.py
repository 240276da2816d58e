from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import ClassVar

from afrispeak_tasks.importer.core.types import MappingResult, ParsedRow, RowOutcome
from afrispeak_tasks.models.content import (
    DEFAULT_DOMAIN,
    AsrContent,
    TaskContent,
    TranscriptionContent,
    TranslationContent,
    TtsContent,
)
from afrispeak_tasks.models.task import Task, TaskBatch, TaskType

logger = logging.getLogger(__name__)

ASR_IMAGE_PREFIX = "asr-task-images"
ASR_TASK_DESCRIPTION = "Record a description for the provided image."

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def _value(row: ParsedRow, key: str) -> str | None:
    """Return ``row[key]`` or ``None`` when it is absent or empty.

    Whitespace counts as a value and is kept as is.
    """
    value = row.get(key)
    if value is None or value == "":
        return None
    return value


def default_title(batch_name: str, index: int) -> str:
    return f"{batch_name} - Item {index}"


def default_description(batch_name: str, index: int) -> str:
    return f"Task {index} from batch '{batch_name}'."


class TaskMapper[Content: TaskContent](ABC):
    """Turns parsed rows of one task type into :class:`Task` payloads.

    Subclasses declare the task type, its single required column and
    the content model, then implement :meth:`build_content`.  Rows whose
    required column is missing or blank are excluded, never raised.
    """

    task_type: ClassVar[TaskType]

    required_field: ClassVar[str]
    """Column that must be present and non-blank in every row."""

    content_schema: ClassVar[type[TaskContent]]
    """Runtime-accessible content model.  Must match ``Content``."""

    @abstractmethod
    def build_content(self, row: ParsedRow, batch: TaskBatch, index: int) -> Content:
        """Build the content document for a row that passed validation.

        *index* is 1-based.
        """
        ...

    def language_for(self, row: ParsedRow, batch: TaskBatch) -> str:
        """Value stored in ``Task.language``."""
        return batch.target_language

    def map_row(
        self,
        row: ParsedRow,
        index: int,
        batch: TaskBatch,
        user_id: str,
    ) -> RowOutcome:
        if _value(row, self.required_field) is None:
            reason = (
                f"Skipping row {index} ({self.task_type.value}): missing required "
                f"'{self.required_field}' column."
            )
            logger.warning(reason)
            return RowOutcome(index=index, reason=reason)

        content = self.build_content(row, batch, index)
        task = Task(
            type=self.task_type,
            language=self.language_for(row, batch),
            priority=batch.priority,
            content=content.to_dict(),
            created_by=user_id,
        )
        return RowOutcome(index=index, task=task)

    def run(
        self,
        rows: Iterable[ParsedRow],
        batch: TaskBatch,
        user_id: str,
    ) -> MappingResult:
        """Map every row in one pass, collecting exclusions instead of raising."""
        result = MappingResult()
        for index, row in enumerate(rows, start=1):
            outcome = self.map_row(row, index, batch, user_id)
            if outcome.task is None:
                result.exclusions.append(outcome)
            else:
                result.tasks.append(outcome.task)
        logger.info(
            "Prepared %d valid %s tasks (%d rows excluded)",
            result.mapped_count,
            self.task_type.value,
            result.excluded_count,
        )
        return result


class TranslationMapper(TaskMapper[TranslationContent]):
    task_type = TaskType.TRANSLATION
    required_field = "source_text"
    content_schema = TranslationContent

    def language_for(self, row: ParsedRow, batch: TaskBatch) -> str:
        return _value(row, "target_language") or batch.target_language

    def build_content(
        self, row: ParsedRow, batch: TaskBatch, index: int
    ) -> TranslationContent:
        return TranslationContent(
            task_title=_value(row, "task_title") or default_title(batch.batch_name, index),
            task_description=_value(row, "task_description")
            or default_description(batch.batch_name, index),
            batch_name=batch.batch_name,
            source_text=row["source_text"],
            source_language=_value(row, "source_language") or batch.source_language,
            target_language=self.language_for(row, batch),
            domain=_value(row, "domain") or DEFAULT_DOMAIN,
        )


class TtsMapper(TaskMapper[TtsContent]):
    task_type = TaskType.TTS
    required_field = "text_to_speak"
    content_schema = TtsContent

    def build_content(self, row: ParsedRow, batch: TaskBatch, index: int) -> TtsContent:
        return TtsContent(
            task_title=_value(row, "task_title") or default_title(batch.batch_name, index),
            task_description=_value(row, "task_description")
            or default_description(batch.batch_name, index),
            batch_name=batch.batch_name,
            text_to_speak=row["text_to_speak"],
        )


class TranscriptionMapper(TaskMapper[TranscriptionContent]):
    task_type = TaskType.TRANSCRIPTION
    required_field = "audio_url"
    content_schema = TranscriptionContent

    def build_content(
        self, row: ParsedRow, batch: TaskBatch, index: int
    ) -> TranscriptionContent:
        return TranscriptionContent(
            task_title=_value(row, "task_title") or default_title(batch.batch_name, index),
            task_description=_value(row, "task_description")
            or default_description(batch.batch_name, index),
            batch_name=batch.batch_name,
            audio_url=row["audio_url"],
        )


class AsrMapper:
    """Builds ASR tasks from uploaded archive images.

    ASR has no tabular rows: each task is built from an entry name and
    the public URL its image was uploaded to.
    """

    task_type = TaskType.ASR
    content_schema = AsrContent

    def build_task(
        self,
        entry_name: str,
        image_url: str,
        batch: TaskBatch,
        user_id: str,
    ) -> Task:
        content = AsrContent(
            task_title=f"ASR Task: {entry_name}",
            task_description=ASR_TASK_DESCRIPTION,
            batch_name=batch.batch_name,
            image_url=image_url,
        )
        return Task(
            type=self.task_type,
            language=batch.target_language,
            priority=batch.priority,
            content=content.to_dict(),
            created_by=user_id,
        )


def sanitize_entry_name(name: str) -> str:
    return _UNSAFE_NAME_CHARS.sub("_", name)


def _user_segment(user_id: str) -> str:
    segment = sanitize_entry_name(user_id)
    # "." and ".." name directories, not a user
    if not segment.strip("."):
        return segment.replace(".", "_")
    return segment


def image_storage_path(user_id: str, entry_name: str, timestamp_ms: int) -> str:
    """Storage key for an uploaded ASR image.

    Both the user id and the entry name are reduced to a single safe path
    segment, so the key always stays under :data:`ASR_IMAGE_PREFIX`.
    """
    return (
        f"{ASR_IMAGE_PREFIX}/{_user_segment(user_id)}/"
        f"{timestamp_ms}-{sanitize_entry_name(entry_name)}"
    )


MAPPER_REGISTRY: dict[TaskType, type[TaskMapper]] = {
    TaskType.TRANSLATION: TranslationMapper,
    TaskType.TTS: TtsMapper,
    TaskType.TRANSCRIPTION: TranscriptionMapper,
}


def get_mapper(task_type: TaskType) -> TaskMapper:
    """Return a row mapper for *task_type*.

    Raises :class:`KeyError` for ASR, which is mapped from archive
    entries by :class:`AsrMapper` instead.
    """
    return MAPPER_REGISTRY[task_type]()
