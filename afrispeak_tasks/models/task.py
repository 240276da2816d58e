from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from afrispeak_tasks.exceptions import InvalidBatchError

DEFAULT_SOURCE_LANGUAGE = "English"

AVAILABLE_LANGUAGES: list[str] = [
    "Akan",
    "Ewe",
    "Ga",
    "Dagbani",
    "Fante",
    "Dagaare",
    "Gonja",
    "Kasem",
    "Kusaal",
    "Nzema",
    "English",
]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TaskType(StrEnum):
    ASR = "asr"
    TTS = "tts"
    TRANSLATION = "translation"
    TRANSCRIPTION = "transcription"


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(StrEnum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    ARCHIVED = "archived"


@dataclass
class Task:
    """One unit of contributor work.

    ``content`` is the type-specific document (see
    :mod:`afrispeak_tasks.models.content`).  ``id`` and ``created_at`` are
    filled in by the store on insert.
    """

    type: TaskType
    language: str
    priority: TaskPriority
    content: dict[str, Any]
    created_by: str
    status: TaskStatus = TaskStatus.PENDING
    id: int | None = None
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def batch_name(self) -> str | None:
        return self.content.get("batch_name")

    def to_record(self) -> dict[str, Any]:
        """Return the insertable mapping (server-assigned fields excluded)."""
        return {
            "type": self.type.value,
            "language": self.language,
            "priority": self.priority.value,
            "status": self.status.value,
            "content": dict(self.content),
            "created_by": self.created_by,
        }


@dataclass
class TaskBatch:
    """Operator-chosen settings shared by every task of one import.

    Never persisted itself; its values are stamped onto each created
    :class:`Task`.
    """

    batch_name: str
    task_type: TaskType
    target_language: str
    source_language: str = DEFAULT_SOURCE_LANGUAGE
    priority: TaskPriority = TaskPriority.MEDIUM

    def validate(self) -> None:
        """Pre-flight checks run before any file is parsed.

        Raises:
            InvalidBatchError: if a required setting is missing or the
                translation languages are identical.
        """
        if not self.batch_name or not self.task_type or not self.target_language:
            raise InvalidBatchError(
                "Please fill in Batch Name, Task Type, Language, and select a file."
            )
        if self.task_type == TaskType.TRANSLATION:
            if not self.source_language:
                raise InvalidBatchError(
                    "Please select both source and target languages "
                    "for translation tasks."
                )
            if self.source_language == self.target_language:
                raise InvalidBatchError(
                    "Source and target languages cannot be the same "
                    "for translation tasks."
                )
