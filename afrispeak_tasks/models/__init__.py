"""Domain models: plain dataclasses plus the pydantic content documents.

The SQLAlchemy ORM row used by :class:`SqlTaskStore` lives separately in
``db/models.py`` and maps to/from :class:`Task`.
"""

from afrispeak_tasks.models.content import (
    AsrContent,
    TaskContent,
    TranscriptionContent,
    TranslationContent,
    TtsContent,
)
from afrispeak_tasks.models.task import (
    AVAILABLE_LANGUAGES,
    DEFAULT_SOURCE_LANGUAGE,
    Task,
    TaskBatch,
    TaskPriority,
    TaskStatus,
    TaskType,
)

__all__ = [
    "AVAILABLE_LANGUAGES",
    "AsrContent",
    "DEFAULT_SOURCE_LANGUAGE",
    "Task",
    "TaskBatch",
    "TaskContent",
    "TaskPriority",
    "TaskStatus",
    "TaskType",
    "TranscriptionContent",
    "TranslationContent",
    "TtsContent",
]
