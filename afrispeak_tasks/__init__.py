"""Bulk task import for the AfriSpeak speech and text data collection platform."""

from afrispeak_tasks.identity import IdentityProvider, StaticIdentity
from afrispeak_tasks.importer import (
    BulkTaskForm,
    BulkTaskImporter,
    render_template,
    template_filename,
)
from afrispeak_tasks.importer.core import (
    ImportResult,
    ImportState,
    TaskImportError,
    UploadedFile,
    UploadProgress,
)
from afrispeak_tasks.models import Task, TaskBatch, TaskPriority, TaskStatus, TaskType

__all__ = [
    "BulkTaskForm",
    "BulkTaskImporter",
    "IdentityProvider",
    "ImportResult",
    "ImportState",
    "StaticIdentity",
    "Task",
    "TaskBatch",
    "TaskImportError",
    "TaskPriority",
    "TaskStatus",
    "TaskType",
    "UploadProgress",
    "UploadedFile",
    "render_template",
    "template_filename",
]
