from __future__ import annotations

import zipfile
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from afrispeak_tasks.exceptions import ArchiveReadError
from afrispeak_tasks.models.task import Task, TaskType

ParsedRow = dict[str, str]
"""One record of an uploaded tabular file: column name → cell text."""


@dataclass
class ArchiveEntry:
    """An image file inside an ASR zip archive.

    The payload is only decompressed by :meth:`read`, so a damaged entry
    fails on its own instead of failing the whole archive.
    """

    name: str
    load: Callable[[], bytes] = field(repr=False)

    def read(self) -> bytes:
        try:
            return self.load()
        except (zipfile.BadZipFile, OSError, EOFError, RuntimeError) as exc:
            raise ArchiveReadError(f"{self.name}: {exc}") from exc


@dataclass
class ParseDiagnostic:
    """A problem noticed while reading a delimited-text file."""

    code: str
    message: str
    row: int | None = None


@dataclass
class RowOutcome:
    """Result of mapping one parsed row: either a task or an exclusion reason."""

    index: int
    task: Task | None = None
    reason: str | None = None

    @property
    def excluded(self) -> bool:
        return self.task is None


@dataclass
class MappingResult:
    """Aggregate of one mapper pass over a parsed file."""

    tasks: list[Task] = field(default_factory=list)
    exclusions: list[RowOutcome] = field(default_factory=list)

    @property
    def mapped_count(self) -> int:
        return len(self.tasks)

    @property
    def excluded_count(self) -> int:
        return len(self.exclusions)


class ImportState(StrEnum):
    IDLE = "idle"
    READING_ARCHIVE = "reading-archive"
    UPLOADING = "uploading"
    INSERTING = "inserting"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class UploadProgress:
    """Mutable counters for one ASR archive import.

    The caller owns the instance and passes it into the import; the
    importer only mutates it from its own sequential loop.
    """

    total_files: int = 0
    processed_files: int = 0
    errors: int = 0
    current_file: str | None = None
    status_message: str = ""
    state: ImportState = ImportState.IDLE
    failed_entries: list[str] = field(default_factory=list)


@dataclass
class ImportResult:
    """Summary returned from :meth:`BulkTaskImporter.import_file`."""

    batch_name: str
    task_type: TaskType
    inserted_count: int = 0
    excluded_count: int = 0
    chunks_written: int = 0
    error_count: int = 0
    exclusions: list[str] = field(default_factory=list)
    failed_entries: list[str] = field(default_factory=list)
