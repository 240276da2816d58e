from afrispeak_tasks.exceptions import (
    ArchiveReadError,
    ChunkInsertError,
    EmptyFileError,
    ImportInProgressError,
    InvalidBatchError,
    MissingHeadersError,
    NoImageEntriesError,
    NotAuthenticatedError,
    NoValidTasksError,
    TaskImportError,
    TemplateUnavailableError,
    UnparseableFileError,
    UploadFailedException,
)
from afrispeak_tasks.importer.core.mapper import (
    AsrMapper,
    TaskMapper,
    TranscriptionMapper,
    TranslationMapper,
    TtsMapper,
    get_mapper,
    image_storage_path,
)
from afrispeak_tasks.importer.core.parser import (
    DelimitedTextParser,
    SpreadsheetParser,
    TabularParser,
    UploadedFile,
    open_archive_images,
    parse_tabular,
)
from afrispeak_tasks.importer.core.types import (
    ArchiveEntry,
    ImportResult,
    ImportState,
    MappingResult,
    ParseDiagnostic,
    ParsedRow,
    RowOutcome,
    UploadProgress,
)
from afrispeak_tasks.importer.core.writer import CHUNK_SIZE, ChunkedTaskWriter

__all__ = [
    "CHUNK_SIZE",
    "ArchiveEntry",
    "ArchiveReadError",
    "AsrMapper",
    "ChunkInsertError",
    "ChunkedTaskWriter",
    "DelimitedTextParser",
    "EmptyFileError",
    "ImportInProgressError",
    "ImportResult",
    "ImportState",
    "InvalidBatchError",
    "MappingResult",
    "MissingHeadersError",
    "NoImageEntriesError",
    "NoValidTasksError",
    "NotAuthenticatedError",
    "ParseDiagnostic",
    "ParsedRow",
    "RowOutcome",
    "SpreadsheetParser",
    "TabularParser",
    "TaskImportError",
    "TaskMapper",
    "TemplateUnavailableError",
    "TranscriptionMapper",
    "TranslationMapper",
    "TtsMapper",
    "UnparseableFileError",
    "UploadFailedException",
    "UploadProgress",
    "UploadedFile",
    "get_mapper",
    "image_storage_path",
    "open_archive_images",
    "parse_tabular",
]
