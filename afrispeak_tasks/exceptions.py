"""Custom exceptions for bulk task import operations."""


class TaskImportError(Exception):
    """Base class for every error surfaced by a bulk import."""

    def __init__(self, message: str | None = None):
        self.message = message or "Bulk task import failed"
        super().__init__(self.message)


class NotAuthenticatedError(TaskImportError):
    def __init__(self, message: str | None = None):
        super().__init__(message or "You must be logged in to create tasks")


class InvalidBatchError(TaskImportError):
    """Raised by the pre-flight check on batch-level settings."""

    pass


class ImportInProgressError(TaskImportError):
    def __init__(self, message: str | None = None):
        super().__init__(message or "An import is already running for this form")


class UnparseableFileError(TaskImportError):
    """The uploaded file cannot be turned into rows or archive entries."""

    pass


class MissingHeadersError(UnparseableFileError):
    """A tabular file lacks a column required by the selected task type."""

    def __init__(
        self,
        file_kind: str,
        task_type: str,
        missing: list[str],
        found: list[str],
    ):
        self.file_kind = file_kind
        self.task_type = task_type
        self.missing = missing
        self.found = found
        super().__init__(
            f"{file_kind} is missing required headers for {task_type} task: "
            f"{', '.join(missing)}. Headers found: {', '.join(found)}"
        )


class EmptyFileError(UnparseableFileError):
    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "No valid task data found in the uploaded file or file is empty."
        )


class ArchiveReadError(UnparseableFileError):
    def __init__(self, message: str | None = None):
        super().__init__(
            f"Failed to process zip file: {message}"
            if message
            else "Failed to process zip file"
        )


class NoImageEntriesError(UnparseableFileError):
    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "No valid image files (.jpg, .jpeg, .png, .webp) found in the zip file."
        )


class NoValidTasksError(TaskImportError):
    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "No valid tasks could be created from the file data. "
            "Check file content and headers."
        )


class UploadFailedException(TaskImportError):
    def __init__(self, message: str | None = None):
        super().__init__(
            f"Storage upload failed: {message}" if message else "Storage upload failed"
        )


class ChunkInsertError(TaskImportError):
    """A chunk insert was rejected by the task store.

    Chunks before ``chunk_number`` are already committed and stay that way.
    """

    def __init__(
        self,
        chunk_number: int,
        total_chunks: int,
        inserted_count: int,
        reason: str,
    ):
        self.chunk_number = chunk_number
        self.total_chunks = total_chunks
        self.inserted_count = inserted_count
        self.reason = reason
        super().__init__(
            f"Failed to insert tasks into database (batch {chunk_number} of "
            f"{total_chunks}): {reason}"
        )


class TemplateUnavailableError(TaskImportError):
    def __init__(self, task_type: str):
        self.task_type = task_type
        super().__init__(f"No sample template available for {task_type} tasks")
