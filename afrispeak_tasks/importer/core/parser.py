"""File classification and parsing for bulk task uploads.

Tabular uploads (delimited text or spreadsheets) become a list of
:data:`ParsedRow`; ASR uploads are zip archives whose image entries are
opened as lazily read :class:`ArchiveEntry` objects.  Nothing here talks
to the task store or object storage.
"""

from __future__ import annotations

import csv
import io
import logging
import mimetypes
import re
import zipfile
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from functools import partial
from pathlib import Path, PurePosixPath
from typing import Any, ClassVar

import pandas as pd

from afrispeak_tasks.exceptions import (
    ArchiveReadError,
    EmptyFileError,
    MissingHeadersError,
    NoImageEntriesError,
    UnparseableFileError,
)
from afrispeak_tasks.importer.core.types import ArchiveEntry, ParseDiagnostic, ParsedRow
from afrispeak_tasks.models.task import TaskType

logger = logging.getLogger(__name__)

CSV_MEDIA_TYPE = "text/csv"
XLS_MEDIA_TYPE = "application/vnd.ms-excel"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
ZIP_MEDIA_TYPES = frozenset({"application/zip", "application/x-zip-compressed"})
TABULAR_MEDIA_TYPES = frozenset({CSV_MEDIA_TYPE, XLS_MEDIA_TYPE, XLSX_MEDIA_TYPE})

# mimetypes does not know .xlsx on every platform
_EXTENSION_MEDIA_TYPES: dict[str, str] = {
    ".csv": CSV_MEDIA_TYPE,
    ".xls": XLS_MEDIA_TYPE,
    ".xlsx": XLSX_MEDIA_TYPE,
    ".zip": "application/zip",
}

REQUIRED_HEADERS: dict[TaskType, list[str]] = {
    TaskType.TRANSLATION: ["source_text"],
    TaskType.TTS: ["text_to_speak"],
    TaskType.TRANSCRIPTION: ["audio_url"],
}

CANDIDATE_DELIMITERS: tuple[str, ...] = (",", "\t", ";", "|")
NON_CRITICAL_DIAGNOSTICS = frozenset(
    {"TooFewFields", "TooManyFields", "UndetectableDelimiter"}
)
_DELIMITER_PREVIEW_LINES = 10

_IMAGE_NAME = re.compile(r"\.(jpg|jpeg|png|webp)$", re.IGNORECASE)
_MACOS_METADATA_DIR = "__MACOSX/"


def guess_media_type(name: str) -> str | None:
    """Best-effort media type for a file name."""
    suffix = PurePosixPath(name.lower()).suffix
    if suffix in _EXTENSION_MEDIA_TYPES:
        return _EXTENSION_MEDIA_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(name)
    return guessed


@dataclass
class UploadedFile:
    """A file handed to the importer: name, raw bytes, declared media type."""

    name: str
    data: bytes
    media_type: str | None = None

    @classmethod
    def from_path(cls, path: str | Path, media_type: str | None = None) -> UploadedFile:
        p = Path(path)
        return cls(
            name=p.name,
            data=p.read_bytes(),
            media_type=media_type or guess_media_type(p.name),
        )

    @property
    def has_zip_extension(self) -> bool:
        return self.name.lower().endswith(".zip")


# ---------------------------------------------------------------------------
# Header checks
# ---------------------------------------------------------------------------


def check_required_headers(
    headers: list[str],
    task_type: TaskType,
    file_kind: str,
) -> None:
    """Raise :class:`MissingHeadersError` if *headers* lacks a required column.

    Matching is exact and case-sensitive.
    """
    required = REQUIRED_HEADERS.get(task_type, [])
    missing = [h for h in required if h not in headers]
    if missing:
        logger.error(
            "%s headers found: %s; missing required: %s",
            file_kind,
            headers,
            missing,
        )
        raise MissingHeadersError(file_kind, task_type.value, missing, headers)


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------


class TabularParser(ABC):
    """Base class for parsers that turn an upload into header-keyed rows.

    Subclasses implement :meth:`read`; :meth:`parse` adds the required
    header check for the selected task type.
    """

    file_kind: ClassVar[str]
    """Label used in error messages (``"CSV"``, ``"Excel"``)."""

    media_types: ClassVar[frozenset[str]]
    """Declared media types this parser accepts."""

    @abstractmethod
    def read(self, file: UploadedFile) -> tuple[list[str], list[ParsedRow]]:
        """Return ``(headers, rows)`` without any task-type validation."""
        ...

    def parse(self, file: UploadedFile, task_type: TaskType) -> list[ParsedRow]:
        headers, rows = self.read(file)
        check_required_headers(headers, task_type, self.file_kind)
        logger.info("%s parsed: %d rows from %s", self.file_kind, len(rows), file.name)
        return rows


def _clean_header(header: str) -> str:
    return header.lstrip("\ufeff").strip()


def _guess_delimiter(text: str) -> str | None:
    """Pick the candidate delimiter giving the most consistent field counts.

    Returns ``None`` when no candidate splits the preview into more than
    one field per row on average.
    """
    preview = text.splitlines()[:_DELIMITER_PREVIEW_LINES]
    best: str | None = None
    best_delta: int | None = None
    best_avg = 0.0

    for delimiter in CANDIDATE_DELIMITERS:
        try:
            counts = [len(r) for r in csv.reader(preview, delimiter=delimiter) if r]
        except csv.Error:
            continue
        if not counts:
            continue

        avg = sum(counts) / len(counts)
        delta = sum(abs(b - a) for a, b in zip(counts, counts[1:]))
        if (
            avg > 1.99
            and (best_delta is None or delta <= best_delta)
            and avg > best_avg
        ):
            best, best_delta, best_avg = delimiter, delta, avg

    return best


class DelimitedTextParser(TabularParser):
    """Header-first delimited text with delimiter auto-detection.

    Field-count mismatches and an undetectable delimiter are logged and
    tolerated; any other problem aborts the parse.  After :meth:`read`,
    :attr:`diagnostics` lists everything that was noticed.
    """

    file_kind = "CSV"
    media_types = frozenset({CSV_MEDIA_TYPE})

    def read(self, file: UploadedFile) -> tuple[list[str], list[ParsedRow]]:
        self.diagnostics: list[ParseDiagnostic] = []

        try:
            text = file.data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise UnparseableFileError(f"CSV parsing failed: {exc}") from exc

        delimiter = _guess_delimiter(text)
        if delimiter is None:
            self.diagnostics.append(
                ParseDiagnostic(
                    code="UndetectableDelimiter",
                    message="Unable to auto-detect delimiting character; "
                    "defaulted to ','",
                )
            )
            delimiter = ","

        records: list[tuple[int, list[str]]] = []
        reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)
        try:
            for record in reader:
                if record:
                    records.append((reader.line_num, record))
        except csv.Error as exc:
            self.diagnostics.append(
                ParseDiagnostic(code="MalformedRow", message=str(exc), row=reader.line_num)
            )

        headers: list[str] = []
        rows: list[ParsedRow] = []
        if records:
            headers = [_clean_header(h) for h in records[0][1]]
            expected = len(headers)
            for line_number, record in records[1:]:
                if len(record) < expected:
                    self.diagnostics.append(
                        ParseDiagnostic(
                            code="TooFewFields",
                            message=f"Too few fields: expected {expected} fields "
                            f"but parsed {len(record)}",
                            row=line_number,
                        )
                    )
                elif len(record) > expected:
                    self.diagnostics.append(
                        ParseDiagnostic(
                            code="TooManyFields",
                            message=f"Too many fields: expected {expected} fields "
                            f"but parsed {len(record)}",
                            row=line_number,
                        )
                    )
                rows.append(dict(zip(headers, record)))

        self._check_diagnostics()
        return headers, rows

    def _check_diagnostics(self) -> None:
        critical = [d for d in self.diagnostics if d.code not in NON_CRITICAL_DIAGNOSTICS]
        if critical:
            raise UnparseableFileError(f"CSV parsing failed: {critical[0].message}")
        for diagnostic in self.diagnostics:
            logger.warning(
                "CSV parsing warning (%s) at row %s: %s",
                diagnostic.code,
                diagnostic.row,
                diagnostic.message,
            )


def _cell_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class SpreadsheetParser(TabularParser):
    """First worksheet of an .xls/.xlsx workbook, row 1 as headers."""

    file_kind = "Excel"
    media_types = frozenset({XLS_MEDIA_TYPE, XLSX_MEDIA_TYPE})

    def read(self, file: UploadedFile) -> tuple[list[str], list[ParsedRow]]:
        try:
            frame = pd.read_excel(
                io.BytesIO(file.data),
                sheet_name=0,
                header=None,
                dtype=object,
            )
        except Exception as exc:
            raise UnparseableFileError(f"Error parsing Excel file: {exc}") from exc

        frame = frame.dropna(how="all")
        if frame.empty:
            raise EmptyFileError("Excel file is empty")

        columns = [
            (position, _cell_text(cell).strip())
            for position, cell in enumerate(frame.iloc[0].tolist())
            if not pd.isna(cell)
        ]
        headers = [header for _, header in columns]

        rows: list[ParsedRow] = []
        for values in frame.iloc[1:].itertuples(index=False, name=None):
            row = {
                header: _cell_text(values[position])
                for position, header in columns
                if not pd.isna(values[position])
            }
            if row:
                rows.append(row)
        return headers, rows


TABULAR_PARSERS: tuple[type[TabularParser], ...] = (
    DelimitedTextParser,
    SpreadsheetParser,
)


def get_parser(media_type: str | None) -> TabularParser:
    """Return a parser for *media_type* or raise :class:`UnparseableFileError`."""
    for parser_cls in TABULAR_PARSERS:
        if media_type in parser_cls.media_types:
            return parser_cls()
    raise UnparseableFileError(f"Unsupported file type for parsing: {media_type}")


def parse_tabular(file: UploadedFile, task_type: TaskType) -> list[ParsedRow]:
    """Classify *file* by its declared media type and parse it."""
    logger.info(
        "Parsing file: %s (%s) for task type: %s",
        file.name,
        file.media_type,
        task_type.value,
    )
    return get_parser(file.media_type).parse(file, task_type)


# ---------------------------------------------------------------------------
# Archives
# ---------------------------------------------------------------------------


def is_image_entry(info: zipfile.ZipInfo) -> bool:
    return (
        not info.is_dir()
        and _IMAGE_NAME.search(info.filename) is not None
        and not info.filename.startswith(_MACOS_METADATA_DIR)
    )


@contextmanager
def open_archive_images(file: UploadedFile) -> Iterator[list[ArchiveEntry]]:
    """Open a zip upload and yield its image entries in archive order.

    Entries are read lazily through :meth:`ArchiveEntry.read` and only
    while the context is open.

    Raises:
        ArchiveReadError: the archive cannot be opened.
        NoImageEntriesError: no entry qualifies.
    """
    try:
        zf = zipfile.ZipFile(io.BytesIO(file.data))
    except (zipfile.BadZipFile, OSError, EOFError, RuntimeError) as exc:
        raise ArchiveReadError(str(exc)) from exc

    with zf:
        entries = [
            ArchiveEntry(name=info.filename, load=partial(zf.read, info))
            for info in zf.infolist()
            if is_image_entry(info)
        ]
        if not entries:
            raise NoImageEntriesError()

        logger.info("Found %d images in %s", len(entries), file.name)
        yield entries
