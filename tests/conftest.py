from __future__ import annotations

import io
import zipfile
from pathlib import Path

import pytest

from afrispeak_tasks.identity import StaticIdentity
from afrispeak_tasks.importer import BulkTaskForm, BulkTaskImporter
from afrispeak_tasks.importer.core import UploadedFile
from afrispeak_tasks.importer.core.parser import CSV_MEDIA_TYPE
from afrispeak_tasks.models import TaskBatch, TaskType
from afrispeak_tasks.storage.disk import DiskStorage
from afrispeak_tasks.store.memory import InMemoryTaskStore

USER_ID = "admin-1"

# Smallest byte strings that carry an image extension; the importer
# never decodes them.
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"
JPEG_BYTES = b"\xff\xd8\xff\xe0fake"

TRANSLATION_CSV = (
    "source_text,task_title,task_description,domain\n"
    "Hello,Greeting,Translate greeting,general\n"
    "Good morning,,,\n"
    "Thank you,Thanks,,health\n"
)


def build_zip(
    files: dict[str, bytes | str],
    compression: int = zipfile.ZIP_DEFLATED,
) -> bytes:
    """Create an in-memory zip archive from a dict of {path: content}."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression) as zf:
        for name, data in files.items():
            if isinstance(data, str):
                data = data.encode("utf-8")
            zf.writestr(name, data)
    return buf.getvalue()


CORRUPT_PAYLOAD = b"BADPAYLOAD-0123456789"


def zip_with_corrupt_entry(good_name: str, bad_name: str) -> bytes:
    """A stored (uncompressed) zip where *bad_name* fails its CRC check."""
    data = build_zip(
        {good_name: PNG_BYTES, bad_name: CORRUPT_PAYLOAD},
        compression=zipfile.ZIP_STORED,
    )
    assert data.count(CORRUPT_PAYLOAD) == 1
    return data.replace(CORRUPT_PAYLOAD, CORRUPT_PAYLOAD[::-1])


def csv_upload(text: str, name: str = "tasks.csv") -> UploadedFile:
    return UploadedFile(name=name, data=text.encode("utf-8"), media_type=CSV_MEDIA_TYPE)


def zip_upload(
    files: dict[str, bytes | str],
    name: str = "images.zip",
    media_type: str | None = "application/zip",
) -> UploadedFile:
    return UploadedFile(name=name, data=build_zip(files), media_type=media_type)


def translation_batch(**overrides: object) -> TaskBatch:
    values: dict = {
        "batch_name": "Batch1",
        "task_type": TaskType.TRANSLATION,
        "target_language": "Akan",
        "source_language": "English",
    }
    values.update(overrides)
    return TaskBatch(**values)


@pytest.fixture()
def store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@pytest.fixture()
def storage(tmp_path: Path) -> DiskStorage:
    return DiskStorage(
        base_path=str(tmp_path / "storage"),
        public_base_url="https://cdn.example.com/task-images",
    )


@pytest.fixture()
def importer(store: InMemoryTaskStore, storage: DiskStorage) -> BulkTaskImporter:
    ticks = iter(range(1_700_000_000_000, 1_700_000_100_000))
    return BulkTaskImporter(
        store=store,
        storage=storage,
        identity=StaticIdentity(USER_ID),
        clock=lambda: next(ticks),
    )


@pytest.fixture()
def form(importer: BulkTaskImporter) -> BulkTaskForm:
    return BulkTaskForm(importer=importer)
