from __future__ import annotations

import asyncio

import pytest

from afrispeak_tasks.identity import StaticIdentity
from afrispeak_tasks.importer import BulkTaskForm, BulkTaskImporter
from afrispeak_tasks.importer.core import (
    ImportInProgressError,
    ImportState,
    InvalidBatchError,
    MissingHeadersError,
    UnparseableFileError,
)
from afrispeak_tasks.importer.core.parser import XLSX_MEDIA_TYPE, UploadedFile
from afrispeak_tasks.models import Task, TaskPriority, TaskType
from afrispeak_tasks.storage.disk import DiskStorage
from afrispeak_tasks.store.memory import InMemoryTaskStore
from tests.conftest import PNG_BYTES, TRANSLATION_CSV, USER_ID, csv_upload, zip_upload


class BlockingStore(InMemoryTaskStore):
    """Holds every insert until :attr:`release` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def insert_tasks(self, tasks: list[Task]) -> list[Task]:
        self.entered.set()
        await self.release.wait()
        return await super().insert_tasks(tasks)


def _fill_translation(form: BulkTaskForm) -> None:
    form.select_task_type(TaskType.TRANSLATION)
    form.batch_name = "Batch1"
    form.language = "Akan"
    form.select_file(csv_upload(TRANSLATION_CSV))


class TestSelections:
    def test_changing_type_resets_language(self, form: BulkTaskForm):
        form.select_task_type(TaskType.TTS)
        form.language = "Ga"
        form.select_task_type("translation")

        assert form.task_type == TaskType.TRANSLATION
        assert form.language == ""
        assert form.source_language == "English"

    def test_text_tasks_accept_csv_and_excel(self, form: BulkTaskForm):
        form.select_task_type(TaskType.TTS)
        form.select_file(csv_upload("text_to_speak\nHi\n"))
        assert form.file is not None

        form.select_file(UploadedFile(name="t.xlsx", data=b"", media_type=XLSX_MEDIA_TYPE))
        assert form.file.name == "t.xlsx"

    def test_text_tasks_reject_zip(self, form: BulkTaskForm):
        form.select_task_type(TaskType.TRANSCRIPTION)
        form.select_file(csv_upload("audio_url\nhttps://a\n"))

        with pytest.raises(UnparseableFileError, match="Please upload a CSV or Excel file"):
            form.select_file(zip_upload({"a.png": PNG_BYTES}))

        assert form.file is None

    def test_asr_accepts_zip_name_with_unexpected_media_type(
        self, form: BulkTaskForm, caplog: pytest.LogCaptureFixture
    ):
        form.select_task_type(TaskType.ASR)
        with caplog.at_level("WARNING"):
            form.select_file(
                zip_upload({"a.png": PNG_BYTES}, media_type="application/octet-stream")
            )

        assert form.file is not None
        assert "ASR upload: detected file type" in caplog.text

    def test_asr_rejects_non_zip(self, form: BulkTaskForm):
        form.select_task_type(TaskType.ASR)
        with pytest.raises(UnparseableFileError, match="Please upload a ZIP file"):
            form.select_file(csv_upload("a,b\n1,2\n", name="images.csv"))
        assert form.file is None

    def test_clearing_the_file(self, form: BulkTaskForm):
        _fill_translation(form)
        form.select_file(None)
        assert form.file is None

    def test_to_batch_requires_every_field(self, form: BulkTaskForm):
        form.select_task_type(TaskType.TTS)
        form.batch_name = "Voices"
        with pytest.raises(InvalidBatchError):
            form.to_batch()


class TestSubmit:
    async def test_tabular_success_resets_form(
        self, form: BulkTaskForm, store: InMemoryTaskStore
    ):
        _fill_translation(form)
        form.priority = TaskPriority.HIGH

        result = await form.submit()

        assert result.inserted_count == 3
        assert all(t.priority == TaskPriority.HIGH for t in await store.list_tasks())
        assert form.file is None
        assert form.batch_name == ""
        assert form.task_type is None
        assert form.language == ""
        assert form.priority == TaskPriority.MEDIUM
        assert not form.is_submitting

    async def test_asr_success_keeps_type_and_language(self, form: BulkTaskForm):
        form.select_task_type(TaskType.ASR)
        form.batch_name = "Photos"
        form.language = "Ewe"
        form.select_file(zip_upload({"a.png": PNG_BYTES}))

        result = await form.submit()

        assert result.inserted_count == 1
        assert form.progress is not None
        assert form.progress.state == ImportState.COMPLETE
        assert form.task_type == TaskType.ASR
        assert form.language == "Ewe"
        assert form.batch_name == ""
        assert form.file is None

    async def test_failure_keeps_selections(self, form: BulkTaskForm):
        form.select_task_type(TaskType.TRANSLATION)
        form.batch_name = "Batch1"
        form.language = "Akan"
        form.select_file(csv_upload("title\nHello\n"))

        with pytest.raises(MissingHeadersError):
            await form.submit()

        assert form.file is not None
        assert form.batch_name == "Batch1"
        assert not form.is_submitting

    async def test_rejects_second_submit_while_running(self, storage: DiskStorage):
        store = BlockingStore()
        importer = BulkTaskImporter(store=store, storage=storage, identity=StaticIdentity(USER_ID))
        form = BulkTaskForm(importer=importer)
        _fill_translation(form)

        first = asyncio.create_task(form.submit())
        await store.entered.wait()
        assert form.is_submitting

        with pytest.raises(ImportInProgressError):
            await form.submit()

        store.release.set()
        result = await first

        assert result.inserted_count == 3
        assert await store.count_tasks() == 3
        assert not form.is_submitting
