"""Unit tests for the task and batch models."""

import subprocess
import sys
from pathlib import Path

import pytest

from afrispeak_tasks.exceptions import InvalidBatchError, TaskImportError
from afrispeak_tasks.models import TaskBatch, TaskType
from tests.conftest import translation_batch

REPO_ROOT = Path(__file__).resolve().parents[2]


class TestTaskBatchValidate:
    def test_valid_translation_batch(self):
        translation_batch().validate()

    def test_missing_target_language(self):
        with pytest.raises(InvalidBatchError, match="Please fill in Batch Name"):
            translation_batch(target_language="").validate()

    def test_identical_languages(self):
        batch = translation_batch(source_language="Akan", target_language="Akan")
        with pytest.raises(InvalidBatchError, match="cannot be the same") as exc_info:
            batch.validate()
        assert isinstance(exc_info.value, TaskImportError)

    def test_validate_in_fresh_interpreter(self):
        code = (
            "from afrispeak_tasks.models.task import TaskBatch, TaskType\n"
            "from afrispeak_tasks.exceptions import InvalidBatchError\n"
            "try:\n"
            "    TaskBatch('', TaskType.TTS, target_language='Akan').validate()\n"
            "except InvalidBatchError:\n"
            "    pass\n"
            "else:\n"
            "    raise SystemExit('validate() did not raise')\n"
        )
        proc = subprocess.run(
            [sys.executable, "-c", code],
            capture_output=True,
            text=True,
            cwd=REPO_ROOT,
            check=False,
        )
        assert proc.returncode == 0, proc.stderr

    def test_same_languages_allowed_for_tts(self):
        TaskBatch("Batch1", TaskType.TTS, target_language="English").validate()
