from __future__ import annotations

import pytest

from afrispeak_tasks.exceptions import TemplateUnavailableError
from afrispeak_tasks.importer.core.parser import parse_tabular
from afrispeak_tasks.importer.templates import (
    SAMPLE_TEMPLATES,
    render_template,
    template_filename,
)
from afrispeak_tasks.models import TaskType
from tests.conftest import csv_upload


def test_header_line_is_bare_and_values_are_quoted():
    lines = render_template(TaskType.TRANSLATION).splitlines()

    assert lines[0] == (
        "source_text,task_title,task_description,source_language,target_language,domain"
    )
    assert lines[1] == (
        '"Hello, how are you?","Greeting translation",'
        '"Translate this greeting to the target language","English","Akan","general"'
    )
    assert len(lines) == 1 + len(SAMPLE_TEMPLATES[TaskType.TRANSLATION])


def test_embedded_quotes_are_doubled(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setitem(
        SAMPLE_TEMPLATES,
        TaskType.TTS,
        [{"text_to_speak": 'Say "Akwaaba"', "task_title": "Quote"}],
    )
    assert render_template(TaskType.TTS) == 'text_to_speak,task_title\n"Say ""Akwaaba""","Quote"\n'


def test_rendering_is_deterministic():
    assert render_template(TaskType.TTS) == render_template(TaskType.TTS)


@pytest.mark.parametrize(
    "task_type", [TaskType.TRANSLATION, TaskType.TTS, TaskType.TRANSCRIPTION]
)
def test_templates_import_cleanly(task_type: TaskType):
    rows = parse_tabular(csv_upload(render_template(task_type)), task_type)
    assert rows == SAMPLE_TEMPLATES[task_type]


def test_asr_has_no_template():
    with pytest.raises(TemplateUnavailableError, match="asr"):
        render_template(TaskType.ASR)


def test_template_filename():
    assert template_filename(TaskType.TRANSCRIPTION) == "transcription_template.csv"
