"""Downloadable sample CSV templates, one per tabular task type."""

from __future__ import annotations

import csv
import io

from afrispeak_tasks.exceptions import TemplateUnavailableError
from afrispeak_tasks.models.task import TaskType

SAMPLE_TEMPLATES: dict[TaskType, list[dict[str, str]]] = {
    # ASR is bulk-imported from a zip of images, not from a table.
    TaskType.ASR: [],
    TaskType.TRANSLATION: [
        {
            "source_text": "Hello, how are you?",
            "task_title": "Greeting translation",
            "task_description": "Translate this greeting to the target language",
            "source_language": "English",
            "target_language": "Akan",
            "domain": "general",
        },
        {
            "source_text": "Welcome to our community.",
            "task_title": "Welcome message",
            "task_description": "Translate this welcome message accurately",
            "source_language": "English",
            "target_language": "Ewe",
            "domain": "general",
        },
        {
            "source_text": "Please wash your hands regularly.",
            "task_title": "Health instruction",
            "task_description": "Translate this health advice clearly",
            "source_language": "English",
            "target_language": "Ga",
            "domain": "health",
        },
    ],
    TaskType.TTS: [
        {
            "text_to_speak": "The quick brown fox jumps over the lazy dog.",
            "task_title": "Pronunciation practice",
            "task_description": "Read this sentence clearly with correct pronunciation",
        },
        {
            "text_to_speak": "Welcome to our language community. "
            "We are happy to have you here.",
            "task_title": "Welcome message",
            "task_description": "Record this welcome message with natural intonation",
        },
    ],
    TaskType.TRANSCRIPTION: [
        {
            "audio_url": "https://example.com/audio1.mp3",
            "task_title": "Market conversation",
            "task_description": "Transcribe this market conversation accurately",
        },
        {
            "audio_url": "https://example.com/audio2.mp3",
            "task_title": "Radio broadcast",
            "task_description": "Transcribe this news broadcast accurately",
        },
    ],
}


def template_filename(task_type: TaskType) -> str:
    return f"{task_type.value}_template.csv"


def render_template(task_type: TaskType) -> str:
    """Return the sample CSV for *task_type*.

    The header line is written bare; every data value is wrapped in
    double quotes with embedded quotes doubled.

    Raises:
        TemplateUnavailableError: the task type has no sample rows.
    """
    samples = SAMPLE_TEMPLATES.get(task_type)
    if not samples:
        raise TemplateUnavailableError(task_type.value)

    headers = list(samples[0])
    buf = io.StringIO()
    buf.write(",".join(headers) + "\n")
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for sample in samples:
        writer.writerow([sample.get(h, "") for h in headers])
    return buf.getvalue()
