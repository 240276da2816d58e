"""Type-specific ``Task.content`` documents."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

DEFAULT_DOMAIN = "general"


class TaskContent(BaseModel):
    task_title: str
    task_description: str
    batch_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class TranslationContent(TaskContent):
    source_text: str
    source_language: str
    target_language: str
    domain: str = DEFAULT_DOMAIN


class TtsContent(TaskContent):
    text_to_speak: str


class TranscriptionContent(TaskContent):
    audio_url: str


class AsrContent(TaskContent):
    image_url: str
