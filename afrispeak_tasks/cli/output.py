"""Console output for the afrispeak-tasks CLI.

Colour is used only when stdout is a terminal and ``NO_COLOR`` is unset.
Import progress redraws a single line on a terminal and prints one line
per update otherwise.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from afrispeak_tasks.importer.core import ImportResult, UploadProgress

_SGR = {
    "bold": "1",
    "dim": "2",
    "red": "31",
    "green": "32",
    "yellow": "33",
    "cyan": "36",
}

# status kind -> (marker, colour)
_MARKERS = {
    "ok": ("✓", "green"),
    "warn": ("!", "yellow"),
    "fail": ("✗", "red"),
}


def _is_tty() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def use_color() -> bool:
    return not os.environ.get("NO_COLOR") and _is_tty()


def paint(text: str, style: str) -> str:
    """Wrap *text* in the SGR sequence for *style* when colour is on."""
    if not use_color():
        return text
    return f"\033[{_SGR[style]}m{text}\033[0m"


def dim(text: str) -> str:
    return paint(text, "dim")


def _status(kind: str, msg: str) -> None:
    marker, colour = _MARKERS[kind]
    print(f"  {paint(marker, colour)} {msg}")


def success(msg: str) -> None:
    _status("ok", msg)


def warn(msg: str) -> None:
    _status("warn", msg)


def error(msg: str) -> None:
    _status("fail", msg)


def header(title: str) -> None:
    print(f"\n{paint(title, 'bold')}")


def info(msg: str) -> None:
    print(f"  {msg}")


def kv(key: str, value: object, indent: int = 2) -> None:
    print(f"{' ' * indent}{dim(f'{key}:')}  {value}")


def next_step(command: str, description: str = "") -> None:
    """Suggest a follow-up command."""
    line = f"    {paint(command, 'cyan')}"
    if description:
        line += f"  {dim(description)}"
    print(line)


# ── Import reporting ────────────────────────────────────────────────


def upload_progress(progress: UploadProgress) -> None:
    """Show the latest ASR upload status."""
    counter = f"[{progress.processed_files}/{progress.total_files}]"
    if progress.errors:
        counter += f" {paint(f'{progress.errors} failed', 'red')}"
    if _is_tty():
        print(f"\r  {dim(counter)} {progress.status_message}\033[K", end="", flush=True)
    else:
        print(f"  {counter} {progress.status_message}")


def end_progress() -> None:
    """Finish a redrawn progress line."""
    if _is_tty():
        print()


def import_summary(result: ImportResult) -> None:
    success(
        f"Successfully created {result.inserted_count:,} tasks "
        f"in batch '{result.batch_name}'"
    )
    if result.excluded_count:
        warn(f"{result.excluded_count} rows skipped:")
        for reason in result.exclusions:
            info(f"  {reason}")
    if result.error_count:
        warn(f"{result.error_count} files failed:")
        for name in result.failed_entries:
            info(f"  {name}")
