from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any

from afrispeak_tasks.cli import output as out
from afrispeak_tasks.cli.config import (
    Config,
    config_exists,
    config_path_display,
    load_config,
    save_config,
)

DESCRIPTION = """\
afrispeak-tasks: bulk-create crowdsourcing tasks for African languages

Turn a CSV or Excel sheet of sentences, texts to read aloud, or audio
links into translation, TTS, and transcription tasks, or a zip of
images into ASR image-description tasks.

Start with a template: afrispeak-tasks template translation"""


# ── Infrastructure helpers ──────────────────────────────────────────


def _config_to_dict(cfg: Config) -> dict:
    """Convert CLI Config into the canonical config dict for parse_config."""
    store_config: dict[str, Any] = {}
    if cfg.uses_postgres:
        store_config = {
            "host": cfg.db_host,
            "port": cfg.db_port,
            "database": cfg.db_name,
            "user": cfg.db_user,
            "password": cfg.db_password,
        }

    storage_config: dict[str, Any] = {"base_path": cfg.storage_path}
    if cfg.public_base_url:
        storage_config["public_base_url"] = cfg.public_base_url

    return {
        "storage": {"provider": "disk", "config": storage_config},
        "store": {"provider": cfg.store_provider, "config": store_config},
    }


def _build_importer(cfg: Config):
    from afrispeak_tasks.config import parse_config
    from afrispeak_tasks.identity import StaticIdentity
    from afrispeak_tasks.importer import BulkTaskImporter

    storage, store = parse_config(_config_to_dict(cfg))
    importer = BulkTaskImporter(
        store=store,
        storage=storage,
        identity=StaticIdentity(cfg.user_id),
    )
    return importer, store


def _task_types() -> list[str]:
    from afrispeak_tasks.models import TaskType

    return [t.value for t in TaskType]


def _require_user(cfg: Config) -> None:
    """Exit with guidance if no user id is configured."""
    if cfg.user_id:
        return
    out.error("You must be logged in to create tasks.")
    out.info("Set a user id with one of:")
    out.next_step("afrispeak-tasks config set-user <id>")
    out.next_step("export AFRISPEAK_USER_ID=<id>")
    sys.exit(1)


def _require_persistent(cfg: Config, command: str) -> None:
    """Exit with guidance if the store is not PostgreSQL."""
    if cfg.uses_postgres:
        return
    out.error(f"'{command}' requires PostgreSQL for persistent storage.")
    print()
    out.info("To set up PostgreSQL:")
    out.next_step("afrispeak-tasks config set-store postgres")
    sys.exit(1)


# ── config ──────────────────────────────────────────────────────────


async def cmd_config_show(args: argparse.Namespace) -> None:
    """Display current configuration."""
    cfg = load_config()

    out.header(f"Configuration ({config_path_display()})")
    print()

    out.kv("User id", cfg.user_id or out.dim("not set"))
    if cfg.uses_postgres:
        out.kv("Store", f"postgres ({cfg.db_host}:{cfg.db_port}/{cfg.db_name})")
    else:
        out.kv("Store", "memory (in-memory, no persistence)")
    out.kv("Data directory", cfg.data_dir)
    out.kv("Public base URL", cfg.public_base_url or out.dim("not set"))

    print()
    out.info("To change settings:")
    out.next_step("afrispeak-tasks config set-user <id>", "change the task creator id")
    out.next_step("afrispeak-tasks config set-store postgres", "use PostgreSQL")
    out.next_step("afrispeak-tasks config set-store memory", "switch to in-memory")
    print()


async def cmd_config_set_user(args: argparse.Namespace) -> None:
    cfg = load_config() if config_exists() else Config()
    cfg.user_id = args.user_id.strip()
    path = save_config(cfg)
    out.success(f"User id saved to {path}")


async def cmd_config_set_store(args: argparse.Namespace) -> None:
    """Configure the store backend (postgres or memory)."""
    cfg = load_config() if config_exists() else Config()
    cfg.store_provider = args.backend
    path = save_config(cfg)
    if args.backend == "memory":
        out.success(f"Store set to in-memory. Config written to {path}")
        out.info("Imported tasks will only live for the duration of one command.")
        return
    out.success(f"Store set to postgres. Config written to {path}")
    out.info("Connection settings come from the [database] section or POSTGRES_* env vars.")


async def cmd_config_path(args: argparse.Namespace) -> None:
    print(config_path_display())


# ── import ──────────────────────────────────────────────────────────


async def cmd_import(args: argparse.Namespace) -> None:
    from afrispeak_tasks.importer import BulkTaskForm
    from afrispeak_tasks.importer.core import (
        ChunkInsertError,
        TaskImportError,
        UploadedFile,
        UploadProgress,
    )
    from afrispeak_tasks.models import TaskPriority

    cfg = load_config()
    _require_user(cfg)

    path = Path(args.path)
    if not path.exists():
        out.error(f"File not found: {path}")
        sys.exit(1)

    importer, store = _build_importer(cfg)
    form = BulkTaskForm(importer=importer)

    print()
    out.header(f"Importing {args.type} tasks")
    out.kv("File", path)
    out.kv("Batch", args.batch)
    out.kv("Language", args.language)
    print()

    def on_chunk(number: int, total: int, size: int) -> None:
        out.info(f"Inserting batch {number} of {total} ({size} tasks)...")

    def on_progress(progress: UploadProgress) -> None:
        out.upload_progress(progress)

    async with store:
        await store.init()
        try:
            form.select_task_type(args.type)
            form.batch_name = args.batch
            form.language = args.language
            if args.source_language:
                form.source_language = args.source_language
            form.priority = TaskPriority(args.priority)
            form.select_file(UploadedFile.from_path(path, media_type=args.media_type))

            result = await form.submit(on_progress=on_progress, on_chunk=on_chunk)
        except ChunkInsertError as exc:
            out.end_progress()
            out.error(f"Bulk task creation failed: {exc.message}")
            out.warn(f"{exc.inserted_count} tasks from earlier batches were kept.")
            sys.exit(1)
        except TaskImportError as exc:
            out.end_progress()
            out.error(f"Bulk task creation failed: {exc.message}")
            sys.exit(1)

    out.end_progress()
    out.import_summary(result)
    print()


# ── template ────────────────────────────────────────────────────────


async def cmd_template(args: argparse.Namespace) -> None:
    from afrispeak_tasks.importer import render_template, template_filename
    from afrispeak_tasks.importer.core import TemplateUnavailableError
    from afrispeak_tasks.models import TaskType

    task_type = TaskType(args.type)
    try:
        csv_text = render_template(task_type)
    except TemplateUnavailableError as exc:
        out.error(exc.message)
        out.info("ASR tasks are imported from a .zip of images instead.")
        sys.exit(1)

    if args.out == "-":
        sys.stdout.write(csv_text)
        return

    if args.out:
        dest = Path(args.out)
    else:
        cfg = load_config()
        cfg.ensure_dirs()
        dest = cfg.templates_dir / template_filename(task_type)
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(csv_text, encoding="utf-8")
    out.success(f"Downloaded sample {task_type.value} template to {dest}")


# ── tasks ───────────────────────────────────────────────────────────


async def cmd_tasks_list(args: argparse.Namespace) -> None:
    from afrispeak_tasks.models import TaskStatus, TaskType

    cfg = load_config()
    _require_persistent(cfg, "tasks list")
    _, store = _build_importer(cfg)

    async with store:
        await store.init()
        tasks = await store.list_tasks(
            task_type=TaskType(args.type) if args.type else None,
            status=TaskStatus(args.status) if args.status else None,
            batch_name=args.batch,
        )

    if not tasks:
        out.info("No tasks found.")
        return

    out.header(f"Tasks ({len(tasks):,})")
    print()
    for task in tasks[: args.limit]:
        title = task.content.get("task_title", "")
        out.info(
            f"{out.dim(f'#{task.id}')}  {task.type.value:<13} "
            f"{task.language:<8} {task.priority.value:<6} {title}"
        )
    if len(tasks) > args.limit:
        out.info(out.dim(f"... and {len(tasks) - args.limit:,} more"))
    print()


async def cmd_languages(args: argparse.Namespace) -> None:
    from afrispeak_tasks.models import AVAILABLE_LANGUAGES

    for language in AVAILABLE_LANGUAGES:
        print(language)


# ── Parser ──────────────────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    task_types = _task_types()

    parser = argparse.ArgumentParser(
        prog="afrispeak-tasks",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  afrispeak-tasks template translation         "
            "Download a sample CSV\n"
            "  afrispeak-tasks import rows.csv --type translation \\\n"
            "      --batch Batch1 --language Akan           "
            "Create translation tasks\n"
            "  afrispeak-tasks import images.zip --type asr \\\n"
            "      --batch Photos --language Ewe            "
            "Create ASR tasks from images\n"
            "  afrispeak-tasks tasks list --batch Batch1    "
            "Browse imported tasks\n"
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress logs (parsing, row exclusions, batches)",
    )
    sub = parser.add_subparsers(dest="command", title="commands")

    p_import = sub.add_parser("import", help="Create tasks from a CSV, Excel, or zip file")
    p_import.add_argument("path", help="File to import")
    p_import.add_argument("--type", required=True, choices=task_types, help="Task type")
    p_import.add_argument("--batch", required=True, help="Batch name")
    p_import.add_argument(
        "--language",
        required=True,
        help="Task language (target language for translation)",
    )
    p_import.add_argument(
        "--source-language",
        help="Source language for translation tasks (default: English)",
    )
    p_import.add_argument(
        "--priority",
        default="medium",
        choices=["low", "medium", "high"],
        help="Priority for every task in the batch",
    )
    p_import.add_argument(
        "--media-type",
        help="Declared media type (default: guessed from the file extension)",
    )

    p_tpl = sub.add_parser("template", help="Download a sample CSV template")
    p_tpl.add_argument("type", choices=task_types, help="Task type")
    p_tpl.add_argument(
        "--out",
        metavar="PATH",
        help="Output file path ('-' for stdout)",
    )

    p_tasks = sub.add_parser("tasks", help="Inspect imported tasks (requires PostgreSQL)")
    tasks_sub = p_tasks.add_subparsers(dest="tasks_command", title="tasks commands")
    p_list = tasks_sub.add_parser("list", help="List tasks")
    p_list.add_argument("--type", choices=task_types, help="Filter by task type")
    p_list.add_argument("--batch", help="Filter by batch name")
    p_list.add_argument(
        "--status",
        choices=["pending", "assigned", "completed", "archived"],
        help="Filter by status",
    )
    p_list.add_argument("--limit", type=int, default=50, help="Rows to show")

    sub.add_parser("languages", help="List the languages offered to operators")

    p_cfg = sub.add_parser("config", help="View and change settings")
    cfg_sub = p_cfg.add_subparsers(dest="config_command", title="config commands")
    cfg_sub.add_parser("show", help="Show current settings")
    p_cfg_user = cfg_sub.add_parser("set-user", help="Set the task creator id")
    p_cfg_user.add_argument("user_id", help="User id stamped on created tasks")
    p_cfg_store = cfg_sub.add_parser("set-store", help="Configure the store backend")
    p_cfg_store.add_argument(
        "backend",
        choices=["postgres", "memory"],
        help="Store backend to use",
    )
    cfg_sub.add_parser("path", help="Print config file location")

    return parser


# ── Dispatch ────────────────────────────────────────────────────────

_CommandHandler = Callable[[argparse.Namespace], Coroutine[Any, Any, None]]

_COMMAND_MAP: dict[str, _CommandHandler] = {
    "import": cmd_import,
    "template": cmd_template,
    "languages": cmd_languages,
}

_TASKS_MAP: dict[str, _CommandHandler] = {
    "list": cmd_tasks_list,
}

_CONFIG_MAP: dict[str, _CommandHandler] = {
    "show": cmd_config_show,
    "set-user": cmd_config_set_user,
    "set-store": cmd_config_set_store,
    "path": cmd_config_path,
}


def main() -> None:
    import logging

    parser = _build_parser()
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="  %(name)s: %(message)s",
        )
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    if not args.command:
        parser.print_help()
        return

    if args.command == "tasks":
        if not args.tasks_command:
            parser.parse_args(["tasks", "--help"])
            return
        handler = _TASKS_MAP.get(args.tasks_command)
    elif args.command == "config":
        if not args.config_command:
            parser.parse_args(["config", "--help"])
            return
        handler = _CONFIG_MAP.get(args.config_command)
    else:
        handler = _COMMAND_MAP.get(args.command)

    if handler is None:
        parser.print_help()
        return

    try:
        asyncio.run(handler(args))
    except KeyboardInterrupt:
        print()
        sys.exit(130)


if __name__ == "__main__":
    main()
