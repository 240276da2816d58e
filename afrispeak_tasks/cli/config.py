"""Settings for the afrispeak-tasks CLI.

Settings live in a TOML file, by default
``~/.config/afrispeak-tasks/config.toml``; point ``AFRISPEAK_TASKS_CONFIG``
elsewhere to use another file.  Environment variables listed in
:data:`_SETTINGS` win over the file.

Layout under ``data_dir``::

    data/
      storage/     <- uploaded ASR images, keyed by user
      templates/   <- downloaded sample CSVs
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_CONFIG_HOME = Path("~/.config/afrispeak-tasks").expanduser()


def _config_path() -> Path:
    override = os.environ.get("AFRISPEAK_TASKS_CONFIG")
    if override:
        return Path(override).expanduser()
    return _CONFIG_HOME / "config.toml"


@dataclass
class Config:
    # Stamped as created_by on every imported task
    user_id: str = ""

    # "memory" keeps tasks for one command only; "postgres" persists them
    store_provider: str = "memory"

    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "afrispeak"
    db_user: str = "postgres"
    db_password: str = "postgres"

    data_dir: str = "./data"

    # Where the storage directory is served from, if anywhere
    public_base_url: str = ""

    @property
    def storage_path(self) -> str:
        return str(Path(self.data_dir, "storage"))

    @property
    def templates_dir(self) -> Path:
        return Path(self.data_dir, "templates")

    @property
    def uses_postgres(self) -> bool:
        return self.store_provider == "postgres"

    def ensure_dirs(self) -> None:
        for directory in (Path(self.storage_path), self.templates_dir):
            directory.mkdir(parents=True, exist_ok=True)


# (TOML section, TOML key, Config attribute, env var or None)
_SETTINGS: tuple[tuple[str, str, str, str | None], ...] = (
    ("user", "id", "user_id", "AFRISPEAK_USER_ID"),
    ("store", "provider", "store_provider", "AFRISPEAK_TASKS_STORE"),
    ("database", "host", "db_host", "POSTGRES_HOST"),
    ("database", "port", "db_port", "POSTGRES_PORT"),
    ("database", "name", "db_name", "POSTGRES_DB"),
    ("database", "user", "db_user", "POSTGRES_USER"),
    ("database", "password", "db_password", "POSTGRES_PASSWORD"),
    ("data", "dir", "data_dir", None),
    ("data", "public_base_url", "public_base_url", None),
)


def _coerce(cfg: Config, attr: str, value: Any) -> Any:
    return int(value) if isinstance(getattr(cfg, attr), int) else str(value)


def load_config() -> Config:
    """Read the config file (if any), then apply environment overrides."""
    cfg = Config()
    path = _config_path()
    data: dict[str, Any] = {}
    if path.exists():
        with path.open("rb") as f:
            data = tomllib.load(f)

    for section, key, attr, env_var in _SETTINGS:
        value = data.get(section, {}).get(key)
        if env_var and env_var in os.environ:
            value = os.environ[env_var]
        if value is not None:
            setattr(cfg, attr, _coerce(cfg, attr, value))
    return cfg


def _toml_value(value: Any) -> str:
    if isinstance(value, int):
        return str(value)
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def save_config(cfg: Config) -> Path:
    """Write *cfg* to the config file and return its path.

    The ``[database]`` section is only written for the postgres store.
    """
    sections: dict[str, list[str]] = {}
    for section, key, attr, _ in _SETTINGS:
        if section == "database" and not cfg.uses_postgres:
            continue
        sections.setdefault(section, []).append(
            f"{key} = {_toml_value(getattr(cfg, attr))}"
        )

    text = "\n\n".join(
        "\n".join([f"[{name}]", *entries]) for name, entries in sections.items()
    )

    path = _config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text + "\n", encoding="utf-8")
    return path


def config_exists() -> bool:
    return _config_path().exists()


def config_path_display() -> str:
    return str(_config_path())
