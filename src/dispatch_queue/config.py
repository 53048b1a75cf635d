"""Runtime configuration for the task store and CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_DB_DIR_NAME = ".dispatch"
DEFAULT_DB_FILE_NAME = "tasks.db"


def default_db_path() -> Path:
    """Per-user database location, ``~/.dispatch/tasks.db``."""

    return Path.home() / DEFAULT_DB_DIR_NAME / DEFAULT_DB_FILE_NAME


@dataclass(slots=True)
class Settings:
    """Application settings."""

    db_path: Path = field(default_factory=default_db_path)
    sqlite_busy_timeout_ms: int = 5_000
    default_list_limit: int = 0

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment; an explicit ``db_path`` wins over the env."""

        env_db_path = os.getenv("DISPATCH_DB_PATH", "").strip()
        if db_path is None:
            db_path = Path(env_db_path).expanduser() if env_db_path else default_db_path()
        settings = cls(
            db_path=db_path,
            sqlite_busy_timeout_ms=_env_int("DISPATCH_SQLITE_BUSY_TIMEOUT_MS", 5_000),
            default_list_limit=_env_int("DISPATCH_DEFAULT_LIST_LIMIT", 0),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """Raise configuration error for out-of-range values."""

        if self.sqlite_busy_timeout_ms <= 0:
            raise ValueError("DISPATCH_SQLITE_BUSY_TIMEOUT_MS must be > 0.")
        if self.default_list_limit < 0:
            raise ValueError("DISPATCH_DEFAULT_LIST_LIMIT must be >= 0.")

    def ensure_db_dir(self) -> Path:
        """Create the database parent directory if missing and return the DB path."""

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        return self.db_path


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {raw!r}") from error
