"""Shared test fixtures."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from dispatch_queue.tasks.repository import TaskStore


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "tasks.db"


@pytest.fixture()
def store(db_path: Path) -> Iterator[TaskStore]:
    """Migrated store on a per-test SQLite file."""

    task_store = TaskStore(db_path)
    task_store.init_schema()
    try:
        yield task_store
    finally:
        task_store.close()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "DISPATCH_DB_PATH",
        "DISPATCH_SQLITE_BUSY_TIMEOUT_MS",
        "DISPATCH_DEFAULT_LIST_LIMIT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """The CLI reconfigures the root logger; undo it after each test."""

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
