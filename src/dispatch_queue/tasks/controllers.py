"""Controllers for task CLI commands."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from dispatch_queue.config import Settings
from dispatch_queue.tasks.errors import ErrorKind, TaskStoreError
from dispatch_queue.tasks.models import TaskCreate, TaskView
from dispatch_queue.tasks.repository import TaskStore


@dataclass(slots=True)
class TaskCreateCommand:
    """CLI input for task creation."""

    db_path: Path | None
    title: str
    description: str | None
    priority: str | None


@dataclass(slots=True)
class TaskListCommand:
    """CLI input for task listing."""

    db_path: Path | None
    status: str | None
    limit: int | None


@dataclass(slots=True)
class TaskShowCommand:
    """CLI input for single task lookup."""

    db_path: Path | None
    task_id: str


@dataclass(slots=True)
class TaskClaimCommand:
    db_path: Path | None
    task_id: str


@dataclass(slots=True)
class TaskCompleteCommand:
    db_path: Path | None
    task_id: str
    result: str | None


@dataclass(slots=True)
class TaskCommandResult:
    """Rendered output plus success flag for the CLI layer."""

    lines: list[str]
    success: bool = True


class TaskCliController:
    """Coordinates store lifecycle and JSON rendering for task commands.

    Configuration, domain and storage failures are turned into an unsuccessful
    result whose single line is the error message; the CLI decides the exit code.
    """

    def create(self, command: TaskCreateCommand) -> TaskCommandResult:
        def action(store: TaskStore, settings: Settings) -> TaskCommandResult:
            task = store.create_task(
                TaskCreate(
                    title=command.title,
                    description=command.description,
                    priority=command.priority,
                ),
            )
            return TaskCommandResult(lines=[render_task(task)])

        return self._run(command.db_path, action)

    def list_tasks(self, command: TaskListCommand) -> TaskCommandResult:
        def action(store: TaskStore, settings: Settings) -> TaskCommandResult:
            limit = command.limit if command.limit is not None else settings.default_list_limit
            tasks = store.list_tasks(status=command.status, limit=limit)
            return TaskCommandResult(lines=[render_tasks(tasks)])

        return self._run(command.db_path, action)

    def show(self, command: TaskShowCommand) -> TaskCommandResult:
        def action(store: TaskStore, settings: Settings) -> TaskCommandResult:
            task = store.get_task(command.task_id)
            if task is None:
                return TaskCommandResult(
                    lines=[f"Task not found: {command.task_id}"],
                    success=False,
                )
            return TaskCommandResult(lines=[render_task(task)])

        return self._run(command.db_path, action)

    def claim(self, command: TaskClaimCommand) -> TaskCommandResult:
        def action(store: TaskStore, settings: Settings) -> TaskCommandResult:
            return TaskCommandResult(lines=[render_task(store.claim_task(command.task_id))])

        return self._run(command.db_path, action)

    def complete(self, command: TaskCompleteCommand) -> TaskCommandResult:
        def action(store: TaskStore, settings: Settings) -> TaskCommandResult:
            task = store.complete_task(command.task_id, result=command.result)
            return TaskCommandResult(lines=[render_task(task)])

        return self._run(command.db_path, action)

    def _run(
        self,
        db_path: Path | None,
        action: Callable[[TaskStore, Settings], TaskCommandResult],
    ) -> TaskCommandResult:
        try:
            settings = Settings.from_env(db_path=db_path)
        except ValueError as error:
            return TaskCommandResult(lines=[f"Invalid configuration: {error}"], success=False)
        try:
            with open_task_store(settings) as store:
                return action(store, settings)
        except TaskStoreError as error:
            return _failure(error)


def render_task(task: TaskView) -> str:
    """Render one task as indented JSON text."""

    return json.dumps(task.to_dict(), indent=2, ensure_ascii=False)


def render_tasks(tasks: list[TaskView]) -> str:
    return json.dumps([task.to_dict() for task in tasks], indent=2, ensure_ascii=False)


@contextmanager
def open_task_store(settings: Settings) -> Iterator[TaskStore]:
    """Open a migrated store for the configured database and close it afterwards."""

    store = TaskStore(
        db_path=settings.ensure_db_dir(),
        sqlite_busy_timeout_ms=settings.sqlite_busy_timeout_ms,
    )
    try:
        yield store.init_schema()
    finally:
        store.close()


def _failure(error: TaskStoreError) -> TaskCommandResult:
    prefix = "Storage failure: " if error.kind is ErrorKind.STORAGE else ""
    return TaskCommandResult(lines=[f"{prefix}{error}"], success=False)
