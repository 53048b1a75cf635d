"""Persistent task store backed by SQLModel + SQLite."""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import Any
from uuid import uuid4

from alembic.util import CommandError
from sqlalchemy import func, literal_column
from sqlalchemy import update as sa_update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from dispatch_queue.storage.alembic_runner import upgrade_head
from dispatch_queue.storage.common import (
    build_sqlite_engine,
    from_db_timestamp,
    to_db_timestamp,
    utc_now,
)
from dispatch_queue.storage.sqlmodel_models import TaskRecord
from dispatch_queue.tasks.errors import (
    InvalidTransitionError,
    StorageError,
    TaskNotFoundError,
    ValidationError,
)
from dispatch_queue.tasks.models import (
    NEXT_STATUS,
    StatusFilter,
    TaskCreate,
    TaskPriority,
    TaskStatus,
    TaskView,
)

logger = logging.getLogger(__name__)


class TaskStore:
    """Task persistence facade backed by SQLModel + SQLite.

    Each operation runs in its own short-lived session on a ``NullPool``
    engine, so one store may be shared between threads and several stores
    (or processes) may point at the same database file.
    """

    def __init__(self, db_path: Path, *, sqlite_busy_timeout_ms: int = 5_000) -> None:
        self.db_path = db_path
        self.sqlite_busy_timeout_ms = sqlite_busy_timeout_ms
        self.engine = build_sqlite_engine(
            db_path=db_path,
            busy_timeout_ms=sqlite_busy_timeout_ms,
        )
        self._schema_lock = threading.Lock()
        self._schema_ready = False

    def __enter__(self) -> TaskStore:
        return self.init_schema()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close underlying DB resources."""

        self.engine.dispose()

    def init_schema(self) -> TaskStore:
        """Run schema migrations once; later calls return the same ready store."""

        with self._schema_lock:
            if self._schema_ready:
                return self
            with _storage_errors("init_schema"):
                upgrade_head(self.db_path)
            self._schema_ready = True
        logger.info("TaskStore ready db=%s", self.db_path)
        return self

    def create_task(self, payload: TaskCreate) -> TaskView:
        """Insert a new pending task and return it as stored."""

        if not payload.title or not payload.title.strip():
            raise ValidationError("title is required")
        priority = _parse_priority(payload.priority)

        task_id = str(uuid4())
        now = to_db_timestamp(utc_now())
        with _storage_errors("create", task_id=task_id), Session(self.engine) as session:
            latest = session.exec(select(func.max(col(TaskRecord.created_at)))).one()
            row = TaskRecord(
                id=task_id,
                title=payload.title,
                description=payload.description or None,
                priority=priority.value,
                status=TaskStatus.PENDING.value,
                created_at=max(now, latest) if latest is not None else now,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            task = _to_task_view(row)

        logger.info("Task created id=%s priority=%s", task.id, task.priority.value)
        return task

    def list_tasks(
        self,
        *,
        status: StatusFilter | str | None = None,
        limit: int | None = None,
    ) -> list[TaskView]:
        """List tasks newest first, optionally filtered by status and capped by limit."""

        target = _parse_status_filter(status).as_status()
        statement = select(TaskRecord)
        if target is not None:
            statement = statement.where(TaskRecord.status == target.value)
        statement = statement.order_by(
            col(TaskRecord.created_at).desc(),
            literal_column("rowid").desc(),
        )
        if limit is not None and limit > 0:
            statement = statement.limit(limit)

        with _storage_errors("list"), Session(self.engine) as session:
            rows = session.exec(statement).all()
            return [_to_task_view(row) for row in rows]

    def count_tasks(self, *, status: StatusFilter | str | None = None) -> int:
        """Number of tasks matching a status filter."""

        target = _parse_status_filter(status).as_status()
        statement = select(func.count()).select_from(TaskRecord)
        if target is not None:
            statement = statement.where(TaskRecord.status == target.value)
        with _storage_errors("count"), Session(self.engine) as session:
            return int(session.exec(statement).one())

    def get_task(self, task_id: str) -> TaskView | None:
        """Return the task, or ``None`` when no task has this id."""

        with _storage_errors("get", task_id=task_id), Session(self.engine) as session:
            row = session.exec(select(TaskRecord).where(TaskRecord.id == task_id)).one_or_none()
            if row is None:
                return None
            return _to_task_view(row)

    def claim_task(self, task_id: str) -> TaskView:
        """Mark a pending task as active."""

        now = to_db_timestamp(utc_now())
        task = self._transition(
            task_id=task_id,
            expected=TaskStatus.PENDING,
            values={"claimed_at": now},
        )
        logger.info("Task claimed id=%s", task_id)
        return task

    def complete_task(self, task_id: str, result: str | None = None) -> TaskView:
        """Mark an active task as done and record its result."""

        now = to_db_timestamp(utc_now())
        task = self._transition(
            task_id=task_id,
            expected=TaskStatus.ACTIVE,
            values={"completed_at": now, "result": result or None},
        )
        logger.info("Task completed id=%s has_result=%s", task_id, task.result is not None)
        return task

    def _transition(
        self,
        *,
        task_id: str,
        expected: TaskStatus,
        values: dict[str, Any],
    ) -> TaskView:
        target = NEXT_STATUS[expected]
        operation = f"transition to {target.value}"
        with _storage_errors(operation, task_id=task_id), Session(self.engine) as session:
            result = session.exec(
                sa_update(TaskRecord)
                .where(
                    col(TaskRecord.id) == task_id,
                    col(TaskRecord.status) == expected.value,
                )
                .values(status=target.value, **values),
            )
            if result.rowcount != 1:
                session.rollback()
                current = session.exec(
                    select(TaskRecord).where(TaskRecord.id == task_id),
                ).one_or_none()
                if current is None:
                    raise TaskNotFoundError(task_id)
                logger.warning(
                    "Rejected transition id=%s status=%s expected=%s",
                    task_id,
                    current.status,
                    expected.value,
                )
                raise InvalidTransitionError(
                    task_id,
                    current_status=TaskStatus(current.status),
                    expected_status=expected,
                )
            session.commit()

            updated = session.exec(select(TaskRecord).where(TaskRecord.id == task_id)).one()
            return _to_task_view(updated)


@contextmanager
def _storage_errors(operation: str, *, task_id: str | None = None) -> Iterator[None]:
    try:
        yield
    except (SQLAlchemyError, sqlite3.Error, CommandError) as error:
        logger.exception("Task store %s failed task_id=%s", operation, task_id)
        raise StorageError(f"Task store {operation} failed: {error}", task_id=task_id) from error


def _parse_priority(value: TaskPriority | str | None) -> TaskPriority:
    if value is None:
        return TaskPriority.NORMAL
    if isinstance(value, TaskPriority):
        return value
    try:
        return TaskPriority(value.strip().lower())
    except ValueError as error:
        raise ValidationError(
            f"priority must be one of low, normal, high; got {value!r}",
        ) from error


def _parse_status_filter(value: StatusFilter | str | None) -> StatusFilter:
    if value is None:
        return StatusFilter.ALL
    if isinstance(value, StatusFilter):
        return value
    try:
        return StatusFilter(value.strip().lower())
    except ValueError as error:
        raise ValidationError(
            f"status must be one of pending, active, done, all; got {value!r}",
        ) from error


def _optional_timestamp(value: str | None) -> datetime | None:
    return from_db_timestamp(value) if value is not None else None


def _to_task_view(row: TaskRecord) -> TaskView:
    return TaskView(
        id=row.id,
        title=row.title,
        description=row.description,
        priority=TaskPriority(row.priority),
        status=TaskStatus(row.status),
        result=row.result,
        created_at=from_db_timestamp(row.created_at),
        claimed_at=_optional_timestamp(row.claimed_at),
        completed_at=_optional_timestamp(row.completed_at),
    )
