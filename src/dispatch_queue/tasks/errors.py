"""Typed failures raised by the task store.

Every failure carries an ``ErrorKind`` tag so callers can branch on the kind
without string matching. Domain failures (validation, not found, invalid
transition) never leave a partial write behind; ``StorageError`` wraps the
underlying database exception as ``__cause__``.
"""

from __future__ import annotations

from enum import Enum

from dispatch_queue.tasks.models import TaskStatus


class ErrorKind(str, Enum):
    """Failure classes surfaced to callers."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"
    STORAGE = "storage"


class TaskStoreError(Exception):
    """Base class for task store failures."""

    kind: ErrorKind

    def __init__(self, message: str, *, task_id: str | None = None) -> None:
        super().__init__(message)
        self.task_id = task_id


class ValidationError(TaskStoreError):
    """Required input missing or malformed."""

    kind = ErrorKind.VALIDATION


class TaskNotFoundError(TaskStoreError):
    """Referenced task id does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} not found", task_id=task_id)


class InvalidTransitionError(TaskStoreError):
    """Operation is not legal for the task's current status."""

    kind = ErrorKind.INVALID_TRANSITION

    def __init__(
        self,
        task_id: str,
        *,
        current_status: TaskStatus,
        expected_status: TaskStatus,
    ) -> None:
        super().__init__(
            f"Task {task_id} is not {expected_status.value} "
            f"(current status: {current_status.value})",
            task_id=task_id,
        )
        self.current_status = current_status
        self.expected_status = expected_status


class StorageError(TaskStoreError):
    """Infrastructure failure: I/O, corruption, lost connection."""

    kind = ErrorKind.STORAGE
