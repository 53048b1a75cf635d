"""Domain models for the task queue."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class TaskStatus(str, Enum):
    """Durable task lifecycle states."""

    PENDING = "pending"
    ACTIVE = "active"
    DONE = "done"


class TaskPriority(str, Enum):
    """Informational priority; not used for ordering."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class StatusFilter(str, Enum):
    """Status selector accepted by task listing."""

    PENDING = "pending"
    ACTIVE = "active"
    DONE = "done"
    ALL = "all"

    def as_status(self) -> TaskStatus | None:
        """Concrete status to filter on, or ``None`` for no filter."""

        if self is StatusFilter.ALL:
            return None
        return TaskStatus(self.value)


# Legal transitions: each status maps to the one status it may move to.
NEXT_STATUS: dict[TaskStatus, TaskStatus] = {
    TaskStatus.PENDING: TaskStatus.ACTIVE,
    TaskStatus.ACTIVE: TaskStatus.DONE,
}


@dataclass(slots=True)
class TaskCreate:
    """Input payload for creating a task."""

    title: str
    description: str | None = None
    priority: TaskPriority | str | None = None


@dataclass(slots=True)
class TaskView:
    """Readable task view returned by every store operation."""

    id: str
    title: str
    description: str | None
    priority: TaskPriority
    status: TaskStatus
    result: str | None
    created_at: datetime
    claimed_at: datetime | None
    completed_at: datetime | None

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping using the persisted field names."""

        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "status": self.status.value,
            "result": self.result,
            "created_at": _isoformat(self.created_at),
            "claimed_at": _isoformat(self.claimed_at),
            "completed_at": _isoformat(self.completed_at),
        }


def _isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")
