from __future__ import annotations

import json
from pathlib import Path

import allure
from click.testing import CliRunner

from dispatch_queue.main import dispatch
from dispatch_queue.tasks.controllers import TaskCliController, TaskCreateCommand
from dispatch_queue.tasks.repository import TaskStore

pytestmark = [
    allure.epic("Task Queue"),
    allure.feature("CLI"),
]


def _invoke(args: list[str]):
    return CliRunner().invoke(dispatch, args)


def _create(db_path: Path, title: str, *extra: str) -> dict:
    result = _invoke(["task", "create", "--db-path", str(db_path), "--title", title, *extra])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


def test_cli_create_claim_complete_roundtrip(tmp_path: Path) -> None:
    db_path = tmp_path / "cli.db"

    created = _create(db_path, "Test task", "--description", "from cli", "--priority", "high")
    assert created["status"] == "pending"
    assert created["priority"] == "high"
    assert created["description"] == "from cli"
    assert created["claimed_at"] is None

    claim = _invoke(["task", "claim", "--db-path", str(db_path), "--task-id", created["id"]])
    assert claim.exit_code == 0, claim.output
    claimed = json.loads(claim.output)
    assert claimed["status"] == "active"
    assert claimed["claimed_at"] is not None

    complete = _invoke(
        [
            "task",
            "complete",
            "--db-path",
            str(db_path),
            "--task-id",
            created["id"],
            "--result",
            "done summary",
        ],
    )
    assert complete.exit_code == 0, complete.output
    completed = json.loads(complete.output)
    assert completed["status"] == "done"
    assert completed["result"] == "done summary"
    assert completed["completed_at"] is not None

    show = _invoke(["task", "show", "--db-path", str(db_path), "--task-id", created["id"]])
    assert show.exit_code == 0, show.output
    assert json.loads(show.output) == completed


def test_cli_list_filters_and_limits(tmp_path: Path) -> None:
    db_path = tmp_path / "cli-list.db"
    first = _create(db_path, "A")
    second = _create(db_path, "B")
    third = _create(db_path, "C")
    _invoke(["task", "claim", "--db-path", str(db_path), "--task-id", second["id"]])

    everything = _invoke(["task", "list", "--db-path", str(db_path)])
    assert everything.exit_code == 0, everything.output
    assert [task["id"] for task in json.loads(everything.output)] == [
        third["id"],
        second["id"],
        first["id"],
    ]

    pending = _invoke(["task", "list", "--db-path", str(db_path), "--status", "pending"])
    assert [task["title"] for task in json.loads(pending.output)] == ["C", "A"]

    limited = _invoke(["task", "list", "--db-path", str(db_path), "--limit", "1"])
    assert [task["title"] for task in json.loads(limited.output)] == ["C"]


def test_cli_list_uses_default_limit_from_env(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "cli-default-limit.db"
    for title in ("A", "B", "C"):
        _create(db_path, title)
    monkeypatch.setenv("DISPATCH_DEFAULT_LIST_LIMIT", "2")

    result = _invoke(["task", "list", "--db-path", str(db_path)])

    assert result.exit_code == 0, result.output
    assert [task["title"] for task in json.loads(result.output)] == ["C", "B"]


def test_cli_reads_db_path_from_env(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "nested" / "env.db"
    monkeypatch.setenv("DISPATCH_DB_PATH", str(db_path))

    result = _invoke(["task", "create", "--title", "via env"])

    assert result.exit_code == 0, result.output
    with TaskStore(db_path) as store:
        assert [task.title for task in store.list_tasks()] == ["via env"]


def test_cli_show_unknown_task_fails(tmp_path: Path) -> None:
    result = _invoke(
        ["task", "show", "--db-path", str(tmp_path / "empty.db"), "--task-id", "nonexistent"],
    )

    assert result.exit_code == 1
    assert "not found" in result.output


def test_cli_claim_unknown_task_fails(tmp_path: Path) -> None:
    result = _invoke(
        ["task", "claim", "--db-path", str(tmp_path / "empty.db"), "--task-id", "nonexistent"],
    )

    assert result.exit_code == 1
    assert "not found" in result.output


def test_cli_invalid_transition_fails_without_changing_task(tmp_path: Path) -> None:
    db_path = tmp_path / "cli-invalid.db"
    created = _create(db_path, "not claimed")

    result = _invoke(["task", "complete", "--db-path", str(db_path), "--task-id", created["id"]])

    assert result.exit_code == 1
    with TaskStore(db_path) as store:
        task = store.get_task(created["id"])
    assert task is not None
    assert task.status.value == "pending"
    assert task.completed_at is None


def test_cli_rejects_empty_title(tmp_path: Path) -> None:
    db_path = tmp_path / "cli-empty-title.db"

    result = _invoke(["task", "create", "--db-path", str(db_path), "--title", "  "])

    assert result.exit_code == 1
    assert "title is required" in result.output
    with TaskStore(db_path) as store:
        assert store.count_tasks() == 0


def test_cli_rejects_unknown_priority(tmp_path: Path) -> None:
    result = _invoke(
        [
            "task",
            "create",
            "--db-path",
            str(tmp_path / "cli.db"),
            "--title",
            "x",
            "--priority",
            "urgent",
        ],
    )

    assert result.exit_code == 2


def test_cli_reports_invalid_env_config_without_traceback(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "cli-bad-env.db"
    monkeypatch.setenv("DISPATCH_DEFAULT_LIST_LIMIT", "abc")

    result = _invoke(["task", "list", "--db-path", str(db_path)])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Invalid configuration" in result.output
    assert not db_path.exists()


def test_controller_create_leaves_priority_validation_to_store(tmp_path: Path) -> None:
    controller = TaskCliController()
    db_path = tmp_path / "controller.db"

    rejected = controller.create(
        TaskCreateCommand(db_path=db_path, title="x", description=None, priority="urgent"),
    )
    accepted = controller.create(
        TaskCreateCommand(db_path=db_path, title="y", description=None, priority="HIGH"),
    )

    assert rejected.success is False
    assert rejected.lines[0].startswith("priority must be one of")
    assert accepted.success is True
    assert json.loads(accepted.lines[0])["priority"] == "high"
    with TaskStore(db_path) as store:
        assert [task.title for task in store.list_tasks()] == ["y"]
