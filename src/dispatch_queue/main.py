"""CLI entrypoint for dispatch-queue."""

import logging
from pathlib import Path

import rich_click as click

from dispatch_queue import __version__
from dispatch_queue.tasks.controllers import (
    TaskClaimCommand,
    TaskCliController,
    TaskCommandResult,
    TaskCompleteCommand,
    TaskCreateCommand,
    TaskListCommand,
    TaskShowCommand,
)

click.rich_click.USE_MARKDOWN = True
TASK_CONTROLLER = TaskCliController()
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.version_option(version=__version__, prog_name="dispatch")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level for messages written to stderr.",
)
def dispatch(log_level: str) -> None:
    """Durable task queue CLI."""

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


@dispatch.group()
def task() -> None:
    """Create, list, claim, and complete tasks."""


@task.command("create")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--title", required=True, help="Task title.")
@click.option("--description", default=None, help="Optional task description.")
@click.option(
    "--priority",
    type=click.Choice(["low", "normal", "high"], case_sensitive=False),
    default=None,
    help="Task priority (default: normal).",
)
def task_create(
    db_path: Path | None,
    title: str,
    description: str | None,
    priority: str | None,
) -> None:
    """Create a new pending task."""

    _emit_result(
        TASK_CONTROLLER.create(
            TaskCreateCommand(
                db_path=db_path,
                title=title,
                description=description,
                priority=priority,
            ),
        ),
    )


@task.command("list")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--status",
    type=click.Choice(["pending", "active", "done", "all"], case_sensitive=False),
    default="all",
    show_default=True,
    help="Status filter.",
)
@click.option(
    "--limit",
    type=int,
    default=None,
    help="Max tasks to print; zero or negative means no cap.",
)
def task_list(db_path: Path | None, status: str, limit: int | None) -> None:
    """List tasks, newest first."""

    _emit_result(
        TASK_CONTROLLER.list_tasks(
            TaskListCommand(
                db_path=db_path,
                status=status,
                limit=limit,
            ),
        ),
    )


@task.command("show")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--task-id", required=True, help="Task id.")
def task_show(db_path: Path | None, task_id: str) -> None:
    """Show one task."""

    _emit_result(TASK_CONTROLLER.show(TaskShowCommand(db_path=db_path, task_id=task_id)))


@task.command("claim")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--task-id", required=True, help="Task id.")
def task_claim(db_path: Path | None, task_id: str) -> None:
    """Mark a pending task as active."""

    _emit_result(TASK_CONTROLLER.claim(TaskClaimCommand(db_path=db_path, task_id=task_id)))


@task.command("complete")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--task-id", required=True, help="Task id.")
@click.option("--result", default=None, help="Result summary.")
def task_complete(db_path: Path | None, task_id: str, result: str | None) -> None:
    """Mark an active task as done."""

    _emit_result(
        TASK_CONTROLLER.complete(
            TaskCompleteCommand(
                db_path=db_path,
                task_id=task_id,
                result=result,
            ),
        ),
    )


def _emit_result(result: TaskCommandResult) -> None:
    if not result.success:
        raise click.ClickException("\n".join(result.lines))
    for line in result.lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    dispatch()
