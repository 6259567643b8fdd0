"""
CLI entry point using Typer.

Commands:
- list: List tasks with their descriptions
- show: Show one task's details
- check: Parse the task file and report errors
- doctor: Run static checks over the catalogue
"""

import json
from pathlib import Path
from typing import Optional

import typer

from mdtask import doctor
from mdtask.config import Settings, load_settings
from mdtask.errors import TaskFileError, TaskParseError
from mdtask.loader import find_task_file, load_tasks
from mdtask.logger import CommandLogger
from mdtask.models import Task, find_task

app = typer.Typer(help="mdtask: tasks defined in your project's Markdown", no_args_is_help=True)


@app.callback()
def main_callback(
    ctx: typer.Context,
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", help="Task file (default: search for README.md from cwd upwards)"
    ),
    heading: Optional[str] = typer.Option(None, "--heading", "-H", help="Section heading (default: Tasks)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Echo log entries to stderr"),
) -> None:
    """Resolve settings shared by all commands."""
    settings = load_settings()
    if heading:
        settings.heading = heading
    if verbose:
        settings.verbose = True
    ctx.obj = {"settings": settings, "path": file}


def _logger(ctx: typer.Context, command: str) -> CommandLogger:
    settings: Settings = ctx.obj["settings"]
    return CommandLogger(
        command,
        log_dir=settings.log_dir,
        json_logs=settings.json_logs,
        verbose=settings.verbose,
    )


def _resolve_path(ctx: typer.Context) -> Path:
    path = ctx.obj["path"]
    if path is not None:
        return path
    return find_task_file(ctx.obj["settings"].file)


def _load(ctx: typer.Context, log: CommandLogger) -> Optional[list[Task]]:
    """Load tasks, reporting failures on stderr. Returns None on failure."""
    heading = ctx.obj["settings"].heading
    try:
        path = _resolve_path(ctx)
        log.debug("Loading task file", path=path, heading=heading)
        tasks = load_tasks(path, heading)
    except (FileNotFoundError, TaskFileError) as e:
        log.error(str(e))
        typer.echo(f"Error: {e}", err=True)
        return None
    except TaskParseError as e:
        log.error(e.message, kind=e.kind, task=e.task, line_no=e.line_no)
        typer.echo(f"Error: {e.kind}: {e}", err=True)
        return None

    log.info("Loaded tasks", path=path, count=len(tasks))
    return tasks


@app.command(name="list")
def list_cmd(
    ctx: typer.Context,
    short: bool = typer.Option(False, "--short", "-s", help="Print task names only"),
) -> None:
    """List tasks with their descriptions."""
    with _logger(ctx, "list") as log:
        tasks = _load(ctx, log)
        if tasks is not None:
            width = max((len(t.name) for t in tasks), default=0)
            for task in tasks:
                if short or not task.description:
                    typer.echo(task.name)
                    continue
                typer.echo(f"{task.name.ljust(width)}  {task.description[0]}")
                for line in task.description[1:]:
                    typer.echo(f"{' ' * width}  {line}")

    if tasks is None:
        raise typer.Exit(1)


@app.command(name="show")
def show_cmd(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Task name"),
    as_json: bool = typer.Option(False, "--json", help="Print the task as JSON"),
    as_markdown: bool = typer.Option(False, "--md", help="Print the task as Markdown"),
) -> None:
    """Show one task's details."""
    task = None
    markdown = None
    with _logger(ctx, "show") as log:
        tasks = _load(ctx, log)
        if tasks is not None:
            with log.with_context(task=name) as task_log:
                try:
                    task = find_task(tasks, name)
                    task_log.info("Showing task", format="json" if as_json else "md" if as_markdown else "text")
                    if as_markdown:
                        markdown = task.to_markdown()
                except KeyError as e:
                    task_log.error("Task not found")
                    typer.echo(f"Error: {e.args[0]}", err=True)
                    task = None
                except ValueError as e:
                    task_log.error(str(e))
                    typer.echo(f"Error: {e}", err=True)
                    task = None

    if task is None:
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(task.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return
    if as_markdown:
        typer.echo(markdown, nl=False)
        return

    typer.echo(f"Task: {task.name}")
    for line in task.description:
        typer.echo(f"  {line}")
    if task.depends_on:
        typer.echo(f"Requires: {', '.join(task.depends_on)}")
    if task.inputs:
        typer.echo(f"Inputs: {', '.join(task.inputs)}")
    if task.env:
        typer.echo(f"Env: {', '.join(task.env)}")
    if task.dir:
        typer.echo(f"Directory: {task.dir}")
    typer.echo(f"Run: {task.required_behaviour.value}")
    if task.is_commandless:
        typer.echo("Script: (none)")
    else:
        typer.echo("Script:")
        for line in task.script.splitlines():
            typer.echo(f"  {line}")


@app.command(name="check")
def check_cmd(ctx: typer.Context) -> None:
    """Parse the task file and report errors."""
    with _logger(ctx, "check") as log:
        tasks = _load(ctx, log)

    if tasks is None:
        raise typer.Exit(1)
    typer.echo(f"OK: {len(tasks)} task(s)")


@app.command(name="doctor")
def doctor_cmd(ctx: typer.Context) -> None:
    """Run static checks over the task catalogue."""
    with _logger(ctx, "doctor") as log:
        try:
            path = _resolve_path(ctx)
        except FileNotFoundError as e:
            log.error(str(e))
            typer.echo(f"Error: {e}", err=True)
            path = None

        exit_code = 1
        if path is not None:
            exit_code = doctor.check_all(path, ctx.obj["settings"].heading)
            log.info("Doctor finished", exit_code=exit_code)

    raise typer.Exit(exit_code)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
