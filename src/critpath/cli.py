"""Typer CLI for critpath."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from critpath.cycles import validate_dependencies
from critpath.models import DAY, Dependency, DependencyType, Task
from critpath.persistence import Store
from critpath.scheduler import auto_schedule_tasks, compute_schedule, project_end
from critpath.settings import get_settings

app = typer.Typer(
    name="critpath",
    help="Critical-path scheduling for tasks with precedence links.",
    no_args_is_help=True,
)
console = Console()

_state: dict[str, str | None] = {"db": None}


def _get_store() -> Store:
    return Store(_state["db"] or get_settings().db_file)


def _parse_instant(value: str, option: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        console.print(f"[red]Invalid {option} '{value}'. Use ISO format (YYYY-MM-DD[THH:MM]).[/red]")
        raise typer.Exit(1)


def _fmt(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%d %H:%M")


def _require_acyclic(dependencies: list[Dependency]) -> None:
    result = validate_dependencies(dependencies)
    if not result.valid:
        console.print("[red]Refusing to schedule: circular dependencies found.[/red]")
        for trace in result.circular_dependencies or []:
            console.print(f"  [red]{trace}[/red]")
        raise typer.Exit(1)


@app.callback()
def main(
    db: Annotated[Optional[str], typer.Option("--db", help="Path to the task database (JSON)")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log scheduling details")] = False,
) -> None:
    """Critical-path scheduling for tasks with precedence links."""
    _state["db"] = db
    level = logging.DEBUG if verbose else get_settings().log_level.upper()
    try:
        logging.basicConfig(
            level=level,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
            force=True,
        )
    except ValueError as e:
        console.print(f"[red]Error: invalid log level: {e}[/red]")
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Editing commands
# ---------------------------------------------------------------------------


@app.command()
def add(
    name: str,
    start: Annotated[str, typer.Option(help="Start instant (YYYY-MM-DD[THH:MM])")],
    end: Annotated[Optional[str], typer.Option(help="End instant (YYYY-MM-DD[THH:MM])")] = None,
    days: Annotated[Optional[float], typer.Option("--days", "-d", help="Duration in days (instead of --end)")] = None,
    group: Annotated[Optional[str], typer.Option(help="Group or phase name")] = None,
    owner: Annotated[Optional[str], typer.Option(help="Task owner")] = None,
    description: Annotated[Optional[str], typer.Option(help="Free-text description")] = None,
) -> None:
    """Add a new task. Give either --end or --days."""
    if (end is None) == (days is None):
        console.print("[red]Give exactly one of --end or --days.[/red]")
        raise typer.Exit(1)

    start_dt = _parse_instant(start, "start")
    end_dt = _parse_instant(end, "end") if end is not None else start_dt + timedelta(days=days)
    if end_dt < start_dt:
        console.print("[red]End must not be before start.[/red]")
        raise typer.Exit(1)

    store = _get_store()
    tasks, dependencies = store.load()
    tid = store.generate_id(tasks)
    tasks.append(
        Task(
            id=tid,
            name=name,
            start_at=start_dt,
            end_at=end_dt,
            group=group,
            owner=owner,
            description=description,
        )
    )
    store.save(tasks, dependencies)
    console.print(f"[green]Added {tid}: {name}[/green]")


@app.command()
def link(
    predecessor: str,
    successor: str,
    type_: Annotated[str, typer.Option("--type", "-t", help="FS, SS, FF, SF or the full name")] = "FS",
    lag: Annotated[float, typer.Option(help="Lag in days (negative for overlap)")] = 0.0,
) -> None:
    """Add a dependency: SUCCESSOR is constrained by PREDECESSOR."""
    try:
        dep_type = DependencyType.parse(type_)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    store = _get_store()
    tasks, dependencies = store.load()
    known = {t.id for t in tasks}
    for tid in (predecessor, successor):
        if tid not in known:
            console.print(f"[red]Task {tid} not found.[/red]")
            raise typer.Exit(1)

    dependencies.append(Dependency(predecessor, successor, dep_type, lag))

    # Linking is allowed to create a cycle, but say so.
    result = validate_dependencies(dependencies)
    store.save(tasks, dependencies)
    console.print(f"[green]Linked {predecessor} -> {successor} ({dep_type.value}, lag {lag:g}d)[/green]")
    if not result.valid:
        console.print("[yellow]Warning: the dependency graph now contains a cycle.[/yellow]")


@app.command()
def unlink(predecessor: str, successor: str) -> None:
    """Remove every dependency from PREDECESSOR to SUCCESSOR."""
    store = _get_store()
    tasks, dependencies = store.load()
    kept = [
        d for d in dependencies
        if not (d.predecessor_id == predecessor and d.successor_id == successor)
    ]
    if len(kept) == len(dependencies):
        console.print(f"[red]No dependency {predecessor} -> {successor}.[/red]")
        raise typer.Exit(1)
    store.save(tasks, kept)
    console.print(f"[green]Removed {len(dependencies) - len(kept)} dependency(ies).[/green]")


@app.command()
def delete(task_id: str) -> None:
    """Delete a task and every dependency that mentions it."""
    store = _get_store()
    tasks, dependencies = store.load()
    remaining = [t for t in tasks if t.id != task_id]
    if len(remaining) == len(tasks):
        console.print(f"[red]Task {task_id} not found.[/red]")
        raise typer.Exit(1)
    dependencies = [
        d for d in dependencies
        if task_id not in (d.predecessor_id, d.successor_id)
    ]
    store.save(remaining, dependencies)
    console.print(f"[green]Deleted {task_id}.[/green]")


@app.command("list")
def list_tasks() -> None:
    """List tasks and their dependencies."""
    store = _get_store()
    tasks, dependencies = store.load()
    if not tasks:
        console.print("No tasks.")
        return

    table = Table(title="Tasks")
    table.add_column("ID")
    table.add_column("Task Name")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Days")
    table.add_column("Depends On")

    for t in tasks:
        preds = [
            f"{d.predecessor_id} ({d.type.value}{f', {d.lag:+g}d' if d.lag else ''})"
            for d in dependencies
            if d.successor_id == t.id
        ]
        table.add_row(
            t.id,
            t.name,
            _fmt(t.start_at),
            _fmt(t.end_at),
            f"{t.duration / DAY:.1f}",
            ", ".join(preds) or "-",
        )

    console.print(table)


# ---------------------------------------------------------------------------
# Analysis commands
# ---------------------------------------------------------------------------


@app.command()
def validate() -> None:
    """Check the dependency graph for circular references."""
    store = _get_store()
    _, dependencies = store.load()
    result = validate_dependencies(dependencies)
    if result.valid:
        console.print("[green]No circular dependencies.[/green]")
        return
    console.print("[red]Circular dependencies found:[/red]")
    for trace in result.circular_dependencies or []:
        console.print(f"  [red]{trace}[/red]")
    raise typer.Exit(1)


@app.command("critical-path")
def critical_path(
    show_all: Annotated[bool, typer.Option("--all", "-a", help="Show every task, not only critical ones")] = False,
    strict: Annotated[bool, typer.Option("--strict", help="Refuse to run on cyclic dependencies")] = False,
    complete_backward: Annotated[
        bool,
        typer.Option(
            "--complete-backward",
            help="Also propagate finish-to-finish and start-to-finish links in the backward pass",
        ),
    ] = False,
) -> None:
    """Compute earliest/latest times, slack and the critical path."""
    store = _get_store()
    tasks, dependencies = store.load()
    if not tasks:
        console.print("No tasks to schedule.")
        return
    if strict:
        _require_acyclic(dependencies)

    graph = compute_schedule(tasks, dependencies, complete_backward=complete_backward)
    nodes = list(graph) if show_all else [n for n in graph if n.is_critical]

    table = Table(title="Schedule" if show_all else "Critical Path")
    table.add_column("ID")
    table.add_column("Task Name")
    table.add_column("Earliest Start")
    table.add_column("Earliest Finish")
    table.add_column("Latest Start")
    table.add_column("Latest Finish")
    table.add_column("Slack (d)")

    for n in nodes:
        slack_days = n.slack / DAY
        style = "bold red" if slack_days < 0 else ("bold yellow" if n.is_critical else None)
        table.add_row(
            n.id,
            n.task.name,
            _fmt(n.earliest_start),
            _fmt(n.earliest_finish),
            _fmt(n.latest_start),
            _fmt(n.latest_finish),
            f"{slack_days:.2f}",
            style=style,
        )

    console.print(table)
    n_critical = sum(n.is_critical for n in graph)
    console.print(f"[dim]{n_critical} of {len(graph)} task(s) critical[/dim]")
    if graph.dangling:
        console.print(f"[yellow]{len(graph.dangling)} dependency(ies) reference missing tasks and were ignored.[/yellow]")
    console.print(f"\nProject end: [bold]{_fmt(project_end(graph))}[/bold]")


@app.command()
def schedule(
    apply: Annotated[bool, typer.Option("--apply", help="Save the re-dated tasks")] = False,
    strict: Annotated[bool, typer.Option("--strict", help="Refuse to run on cyclic dependencies")] = False,
    csv: Annotated[Optional[str], typer.Option("--csv", help="Export the new dates to a CSV file")] = None,
) -> None:
    """Auto-schedule: move every task to its earliest feasible start."""
    store = _get_store()
    tasks, dependencies = store.load()
    if not tasks:
        console.print("No tasks to schedule.")
        return
    if strict:
        _require_acyclic(dependencies)

    scheduled = auto_schedule_tasks(tasks, dependencies)
    original = {t.id: t for t in tasks}

    if csv:
        import csv as csv_mod
        from pathlib import Path

        with Path(csv).open("w", newline="") as f:
            writer = csv_mod.writer(f)
            writer.writerow(["ID", "Task Name", "Start", "End", "Moved (d)"])
            for t in scheduled:
                writer.writerow([
                    t.id,
                    t.name,
                    t.start_at.isoformat(),
                    t.end_at.isoformat(),
                    f"{(t.start_at - original[t.id].start_at) / DAY:.2f}",
                ])
        console.print(f"[green]Exported {len(scheduled)} tasks to {csv}[/green]")
    else:
        table = Table(title="Auto-Schedule")
        table.add_column("ID")
        table.add_column("Task Name")
        table.add_column("Old Start")
        table.add_column("New Start")
        table.add_column("New End")
        table.add_column("Moved (d)")

        for t in scheduled:
            moved = (t.start_at - original[t.id].start_at) / DAY
            table.add_row(
                t.id,
                t.name,
                _fmt(original[t.id].start_at),
                _fmt(t.start_at),
                _fmt(t.end_at),
                f"{moved:+.2f}" if moved else "-",
                style="bold yellow" if moved else None,
            )
        console.print(table)

    if apply:
        store.save(scheduled, dependencies)
        console.print(f"[green]Saved {len(scheduled)} re-dated tasks.[/green]")


if __name__ == "__main__":
    app()
