"""MCP server for critpath: exposes scheduling tools to AI assistants."""

from __future__ import annotations

import json
from datetime import datetime

from mcp.server.fastmcp import FastMCP

from critpath.cycles import validate_dependencies
from critpath.models import DAY, Dependency, DependencyType, Task
from critpath.persistence import Store
from critpath.scheduler import auto_schedule_tasks, compute_schedule, project_end
from critpath.settings import get_settings

mcp = FastMCP(
    "critpath",
    instructions="""\
critpath computes critical paths for tasks with fixed start/end instants and \
precedence links between them. Links are finish-to-start (FS), start-to-start \
(SS), finish-to-finish (FF) or start-to-finish (SF), each with an optional lag \
in days (negative lag allows overlap).

- **Slack**: how many days a task's finish can slip without moving the project end.
- **Critical path**: the tasks with zero slack.
- **Auto-schedule**: moves every task to the earliest start its predecessors \
allow, keeping each task's duration.

Call validate before trusting get_critical_path or auto_schedule: cyclic \
dependencies are not rejected by the scheduler, only reported by validate.\
""",
)


def _get_store() -> Store:
    return Store(get_settings().db_file)


@mcp.tool()
def list_tasks() -> str:
    """List all tasks and dependencies as JSON."""
    tasks, dependencies = _get_store().load()
    return json.dumps(
        {
            "tasks": [t.to_dict() for t in tasks],
            "dependencies": [d.to_dict() for d in dependencies],
        },
        indent=2,
    )


@mcp.tool()
def add_task(name: str, start_at: str, end_at: str, group: str | None = None, owner: str | None = None) -> str:
    """Add a new task.

    Args:
        name: Task name/title
        start_at: Start instant, ISO format (e.g. "2026-03-02T09:00")
        end_at: End instant, ISO format
        group: Optional group or phase name
        owner: Optional owner
    """
    try:
        start_dt = datetime.fromisoformat(start_at)
        end_dt = datetime.fromisoformat(end_at)
    except ValueError as e:
        return f"Error: {e}"
    if end_dt < start_dt:
        return "Error: end_at must not be before start_at."

    store = _get_store()
    tasks, dependencies = store.load()
    tid = store.generate_id(tasks)
    tasks.append(Task(id=tid, name=name, start_at=start_dt, end_at=end_dt, group=group, owner=owner))
    store.save(tasks, dependencies)
    return f"Added {tid}: {name}"


@mcp.tool()
def add_dependency(predecessor_id: str, successor_id: str, type: str = "FS", lag: float = 0.0) -> str:
    """Add a precedence link between two existing tasks.

    Args:
        predecessor_id: Task that constrains the other
        successor_id: Task that is constrained
        type: FS, SS, FF, SF (or the full name, e.g. "finish-to-start")
        lag: Lag in days; negative values allow overlap
    """
    try:
        dep_type = DependencyType.parse(type)
    except ValueError as e:
        return f"Error: {e}"

    store = _get_store()
    tasks, dependencies = store.load()
    known = {t.id for t in tasks}
    for tid in (predecessor_id, successor_id):
        if tid not in known:
            return f"Error: Task {tid} not found."

    dependencies.append(Dependency(predecessor_id, successor_id, dep_type, lag))
    store.save(tasks, dependencies)
    msg = f"Linked {predecessor_id} -> {successor_id} ({dep_type.value}, lag {lag:g}d)."
    if not validate_dependencies(dependencies).valid:
        msg += " Warning: the dependency graph now contains a cycle."
    return msg


@mcp.tool()
def validate() -> str:
    """Check the dependency graph for circular references."""
    _, dependencies = _get_store().load()
    return json.dumps(validate_dependencies(dependencies).to_dict(), indent=2)


@mcp.tool()
def get_critical_path(show_all: bool = False) -> str:
    """Earliest/latest times and slack (days) for critical tasks, or all tasks.

    Args:
        show_all: Include tasks that have slack
    """
    tasks, dependencies = _get_store().load()
    if not tasks:
        return "No tasks to schedule."
    graph = compute_schedule(tasks, dependencies)
    rows = []
    for n in graph:
        if not (show_all or n.is_critical):
            continue
        rows.append({
            "id": n.id,
            "name": n.task.name,
            "earliest_start": n.earliest_start.isoformat(),
            "earliest_finish": n.earliest_finish.isoformat(),
            "latest_start": n.latest_start.isoformat(),
            "latest_finish": n.latest_finish.isoformat(),
            "slack_days": round(n.slack / DAY, 3),
            "is_critical": n.is_critical,
        })
    return json.dumps({"project_end": project_end(graph).isoformat(), "tasks": rows}, indent=2)


@mcp.tool()
def auto_schedule(apply: bool = False) -> str:
    """Move every task to its earliest feasible start, keeping durations.

    Args:
        apply: Save the new dates instead of only previewing them
    """
    store = _get_store()
    tasks, dependencies = store.load()
    if not tasks:
        return "No tasks to schedule."
    scheduled = auto_schedule_tasks(tasks, dependencies)
    if apply:
        store.save(scheduled, dependencies)
    return json.dumps(
        {"applied": apply, "tasks": [t.to_dict() for t in scheduled]},
        indent=2,
    )


def main():
    """Entry point for the MCP server."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
