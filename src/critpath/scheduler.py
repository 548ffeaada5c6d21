"""Forward/backward pass scheduling with precedence types and lag."""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timedelta

from critpath.graph import TaskGraph, TaskNode, build_graph
from critpath.models import DAY, CriticalPathResult, Dependency, DependencyType, Task

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Forward pass (earliest start / earliest finish)
# ---------------------------------------------------------------------------


def _forward_constraint(dep: Dependency, pred: TaskNode, node: TaskNode) -> datetime:
    """Earliest start that *dep* allows for *node* given its predecessor."""
    if dep.type == DependencyType.FINISH_TO_START:
        return pred.earliest_finish + dep.lag_delta
    if dep.type == DependencyType.START_TO_START:
        return pred.earliest_start + dep.lag_delta
    if dep.type == DependencyType.FINISH_TO_FINISH:
        return pred.earliest_finish + dep.lag_delta - node.duration
    if dep.type == DependencyType.START_TO_FINISH:
        return pred.earliest_start + dep.lag_delta - node.duration
    raise ValueError(f"Unknown dependency type: {dep.type!r}")


def forward_pass(graph: TaskGraph) -> None:
    """Push every task no earlier than its own start and its predecessors allow."""
    for node in graph.forward_order():
        start = node.task.start_at
        for dep in node.dependencies:
            pred = graph.lookup(dep.predecessor_id)
            if pred is None:
                logger.debug("Skipping %s -> %s: predecessor not found", dep.predecessor_id, node.id)
                continue
            start = max(start, _forward_constraint(dep, pred, node))
        node.earliest_start = start
        node.earliest_finish = start + node.duration


# ---------------------------------------------------------------------------
# Backward pass (latest start / latest finish)
# ---------------------------------------------------------------------------


def project_end(graph: TaskGraph) -> datetime | None:
    """Latest earliest-finish over all tasks, or None for an empty graph."""
    return max((node.earliest_finish for node in graph), default=None)


def _backward_constraint(
    dep: Dependency,
    node: TaskNode,
    succ: TaskNode,
    complete: bool,
) -> datetime | None:
    """Latest finish that *dep* allows for *node* given its successor.

    Finish-to-finish and start-to-finish links only constrain the backward
    pass when *complete* is set.
    """
    if dep.type == DependencyType.FINISH_TO_START:
        return succ.latest_start - dep.lag_delta
    if dep.type == DependencyType.START_TO_START:
        return succ.latest_start - dep.lag_delta + node.duration
    if not complete:
        return None
    if dep.type == DependencyType.FINISH_TO_FINISH:
        return succ.latest_finish - dep.lag_delta
    if dep.type == DependencyType.START_TO_FINISH:
        return succ.latest_finish - dep.lag_delta + node.duration
    raise ValueError(f"Unknown dependency type: {dep.type!r}")


def backward_pass(graph: TaskGraph, complete: bool = False) -> None:
    """Compute latest start/finish anchored at the project end.

    Tasks nothing depends on keep their earliest finish as latest finish.
    The others start from the project end and are pulled earlier by their
    successors, visited successors first.
    """
    end = project_end(graph)
    if end is None:
        return

    for node in graph:
        node.latest_finish = end if node.dependents else node.earliest_finish
        node.latest_start = node.latest_finish - node.duration

    for node in graph.backward_order():
        if not node.dependents:
            continue
        finish = end
        for dep in node.dependents:
            succ = graph.lookup(dep.successor_id)
            if succ is None:
                logger.debug("Skipping %s -> %s: successor not found", node.id, dep.successor_id)
                continue
            bound = _backward_constraint(dep, node, succ, complete)
            if bound is not None and bound < finish:
                finish = bound
        node.latest_finish = finish
        node.latest_start = finish - node.duration


# ---------------------------------------------------------------------------
# Slack and critical path
# ---------------------------------------------------------------------------


def classify(graph: TaskGraph) -> None:
    for node in graph:
        node.slack = node.latest_finish - node.earliest_finish
        node.is_critical = node.slack == timedelta(0)


def compute_schedule(
    tasks: list[Task],
    dependencies: list[Dependency],
    *,
    complete_backward: bool = False,
) -> TaskGraph:
    """Build the graph and run both passes; returns the populated graph.

    Cyclic input does not raise but the result is not guaranteed to honour
    every dependency. Call ``validate_dependencies`` first when that matters.
    """
    graph = build_graph(tasks, dependencies)
    forward_pass(graph)
    backward_pass(graph, complete=complete_backward)
    classify(graph)
    logger.debug(
        "Scheduled %d tasks, project end %s, %d critical",
        len(graph),
        project_end(graph),
        sum(node.is_critical for node in graph),
    )
    return graph


def calculate_critical_path(
    tasks: list[Task],
    dependencies: list[Dependency],
    *,
    complete_backward: bool = False,
) -> list[CriticalPathResult]:
    """Slack in days and criticality for every task, in input order."""
    graph = compute_schedule(tasks, dependencies, complete_backward=complete_backward)
    return [
        CriticalPathResult(task_id=node.id, slack=node.slack / DAY, is_critical=node.is_critical)
        for node in graph
    ]


def get_critical_path(results: list[CriticalPathResult]) -> list[CriticalPathResult]:
    """Return only the tasks on the critical path (zero slack)."""
    return [r for r in results if r.is_critical]


# ---------------------------------------------------------------------------
# Auto-scheduling
# ---------------------------------------------------------------------------


def auto_schedule_tasks(tasks: list[Task], dependencies: list[Dependency]) -> list[Task]:
    """Re-date tasks to their earliest feasible start, keeping each duration."""
    graph = build_graph(tasks, dependencies)
    forward_pass(graph)
    return [
        dataclasses.replace(
            node.task,
            start_at=node.earliest_start,
            end_at=node.earliest_start + node.duration,
        )
        for node in graph
    ]
