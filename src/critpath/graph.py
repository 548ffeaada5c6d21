"""Node-per-task graph built from flat task and dependency lists."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import networkx as nx

from critpath.models import Dependency, Task

logger = logging.getLogger(__name__)


@dataclass
class TaskNode:
    """A task plus its edges and the timing computed by the passes."""

    task: Task
    earliest_start: datetime
    earliest_finish: datetime
    latest_start: datetime
    latest_finish: datetime
    dependencies: list[Dependency] = field(default_factory=list)  # incoming
    dependents: list[Dependency] = field(default_factory=list)  # outgoing
    slack: timedelta = timedelta(0)
    is_critical: bool = False

    @property
    def id(self) -> str:
        return self.task.id

    @property
    def duration(self) -> timedelta:
        return self.task.duration

    @classmethod
    def for_task(cls, task: Task) -> TaskNode:
        return cls(
            task=task,
            earliest_start=task.start_at,
            earliest_finish=task.end_at,
            latest_start=task.start_at,
            latest_finish=task.end_at,
        )


@dataclass
class TaskGraph:
    """Arena of nodes indexed by task id.

    ``dag`` mirrors the dependency edges between present tasks and is only
    used to derive processing orders; propagation reads the dependency
    records kept on each node.
    """

    nodes: list[TaskNode]
    index: dict[str, int]
    dag: nx.DiGraph
    dangling: list[Dependency] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes)

    def lookup(self, task_id: str) -> TaskNode | None:
        """Return the node for *task_id*, or None when no such task was given."""
        i = self.index.get(task_id)
        if i is None:
            return None
        return self.nodes[i]

    def forward_order(self) -> list[TaskNode]:
        """Predecessors before successors (post-order DFS over "depends on")."""
        ids = nx.dfs_postorder_nodes(self.dag.reverse(copy=False))
        return [self.nodes[self.index[tid]] for tid in ids]

    def backward_order(self) -> list[TaskNode]:
        """Successors before predecessors (post-order DFS over "depended on by")."""
        ids = nx.dfs_postorder_nodes(self.dag)
        return [self.nodes[self.index[tid]] for tid in ids]


def build_graph(tasks: list[Task], dependencies: list[Dependency]) -> TaskGraph:
    """Index *tasks* and attach each dependency to both of its endpoints.

    Dependencies that mention an unknown task are kept on whichever endpoint
    exists and listed in ``TaskGraph.dangling``; they never raise.
    """
    nodes: list[TaskNode] = []
    index: dict[str, int] = {}
    for task in tasks:
        if task.id in index:
            logger.warning("Duplicate task id %s; the later task replaces the earlier one", task.id)
            nodes[index[task.id]] = TaskNode.for_task(task)
            continue
        index[task.id] = len(nodes)
        nodes.append(TaskNode.for_task(task))

    G = nx.DiGraph()
    G.add_nodes_from(node.id for node in nodes)
    dangling: list[Dependency] = []

    for dep in dependencies:
        pred = index.get(dep.predecessor_id)
        succ = index.get(dep.successor_id)
        if succ is not None:
            nodes[succ].dependencies.append(dep)
        if pred is not None:
            nodes[pred].dependents.append(dep)
        if pred is None or succ is None:
            logger.debug(
                "Dependency %s -> %s references a missing task",
                dep.predecessor_id,
                dep.successor_id,
            )
            dangling.append(dep)
            continue
        G.add_edge(dep.predecessor_id, dep.successor_id)

    return TaskGraph(nodes=nodes, index=index, dag=G, dangling=dangling)
