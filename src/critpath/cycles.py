"""Circular dependency detection."""

from __future__ import annotations

import logging

import networkx as nx

from critpath.models import Dependency, ValidationResult

logger = logging.getLogger(__name__)


def _adjacency(dependencies: list[Dependency]) -> nx.DiGraph:
    G = nx.DiGraph()
    for dep in dependencies:
        G.add_edge(dep.predecessor_id, dep.successor_id)
    return G


def find_cycles(dependencies: list[Dependency]) -> list[list[str]]:
    """Return every cycle closed by a back edge during a depth-first walk.

    Each cycle is the walk's path from the first occurrence of the repeated
    task through to the repeated task again, e.g. ``["A", "B", "A"]``.
    The walk keeps an explicit stack of successor iterators, so its depth is
    not limited by the interpreter's recursion limit.
    """
    G = _adjacency(dependencies)
    visited: set[str] = set()
    cycles: list[list[str]] = []

    for root in G:
        if root in visited:
            continue
        visited.add(root)
        path = [root]
        on_path = {root}
        stack = [iter(G.successors(root))]

        while stack:
            for nbr in stack[-1]:
                if nbr in on_path:
                    cycles.append(path[path.index(nbr):] + [nbr])
                elif nbr not in visited:
                    visited.add(nbr)
                    path.append(nbr)
                    on_path.add(nbr)
                    stack.append(iter(G.successors(nbr)))
                    break
            else:
                stack.pop()
                on_path.discard(path.pop())

    return cycles


def validate_dependencies(dependencies: list[Dependency]) -> ValidationResult:
    """Check *dependencies* for circular references.

    Scheduling functions do not call this; run it first when the input is
    untrusted and refuse to schedule when ``valid`` is False.
    """
    cycles = find_cycles(dependencies)
    if not cycles:
        return ValidationResult(valid=True)
    traces = [" -> ".join(cycle) for cycle in cycles]
    for trace in traces:
        logger.debug("Circular dependency: %s", trace)
    return ValidationResult(valid=False, circular_dependencies=traces)
