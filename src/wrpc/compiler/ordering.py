# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Topological ordering of property dependencies."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence

# ###############
# Public Interface
# ###############


class DependencyCycle(Exception):
    """Raised when the dependency graph contains a cycle.

    Attributes:
        cycle: The nodes on the cycle in dependency order, starting and
            ending with the same node, e.g. ``["a", "b", "a"]``.
    """

    def __init__(self, cycle: list[str]) -> None:
        super().__init__("dependency cycle: " + " -> ".join(cycle))
        self.cycle = cycle


def topological_order(graph: Mapping[str, Sequence[str]]) -> list[str]:
    """Order the nodes of *graph* so that every node follows its dependencies.

    Uses an iterative depth-first traversal with temporary and permanent
    marks. Roots are visited in the mapping's order and dependencies in the
    order given, so the result is deterministic. Dependencies that are not
    nodes of the graph are ignored.

    Args:
        graph: Maps each node to the nodes it depends on.

    Returns:
        All nodes of the graph, dependencies first.

    Raises:
        DependencyCycle: If some node depends on itself transitively.
    """
    order: list[str] = []
    permanent: set[str] = set()

    for root in graph:
        if root in permanent:
            continue
        temporary = {root}
        path = [root]
        stack: list[tuple[str, Iterator[str]]] = [(root, iter(graph[root]))]
        while stack:
            node, deps = stack[-1]
            for dep in deps:
                if dep not in graph or dep in permanent:
                    continue
                if dep in temporary:
                    raise DependencyCycle(path[path.index(dep) :] + [dep])
                temporary.add(dep)
                path.append(dep)
                stack.append((dep, iter(graph[dep])))
                break
            else:
                stack.pop()
                path.pop()
                temporary.discard(node)
                permanent.add(node)
                order.append(node)
    return order
