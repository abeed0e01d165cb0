from __future__ import annotations

from collections import deque
from collections.abc import Hashable, Iterable
from typing import TypeVar


NodeT = TypeVar("NodeT", bound=Hashable)


def build_pair_graph(pairs: Iterable[tuple[NodeT, NodeT]]) -> dict[NodeT, list[NodeT]]:
    graph: dict[NodeT, list[NodeT]] = {}
    for a, b in pairs:
        graph.setdefault(a, []).append(b)
        graph.setdefault(b, []).append(a)
    return graph


def find_shortest_path(
    graph: dict[NodeT, list[NodeT]],
    start: NodeT,
    goal: NodeT,
) -> list[NodeT] | None:
    """Breadth-first search returning the path with the fewest hops.

    Among equally short paths the first one discovered wins, which follows the
    adjacency insertion order of the graph. Returns None when the goal cannot be
    reached from start.
    """
    visited = {start}
    queue: deque[tuple[NodeT, list[NodeT]]] = deque([(start, [start])])

    while queue:
        node, path = queue.popleft()
        if node == goal:
            return path
        for neighbor in graph.get(node, ()):
            if neighbor in visited:
                continue
            visited.add(neighbor)
            queue.append((neighbor, path + [neighbor]))

    return None
