"""Stage 4: Dependency graph between analyzed units.

Edges point from the calling unit to the referenced name. Edges to names that
are not units in the document are kept (they feed the dangling-reference
diagnostics) but their target never gets a node. Self-references and repeated
edges between the same pair are kept as-is; every traversal below guards
against cycles with a visited set.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .models import AnalyzedUnit

logger = logging.getLogger(__name__)


@dataclass
class GraphNode:
    """Adjacency of one known unit. Lists keep one entry per edge."""
    calls: list[str] = field(default_factory=list)
    called_by: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"calls": list(self.calls), "calledBy": list(self.called_by)}


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    context: str

    def to_dict(self) -> dict:
        return {"from": self.source, "to": self.target, "context": self.context}


class DependencyGraph:
    """Directed multigraph of unit-to-unit references."""

    def __init__(self):
        self.nodes: dict[str, GraphNode] = {}
        self.edges: list[GraphEdge] = []

    def add_node(self, name: str) -> GraphNode:
        if name not in self.nodes:
            self.nodes[name] = GraphNode()
        return self.nodes[name]

    def add_edge(self, source: str, target: str, context: str) -> None:
        self.edges.append(GraphEdge(source, target, context))
        if target not in self.nodes:
            return
        self.add_node(source).calls.append(target)
        self.nodes[target].called_by.append(source)

    def has_node(self, name: str) -> bool:
        return name in self.nodes

    def successors(self, name: str) -> list[str]:
        """Distinct known units called by ``name``, first-seen order."""
        node = self.nodes.get(name)
        return list(dict.fromkeys(node.calls)) if node else []

    def predecessors(self, name: str) -> list[str]:
        node = self.nodes.get(name)
        return list(dict.fromkeys(node.called_by)) if node else []

    def dangling_edges(self) -> list[GraphEdge]:
        return [e for e in self.edges if e.target not in self.nodes]

    # -- Queries ---------------------------------------------------------

    def roots(self) -> list[str]:
        """Nodes with outgoing edges and no incoming edges."""
        return [
            name for name, node in self.nodes.items()
            if node.calls and not node.called_by
        ]

    def entry_points(self) -> list[str]:
        """Nodes nothing else calls (isolated nodes included)."""
        return [name for name, node in self.nodes.items() if not node.called_by]

    def leaves(self) -> list[str]:
        """Nodes that call no known unit."""
        return [name for name, node in self.nodes.items() if not node.calls]

    def transitive_calls(self, name: str) -> list[str]:
        """Every unit reachable from ``name``, breadth-first, excluding itself."""
        return self._reachable(name, self.successors)

    def transitive_callers(self, name: str) -> list[str]:
        """Every unit that can reach ``name``, breadth-first, excluding itself."""
        return self._reachable(name, self.predecessors)

    def _reachable(self, start: str, step) -> list[str]:
        if start not in self.nodes:
            return []
        visited = {start}
        order = []
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for nxt in step(current):
                if nxt not in visited:
                    visited.add(nxt)
                    order.append(nxt)
                    queue.append(nxt)
        return order

    def path_between(self, source: str, target: str) -> Optional[list[str]]:
        """Shortest call path from source to target, or None."""
        if source not in self.nodes:
            return None
        if source == target:
            return [source]

        queue = deque([[source]])
        visited = {source}
        while queue:
            path = queue.popleft()
            for nxt in self.successors(path[-1]):
                if nxt == target:
                    return path + [nxt]
                if nxt not in visited:
                    visited.add(nxt)
                    queue.append(path + [nxt])
        return None

    def find_cycles(self) -> list[list[str]]:
        """Cycles found by depth-first search, each closed on its first node.

        One cycle is reported per back edge, so a graph with overlapping
        loops may report more than one path through the same nodes.
        """
        cycles: list[list[str]] = []
        visited: set[str] = set()
        on_stack: list[str] = []

        def visit(name: str) -> None:
            visited.add(name)
            on_stack.append(name)
            for nxt in self.successors(name):
                if nxt in on_stack:
                    start = on_stack.index(nxt)
                    cycles.append(on_stack[start:] + [nxt])
                elif nxt not in visited:
                    visit(nxt)
            on_stack.pop()

        for name in self.nodes:
            if name not in visited:
                visit(name)
        return cycles

    def max_depth(self) -> int:
        """Length of the longest call chain; a revisited node ends the chain."""
        memo: dict[str, int] = {}
        on_path: set[str] = set()

        def depth(name: str) -> int:
            if name in memo:
                return memo[name]
            on_path.add(name)
            best = 0
            for nxt in self.successors(name):
                if nxt in on_path:
                    continue
                best = max(best, depth(nxt) + 1)
            on_path.discard(name)
            memo[name] = best
            return best

        return max((depth(name) for name in self.nodes), default=0)

    def summary(self) -> dict:
        return {
            "totalNodes": len(self.nodes),
            "totalEdges": len(self.edges),
            "entryPoints": len(self.entry_points()),
            "leaves": len(self.leaves()),
            "maxDepth": self.max_depth(),
            "cycles": len(self.find_cycles()),
            "danglingEdges": len(self.dangling_edges()),
        }

    def to_dict(self) -> dict:
        return {
            "nodes": {name: node.to_dict() for name, node in self.nodes.items()},
            "edges": [e.to_dict() for e in self.edges],
        }


def build_dependency_graph(units: Iterable[AnalyzedUnit]) -> DependencyGraph:
    """Build the graph from every sub-unit call of every unit."""
    units = list(units)
    graph = DependencyGraph()
    for unit in units:
        graph.add_node(unit.name)
    for unit in units:
        for call in unit.sub_unit_calls:
            graph.add_edge(unit.name, call.name, call.context)

    logger.info(
        "Built dependency graph: %d nodes, %d edges",
        len(graph.nodes), len(graph.edges),
    )
    return graph
