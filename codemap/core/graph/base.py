"""Core Graph class with insertion-ordered node and edge sets."""

from __future__ import annotations

from codemap.core.models import FunctionRef

Edge = tuple[FunctionRef, FunctionRef]


class Graph:
    """Directed call graph rooted at a start function.

    Nodes and edges keep insertion order. Edges are unique ordered pairs;
    self-loops are allowed.
    """

    __slots__ = ("start", "truncated", "_nodes", "_edges", "_out")

    def __init__(self, start: FunctionRef) -> None:
        self.start = start
        self.truncated = False
        self._nodes: dict[FunctionRef, None] = {start: None}
        self._edges: dict[Edge, None] = {}
        self._out: dict[FunctionRef, list[FunctionRef]] = {start: []}

    def add_node(self, node: FunctionRef) -> bool:
        """Add a node. Returns False if it was already present. O(1)."""
        if node in self._nodes:
            return False
        self._nodes[node] = None
        self._out[node] = []
        return True

    def add_edge(self, caller: FunctionRef, callee: FunctionRef) -> bool:
        """Add an edge and both endpoints. Returns False for a duplicate pair. O(1)."""
        edge = (caller, callee)
        if edge in self._edges:
            return False
        self.add_node(caller)
        self.add_node(callee)
        self._edges[edge] = None
        self._out[caller].append(callee)
        return True

    def has_edge(self, caller: FunctionRef, callee: FunctionRef) -> bool:
        return (caller, callee) in self._edges

    def get_callees(self, node: FunctionRef) -> list[FunctionRef]:
        """Direct callees in edge order. O(out-degree)."""
        return list(self._out.get(node, []))

    def get_callers(self, node: FunctionRef) -> list[FunctionRef]:
        """Direct callers in edge order. O(E)."""
        return [caller for caller, callee in self._edges if callee == node]

    @property
    def nodes(self) -> list[FunctionRef]:
        return list(self._nodes)

    @property
    def edges(self) -> list[Edge]:
        return list(self._edges)

    @property
    def num_nodes(self) -> int:
        return len(self._nodes)

    @property
    def num_edges(self) -> int:
        return len(self._edges)

    def __contains__(self, node: object) -> bool:
        return node in self._nodes

    def __repr__(self) -> str:
        return f"Graph(start={self.start}, nodes={self.num_nodes}, edges={self.num_edges})"
