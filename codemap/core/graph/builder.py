"""Breadth-first call graph construction over a BlockStore."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Mapping

from codemap.core.config import ArityMatching
from codemap.core.exceptions import (
    InvalidFunctionRefError,
    TraversalCancelledError,
    TraversalError,
)
from codemap.core.graph.base import Graph
from codemap.core.logging import get_logger
from codemap.core.models import Call, FunctionBlock, FunctionRef
from codemap.core.storage import BlockStore

logger = get_logger(__name__)

UNKNOWN_MODULE = "?"

KERNEL_FUNCTIONS = frozenset(
    {
        # operators
        "+", "-", "*", "/", "==", "!=", "===", "!==", "<", ">", "<=", ">=",
        "&&", "||", "!", "and", "or", "not", "<>", "++", "--", "..", "in",
        "=~", "|>", "@",
        # functions and macros
        "abs", "apply", "binary_part", "bit_size", "byte_size", "ceil", "dbg",
        "div", "elem", "exit", "floor", "get_in", "hd", "if", "inspect",
        "is_atom", "is_binary", "is_bitstring", "is_boolean", "is_float",
        "is_function", "is_integer", "is_list", "is_map", "is_map_key",
        "is_nil", "is_number", "is_pid", "is_tuple", "length", "make_ref",
        "map_size", "match?", "max", "min", "put_elem", "put_in", "raise",
        "rem", "reraise", "round", "self", "send", "spawn", "spawn_link",
        "struct", "tap", "then", "throw", "tl", "to_charlist", "to_string",
        "trunc", "tuple_size", "unless", "update_in",
    }
)

SPECIAL_FORMS = frozenset(
    {
        "=", "^", "::", "case", "cond", "for", "receive", "try", "with",
        "quote", "unquote", "import", "require", "alias", "super",
    }
)

DEFAULT_IMPLICIT_IMPORTS: dict[str, str] = {
    **{name: "Kernel" for name in KERNEL_FUNCTIONS},
    **{name: "Kernel.SpecialForms" for name in SPECIAL_FORMS},
}


class GraphBuilder:
    """Builds call graphs by breadth-first expansion from a start function.

    Traversal state (frontier, visited set, graph) is local to each build()
    call, so one builder can serve concurrent callers.
    """

    def __init__(
        self,
        store: BlockStore,
        arity_matching: ArityMatching = ArityMatching.PERMISSIVE,
        implicit_imports: Mapping[str, str] | None = None,
        unknown_module: str = UNKNOWN_MODULE,
        max_nodes: int | None = None,
        max_edges: int | None = None,
    ) -> None:
        self._store = store
        self.arity_matching = arity_matching
        self.implicit_imports = dict(
            DEFAULT_IMPLICIT_IMPORTS if implicit_imports is None else implicit_imports
        )
        self.unknown_module = unknown_module
        self.max_nodes = max_nodes
        self.max_edges = max_edges

    def build(
        self,
        start: FunctionRef | tuple[str, str, int],
        max_nodes: int | None = None,
        max_edges: int | None = None,
        cancel: threading.Event | None = None,
    ) -> Graph:
        """Build the call graph reachable from ``start``.

        Missing modules and functions end their branch of the traversal;
        they are never fatal.

        Args:
            start: (module, function, arity) to start from
            max_nodes: Stop expanding once the graph holds this many nodes
            max_edges: Stop expanding once the graph holds this many edges
            cancel: Event checked before each node is expanded

        Raises:
            InvalidFunctionRefError: ``start`` is not a valid reference
            TraversalCancelledError: ``cancel`` was set
            TraversalError: Any other failure while building
        """
        ref = self.validate(start)
        try:
            return self._traverse(
                ref,
                max_nodes if max_nodes is not None else self.max_nodes,
                max_edges if max_edges is not None else self.max_edges,
                cancel,
            )
        except TraversalError:
            raise
        except Exception as e:
            raise TraversalError(f"Failed to build call graph from {ref}: {e}") from e

    @staticmethod
    def validate(start: object) -> FunctionRef:
        """Check that ``start`` is a well-formed (module, function, arity) triple."""
        if not isinstance(start, tuple) or len(start) != 3:
            raise InvalidFunctionRefError(f"Expected (module, function, arity), got {start!r}")
        module, function, arity = start
        if not isinstance(module, str) or not module:
            raise InvalidFunctionRefError(f"Invalid module: {module!r}")
        if not isinstance(function, str) or not function:
            raise InvalidFunctionRefError(f"Invalid function name: {function!r}")
        if not isinstance(arity, int) or isinstance(arity, bool) or arity < 0:
            raise InvalidFunctionRefError(f"Invalid arity: {arity!r}")
        return FunctionRef(module, function, arity)

    def _traverse(
        self,
        start: FunctionRef,
        max_nodes: int | None,
        max_edges: int | None,
        cancel: threading.Event | None,
    ) -> Graph:
        graph = Graph(start)
        frontier: deque[FunctionRef] = deque([start])
        visited: set[FunctionRef] = {start}

        while frontier:
            if cancel is not None and cancel.is_set():
                raise TraversalCancelledError(f"Traversal from {start} cancelled")

            current = frontier.popleft()
            for call in self.outgoing_calls(current):
                target = self.resolve_call(current.module, call)
                is_new = target not in visited

                if is_new and max_nodes is not None and graph.num_nodes >= max_nodes:
                    return self._truncate(graph, f"node budget {max_nodes}")
                if (
                    max_edges is not None
                    and graph.num_edges >= max_edges
                    and not graph.has_edge(current, target)
                ):
                    return self._truncate(graph, f"edge budget {max_edges}")

                if is_new:
                    visited.add(target)
                    frontier.append(target)
                graph.add_edge(current, target)

        return graph

    def _truncate(self, graph: Graph, reason: str) -> Graph:
        graph.truncated = True
        logger.warning("Call graph from %s truncated: %s reached", graph.start, reason)
        return graph

    def outgoing_calls(self, ref: FunctionRef) -> list[Call]:
        """Calls made by every clause of ``ref``, in declaration order."""
        block = self._store.get(ref.module)
        if block is None:
            logger.debug("Module %s not in store, treating %s as a leaf", ref.module, ref)
            return []

        clauses = [c for c in block.clauses(ref.function) if self.arity_matches(c, ref.arity)]
        if not clauses:
            logger.debug("No clause of %s matches, treating it as a leaf", ref)
            return []
        return [call for clause in clauses for call in clause.calls]

    def arity_matches(self, clause: FunctionBlock, arity: int) -> bool:
        """Whether a clause can be called with ``arity`` arguments."""
        if clause.arity is not None:
            return clause.arity - clause.defaults <= arity <= clause.arity
        if clause.params is not None:
            return len(clause.params) == arity
        if self.arity_matching is ArityMatching.STRICT:
            return False
        logger.warning("Cannot determine arity of %s, assuming it matches", clause.name)
        return True

    def resolve_call(self, module: str, call: Call) -> FunctionRef:
        """Resolve a call made from ``module`` to its target reference."""
        if call.module is not None:
            return FunctionRef(call.module, call.name, call.arity)
        if call.dynamic:
            return FunctionRef(self.unknown_module, call.name, call.arity)

        implicit = self.implicit_imports.get(call.name)
        if implicit is not None and not self._defines(module, call.name):
            return FunctionRef(implicit, call.name, call.arity)
        return FunctionRef(module, call.name, call.arity)

    def _defines(self, module: str, name: str) -> bool:
        block = self._store.get(module)
        return block is not None and bool(block.clauses(name))
