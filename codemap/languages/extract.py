"""Grammar-independent call extraction over normalized nodes."""

from __future__ import annotations

from collections.abc import Mapping

from codemap.core.models import Call
from codemap.languages.nodes import (
    Grouping,
    Leaf,
    LocalCall,
    Node,
    Pipeline,
    QualifiedCall,
    Sequence,
    StatementBlock,
    TargetKind,
    WithChain,
)

_ERLANG_ALIAS_PREFIX = "Elixir."


class CallExtractor:
    """Extracts calls from one module's function bodies.

    Each rule emits the call it produces first, followed by the calls nested
    in its operands, so the result follows call-site order.
    """

    def __init__(self, module: str, aliases: Mapping[str, str] | None = None) -> None:
        self.module = module
        self.aliases = dict(aliases or {})

    def extract(self, node: Node) -> list[Call]:
        """Extract calls from a node and everything below it."""
        if isinstance(node, QualifiedCall):
            return self._qualified(node, node.arity)
        if isinstance(node, Pipeline):
            return self._pipeline(node)
        if isinstance(node, WithChain):
            return self._with_chain(node)
        if isinstance(node, (Grouping, Sequence)):
            return self._extract_all(node.elements)
        if isinstance(node, StatementBlock):
            return self._extract_all(node.statements)
        if isinstance(node, LocalCall):
            return self._local(node, node.arity)
        if isinstance(node, Leaf):
            return []
        raise TypeError(f"Unknown node kind: {type(node).__name__}")

    def resolve_module(self, node: QualifiedCall) -> str | None:
        """Resolve a qualified call's receiver to a module identifier.

        Returns None when the receiver is a runtime value.
        """
        if node.target is TargetKind.ALIAS:
            if len(node.segments) == 1:
                return self.aliases.get(node.segments[0], node.segments[0])
            return ".".join(node.segments)
        if node.target is TargetKind.ATOM:
            atom = node.segments[0]
            if atom.startswith(_ERLANG_ALIAS_PREFIX):
                return atom[len(_ERLANG_ALIAS_PREFIX) :]
            return f":{atom}"
        if node.target is TargetKind.CURRENT:
            return ".".join((self.module, *node.segments))
        return None

    def _extract_all(self, nodes: tuple[Node, ...]) -> list[Call]:
        calls: list[Call] = []
        for child in nodes:
            calls.extend(self.extract(child))
        return calls

    def _qualified(self, node: QualifiedCall, arity: int) -> list[Call]:
        module = self.resolve_module(node)
        calls = [
            Call(
                name=node.name,
                arity=arity,
                module=module,
                position=node.position,
                dynamic=module is None,
            )
        ]
        if node.receiver is not None:
            calls.extend(self.extract(node.receiver))
        calls.extend(self._extract_all(node.args))
        return calls

    def _local(self, node: LocalCall, arity: int) -> list[Call]:
        calls = [Call(name=node.name, arity=arity, position=node.position)]
        calls.extend(self._extract_all(node.args))
        return calls

    def _pipeline(self, node: Pipeline) -> list[Call]:
        # The piped value becomes the first argument of the right-hand call.
        calls = self.extract(node.left)
        right = node.right
        if isinstance(right, QualifiedCall):
            calls.extend(self._qualified(right, right.arity + 1))
        elif isinstance(right, LocalCall):
            calls.extend(self._local(right, right.arity + 1))
        elif isinstance(right, Leaf) and right.name is not None:
            calls.append(Call(name=right.name, arity=1, position=right.position))
        else:
            calls.extend(self.extract(right))
        return calls

    def _with_chain(self, node: WithChain) -> list[Call]:
        calls = self._extract_all(node.clauses)
        calls.extend(self.extract(node.body))
        if node.otherwise is not None:
            calls.extend(self.extract(node.otherwise))
        return calls
