"""Normalizer for Elixir quoted syntax trees.

Quoted form arrives as plain Python values: 3-tuples ``(form, meta, args)``
for AST nodes, 2-tuples and lists as themselves, atoms and binaries as
``str``. Variables are ``(name, meta, None)``.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from codemap.core.exceptions import NormalizationError
from codemap.core.logging import get_logger
from codemap.core.models import Attribute, FunctionBlock, ModuleBlock, Position
from codemap.languages.extract import CallExtractor
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

logger = get_logger(__name__)

_DEF_FORMS = {"def": False, "defp": True}

# Forms that are syntax containers rather than callable functions.
_CONTAINER_FORMS = {"fn", "%{}", "%", "<<>>", "|"}

_DEFAULT_ARG = "\\\\"


def _is_node(term: Any) -> bool:
    return isinstance(term, tuple) and len(term) == 3


def _is_form(term: Any, form: str) -> bool:
    return _is_node(term) and term[0] == form


def _arg_count(term: Any) -> int:
    return len(term[2]) if _is_node(term) and isinstance(term[2], list) else -1


def _keyword(term: Any, key: str) -> Any:
    """Look up a key in a keyword list, or None."""
    if isinstance(term, list):
        for item in term:
            if isinstance(item, tuple) and len(item) == 2 and item[0] == key:
                return item[1]
    return None


def position_of(meta: Any) -> Position | None:
    """Read line/column from node metadata."""
    line = _keyword(meta, "line")
    column = _keyword(meta, "column")
    if line is None and column is None:
        return None
    return Position(line=line, column=column)


def _statements(body: Any) -> list[Any]:
    if body is None:
        return []
    if _is_form(body, "__block__") and isinstance(body[2], list):
        return list(body[2])
    return [body]


def _unwrap_block(term: Any) -> Any:
    if _is_form(term, "__block__") and isinstance(term[2], list) and len(term[2]) == 1:
        return term[2][0]
    return term


def alias_parts(term: Any, current: str | None = None) -> tuple[str, ...] | None:
    """Segments of an ``__aliases__`` node, expanding a leading ``__MODULE__``."""
    if not _is_form(term, "__aliases__") or not isinstance(term[2], list) or not term[2]:
        return None
    parts: list[str] = []
    for index, part in enumerate(term[2]):
        if isinstance(part, str):
            parts.append(part)
        elif index == 0 and _is_form(part, "__MODULE__") and current is not None:
            parts.extend(current.split("."))
        else:
            return None
    return tuple(parts)


# ---------------------------------------------------------------------------
# Classification: raw quoted terms -> normalized nodes
# ---------------------------------------------------------------------------


def classify(term: Any) -> Node:
    """Map a raw quoted term onto the closed set of node kinds."""
    if isinstance(term, list):
        return Sequence(tuple(classify(t) for t in term))
    if not isinstance(term, tuple):
        return Leaf()
    if len(term) == 2:
        return Grouping((classify(term[0]), classify(term[1])))
    if len(term) != 3:
        return Grouping(tuple(classify(t) for t in term))

    head, meta, args = term
    if _is_node(head):
        return _classify_remote(head, meta, args)
    if not isinstance(head, str):
        return Leaf()
    if not isinstance(args, list):
        return Leaf(name=head, position=position_of(meta))

    if head == "|>" and len(args) == 2:
        return Pipeline(classify(args[0]), classify(args[1]))
    if head == "with":
        return _classify_with(args)
    if head == "{}":
        return Grouping(tuple(classify(a) for a in args))
    if head == "__block__":
        return StatementBlock(tuple(classify(a) for a in args))
    if head == "__aliases__":
        return Leaf()
    if head == "&":
        return _classify_capture(args, meta)
    if head == "->" and len(args) == 2:
        return _classify_clause(args[0], args[1])
    if head == "<-" and len(args) == 2:
        return StatementBlock((classify(args[1]),))
    if head in _CONTAINER_FORMS:
        return Sequence(tuple(classify(a) for a in args))

    return LocalCall(
        name=head,
        arity=len(args),
        args=tuple(classify(a) for a in args),
        position=position_of(meta),
    )


def _classify_remote(dot: tuple[Any, Any, Any], meta: Any, args: Any) -> Node:
    """Classify ``{{:., _, [target, name]}, meta, args}`` and anonymous calls."""
    args = args if isinstance(args, list) else []
    arg_nodes = tuple(classify(a) for a in args)
    form, _, dot_args = dot
    if form != "." or not isinstance(dot_args, list):
        return Sequence((classify(dot), *arg_nodes))

    # Anonymous function call: fun.(args)
    if len(dot_args) == 1:
        return StatementBlock((classify(dot_args[0]), *arg_nodes))

    if len(dot_args) != 2 or not isinstance(dot_args[1], str):
        return Sequence(tuple(classify(a) for a in dot_args) + arg_nodes)

    target, name = dot_args
    position = position_of(meta)
    parts = alias_parts(target)
    if parts is not None:
        return QualifiedCall(TargetKind.ALIAS, parts, name, len(args), arg_nodes, position=position)
    current = _current_module_segments(target)
    if current is not None:
        return QualifiedCall(
            TargetKind.CURRENT, current, name, len(args), arg_nodes, position=position
        )
    if isinstance(target, str):
        return QualifiedCall(
            TargetKind.ATOM, (target,), name, len(args), arg_nodes, position=position
        )

    receiver = classify(target)
    if not args and _keyword(meta, "no_parens") is True:
        # map.field access, not a call
        return StatementBlock((receiver,))
    return QualifiedCall(
        TargetKind.DYNAMIC, (), name, len(args), arg_nodes, receiver=receiver, position=position
    )


def _current_module_segments(target: Any) -> tuple[str, ...] | None:
    """Segments after ``__MODULE__`` for ``__MODULE__`` or ``__MODULE__.Sub``."""
    if _is_form(target, "__MODULE__"):
        return ()
    if (
        _is_form(target, "__aliases__")
        and isinstance(target[2], list)
        and target[2]
        and _is_form(target[2][0], "__MODULE__")
    ):
        return tuple(p for p in target[2][1:] if isinstance(p, str))
    return None


def _classify_with(args: list[Any]) -> Node:
    clauses: list[Node] = []
    body: Node = Leaf()
    otherwise: Node | None = None
    for arg in args:
        if isinstance(arg, list) and _keyword(arg, "do") is not None:
            body = classify(_keyword(arg, "do"))
            if _keyword(arg, "else") is not None:
                otherwise = classify(_keyword(arg, "else"))
        elif _is_form(arg, "<-") and isinstance(arg[2], list) and len(arg[2]) == 2:
            clauses.append(classify(arg[2][1]))
        else:
            clauses.append(classify(arg))
    return WithChain(tuple(clauses), body, otherwise)


def _classify_capture(args: list[Any], meta: Any) -> Node:
    """``&Mod.fun/2`` and ``&fun/2`` become calls with the captured arity."""
    if len(args) == 1 and _is_form(args[0], "/") and _arg_count(args[0]) == 2:
        callee, arity = args[0][2]
        if isinstance(arity, int) and not isinstance(arity, bool) and _is_node(callee):
            if _is_form(callee[0], "."):
                # Captured remote calls are quoted like field access
                node = _classify_remote(callee[0], _without_no_parens(callee[1]), [])
            else:
                node = classify(callee)
            if isinstance(node, QualifiedCall) and not node.args:
                return QualifiedCall(
                    node.target,
                    node.segments,
                    node.name,
                    arity,
                    receiver=node.receiver,
                    position=node.position,
                )
            if isinstance(node, Leaf) and node.name is not None:
                return LocalCall(node.name, arity, position=node.position or position_of(meta))
    return StatementBlock(tuple(classify(a) for a in args))


def _without_no_parens(meta: Any) -> Any:
    if not isinstance(meta, list):
        return meta
    return [kv for kv in meta if not (isinstance(kv, tuple) and kv[:1] == ("no_parens",))]


def _classify_clause(patterns: Any, body: Any) -> Node:
    """``pattern when guard -> body``: only the guard and body can call."""
    nodes: list[Node] = []
    if isinstance(patterns, list) and len(patterns) == 1 and _is_form(patterns[0], "when"):
        guard_args = patterns[0][2]
        if isinstance(guard_args, list) and guard_args:
            nodes.append(classify(guard_args[-1]))
    nodes.append(classify(body))
    return StatementBlock(tuple(nodes))


# ---------------------------------------------------------------------------
# Module-level normalization
# ---------------------------------------------------------------------------


def collect_aliases(statements: list[Any], current: str | None = None) -> dict[str, str]:
    """Build the alias table from top-level ``alias`` statements."""
    table: dict[str, str] = {}
    for stmt in statements:
        if not _is_form(stmt, "alias") or not isinstance(stmt[2], list) or not stmt[2]:
            continue
        target = _unwrap_block(stmt[2][0])
        opts = stmt[2][1] if len(stmt[2]) > 1 else None

        parts = alias_parts(target, current)
        if parts is not None:
            as_parts = alias_parts(_keyword(opts, "as"))
            key = as_parts[-1] if as_parts else parts[-1]
            table[key] = ".".join(parts)
            continue

        # alias Prefix.{A, B}
        if _is_node(target) and _is_node(target[0]):
            dot_form, _, dot_args = target[0]
            if dot_form != "." or not isinstance(dot_args, list) or len(dot_args) != 2:
                continue
            prefix = alias_parts(dot_args[0], current)
            if prefix is None or dot_args[1] != "{}" or not isinstance(target[2], list):
                continue
            for item in target[2]:
                item_parts = alias_parts(item)
                if item_parts:
                    table[item_parts[-1]] = ".".join(prefix + item_parts)
    return table


def _module_header(tree: Any, module: str | None = None) -> tuple[str, Any, Any]:
    if not _is_form(tree, "defmodule") or not isinstance(tree[2], list) or len(tree[2]) != 2:
        raise NormalizationError(f"Not a module definition: {_describe(tree)}")
    name_node, opts = tree[2]
    parts = alias_parts(name_node, module)
    if parts is None:
        raise NormalizationError(f"Unrecognized module name: {_describe(name_node)}")
    name = module or ".".join(parts)
    if not isinstance(opts, list) or not any(
        isinstance(item, tuple) and len(item) == 2 and item[0] == "do" for item in opts
    ):
        raise NormalizationError(f"Module {name} has no do block")
    return name, _keyword(opts, "do"), tree[1]


def _describe(term: Any, limit: int = 60) -> str:
    text = repr(term)
    return text if len(text) <= limit else text[: limit - 3] + "..."


def iter_modules(tree: Any, prefix: str | None = None) -> Iterator[tuple[str, Any]]:
    """Yield ``(module_name, defmodule_node)`` for every module in a tree.

    Nested modules are named after their parent, e.g. ``Outer.Inner``.
    """
    nodes = [tree] if _is_form(tree, "defmodule") else _statements(tree)
    for stmt in nodes:
        if _is_form(stmt, "__block__"):
            yield from iter_modules(stmt, prefix)
            continue
        if not _is_form(stmt, "defmodule") or not isinstance(stmt[2], list) or len(stmt[2]) != 2:
            continue
        name_node, opts = stmt[2]
        parts = alias_parts(name_node)
        if parts is None:
            # defmodule __MODULE__.Inner
            parts = alias_parts(name_node, prefix)
        elif prefix:
            parts = (*prefix.split("."), *parts)
        if parts is None:
            continue
        name = ".".join(parts)
        yield name, stmt
        yield from iter_modules(_keyword(opts, "do"), name)


def select_module(tree: Any, module: str) -> Any | None:
    """Find the defmodule node for ``module`` inside a multi-module tree."""
    for name, node in iter_modules(tree):
        if name == module:
            return node
    return None


class ElixirNormalizer:
    """Turns a quoted ``defmodule`` tree into a ModuleBlock."""

    def normalize(self, tree: Any, module: str | None = None) -> ModuleBlock:
        """Normalize one module.

        Args:
            tree: Quoted ``defmodule`` node
            module: Full module name to use instead of the declared one
                (nested modules are declared with their short name)

        Raises:
            NormalizationError: The tree is not a recognizable module
        """
        name, body, meta = _module_header(tree, module)
        statements = _statements(body)

        aliases = collect_aliases(statements, name)
        extractor = CallExtractor(name, aliases)

        functions: list[FunctionBlock] = []
        attributes: list[Attribute] = []
        for stmt in statements:
            function = self._function_block(stmt, extractor)
            if function is not None:
                functions.append(function)
                continue
            attribute = self._attribute(stmt)
            if attribute is not None:
                attributes.append(attribute)

        logger.debug(
            "Normalized %s: %d clauses, %d aliases", name, len(functions), len(aliases)
        )
        return ModuleBlock(
            name=name,
            children=tuple(functions),
            attributes=tuple(attributes),
            position=position_of(meta),
        )

    def _function_block(self, stmt: Any, extractor: CallExtractor) -> FunctionBlock | None:
        if not _is_node(stmt) or stmt[0] not in _DEF_FORMS or not isinstance(stmt[2], list):
            return None
        # Bodiless heads only declare defaults
        if len(stmt[2]) != 2 or not isinstance(stmt[2][1], list):
            return None
        head, blocks = stmt[2]

        guard = None
        if _is_form(head, "when") and isinstance(head[2], list) and len(head[2]) == 2:
            head, guard = head[2]
        if not _is_node(head) or not isinstance(head[0], str) or head[0] == "unquote":
            return None

        name, _, raw_params = head
        params, defaults = self._params(raw_params)

        calls = []
        if guard is not None:
            calls.extend(extractor.extract(classify(guard)))
        for item in blocks:
            if isinstance(item, tuple) and len(item) == 2:
                calls.extend(extractor.extract(classify(item[1])))

        return FunctionBlock(
            name=name,
            calls=tuple(calls),
            arity=len(params),
            params=params,
            defaults=defaults,
            private=_DEF_FORMS[stmt[0]],
            position=position_of(stmt[1]),
        )

    def _params(self, raw_params: Any) -> tuple[tuple[str, ...], int]:
        if not isinstance(raw_params, list):
            return (), 0
        names: list[str] = []
        defaults = 0
        for index, param in enumerate(raw_params):
            if _is_form(param, _DEFAULT_ARG) and isinstance(param[2], list) and param[2]:
                defaults += 1
                param = param[2][0]
            if _is_node(param) and isinstance(param[0], str) and not isinstance(param[2], list):
                names.append(param[0])
            else:
                names.append(f"arg{index}")
        return tuple(names), defaults

    def _attribute(self, stmt: Any) -> Attribute | None:
        if not _is_form(stmt, "@") or not isinstance(stmt[2], list) or len(stmt[2]) != 1:
            return None
        inner = stmt[2][0]
        if not _is_node(inner) or not isinstance(inner[0], str):
            return None
        values = inner[2]
        value = values[0] if isinstance(values, list) and len(values) == 1 else values
        return Attribute(key=inner[0], value=value)
