"""Text, Mermaid and JSON-ready renderings of graphs and blocks."""

from __future__ import annotations

import hashlib
from typing import Any

from codemap.core.graph.base import Graph
from codemap.core.models import Call, FunctionBlock, FunctionRef, ModuleBlock, Position

_LABEL_ESCAPES = str.maketrans({'"': "#quot;", "[": "(", "]": ")"})


def render_text(graph: Graph) -> str:
    """Plain-text listing of a graph's nodes and edges in insertion order."""
    lines = [
        f"Call graph - start: {graph.start}",
        f"Nodes: {graph.num_nodes}",
        f"Edges: {graph.num_edges}",
        "",
        "Node list:",
    ]
    lines.extend(f"- {node}" for node in graph.nodes)
    lines.append("")
    lines.append("Calls:")
    lines.extend(f"- {caller} -> {callee}" for caller, callee in graph.edges)
    return "\n".join(lines)


def node_id(ref: FunctionRef) -> str:
    """Mermaid node id, stable across runs for the same reference."""
    digest = hashlib.sha256(str(ref).encode("utf-8")).hexdigest()
    return f"node_{digest[:12]}"


def render_diagram(graph: Graph) -> str:
    """Mermaid flowchart of a graph."""
    lines = ["graph TD"]
    for node in graph.nodes:
        label = str(node).translate(_LABEL_ESCAPES)
        lines.append(f'  {node_id(node)}["{label}"]')
    for caller, callee in graph.edges:
        lines.append(f"  {node_id(caller)} --> {node_id(callee)}")
    return "\n".join(lines)


def _ref_to_dict(ref: FunctionRef) -> dict[str, Any]:
    return {"module": ref.module, "function": ref.function, "arity": ref.arity, "id": str(ref)}


def graph_to_dict(graph: Graph) -> dict[str, Any]:
    """Convert a Graph to a JSON-serializable dict."""
    return {
        "start": _ref_to_dict(graph.start),
        "nodes": [_ref_to_dict(n) for n in graph.nodes],
        "edges": [{"from": str(a), "to": str(b)} for a, b in graph.edges],
        "truncated": graph.truncated,
    }


def _position_to_dict(position: Position | None) -> dict[str, Any] | None:
    if position is None:
        return None
    return {"line": position.line, "column": position.column}


def _term_to_json(value: Any) -> Any:
    # Attribute values are raw terms and may hold tuples.
    if isinstance(value, (tuple, list)):
        return [_term_to_json(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def _call_to_dict(call: Call) -> dict[str, Any]:
    return {
        "module": call.module,
        "name": call.name,
        "arity": call.arity,
        "dynamic": call.dynamic,
        "position": _position_to_dict(call.position),
    }


def _function_to_dict(func: FunctionBlock) -> dict[str, Any]:
    return {
        "kind": func.kind.value,
        "name": func.name,
        "arity": func.arity,
        "params": list(func.params) if func.params is not None else None,
        "defaults": func.defaults,
        "private": func.private,
        "position": _position_to_dict(func.position),
        "calls": [_call_to_dict(c) for c in func.calls],
    }


def block_to_dict(block: ModuleBlock) -> dict[str, Any]:
    """Convert a ModuleBlock to a JSON-serializable dict."""
    return {
        "kind": block.kind.value,
        "name": block.name,
        "position": _position_to_dict(block.position),
        "attributes": [
            {"key": a.key, "value": _term_to_json(a.value)} for a in block.attributes
        ],
        "children": [_function_to_dict(f) for f in block.children],
    }
