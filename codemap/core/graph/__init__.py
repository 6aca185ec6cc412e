"""
Call graph construction and presentation.

Data Structures:
    - Graph: Insertion-ordered nodes and deduplicated edges from a start function

Algorithms:
    - GraphBuilder: Breadth-first expansion over BlockStore lookups, with
      node/edge budgets and cooperative cancellation

Rendering:
    - render_text(): Plain-text node and edge listing
    - render_diagram(): Mermaid flowchart
    - graph_to_dict() / block_to_dict(): JSON-ready structures
"""

from codemap.core.graph.base import Graph
from codemap.core.graph.builder import DEFAULT_IMPLICIT_IMPORTS, UNKNOWN_MODULE, GraphBuilder
from codemap.core.graph.render import (
    block_to_dict,
    graph_to_dict,
    node_id,
    render_diagram,
    render_text,
)

__all__ = [
    "Graph",
    "GraphBuilder",
    "DEFAULT_IMPLICIT_IMPORTS",
    "UNKNOWN_MODULE",
    "render_text",
    "render_diagram",
    "node_id",
    "graph_to_dict",
    "block_to_dict",
]
