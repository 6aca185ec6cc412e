"""
Codemap: Static call graphs for Elixir codebases.

Codemap normalizes quoted Elixir module trees into blocks of function
clauses and the calls they make, enabling you to:
- Inspect the normalized structure of any module
- Build the call graph reachable from any function
- Render it as text, a Mermaid diagram or JSON

Usage:
    from codemap.core.codemap import Codemap

    with Codemap.from_directory(Path(".codemap/ast")) as cm:
        graph = cm.build_call_graph("MyApp.Server", "start_link", 1)
        print(cm.render_diagram(graph))
"""

__version__ = "0.1.0"
