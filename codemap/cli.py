"""CLI entry point for Codemap."""

import json
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from codemap.core.codemap import Codemap
from codemap.core.config import ArityMatching, Settings, get_settings
from codemap.core.exceptions import CodemapError
from codemap.core.graph import block_to_dict, graph_to_dict
from codemap.core.logging import setup_logging
from codemap.core.models import ScanStats
from codemap.sources import JsonDumpProvider, encode_term

app = typer.Typer(
    name="codemap",
    help="Static call graphs for Elixir codebases.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

SourceOption = Annotated[
    Path | None,
    typer.Option("--source", "-s", help="Directory of quoted-AST JSON dumps"),
]
JsonOption = Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")]


def get_codemap(source: Path | None, **overrides: Any) -> Codemap:
    """Create a scanned facade for the given dump directory."""
    settings: Settings = get_settings()
    if overrides:
        settings = settings.model_copy(update=overrides)
    path = (source or settings.source_dir).resolve()
    try:
        return Codemap.from_directory(path, settings)
    except CodemapError as e:
        fail(str(e))


def fail(message: str) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code=1)


def print_stats(stats: ScanStats) -> None:
    console.print(f"  Modules normalized: {stats.modules}")
    console.print(f"  Functions found: {stats.functions}")
    console.print(f"  Calls recorded: {stats.calls}")
    if stats.removed:
        console.print(f"  [dim]Removed: {stats.removed}[/]")
    if stats.failed:
        console.print(f"  [red]Failed: {stats.failed}[/red]")
        for error in stats.errors:
            console.print(f"    {error}")


@app.callback()
def main(
    log_level: Annotated[
        str | None, typer.Option("--log-level", "-l", help="Logging level (default: WARNING)")
    ] = None,
) -> None:
    """Configure logging before any command runs."""
    setup_logging(log_level or get_settings().log_level)


@app.command()
def scan(
    source: SourceOption = None,
    output_json: JsonOption = False,
) -> None:
    """Normalize every module in the dump directory and report statistics."""
    settings = get_settings()
    path = (source or settings.source_dir).resolve()

    with Codemap(JsonDumpProvider(path), settings) as cm:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            disable=output_json,
        ) as progress:
            task = progress.add_task(f"Scanning [cyan]{path.name}[/]", total=None)

            def on_progress(module: str, current: int, total: int) -> None:
                progress.update(
                    task, total=total, completed=current, description=f"[cyan]{module}[/]"
                )

            try:
                stats = cm.rescan_now(on_progress)
            except CodemapError as e:
                fail(str(e))

    if output_json:
        print(
            json.dumps(
                {
                    "modules": stats.modules,
                    "functions": stats.functions,
                    "calls": stats.calls,
                    "failed": stats.failed,
                    "removed": stats.removed,
                    "errors": stats.errors,
                }
            )
        )
        return

    console.print("[green]Done![/green]")
    print_stats(stats)


@app.command()
def modules(
    source: SourceOption = None,
    output_json: JsonOption = False,
) -> None:
    """List all normalized modules."""
    with get_codemap(source) as cm:
        names = sorted(cm.list_modules())

    if output_json:
        print(json.dumps(names))
        return
    if not names:
        console.print("No modules found")
        return
    for name in names:
        console.print(f"[cyan]{name}[/cyan]")


@app.command()
def block(
    module: Annotated[str, typer.Argument(help="Module name, e.g. MyApp.Server")],
    source: SourceOption = None,
    output_json: JsonOption = False,
) -> None:
    """Show the normalized block of a module."""
    with get_codemap(source) as cm:
        try:
            result = cm.get_block(module)
        except CodemapError as e:
            fail(str(e))

    if output_json:
        print(json.dumps(block_to_dict(result)))
        return

    console.print(f"\n[bold cyan]{result.name}[/] (module)")
    if result.position is not None:
        console.print(f"  [dim]line {result.position}[/]")
    for attr in result.attributes:
        console.print(f"  [dim]@{attr.key}[/]")
    for func in result.children:
        keyword = "defp" if func.private else "def"
        arity = "?" if func.arity is None else func.arity
        console.print(f"\n  [green]{keyword}[/] [cyan]{func.name}/{arity}[/]")
        if not func.calls:
            console.print("    [dim]No calls found[/]")
        for call in func.calls:
            target = "?" if call.dynamic else (call.module or "(local)")
            where = f" [dim](line {call.position})[/]" if call.position else ""
            console.print(f"    {target}.{call.name}/{call.arity}{where}")


@app.command()
def ast(
    module: Annotated[str, typer.Argument(help="Module name, e.g. MyApp.Server")],
    source: SourceOption = None,
) -> None:
    """Print the raw quoted tree of a module as JSON."""
    path = (source or get_settings().source_dir).resolve()
    provider = JsonDumpProvider(path)
    try:
        tree = provider.resolve(module)
    except CodemapError as e:
        fail(str(e))
    if tree is None:
        fail(f"Module '{module}' not found")
    print(json.dumps(encode_term(tree), indent=2))


@app.command()
def graph(
    module: Annotated[str, typer.Argument(help="Module of the start function")],
    function: Annotated[str, typer.Argument(help="Name of the start function")],
    arity: Annotated[int, typer.Argument(help="Arity of the start function")],
    source: SourceOption = None,
    mermaid: Annotated[
        bool, typer.Option("--mermaid", "-m", help="Output a Mermaid diagram")
    ] = False,
    output_json: JsonOption = False,
    max_nodes: Annotated[
        int | None, typer.Option("--max-nodes", help="Stop after this many nodes", min=1)
    ] = None,
    max_edges: Annotated[
        int | None, typer.Option("--max-edges", help="Stop after this many edges", min=1)
    ] = None,
    strict: Annotated[
        bool, typer.Option("--strict", help="Never match clauses of unknown arity")
    ] = False,
) -> None:
    """Build the call graph reachable from MODULE.FUNCTION/ARITY."""
    overrides: dict[str, Any] = {}
    if strict:
        overrides["arity_matching"] = ArityMatching.STRICT

    with get_codemap(source, **overrides) as cm:
        try:
            result = cm.build_call_graph(
                module, function, arity, max_nodes=max_nodes, max_edges=max_edges
            )
        except CodemapError as e:
            fail(str(e))

        if output_json:
            print(json.dumps(graph_to_dict(result)))
        elif mermaid:
            print(cm.render_diagram(result))
        else:
            print(cm.render_text(result))

    if result.truncated and not output_json:
        err_console.print("[yellow]Graph truncated: budget reached[/yellow]")


if __name__ == "__main__":
    app()
