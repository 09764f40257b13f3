from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .config import Settings
from .engine import EngineState, load, query
from .errors import ChunkFinderError
from .export import chunks_to_csv, write_csv
from .graph.query import filter_features
from .log import setup_logging


app = typer.Typer(add_completion=False, help="Chunk Finder: find chunks connected to graph features.")
console = Console()
err_console = Console(stderr=True)


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level (DEBUG, INFO, WARNING)"),
):
    settings = Settings()
    setup_logging(log_level or settings.log_level)


def _load(graph: Path, file_group: int | None, chunk_group: int | None) -> EngineState:
    settings = Settings()
    text = graph.read_text(encoding="utf-8", errors="replace")
    try:
        return load(
            text,
            file_prefix=settings.file_prefix,
            chunk_prefix=settings.chunk_prefix,
            file_group_hint=file_group if file_group is not None else settings.file_group,
            chunk_group_hint=chunk_group if chunk_group is not None else settings.chunk_group,
        )
    except ChunkFinderError as e:
        console.print(str(e), style="red", markup=False)
        raise typer.Exit(code=2)


@app.command()
def roles(
    graph: Path = typer.Argument(..., exists=True, file_okay=True, dir_okay=False, help="Graph JSON file"),
    file_group: int | None = typer.Option(None, "--file-group", help="Group id of file nodes"),
    chunk_group: int | None = typer.Option(None, "--chunk-group", help="Group id of chunk nodes"),
):
    """Show the detected file/chunk groups and index stats."""
    state = _load(graph, file_group, chunk_group)

    table = Table(title="Graph Roles")
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("File group", str(state.roles.file_group))
    table.add_row("Chunk group", str(state.roles.chunk_group))
    table.add_row("Decided by", state.roles.source)
    for k, v in state.index.stats.items():
        table.add_row(k.replace("_", " ").capitalize(), str(v))
    console.print(table)

    if state.index.files_as_features:
        console.print("No feature group found; file nodes are used as features.", style="yellow")


@app.command()
def features(
    graph: Path = typer.Argument(..., exists=True, file_okay=True, dir_okay=False, help="Graph JSON file"),
    search: str | None = typer.Option(None, "--search", "-s", help="Case-insensitive substring filter"),
    file_group: int | None = typer.Option(None, "--file-group"),
    chunk_group: int | None = typer.Option(None, "--chunk-group"),
    counts: bool = typer.Option(False, "--counts", help="Also show how many chunks each feature reaches"),
):
    """List feature nodes (the ids you can pass to `find`)."""
    state = _load(graph, file_group, chunk_group)
    ids = filter_features(state.feature_ids, search)

    if not ids:
        console.print("No matching features.", style="yellow")
        raise typer.Exit(code=1)

    for fid in ids:
        if counts:
            console.print(f"{fid}\t{len(state.index.chunks_for(fid))}", markup=False)
        else:
            console.print(fid, markup=False)
    console.print(f"Features: {len(ids)}/{len(state.feature_ids)} · Chunks: {state.chunk_count}", style="dim")


@app.command()
def find(
    graph: Path = typer.Argument(..., exists=True, file_okay=True, dir_okay=False, help="Graph JSON file"),
    feature: list[str] = typer.Option(..., "--feature", "-f", help="Feature id (repeatable)"),
    any_: bool = typer.Option(False, "--any", help="Connected to ANY selected feature (default: ALL)"),
    csv: Path | None = typer.Option(None, "--csv", help="Also write results to this CSV file"),
    as_csv: bool = typer.Option(False, "--as-csv", help="Print results as CSV"),
    file_group: int | None = typer.Option(None, "--file-group"),
    chunk_group: int | None = typer.Option(None, "--chunk-group"),
):
    """Find chunks connected to ALL (default) or ANY of the given features."""
    state = _load(graph, file_group, chunk_group)
    mode = "ANY" if any_ else "ALL"

    unknown = [fid for fid in feature if fid not in state.index.feature_to_chunks]
    for fid in unknown:
        err_console.print(f"Feature has no chunks (or is unknown): {fid}", style="yellow", markup=False)

    chunks = query(state, feature, mode)

    if as_csv:
        console.print(chunks_to_csv(chunks), markup=False, end="")
    else:
        for c in chunks:
            console.print(c, markup=False)
        console.print(f"{len(chunks)} chunks ({mode})", style="dim")

    if csv is not None:
        write_csv(csv, chunks)
        console.print(f"Wrote {len(chunks)} chunks to {csv}", markup=False)


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
    graph: Path | None = typer.Option(None, "--graph", exists=True, file_okay=True, dir_okay=False, help="Graph to preload"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes (dev only)"),
):
    """Run the Chunk Finder JSON API (FastAPI)."""
    settings = Settings()
    try:
        import uvicorn
    except Exception:
        console.print("Missing web dependencies. Install: `pip install -e '.[web]'`", style="red")
        raise typer.Exit(code=2)

    from .web.server import create_app

    app_ = create_app(preload_path=str(graph) if graph is not None else None)
    uvicorn.run(app_, host=host or settings.host, port=int(port or settings.port), reload=bool(reload))


if __name__ == "__main__":
    app()
