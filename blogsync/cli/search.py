"""Search command implementation."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import DEFAULT_CONFIG_PATH, Config
from ..db import EmbeddingStorage, Store
from ..errors import StoreError
from ..generation import SentenceTransformerEmbedder

console = Console()


def search_command(
    query: str = typer.Argument(..., help="Search query"),
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Configuration file",
    ),
    snapshot: Optional[Path] = typer.Option(
        None,
        "--snapshot",
        "-s",
        help="Snapshot to search (default: export.output_path)",
    ),
    limit: int = typer.Option(5, "--limit", "-n", help="Number of results"),
    mode: str = typer.Option("hybrid", "--mode", "-m", help="hybrid, vector or text"),
) -> None:
    """Search synced articles by meaning and keywords."""
    if mode not in ("hybrid", "vector", "text"):
        console.print(f"[red]❌ Unknown mode: {mode}[/red]")
        raise typer.Exit(1)

    try:
        cfg = Config(config_path).config
        path = snapshot or Path(cfg.export.output_path)
        store = Store.from_file(path)
    except (FileNotFoundError, ValueError, StoreError) as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    storage = EmbeddingStorage()
    with store:
        if mode == "text":
            results = storage.search_text(store, query, limit=limit)
        else:
            embedder = SentenceTransformerEmbedder(cfg.embedding.model, dimensions=cfg.embedding.dimensions)
            vector = embedder.embed(query)
            if mode == "vector":
                results = storage.search_similar(store, vector, limit=limit)
            else:
                results = storage.hybrid_search(store, vector, query, limit=limit)

    if not results:
        console.print("[yellow]No results[/yellow]")
        return

    table = Table(title=f"Results for '{query}'")
    table.add_column("Score", style="yellow")
    table.add_column("Title", style="cyan")
    table.add_column("Description", style="dim")
    table.add_column("ID", style="dim")

    for hit in results:
        table.add_row(f"{hit['score']:.3f}", hit["title"], hit["description"] or "", hit["id"])

    console.print(table)
