"""Stats command implementation."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import DEFAULT_CONFIG_PATH, Config
from ..db import ArticleStorage, Store, get_stats
from ..errors import StoreError

console = Console()


def stats_command(
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
        help="Snapshot to inspect (default: export.output_path)",
    ),
    articles: bool = typer.Option(False, "--articles", "-a", help="List articles"),
) -> None:
    """Show what a snapshot contains."""
    try:
        path = snapshot or Path(Config(config_path).config.export.output_path)
        store = Store.from_file(path)
    except (FileNotFoundError, ValueError, StoreError) as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    with store:
        counts = get_stats(store)
        dimensions = store.dimensions
        rows = ArticleStorage().list_articles(store) if articles else []

    table = Table(title=f"Snapshot: {path}")
    table.add_column("Table", style="cyan")
    table.add_column("Rows", style="yellow", justify="right")
    for name, count in counts.items():
        table.add_row(name, str(count))
    console.print(table)
    console.print(f"[dim]Embedding dimensions: {dimensions or '-'}[/dim]")

    if rows:
        listing = Table(title="Articles")
        listing.add_column("Last edited", style="yellow")
        listing.add_column("Status", style="bold")
        listing.add_column("Title", style="cyan")
        for article in rows:
            status = article.status.value if article.status else "-"
            listing.add_row(article.last_edited.strftime("%Y-%m-%d %H:%M"), status, article.title)
        console.print(listing)
