"""Sync command implementation."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import DEFAULT_CONFIG_PATH, Config
from ..errors import PipelineError
from ..pipeline import create_sync_pipeline, print_summary

console = Console()


def sync_command(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Configuration file",
    ),
    existing: Optional[Path] = typer.Option(
        None,
        "--existing",
        help="Snapshot to diff against (overrides config)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Where to write the new snapshot (overrides config)",
    ),
    fresh: bool = typer.Option(
        False,
        "--fresh",
        help="Ignore any existing snapshot and rebuild from scratch",
    ),
) -> None:
    """Sync the Notion database into a new snapshot."""
    try:
        config = Config(config_path)
        cfg = config.config

        if existing is not None:
            cfg.store.existing_path = str(existing)
        if fresh:
            cfg.store.existing_path = None
        if output is not None:
            cfg.export.output_path = str(output)

        console.print(
            Panel.fit(
                f"📝 Blog Sync\n"
                f"Database: {cfg.notion.database_id or '-'} • "
                f"Snapshot: {cfg.store.existing_path or 'none'} → {cfg.export.output_path}",
                style="bold blue",
            )
        )

        pipeline = create_sync_pipeline(config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    try:
        asyncio.run(pipeline.run())
    except KeyboardInterrupt:
        console.print("\n[yellow]Sync interrupted by user[/yellow]")
        raise typer.Exit(1)
    except PipelineError:
        raise typer.Exit(1)
    finally:
        if pipeline.result is not None:
            print_summary(pipeline.result, console)
