"""Init command implementation."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import DEFAULT_CONFIG_PATH, ConfigModel, save_config

console = Console()


def init_command(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Where to write the configuration file",
    ),
    database_id: str = typer.Option("", "--database-id", help="Notion database ID"),
    output_path: Path = typer.Option(
        Path("./db/blog.db.gz"),
        "--output",
        "-o",
        help="Snapshot written by each sync",
    ),
    existing_path: Optional[Path] = typer.Option(
        None,
        "--existing",
        help="Snapshot loaded before diffing (default: same as --output)",
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config file"),
) -> None:
    """Create a default blogsync configuration."""
    console.print(Panel.fit("📝 Blog Sync - Initialization", style="bold blue"))

    if config_path.exists() and not force:
        console.print(f"[red]❌ Config already exists: {config_path}[/red] (use --force to overwrite)")
        raise typer.Exit(1)

    config = ConfigModel(
        notion={"database_id": database_id},
        store={"existing_path": str(existing_path or output_path)},
        export={"output_path": str(output_path)},
    )

    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    console.print(
        Panel(
            f"[green]✅ Blog Sync initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n"
            f"Snapshot: {output_path}\n\n"
            f"Next steps:\n"
            f"1. Set Notion token: [bold]export {config.notion.token_env}=your_token[/bold]\n"
            f"2. Set LLM API key: [bold]export {config.llm.api_key_env}=your_key[/bold]\n"
            f"3. Run: [bold]blogsync sync[/bold]",
            style="green",
        )
    )
