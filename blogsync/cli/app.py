"""Main CLI application."""

import logging

import typer
from dotenv import load_dotenv
from rich.logging import RichHandler

# Load .env file if it exists
load_dotenv()

from .init import init_command
from .search import search_command
from .stats import stats_command
from .sync import sync_command

app = typer.Typer(
    name="blogsync",
    help="Blog Sync - incremental Notion to SQLite content pipeline",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    # Per-request logs from httpx are too noisy at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


# Register commands
app.command("init")(init_command)
app.command("sync")(sync_command)
app.command("search")(search_command)
app.command("stats")(stats_command)


if __name__ == "__main__":
    app()
