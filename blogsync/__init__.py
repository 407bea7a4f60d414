"""Blog Sync - incremental Notion to SQLite content pipeline."""

__version__ = "0.1.0"
