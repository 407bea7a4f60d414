"""Persisted store for blogsync."""

from .articles import ArticleStorage
from .assets import AssetStorage
from .connection import Store, from_db_timestamp, to_db_timestamp
from .embeddings import EmbeddingStorage
from .init import DEFAULT_DIMENSIONS, get_stats, init_schema

__all__ = [
    "Store",
    "ArticleStorage",
    "AssetStorage",
    "EmbeddingStorage",
    "DEFAULT_DIMENSIONS",
    "init_schema",
    "get_stats",
    "to_db_timestamp",
    "from_db_timestamp",
]
