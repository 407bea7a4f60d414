"""Data models for blogsync."""

from .article import Article, Asset, Embedding
from .records import (
    ArticleStatus,
    AssetRecord,
    DownloadedAsset,
    FetchedRecord,
    ProcessedRecord,
    UpdatePlan,
)

__all__ = [
    "Article",
    "Asset",
    "Embedding",
    "ArticleStatus",
    "AssetRecord",
    "DownloadedAsset",
    "FetchedRecord",
    "ProcessedRecord",
    "UpdatePlan",
]
