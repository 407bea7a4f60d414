"""Pipeline steps."""

from .download_assets import DownloadAssetsStep
from .embed_articles import EmbedArticlesStep, truncate_content
from .export_database import ExportDatabaseStep
from .fetch_source import FetchSourceStep
from .store_assets import StoreAssetsStep
from .upsert_articles import UpsertArticlesStep

__all__ = [
    "FetchSourceStep",
    "DownloadAssetsStep",
    "UpsertArticlesStep",
    "StoreAssetsStep",
    "EmbedArticlesStep",
    "ExportDatabaseStep",
    "truncate_content",
]
