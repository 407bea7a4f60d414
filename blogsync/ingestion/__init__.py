"""Content source and asset fetching."""

from .assets import AssetDownloader
from .base import ContentSource, StaticSource
from .markdown import blocks_to_markdown
from .notion import NotionSource

__all__ = [
    "ContentSource",
    "StaticSource",
    "NotionSource",
    "AssetDownloader",
    "blocks_to_markdown",
]
