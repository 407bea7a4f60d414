"""Persisted row models: articles, their assets and embeddings."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import DBModel
from .records import ArticleStatus


class Article(DBModel):
    """Article row, unique by source-assigned id."""

    id: str = Field(..., description="Source page id")
    title: str = Field(..., description="Article title")
    description: str = Field("", description="Short description")
    tags: List[str] = Field(default_factory=list, description="Tag names")
    markdown: str = Field(..., description="Body with local asset references")
    status: Optional[ArticleStatus] = Field(None, description="Lifecycle status")
    last_edited: datetime = Field(..., description="Source modification timestamp")


class Asset(DBModel):
    """Binary asset owned by an article."""

    id: str = Field(..., description="Opaque local identifier")
    article_id: str = Field(..., description="Foreign key to article table")
    data: bytes = Field(..., description="Binary payload")
    media_type: str = Field(..., description="MIME type")
    original_url: str = Field(..., description="URL the payload was downloaded from")


class Embedding(DBModel):
    """Semantic artifact for one article."""

    id: Optional[int] = Field(None, description="Primary key")
    article_id: str = Field(..., description="Foreign key to article table")
    chunk_idx: int = Field(0, description="Always 0: one synthesized document per article")
    content: str = Field(..., description="Synthesized description text")
    content_hash: str = Field(..., description="md5 of content")
    embedding: List[float] = Field(default_factory=list, description="Normalized vector")
