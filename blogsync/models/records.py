"""In-flight records passed between pipeline steps.

Records are frozen: a step that changes one builds a copy with
``model_copy(update=...)`` and hands the copy on.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ArticleStatus(str, Enum):
    """Lifecycle status of an article."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVE = "archive"
    IN_REVIEW = "in_review"


class DownloadedAsset(BaseModel):
    """Binary payload fetched for an asset URL."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    media_type: str = "application/octet-stream"


class AssetRecord(BaseModel):
    """Asset ready to be stored, keyed by a local id."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Generated UUID")
    data: bytes
    media_type: str
    original_url: str


class _RecordBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Source-assigned identifier")
    title: str = Field(..., description="Article title")
    description: str = Field("", description="Short description")
    tags: List[str] = Field(default_factory=list)
    created_at: datetime
    last_edited: datetime
    status: ArticleStatus = ArticleStatus.PUBLISHED
    markdown: str = Field("", description="Raw body text")

    @field_validator("created_at", "last_edited")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        """Normalize timestamps to aware UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class FetchedRecord(_RecordBase):
    """A document as retrieved from the source, before local processing."""

    assets: Dict[str, DownloadedAsset] = Field(
        default_factory=dict, description="Downloaded payloads keyed by original URL"
    )


class ProcessedRecord(_RecordBase):
    """A document after asset rewriting, ready for persistence."""

    assets: List[AssetRecord] = Field(default_factory=list)


class UpdatePlan(BaseModel):
    """Four-way classification of a fetched batch against the store."""

    model_config = ConfigDict(frozen=True)

    to_create: List[FetchedRecord] = Field(default_factory=list)
    to_update: List[FetchedRecord] = Field(default_factory=list)
    to_skip: List[FetchedRecord] = Field(default_factory=list)
    to_delete: List[str] = Field(default_factory=list)

    @property
    def to_process(self) -> List[FetchedRecord]:
        """Records that need writing: creates first, then updates."""
        return [*self.to_create, *self.to_update]

    def summary(self) -> Dict[str, int]:
        """Partition sizes."""
        return {
            "new": len(self.to_create),
            "updated": len(self.to_update),
            "unchanged": len(self.to_skip),
            "deleted": len(self.to_delete),
        }
