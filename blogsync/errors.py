"""Exception types raised by blogsync."""

from typing import Optional


class BlogSyncError(Exception):
    """Base class for blogsync errors."""


class StoreError(BlogSyncError):
    """The persisted store or a snapshot file could not be used."""


class SourceError(BlogSyncError):
    """The content source returned a non-retryable error."""

    def __init__(self, message: str, code: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code
        self.status = status


class TransientSourceError(SourceError):
    """Rate limiting or temporary unavailability; safe to retry."""


class AssetDownloadError(BlogSyncError):
    """An embedded asset could not be downloaded."""


class PipelineError(BlogSyncError):
    """A pipeline phase failed; the original exception is chained."""

    def __init__(self, phase: str, cause: BaseException) -> None:
        super().__init__(f"{phase} phase failed: {cause}")
        self.phase = phase
        self.cause = cause
