"""Sync pipeline: steps, diffing and orchestration."""

from .assets import AssetRewriter
from .diff import DiffResolver, TimestampDiffResolver
from .models import Phase, PhaseResult, PipelineResult, StepResult, StepSummary
from .orchestrator import SyncPipeline, create_sync_pipeline, print_summary
from .step import PipelineStep, StepContext
from .steps import (
    DownloadAssetsStep,
    EmbedArticlesStep,
    ExportDatabaseStep,
    FetchSourceStep,
    StoreAssetsStep,
    UpsertArticlesStep,
)

__all__ = [
    "Phase",
    "PipelineStep",
    "StepContext",
    "StepResult",
    "StepSummary",
    "PhaseResult",
    "PipelineResult",
    "DiffResolver",
    "TimestampDiffResolver",
    "AssetRewriter",
    "SyncPipeline",
    "create_sync_pipeline",
    "print_summary",
    "FetchSourceStep",
    "DownloadAssetsStep",
    "UpsertArticlesStep",
    "StoreAssetsStep",
    "EmbedArticlesStep",
    "ExportDatabaseStep",
]
