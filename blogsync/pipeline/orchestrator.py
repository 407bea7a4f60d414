"""Pipeline orchestrator that runs a complete sync."""

import logging
import sqlite3
import time
from typing import Any, List, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import Config, ConfigModel
from ..db import Store, init_schema
from ..errors import PipelineError, StoreError
from ..generation import Embedder, LLMProvider, SentenceTransformerEmbedder, create_llm_provider
from ..ingestion import AssetDownloader, ContentSource, NotionSource
from .assets import AssetRewriter, Downloader
from .diff import DiffResolver, TimestampDiffResolver
from .models import Phase, PhaseResult, PipelineResult, StepSummary
from .step import PipelineStep, StepContext
from .steps import (
    DownloadAssetsStep,
    EmbedArticlesStep,
    ExportDatabaseStep,
    FetchSourceStep,
    StoreAssetsStep,
    UpsertArticlesStep,
)

console = Console()


class SyncPipeline:
    """Runs FETCH -> DIFF -> UPDATE -> UPLOAD over a store it owns.

    Each phase's steps run in order, the output of one feeding the next.
    The store is loaded from the configured snapshot (or created empty) after
    the fetch phase and is always closed when the run ends.
    """

    def __init__(
        self,
        config: ConfigModel,
        fetch_steps: Sequence[PipelineStep],
        update_steps: Sequence[PipelineStep],
        upload_steps: Sequence[PipelineStep],
        diff_resolver: Optional[DiffResolver] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Initialize the pipeline.

        Raises:
            ValueError: If a step is placed in a list for another phase
        """
        for phase, steps in (
            (Phase.FETCH, fetch_steps),
            (Phase.UPDATE, update_steps),
            (Phase.UPLOAD, upload_steps),
        ):
            for step in steps:
                if step.phase != phase:
                    raise ValueError(
                        f"Step {step.name!r} belongs to the {step.phase.value} phase, "
                        f"not {phase.value}"
                    )

        self.config = config
        self.fetch_steps = list(fetch_steps)
        self.update_steps = list(update_steps)
        self.upload_steps = list(upload_steps)
        self.diff_resolver = diff_resolver or TimestampDiffResolver()
        self.logger = logger or logging.getLogger("blogsync.pipeline")
        self.result: Optional[PipelineResult] = None

    def _resolve_store(self) -> Store:
        """Load the configured snapshot, or start from an empty store."""
        dimensions = self.config.embedding.dimensions
        path = self.config.store.existing_path

        if path:
            store = None
            try:
                store = Store.from_file(path)
                init_schema(store, dimensions)
                self.logger.info("Loaded existing database from %s", path)
                return store
            except (StoreError, sqlite3.DatabaseError, ValueError) as e:
                if store is not None:
                    store.close()
                self.logger.warning("Could not load %s (%s), starting from an empty database", path, e)

        store = Store.create()
        init_schema(store, dimensions)
        self.logger.info("Created empty database")
        return store

    async def _run_phase(
        self,
        steps: List[PipelineStep],
        data: Any,
        ctx: StepContext,
        phase_result: PhaseResult,
    ) -> Any:
        start = time.perf_counter()
        try:
            for step in steps:
                summary = StepSummary(name=step.name, description=step.description)
                phase_result.steps.append(summary)
                try:
                    step_result = await step.run(data, ctx)
                except Exception as e:
                    summary.error = str(e)
                    raise
                summary.success = True
                summary.duration = step_result.duration
                summary.stats = dict(step.stats)
                data = step_result.data
        finally:
            phase_result.duration = time.perf_counter() - start
        return data

    async def run(self) -> PipelineResult:
        """
        Run the complete pipeline.

        Returns:
            Result with per-phase timings, step summaries and the diff plan

        Raises:
            PipelineError: If any phase fails; the cause is chained
        """
        result = PipelineResult()
        self.result = result
        total_start = time.perf_counter()
        phase = Phase.FETCH.value
        store: Optional[Store] = None

        try:
            ctx = StepContext(self.config, self.logger)
            fetched = await self._run_phase(self.fetch_steps, None, ctx, result.phases.fetch)
            if fetched is None:
                fetched = []

            phase = "diff"
            store = self._resolve_store()
            ctx = StepContext(self.config, self.logger, store)

            diff_start = time.perf_counter()
            plan = self.diff_resolver.resolve(fetched, store)
            result.phases.diff.duration = time.perf_counter() - diff_start
            result.phases.diff.plan = plan
            self.logger.info(
                "Diff: %(new)d new, %(updated)d updated, %(unchanged)d unchanged, %(deleted)d deleted",
                plan.summary(),
            )

            phase = Phase.UPDATE.value
            if self.config.pipeline.atomic_update:
                with store.transaction():
                    output = await self._run_phase(self.update_steps, plan, ctx, result.phases.update)
            else:
                output = await self._run_phase(self.update_steps, plan, ctx, result.phases.update)

            phase = Phase.UPLOAD.value
            await self._run_phase(self.upload_steps, output, ctx, result.phases.upload)

            result.success = True
        except Exception as e:
            result.failed_phase = phase
            result.error = str(e)
            self.logger.error("Pipeline failed in %s phase: %s", phase, e)
            raise PipelineError(phase, e) from e
        finally:
            if store is not None:
                store.close()
            result.total_duration = time.perf_counter() - total_start

        self.logger.info("Pipeline completed in %.2fs", result.total_duration)
        return result


def create_sync_pipeline(
    config: Config,
    source: Optional[ContentSource] = None,
    llm_provider: Optional[LLMProvider] = None,
    embedder: Optional[Embedder] = None,
    downloader: Optional[Downloader] = None,
    logger: Optional[logging.Logger] = None,
) -> SyncPipeline:
    """Build a pipeline with the default steps.

    Collaborators that are not passed in are built from the configuration:
    a Notion source, the configured LLM provider (mock when no API key is
    set), a lazily loaded sentence-transformers embedder and an HTTP
    asset downloader.
    """
    cfg = config.config

    if source is None:
        token = config.get_notion_token()
        if not token:
            raise ValueError(f"Notion token not set (expected in ${cfg.notion.token_env})")
        source = NotionSource(
            token=token,
            database_id=cfg.notion.database_id,
            timeout=cfg.notion.timeout_seconds,
            max_retries=cfg.notion.max_retries,
            published_only=cfg.notion.published_only,
        )
    if llm_provider is None:
        llm_provider = create_llm_provider(config.get_llm_config())
    if embedder is None:
        embedder = SentenceTransformerEmbedder(
            model_name=cfg.embedding.model,
            dimensions=cfg.embedding.dimensions,
        )
    if downloader is None:
        downloader = AssetDownloader(timeout=cfg.assets.timeout_seconds)

    rewriter = AssetRewriter(
        downloader,
        allowed_hosts=cfg.assets.allowed_hosts,
        local_prefix=cfg.assets.local_prefix,
    )

    return SyncPipeline(
        cfg,
        fetch_steps=[FetchSourceStep(source), DownloadAssetsStep(rewriter)],
        update_steps=[
            UpsertArticlesStep(rewriter),
            StoreAssetsStep(),
            EmbedArticlesStep(llm_provider, embedder, cfg.embedding.max_content_chars),
        ],
        upload_steps=[ExportDatabaseStep()],
        logger=logger,
    )


def _step_details(summary: StepSummary) -> str:
    stats = summary.stats
    if not summary.success:
        return summary.error or "Failed"
    if "fetched" in stats:
        return f"{stats['fetched']} records"
    if "downloaded" in stats:
        return f"{stats['downloaded']} assets"
    if "new" in stats:
        return f"{stats['new']} new, {stats['updated']} updated, {stats['deleted']} deleted"
    if "stored" in stats:
        return f"{stats['stored']} assets"
    if "embedded" in stats:
        return f"{stats['embedded']} articles"
    if "path" in stats:
        return f"{stats['path']} ({stats['bytes']:,} bytes)"
    return ""


def print_summary(result: PipelineResult, out: Optional[Console] = None) -> None:
    """Print pipeline execution summary."""
    out = out or console

    table = Table(title="Pipeline Summary")
    table.add_column("Phase", style="cyan")
    table.add_column("Step", style="bold")
    table.add_column("Status", style="bold")
    table.add_column("Duration", style="yellow")
    table.add_column("Details", style="dim")

    phases = result.phases
    for phase_name, phase_result in (
        ("fetch", phases.fetch),
        ("update", phases.update),
        ("upload", phases.upload),
    ):
        for step in phase_result.steps:
            status = "[green]✓[/green]" if step.success else "[red]✗[/red]"
            duration = f"{step.duration:.1f}s" if step.duration > 0 else "-"
            table.add_row(phase_name.title(), step.name, status, duration, _step_details(step))

        if phase_name == "fetch" and phases.diff.plan is not None:
            counts = phases.diff.plan.summary()
            table.add_row(
                "Diff",
                "timestamp-diff",
                "[green]✓[/green]",
                f"{phases.diff.duration:.1f}s",
                f"{counts['new']} new, {counts['updated']} updated, "
                f"{counts['unchanged']} unchanged, {counts['deleted']} deleted",
            )

    out.print("\n")
    out.print(table)

    if result.success:
        out.print(
            Panel(
                f"[green]✅ Sync completed successfully![/green]\n\n"
                f"Duration: {result.total_duration:.1f} seconds",
                style="green",
            )
        )
    else:
        out.print(
            Panel(
                f"[red]❌ Sync failed![/red]\n\n"
                f"Failed phase: {result.failed_phase}\n"
                f"Error: {result.error}\n"
                f"Duration: {result.total_duration:.1f} seconds\n"
                f"Check logs for details.",
                style="red",
            )
        )
