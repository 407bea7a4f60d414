"""End-to-end tests for the sync pipeline orchestrator."""

import io
import re

import pytest
from rich.console import Console

from blogsync.config import Config
from blogsync.db import ArticleStorage, AssetStorage, EmbeddingStorage, Store, get_stats
from blogsync.errors import PipelineError
from blogsync.generation import MockLLMProvider
from blogsync.ingestion import StaticSource
from blogsync.pipeline import (
    AssetRewriter,
    EmbedArticlesStep,
    ExportDatabaseStep,
    FetchSourceStep,
    PipelineStep,
    StoreAssetsStep,
    SyncPipeline,
    UpsertArticlesStep,
    create_sync_pipeline,
    print_summary,
)
from blogsync.pipeline.models import Phase

from .conftest import IMAGE_URL, T1, T2, corrupt_gzip_snapshot


class FailingLLM(MockLLMProvider):
    async def generate_description(self, title, content):
        raise RuntimeError("llm unavailable")


class SpyStore(Store):
    instances = []

    @classmethod
    def create(cls):
        store = super().create()
        SpyStore.instances.append(store)
        return store


def _pipeline(config, records, downloader, embedder, llm=None):
    return create_sync_pipeline(
        Config(config=config),
        source=StaticSource(records),
        llm_provider=llm or MockLLMProvider(),
        embedder=embedder,
        downloader=downloader,
    )


def _load(path) -> Store:
    return Store.from_file(path)


class TestSyncPipeline:
    async def test_full_run_writes_snapshot(self, config, downloader, embedder, make_record) -> None:
        records = [
            make_record("a1", T1, markdown=f"# A1\n\n![x]({IMAGE_URL})"),
            make_record("a2", T1),
        ]

        result = await _pipeline(config, records, downloader, embedder).run()

        assert result.success
        assert result.phases.diff.plan.summary() == {"new": 2, "updated": 0, "unchanged": 0, "deleted": 0}
        assert [s.name for s in result.phases.fetch.steps] == ["fetch-source", "download-assets"]
        assert [s.name for s in result.phases.update.steps] == [
            "upsert-articles",
            "store-assets",
            "embed-articles",
        ]
        assert result.total_duration >= result.phases.update.duration

        store = _load(config.export.output_path)
        try:
            assert get_stats(store) == {"article": 2, "asset": 1, "embedding": 2}
            article = ArticleStorage().get_article(store, "a1")
            assert IMAGE_URL not in article.markdown
            assert re.search(r"db://image/[0-9a-f-]{36}", article.markdown)
            [asset_id] = AssetStorage().list_ids(store, "a1")
            assert f"db://image/{asset_id}" in article.markdown
        finally:
            store.close()
        assert downloader.requests == {IMAGE_URL: 1}

    async def test_second_run_skips_unchanged(self, config, downloader, embedder, make_record) -> None:
        records = [make_record("a1", T1), make_record("a2", T1)]
        await _pipeline(config, records, downloader, embedder).run()

        config.store.existing_path = config.export.output_path
        llm = MockLLMProvider()
        result = await _pipeline(config, records, downloader, embedder, llm).run()

        plan = result.phases.diff.plan
        assert plan.to_create == [] and plan.to_update == []
        assert sorted(r.id for r in plan.to_skip) == ["a1", "a2"]
        assert llm.calls == []

    async def test_edit_and_delete_between_runs(self, config, downloader, embedder, make_record) -> None:
        await _pipeline(config, [make_record("a1", T1), make_record("a2", T1)], downloader, embedder).run()

        config.store.existing_path = config.export.output_path
        result = await _pipeline(
            config, [make_record("a1", T2, title="Edited")], downloader, embedder
        ).run()

        plan = result.phases.diff.plan
        assert [r.id for r in plan.to_update] == ["a1"]
        assert plan.to_delete == ["a2"]

        store = _load(config.export.output_path)
        try:
            assert get_stats(store) == {"article": 1, "asset": 0, "embedding": 1}
            assert ArticleStorage().get_article(store, "a1").title == "Edited"
            [row] = EmbeddingStorage().get_for_article(store, "a1")
            assert row.content.startswith("Title: Edited")
        finally:
            store.close()

    async def test_unreadable_snapshot_falls_back_to_empty_store(
        self, config, downloader, embedder, make_record, tmp_path
    ) -> None:
        bad = tmp_path / "corrupt.db.gz"
        bad.write_bytes(b"garbage")
        config.store.existing_path = str(bad)

        result = await _pipeline(config, [make_record("a1")], downloader, embedder).run()

        assert result.success
        assert [r.id for r in result.phases.diff.plan.to_create] == ["a1"]

    async def test_corrupt_compressed_snapshot_falls_back_to_empty_store(
        self, config, downloader, embedder, make_record, tmp_path
    ) -> None:
        config.store.existing_path = str(corrupt_gzip_snapshot(tmp_path / "flipped.db.gz"))

        result = await _pipeline(config, [make_record("a1")], downloader, embedder).run()

        assert result.success
        assert [r.id for r in result.phases.diff.plan.to_create] == ["a1"]

    async def test_failure_wraps_error_and_closes_store(
        self, config, downloader, embedder, make_record, monkeypatch
    ) -> None:
        SpyStore.instances = []
        monkeypatch.setattr("blogsync.pipeline.orchestrator.Store", SpyStore)
        pipeline = _pipeline(config, [make_record("a1")], downloader, embedder, FailingLLM())

        with pytest.raises(PipelineError) as exc_info:
            await pipeline.run()

        assert exc_info.value.phase == "update"
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert all(s.closed for s in SpyStore.instances) and SpyStore.instances
        assert pipeline.result.success is False
        assert pipeline.result.failed_phase == "update"
        assert pipeline.result.phases.update.steps[-1].error == "llm unavailable"

    async def test_failed_update_publishes_no_snapshot(
        self, config, downloader, embedder, make_record
    ) -> None:
        pipeline = _pipeline(config, [make_record("a1")], downloader, embedder, FailingLLM())

        with pytest.raises(PipelineError):
            await pipeline.run()

        assert pipeline.result.phases.upload.steps == []

    async def test_atomic_update_rolls_back(
        self, config, store, downloader, embedder, make_record, monkeypatch
    ) -> None:
        rewriter = AssetRewriter(downloader)
        pipeline = SyncPipeline(
            config,
            fetch_steps=[FetchSourceStep(StaticSource([make_record("a1")]))],
            update_steps=[UpsertArticlesStep(rewriter), StoreAssetsStep(), EmbedArticlesStep(FailingLLM(), embedder)],
            upload_steps=[],
        )
        monkeypatch.setattr(pipeline, "_resolve_store", lambda: store)
        monkeypatch.setattr(store, "close", lambda: None)

        with pytest.raises(PipelineError):
            await pipeline.run()

        assert get_stats(store)["article"] == 0

    async def test_non_atomic_update_keeps_partial_writes(
        self, config, store, downloader, embedder, make_record, monkeypatch
    ) -> None:
        config.pipeline.atomic_update = False
        rewriter = AssetRewriter(downloader)
        pipeline = SyncPipeline(
            config,
            fetch_steps=[FetchSourceStep(StaticSource([make_record("a1")]))],
            update_steps=[UpsertArticlesStep(rewriter), EmbedArticlesStep(FailingLLM(), embedder)],
            upload_steps=[],
        )
        monkeypatch.setattr(pipeline, "_resolve_store", lambda: store)
        monkeypatch.setattr(store, "close", lambda: None)

        with pytest.raises(PipelineError):
            await pipeline.run()

        assert get_stats(store)["article"] == 1

    async def test_fetch_failure_reports_fetch_phase(self, config) -> None:
        class BrokenSource(StaticSource):
            async def get_updated_records(self):
                raise RuntimeError("boom")

        pipeline = SyncPipeline(config, [FetchSourceStep(BrokenSource([]))], [], [])

        with pytest.raises(PipelineError, match="fetch phase failed: boom"):
            await pipeline.run()

    async def test_no_fetch_steps_means_empty_batch(self, config) -> None:
        result = await SyncPipeline(config, [], [], [ExportDatabaseStep()]).run()

        assert result.success
        assert result.phases.diff.plan.summary()["new"] == 0


class TestPipelineConstruction:
    def test_step_in_wrong_list_rejected(self, config) -> None:
        with pytest.raises(ValueError, match="export-database"):
            SyncPipeline(config, fetch_steps=[ExportDatabaseStep()], update_steps=[], upload_steps=[])

    def test_custom_step_phase_checked(self, config) -> None:
        class Noop(PipelineStep):
            name = "noop"
            phase = Phase.UPDATE

            async def execute(self, data):
                return data

        SyncPipeline(config, [], [Noop()], [])
        with pytest.raises(ValueError):
            SyncPipeline(config, [], [], [Noop()])

    def test_factory_requires_notion_token(self, config, monkeypatch) -> None:
        monkeypatch.delenv("NOTION_TOKEN", raising=False)
        config.notion.token = None

        with pytest.raises(ValueError, match="Notion token"):
            create_sync_pipeline(Config(config=config))

    def test_factory_uses_mock_llm_without_key(self, config, monkeypatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        config.llm.provider = "openai"

        pipeline = create_sync_pipeline(Config(config=config))

        embed = pipeline.update_steps[-1]
        assert isinstance(embed.llm, MockLLMProvider)
        assert not embed.embedder.loaded


class TestPrintSummary:
    async def test_summary_lists_steps_and_outcome(self, config, downloader, embedder, make_record) -> None:
        result = await _pipeline(config, [make_record("a1")], downloader, embedder).run()
        out = Console(file=io.StringIO(), width=200)

        print_summary(result, out)

        text = out.file.getvalue()
        assert "upsert-articles" in text
        assert "1 new, 0 updated, 0 unchanged, 0 deleted" in text
        assert "Sync completed successfully" in text
