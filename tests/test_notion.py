"""Tests for the Notion source."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from blogsync.errors import SourceError, TransientSourceError
from blogsync.ingestion import NotionSource
from blogsync.ingestion.notion import get_created_at, get_status
from blogsync.models import ArticleStatus


def _text(content: str) -> dict:
    return {"type": "text", "plain_text": content, "annotations": {}, "href": None}


def _page(page_id: str, title: str, **overrides) -> dict:
    properties = {
        "Title": {"type": "title", "title": [_text(title)]},
        "Description": {"type": "rich_text", "rich_text": [_text(f"About {title}")]},
        "Tags": {"type": "multi_select", "multi_select": [{"name": "life"}, {"name": "travel"}]},
        "Created at": {"type": "date", "date": {"start": "2024-01-05"}},
        "Status": {"type": "status", "status": {"name": "Published"}},
    }
    properties.update(overrides)
    return {
        "object": "page",
        "id": page_id,
        "created_time": "2023-12-31T10:00:00.000Z",
        "last_edited_time": "2024-03-01T12:00:00.000Z",
        "properties": properties,
    }


def _paragraph(content: str, **extra) -> dict:
    return {"id": f"b-{content}", "type": "paragraph", "paragraph": {"rich_text": [_text(content)]}, **extra}


class FakeNotion:
    """Routes Notion API requests to canned responses."""

    def __init__(self, query_pages, blocks, failures=None) -> None:
        self.query_pages = query_pages
        self.blocks = blocks
        self.failures = list(failures or [])
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.failures:
            return self.failures.pop(0)

        path = request.url.path
        if path.endswith("/query"):
            body = json.loads(request.content)
            cursor = body.get("start_cursor")
            index = int(cursor) if cursor else 0
            page = self.query_pages[index]
            has_more = index + 1 < len(self.query_pages)
            return httpx.Response(
                200,
                json={"results": page, "has_more": has_more, "next_cursor": str(index + 1) if has_more else None},
            )

        block_id = path.split("/")[-2]
        return httpx.Response(200, json={"results": self.blocks.get(block_id, []), "has_more": False})


def _source(api: FakeNotion, **kwargs) -> NotionSource:
    return NotionSource(
        token="secret",
        database_id="db-1",
        backoff_seconds=0,
        page_delay=0,
        transport=httpx.MockTransport(api),
        **kwargs,
    )


class TestNotionSource:
    async def test_reads_properties_and_body(self) -> None:
        api = FakeNotion([[_page("p1", "Hello")]], {"p1": [_paragraph("First"), _paragraph("Second")]})

        [record] = await _source(api).get_updated_records()

        assert record.id == "p1"
        assert record.title == "Hello"
        assert record.description == "About Hello"
        assert record.tags == ["life", "travel"]
        assert record.created_at == datetime(2024, 1, 5, tzinfo=timezone.utc)
        assert record.last_edited == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)
        assert record.status == ArticleStatus.PUBLISHED
        assert record.markdown == "# Hello\n\nFirst\n\nSecond"
        assert record.assets == {}

    async def test_sends_auth_version_and_published_filter(self) -> None:
        api = FakeNotion([[]], {})

        assert await _source(api, published_only=True).get_updated_records() == []

        request = api.requests[0]
        assert request.headers["Authorization"] == "Bearer secret"
        assert request.headers["Notion-Version"] == "2022-06-28"
        body = json.loads(request.content)
        assert body["filter"] == {"property": "Status", "status": {"equals": "Published"}}
        assert body["page_size"] == 100

    async def test_fetches_every_status_by_default(self) -> None:
        draft = _page("p1", "Draft post", Status={"type": "status", "status": {"name": "Draft"}})
        api = FakeNotion([[draft]], {})

        [record] = await _source(api).get_updated_records()

        assert "filter" not in json.loads(api.requests[0].content)
        assert record.status == ArticleStatus.DRAFT

    async def test_paginates_query(self) -> None:
        api = FakeNotion([[_page("p1", "One")], [_page("p2", "Two")]], {})

        records = await _source(api).get_updated_records()

        assert [r.id for r in records] == ["p1", "p2"]
        second_query = json.loads(api.requests[1].content)
        assert second_query["start_cursor"] == "1"

    async def test_body_from_mentioned_page(self) -> None:
        mention = {
            "type": "rich_text",
            "rich_text": [{"type": "mention", "plain_text": "Body", "mention": {"type": "page", "page": {"id": "body-page"}}}],
        }
        api = FakeNotion(
            [[_page("p1", "Linked", **{"Page Content": mention})]],
            {"body-page": [_paragraph("From linked page")], "p1": [_paragraph("Ignored")]},
        )

        [record] = await _source(api).get_updated_records()

        assert record.markdown == "# Linked\n\nFrom linked page"

    async def test_nested_children_are_fetched(self) -> None:
        parent = {
            "id": "item",
            "type": "bulleted_list_item",
            "has_children": True,
            "bulleted_list_item": {"rich_text": [_text("Parent")]},
        }
        api = FakeNotion(
            [[_page("p1", "Nested")]],
            {"p1": [parent], "item": [{"id": "c", "type": "bulleted_list_item", "bulleted_list_item": {"rich_text": [_text("Child")]}}]},
        )

        [record] = await _source(api).get_updated_records()

        assert record.markdown == "# Nested\n\n- Parent\n    - Child"

    async def test_retries_rate_limit(self) -> None:
        failures = [httpx.Response(429, json={"code": "rate_limited", "message": "slow down"}) for _ in range(2)]
        api = FakeNotion([[_page("p1", "Hello")]], {}, failures=failures)

        records = await _source(api, max_retries=3).get_updated_records()

        assert [r.id for r in records] == ["p1"]
        assert len(api.requests) == 4

    async def test_gives_up_after_max_retries(self) -> None:
        failures = [httpx.Response(503, json={"code": "service_unavailable", "message": "down"}) for _ in range(5)]
        api = FakeNotion([[]], {}, failures=failures)

        with pytest.raises(TransientSourceError):
            await _source(api, max_retries=2).get_updated_records()

        assert len(api.requests) == 3

    async def test_non_transient_error_is_not_retried(self) -> None:
        unauthorized = httpx.Response(401, json={"code": "unauthorized", "message": "bad token"})
        api = FakeNotion([[]], {}, failures=[unauthorized])

        with pytest.raises(SourceError, match="401") as exc_info:
            await _source(api).get_updated_records()

        assert not isinstance(exc_info.value, TransientSourceError)
        assert exc_info.value.code == "unauthorized"
        assert len(api.requests) == 1

    def test_requires_token(self) -> None:
        with pytest.raises(ValueError):
            NotionSource(token="", database_id="db-1")


class TestPropertyHelpers:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Draft", ArticleStatus.DRAFT),
            ("Archive", ArticleStatus.ARCHIVE),
            ("In Review", ArticleStatus.IN_REVIEW),
            ("Published", ArticleStatus.PUBLISHED),
            ("Something else", ArticleStatus.PUBLISHED),
        ],
    )
    def test_status_mapping(self, name, expected) -> None:
        properties = {"Status": {"type": "select", "select": {"name": name}}}

        assert get_status(properties, "Status") == expected

    def test_missing_status_defaults_to_published(self) -> None:
        assert get_status({}, "Status") == ArticleStatus.PUBLISHED

    def test_created_at_falls_back_to_page(self) -> None:
        page = {"created_time": "2023-12-31T10:00:00.000Z"}

        assert get_created_at({}, page) == datetime(2023, 12, 31, 10, tzinfo=timezone.utc)
