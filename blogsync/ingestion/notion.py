"""Notion database source."""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
import pendulum
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..errors import SourceError, TransientSourceError
from ..models import ArticleStatus, FetchedRecord
from .base import ContentSource
from .markdown import blocks_to_markdown, plain_text

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"

TRANSIENT_CODES = {"rate_limited", "service_unavailable"}
TRANSIENT_STATUSES = {429, 503}

STATUS_MAP = {
    "draft": ArticleStatus.DRAFT,
    "published": ArticleStatus.PUBLISHED,
    "archive": ArticleStatus.ARCHIVE,
    "archived": ArticleStatus.ARCHIVE,
    "in review": ArticleStatus.IN_REVIEW,
    "in_review": ArticleStatus.IN_REVIEW,
}


class NotionSource(ContentSource):
    """Fetch blog articles from a Notion database.

    Expected properties: ``Title``, ``Description``, ``Tags`` (multi-select),
    ``Created at`` (date or created time), ``Status`` and optionally
    ``Page Content`` holding a mention of the page with the article body.
    """

    def __init__(
        self,
        token: str,
        database_id: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        published_only: bool = False,
        backoff_seconds: float = 0.5,
        page_delay: float = 0.34,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize Notion source.

        Args:
            token: Integration token
            database_id: Database to read
            timeout: Per-request timeout in seconds
            max_retries: Retries on rate limiting / unavailability
            published_only: Filter on ``Status = Published``
            backoff_seconds: Base of the exponential backoff
            page_delay: Pause between paginated requests
            transport: Custom httpx transport (for testing)
        """
        if not token:
            raise ValueError("Notion token is required")
        if not database_id:
            raise ValueError("Notion database id is required")
        self.token = token
        self.database_id = database_id
        self.timeout = timeout
        self.max_retries = max_retries
        self.published_only = published_only
        self.backoff_seconds = backoff_seconds
        self.page_delay = page_delay
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=NOTION_API_URL,
            timeout=self.timeout,
            headers={
                "Authorization": f"Bearer {self.token}",
                "Notion-Version": NOTION_VERSION,
                "Content-Type": "application/json",
            },
            transport=self.transport,
        )

    async def _send(self, client: httpx.AsyncClient, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        response = await client.request(method, path, **kwargs)
        if response.is_success:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {}
        code = body.get("code")
        message = body.get("message") or response.reason_phrase
        if code in TRANSIENT_CODES or response.status_code in TRANSIENT_STATUSES:
            raise TransientSourceError(message, code=code, status=response.status_code)
        raise SourceError(f"Notion API error {response.status_code}: {message}", code=code, status=response.status_code)

    async def _request(self, client: httpx.AsyncClient, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        """Send a request, retrying transient errors with capped exponential backoff."""
        retryer = AsyncRetrying(
            retry=retry_if_exception_type(TransientSourceError),
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=30),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retryer:
            with attempt:
                return await self._send(client, method, path, **kwargs)
        raise AssertionError("unreachable")

    async def _query_database(self, client: httpx.AsyncClient) -> List[Dict[str, Any]]:
        pages: List[Dict[str, Any]] = []
        body: Dict[str, Any] = {
            "page_size": 100,
            "sorts": [{"timestamp": "last_edited_time", "direction": "ascending"}],
        }
        if self.published_only:
            body["filter"] = {"property": "Status", "status": {"equals": "Published"}}

        while True:
            data = await self._request(client, "POST", f"/databases/{self.database_id}/query", json=body)
            pages.extend(r for r in data.get("results", []) if r.get("object") == "page" and "properties" in r)
            if not data.get("has_more"):
                break
            body["start_cursor"] = data.get("next_cursor")
            if self.page_delay:
                await asyncio.sleep(self.page_delay)
        return pages

    async def _get_blocks(self, client: httpx.AsyncClient, block_id: str) -> List[Dict[str, Any]]:
        """All child blocks of a block, with nested children attached."""
        blocks: List[Dict[str, Any]] = []
        params: Dict[str, Any] = {"page_size": 100}
        while True:
            data = await self._request(client, "GET", f"/blocks/{block_id}/children", params=params)
            blocks.extend(data.get("results", []))
            if not data.get("has_more"):
                break
            params["start_cursor"] = data.get("next_cursor")

        for block in blocks:
            if block.get("has_children") and block.get("type") != "child_page":
                block["children"] = await self._get_blocks(client, block["id"])
        return blocks

    async def _get_markdown(self, client: httpx.AsyncClient, page_id: str, title: str) -> str:
        body = blocks_to_markdown(await self._get_blocks(client, page_id))
        return f"# {title}\n\n{body}".strip()

    async def _page_to_record(self, client: httpx.AsyncClient, page: Dict[str, Any]) -> FetchedRecord:
        properties = page.get("properties", {})
        title = get_text_property(properties, "Title") or "Untitled"

        markdown = ""
        linked_page_id = get_mentioned_page_id(properties, "Page Content")
        if linked_page_id:
            markdown = await self._get_markdown(client, linked_page_id, title)
        if not markdown:
            markdown = await self._get_markdown(client, page["id"], title)

        return FetchedRecord(
            id=page["id"],
            title=title,
            description=get_text_property(properties, "Description"),
            tags=get_tags(properties, "Tags"),
            created_at=get_created_at(properties, page),
            last_edited=pendulum.parse(page["last_edited_time"]),
            status=get_status(properties, "Status"),
            markdown=markdown,
        )

    async def get_updated_records(self) -> List[FetchedRecord]:
        """Query the database and convert every page."""
        async with self._client() as client:
            pages = await self._query_database(client)
            records = []
            for page in pages:
                records.append(await self._page_to_record(client, page))
        logger.info("Fetched %d pages from Notion", len(records))
        return records


def get_text_property(properties: Dict[str, Any], name: str) -> str:
    """Plain text of a title or rich-text property."""
    prop = properties.get(name)
    if not prop:
        return ""
    if prop.get("type") == "title":
        return plain_text(prop.get("title", []))
    if prop.get("type") == "rich_text":
        return plain_text(prop.get("rich_text", []))
    return ""


def get_tags(properties: Dict[str, Any], name: str) -> List[str]:
    """Names of a multi-select property."""
    prop = properties.get(name)
    if prop and prop.get("type") == "multi_select":
        return [option["name"] for option in prop.get("multi_select", [])]
    return []


def get_created_at(properties: Dict[str, Any], page: Dict[str, Any]) -> datetime:
    """Creation date from the property, falling back to the page's own."""
    prop = properties.get("Created at") or {}
    if prop.get("type") == "date" and (prop.get("date") or {}).get("start"):
        return pendulum.parse(prop["date"]["start"])
    if prop.get("type") == "created_time" and prop.get("created_time"):
        return pendulum.parse(prop["created_time"])
    return pendulum.parse(page["created_time"])


def get_status(properties: Dict[str, Any], name: str) -> ArticleStatus:
    """Map a status/select property to an article status."""
    prop = properties.get(name) or {}
    option = prop.get(prop.get("type", "")) if prop.get("type") in ("status", "select") else None
    if not option:
        return ArticleStatus.PUBLISHED
    return STATUS_MAP.get(option.get("name", "").strip().lower(), ArticleStatus.PUBLISHED)


def get_mentioned_page_id(properties: Dict[str, Any], name: str) -> Optional[str]:
    """Id of the first page mentioned in a rich-text property."""
    prop = properties.get(name)
    if not prop or prop.get("type") != "rich_text":
        return None
    for span in prop.get("rich_text", []):
        mention = span.get("mention") or {}
        if span.get("type") == "mention" and mention.get("type") == "page":
            return (mention.get("page") or {}).get("id")
    return None
