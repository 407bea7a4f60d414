"""Shared pytest configuration and fixtures."""

import gzip
import hashlib
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple

import numpy as np
import pytest

from blogsync.config import ConfigModel
from blogsync.db import Store, init_schema
from blogsync.errors import AssetDownloadError
from blogsync.generation import Embedder, MockLLMProvider
from blogsync.models import ArticleStatus, FetchedRecord
from blogsync.pipeline import StepContext

DIMENSIONS = 384

T1 = datetime(2024, 3, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
T2 = datetime(2024, 3, 2, 8, 30, 0, tzinfo=timezone.utc)

IMAGE_URL = "https://prod-files-secure.s3.us-west-2.amazonaws.com/abc/photo.png?X-Amz-Signature=1"
OTHER_IMAGE_URL = "https://prod-files-secure.s3.us-west-2.amazonaws.com/def/diagram.jpg"
EXTERNAL_IMAGE_URL = "https://images.example.com/cat.gif"


class FakeEmbedder(Embedder):
    """Deterministic unit vectors derived from the text hash."""

    def __init__(self, dimensions: int = DIMENSIONS) -> None:
        self.dimensions = dimensions
        self.calls: List[str] = []

    def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        seed = int(hashlib.md5(text.encode("utf-8")).hexdigest()[:8], 16)
        vector = np.random.default_rng(seed).standard_normal(self.dimensions).astype(np.float32)
        vector /= np.linalg.norm(vector)
        return vector.tolist()


class FakeDownloader:
    """In-memory downloader counting requests per URL."""

    def __init__(
        self,
        payloads: Optional[Dict[str, Tuple[bytes, str]]] = None,
        failing: Optional[Set[str]] = None,
    ) -> None:
        self.payloads = payloads or {}
        self.failing = failing or set()
        self.requests: Dict[str, int] = {}
        self._cache: Dict[str, Tuple[bytes, str]] = {}

    async def download(self, url: str) -> Tuple[bytes, str]:
        if url in self._cache:
            return self._cache[url]
        self.requests[url] = self.requests.get(url, 0) + 1
        if url in self.failing or url not in self.payloads:
            raise AssetDownloadError(f"HTTP 404 for {url}")
        self._cache[url] = self.payloads[url]
        return self.payloads[url]


@pytest.fixture
def store() -> Iterator[Store]:
    """Fresh in-memory store with the schema applied."""
    s = Store.create()
    init_schema(s, DIMENSIONS)
    yield s
    s.close()


@pytest.fixture
def config(tmp_path: Path) -> ConfigModel:
    return ConfigModel(
        notion={"database_id": "db-123", "token": "secret"},
        llm={"provider": "mock"},
        embedding={"dimensions": DIMENSIONS},
        export={"output_path": str(tmp_path / "out" / "blog.db.gz")},
    )


@pytest.fixture
def context(config: ConfigModel, store: Store) -> StepContext:
    return StepContext(config, logging.getLogger("blogsync.tests"), store)


@pytest.fixture
def llm() -> MockLLMProvider:
    return MockLLMProvider()


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def downloader() -> FakeDownloader:
    return FakeDownloader(
        payloads={
            IMAGE_URL: (b"\x89PNG fake", "image/png"),
            OTHER_IMAGE_URL: (b"\xff\xd8 fake", "image/jpeg"),
        }
    )


@pytest.fixture
def make_record() -> Callable[..., FetchedRecord]:
    """Factory for fetched records with sensible defaults."""

    def _make(
        record_id: str = "a1",
        last_edited: datetime = T1,
        title: Optional[str] = None,
        markdown: Optional[str] = None,
        **kwargs,
    ) -> FetchedRecord:
        title = title or f"Article {record_id}"
        return FetchedRecord(
            id=record_id,
            title=title,
            description=kwargs.pop("description", f"About {record_id}"),
            tags=kwargs.pop("tags", ["life"]),
            created_at=kwargs.pop("created_at", datetime(2024, 1, 1, tzinfo=timezone.utc)),
            last_edited=last_edited,
            status=kwargs.pop("status", ArticleStatus.PUBLISHED),
            markdown=markdown if markdown is not None else f"# {title}\n\nBody of {record_id}.",
            **kwargs,
        )

    return _make


def corrupt_gzip_snapshot(path: Path) -> Path:
    """Write a gzip file with a valid header whose deflate stream is invalid."""
    data = bytearray(gzip.compress(b"SQLite format 3\x00" + b"\x00" * 4096))
    # Header is 10 bytes; BFINAL=1 with reserved block type 11
    data[10] = 0x07
    path.write_bytes(bytes(data))
    return path
