"""Generate one description and embedding per changed article.

Rather than chunking bodies, the LLM writes a description plus sample
questions for each article and that text is what gets embedded.
"""

import hashlib
from typing import List, Optional

from ...db import EmbeddingStorage
from ...generation import Embedder, LLMProvider
from ...models import ProcessedRecord
from ..models import Phase
from ..step import PipelineStep

TRUNCATION_MARKER = "\n\n[Content truncated]"


def truncate_content(markdown: str, max_chars: int) -> str:
    """Cut a body to ``max_chars`` and mark the cut."""
    if len(markdown) <= max_chars:
        return markdown
    return markdown[:max_chars] + TRUNCATION_MARKER


class EmbedArticlesStep(PipelineStep):
    name = "embed-articles"
    description = "Generate LLM descriptions and embeddings for changed articles"
    phase = Phase.UPDATE

    def __init__(
        self,
        llm: LLMProvider,
        embedder: Embedder,
        max_content_chars: Optional[int] = None,
        storage: Optional[EmbeddingStorage] = None,
    ) -> None:
        super().__init__()
        self.llm = llm
        self.embedder = embedder
        self.max_content_chars = max_content_chars
        self.storage = storage or EmbeddingStorage()

    async def execute(self, records: List[ProcessedRecord]) -> List[ProcessedRecord]:
        if not records:
            self.log("No articles to embed")
            return records

        for record in records:
            await self.embed_article(record)

        self.stats["embedded"] = len(records)
        self.log(f"Embedded {len(records)} articles")
        return records

    async def generate_text(self, record: ProcessedRecord) -> str:
        """Description text that gets embedded, prefixed with the title."""
        max_chars = self.max_content_chars or self.config.embedding.max_content_chars
        content = truncate_content(record.markdown, max_chars)
        generated = await self.llm.generate_description(record.title, content)
        return f"Title: {record.title}\n\n{generated}"

    async def embed_article(self, record: ProcessedRecord) -> int:
        """Replace the article's embedding; returns the new row id."""
        self.storage.delete_for_article(self.store, record.id)

        text = await self.generate_text(record)
        vector = self.embedder.embed(text)
        content_hash = hashlib.md5(text.encode("utf-8")).hexdigest()

        return self.storage.insert_embedding(
            self.store,
            article_id=record.id,
            content=text,
            content_hash=content_hash,
            vector=vector,
            chunk_idx=0,
        )
