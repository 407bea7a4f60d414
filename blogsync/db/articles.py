"""Article storage and management."""

import json
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ..models import Article, ProcessedRecord
from .connection import Store, from_db_timestamp, to_db_timestamp


def _row_to_article(row: Dict) -> Article:
    return Article(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        tags=json.loads(row["tags"] or "[]"),
        created_at=from_db_timestamp(row["created_at"]),
        markdown=row["markdown"],
        status=row["status"],
        last_edited=from_db_timestamp(row["last_edited"]),
    )


class ArticleStorage:
    """Handle article rows."""

    def get_timestamps(self, store: Store) -> Dict[str, datetime]:
        """Map every persisted article id to its last-edited timestamp."""
        rows = store.query("SELECT id, last_edited FROM article")
        return {row["id"]: from_db_timestamp(row["last_edited"]) for row in rows}

    def upsert_article(self, store: Store, article: ProcessedRecord) -> None:
        """Insert an article or overwrite the mutable fields of an existing one.

        ``created_at`` is kept from the first insert.
        """
        store.execute(
            """
            INSERT INTO article (
                id, title, description, tags, created_at,
                markdown, status, last_edited
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (id) DO UPDATE SET
                title = excluded.title,
                description = excluded.description,
                tags = excluded.tags,
                markdown = excluded.markdown,
                status = excluded.status,
                last_edited = excluded.last_edited
            """,
            (
                article.id,
                article.title,
                article.description,
                json.dumps(article.tags),
                to_db_timestamp(article.created_at),
                article.markdown,
                article.status.value,
                to_db_timestamp(article.last_edited),
            ),
        )

    def delete_articles(self, store: Store, article_ids: Sequence[str]) -> int:
        """Delete articles together with their assets and embeddings.

        Returns:
            Number of article rows removed
        """
        if not article_ids:
            return 0

        placeholders = ", ".join("?" for _ in article_ids)
        params = tuple(article_ids)
        # Embedding deletes go through the table so the index triggers fire
        store.execute(f"DELETE FROM embedding WHERE article_id IN ({placeholders})", params)
        store.execute(f"DELETE FROM asset WHERE article_id IN ({placeholders})", params)
        return store.execute(f"DELETE FROM article WHERE id IN ({placeholders})", params)

    def get_article(self, store: Store, article_id: str) -> Optional[Article]:
        """Fetch one article by id."""
        rows = store.query("SELECT * FROM article WHERE id = ?", (article_id,))
        return _row_to_article(rows[0]) if rows else None

    def list_articles(self, store: Store) -> List[Article]:
        """All articles, most recently edited first."""
        rows = store.query("SELECT * FROM article ORDER BY last_edited DESC")
        return [_row_to_article(row) for row in rows]
