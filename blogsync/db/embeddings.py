"""Embedding storage and search."""

import re
from typing import Any, Dict, List, Sequence

import numpy as np
import sqlite_vec

from ..models import Embedding
from .connection import Store


def _fts_query(text: str) -> str:
    """Turn free text into an FTS5 OR-query of quoted terms."""
    terms = re.findall(r"\w+", text.lower())
    return " OR ".join(f'"{term}"' for term in terms)


class EmbeddingStorage:
    """Handle embedding rows and the vector / full-text indexes over them."""

    def _check_dimensions(self, store: Store, vector: Sequence[float]) -> None:
        expected = store.dimensions
        if expected is not None and len(vector) != expected:
            raise ValueError(f"Expected {expected}-dimensional vector, got {len(vector)}")

    def delete_for_article(self, store: Store, article_id: str) -> int:
        """Remove all embeddings of an article; returns the count."""
        return store.execute("DELETE FROM embedding WHERE article_id = ?", (article_id,))

    def insert_embedding(
        self,
        store: Store,
        article_id: str,
        content: str,
        content_hash: str,
        vector: Sequence[float],
        chunk_idx: int = 0,
    ) -> int:
        """Insert one embedding row; returns its id."""
        self._check_dimensions(store, vector)
        rows = store.query(
            """
            INSERT INTO embedding (article_id, chunk_idx, content, content_hash, embedding)
            VALUES (?, ?, ?, ?, ?)
            RETURNING id
            """,
            (article_id, chunk_idx, content, content_hash, sqlite_vec.serialize_float32(list(vector))),
        )
        return rows[0]["id"]

    def get_for_article(self, store: Store, article_id: str) -> List[Embedding]:
        """Embeddings of an article, decoded."""
        rows = store.query(
            "SELECT * FROM embedding WHERE article_id = ? ORDER BY chunk_idx", (article_id,)
        )
        return [
            Embedding(
                id=row["id"],
                article_id=row["article_id"],
                chunk_idx=row["chunk_idx"],
                content=row["content"],
                content_hash=row["content_hash"],
                embedding=np.frombuffer(row["embedding"], dtype=np.float32).tolist(),
            )
            for row in rows
        ]

    def count(self, store: Store, article_id: str) -> int:
        """Number of embedding rows for an article."""
        rows = store.query("SELECT COUNT(*) AS n FROM embedding WHERE article_id = ?", (article_id,))
        return rows[0]["n"]

    def search_similar(
        self, store: Store, vector: Sequence[float], limit: int = 5
    ) -> List[Dict[str, Any]]:
        """Nearest articles by cosine distance."""
        self._check_dimensions(store, vector)
        # sqlite-vec requires k=? syntax for KNN queries
        knn = store.query(
            """
            SELECT rowid, distance
            FROM embedding_vec
            WHERE embedding MATCH ? AND k = ?
            ORDER BY distance
            """,
            (sqlite_vec.serialize_float32(list(vector)), limit),
        )

        results = []
        for hit in knn:
            rows = store.query(
                """
                SELECT a.id, a.title, a.description, e.content
                FROM embedding e
                JOIN article a ON a.id = e.article_id
                WHERE e.id = ?
                """,
                (hit["rowid"],),
            )
            if rows:
                row = rows[0]
                row["score"] = 1.0 - hit["distance"]
                results.append(row)
        return results

    def search_text(self, store: Store, text: str, limit: int = 5) -> List[Dict[str, Any]]:
        """Full-text search over generated descriptions, best match first."""
        query = _fts_query(text)
        if not query:
            return []

        rows = store.query(
            """
            SELECT a.id, a.title, a.description, e.content, -bm25(embedding_fts) AS score
            FROM embedding_fts f
            JOIN embedding e ON e.id = f.rowid
            JOIN article a ON a.id = e.article_id
            WHERE embedding_fts MATCH ?
            ORDER BY bm25(embedding_fts)
            LIMIT ?
            """,
            (query, limit),
        )
        return rows

    def hybrid_search(
        self,
        store: Store,
        vector: Sequence[float],
        text: str,
        limit: int = 5,
        vector_weight: float = 0.7,
    ) -> List[Dict[str, Any]]:
        """Blend vector similarity with normalized full-text relevance."""
        vector_hits = self.search_similar(store, vector, limit=limit * 2)
        text_hits = self.search_text(store, text, limit=limit * 2)

        top_text = max((hit["score"] for hit in text_hits), default=0.0)
        combined: Dict[str, Dict[str, Any]] = {}

        for hit in vector_hits:
            entry = combined.setdefault(hit["id"], {**hit, "vector_score": 0.0, "fts_score": 0.0})
            entry["vector_score"] = hit["score"]

        for hit in text_hits:
            entry = combined.setdefault(hit["id"], {**hit, "vector_score": 0.0, "fts_score": 0.0})
            entry["fts_score"] = hit["score"] / top_text if top_text > 0 else 0.0

        for entry in combined.values():
            entry["score"] = vector_weight * entry["vector_score"] + (1 - vector_weight) * entry["fts_score"]

        ranked = sorted(combined.values(), key=lambda e: e["score"], reverse=True)
        return ranked[:limit]
