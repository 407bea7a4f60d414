"""Store initialization and schema management."""

import logging

from .connection import Store

logger = logging.getLogger(__name__)

DEFAULT_DIMENSIONS = 384

SCHEMA_SQL = """
-- Key/value metadata about the store itself
CREATE TABLE IF NOT EXISTS store_meta (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

-- Articles table
CREATE TABLE IF NOT EXISTS article (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    tags TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL,
    markdown TEXT NOT NULL,
    status TEXT CHECK (status IN ('draft', 'published', 'archive', 'in_review')),
    last_edited TEXT NOT NULL
);

-- Assets table (BLOBs stored directly)
CREATE TABLE IF NOT EXISTS asset (
    id TEXT PRIMARY KEY,
    article_id TEXT NOT NULL REFERENCES article(id) ON DELETE CASCADE,
    data BLOB NOT NULL,
    media_type TEXT NOT NULL,
    original_url TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);

CREATE INDEX IF NOT EXISTS asset_article_idx ON asset(article_id);

-- Embeddings table; vectors are float32 blobs of a fixed length
CREATE TABLE IF NOT EXISTS embedding (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    article_id TEXT NOT NULL REFERENCES article(id) ON DELETE CASCADE,
    chunk_idx INTEGER NOT NULL,
    content TEXT NOT NULL,
    content_hash TEXT NOT NULL,
    embedding BLOB NOT NULL CHECK (length(embedding) = 4 * {dimensions})
);

CREATE INDEX IF NOT EXISTS embedding_article_idx ON embedding(article_id);

-- Vector similarity index
CREATE VIRTUAL TABLE IF NOT EXISTS embedding_vec USING vec0(
    embedding float[{dimensions}] distance_metric=cosine
);

-- Full-text index on generated content
CREATE VIRTUAL TABLE IF NOT EXISTS embedding_fts USING fts5(
    content,
    content='embedding',
    content_rowid='id',
    tokenize='porter unicode61'
);

-- Keep both indexes in step with the embedding table
CREATE TRIGGER IF NOT EXISTS embedding_after_insert AFTER INSERT ON embedding BEGIN
    INSERT INTO embedding_vec (rowid, embedding) VALUES (new.id, new.embedding);
    INSERT INTO embedding_fts (rowid, content) VALUES (new.id, new.content);
END;

CREATE TRIGGER IF NOT EXISTS embedding_after_delete AFTER DELETE ON embedding BEGIN
    DELETE FROM embedding_vec WHERE rowid = old.id;
    INSERT INTO embedding_fts (embedding_fts, rowid, content) VALUES ('delete', old.id, old.content);
END;
"""


def init_schema(store: Store, dimensions: int = DEFAULT_DIMENSIONS) -> None:
    """Create tables, indexes and triggers (idempotent)."""
    existing = store.dimensions
    if existing is not None and existing != dimensions:
        raise ValueError(
            f"Store was created with {existing}-dimensional embeddings, not {dimensions}"
        )

    store.executescript(SCHEMA_SQL.format(dimensions=dimensions))
    store.execute(
        "INSERT OR IGNORE INTO store_meta (key, value) VALUES ('embedding_dimensions', ?)",
        (str(dimensions),),
    )
    logger.debug("Store schema initialized (%d dimensions)", dimensions)


def get_stats(store: Store) -> dict:
    """Row counts per table."""
    return {
        table: store.query(f"SELECT COUNT(*) AS n FROM {table}")[0]["n"]
        for table in ("article", "asset", "embedding")
    }
