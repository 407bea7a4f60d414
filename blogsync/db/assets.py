"""Binary asset storage."""

from typing import List, Optional

from ..models import Asset, AssetRecord
from .connection import Store, from_db_timestamp


class AssetStorage:
    """Handle asset rows (BLOBs owned by articles)."""

    def store_asset(self, store: Store, asset: AssetRecord, article_id: str) -> None:
        """Insert an asset, replacing payload and type if the id already exists."""
        store.execute(
            """
            INSERT INTO asset (id, article_id, data, media_type, original_url)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (id) DO UPDATE SET
                data = excluded.data,
                media_type = excluded.media_type
            """,
            (asset.id, article_id, asset.data, asset.media_type, asset.original_url),
        )

    def delete_for_article(self, store: Store, article_id: str) -> int:
        """Drop every asset of an article; returns the count."""
        return store.execute("DELETE FROM asset WHERE article_id = ?", (article_id,))

    def get_asset(self, store: Store, asset_id: str) -> Optional[Asset]:
        """Fetch one asset by its local id."""
        rows = store.query("SELECT * FROM asset WHERE id = ?", (asset_id,))
        if not rows:
            return None
        row = rows[0]
        return Asset(
            id=row["id"],
            article_id=row["article_id"],
            data=row["data"],
            media_type=row["media_type"],
            original_url=row["original_url"],
            created_at=from_db_timestamp(row["created_at"]),
        )

    def list_ids(self, store: Store, article_id: str) -> List[str]:
        """Local ids of an article's assets."""
        rows = store.query("SELECT id FROM asset WHERE article_id = ? ORDER BY created_at", (article_id,))
        return [row["id"] for row in rows]
