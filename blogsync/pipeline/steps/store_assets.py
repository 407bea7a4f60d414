"""Persist the assets of processed records."""

from typing import List, Optional

from ...db import AssetStorage
from ...models import ProcessedRecord
from ..models import Phase
from ..step import PipelineStep


class StoreAssetsStep(PipelineStep):
    name = "store-assets"
    description = "Store downloaded assets in the database"
    phase = Phase.UPDATE

    def __init__(self, storage: Optional[AssetStorage] = None) -> None:
        super().__init__()
        self.storage = storage or AssetStorage()

    async def execute(self, records: List[ProcessedRecord]) -> List[ProcessedRecord]:
        stored = 0
        for record in records:
            # Assets from an earlier version are no longer referenced
            self.storage.delete_for_article(self.store, record.id)
            for asset in record.assets:
                self.storage.store_asset(self.store, asset, record.id)
                stored += 1

        self.stats["stored"] = stored
        self.log(f"Stored {stored} assets")
        return records
