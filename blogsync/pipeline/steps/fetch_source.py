"""Fetch the current batch of records from the content source."""

from typing import Any, List

from ...ingestion import ContentSource
from ...models import FetchedRecord
from ..models import Phase
from ..step import PipelineStep


class FetchSourceStep(PipelineStep):
    name = "fetch-source"
    description = "Fetch records from the content source"
    phase = Phase.FETCH

    def __init__(self, source: ContentSource) -> None:
        super().__init__()
        self.source = source

    async def execute(self, data: Any) -> List[FetchedRecord]:
        records = await self.source.get_updated_records()
        self.stats["fetched"] = len(records)
        self.log(f"Fetched {len(records)} records")
        return records
