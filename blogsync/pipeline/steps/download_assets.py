"""Download embedded images of fetched records."""

from typing import List

from ...models import FetchedRecord
from ..assets import AssetRewriter
from ..models import Phase
from ..step import PipelineStep


class DownloadAssetsStep(PipelineStep):
    name = "download-assets"
    description = "Download source-hosted images"
    phase = Phase.FETCH

    def __init__(self, rewriter: AssetRewriter) -> None:
        super().__init__()
        self.rewriter = rewriter

    async def execute(self, records: List[FetchedRecord]) -> List[FetchedRecord]:
        result = []
        downloaded = 0
        for record in records:
            updated = await self.rewriter.fetch_assets(record)
            downloaded += len(updated.assets) - len(record.assets)
            result.append(updated)

        self.stats["downloaded"] = downloaded
        self.log(f"Downloaded {downloaded} assets from {len(records)} records")
        return result
