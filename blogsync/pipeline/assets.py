"""Download embedded images and point markdown at local copies."""

import logging
import re
import uuid
from typing import Dict, List, Protocol, Sequence, Tuple

from ..errors import AssetDownloadError
from ..models import AssetRecord, DownloadedAsset, FetchedRecord, ProcessedRecord

logger = logging.getLogger(__name__)

IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
DEFAULT_ALLOWED_HOSTS = ("prod-files-secure.s3", "amazonaws.com", "notion.so")
DEFAULT_LOCAL_PREFIX = "db://image/"


class Downloader(Protocol):
    async def download(self, url: str) -> Tuple[bytes, str]:
        ...


class AssetRewriter:
    """Find source-hosted images in markdown, download them, rewrite references.

    Only URLs containing one of ``allowed_hosts`` are touched; external images
    and references that are already local stay as they are.
    """

    def __init__(
        self,
        downloader: Downloader,
        allowed_hosts: Sequence[str] = DEFAULT_ALLOWED_HOSTS,
        local_prefix: str = DEFAULT_LOCAL_PREFIX,
    ) -> None:
        self.downloader = downloader
        self.allowed_hosts = list(allowed_hosts)
        self.local_prefix = local_prefix

    def _is_allowed(self, url: str) -> bool:
        if not url.startswith(("http://", "https://")):
            return False
        return any(host in url for host in self.allowed_hosts)

    def extract_urls(self, markdown: str) -> List[str]:
        """
        Image URLs in a markdown body that should be stored locally.

        Returns:
            Allow-listed URLs in order of first appearance, without duplicates
        """
        urls: List[str] = []
        for match in IMAGE_PATTERN.finditer(markdown):
            target = match.group(2).strip()
            if not target:
                continue
            # ![alt](url "title")
            url = target.split()[0]
            if self._is_allowed(url) and url not in urls:
                urls.append(url)
        return urls

    async def fetch_assets(self, record: FetchedRecord) -> FetchedRecord:
        """Download allow-listed images the record does not carry yet.

        A failed download is logged and the URL left out of the asset map.
        """
        missing = [url for url in self.extract_urls(record.markdown) if url not in record.assets]
        if not missing:
            return record

        assets = dict(record.assets)
        for url in missing:
            try:
                data, media_type = await self.downloader.download(url)
            except AssetDownloadError as e:
                logger.error("Failed to download asset %s for %s: %s", url, record.id, e)
                continue
            assets[url] = DownloadedAsset(data=data, media_type=media_type)

        return record.model_copy(update={"assets": assets})

    async def rewrite(self, record: FetchedRecord) -> ProcessedRecord:
        """Point every image whose URL was downloaded at ``<local_prefix><uuid>``.

        Only exact image targets are rewritten; other URLs, including longer
        ones that merely start with a downloaded URL, are left alone.
        """
        record = await self.fetch_assets(record)

        local_refs: Dict[str, str] = {}
        assets: List[AssetRecord] = []
        for url, downloaded in record.assets.items():
            asset_id = str(uuid.uuid4())
            local_refs[url] = f"{self.local_prefix}{asset_id}"
            assets.append(
                AssetRecord(
                    id=asset_id,
                    data=downloaded.data,
                    media_type=downloaded.media_type,
                    original_url=url,
                )
            )

        def replace(match: "re.Match[str]") -> str:
            alt, target = match.group(1), match.group(2)
            stripped = target.strip()
            if not stripped:
                return match.group(0)
            url = stripped.split()[0]
            if url not in local_refs:
                return match.group(0)
            return f"![{alt}]({target.replace(url, local_refs[url], 1)})"

        markdown = IMAGE_PATTERN.sub(replace, record.markdown)

        fields = record.model_dump(exclude={"assets", "markdown"})
        return ProcessedRecord(**fields, markdown=markdown, assets=assets)
