"""Embedded asset downloader."""

import logging
import mimetypes
from typing import Dict, Optional, Tuple

import httpx

from ..errors import AssetDownloadError
from ..models import DownloadedAsset

logger = logging.getLogger(__name__)


class AssetDownloader:
    """Download binary assets over HTTP.

    Results are cached on the instance, so a URL is fetched at most once per
    downloader (one downloader is used per pipeline run). Failures are cached
    too and re-raised without another request.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = "blogsync/1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize asset downloader."""
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport
        self.requests_made = 0
        self._cache: Dict[str, DownloadedAsset] = {}
        self._failures: Dict[str, str] = {}

    def _guess_media_type(self, url: str, header: Optional[str]) -> str:
        if header:
            return header.split(";")[0].strip()
        path = httpx.URL(url).path
        guessed, _ = mimetypes.guess_type(path)
        return guessed or "application/octet-stream"

    async def download(self, url: str) -> Tuple[bytes, str]:
        """Fetch a URL; returns ``(payload, media_type)``."""
        if url in self._cache:
            cached = self._cache[url]
            return cached.data, cached.media_type
        if url in self._failures:
            raise AssetDownloadError(self._failures[url])

        self.requests_made += 1
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self.transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error = f"HTTP {e.response.status_code} for {url}"
            self._failures[url] = error
            raise AssetDownloadError(error) from e
        except httpx.TimeoutException as e:
            error = f"Request timed out for {url}"
            self._failures[url] = error
            raise AssetDownloadError(error) from e
        except httpx.HTTPError as e:
            error = f"Request failed for {url}: {e}"
            self._failures[url] = error
            raise AssetDownloadError(error) from e
        except (httpx.InvalidURL, ValueError) as e:
            # Includes IDNA/Unicode errors raised while parsing the host
            error = f"Invalid URL {url}: {e}"
            self._failures[url] = error
            raise AssetDownloadError(error) from e

        media_type = self._guess_media_type(url, response.headers.get("content-type"))
        asset = DownloadedAsset(data=response.content, media_type=media_type)
        self._cache[url] = asset
        logger.debug("Downloaded %s (%d bytes, %s)", url, len(asset.data), media_type)
        return asset.data, asset.media_type
