"""
Concurrent image download for listing images.
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional

import aiohttp

from sneakin.config import ImportConfig
from sneakin.utils.logging import get_logger

logger = get_logger('sneakin.importer.images')


@dataclass(frozen=True)
class DownloadedImage:
    content: bytes
    content_type: str

    @property
    def extension(self) -> str:
        return 'png' if 'png' in self.content_type else 'jpg'


class ImageDownloader:
    """
    Downloads source images with browser-like headers and a GOAT referer
    (the CDN refuses hotlinks without one).
    """

    def __init__(self, config: Optional[ImportConfig] = None):
        self.config = config or ImportConfig()

    @property
    def headers(self) -> dict:
        return {
            'User-Agent': self.config.user_agent,
            'Referer': self.config.image_referer,
        }

    async def download(self, session: aiohttp.ClientSession, index: int, url: str) -> Optional[DownloadedImage]:
        """Download one image; None on any failure."""
        timeout = aiohttp.ClientTimeout(total=self.config.image_timeout)
        try:
            async with session.get(url, timeout=timeout) as response:
                if response.status != 200:
                    logger.warning("Image download failed", extra={'data': {'index': index, 'status': response.status}})
                    return None
                content_type = response.headers.get('Content-Type') or 'image/jpeg'
                return DownloadedImage(content=await response.read(), content_type=content_type)
        except asyncio.TimeoutError:
            logger.warning("Image download timed out", extra={'data': {'index': index}})
            return None
        except aiohttp.ClientError as e:
            logger.warning("Image download error", extra={'data': {'index': index, 'error': str(e)[:100]}})
            return None

    async def download_all(self, urls: List[str]) -> List[Optional[DownloadedImage]]:
        """
        Download all images concurrently (bounded by config.image_concurrency).

        Returns:
            One entry per input URL, in input order; None where the download failed
        """
        if not urls:
            return []

        semaphore = asyncio.Semaphore(max(1, self.config.image_concurrency))

        async with aiohttp.ClientSession(headers=self.headers) as session:
            async def bounded(index: int, url: str) -> Optional[DownloadedImage]:
                async with semaphore:
                    return await self.download(session, index, url)

            return await asyncio.gather(*(bounded(i, url) for i, url in enumerate(urls)))
