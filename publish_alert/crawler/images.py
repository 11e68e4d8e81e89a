"""Image Downloader - загрузка бинарников, пропуск всего, что не PNG."""

import asyncio
import logging
import posixpath
from typing import Optional
from urllib.parse import urlparse

import aiohttp

from publish_alert.crawler.http import ApiClient
from publish_alert.errors import ImageDownloadFailed
from publish_alert.models import ImageBinary

logger = logging.getLogger(__name__)

PNG_CONTENT_TYPE = 'image/png'


def image_name(url: str) -> str:
    """Короткое имя изображения для логов и вложений (последний сегмент пути)."""
    return posixpath.basename(urlparse(url).path) or url


class ImageDownloader:

    def __init__(self, client: ApiClient):
        self.client = client

    async def download_image(self, url: str) -> Optional[ImageBinary]:
        """
        Скачать изображение.

        Returns:
            ImageBinary для PNG, None если формат другой (не ошибка)

        Raises:
            ImageDownloadFailed: сетевая ошибка, ограничена одним изображением
        """
        name = image_name(url)
        logger.debug(f"Downloading image {name}")

        try:
            data, content_type = await self.client.get_bytes(url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ImageDownloadFailed(url, e) from e

        if content_type != PNG_CONTENT_TYPE:
            logger.debug(f"Image {name} is not a PNG ({content_type}) - ignoring")
            return None

        logger.debug(f"Image {name} is a PNG, looking for stamps")
        return ImageBinary(uri=url, data=data, content_type=content_type)
