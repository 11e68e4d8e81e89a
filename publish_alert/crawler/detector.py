"""
Stamp Detector Client.

POST {stamper_url}/read с сырым PNG в теле, ответ - JSON массив stamps.
"""

import asyncio
import logging
from typing import List

import aiohttp

from publish_alert.crawler.http import ApiClient
from publish_alert.crawler.images import PNG_CONTENT_TYPE, image_name
from publish_alert.errors import DetectionFailed
from publish_alert.models import ImageBinary, Stamp

logger = logging.getLogger(__name__)

READ_PATH = '/read'


class StampDetectorClient:

    def __init__(self, client: ApiClient, stamper_url: str):
        self.client = client
        self.stamper_url = stamper_url.rstrip('/')

    @property
    def read_url(self) -> str:
        return self.stamper_url + READ_PATH

    async def detect_stamps(self, image: ImageBinary) -> List[Stamp]:
        """
        Отправить PNG в детектор.

        Returns:
            Список stamps (пустой - водяной знак не найден)

        Raises:
            DetectionFailed: транспортная ошибка или некорректный ответ
        """
        try:
            stamps = await self.client.post_bytes(self.read_url, image.data, PNG_CONTENT_TYPE)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise DetectionFailed(image.uri, e) from e

        if not isinstance(stamps, list):
            raise DetectionFailed(image.uri, ValueError(f"expected JSON array, got {type(stamps).__name__}"))

        name = image_name(image.uri)
        logger.debug(f"Loaded {len(stamps)} stamps for {name}")
        for stamp in stamps:
            logger.debug(f"Stamp: {stamp}")
        return stamps
