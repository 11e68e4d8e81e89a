"""
Feed Client - опрос ленты уведомлений о контенте.

GET {feed_root}/content/notifications?since=...&apiKey=...
"""

import asyncio
import logging
from datetime import datetime
from typing import List

import aiohttp
from pydantic import ValidationError

from publish_alert.crawler.http import ApiClient
from publish_alert.errors import FeedUnavailable
from publish_alert.models import Notification, to_feed_timestamp

logger = logging.getLogger(__name__)

NOTIFICATIONS_PATH = '/content/notifications'


class FeedClient:
    """Клиент ленты уведомлений."""

    def __init__(self, client: ApiClient, feed_root: str):
        self.client = client
        self.feed_root = feed_root.rstrip('/')

    @property
    def notifications_url(self) -> str:
        return self.feed_root + NOTIFICATIONS_PATH

    async def fetch_notifications(self, since: datetime) -> List[Notification]:
        """
        Получить все уведомления начиная с since.

        Пагинация не поддерживается: лента отдает полную дельту за окно.

        Raises:
            FeedUnavailable: сетевая ошибка, не-2xx статус или некорректный ответ
        """
        since_param = to_feed_timestamp(since)
        logger.info(f"📡 Загрузка уведомлений с {since_param}")

        try:
            payload = await self.client.get_json(
                self.notifications_url,
                params={'since': since_param},
            )
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"❌ Ошибка получения уведомлений: {e!r}")
            raise FeedUnavailable(e) from e

        if not isinstance(payload, dict) or not isinstance(payload.get('notifications'), list):
            error = ValueError("response has no 'notifications' list")
            logger.error(f"❌ Некорректный ответ ленты: {error}")
            raise FeedUnavailable(error)

        try:
            notifications = [Notification.model_validate(item) for item in payload['notifications']]
        except ValidationError as e:
            logger.error(f"❌ Некорректная запись в ленте: {e}")
            raise FeedUnavailable(e) from e

        logger.info(f"   ✅ Получено уведомлений: {len(notifications)}")
        return notifications
