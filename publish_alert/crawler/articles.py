"""Article Fetcher - загрузка полного документа статьи по уведомлению."""

import asyncio
import logging

import aiohttp
from pydantic import ValidationError

from publish_alert.crawler.http import ApiClient
from publish_alert.errors import ArticleFetchFailed
from publish_alert.models import Article, Notification

logger = logging.getLogger(__name__)


class ArticleFetcher:

    def __init__(self, client: ApiClient):
        self.client = client

    async def fetch_article(self, notification: Notification) -> Article:
        """
        Загрузить статью: GET {notification.api_url}?apiKey=...

        Raises:
            ArticleFetchFailed: ошибка ограничена одним уведомлением
        """
        logger.debug(f"Загрузка статьи {notification.api_url}")
        try:
            payload = await self.client.get_json(notification.api_url)
            article = Article.model_validate(payload)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, ValidationError) as e:
            raise ArticleFetchFailed(notification.id, e) from e

        logger.debug(f"Статья загружена: {article.id} ({article.title[:60]})")
        return article
