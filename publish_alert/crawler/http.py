"""
Общий HTTP клиент для всех сетевых вызовов пайплайна.

Одна aiohttp сессия на сервис, таймаут на каждый вызов, опциональные
повторы транспортных ошибок и ограничение одновременных запросов.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from publish_alert.retry import retry_async

logger = logging.getLogger(__name__)

USER_AGENT = 'PublishAlert/1.0'


class ApiClient:
    """HTTP клиент API контента, бинарников и детектора."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        retry_attempts: int = 1,
        retry_delay: float = 1.0,
        max_concurrency: int = 0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Args:
            api_key: Ключ API контента (добавляется как ?apiKey=...)
            timeout: Таймаут одного вызова в секундах
            retry_attempts: Количество попыток на транспортные ошибки (1 = без повторов)
            retry_delay: Начальная задержка между попытками
            max_concurrency: Лимит одновременных запросов (0 = без лимита)
            session: Готовая сессия (по умолчанию создается лениво)
        """
        self.api_key = api_key
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self._semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None
        self._session = session
        self._owns_session = session is None

        self.stats = {
            'requests': 0,
            'failures': 0,
        }

    async def get_session(self) -> aiohttp.ClientSession:
        """Получить HTTP сессию."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={'User-Agent': USER_AGENT}
            )
            self._owns_session = True
        return self._session

    async def close(self):
        """Закрыть сессию."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> 'ApiClient':
        await self.get_session()
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    def _api_params(self, params: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        merged = dict(params or {})
        if self.api_key:
            merged['apiKey'] = self.api_key
        return merged

    async def _call(self, name: str, func):
        self.stats['requests'] += 1
        try:
            if self._semaphore is None:
                return await retry_async(
                    func,
                    max_attempts=self.retry_attempts,
                    initial_delay=self.retry_delay,
                    name=name,
                )
            async with self._semaphore:
                return await retry_async(
                    func,
                    max_attempts=self.retry_attempts,
                    initial_delay=self.retry_delay,
                    name=name,
                )
        except Exception:
            self.stats['failures'] += 1
            raise

    async def get_json(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
        with_api_key: bool = True,
    ) -> Any:
        """
        GET запрос с JSON ответом.

        Raises:
            aiohttp.ClientError: транспортная ошибка или не-2xx статус
            asyncio.TimeoutError: превышен таймаут
            ValueError: тело ответа не JSON
        """
        query = self._api_params(params) if with_api_key else dict(params or {})

        async def request():
            session = await self.get_session()
            async with session.get(url, params=query, timeout=self.timeout) as resp:
                resp.raise_for_status()
                return await resp.json(content_type=None)

        return await self._call(f"GET {url}", request)

    async def get_bytes(self, url: str) -> Tuple[bytes, str]:
        """
        GET бинарного содержимого без ключа API.

        Returns:
            (body, content_type) - content_type без параметров (image/png)
        """
        async def request():
            session = await self.get_session()
            async with session.get(url, timeout=self.timeout) as resp:
                resp.raise_for_status()
                return await resp.read(), resp.content_type

        return await self._call(f"GET {url}", request)

    async def post_bytes(self, url: str, data: bytes, content_type: str) -> Any:
        """POST сырого тела, JSON ответ."""
        async def request():
            session = await self.get_session()
            async with session.post(
                url,
                data=data,
                headers={'Content-Type': content_type},
                timeout=self.timeout,
            ) as resp:
                resp.raise_for_status()
                return await resp.json(content_type=None)

        return await self._call(f"POST {url}", request)


__all__ = ['ApiClient', 'USER_AGENT']
