"""
Retry Logic with Exponential Backoff.

Повторные попытки при таймаутах и сетевых ошибках для HTTP запросов
к API контента, бинарникам изображений, детектору stamps и Slack webhook.

Feature flag: retry (config/features.yaml)
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, TypeVar

import aiohttp

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Только транспортные ошибки: HTTP статусы не повторяем
TRANSIENT_EXCEPTIONS: Tuple = (
    asyncio.TimeoutError,
    aiohttp.ClientConnectionError,
    aiohttp.ClientPayloadError,
)


async def retry_async(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    exceptions: Tuple = TRANSIENT_EXCEPTIONS,
    on_retry: Optional[Callable] = None,
    name: str = 'request',
) -> T:
    """
    Retry an async function with exponential backoff.

    Usage:
        result = await retry_async(
            lambda: client.get_json(url),
            max_attempts=3,
        )

    Delays:
        Attempt 1: 0s (immediate)
        Attempt 2: initial_delay
        Attempt 3: initial_delay * backoff_factor
    """
    max_attempts = max(1, max_attempts)
    delay = initial_delay

    for attempt in range(1, max_attempts + 1):
        try:
            return await func()
        except exceptions as e:
            if attempt == max_attempts:
                if max_attempts > 1:
                    logger.error(f"❌ {name} failed after {max_attempts} attempts: {e!r}")
                raise

            logger.warning(
                f"⚠️ {name} attempt {attempt}/{max_attempts} failed: {e!r}. "
                f"Retrying in {delay:.1f}s..."
            )

            if on_retry:
                try:
                    on_retry(attempt, e, delay)
                except Exception as callback_error:
                    logger.warning(f"on_retry callback failed: {callback_error}")

            await asyncio.sleep(delay)
            delay *= backoff_factor

    # max_attempts >= 1, цикл всегда возвращает или бросает
    raise RuntimeError('unreachable')


__all__ = ['retry_async', 'TRANSIENT_EXCEPTIONS']
