"""
Модуль мониторинга и error tracking с использованием Sentry.

Без SENTRY_DSN все функции - no-op, ошибки остаются только в логах.
"""

import os
import logging
from typing import Optional, Dict, Any

import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from publish_alert.errors import BRANCH_ERRORS

logger = logging.getLogger(__name__)

_sentry_initialized = False

# Транспортные ошибки отдельных запросов - ожидаемые, в Sentry не отправляем
NON_CRITICAL_TYPES = (
    'TimeoutError',
    'ClientConnectorError',
    'ServerDisconnectedError',
)

SENSITIVE_KEYS = ('apikey', 'api_key', 'token', 'password', 'secret', 'authorization')

# Логгеры этапов пайплайна: их ошибки ограничены веткой, а сбой ленты
# отправляется явно через capture_exception
BRANCH_LOGGERS = ('publish_alert.crawler', 'publish_alert.orchestrator')


def init_sentry(
    dsn: Optional[str] = None,
    environment: str = "production",
    traces_sample_rate: float = 0.0,
) -> bool:
    """
    Инициализация Sentry для мониторинга ошибок.

    Args:
        dsn: Sentry DSN (если None, берется из переменной окружения)
        environment: Окружение (production/staging/development)
        traces_sample_rate: Доля трассировки запросов (0.0-1.0)

    Returns:
        True если успешно инициализирован, False иначе
    """
    global _sentry_initialized

    if _sentry_initialized:
        logger.warning("Sentry уже инициализирован")
        return True

    sentry_dsn = dsn or os.getenv('SENTRY_DSN')
    if not sentry_dsn:
        logger.warning("Sentry DSN не указан - мониторинг отключен")
        return False

    try:
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=environment,
            traces_sample_rate=traces_sample_rate,
            integrations=[
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
                AioHttpIntegration(),
            ],
            attach_stacktrace=True,
            send_default_pii=False,
            max_breadcrumbs=50,
            before_send=_before_send_filter,
        )
    except Exception as e:
        logger.error(f"❌ Ошибка инициализации Sentry: {e}")
        return False

    _sentry_initialized = True
    logger.info(f"✅ Sentry инициализирован (environment={environment})")
    return True


def _before_send_filter(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Фильтр событий перед отправкой в Sentry.

    Отбрасывает ожидаемые ошибки веток (исключения и строки лога этапов
    пайплайна, которые LoggingIntegration превращает в события) и маскирует
    ключи API в breadcrumbs.
    """
    record = hint.get('log_record')
    if record is not None and _is_branch_log(record):
        logger.debug(f"Sentry: игнорируем лог ветки {record.name}")
        return None

    if 'exc_info' in hint:
        exc_type, exc_value, _ = hint['exc_info']

        if isinstance(exc_value, (KeyboardInterrupt,) + BRANCH_ERRORS):
            return None

        if exc_type is not None and exc_type.__name__ in NON_CRITICAL_TYPES:
            logger.debug(f"Sentry: игнорируем {exc_type.__name__}")
            return None

    breadcrumbs = event.get('breadcrumbs') or []
    if isinstance(breadcrumbs, dict):
        breadcrumbs = breadcrumbs.get('values', [])
    for breadcrumb in breadcrumbs:
        data = breadcrumb.get('data') or {}
        for key in list(data.keys()):
            if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
                data[key] = '[FILTERED]'

    return event


def _is_branch_log(record: logging.LogRecord) -> bool:
    if record.exc_info and isinstance(record.exc_info[1], BRANCH_ERRORS):
        return True
    return any(
        record.name == prefix or record.name.startswith(prefix + '.')
        for prefix in BRANCH_LOGGERS
    )


def capture_exception(
    error: BaseException,
    level: str = "error",
    extra: Optional[Dict[str, Any]] = None,
    tags: Optional[Dict[str, str]] = None
) -> Optional[str]:
    """
    Отправка исключения в Sentry с дополнительным контекстом.

    Args:
        error: Исключение
        level: Уровень важности (fatal/error/warning)
        extra: Дополнительные данные
        tags: Теги для фильтрации

    Returns:
        Event ID от Sentry или None
    """
    if not _sentry_initialized:
        return None

    try:
        event_id = sentry_sdk.capture_exception(
            error,
            level=level,
            tags=tags or {},
            extras=extra or {},
        )
        logger.info(f"📤 Отправлено в Sentry: {event_id}")
        return event_id
    except Exception as e:
        logger.error(f"❌ Ошибка отправки в Sentry: {e}")
        return None


def flush_events(timeout: int = 2):
    """Принудительная отправка накопленных событий перед завершением."""
    if not _sentry_initialized:
        return

    try:
        sentry_sdk.flush(timeout=timeout)
        logger.info("✅ События Sentry отправлены")
    except Exception as e:
        logger.error(f"❌ Ошибка отправки событий: {e}")


def is_sentry_enabled() -> bool:
    return _sentry_initialized


__all__ = [
    'init_sentry',
    'capture_exception',
    'flush_events',
    'is_sentry_enabled',
]
