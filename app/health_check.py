"""
Health Check endpoint для мониторинга и Docker/Kubernetes.

Поднимает простой HTTP сервер для проверки здоровья приложения.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from aiohttp import web

logger = logging.getLogger(__name__)

SERVICE_OK_TEXT = 'Nightingale Publish Alert Service OK!'

StatsProvider = Callable[[], Dict[str, Any]]

_health_status: Dict[str, Any] = {
    "status": "starting",
    "started_at": datetime.now(timezone.utc).isoformat(),
    "checks": {}
}

STATS_PROVIDER_KEY = web.AppKey('stats_provider', object)


async def root_handler(request: web.Request) -> web.Response:
    """GET / - фиксированная строка для liveness проверок."""
    return web.Response(text=SERVICE_OK_TEXT)


async def health_check_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint: GET /health

    Returns:
        200 OK если все компоненты в порядке
        503 Service Unavailable если есть проблемы
    """
    all_ok = all(
        check in ("ok", "disabled", "running") or check.startswith("ok")
        for check in _health_status["checks"].values()
    )

    body = dict(_health_status)
    body["status"] = "healthy" if all_ok else "degraded"
    body["timestamp"] = datetime.now(timezone.utc).isoformat()

    stats_provider: Optional[StatsProvider] = request.app.get(STATS_PROVIDER_KEY)
    if stats_provider is not None:
        try:
            body["stats"] = stats_provider()
        except Exception as e:
            logger.error(f"Stats provider failed: {e}", exc_info=True)
            body["stats"] = {"error": str(e)}

    return web.json_response(body, status=200 if all_ok else 503, dumps=lambda value: json.dumps(value, default=str))


async def liveness_handler(request: web.Request) -> web.Response:
    """Liveness check endpoint: GET /live"""
    return web.json_response({"alive": True}, status=200)


def create_health_app(stats_provider: Optional[StatsProvider] = None) -> web.Application:
    app = web.Application()
    app[STATS_PROVIDER_KEY] = stats_provider

    app.router.add_get('/', root_handler)
    app.router.add_get('/health', health_check_handler)
    app.router.add_get('/live', liveness_handler)
    return app


async def start_health_check_server(
    port: int = 3000,
    stats_provider: Optional[StatsProvider] = None,
) -> web.AppRunner:
    """
    Запуск health check HTTP сервера.

    Args:
        port: Порт для health check endpoint
        stats_provider: Функция, возвращающая статистику сервиса

    Returns:
        AppRunner (для cleanup при остановке)
    """
    runner = web.AppRunner(create_health_app(stats_provider))
    await runner.setup()

    site = web.TCPSite(runner, '0.0.0.0', port)
    await site.start()

    _health_status["status"] = "healthy"
    logger.info(f"✅ Publish Alert health check at http://0.0.0.0:{port}")
    return runner


def update_health_status(component: str, status: str):
    """
    Обновление статуса компонента.

    Args:
        component: Название компонента (config, sentry, service)
        status: Статус ('ok', 'disabled', 'error: ...')
    """
    _health_status["checks"][component] = status
    logger.debug(f"Health status updated: {component} = {status}")


def reset_health_status():
    _health_status["status"] = "starting"
    _health_status["checks"].clear()


__all__ = [
    'SERVICE_OK_TEXT',
    'create_health_app',
    'start_health_check_server',
    'update_health_status',
    'reset_health_status',
]
