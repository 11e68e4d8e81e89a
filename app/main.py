"""
Главный файл запуска Publish Alert.
"""

import asyncio
import logging
import os

from app.config import AppConfig
from app.env_validator import EnvValidator
from app.health_check import start_health_check_server, update_health_status
from app.logger import auto_setup_logging
from publish_alert.config import is_component_enabled
from publish_alert.monitoring import capture_exception, flush_events, init_sentry, is_sentry_enabled
from publish_alert.notifications import AsanaSlackNotifier
from publish_alert.service import PublishAlertService

logger = logging.getLogger(__name__)


def build_service(config: AppConfig) -> PublishAlertService:
    """Собрать сервис из конфигурации окружения."""
    notifier = None
    if config.notifier_configured:
        notifier = AsanaSlackNotifier(
            asana_api_key=config.ASANA_API_KEY,
            project_id=config.ASANA_PROJECT_ID,
            workspace_id=config.ASANA_WORKSPACE_ID,
            slack_webhook=config.SLACK_WEB_HOOK,
            asana_api_url=config.ASANA_API_URL,
            timeout=config.REQUEST_TIMEOUT,
        )

    return PublishAlertService(
        feed_root=config.FT_API_URL,
        api_key=config.FT_API_KEY,
        stamper_url=config.STAMPER_URL,
        poll_interval=config.poll_interval,
        lookback=config.lookback,
        request_timeout=config.REQUEST_TIMEOUT,
        retry_attempts=config.RETRY_ATTEMPTS,
        max_concurrency=config.MAX_CONCURRENCY,
        notifier=notifier,
    )


async def main():
    """Главная функция запуска сервиса."""
    auto_setup_logging()

    logger.info("🔍 Проверка переменных окружения...")
    EnvValidator.validate_and_exit_if_invalid(strict=os.getenv('STRICT_ENV', '0') == '1')

    config = AppConfig()
    try:
        config.validate()
        update_health_status("config", "ok")
    except ValueError as e:
        logger.error(f"❌ Ошибка конфигурации: {e}")
        update_health_status("config", f"error: {e}")
        return

    init_sentry(dsn=config.SENTRY_DSN, environment=config.APP_ENV)
    update_health_status("sentry", "ok" if is_sentry_enabled() else "disabled")

    service = build_service(config)

    health_check_runner = None
    if is_component_enabled('health_check'):
        health_check_runner = await start_health_check_server(
            port=config.PORT,
            stats_provider=service.get_stats,
        )

    try:
        await service.initialize()
        update_health_status("service", "running")
        await service.start()
    except Exception as e:
        logger.error(f"❌ Ошибка запуска сервиса: {e}", exc_info=True)
        update_health_status("service", f"error: {e}")
        capture_exception(e, level="fatal", tags={"component": "main"})
    finally:
        if health_check_runner:
            logger.info("🛑 Остановка health check сервера...")
            await health_check_runner.cleanup()

        flush_events(timeout=2)


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("🛑 Сервис остановлен пользователем")


if __name__ == "__main__":
    run()
