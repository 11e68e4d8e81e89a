"""
Publish Alert Service - главный модуль координации.

Объединяет Crawl Orchestrator, Real-time Poller и Asana/Slack Notifier
в единую систему мониторинга публикаций.
"""

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from publish_alert.config import is_component_enabled, is_publish_alert_enabled
from publish_alert.crawler import ApiClient
from publish_alert.models import DEFAULT_LOOKBACK, PollCycleReport
from publish_alert.monitoring import capture_exception
from publish_alert.notifications import AsanaSlackNotifier
from publish_alert.orchestrator import CrawlOrchestrator
from publish_alert.poller import RealtimePoller

logger = logging.getLogger(__name__)


class PublishAlertService:
    """
    Главный сервис Publish Alert.

    Workflow:
    1. Poller раз в poll_interval запускает цикл опроса
    2. Orchestrator находит статьи и stamps в их изображениях
    3. Полный отчет цикла пишется в лог
    4. Notifier создает задачу Asana и сообщение Slack для каждой статьи со stamps
    """

    def __init__(
        self,
        feed_root: str,
        api_key: str,
        stamper_url: str = 'http://localhost:8080',
        poll_interval: float = 15.0,
        lookback: timedelta = DEFAULT_LOOKBACK,
        request_timeout: float = 30.0,
        retry_attempts: int = 1,
        max_concurrency: int = 0,
        notifier: Optional[AsanaSlackNotifier] = None,
    ):
        """
        Args:
            feed_root: Базовый URL API контента
            api_key: Ключ API контента
            stamper_url: URL детектора stamps
            poll_interval: Интервал опроса в секундах
            lookback: Глубина первого окна опроса
            request_timeout: Таймаут одного HTTP вызова
            retry_attempts: Попытки на транспортные ошибки
            max_concurrency: Лимит одновременных запросов (0 = без лимита)
            notifier: Asana/Slack notifier (без него статьи только логируются)
        """
        self.feed_root = feed_root
        self.api_key = api_key
        self.stamper_url = stamper_url
        self.poll_interval = poll_interval
        self.lookback = lookback
        self.request_timeout = request_timeout
        self.retry_attempts = retry_attempts
        self.max_concurrency = max_concurrency

        self.client: Optional[ApiClient] = None
        self.orchestrator: Optional[CrawlOrchestrator] = None
        self.poller: Optional[RealtimePoller] = None
        self.notifier = notifier

        self.stats: Dict[str, Any] = {
            'started_at': None,
            'reports': 0,
            'notifications_sent': 0,
            'errors': 0,
        }

    async def initialize(self):
        """Инициализация всех компонентов."""
        logger.info("🚀 Инициализация Publish Alert Service")

        if not is_publish_alert_enabled():
            raise RuntimeError("Publish Alert disabled in features config")

        retry_attempts = self.retry_attempts if is_component_enabled('retry') else 1
        self.client = ApiClient(
            api_key=self.api_key,
            timeout=self.request_timeout,
            retry_attempts=retry_attempts,
            max_concurrency=self.max_concurrency,
        )

        self.orchestrator = CrawlOrchestrator.from_client(
            self.client,
            feed_root=self.feed_root,
            stamper_url=self.stamper_url,
            lookback=self.lookback,
        )

        self.poller = RealtimePoller(self.orchestrator, poll_interval=self.poll_interval)
        self.poller.add_callback(self._handle_report)

        if self.notifier and not is_component_enabled('notifier'):
            logger.info("ℹ️  Notifier отключен в конфигурации")
            await self.notifier.close()
            self.notifier = None

        if self.notifier:
            logger.info("✅ Asana/Slack Notifier готов")
        else:
            logger.info("ℹ️  Notifier не настроен - статьи со stamps только логируются")

        logger.info("✅ Все компоненты инициализированы")

    async def start(self):
        """Запуск мониторинга до вызова stop()."""
        if not self.poller:
            raise RuntimeError("Service not initialized")

        self.stats['started_at'] = datetime.now()
        try:
            await self.poller.start()
        except Exception as e:
            logger.error(f"❌ Критическая ошибка сервиса: {e}", exc_info=True)
            self.stats['errors'] += 1
            capture_exception(e, level='fatal', tags={'component': 'service'})
        finally:
            await self.stop()

    async def stop(self):
        """Остановка сервиса."""
        if self.poller and self.poller.is_running:
            self.poller.stop()

        if self.notifier:
            await self.notifier.close()

        if self.client:
            await self.client.close()

        self._print_stats()

    async def _handle_report(self, report: PollCycleReport):
        """Callback отчета цикла: лог всего отчета и уведомления по статьям со stamps."""
        self.stats['reports'] += 1

        with_stamps = report.with_stamps()
        logger.info(f"Charts with nightingale: {len(with_stamps)}")
        logger.info(json.dumps(report.to_dict(), ensure_ascii=False, default=str))

        if not self.notifier:
            return

        for entry in with_stamps:
            task_id = await self.notifier.notify(entry)
            if task_id:
                self.stats['notifications_sent'] += 1
            else:
                self.stats['errors'] += 1

    def get_stats(self) -> Dict[str, Any]:
        """Статистика для health check."""
        stats = dict(self.stats)
        if self.poller:
            stats['poller'] = self.poller.get_stats()
        if self.orchestrator:
            stats['orchestrator'] = self.orchestrator.get_stats()
            stats['phase'] = self.orchestrator.phase.value
        if self.notifier:
            stats['notifier'] = self.notifier.get_stats()
        return stats

    def _print_stats(self):
        logger.info("📊 СТАТИСТИКА PUBLISH ALERT SERVICE")

        if self.stats['started_at']:
            logger.info(f"⏱️  Время работы: {datetime.now() - self.stats['started_at']}")

        logger.info(f"📄 Отчетов: {self.stats['reports']}")
        logger.info(f"📱 Отправлено уведомлений: {self.stats['notifications_sent']}")
        logger.info(f"❌ Ошибок: {self.stats['errors']}")

        if self.poller:
            poller_stats = self.poller.get_stats()
            logger.info(
                f"📡 Опросов: {poller_stats['polls']} "
                f"(неудачных: {poller_stats['failed_polls']}, пропущено тиков: {poller_stats['skipped_ticks']})"
            )


__all__ = ['PublishAlertService']
