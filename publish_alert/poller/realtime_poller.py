"""
Real-time Poller - периодический запуск циклов опроса.

Тики идут с фиксированным интервалом. Если цикл еще выполняется,
когда наступает следующий тик, тик пропускается (skip-if-busy):
окна опроса не перекрываются и не выпадают.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from publish_alert.models import PollCycleReport, PollState
from publish_alert.orchestrator import CrawlOrchestrator

logger = logging.getLogger(__name__)

ReportCallback = Callable[[PollCycleReport], Any]


class RealtimePoller:
    """
    Real-time поллер ленты уведомлений.

    Особенности:
    - Фиксированный интервал тиков, первый цикл сразу после старта
    - Пропуск тика, если предыдущий цикл еще не завершен
    - Callback система для обработки отчетов
    - Graceful shutdown: текущий цикл всегда доводится до конца
    """

    def __init__(
        self,
        orchestrator: CrawlOrchestrator,
        poll_interval: float = 15.0,
        state: Optional[PollState] = None,
    ):
        """
        Args:
            orchestrator: Оркестратор цикла опроса
            poll_interval: Интервал между тиками в секундах
            state: Начальное состояние (по умолчанию первый цикл смотрит назад на lookback)
        """
        self.orchestrator = orchestrator
        self.poll_interval = poll_interval
        self.state = state or PollState()

        self.callbacks: List[ReportCallback] = []

        self._running = False
        self._stop_event: Optional[asyncio.Event] = None
        self._current: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

        self.stats: Dict[str, Any] = {
            'polls': 0,
            'failed_polls': 0,
            'skipped_ticks': 0,
            'articles': 0,
            'articles_with_stamps': 0,
            'stamps_found': 0,
            'last_poll': None,
            'last_report_at': None,
            'started_at': None,
        }

    def add_callback(self, callback: ReportCallback):
        """Добавить обработчик отчета (sync или async)."""
        self.callbacks.append(callback)
        logger.info(f"✅ Добавлен callback: {getattr(callback, '__name__', callback)}")

    def remove_callback(self, callback: ReportCallback):
        if callback in self.callbacks:
            self.callbacks.remove(callback)

    async def start(self):
        """Запуск периодического опроса до вызова stop()."""
        self._running = True
        self._stop_event = asyncio.Event()
        self.stats['started_at'] = datetime.now()

        logger.info(f"🎯 Запуск опроса ленты, интервал {self.poll_interval} сек")

        try:
            while self._running:
                self._tick()
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False
            if self._current and not self._current.done():
                logger.info("⏳ Ожидание завершения текущего цикла...")
                await asyncio.gather(self._current, return_exceptions=True)

    def stop(self):
        """Остановка опроса. Текущий цикл доводится до конца."""
        self._running = False
        if self._stop_event is not None:
            self._stop_event.set()
        logger.info("🛑 Опрос остановлен")

    def _tick(self):
        if self.is_busy:
            self.stats['skipped_ticks'] += 1
            logger.warning("⚠️  Предыдущий цикл еще выполняется - тик пропущен")
            return
        self._current = asyncio.create_task(self.poll_once())

    async def poll_once(self) -> Optional[PollCycleReport]:
        """
        Однократный цикл опроса.

        Returns:
            Отчет цикла или None, если лента была недоступна
        """
        async with self._lock:
            logger.info(f"\n📡 Опрос #{self.stats['polls'] + 1} ({datetime.now().strftime('%H:%M:%S')})")
            self.stats['polls'] += 1
            self.stats['last_poll'] = datetime.now()

            try:
                self.state, report = await self.orchestrator.run_cycle(self.state)
            except Exception as e:
                # Ошибки веток гасятся внутри оркестратора, сюда доходят только баги
                self.stats['failed_polls'] += 1
                logger.error(f"❌ Ошибка цикла опроса: {e}", exc_info=True)
                return None

            if report is None:
                self.stats['failed_polls'] += 1
                return None

            with_stamps = report.with_stamps()
            self.stats['last_report_at'] = datetime.now()
            self.stats['articles'] += len(report.entries)
            self.stats['articles_with_stamps'] += len(with_stamps)
            self.stats['stamps_found'] += sum(len(entry.stamps) for entry in with_stamps)

            await self._notify_callbacks(report)
            return report

    async def _notify_callbacks(self, report: PollCycleReport):
        for callback in self.callbacks:
            try:
                result = callback(report)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(
                    f"❌ Ошибка в callback {getattr(callback, '__name__', callback)}: {e}",
                    exc_info=True,
                )

    def get_stats(self) -> Dict[str, Any]:
        return self.stats.copy()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_busy(self) -> bool:
        return self._current is not None and not self._current.done()


__all__ = ['RealtimePoller']
