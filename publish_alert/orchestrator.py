"""
Crawl Orchestrator - один цикл опроса.

Workflow:
1. Вычисляем окно (since) из PollState
2. Feed Client получает уведомления (ошибка прерывает цикл)
3. Для каждого уведомления параллельно: статья → ImageSets → изображения → stamps
4. Ждем завершения ВСЕХ веток и собираем PollCycleReport

Ошибка ветки логируется и превращается в "ветка не дала stamps",
она никогда не выходит за пределы цикла.
"""

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Tuple

from publish_alert.crawler import (
    ApiClient,
    ArticleFetcher,
    FeedClient,
    ImageDownloader,
    ImageSetResolver,
    StampDetectorClient,
)
from publish_alert.crawler.images import image_name
from publish_alert.errors import FeedUnavailable
from publish_alert.models import (
    DEFAULT_LOOKBACK,
    ArticleReport,
    ImageFinding,
    Notification,
    PollCycleReport,
    PollState,
    to_feed_timestamp,
    utcnow,
)
from publish_alert.monitoring import capture_exception
from publish_alert.settle import settle_all

logger = logging.getLogger(__name__)


class CyclePhase(str, Enum):
    IDLE = 'idle'
    WINDOW_COMPUTED = 'window_computed'
    NOTIFICATIONS_FETCHED = 'notifications_fetched'
    FAN_OUT_IN_FLIGHT = 'fan_out_in_flight'
    AGGREGATED = 'aggregated'


class CrawlOrchestrator:
    """Оркестратор цикла опроса."""

    def __init__(
        self,
        feed: FeedClient,
        articles: ArticleFetcher,
        image_sets: ImageSetResolver,
        downloader: ImageDownloader,
        detector: StampDetectorClient,
        lookback: timedelta = DEFAULT_LOOKBACK,
    ):
        self.feed = feed
        self.articles = articles
        self.image_sets = image_sets
        self.downloader = downloader
        self.detector = detector
        self.lookback = lookback

        self.phase = CyclePhase.IDLE
        self.stats = {
            'cycles': 0,
            'feed_failures': 0,
            'branch_failures': 0,
            'images_checked': 0,
            'images_skipped': 0,
        }

    @classmethod
    def from_client(
        cls,
        client: ApiClient,
        feed_root: str,
        stamper_url: str,
        lookback: timedelta = DEFAULT_LOOKBACK,
    ) -> 'CrawlOrchestrator':
        """Собрать оркестратор со всеми клиентами на одной HTTP сессии."""
        return cls(
            feed=FeedClient(client, feed_root),
            articles=ArticleFetcher(client),
            image_sets=ImageSetResolver(client),
            downloader=ImageDownloader(client),
            detector=StampDetectorClient(client, stamper_url),
            lookback=lookback,
        )

    async def run_cycle(
        self,
        state: PollState,
        now: Optional[datetime] = None,
    ) -> Tuple[PollState, Optional[PollCycleReport]]:
        """
        Выполнить один цикл опроса.

        Args:
            state: Состояние предыдущего цикла
            now: Время запуска (по умолчанию текущее UTC)

        Returns:
            (новое состояние, отчет). Отчет None, если лента недоступна.
        """
        started_at = now or utcnow()
        window_start, next_state = state.next_window(started_at, self.lookback)
        self.phase = CyclePhase.WINDOW_COMPUTED
        self.stats['cycles'] += 1

        try:
            try:
                notifications = await self.feed.fetch_notifications(window_start)
            except FeedUnavailable as e:
                self.stats['feed_failures'] += 1
                logger.error(
                    f"❌ Цикл опроса прерван (окно с {to_feed_timestamp(window_start)}): {e}"
                )
                capture_exception(e, level='error', tags={'component': 'feed'})
                return next_state, None

            self.phase = CyclePhase.NOTIFICATIONS_FETCHED
            logger.info(f"   📄 Загрузка статей: {len(notifications)}")

            self.phase = CyclePhase.FAN_OUT_IN_FLIGHT
            results = await settle_all(
                self.process_notification(notification) for notification in notifications
            )

            entries: List[ArticleReport] = []
            for notification, result in zip(notifications, results):
                if result.ok:
                    entries.append(result.value)
                else:
                    self.stats['branch_failures'] += 1
                    logger.error(f"❌ Уведомление {notification.id} пропущено: {result.error}")

            self.phase = CyclePhase.AGGREGATED
            report = PollCycleReport(
                window_start=window_start,
                started_at=started_at,
                finished_at=utcnow(),
                entries=entries,
            )
            logger.info(
                f"   ✅ Все статьи обработаны: {len(entries)}/{len(notifications)}, "
                f"со stamps: {len(report.with_stamps())}"
            )
            return next_state, report
        finally:
            self.phase = CyclePhase.IDLE

    async def process_notification(self, notification: Notification) -> ArticleReport:
        """
        Ветка одного уведомления.

        Raises:
            ArticleFetchFailed: статья не загрузилась, ветка не попадает в отчет
        """
        article = await self.articles.fetch_article(notification)

        image_urls: List[str] = []
        for reference, resolved in await self.image_sets.settle_image_sets(article):
            if resolved.ok:
                image_urls.append(resolved.value)
            else:
                self.stats['branch_failures'] += 1
                logger.error(f"❌ ImageSet {reference} пропущен: {resolved.error}")

        results = await settle_all(self.inspect_image(url) for url in image_urls)

        images: List[ImageFinding] = []
        for url, result in zip(image_urls, results):
            if not result.ok:
                self.stats['branch_failures'] += 1
                logger.error(f"❌ Изображение {image_name(url)} пропущено: {result.error}")
            elif result.value is not None:
                images.append(result.value)

        entry = ArticleReport(notification=notification, article=article, images=images)
        logger.info(f"The article {article.id} contained the following stamps {entry.stamps}")
        return entry

    async def inspect_image(self, url: str) -> Optional[ImageFinding]:
        """
        Скачать изображение и проверить его детектором.

        Returns:
            ImageFinding, либо None если изображение не PNG
        """
        image = await self.downloader.download_image(url)
        if image is None:
            self.stats['images_skipped'] += 1
            return None

        stamps = await self.detector.detect_stamps(image)
        self.stats['images_checked'] += 1
        return ImageFinding(uri=image.uri, stamps=stamps)

    def get_stats(self):
        return self.stats.copy()


__all__ = ['CrawlOrchestrator', 'CyclePhase']
