"""
Pydantic модели пайплайна Publish Alert.

Все сущности живут в пределах одного цикла опроса. Единственное состояние,
переживающее цикл - PollState.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# Запись детектора передается как есть, формат определяет детектор
Stamp = Any

DEFAULT_LOOKBACK = timedelta(hours=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_feed_timestamp(value: datetime) -> str:
    """ISO8601 в UTC с миллисекундами и суффиксом Z (2024-01-01T12:00:00.000Z)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class Notification(BaseModel):
    """Запись ленты: указатель на изменившийся контент."""

    model_config = ConfigDict(populate_by_name=True, extra='ignore', coerce_numbers_to_str=True)

    id: str
    api_url: str = Field(validation_alias=AliasChoices('apiUrl', 'api_url'))
    timestamp: Optional[str] = Field(
        None,
        validation_alias=AliasChoices('lastModified', 'timestamp'),
    )


class Article(BaseModel):
    """Полный документ статьи."""

    model_config = ConfigDict(populate_by_name=True, extra='ignore', coerce_numbers_to_str=True)

    id: str
    title: str = ''
    author: str = Field('', validation_alias=AliasChoices('byline', 'author'))
    body_markup: str = Field('', validation_alias=AliasChoices('bodyXML', 'bodyMarkup', 'body_markup'))
    web_url: Optional[str] = Field(None, validation_alias=AliasChoices('webUrl', 'url', 'web_url'))


class ImageBinary(BaseModel):
    uri: str
    data: bytes
    content_type: str


class ImageFinding(BaseModel):
    """Результат проверки одного PNG."""

    uri: str
    stamps: List[Stamp] = Field(default_factory=list)


class ArticleReport(BaseModel):
    """Запись отчета: статья и найденные в ее изображениях stamps."""

    notification: Notification
    article: Article
    images: List[ImageFinding] = Field(default_factory=list)

    @property
    def stamps(self) -> List[Stamp]:
        """Stamps в порядке обнаружения изображений."""
        return [stamp for image in self.images for stamp in image.stamps]

    @property
    def has_stamps(self) -> bool:
        return any(image.stamps for image in self.images)

    @property
    def url(self) -> str:
        return self.article.web_url or self.notification.api_url


class PollCycleReport(BaseModel):
    """Агрегированный результат одного цикла опроса."""

    window_start: datetime
    started_at: datetime
    finished_at: Optional[datetime] = None
    entries: List[ArticleReport] = Field(default_factory=list)

    def with_stamps(self) -> List[ArticleReport]:
        return [entry for entry in self.entries if entry.has_stamps]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'window_start': to_feed_timestamp(self.window_start),
            'started_at': to_feed_timestamp(self.started_at),
            'finished_at': to_feed_timestamp(self.finished_at) if self.finished_at else None,
            'entries': [
                {
                    'notification': entry.notification.id,
                    'article': entry.article.id,
                    'title': entry.article.title,
                    'url': entry.url,
                    'images': [image.model_dump() for image in entry.images],
                    'stamps': entry.stamps,
                }
                for entry in self.entries
            ],
        }


class PollState(BaseModel):
    """
    Состояние между циклами: время запуска предыдущего цикла.

    Первый цикл смотрит назад на lookback, каждый следующий начинается
    ровно с момента запуска предыдущего.
    """

    model_config = ConfigDict(frozen=True)

    last_polled: Optional[datetime] = None

    def next_window(
        self,
        now: Optional[datetime] = None,
        lookback: timedelta = DEFAULT_LOOKBACK,
    ) -> Tuple[datetime, 'PollState']:
        now = now or utcnow()
        if self.last_polled is None:
            return now - lookback, PollState(last_polled=now)
        # Часы могли уйти назад - не сдвигаем окно в прошлое
        return self.last_polled, PollState(last_polled=max(self.last_polled, now))


__all__ = [
    'Stamp',
    'Notification',
    'Article',
    'ImageBinary',
    'ImageFinding',
    'ArticleReport',
    'PollCycleReport',
    'PollState',
    'to_feed_timestamp',
    'utcnow',
    'DEFAULT_LOOKBACK',
]
