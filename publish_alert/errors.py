"""
Иерархия ошибок пайплайна.

FeedUnavailable прерывает весь цикл опроса. Все остальные ошибки
ограничены одной веткой (уведомление, ImageSet или изображение).
"""

from typing import Optional


class PublishAlertError(Exception):
    """Базовая ошибка Publish Alert."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class FeedUnavailable(PublishAlertError):
    """Лента уведомлений недоступна - цикл опроса прерывается."""

    def __init__(self, cause: Optional[BaseException] = None):
        super().__init__(f"Notification feed unavailable: {cause}", cause)


class ArticleFetchFailed(PublishAlertError):
    def __init__(self, notification_id: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to fetch article for notification {notification_id}: {cause}", cause)
        self.notification_id = notification_id


class ImageSetResolutionFailed(PublishAlertError):
    def __init__(self, reference_url: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to resolve ImageSet {reference_url}: {cause}", cause)
        self.reference_url = reference_url


class ImageDownloadFailed(PublishAlertError):
    def __init__(self, url: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to download image {url}: {cause}", cause)
        self.url = url


class DetectionFailed(PublishAlertError):
    def __init__(self, uri: str, cause: Optional[BaseException] = None):
        super().__init__(f"Stamp detection failed for {uri}: {cause}", cause)
        self.uri = uri


BRANCH_ERRORS = (
    ArticleFetchFailed,
    ImageSetResolutionFailed,
    ImageDownloadFailed,
    DetectionFailed,
)


__all__ = [
    'PublishAlertError',
    'FeedUnavailable',
    'ArticleFetchFailed',
    'ImageSetResolutionFailed',
    'ImageDownloadFailed',
    'DetectionFailed',
    'BRANCH_ERRORS',
]
