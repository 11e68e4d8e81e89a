"""
Crawler - клиенты сетевых этапов пайплайна.

Example usage:
    from publish_alert.crawler import ApiClient, FeedClient

    async with ApiClient(api_key="KEY") as client:
        feed = FeedClient(client, feed_root="https://api.ft.com")
        notifications = await feed.fetch_notifications(since)
"""

from .http import ApiClient
from .feed import FeedClient
from .articles import ArticleFetcher
from .image_sets import ImageSetResolver, extract_image_set_references
from .images import ImageDownloader
from .detector import StampDetectorClient

__all__ = [
    'ApiClient',
    'FeedClient',
    'ArticleFetcher',
    'ImageSetResolver',
    'extract_image_set_references',
    'ImageDownloader',
    'StampDetectorClient',
]
