"""
Unit тесты для Sentry интеграции (без реальной отправки событий).
"""

import logging

import pytest

from publish_alert.errors import DetectionFailed, FeedUnavailable, ImageDownloadFailed
from publish_alert.monitoring import _before_send_filter, capture_exception, init_sentry, is_sentry_enabled


def hint_for(error):
    return {'exc_info': (type(error), error, None)}


def log_hint(name, exc_info=None):
    record = logging.LogRecord(name, logging.ERROR, __file__, 1, 'failed', None, exc_info)
    return {'log_record': record}


@pytest.mark.unit
class TestBeforeSend:
    """Тесты фильтра событий."""

    def test_branch_errors_dropped(self):
        error = DetectionFailed('https://images/x', ValueError('bad'))

        assert _before_send_filter({}, hint_for(error)) is None

    def test_feed_failure_sent(self):
        event = {'message': 'feed'}

        assert _before_send_filter(event, hint_for(FeedUnavailable())) is event

    def test_branch_logger_record_dropped(self):
        """Ошибки веток, залогированные краулером, не уходят в Sentry."""
        hint = log_hint('publish_alert.crawler.image_sets')

        assert _before_send_filter({'message': 'failed'}, hint) is None

    def test_orchestrator_logger_record_dropped(self):
        assert _before_send_filter({}, log_hint('publish_alert.orchestrator')) is None

    def test_branch_error_record_dropped_from_any_logger(self):
        error = ImageDownloadFailed('https://images/x')
        hint = log_hint('publish_alert.service', (type(error), error, None))

        assert _before_send_filter({}, hint) is None

    def test_service_logger_record_kept(self):
        event = {'message': 'feed down'}

        assert _before_send_filter(event, log_hint('publish_alert.service')) is event

    def test_similar_logger_prefix_kept(self):
        event = {'message': 'x'}

        assert _before_send_filter(event, log_hint('publish_alert.crawlers')) is event

    def test_api_key_masked_in_breadcrumbs(self):
        event = {
            'breadcrumbs': {
                'values': [
                    {'data': {'url': 'https://api.ft.com/content/notifications', 'apiKey': 'secret-key'}},
                ]
            }
        }

        result = _before_send_filter(event, {})

        data = result['breadcrumbs']['values'][0]['data']
        assert data['apiKey'] == '[FILTERED]'
        assert data['url'] == 'https://api.ft.com/content/notifications'


@pytest.mark.unit
class TestDisabledSentry:

    def test_init_without_dsn(self, monkeypatch):
        monkeypatch.delenv('SENTRY_DSN', raising=False)

        assert init_sentry(dsn=None) is False
        assert not is_sentry_enabled()

    def test_capture_is_noop(self):
        assert capture_exception(RuntimeError('not sent')) is None
