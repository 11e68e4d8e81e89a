"""
Unit тесты для моделей пайплайна.

Тестируем:
- Формат временной метки ленты
- PollState: первое окно, последующие окна, монотонность
- Алиасы полей Notification и Article
- Порядок stamps в ArticleReport
- Сериализацию PollCycleReport
"""

import pytest
from datetime import datetime, timedelta, timezone

from publish_alert.models import (
    Article,
    ArticleReport,
    ImageFinding,
    Notification,
    PollCycleReport,
    PollState,
    to_feed_timestamp,
)

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def notification():
    return Notification.model_validate({'id': 'n1', 'apiUrl': 'https://api.example.com/content/n1'})


@pytest.fixture
def article():
    return Article.model_validate({
        'id': 'a1',
        'title': 'Charts of the week',
        'byline': 'Jane Doe',
        'bodyXML': '<body/>',
    })


@pytest.mark.unit
class TestFeedTimestamp:
    """Тесты формата since."""

    def test_utc_with_milliseconds(self):
        assert to_feed_timestamp(NOW) == '2024-01-01T12:00:00.000Z'

    def test_naive_datetime_is_utc(self):
        assert to_feed_timestamp(datetime(2024, 1, 1, 12, 0, 0, 123000)) == '2024-01-01T12:00:00.123Z'

    def test_offset_converted_to_utc(self):
        moscow = timezone(timedelta(hours=3))
        value = datetime(2024, 1, 1, 15, 0, 0, tzinfo=moscow)

        assert to_feed_timestamp(value) == '2024-01-01T12:00:00.000Z'


@pytest.mark.unit
class TestPollState:
    """Тесты окна опроса."""

    def test_first_window_looks_back_one_hour(self):
        window_start, state = PollState().next_window(NOW)

        assert window_start == NOW - timedelta(hours=1)
        assert state.last_polled == NOW

    def test_custom_lookback(self):
        window_start, _ = PollState().next_window(NOW, lookback=timedelta(minutes=5))

        assert window_start == NOW - timedelta(minutes=5)

    def test_next_window_starts_at_previous_poll(self):
        _, state = PollState().next_window(NOW)
        later = NOW + timedelta(seconds=15)

        window_start, state = state.next_window(later)

        assert window_start == NOW
        assert state.last_polled == later

    def test_clock_going_back_keeps_state(self):
        """Окно не сдвигается в прошлое, если часы ушли назад."""
        state = PollState(last_polled=NOW)
        earlier = NOW - timedelta(minutes=1)

        window_start, new_state = state.next_window(earlier)

        assert window_start == NOW
        assert new_state.last_polled == NOW

    def test_state_is_immutable(self):
        state = PollState(last_polled=NOW)

        with pytest.raises(Exception):
            state.last_polled = NOW + timedelta(seconds=1)


@pytest.mark.unit
class TestAliases:
    """Тесты разбора JSON API."""

    def test_notification_api_url(self, notification):
        assert notification.id == 'n1'
        assert notification.api_url == 'https://api.example.com/content/n1'

    def test_notification_numeric_id(self):
        notification = Notification.model_validate({'id': 42, 'apiUrl': 'u'})

        assert notification.id == '42'

    def test_notification_last_modified(self):
        notification = Notification.model_validate({
            'id': 'n1',
            'apiUrl': 'u',
            'lastModified': '2024-01-01T12:00:00.000Z',
        })

        assert notification.timestamp == '2024-01-01T12:00:00.000Z'

    def test_publish_reference_is_not_a_timestamp(self):
        """publishReference - id транзакции, а не время."""
        notification = Notification.model_validate({'id': 'n1', 'apiUrl': 'u', 'publishReference': 'tid_123'})

        assert notification.timestamp is None

    def test_notification_without_api_url_is_invalid(self):
        with pytest.raises(ValueError):
            Notification.model_validate({'id': 'n1'})

    def test_article_body_xml_and_byline(self, article):
        assert article.body_markup == '<body/>'
        assert article.author == 'Jane Doe'
        assert article.web_url is None

    def test_article_body_markup_alias(self):
        article = Article.model_validate({'id': 'a', 'bodyMarkup': '<p/>'})

        assert article.body_markup == '<p/>'
        assert article.title == ''


@pytest.mark.unit
class TestReports:
    """Тесты ArticleReport и PollCycleReport."""

    def test_non_object_stamps_kept_as_is(self, notification, article):
        entry = ArticleReport(
            notification=notification,
            article=article,
            images=[ImageFinding(uri='u1', stamps=['nightingale-v1', 7])],
        )

        assert entry.stamps == ['nightingale-v1', 7]

    def test_stamps_in_image_order(self, notification, article):
        entry = ArticleReport(
            notification=notification,
            article=article,
            images=[
                ImageFinding(uri='u1', stamps=[{'id': 1}, {'id': 2}]),
                ImageFinding(uri='u2', stamps=[]),
                ImageFinding(uri='u3', stamps=[{'id': 3}]),
            ],
        )

        assert entry.stamps == [{'id': 1}, {'id': 2}, {'id': 3}]
        assert entry.has_stamps

    def test_no_images_no_stamps(self, notification, article):
        entry = ArticleReport(notification=notification, article=article)

        assert entry.stamps == []
        assert not entry.has_stamps

    def test_url_falls_back_to_api_url(self, notification, article):
        entry = ArticleReport(notification=notification, article=article)
        assert entry.url == 'https://api.example.com/content/n1'

        with_web = article.model_copy(update={'web_url': 'https://www.example.com/a1'})
        assert ArticleReport(notification=notification, article=with_web).url == 'https://www.example.com/a1'

    def test_cycle_report_with_stamps_and_dict(self, notification, article):
        empty = ArticleReport(notification=notification, article=article)
        stamped = ArticleReport(
            notification=notification,
            article=article,
            images=[ImageFinding(uri='u1', stamps=[{'id': 1}])],
        )
        report = PollCycleReport(
            window_start=NOW - timedelta(hours=1),
            started_at=NOW,
            entries=[empty, stamped],
        )

        assert report.with_stamps() == [stamped]

        data = report.to_dict()
        assert data['window_start'] == '2024-01-01T11:00:00.000Z'
        assert data['finished_at'] is None
        assert [entry['stamps'] for entry in data['entries']] == [[], [{'id': 1}]]
        assert data['entries'][1]['images'] == [{'uri': 'u1', 'stamps': [{'id': 1}]}]
