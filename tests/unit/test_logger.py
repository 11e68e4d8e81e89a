"""
Unit тесты для structured logging.
"""

import json
import logging
import sys

import pytest

from app.logger import HumanReadableFormatter, StructuredFormatter, setup_logging


def make_record(message, **extra):
    record = logging.LogRecord(
        name='publish_alert.orchestrator',
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestFormatters:
    """Тесты форматов логов."""

    def test_structured_json(self):
        line = StructuredFormatter().format(make_record('Charts with nightingale: 1', notification='n1'))
        data = json.loads(line)

        assert data['level'] == 'INFO'
        assert data['logger'] == 'publish_alert.orchestrator'
        assert data['message'] == 'Charts with nightingale: 1'
        assert data['extra'] == {'notification': 'n1'}
        assert data['timestamp'].endswith('Z')
        assert data['source']['line'] == 10

    def test_structured_exception(self):
        try:
            raise ValueError('boom')
        except ValueError:
            record = make_record('failed')
            record.exc_info = sys.exc_info()

        data = json.loads(StructuredFormatter().format(record))

        assert 'ValueError: boom' in data['exception']

    def test_human_readable(self):
        line = HumanReadableFormatter().format(make_record('hello'))

        assert 'INFO' in line
        assert 'publish_alert.orchestrator: hello' in line


@pytest.mark.unit
class TestSetupLogging:

    def test_level_and_file(self, tmp_path):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        log_file = tmp_path / 'publish_alert.log'
        try:
            setup_logging(level='DEBUG', use_json=True, log_file=log_file)
            logging.getLogger('publish_alert.test').info('written to file')
            for handler in root.handlers:
                handler.flush()

            assert root.level == logging.DEBUG
            assert logging.getLogger('aiohttp').level == logging.WARNING
            assert json.loads(log_file.read_text().strip().splitlines()[-1])['message'] == 'written to file'
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
