"""
Конфигурация процесса Publish Alert из переменных окружения.
"""

import os
from datetime import timedelta
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Загружаем .env (только для локального запуска)
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)


def _stamper_url_from_env() -> str:
    url = os.getenv('STAMPER_URL', '').strip()
    if url:
        return url
    host = os.getenv('STAMPER_HOST', 'localhost').strip()
    port = os.getenv('STAMPER_PORT', '8080').strip()
    if not host.startswith(('http://', 'https://')):
        host = f"http://{host}"
    return f"{host}:{port}"


class AppConfig:
    """Конфигурация сервиса."""

    def __init__(self):
        # API контента
        self.FT_API_URL = os.getenv('FT_API_URL', '').strip()
        self.FT_API_KEY = os.getenv('FT_API_KEY', '').strip()

        # Детектор stamps
        self.STAMPER_URL = _stamper_url_from_env()

        # Опрос
        self.POLL_INTERVAL_MS = int(os.getenv('SEARCH_BACK_MS', '15000'))
        self.LOOKBACK_MINUTES = int(os.getenv('LOOKBACK_MINUTES', '60'))
        self.REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', '30'))
        self.RETRY_ATTEMPTS = int(os.getenv('RETRY_ATTEMPTS', '1'))
        self.MAX_CONCURRENCY = int(os.getenv('MAX_CONCURRENCY', '0'))

        # Health check
        self.PORT = int(os.getenv('PORT', '3000'))

        # Asana + Slack
        self.ASANA_API_KEY = os.getenv('ASANA_API_KEY', '').strip()
        self.ASANA_API_URL = os.getenv('ASANA_API_URL', 'https://app.asana.com/api/1.0').strip()
        self.ASANA_PROJECT_ID = os.getenv('ASANA_PROJECT_ID', '').strip()
        self.ASANA_WORKSPACE_ID = os.getenv('ASANA_WORKSPACE_ID', '').strip()
        self.SLACK_WEB_HOOK = os.getenv('SLACK_WEB_HOOK', '').strip() or None

        # Мониторинг
        self.SENTRY_DSN = os.getenv('SENTRY_DSN', '').strip() or None
        self.APP_ENV = os.getenv('APP_ENV', 'production')

    @property
    def poll_interval(self) -> float:
        """Интервал опроса в секундах."""
        return self.POLL_INTERVAL_MS / 1000.0

    @property
    def lookback(self) -> timedelta:
        return timedelta(minutes=self.LOOKBACK_MINUTES)

    @property
    def notifier_configured(self) -> bool:
        return bool(self.ASANA_API_KEY and self.ASANA_PROJECT_ID and self.ASANA_WORKSPACE_ID)

    def missing(self) -> List[str]:
        errors = []
        if not self.FT_API_URL:
            errors.append("FT_API_URL не задан")
        if not self.FT_API_KEY:
            errors.append("FT_API_KEY не задан")
        if self.POLL_INTERVAL_MS <= 0:
            errors.append("SEARCH_BACK_MS должен быть положительным")
        return errors

    def validate(self) -> bool:
        """Проверяет, что все необходимые настройки заданы."""
        errors = self.missing()
        if errors:
            raise ValueError("Ошибки конфигурации:\n" + "\n".join(f"  - {e}" for e in errors))
        return True

