"""
Environment Variables Validator.

Проверяет наличие и валидность переменных окружения перед запуском.
"""

import os
import sys
import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class EnvValidator:
    """Валидатор переменных окружения."""

    # Обязательные переменные
    REQUIRED_VARS = {
        'FT_API_URL': 'Content API root URL (https://api.ft.com)',
        'FT_API_KEY': 'Content API key',
    }

    # Рекомендуемые переменные (warning если отсутствуют)
    RECOMMENDED_VARS = {
        'STAMPER_URL': 'Stamp detector URL (http://host:port)',
        'ASANA_API_KEY': 'Asana API key для создания задач',
        'ASANA_PROJECT_ID': 'Asana project ID',
        'ASANA_WORKSPACE_ID': 'Asana workspace ID',
        'SLACK_WEB_HOOK': 'Slack incoming webhook URL',
    }

    # Опциональные переменные
    OPTIONAL_VARS = {
        'SEARCH_BACK_MS': 'Poll interval in milliseconds (default: 15000)',
        'ASANA_API_URL': 'Asana API root (default: https://app.asana.com/api/1.0)',
        'SENTRY_DSN': 'Sentry DSN для error tracking',
        'LOG_LEVEL': 'Logging level (DEBUG, INFO, WARNING, ERROR)',
        'PORT': 'Port for health check endpoint (default: 3000)',
    }

    URL_VARS = ('FT_API_URL', 'STAMPER_URL', 'ASANA_API_URL', 'SLACK_WEB_HOOK')

    @staticmethod
    def validate_url(url: str) -> Tuple[bool, Optional[str]]:
        """
        Валидация http(s) URL.

        Returns:
            (is_valid, error_message)
        """
        parsed = urlparse(url)
        if parsed.scheme not in ('http', 'https'):
            return False, f"should use http or https, got '{parsed.scheme}'"
        if not parsed.hostname:
            return False, "missing hostname"
        return True, None

    @staticmethod
    def validate_sentry_dsn(dsn: str) -> Tuple[bool, Optional[str]]:
        """Sentry DSN format: https://public_key@host/project_id"""
        is_valid, error = EnvValidator.validate_url(dsn)
        if not is_valid:
            return False, error
        if '@' not in dsn:
            return False, "Sentry DSN should contain @ separator"
        return True, None

    @staticmethod
    def validate_positive_int(value: str) -> Tuple[bool, Optional[str]]:
        try:
            if int(value) <= 0:
                return False, "should be positive"
        except ValueError:
            return False, "should be an integer"
        return True, None

    @classmethod
    def _check(cls, var_name: str, value: str) -> Tuple[bool, Optional[str]]:
        if var_name in cls.URL_VARS:
            return cls.validate_url(value)
        if var_name == 'SENTRY_DSN':
            return cls.validate_sentry_dsn(value)
        if var_name in ('SEARCH_BACK_MS', 'PORT'):
            return cls.validate_positive_int(value)
        return True, None

    @classmethod
    def validate_all(cls, strict: bool = False) -> Dict[str, Any]:
        """
        Валидация всех переменных окружения.

        Args:
            strict: Если True, warnings тоже считаются ошибками

        Returns:
            {'valid': bool, 'errors': [...], 'warnings': [...], 'info': {...}}
        """
        errors = []
        warnings = []
        info = {}

        for var_name, description in cls.REQUIRED_VARS.items():
            value = os.getenv(var_name)
            if not value:
                errors.append(f"❌ Missing required: {var_name} - {description}")
                continue
            is_valid, error_msg = cls._check(var_name, value)
            if is_valid:
                info[var_name] = "✅ Valid"
            else:
                errors.append(f"❌ Invalid {var_name}: {error_msg}")

        for var_name, description in cls.RECOMMENDED_VARS.items():
            value = os.getenv(var_name)
            if not value:
                message = f"⚠️  Missing recommended: {var_name} - {description}"
                if strict:
                    errors.append(message)
                else:
                    warnings.append(message)
                continue
            is_valid, error_msg = cls._check(var_name, value)
            if is_valid:
                info[var_name] = "✅ Valid"
            else:
                errors.append(f"❌ Invalid {var_name}: {error_msg}")

        for var_name in cls.OPTIONAL_VARS:
            value = os.getenv(var_name)
            if not value:
                continue
            is_valid, error_msg = cls._check(var_name, value)
            if is_valid:
                info[var_name] = "✅ Present"
            else:
                warnings.append(f"⚠️  Invalid {var_name}: {error_msg}")

        return {
            'valid': len(errors) == 0,
            'errors': errors,
            'warnings': warnings,
            'info': info
        }

    @classmethod
    def validate_and_exit_if_invalid(cls, strict: bool = False):
        """
        Валидация с автоматическим выходом при ошибках.

        Args:
            strict: Если True, warnings тоже приводят к выходу
        """
        result = cls.validate_all(strict=strict)

        logger.info("Environment Variables Validation")
        for key, value in result['info'].items():
            logger.info(f"  {key}: {value}")

        for warning in result['warnings']:
            logger.warning(f"  {warning}")

        for error in result['errors']:
            logger.error(f"  {error}")

        if not result['valid']:
            logger.error("❌ Environment validation failed! Fix errors above.")
            sys.exit(1)

        logger.info("✅ Environment validation passed!")


__all__ = ['EnvValidator']
