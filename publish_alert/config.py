"""
Feature Configuration Loader for Publish Alert

This module provides utilities to check feature flags and configure
components based on config/features.yaml settings.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / 'config' / 'features.yaml'


class FeatureConfig:
    """Feature configuration manager."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize feature config loader.

        Args:
            config_path: Path to features.yaml, defaults to config/features.yaml
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file.

        A missing file means every component is enabled.
        """
        if not self.config_path.exists():
            self._config = {}
            return

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load features config {self.config_path}: {e}")
            self._config = {}

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    @property
    def _section(self) -> Dict[str, Any]:
        return self._config.get('publish_alert', {}) or {}

    @property
    def is_publish_alert_enabled(self) -> bool:
        return self._section.get('enabled', True)

    def is_component_enabled(self, component: str) -> bool:
        """Check if a component is enabled.

        Args:
            component: Component name (e.g., 'notifier', 'health_check', 'retry')
        """
        if not self.is_publish_alert_enabled:
            return False

        return self._section.get('components', {}).get(component, True)

    def get_limit(self, limit_name: str) -> Optional[Any]:
        """Get limit value (e.g., 'max_attachments_per_task')."""
        return self._config.get('limits', {}).get(limit_name)

    def get_all_config(self) -> Dict[str, Any]:
        return self._config.copy()


# Global instance
feature_config = FeatureConfig()


def is_publish_alert_enabled() -> bool:
    return feature_config.is_publish_alert_enabled


def is_component_enabled(component: str) -> bool:
    return feature_config.is_component_enabled(component)


def get_limit(limit_name: str) -> Optional[Any]:
    return feature_config.get_limit(limit_name)
