from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from basket_chart.services.json_storage import JsonStorage
from basket_chart.utils.logger import get_logger

logger = get_logger(__name__)


class BaseSettingsManager(ABC):
    """
    Flat settings dictionary with persistent storage.

    Subclasses provide DEFAULT_SETTINGS and settings_key and may override
    the (de)serialization hooks. Settings are saved on every update and
    loaded on construction.
    """

    def __init__(self, storage: Optional[JsonStorage] = None):
        self._storage = storage if storage is not None else JsonStorage()
        self._settings = dict(self.DEFAULT_SETTINGS)
        self.load_settings()

    @property
    @abstractmethod
    def DEFAULT_SETTINGS(self) -> Dict[str, Any]:
        """Default settings (used when no custom settings are set)."""

    @property
    @abstractmethod
    def settings_key(self) -> str:
        """Storage key for this manager."""

    def get_setting(self, key: str) -> Any:
        """Get a specific setting value."""
        return self._settings.get(key)

    def get_all_settings(self) -> Dict[str, Any]:
        """Get all settings."""
        return self._settings.copy()

    def update_settings(self, settings: Dict[str, Any]) -> None:
        """Update settings and save to disk."""
        self._settings.update(settings)
        self.save_settings()

    def reset_to_defaults(self) -> None:
        """Reset all settings to defaults."""
        self._settings = dict(self.DEFAULT_SETTINGS)
        self.save_settings()

    def has_custom_setting(self, key: str) -> bool:
        """Check if a setting has been customized (differs from default)."""
        return self._settings.get(key) != self.DEFAULT_SETTINGS.get(key)

    def save_settings(self) -> None:
        """Save settings to storage."""
        self._storage.set_item(self.settings_key, self._serialize_settings(self._settings))

    def load_settings(self) -> None:
        """Load settings from storage, keeping defaults for anything missing."""
        data = self._storage.get_item(self.settings_key)
        if data is None:
            return

        if not isinstance(data, dict):
            logger.warning("Ignoring malformed %s settings: %r", self.settings_key, data)
            self._settings = dict(self.DEFAULT_SETTINGS)
            return

        self._settings.update(self._deserialize_settings(data))

    def _serialize_settings(self, settings: Dict[str, Any]) -> Dict[str, Any]:
        """Convert settings to JSON-serializable format."""
        serialized = {}
        for key, value in settings.items():
            if isinstance(value, tuple):
                serialized[key] = list(value)
            else:
                serialized[key] = value
        return serialized

    def _deserialize_settings(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Convert settings from JSON format to runtime format. Unknown keys are dropped."""
        return {key: value for key, value in data.items() if key in self.DEFAULT_SETTINGS}
