from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from basket_chart.core.config import STORAGE_DIR, STORAGE_KEY_PREFIX
from basket_chart.utils.logger import get_logger

logger = get_logger(__name__)


class JsonStorage:
    """
    Key/value storage of JSON documents, one file per key.

    Keys are namespaced with a fixed project prefix so several tools can
    share the same directory.
    """

    def __init__(self, directory: Optional[Path] = None, prefix: str = STORAGE_KEY_PREFIX):
        self._directory = Path(directory) if directory is not None else STORAGE_DIR
        self._prefix = prefix

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        """File path backing a key."""
        return self._directory / f"{self._prefix}{key}.json"

    def get_item(self, key: str) -> Any:
        """Return the stored JSON value, or None if absent or unreadable."""
        path = self.path_for(key)
        if not path.exists():
            return None

        try:
            with open(path, "r") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Error reading %s: %s", path, e)
            return None

    def set_item(self, key: str, value: Any) -> None:
        """Overwrite the stored value for key."""
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                json.dump(value, f, indent=2)
            logger.debug("Saved %s", path)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Error saving %s: %s", path, e)

    def remove_item(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            logger.warning("Error removing %s: %s", path, e)
