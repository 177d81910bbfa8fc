import json
import logging
import os
from typing import Any

logger = logging.getLogger(__name__)


class LocalStorage:
    """Small JSON-file key-value store for per-device preferences."""

    def __init__(self, path: str | None = None):
        self.path = path
        self._items: dict[str, Any] = {}
        if path and os.path.isfile(path):
            try:
                with open(path, "r", encoding="utf-8") as fh:
                    self._items = json.load(fh)
            except (OSError, ValueError) as e:
                logger.warning(f"Ignoring unreadable local storage {path}: {e}")
                self._items = {}

    def get_item(self, key: str) -> Any:
        return self._items.get(key)

    def set_item(self, key: str, value: Any) -> None:
        self._items[key] = value
        self._flush()

    def remove_item(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._flush()

    def _flush(self) -> None:
        if not self.path:
            return
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(self._items, fh)
