"""Browser-style local storage: a per-origin key/value file."""
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

from config import LOCAL_STORAGE_DIR

logger = logging.getLogger(__name__)


class LocalStorage:
    """
    Persist JSON-serializable values under string keys for one origin.

    With no directory the values only live in memory, like a private window.
    """

    def __init__(self, directory: Optional[Union[str, Path]] = LOCAL_STORAGE_DIR, origin: str = "default"):
        self.origin = origin
        self.path: Optional[Path] = None
        if directory is not None:
            safe_origin = re.sub(r"[^A-Za-z0-9._-]+", "_", origin)
            self.path = Path(directory) / f"{safe_origin}.json"
        self._items: Dict[str, Any] = self._load()

    def get_item(self, key: str, default: Any = None) -> Any:
        return self._items.get(key, default)

    def set_item(self, key: str, value: Any) -> None:
        self._items[key] = value
        self._save()

    def remove_item(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._save()

    def _load(self) -> Dict[str, Any]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable local storage at {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._items, f, ensure_ascii=False)
