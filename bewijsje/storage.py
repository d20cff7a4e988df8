"""
storage.py — Tiny persistent key/value store for the last used name and class.

Values live in a JSON file on disk. The file is re-read on every ``get`` so
two processes sharing it see each other's writes; there is no locking and the
last writer wins.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from . import config

log = logging.getLogger(__name__)


class LocalStore:
    """String key/value pairs persisted as a flat JSON object."""

    def __init__(self, path: str | Path | None = None, namespace: str = ""):
        self.path = Path(path) if path is not None else config.STORE_FILE
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            log.warning("Ignoring unreadable store %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    # ── public api ──

    def get(self, key: str) -> Optional[str]:
        value = self._load().get(self._key(key))
        return None if value is None else str(value)

    def set(self, key: str, value: str):
        data = self._load()
        data[self._key(key)] = str(value)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    def scoped(self, namespace: str) -> "LocalStore":
        """Same file, keys prefixed with ``namespace`` (one per Discord user)."""
        return LocalStore(self.path, namespace=namespace)
