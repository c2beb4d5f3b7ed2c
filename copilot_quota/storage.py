from __future__ import annotations

import json
import hashlib
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Union

from .logging import get_logger

logger = get_logger(__name__)

_SAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]+")


@dataclass(frozen=True)
class StoredList:
    """Metadata stored alongside a persisted list."""

    saved_at: datetime
    items: List[Dict[str, Any]]

    @classmethod
    def load(cls, content: dict) -> "StoredList":
        items = content["items"]
        if not isinstance(items, list):
            raise ValueError("items must be a list")
        return cls(
            saved_at=datetime.fromisoformat(content["saved_at"]),
            items=items,
        )

    def dump(self) -> dict:
        return {
            "saved_at": self.saved_at.astimezone(timezone.utc).isoformat(),
            "items": self.items,
        }


class JsonListStore:
    """Filesystem-backed key/value store holding one ordered list per key.

    Only whole lists are read and written; callers own the ordering of the
    items inside them.
    """

    def __init__(self, root: Union[str, os.PathLike[str]], namespace: str = "history"):
        self.root = Path(root)
        self.namespace = namespace
        self.root.mkdir(parents=True, exist_ok=True)

    def _file_name(self, key: str) -> str:
        readable = _SAFE_NAME.sub("_", key).strip("_") or "default"
        digest = hashlib.md5(key.encode("utf-8")).hexdigest()[:8]
        return f"{readable}-{digest}.json"

    def path(self, key: str) -> Path:
        return self.root / self.namespace / self._file_name(key)

    def load(self, key: str) -> List[Dict[str, Any]]:
        path = self.path(key)
        if not path.exists():
            return []

        try:
            with path.open("r", encoding="utf-8") as fh:
                raw = json.load(fh)
            stored = StoredList.load(raw)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring unreadable list at %s: %s", path, exc)
            return []

        return list(stored.items)

    def save(self, key: str, items: List[Dict[str, Any]]) -> Path:
        path = self.path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        stored = StoredList(saved_at=datetime.now(timezone.utc), items=list(items))
        tmp_path = path.with_suffix(".tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(stored.dump(), fh, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
        return path

    def delete(self, key: str) -> None:
        path = self.path(key)
        if path.exists():
            path.unlink()

    def clear(self) -> None:
        target = self.root / self.namespace
        if not target.exists():
            return
        for file in target.glob("*.json"):
            file.unlink()
