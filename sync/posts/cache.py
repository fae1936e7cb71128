"""
Read-through disk cache: one JSON document per (course, kind).

Reads never raise; a missing or unreadable file is an empty collection.
Writes are best effort and only logged on failure.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable

from sync.posts.models import Record, ResourceKind

logger = logging.getLogger("post_cache")


class DiskCache:
    def __init__(self, root: str | Path):
        self.root = Path(root)

    def path_for(self, kind: ResourceKind, course_id: str) -> Path:
        return self.root / f"{course_id}_{kind.value}.json"

    def exists(self, kind: ResourceKind, course_id: str) -> bool:
        return self.path_for(kind, course_id).exists()

    def read(self, kind: ResourceKind, course_id: str) -> list[Record]:
        path = self.path_for(kind, course_id)
        if not path.exists():
            logger.debug("Cache miss %s", path.name)
            return []
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(raw, list):
                raise ValueError("cache document is not a list")
            return [kind.decode(item) for item in raw]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("Ignoring unreadable cache %s: %s", path, exc)
            return []

    def write(self, kind: ResourceKind, course_id: str, items: Iterable[Record]) -> bool:
        path = self.path_for(kind, course_id)
        try:
            payload = json.dumps([item.to_api() for item in items], ensure_ascii=False, indent=2)
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=path.name, suffix=".tmp", dir=self.root)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, path)
            except Exception:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Error writing cache %s: %s", path, exc)
            return False
        logger.debug("Wrote cache %s", path.name)
        return True

    def clear(self, kind: ResourceKind, course_id: str) -> bool:
        return self.write(kind, course_id, [])
