"""
PlainStep Selector Registry

Persistent per-page cache of the last selector that located an element.
One JSON file per page identity holds a flat ``descriptor_key -> selector``
map, e.g. ``registries/inventory.json``.

Writes are read-merge-write under a lock shared by every registry instance
of the process, finished by an atomic file replace: concurrent scenarios
never lose each other's keys and readers never see a half-written file.
Separate processes sharing a directory still race, last writer wins.
"""

import json
import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

_WRITE_LOCK = threading.Lock()


def page_identity(url: str) -> str:
    """
    Derive a stable page name from a URL path.

    Query string and fragment are ignored, so ``/inventory.html?sort=az``
    and ``/inventory.html`` share one registry file.
    """
    path = urlparse(url).path
    name = re.sub(r"^/|\.html$", "", path).replace("/", "_")
    name = re.sub(r"[^\w\-]", "_", name).strip("_")
    return name or "home"


def descriptor_key(name: str, element_type: Optional[str] = None) -> str:
    """Normalize an element descriptor into a registry key."""
    normalized = re.sub(r"\s+", "_", name.strip().lower())
    return f"{normalized}_{element_type or 'any'}"


class SelectorRegistry:
    """File-backed selector cache keyed by page identity."""

    def __init__(self, registry_dir: str):
        self.registry_dir = Path(registry_dir)
        self.registry_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, page: str) -> Path:
        return self.registry_dir / f"{page}.json"

    def load(self, page: str) -> dict[str, str]:
        """Read the whole map for one page; missing or corrupt files read as empty."""
        path = self.path_for(page)
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable registry {path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, page: str, key: str) -> Optional[str]:
        return self.load(page).get(key)

    def save(self, page: str, key: str, selector: str) -> None:
        """Store a selector, merging into (not replacing) the page's map."""
        with _WRITE_LOCK:
            data = self.load(page)
            if data.get(key) == selector:
                return
            data[key] = selector
            self._write(page, data)
        logger.info(f"Registry updated [{page}] {key} -> {selector}")

    def invalidate(self, page: str, key: str) -> None:
        """Drop an entry that no longer locates a visible element."""
        with _WRITE_LOCK:
            data = self.load(page)
            if key not in data:
                return
            stale = data.pop(key)
            self._write(page, data)
        logger.info(f"Registry entry invalidated [{page}] {key} (was {stale})")

    def pages(self) -> list[str]:
        """Page identities that have a registry file."""
        return sorted(p.stem for p in self.registry_dir.glob("*.json"))

    def clear(self, page: Optional[str] = None) -> int:
        """
        Delete registry files.

        Args:
            page: Only clear this page; all pages when omitted

        Returns:
            Number of files deleted
        """
        targets = [self.path_for(page)] if page else list(self.registry_dir.glob("*.json"))
        deleted = 0
        with _WRITE_LOCK:
            for path in targets:
                if path.exists():
                    path.unlink()
                    deleted += 1
        return deleted

    def _write(self, page: str, data: dict[str, str]) -> None:
        path = self.path_for(page)
        fd, tmp_name = tempfile.mkstemp(dir=self.registry_dir, prefix=f".{page}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
