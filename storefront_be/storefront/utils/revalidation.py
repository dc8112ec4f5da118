"""Render cache for read-mostly pages and the revalidation signal that invalidates it.

Write actions call ``revalidate_path`` after a successful commit so the next read
of that page is rebuilt from the database.
"""
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from storefront.config import get_settings

logger = logging.getLogger(__name__)

ADMIN_PRODUCTS_PATH = "/admin/products"
ADMIN_CATEGORIES_PATH = "/admin/categories"


def product_detail_path(slug: str) -> str:
    return f"/products/{slug}"


class RenderCache:
    def __init__(self, ttl_seconds: Optional[int] = None, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_seconds if ttl_seconds is not None else get_settings().RENDER_CACHE_TTL_SECONDS
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, path: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(path)
            if entry is None:
                return None
            stored_at, payload = entry
            if self._clock() - stored_at > self._ttl:
                del self._entries[path]
                return None
            return payload

    def set(self, path: str, payload: Any) -> None:
        with self._lock:
            now = self._clock()
            # Expired keys are dropped here too, not only when read again
            expired = [key for key, (stored_at, _) in self._entries.items() if now - stored_at > self._ttl]
            for key in expired:
                del self._entries[key]
            self._entries[path] = (now, payload)

    def get_or_render(self, path: str, render: Callable[[], Any]) -> Any:
        cached = self.get(path)
        if cached is not None:
            return cached
        payload = render()
        # Misses are not cached so a page created later shows up immediately
        if payload is not None:
            self.set(path, payload)
        return payload

    def invalidate(self, path: str) -> bool:
        """Drop ``path`` and every query-string variant of it (``path?...``)."""
        with self._lock:
            keys = [k for k in self._entries if k == path or k.startswith(path + "?")]
            for key in keys:
                del self._entries[key]
            return bool(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, path: str) -> bool:
        return self.get(path) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


render_cache = RenderCache()


def revalidate_path(path: str) -> None:
    removed = render_cache.invalidate(path)
    logger.debug("Revalidated %s (cached entry dropped=%s)", path, removed)
