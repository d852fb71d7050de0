"""
Per-path cache for dashboard listing data.

Listing and overview views store the result of their read queries here, keyed by
(path, query string). Mutation actions call revalidate_path() for every view
they affect so the next request re-reads from the database.

The cache lives in process memory: revalidation only reaches the worker that
handled the mutation, so entries also expire after `ttl` seconds.
"""
from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from flask import current_app, request

logger = logging.getLogger(__name__)


class ViewCache:
    def __init__(self, enabled: bool = True, ttl: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.enabled = enabled
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, dict[str, tuple[float, Any]]] = {}
        self._generation: dict[str, int] = {}

    def get_or_set(self, path: str, variant: str, loader: Callable[[], Any]) -> Any:
        if not self.enabled:
            return loader()
        path = _normalize(path)
        now = self._clock()
        with self._lock:
            hit = self._entries.get(path, {}).get(variant)
            if hit is not None and now - hit[0] < self.ttl:
                return hit[1]
            generation = self._generation.get(path, 0)
        value = loader()
        with self._lock:
            # A revalidate() that ran while loading wins; do not store stale data.
            if self._generation.get(path, 0) == generation:
                self._entries.setdefault(path, {})[variant] = (now, value)
        return value

    def revalidate(self, path: str) -> int:
        """Drop every cached entry for path. Returns the number of entries dropped."""
        path = _normalize(path)
        with self._lock:
            dropped = self._entries.pop(path, None)
            self._generation[path] = self._generation.get(path, 0) + 1
        count = len(dropped) if dropped else 0
        logger.debug("revalidate_path %s (dropped=%d)", path, count)
        return count

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return bool(self._entries.get(_normalize(path)))


def _normalize(path: str) -> str:
    return "/" + path.strip("/")


def get_view_cache() -> ViewCache:
    return current_app.extensions["view_cache"]


def cached_view_data(loader: Callable[[], Any]) -> Any:
    """Cache loader() under the current request path and query string."""
    variant = request.query_string.decode("utf-8", "replace")
    return get_view_cache().get_or_set(request.path, variant, loader)


def revalidate_path(path: str) -> None:
    get_view_cache().revalidate(path)
