"""
Named cache service on top of Django's cache framework.

Each owner builds its own CacheService with an explicit TTL and cache alias
(see CACHES in settings), so tests control expiry through the TTL and isolation
through the alias and name. Keys are namespaced by the service name.
"""
import logging
from typing import Any, Callable

from django.core.cache import caches

logger = logging.getLogger(__name__)


class CacheService:
    def __init__(self, ttl_seconds: int, alias: str = 'default', name: str = 'cache'):
        self.ttl = ttl_seconds
        self.alias = alias
        self.name = name

    @property
    def backend(self):
        return caches[self.alias]

    def _key(self, key: str) -> str:
        return f'{self.name}:{key}'

    def get(self, key: str, default=None):
        return self.backend.get(self._key(key), default)

    def set(self, key: str, value, ttl_seconds: int | None = None):
        self.backend.set(self._key(key), value, self.ttl if ttl_seconds is None else ttl_seconds)

    def get_or_set(self, key: str, loader: Callable[[], Any]):
        return self.backend.get_or_set(self._key(key), loader, self.ttl)

    def invalidate(self, key: str) -> bool:
        removed = self.backend.delete(self._key(key))
        logger.debug("cache=%s invalidate key=%s removed=%s", self.name, key, removed)
        return removed

    def clear(self):
        """Drops everything in the backing alias, not only this service's keys."""
        self.backend.clear()
