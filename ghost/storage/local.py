"""
In-memory storage for development and tests.

Everything lives in process dictionaries, so the data is lost on
restart. None of the methods awaits between reading and writing a key,
which makes `insert` atomic under a single event loop.
"""

from __future__ import annotations

import copy
import time
from collections import defaultdict
from typing import Any, Callable, NamedTuple

from ghost.core.utils import utc_now
from ghost.storage.base import CacheStorage, MetadataStorage, StorageProvider


# =============================================================================
# Documents
# =============================================================================


class InMemoryMetadataStorage(MetadataStorage):
    """Collections of documents keyed by caller-chosen ids."""
    
    def __init__(self):
        self._collections: defaultdict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
    
    def _stamp(self, id: str, data: dict[str, Any]) -> dict[str, Any]:
        return {**copy.deepcopy(data), "_id": id, "_updated_at": utc_now().isoformat()}
    
    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        self._collections[collection][id] = self._stamp(id, data)
    
    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        doc = self._collections[collection].get(id)
        # Rows handed out are copies; only save/update change what is stored
        return copy.deepcopy(doc)
    
    async def insert(self, collection: str, id: str, data: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        docs = self._collections[collection]
        created = id not in docs
        if created:
            docs[id] = self._stamp(id, data)
        return copy.deepcopy(docs[id]), created
    
    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        filters = filters or {}
        matches = (
            doc for doc in self._collections[collection].values()
            if all(doc.get(field) == value for field, value in filters.items())
        )
        return [copy.deepcopy(doc) for doc in list(matches)[offset:offset + limit]]
    
    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        doc = self._collections[collection].get(id)
        if doc is None:
            return False
        doc.update(copy.deepcopy(updates))
        doc["_updated_at"] = utc_now().isoformat()
        return True


# =============================================================================
# Cache
# =============================================================================


class _Entry(NamedTuple):
    value: Any
    expires_at: float | None


class InMemoryCacheStorage(CacheStorage):
    """TTL cache for social graph lookups. Expired entries are dropped on read."""
    
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: dict[str, _Entry] = {}
        self._clock = clock
    
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if ttl is not None and ttl <= 0:
            self._entries.pop(key, None)
            return
        expires_at = self._clock() + ttl if ttl is not None else None
        self._entries[key] = _Entry(value, expires_at)
    
    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value


def create_local_storage() -> StorageProvider:
    return StorageProvider(
        metadata=InMemoryMetadataStorage(),
        cache=InMemoryCacheStorage(),
    )
