"""
Storage abstraction layer.

All persistence goes through these interfaces so the in-memory
development backends can be swapped for a database and Redis
without touching the auth chain.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel


# =============================================================================
# Storage Interfaces
# =============================================================================


class MetadataStorage(ABC):
    """
    Storage for structured documents grouped in collections.
    
    Document ids are chosen by the caller. Saving under an existing id
    replaces the document, which is what makes keyed upserts idempotent.
    """
    
    @abstractmethod
    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        """Save a document to a collection."""
        pass
    
    @abstractmethod
    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        """Get a document by ID."""
        pass
    
    @abstractmethod
    async def insert(self, collection: str, id: str, data: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        """
        Store a document only if `id` is free.
        
        Returns the stored document and whether it was created. An existing
        document is returned untouched, so at most one row ever exists per
        key even when two requests race on the same membership.
        """
        pass
    
    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Query documents with optional equality filters, in insertion order."""
        pass
    
    @abstractmethod
    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        """Partial update of a document."""
        pass


class CacheStorage(ABC):
    """
    Key-value cache with per-entry TTL.
    
    Entries are never invalidated early; they only expire.
    """
    
    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Set a value. `ttl` is in seconds; None keeps it until evicted, 0 or less stores nothing."""
        pass
    
    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Get a value, or None when missing or expired."""
        pass


# =============================================================================
# Storage Provider (dependency injection container)
# =============================================================================


class StorageProvider(BaseModel):
    """
    Container for all storage backends.
    
    Initialize once at app startup with appropriate implementations.
    """
    
    model_config = {"arbitrary_types_allowed": True}
    
    metadata: MetadataStorage
    cache: CacheStorage


# =============================================================================
# Collection Names (for MetadataStorage)
# =============================================================================


class Collections:
    """Standard collection/table names."""
    
    USERS = "users"
    TEAMS = "teams"
    TEAMMATES = "teammates"
    GRANTS = "grants"
    CAST_LOGS = "cast_logs"
