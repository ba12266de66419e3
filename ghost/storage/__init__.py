"""
Storage abstractions.

- MetadataStorage -> users, teams, teammates, grants, cast logs
- CacheStorage    -> read-through cache for social graph lookups
"""

from ghost.storage.base import (
    MetadataStorage,
    CacheStorage,
    StorageProvider,
    Collections,
)
from ghost.storage.local import create_local_storage
from ghost.storage.repository import GhostRepository

__all__ = [
    "MetadataStorage",
    "CacheStorage",
    "StorageProvider",
    "Collections",
    "create_local_storage",
    "GhostRepository",
]
