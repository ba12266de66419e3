"""
Cached social graph lookups.

Thin read-through layer over `SocialGraph`; TTLs come from the cache
policy table in ghost.cache.
"""

from __future__ import annotations

from typing import Any

from ghost.cache import cache_key, get_set_cache
from ghost.integrations.neynar import Channel, Profile, SocialGraph
from ghost.storage.base import CacheStorage


class SocialService:
    
    def __init__(self, graph: SocialGraph, cache: CacheStorage, environment: str = "production"):
        self.graph = graph
        self.cache = cache
        self.environment = environment
    
    async def _cached(self, kind: str, identifier: Any, get):
        return await get_set_cache(
            self.cache,
            cache_key(kind, identifier),
            get,
            environment=self.environment,
        )
    
    async def get_channel(self, channel_id: str) -> Channel:
        return await self._cached("channel", channel_id, lambda: self.graph.lookup_channel(channel_id))
    
    async def get_user(self, fid: str) -> Profile | None:
        async def load() -> Profile | None:
            users = await self.graph.fetch_bulk_users([int(fid)])
            return users[0] if users else None
        return await self._cached("user", fid, load)
    
    async def get_reactions(self, cast_hash: str) -> list[dict[str, Any]]:
        return await self._cached("reactions", cast_hash, lambda: self.graph.fetch_cast_reactions(cast_hash))
    
    async def get_followers(self, fid: int) -> list[Profile]:
        return await self._cached("followers", fid, lambda: self.graph.fetch_user_followers(fid))
