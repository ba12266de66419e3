"""
Tests for the in-memory storage backends.
"""

import pytest

from ghost.storage.local import InMemoryCacheStorage, InMemoryMetadataStorage


class TestMetadata:
    @pytest.mark.asyncio
    async def test_insert_keeps_first_document(self):
        store = InMemoryMetadataStorage()
        
        first, created = await store.insert("grants", "1:t", {"user_id": "1", "n": 1})
        again, created_again = await store.insert("grants", "1:t", {"user_id": "1", "n": 2})
        
        assert created and not created_again
        assert again["n"] == 1
        assert again["_id"] == "1:t"

    @pytest.mark.asyncio
    async def test_reads_are_copies(self):
        store = InMemoryMetadataStorage()
        await store.save("users", "1", {"username": "alice", "tags": ["a"]})
        
        doc = await store.get("users", "1")
        doc["tags"].append("b")
        
        assert (await store.get("users", "1"))["tags"] == ["a"]

    @pytest.mark.asyncio
    async def test_query_pages_in_insertion_order(self):
        store = InMemoryMetadataStorage()
        for i in range(5):
            await store.save("teammates", str(i), {"team_id": "t" if i % 2 == 0 else "u"})
        
        page = await store.query("teammates", {"team_id": "t"}, limit=2, offset=1)
        assert [d["_id"] for d in page] == ["2", "4"]
        assert await store.query("nothing") == []

    @pytest.mark.asyncio
    async def test_update_missing_document(self):
        store = InMemoryMetadataStorage()
        assert await store.update("users", "404", {"signer_uuid": "x"}) is False


class TestCache:
    @pytest.mark.asyncio
    async def test_entries_expire(self):
        now = [1000.0]
        cache = InMemoryCacheStorage(clock=lambda: now[0])
        
        await cache.set("user:1", {"fid": 1}, ttl=60)
        assert await cache.get("user:1") == {"fid": 1}
        
        now[0] += 60
        assert await cache.get("user:1") is None

    @pytest.mark.asyncio
    async def test_zero_ttl_stores_nothing(self):
        cache = InMemoryCacheStorage()
        await cache.set("user:1", "old")
        await cache.set("user:1", "new", ttl=0)
        assert await cache.get("user:1") is None
