# =============================================================================
# Neynar Social Graph
# =============================================================================
#
# Everything the app needs from the Farcaster social graph:
#   - signer status (delegated-signer sign in)
#   - profile lookups by fid and by username
#   - publishing casts with a signer
#   - channel / reaction / follower lookups (cached, see ghost.services.social)
#
# =============================================================================

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel


class SignerStatus(BaseModel):
    """Status of a managed signer."""
    signer_uuid: str
    status: str  # "generated", "pending_approval", "approved", "revoked"
    fid: int | str | None = None  # bound account, once approved


class Profile(BaseModel):
    """Farcaster account profile."""
    fid: int
    username: str
    display_name: str | None = None
    pfp_url: str | None = None


class Channel(BaseModel):
    id: str
    name: str | None = None
    image_url: str | None = None


class PublishedCast(BaseModel):
    hash: str


class NeynarError(Exception):
    """Neynar request failed."""
    pass


class SocialGraph(ABC):
    """Farcaster social graph operations."""
    
    @abstractmethod
    async def lookup_signer(self, signer_uuid: str) -> SignerStatus:
        pass
    
    @abstractmethod
    async def fetch_bulk_users(self, fids: list[int]) -> list[Profile]:
        pass
    
    @abstractmethod
    async def lookup_user_by_username(self, username: str) -> Profile:
        """Raises NeynarError when the username is unknown."""
        pass
    
    @abstractmethod
    async def publish_cast(
        self,
        signer_uuid: str,
        text: str,
        channel_id: str | None = None,
        embeds: list[dict[str, str]] | None = None,
    ) -> PublishedCast:
        pass
    
    @abstractmethod
    async def lookup_channel(self, channel_id: str) -> Channel:
        pass
    
    @abstractmethod
    async def fetch_cast_reactions(self, cast_hash: str) -> list[dict[str, Any]]:
        pass
    
    @abstractmethod
    async def fetch_user_followers(self, fid: int) -> list[Profile]:
        pass
