"""
Team flows: creating teams, adding ghostwriters, connecting signers and
casting as a teammate.
"""

from __future__ import annotations

import logging

from ghost.auth.gate import (
    require_author_signer,
    require_can_cast_as_author,
    require_user_belongs_to_team,
)
from ghost.core.errors import Forbidden, NotFound
from ghost.core.models import CastLog, Grant, Team, User
from ghost.core.utils import normalize_fid
from ghost.integrations.neynar import NeynarError, SocialGraph
from ghost.storage.repository import GhostRepository

logger = logging.getLogger(__name__)


class TeamService:
    
    def __init__(self, repository: GhostRepository, social_graph: SocialGraph):
        self.repository = repository
        self.social_graph = social_graph
    
    async def create_team(self, user: User, name: str) -> Team:
        """Create a team with `user` as its first ghostwriter."""
        team = await self.repository.create_team(name)
        await self.repository.upsert_teammate(user.id, team.id)
        logger.info(f"User {user.id} created team {team.id}")
        return team
    
    async def add_teammate(self, team_id: str, username: str) -> User:
        """
        Add a ghostwriter by Farcaster username.
        
        The user row is created if this account never signed in.
        """
        try:
            profile = await self.social_graph.lookup_user_by_username(username)
        except NeynarError as e:
            logger.info(f"Username lookup for @{username} failed: {e}")
            raise NotFound(f"@{username} not found, try again?") from e
        
        user = await self.repository.upsert_user(
            str(profile.fid),
            username=profile.username,
            avatar_url=profile.pfp_url,
        )
        await self.repository.upsert_teammate(user.id, team_id)
        return user
    
    async def connect(self, user: User, team_id: str, signer_uuid: str, fid: str) -> Grant:
        """
        Let the team cast as `user` with the signer they just approved.
        
        The fid coming back from the signer flow must be the signed-in user.
        """
        team = await require_user_belongs_to_team(self.repository, user.id, team_id)
        
        try:
            claimed = normalize_fid(fid)
        except ValueError:
            raise Forbidden("Invalid fid") from None
        if claimed != user.id:
            logger.warning(f"Connect fid {claimed} does not match user {user.id}")
            raise Forbidden("Signer belongs to a different account")
        
        grant = await self.repository.upsert_grant(user.id, team.id)
        await self.repository.set_signer_uuid(user.id, signer_uuid)
        return grant
    
    async def cast(
        self,
        user: User,
        team_id: str,
        author_id: str,
        content: str,
        channel_id: str | None = None,
        embeds: list[str] | None = None,
    ) -> CastLog:
        """Publish a cast as `author_id` on behalf of ghostwriter `user`."""
        await require_can_cast_as_author(self.repository, user.id, team_id, author_id)
        author = await require_author_signer(self.repository, author_id)
        
        published = await self.social_graph.publish_cast(
            author.signer_uuid,
            content,
            channel_id=channel_id,
            embeds=[{"url": url} for url in embeds or []],
        )
        
        return await self.repository.log_cast(CastLog(
            user_id=user.id,
            author_id=author.id,
            team_id=team_id,
            cast_content=content,
            hash=published.hash,
        ))
