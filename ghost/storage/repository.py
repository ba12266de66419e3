"""
User store adapter.

Typed access to users, teams, teammates and grants on top of the generic
MetadataStorage. Teammate and grant documents are keyed by
"{user_id}:{team_id}" so repeated upserts never create duplicate rows.
"""

from __future__ import annotations

import logging

from ghost.core.errors import NotFound
from ghost.core.models import (
    CastLog,
    Grant,
    Identity,
    Team,
    TeamDetail,
    TeamMember,
    Teammate,
    User,
    membership_key,
)
from ghost.core.utils import utc_now
from ghost.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)

_UNSET = object()

# Page size used when walking every row of a filtered query
PAGE_SIZE = 100


class GhostRepository:
    """Reads and idempotent writes for the team/grant model."""
    
    def __init__(self, metadata: MetadataStorage):
        self.metadata = metadata
    
    # =========================================================================
    # Users
    # =========================================================================
    
    async def get_user(self, user_id: str) -> User | None:
        doc = await self.metadata.get(Collections.USERS, user_id)
        return User.model_validate(doc) if doc else None
    
    async def get_user_by_username(self, username: str) -> User | None:
        docs = await self.metadata.query(Collections.USERS, {"username": username}, limit=1)
        return User.model_validate(docs[0]) if docs else None
    
    async def upsert_user(
        self,
        user_id: str,
        username: str,
        avatar_url: str | None = None,
        signer_uuid=_UNSET,
    ) -> User:
        """
        Create the user or refresh its display metadata.
        
        The signer is only touched when passed explicitly, so refreshing a
        teammate's profile never drops a connected signer.
        """
        existing = await self.get_user(user_id)
        if existing:
            user = existing.model_copy(update={
                "username": username,
                "avatar_url": avatar_url if avatar_url is not None else existing.avatar_url,
                "updated_at": utc_now(),
            })
        else:
            user = User(id=user_id, username=username, avatar_url=avatar_url)
        
        if signer_uuid is not _UNSET:
            user.signer_uuid = signer_uuid
        
        await self.metadata.save(Collections.USERS, user.id, user.model_dump(mode="json"))
        return user
    
    async def set_signer_uuid(self, user_id: str, signer_uuid: str) -> User:
        updated = await self.metadata.update(
            Collections.USERS,
            user_id,
            {"signer_uuid": signer_uuid, "updated_at": utc_now().isoformat()},
        )
        if not updated:
            raise NotFound(f"User {user_id} not found")
        return await self.get_user(user_id)
    
    # =========================================================================
    # Identity resolution (callbacks handed to the auth strategies)
    # =========================================================================
    
    async def resolve_signature_identity(self, identity: Identity) -> User:
        """Find or create the user behind a verified sign-in message."""
        existing = await self.get_user(identity.fid)
        if existing is None:
            logger.info(f"Creating user for fid {identity.fid}")
            return await self.upsert_user(
                identity.fid,
                username=identity.username or identity.fid,
                avatar_url=identity.avatar_url,
            )
        
        if identity.username or identity.avatar_url:
            return await self.upsert_user(
                identity.fid,
                username=identity.username or existing.username,
                avatar_url=identity.avatar_url,
            )
        return existing
    
    async def resolve_signer_identity(self, identity: Identity) -> User:
        """Upsert the user behind an approved signer, storing the signer."""
        return await self.upsert_user(
            identity.fid,
            username=identity.username or identity.fid,
            avatar_url=identity.avatar_url,
            signer_uuid=identity.signer_uuid,
        )
    
    # =========================================================================
    # Teams
    # =========================================================================
    
    async def create_team(self, name: str) -> Team:
        team = Team(name=name)
        await self.metadata.save(Collections.TEAMS, team.id, team.model_dump(mode="json"))
        return team
    
    async def get_team(self, team_id: str) -> Team | None:
        doc = await self.metadata.get(Collections.TEAMS, team_id)
        return Team.model_validate(doc) if doc else None
    
    async def list_teams_for_user(self, user_id: str) -> list[Team]:
        rows = await self._query_all(Collections.TEAMMATES, {"user_id": user_id})
        teams = []
        for row in rows:
            team = await self.get_team(row["team_id"])
            if team:
                teams.append(team)
        return teams
    
    async def get_team_detail(self, team_id: str) -> TeamDetail | None:
        team = await self.get_team(team_id)
        if team is None:
            return None
        
        teammates = await self._query_all(Collections.TEAMMATES, {"team_id": team_id})
        grants = await self._query_all(Collections.GRANTS, {"team_id": team_id})
        
        return TeamDetail(
            team=team,
            teammates=await self._join_users(teammates),
            grants=await self._join_users(grants),
        )
    
    async def _join_users(self, rows: list[dict]) -> list[TeamMember]:
        members = []
        for row in rows:
            user = await self.get_user(row["user_id"])
            if user:
                members.append(TeamMember(user=user, created_at=row["created_at"]))
        return members
    
    # =========================================================================
    # Teammates and grants
    # =========================================================================
    
    async def upsert_teammate(self, user_id: str, team_id: str) -> Teammate:
        teammate = Teammate(user_id=user_id, team_id=team_id)
        doc, created = await self.metadata.insert(
            Collections.TEAMMATES, teammate.key, teammate.model_dump(mode="json"),
        )
        if created:
            logger.info(f"User {user_id} joined team {team_id}")
        return Teammate.model_validate(doc)
    
    async def get_teammate(self, user_id: str, team_id: str) -> Teammate | None:
        doc = await self.metadata.get(Collections.TEAMMATES, membership_key(user_id, team_id))
        return Teammate.model_validate(doc) if doc else None
    
    async def upsert_grant(self, user_id: str, team_id: str) -> Grant:
        grant = Grant(user_id=user_id, team_id=team_id)
        doc, created = await self.metadata.insert(
            Collections.GRANTS, grant.key, grant.model_dump(mode="json"),
        )
        if created:
            logger.info(f"User {user_id} granted casting to team {team_id}")
        return Grant.model_validate(doc)
    
    async def get_grant(self, user_id: str, team_id: str) -> Grant | None:
        doc = await self.metadata.get(Collections.GRANTS, membership_key(user_id, team_id))
        return Grant.model_validate(doc) if doc else None
    
    # =========================================================================
    # Cast log
    # =========================================================================
    
    async def log_cast(self, cast: CastLog) -> CastLog:
        await self.metadata.save(Collections.CAST_LOGS, cast.id, cast.model_dump(mode="json"))
        return cast
    
    async def list_casts(self, team_id: str) -> list[CastLog]:
        docs = await self._query_all(Collections.CAST_LOGS, {"team_id": team_id})
        return [CastLog.model_validate(d) for d in docs]
    
    # =========================================================================
    # Helpers
    # =========================================================================
    
    async def _query_all(self, collection: str, filters: dict) -> list[dict]:
        """Every matching row, fetched PAGE_SIZE at a time."""
        rows: list[dict] = []
        while True:
            page = await self.metadata.query(collection, filters, limit=PAGE_SIZE, offset=len(rows))
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                return rows
