"""
Authorization gate - who may act within a team, and as whom.

Read-only checks against the store. Each returns the row it found or
raises `Forbidden`, which the web boundary turns into a redirect to /403.

Usage in routes:
    team = await require_user_belongs_to_team(repo, user.id, team_id)
    grant = await require_can_cast_as_author(repo, user.id, team_id, author_id)
"""

from __future__ import annotations

import logging

from ghost.core.errors import Forbidden
from ghost.core.models import Grant, TeamDetail, User
from ghost.storage.repository import GhostRepository

logger = logging.getLogger(__name__)


async def require_user_belongs_to_team(
    repository: GhostRepository,
    user_id: str,
    team_id: str,
) -> TeamDetail:
    """The team with its teammates and grants, if `user_id` is a teammate."""
    teammate = await repository.get_teammate(user_id, team_id)
    team = await repository.get_team_detail(team_id) if teammate else None
    
    if team is None:
        logger.info(f"User {user_id} is not on team {team_id}")
        raise Forbidden(f"Not a member of team {team_id}")
    
    return team


async def require_can_cast_as_author(
    repository: GhostRepository,
    user_id: str,
    team_id: str,
    author_id: str,
) -> Grant:
    """The author's grant to the team, if `user_id` is a teammate."""
    await require_user_belongs_to_team(repository, user_id, team_id)
    
    grant = await repository.get_grant(author_id, team_id)
    if grant is None:
        logger.info(f"Team {team_id} has no grant from {author_id}")
        raise Forbidden(f"Team {team_id} cannot cast as {author_id}")
    
    return grant


async def require_author_signer(repository: GhostRepository, author_id: str) -> User:
    """The author, if they have a connected signer to cast with."""
    author = await repository.get_user(author_id)
    if author is None or not author.signer_uuid:
        raise Forbidden(f"{author_id} has no connected signer")
    return author
