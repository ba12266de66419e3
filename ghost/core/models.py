"""
Core data models.

Users mirror Farcaster accounts. Teams group users; a Teammate row makes
someone a ghostwriter on a team, a Grant row makes their account
castable by that team.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from ghost.core.utils import generate_id, utc_now


class User(BaseModel):
    """Local account keyed by Farcaster fid (as a decimal string)."""
    
    id: str
    username: str
    avatar_url: str | None = None
    signer_uuid: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Team(BaseModel):
    id: str = Field(default_factory=lambda: generate_id("team"))
    name: str
    created_at: datetime = Field(default_factory=utc_now)


class Teammate(BaseModel):
    """Membership of a user in a team. Unique per (user_id, team_id)."""
    
    user_id: str
    team_id: str
    created_at: datetime = Field(default_factory=utc_now)
    
    @property
    def key(self) -> str:
        return membership_key(self.user_id, self.team_id)


class Grant(BaseModel):
    """A user's account may be cast as within a team. Unique per (user_id, team_id)."""
    
    user_id: str
    team_id: str
    created_at: datetime = Field(default_factory=utc_now)
    
    @property
    def key(self) -> str:
        return membership_key(self.user_id, self.team_id)


class CastLog(BaseModel):
    """Audit row for a cast published by a ghostwriter."""
    
    id: str = Field(default_factory=lambda: generate_id("cast"))
    user_id: str  # ghostwriter
    author_id: str  # account cast as
    team_id: str
    cast_content: str
    hash: str
    created_at: datetime = Field(default_factory=utc_now)


class TeamMember(BaseModel):
    """A teammate or grant row joined with its user."""
    
    user: User
    created_at: datetime


class TeamDetail(BaseModel):
    """Team with its ghostwriters and shared accounts."""
    
    team: Team
    teammates: list[TeamMember] = Field(default_factory=list)
    grants: list[TeamMember] = Field(default_factory=list)
    
    @property
    def id(self) -> str:
        return self.team.id
    
    @property
    def name(self) -> str:
        return self.team.name


class FlashType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class FlashMessage(BaseModel):
    """One-shot toast message stored in the session."""
    
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: FlashType
    message: str


def membership_key(user_id: str, team_id: str) -> str:
    return f"{user_id}:{team_id}"


class Identity(BaseModel):
    """Normalized identity a strategy hands to the identity resolver."""
    
    fid: str
    username: str | None = None
    avatar_url: str | None = None
    signer_uuid: str | None = None
