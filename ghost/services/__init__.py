"""Team and social graph services used by the route handlers."""

from ghost.services.social import SocialService
from ghost.services.teams import TeamService

__all__ = ["SocialService", "TeamService"]
