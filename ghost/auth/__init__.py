"""
Authentication and authorization.

- strategies: prove control of a Farcaster account (signature or signer)
- session:    signed, encrypted cookie sessions with flash messages
- context:    AuthContext, the strategy dispatcher and current-user lookup
- gate:       team membership and cast-as checks
"""

from ghost.auth.context import AuthContext, AuthResult
from ghost.auth.gate import (
    require_author_signer,
    require_can_cast_as_author,
    require_user_belongs_to_team,
)
from ghost.auth.session import Session, SessionStorage
from ghost.auth.strategies import SignatureAuth, SignerAuth, StrategyName

__all__ = [
    "AuthContext",
    "AuthResult",
    "Session",
    "SessionStorage",
    "SignatureAuth",
    "SignerAuth",
    "StrategyName",
    "require_author_signer",
    "require_can_cast_as_author",
    "require_user_belongs_to_team",
]
