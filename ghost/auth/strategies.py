"""
Authentication strategies.

Two ways to prove control of a Farcaster account:

- SignatureAuth ("farcaster"): a Sign In With Farcaster message, its
  signature and nonce, checked by the sign-in verification service.
- SignerAuth ("neynar"): a Neynar managed signer the user approved,
  checked against the account id it is bound to.

Each strategy turns request credentials into a normalized `Identity`
(or raises an `AuthError`) and carries the resolver that maps that
identity to a local `User`. `AuthContext` picks the strategy from the
route, never from the credentials.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Mapping, Protocol

from ghost.core.errors import (
    AccountNotFound,
    InvalidCredentials,
    InvalidSignature,
    MissingCredential,
)
from ghost.core.models import Identity, User
from ghost.core.utils import normalize_fid
from ghost.integrations.farcaster import SignInVerifier
from ghost.integrations.neynar import SocialGraph

logger = logging.getLogger(__name__)

IdentityResolver = Callable[[Identity], Awaitable[User]]


class StrategyName(str, Enum):
    FARCASTER = "farcaster"  # signed sign-in message
    NEYNAR = "neynar"  # delegated signer


class Strategy(Protocol):
    name: StrategyName
    resolve: IdentityResolver
    
    async def verify(self, credentials: Mapping[str, str]) -> Identity:
        ...


@dataclass
class SignatureAuth:
    """Sign In With Farcaster message + signature + nonce."""
    
    verifier: SignInVerifier
    domain: str
    resolve: IdentityResolver
    name: StrategyName = StrategyName.FARCASTER
    
    async def verify(self, credentials: Mapping[str, str]) -> Identity:
        message = credentials.get("message")
        signature = credentials.get("signature")
        nonce = credentials.get("nonce")
        
        if not message or not signature or not nonce:
            raise MissingCredential("Missing message, signature or nonce")
        
        result = await self.verifier.verify_sign_in_message(
            message=message,
            signature=signature,
            domain=self.domain,
            nonce=nonce,
        )
        if not result.success or result.fid is None:
            raise InvalidSignature("Invalid signature", detail=result.error)
        
        return Identity(
            fid=normalize_fid(result.fid),
            username=credentials.get("username") or None,
            avatar_url=credentials.get("pfpUrl") or None,
        )


@dataclass
class SignerAuth:
    """Neynar managed signer approved by the account it claims to be."""
    
    social_graph: SocialGraph
    resolve: IdentityResolver
    name: StrategyName = StrategyName.NEYNAR
    
    async def verify(self, credentials: Mapping[str, str]) -> Identity:
        signer_uuid = credentials.get("signerUuid")
        claimed = credentials.get("fid")
        
        if not signer_uuid or not claimed:
            raise MissingCredential("Missing signer uuid or fid")
        
        status = await self.social_graph.lookup_signer(signer_uuid)
        
        # Compare canonical integers so 123, "123" and "0123" agree and
        # "123abc" or a missing bound fid never does.
        bound = _fid_or_none(status.fid)
        if status.status != "approved" or bound is None or bound != _fid_or_none(claimed):
            raise InvalidCredentials("Credentials are invalid. Sign in again.")
        
        try:
            profiles = await self.social_graph.fetch_bulk_users([int(bound)])
        except Exception as e:
            logger.warning(f"Profile lookup for fid {bound} failed: {e}")
            profiles = []
        
        if not profiles:
            raise AccountNotFound(f"User with fid {bound} not found")
        
        profile = profiles[0]
        return Identity(
            fid=bound,
            username=profile.username,
            avatar_url=profile.pfp_url,
            signer_uuid=signer_uuid,
        )


def _fid_or_none(value: object) -> str | None:
    try:
        return normalize_fid(value)
    except ValueError:
        return None
