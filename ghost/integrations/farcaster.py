# =============================================================================
# Farcaster Sign-In Verification
# =============================================================================
#
# Sign In With Farcaster produces a SIWE-style message, a signature from the
# account's custody address and a nonce. Checking the signature needs an
# Optimism RPC connection and the on-chain id registry, so the check itself
# lives behind this interface; the app only consumes the result.
#
# =============================================================================

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel


class SignInResult(BaseModel):
    """Result of verifying a sign-in message."""
    success: bool
    fid: int | None = None
    error: str | None = None


class SignInVerifier(ABC):
    """Verifies a signed sign-in message bound to a domain and nonce."""
    
    @abstractmethod
    async def verify_sign_in_message(
        self,
        message: str,
        signature: str,
        domain: str,
        nonce: str,
    ) -> SignInResult:
        pass
