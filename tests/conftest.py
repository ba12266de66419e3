"""
Shared fixtures and fake collaborators.

The fakes implement the integration ABCs and count their calls so tests
can assert which external services were (not) contacted.
"""

from urllib.parse import urlencode

import pytest
from starlette.requests import Request

from ghost.auth.context import AuthContext
from ghost.config import Settings
from ghost.integrations.farcaster import SignInResult, SignInVerifier
from ghost.integrations.neynar import (
    Channel,
    NeynarError,
    Profile,
    PublishedCast,
    SignerStatus,
    SocialGraph,
)
from ghost.storage import GhostRepository, create_local_storage


# =============================================================================
# Fakes
# =============================================================================


class FakeSignInVerifier(SignInVerifier):
    
    def __init__(self, result: SignInResult | None = None):
        self.result = result or SignInResult(success=True, fid=1001)
        self.calls: list[dict] = []
    
    async def verify_sign_in_message(self, message, signature, domain, nonce):
        self.calls.append({
            "message": message,
            "signature": signature,
            "domain": domain,
            "nonce": nonce,
        })
        return self.result


class FakeSocialGraph(SocialGraph):
    
    def __init__(self):
        self.signers: dict[str, SignerStatus] = {}
        self.profiles: dict[int, Profile] = {}
        self.published: list[dict] = []
        self.calls: dict[str, int] = {}
        self.fail_bulk_users = False
        self.missing_channels: set[str] = set()
    
    def _count(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1
    
    def add_profile(self, fid: int, username: str, pfp_url: str | None = None) -> Profile:
        profile = Profile(fid=fid, username=username, pfp_url=pfp_url)
        self.profiles[fid] = profile
        return profile
    
    def add_signer(self, signer_uuid: str, fid, status: str = "approved") -> None:
        self.signers[signer_uuid] = SignerStatus(signer_uuid=signer_uuid, status=status, fid=fid)
    
    async def lookup_signer(self, signer_uuid):
        self._count("lookup_signer")
        if signer_uuid not in self.signers:
            raise NeynarError(f"Unknown signer {signer_uuid}")
        return self.signers[signer_uuid]
    
    async def fetch_bulk_users(self, fids):
        self._count("fetch_bulk_users")
        if self.fail_bulk_users:
            raise NeynarError("upstream unavailable")
        return [self.profiles[f] for f in fids if f in self.profiles]
    
    async def lookup_user_by_username(self, username):
        self._count("lookup_user_by_username")
        for profile in self.profiles.values():
            if profile.username == username:
                return profile
        raise NeynarError(f"User {username} not found")
    
    async def publish_cast(self, signer_uuid, text, channel_id=None, embeds=None):
        self._count("publish_cast")
        self.published.append({
            "signer_uuid": signer_uuid,
            "text": text,
            "channel_id": channel_id,
            "embeds": embeds or [],
        })
        return PublishedCast(hash=f"0x{len(self.published):040x}")
    
    async def lookup_channel(self, channel_id):
        self._count("lookup_channel")
        if channel_id in self.missing_channels:
            raise NeynarError(f"Channel {channel_id} not found")
        return Channel(id=channel_id, name=channel_id.title())
    
    async def fetch_cast_reactions(self, cast_hash):
        self._count("fetch_cast_reactions")
        return [{"hash": cast_hash, "reaction_type": "like"}]
    
    async def fetch_user_followers(self, fid):
        self._count("fetch_user_followers")
        return list(self.profiles.values())


# =============================================================================
# Helpers
# =============================================================================


def make_request(query: dict | None = None, cookie: str | None = None, path: str = "/") -> Request:
    """A bare Starlette request with query params and an optional Cookie header."""
    headers = [(b"cookie", cookie.encode())] if cookie else []
    return Request({
        "type": "http",
        "method": "GET",
        "path": path,
        "query_string": urlencode(query or {}).encode(),
        "headers": headers,
    })


def cookie_from(set_cookie: str) -> str:
    """The "name=value" part of a Set-Cookie header, as a browser would send it back."""
    return set_cookie.split(";", 1)[0]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings():
    return Settings(
        environment="test",
        dev_url="http://localhost:3000",
        session_secrets="test-secret",
        sentry_dsn="",
    )


@pytest.fixture
def storage():
    return create_local_storage()


@pytest.fixture
def repository(storage):
    return GhostRepository(storage.metadata)


@pytest.fixture
def sign_in_verifier():
    return FakeSignInVerifier()


@pytest.fixture
def social_graph():
    return FakeSocialGraph()


@pytest.fixture
def auth(settings, repository, sign_in_verifier, social_graph):
    return AuthContext.create(settings, repository, sign_in_verifier, social_graph)
