"""
Auth context - built once at startup, passed to every request handler.

Holds the session storage, the strategy registry and the user store.
It is the only way handlers authenticate a request, read the current
user or end a session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from starlette.requests import Request

from ghost.auth.session import FLASH_KEY, USER_KEY, Session, SessionStorage
from ghost.auth.strategies import SignatureAuth, SignerAuth, Strategy, StrategyName
from ghost.config import Settings
from ghost.core.errors import AuthError, NotFound, StoreFailure, UnexpectedAuthError
from ghost.core.models import FlashType, Identity, User
from ghost.core.outcomes import Abort, Redirect
from ghost.integrations import sentry
from ghost.integrations.farcaster import SignInVerifier
from ghost.integrations.neynar import SocialGraph
from ghost.storage.repository import GhostRepository

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    """A successful sign in: the user and the cookie that carries it."""
    
    user: User
    session: Session
    set_cookie: str


class AuthContext:
    """
    Authentication entry point.
    
    Usage in routes:
        result = await ctx.authenticate("farcaster", request)
        user = await ctx.require_user(request)        # aborts to "/" if signed out
        user = await ctx.is_authenticated(request)    # None if signed out
    """
    
    def __init__(
        self,
        settings: Settings,
        sessions: SessionStorage,
        repository: GhostRepository,
        strategies: list[Strategy],
    ):
        self.settings = settings
        self.sessions = sessions
        self.repository = repository
        self.strategies: dict[StrategyName, Strategy] = {s.name: s for s in strategies}
    
    @classmethod
    def create(
        cls,
        settings: Settings,
        repository: GhostRepository,
        sign_in_verifier: SignInVerifier,
        social_graph: SocialGraph,
    ) -> AuthContext:
        """Wire both strategies to the repository's identity resolvers."""
        return cls(
            settings=settings,
            sessions=SessionStorage.from_settings(settings),
            repository=repository,
            strategies=[
                SignatureAuth(
                    verifier=sign_in_verifier,
                    domain=settings.sign_in_domain,
                    resolve=repository.resolve_signature_identity,
                ),
                SignerAuth(
                    social_graph=social_graph,
                    resolve=repository.resolve_signer_identity,
                ),
            ],
        )
    
    # =========================================================================
    # Sessions
    # =========================================================================
    
    def get_session(self, request: Request) -> Session:
        return self.sessions.get_session(request.headers.get("cookie"))
    
    def commit_session(self, session: Session) -> str:
        return self.sessions.commit_session(session)
    
    def destroy_session(self, session: Session) -> str:
        return self.sessions.destroy_session(session)
    
    # =========================================================================
    # Authentication
    # =========================================================================
    
    async def authenticate(
        self,
        strategy: StrategyName | str,
        request: Request,
        *,
        failure_redirect: str | None = None,
    ) -> AuthResult:
        """
        Run exactly one strategy and store the resulting user in the session.
        
        Failures raise the strategy's AuthError unless `failure_redirect`
        is given, in which case the request is aborted with a redirect
        carrying the error as a flash message.
        """
        selected = self._strategy(strategy)
        session = self.get_session(request)
        
        try:
            user = await self._run(selected, request.query_params)
        except AuthError as e:
            logger.warning(f"{selected.name.value} sign in failed: {e.kind.value}: {e.message}")
            if failure_redirect is None:
                raise
            session.unset(USER_KEY)
            session.flash_message(FlashType.ERROR, e.message)
            raise Abort(Redirect(
                failure_redirect,
                headers={"Set-Cookie": self.commit_session(session)},
            ))
        
        session.set(USER_KEY, user.id)
        # An error toast left by an earlier failed attempt no longer applies
        pending = session.pop_flash_message()
        if pending and pending.type != FlashType.ERROR:
            session.flash(FLASH_KEY, pending.model_dump(mode="json"))
        logger.info(f"User {user.id} signed in with {selected.name.value}")
        return AuthResult(user=user, session=session, set_cookie=self.commit_session(session))
    
    async def _run(self, strategy: Strategy, credentials: Mapping[str, str]) -> User:
        try:
            identity = await strategy.verify(credentials)
        except AuthError:
            raise
        except Exception as e:
            sentry.capture_exception(e, strategy=strategy.name.value, fid=credentials.get("fid"))
            raise UnexpectedAuthError("Could not verify credentials, try again") from e
        
        return await self._resolve(strategy, identity)
    
    async def _resolve(self, strategy: Strategy, identity: Identity) -> User:
        try:
            return await strategy.resolve(identity)
        except Exception as e:
            sentry.capture_exception(
                e,
                fid=identity.fid,
                username=identity.username,
                pfp_url=identity.avatar_url,
            )
            raise StoreFailure(str(e) or type(e).__name__) from e
    
    def _strategy(self, name: StrategyName | str) -> Strategy:
        try:
            return self.strategies[StrategyName(name)]
        except (ValueError, KeyError):
            raise NotFound(f"Unknown sign in method: {name}") from None
    
    # =========================================================================
    # Current user
    # =========================================================================
    
    async def is_authenticated(
        self,
        request: Request,
        failure_redirect: str | None = None,
    ) -> User | None:
        """
        The signed-in user, or None.
        
        With `failure_redirect`, a missing or stale session aborts the
        request with a redirect instead of returning None.
        """
        user_id = self.get_session(request).user_id
        user = await self.repository.get_user(user_id) if user_id else None
        
        if user is None and failure_redirect is not None:
            raise Abort(Redirect(failure_redirect))
        # Picked up by handles_outcomes when reporting unexpected errors
        request.state.user = user
        return user
    
    async def require_user(self, request: Request) -> User:
        """Signed-in user with fresh store state, or abort to the landing page."""
        user = await self.is_authenticated(request, failure_redirect="/")
        if self.settings.is_production:
            sentry.set_user(user.id, username=user.username)
        return user
    
    def logout(self, request: Request, redirect_to: str = "/") -> Redirect:
        session = self.get_session(request)
        return Redirect(redirect_to, headers={"Set-Cookie": self.destroy_session(session)})
