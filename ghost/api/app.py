"""
FastAPI application for Ghost.

Routes are thin: they authenticate through AuthContext, authorize
through the gate and hand the rest to TeamService. Every route is
wrapped in `handles_outcomes`, which turns returned outcomes, aborts
and application errors into responses.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request

from ghost.api.forms import (
    AddTeammateForm,
    CastForm,
    ConnectParams,
    CreateTeamForm,
    IntentForm,
    parse_form,
)
from ghost.api.responses import error_response, success_response
from ghost.auth.context import AuthContext
from ghost.auth.gate import require_user_belongs_to_team
from ghost.config import Settings, get_settings
from ghost.core.errors import ErrorKind, Forbidden, NotFound, ValidationFailed
from ghost.core.models import FlashType
from ghost.core.outcomes import Fail, Ok, Redirect, handles_outcomes
from ghost.integrations.farcaster import SignInVerifier
from ghost.integrations.neynar import NeynarError, SocialGraph
from ghost.integrations.sentry import init_sentry
from ghost.services import SocialService, TeamService
from ghost.storage import GhostRepository, StorageProvider, create_local_storage

logger = logging.getLogger(__name__)


# =============================================================================
# Dependencies
# =============================================================================


def get_auth(request: Request) -> AuthContext:
    return request.app.state.auth


def get_teams(request: Request) -> TeamService:
    return request.app.state.teams


def get_social(request: Request) -> SocialService:
    return request.app.state.social


# =============================================================================
# Routes
# =============================================================================


router = APIRouter()


@router.get("/")
@handles_outcomes
async def index(request: Request, auth: AuthContext = Depends(get_auth)):
    """Landing page data: current user (if any) and the pending toast."""
    user = await auth.is_authenticated(request)
    session = auth.get_session(request)
    flash = session.pop_flash_message()
    
    headers = {"Set-Cookie": auth.commit_session(session)} if flash else {}
    return Ok(
        {"user": user, "env": auth.settings.shared_env(), "flash": flash},
        headers=headers,
    )


@router.get("/auth/{strategy}")
@handles_outcomes
async def sign_in(strategy: str, request: Request, auth: AuthContext = Depends(get_auth)):
    result = await auth.authenticate(strategy, request, failure_redirect="/")
    return Redirect("/~", headers={"Set-Cookie": result.set_cookie})


@router.post("/logout")
@handles_outcomes
async def logout(request: Request, auth: AuthContext = Depends(get_auth)):
    return auth.logout(request)


@router.get("/403")
@handles_outcomes
async def forbidden():
    return Fail(ErrorKind.FORBIDDEN, "You don't have access to that", status=403)


@router.get("/~")
@handles_outcomes
async def list_teams(request: Request, auth: AuthContext = Depends(get_auth)):
    user = await auth.require_user(request)
    teams = await auth.repository.list_teams_for_user(user.id)
    return Ok({"user": user, "teams": teams, "env": auth.settings.shared_env()})


@router.post("/~")
@handles_outcomes
async def create_team(
    request: Request,
    auth: AuthContext = Depends(get_auth),
    teams: TeamService = Depends(get_teams),
):
    user = await auth.require_user(request)
    try:
        form = parse_form(CreateTeamForm, await request.form())
    except ValidationFailed as e:
        return error_response(auth, request, e.message)
    
    team = await teams.create_team(user, form.name)
    return Redirect(f"/~/teams/{team.id}")


@router.get("/~/teams/{team_id}")
@handles_outcomes
async def show_team(team_id: str, request: Request, auth: AuthContext = Depends(get_auth)):
    user = await auth.require_user(request)
    team = await require_user_belongs_to_team(auth.repository, user.id, team_id)
    return Ok({"user": user, "team": team, "env": auth.settings.shared_env()})


@router.post("/~/teams/{team_id}")
@handles_outcomes
async def team_action(
    team_id: str,
    request: Request,
    auth: AuthContext = Depends(get_auth),
    teams: TeamService = Depends(get_teams),
    social: SocialService = Depends(get_social),
):
    user = await auth.require_user(request)
    team = await require_user_belongs_to_team(auth.repository, user.id, team_id)
    data = await request.form()
    
    try:
        intent = parse_form(IntentForm, data).intent
    except ValidationFailed:
        return error_response(auth, request, "go away")
    
    if intent == "addTeammate":
        try:
            form = parse_form(AddTeammateForm, data)
            added = await teams.add_teammate(team.id, form.username)
        except (ValidationFailed, NotFound) as e:
            return error_response(auth, request, e.message)
        return success_response(auth, request, f"Added @{added.username}", data={"ok": True})
    
    try:
        form = parse_form(CastForm, data)
    except ValidationFailed as e:
        return error_response(auth, request, e.message)
    
    if form.channel_id:
        try:
            await social.get_channel(form.channel_id)
        except NeynarError:
            return error_response(auth, request, f"Channel /{form.channel_id} not found")
    
    cast = await teams.cast(
        user,
        team.id,
        form.author_id,
        form.cast_content,
        channel_id=form.channel_id,
        embeds=form.embeds,
    )
    return success_response(auth, request, "Cast published!", data={"hash": cast.hash})


@router.get("/~/teams/{team_id}/connect")
@handles_outcomes
async def connect_page(team_id: str, request: Request, auth: AuthContext = Depends(get_auth)):
    user = await auth.require_user(request)
    team = await require_user_belongs_to_team(auth.repository, user.id, team_id)
    return Ok({"user": user, "team": team, "env": auth.settings.shared_env()})


@router.get("/api/teams/{team_id}/connect")
@handles_outcomes
async def connect(
    team_id: str,
    request: Request,
    auth: AuthContext = Depends(get_auth),
    teams: TeamService = Depends(get_teams),
):
    """Signer approval callback: the team may now cast as the signed-in user."""
    user = await auth.require_user(request)
    
    try:
        params = parse_form(ConnectParams, request.query_params)
    except ValidationFailed as e:
        logger.warning(f"Invalid connect params: {e.message}")
        raise Forbidden(e.message) from e
    
    await teams.connect(user, team_id, params.signer_uuid, params.fid)
    
    session = auth.get_session(request)
    session.flash_message(FlashType.SUCCESS, f"Connected! Ghostwriters can now cast as @{user.username}")
    return Redirect(f"/~/teams/{team_id}", headers={"Set-Cookie": auth.commit_session(session)})


# =============================================================================
# App Setup
# =============================================================================


def create_app(
    sign_in_verifier: SignInVerifier,
    social_graph: SocialGraph,
    settings: Settings | None = None,
    storage: StorageProvider | None = None,
) -> FastAPI:
    """
    Build the app around its external collaborators.
    
    The AuthContext is created here, once, and shared by every request
    through app.state.
    """
    settings = settings or get_settings()
    storage = storage or create_local_storage()
    repository = GhostRepository(storage.metadata)
    
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if init_sentry(settings):
            logger.info("Sentry error tracking enabled")
        logger.info(f"Ghost starting in {settings.environment} mode")
        yield
        logger.info("Ghost shutting down")
    
    app = FastAPI(
        title="Ghost",
        description="Team based casting on Farcaster",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.storage = storage
    app.state.auth = AuthContext.create(settings, repository, sign_in_verifier, social_graph)
    app.state.teams = TeamService(repository, social_graph)
    app.state.social = SocialService(social_graph, storage.cache, settings.environment)
    app.include_router(router)
    
    return app
