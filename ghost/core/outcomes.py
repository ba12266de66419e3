"""
Request outcomes.

Handlers return one of three outcomes:

    Ok(data)            -> JSON body
    Redirect(location)  -> 302 with Location
    Fail(kind, message) -> JSON error body

Code deep in a request (session checks, authorization) that needs to stop
the request raises `Abort(outcome)`. The `handles_outcomes` decorator on
each route is the single place where outcomes, aborts and `GhostError`s
are turned into HTTP responses. Anything else is reported to Sentry with
the signed-in user attached and answered with a generic 500.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, Union

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, RedirectResponse, Response
from starlette.requests import Request

from ghost.core.errors import ErrorKind, Forbidden, GhostError
from ghost.integrations import sentry

logger = logging.getLogger(__name__)

FORBIDDEN_PATH = "/403"
UNEXPECTED_MESSAGE = "Something went wrong, try again"


@dataclass
class Ok:
    data: Any = None
    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class Redirect:
    location: str
    status: int = 302
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class Fail:
    kind: ErrorKind
    message: str
    status: int = 400
    headers: dict[str, str] = field(default_factory=dict)


Outcome = Union[Ok, Redirect, Fail]


class Abort(Exception):
    """Stop the current request and answer with `outcome` instead."""
    
    def __init__(self, outcome: Outcome):
        super().__init__(outcome)
        self.outcome = outcome


def outcome_for_error(error: GhostError) -> Outcome:
    """Authorization failures become a redirect to the 403 page, the rest a JSON error."""
    if isinstance(error, Forbidden):
        return Redirect(FORBIDDEN_PATH)
    return Fail(kind=error.kind, message=error.message, status=error.status_code)


def render(outcome: Outcome) -> Response:
    """Turn an outcome into a Starlette response."""
    if isinstance(outcome, Redirect):
        return RedirectResponse(outcome.location, status_code=outcome.status, headers=outcome.headers)
    if isinstance(outcome, Fail):
        return JSONResponse(
            {"error": outcome.kind.value, "message": outcome.message},
            status_code=outcome.status,
            headers=outcome.headers,
        )
    return JSONResponse(jsonable_encoder(outcome.data), status_code=outcome.status, headers=outcome.headers)


def handles_outcomes(func: Callable) -> Callable:
    """
    Route decorator interpreting outcomes, aborts and application errors.
    
    Usage:
        @router.get("/~")
        @handles_outcomes
        async def teams(request: Request):
            user = await ctx.require_user(request)   # may Abort
            return Ok({"user": user})
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            result = await func(*args, **kwargs)
        except Abort as abort:
            result = abort.outcome
        except GhostError as e:
            logger.info(f"{func.__name__} failed: {e.kind.value}: {e.message}")
            result = outcome_for_error(e)
        except Exception as e:
            sentry.capture_exception(e, route=func.__name__, **_user_context(args, kwargs))
            result = Fail(ErrorKind.UNEXPECTED, UNEXPECTED_MESSAGE, status=500)

        if isinstance(result, Response):
            return result
        if not isinstance(result, (Ok, Redirect, Fail)):
            result = Ok(result)
        return render(result)
    
    return wrapper


def _user_context(args: tuple, kwargs: dict) -> dict[str, Any]:
    """Identity fields for error reports, from the user AuthContext put on request.state."""
    for value in (*args, *kwargs.values()):
        if isinstance(value, Request):
            user = getattr(value.state, "user", None)
            if user is not None:
                return {"user_id": user.id, "username": user.username}
            return {"path": value.url.path}
    return {}
