"""
Responses that carry a toast message.

Both helpers flash the message into the session and attach the
Set-Cookie header; without it the toast never reaches the browser.
"""

from __future__ import annotations

from typing import Any

from starlette.requests import Request

from ghost.auth.context import AuthContext
from ghost.auth.session import Session
from ghost.core.errors import ErrorKind
from ghost.core.models import FlashType
from ghost.core.outcomes import Fail, Ok


def success_response(
    auth: AuthContext,
    request: Request,
    message: str,
    data: Any = None,
    status: int = 200,
    session: Session | None = None,
) -> Ok:
    session = session or auth.get_session(request)
    session.flash_message(FlashType.SUCCESS, message)
    return Ok(
        {"message": message, "data": data},
        status=status,
        headers={"Set-Cookie": auth.commit_session(session)},
    )


def error_response(
    auth: AuthContext,
    request: Request,
    message: str,
    status: int = 400,
    kind: ErrorKind = ErrorKind.VALIDATION,
) -> Fail:
    session = auth.get_session(request)
    session.flash_message(FlashType.ERROR, message)
    return Fail(
        kind=kind,
        message=message,
        status=status,
        headers={"Set-Cookie": auth.commit_session(session)},
    )
