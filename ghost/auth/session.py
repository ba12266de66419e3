# =============================================================================
# Cookie Session Storage
# =============================================================================
#
# The whole session lives in the `_session` cookie:
#
#   cookie value = Fernet( JWT{ data, iat, exp } )
#
# The JWT is signed with the current secret and checked against every
# configured secret; the Fernet layer is keyed from the same secret list
# (MultiFernet), so adding a new secret at the front of SESSION_SECRETS
# rotates both without logging anyone out.
#
# =============================================================================

from __future__ import annotations

import base64
import hashlib
import logging
from datetime import timedelta
from http.cookies import SimpleCookie
from typing import Any

import jwt
from cryptography.fernet import Fernet, InvalidToken, MultiFernet
from starlette.requests import cookie_parser

from ghost.config import Settings
from ghost.core.models import FlashMessage, FlashType
from ghost.core.utils import utc_now

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
USER_KEY = "user_id"
FLASH_KEY = "message"
_FLASH_PREFIX = "__flash_"


class Session:
    """
    Mutable session data for one request.
    
    Changes only reach the browser once the Set-Cookie header from
    `SessionStorage.commit_session` is attached to the response.
    """
    
    def __init__(self, data: dict[str, Any] | None = None):
        self.data: dict[str, Any] = dict(data or {})
    
    @property
    def user_id(self) -> str | None:
        return self.data.get(USER_KEY)
    
    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)
    
    def set(self, key: str, value: Any) -> None:
        self.data[key] = value
    
    def unset(self, key: str) -> None:
        self.data.pop(key, None)
    
    def has(self, key: str) -> bool:
        return key in self.data
    
    # Flash values are read-once: get_flash returns and removes them.
    
    def flash(self, key: str, value: Any) -> None:
        self.data[f"{_FLASH_PREFIX}{key}"] = value
    
    def get_flash(self, key: str) -> Any:
        return self.data.pop(f"{_FLASH_PREFIX}{key}", None)
    
    def flash_message(self, type: FlashType, message: str) -> FlashMessage:
        """Queue a toast message for the next page render."""
        flash = FlashMessage(type=type, message=message)
        self.flash(FLASH_KEY, flash.model_dump(mode="json"))
        return flash
    
    def pop_flash_message(self) -> FlashMessage | None:
        value = self.get_flash(FLASH_KEY)
        return FlashMessage.model_validate(value) if value else None


class SessionStorage:
    """Encodes sessions into signed, encrypted cookies and back."""
    
    def __init__(
        self,
        secrets: list[str],
        cookie_name: str = "_session",
        max_age_seconds: int = 60 * 60 * 24 * 30,
        secure: bool = False,
    ):
        if not secrets:
            raise ValueError("At least one session secret is required")
        self.secrets = list(secrets)
        self.cookie_name = cookie_name
        self.max_age_seconds = max_age_seconds
        self.secure = secure
        self._fernet = MultiFernet([Fernet(_fernet_key(s)) for s in self.secrets])
    
    @classmethod
    def from_settings(cls, settings: Settings) -> SessionStorage:
        return cls(
            secrets=settings.session_secrets_list,
            cookie_name=settings.session_cookie_name,
            max_age_seconds=settings.session_max_age_seconds,
            secure=settings.session_cookie_secure,
        )
    
    # =========================================================================
    # Public API
    # =========================================================================
    
    def get_session(self, cookie_header: str | None) -> Session:
        """Read the session from a Cookie header. Bad or missing cookies give an empty session."""
        if not cookie_header:
            return Session()
        value = cookie_parser(cookie_header).get(self.cookie_name)
        if not value:
            return Session()
        return Session(self.decode(value))
    
    def commit_session(self, session: Session) -> str:
        """Serialize the session, returning a Set-Cookie header value."""
        return self._set_cookie(self.encode(session.data), self.max_age_seconds)
    
    def destroy_session(self, session: Session) -> str:
        """Clear the session, returning a Set-Cookie header value that expires the cookie."""
        session.data.clear()
        return self._set_cookie("", 0, expires="Thu, 01 Jan 1970 00:00:00 GMT")
    
    # =========================================================================
    # Codec
    # =========================================================================
    
    def encode(self, data: dict[str, Any]) -> str:
        now = utc_now()
        token = jwt.encode(
            {
                "data": data,
                "iat": now,
                "exp": now + timedelta(seconds=self.max_age_seconds),
            },
            self.secrets[0],
            algorithm=JWT_ALGORITHM,
        )
        # Padding is dropped so the value never needs cookie quoting
        return self._fernet.encrypt(token.encode()).decode().rstrip("=")
    
    def decode(self, value: str) -> dict[str, Any]:
        padded = value + "=" * (-len(value) % 4)
        try:
            token = self._fernet.decrypt(padded.encode()).decode()
        except (InvalidToken, ValueError):
            logger.info("Discarding session cookie that failed to decrypt")
            return {}
        
        for secret in self.secrets:
            try:
                payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
            except jwt.ExpiredSignatureError:
                logger.info("Discarding expired session cookie")
                return {}
            except jwt.InvalidTokenError:
                continue
            data = payload.get("data")
            return data if isinstance(data, dict) else {}
        
        logger.info("Discarding session cookie with unknown signature")
        return {}
    
    def _set_cookie(self, value: str, max_age: int, expires: str | None = None) -> str:
        cookie = SimpleCookie()
        cookie[self.cookie_name] = value
        morsel = cookie[self.cookie_name]
        morsel["path"] = "/"
        morsel["httponly"] = True
        morsel["samesite"] = "Lax"
        morsel["max-age"] = max_age
        if expires:
            morsel["expires"] = expires
        if self.secure:
            morsel["secure"] = True
        return morsel.OutputString()


def _fernet_key(secret: str) -> bytes:
    return base64.urlsafe_b64encode(hashlib.sha256(secret.encode()).digest())
