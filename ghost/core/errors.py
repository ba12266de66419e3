"""
Error taxonomy.

Every failure the auth chain can produce has a kind. Route handlers never
build HTTP errors themselves; `handles_outcomes` maps these to responses.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"  # required param absent
    INVALID_SIGNATURE = "invalid_signature"  # sign-in message rejected
    INVALID_CREDENTIALS = "invalid_credentials"  # signer not approved / fid mismatch
    ACCOUNT_NOT_FOUND = "account_not_found"  # verified but no profile
    STORE_FAILURE = "store_failure"  # identity resolution callback failed
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    UNEXPECTED = "unexpected"


class GhostError(Exception):
    """Base for all expected application errors."""
    
    kind: ErrorKind = ErrorKind.VALIDATION
    status_code: int = 400
    
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(GhostError):
    """Authentication failed. Raised by strategies, caught by AuthContext."""
    
    status_code = 401


class MissingCredential(AuthError):
    kind = ErrorKind.MISSING_CREDENTIAL


class InvalidSignature(AuthError):
    kind = ErrorKind.INVALID_SIGNATURE
    
    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.detail = detail


class InvalidCredentials(AuthError):
    kind = ErrorKind.INVALID_CREDENTIALS


class AccountNotFound(AuthError):
    kind = ErrorKind.ACCOUNT_NOT_FOUND


class StoreFailure(AuthError):
    kind = ErrorKind.STORE_FAILURE


class UnexpectedAuthError(AuthError):
    """A verification service blew up. Details go to Sentry, not to the caller."""
    
    kind = ErrorKind.UNEXPECTED
    status_code = 500


class Forbidden(GhostError):
    kind = ErrorKind.FORBIDDEN
    status_code = 403
    
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class NotFound(GhostError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class ValidationFailed(GhostError):
    kind = ErrorKind.VALIDATION
    status_code = 400
