"""Authentication helpers and FastAPI security dependencies.

Callers identify themselves with a token in the `accesstoken` header
(not the standard Authorization scheme). `get_current_user` turns that
header into a `User`; `get_owner_check` gives owner-scoped routes a
callable that enforces `settings.ENFORCE_OWNERSHIP`.
"""

from typing import Callable, Optional

from fastapi import Depends, Security
from fastapi.security import APIKeyHeader
from sqlmodel import Session

from . import models
from .config import settings
from .database import get_session
from .errors import Forbidden
from .security import PasswordHasher, TokenCodec
from .services import AuthService

access_token_header = APIKeyHeader(name="accesstoken", auto_error=False)

_token_codec = TokenCodec(settings.JWT_SECRET, settings.JWT_ALGORITHM, settings.JWT_EXPIRE_MINUTES)
_password_hasher = PasswordHasher(settings.PASSWORD_SCHEME)


def get_token_codec() -> TokenCodec:
    return _token_codec


def get_password_hasher() -> PasswordHasher:
    return _password_hasher


def get_auth_service(
    db: Session = Depends(get_session),
    codec: TokenCodec = Depends(get_token_codec),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> AuthService:
    return AuthService(db, codec, hasher)


def get_current_user(
    token: Optional[str] = Security(access_token_header),
    auth: AuthService = Depends(get_auth_service),
) -> models.User:
    """FastAPI dependency that returns the authenticated user.

    Raises `Unauthorized` (401) for a missing or invalid token and
    `NotFound` (404) when the token's user no longer exists.
    """
    return auth.resolve_user(token)


def get_owner_check(
    token: Optional[str] = Security(access_token_header),
    auth: AuthService = Depends(get_auth_service),
) -> Callable[[int], None]:
    """Return `check(owner_id)` for routes that mutate a user's data.

    With ownership enforcement off every call passes, so any client may
    act on any user's rows. With it on, the caller must present a valid
    token for the owning user or the check raises `Forbidden`.
    """
    def check(owner_id: int) -> None:
        if not settings.ENFORCE_OWNERSHIP:
            return
        caller = auth.resolve_user(token)
        if caller.id != owner_id:
            raise Forbidden()

    return check
