"""Passwords, JWTs and the authentication dependencies.

Access tokens carry ``sub``, ``email`` and ``roles`` for clients; the
server itself always re-reads roles from the profile row. Every token
gets a ``jti`` so logout can revoke it through the Redis blacklist.
"""

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.database import get_db
from app.core.exceptions import (
    AuthenticationError,
    InsufficientRoleError,
    InvalidTokenError,
    TokenExpiredError,
)
from app.core.logging import bind_context, get_logger
from app.core.redis import get_token_blacklist

if TYPE_CHECKING:
    from app.modules.auth.models import Profile

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

ACCESS = "access"
REFRESH = "refresh"

# bcrypt ignores everything past 72 bytes and newer releases reject it
_BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    secret = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(secret, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    secret = plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(secret, hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def _issue(claims: dict[str, Any], token_type: str, lifetime: timedelta) -> str:
    issued_at = datetime.now(UTC)
    payload = {
        **claims,
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "jti": uuid4().hex,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(claims: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    lifetime = expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    return _issue(claims, ACCESS, lifetime)


def create_refresh_token(claims: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    lifetime = expires_delta or timedelta(days=settings.jwt_refresh_token_expire_days)
    return _issue(claims, REFRESH, lifetime)


def decode_token(token: str) -> dict[str, Any]:
    """Check signature and expiry; returns the raw claims."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise InvalidTokenError()


class TokenPayload:
    """Typed view over decoded claims."""

    def __init__(self, claims: dict[str, Any]) -> None:
        try:
            self.user_id = UUID(claims["sub"])
        except (KeyError, ValueError):
            raise InvalidTokenError("Token subject is missing")
        self.email: str | None = claims.get("email")
        self.roles: list[str] = claims.get("roles", [])
        self.token_type: str = claims.get("type", ACCESS)
        self.jti: str | None = claims.get("jti")
        self.exp = datetime.fromtimestamp(claims["exp"], tz=UTC)

    @property
    def expires_in_seconds(self) -> int:
        return max(0, int((self.exp - datetime.now(UTC)).total_seconds()))


async def verify_token(raw_token: str, expected_type: str) -> TokenPayload:
    """Decode a token of the given type and reject it if it was revoked."""
    claims = decode_token(raw_token)
    if claims.get("type") != expected_type:
        raise InvalidTokenError("Invalid token type")

    token = TokenPayload(claims)
    if token.jti:
        blacklist = await get_token_blacklist()
        if blacklist is not None and await blacklist.is_blacklisted(token.jti):
            logger.warning("revoked_token_used", jti=token.jti[:8], token_type=expected_type)
            raise InvalidTokenError("Token has been revoked")
    return token


async def get_current_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> TokenPayload:
    if credentials is None:
        raise AuthenticationError("Authorization header required")
    return await verify_token(credentials.credentials, ACCESS)


async def _load_profile(db: AsyncSession, token: TokenPayload) -> "Profile | None":
    from app.modules.auth.models import Profile

    result = await db.execute(select(Profile).where(Profile.id == token.user_id))
    profile = result.scalar_one_or_none()
    if profile is not None:
        bind_context(user_id=str(profile.id))
    return profile


async def get_current_user(
    token: TokenPayload = Depends(get_current_token),
    db: AsyncSession = Depends(get_db),
) -> "Profile":
    profile = await _load_profile(db, token)
    if profile is None:
        raise AuthenticationError("User not found")
    return profile


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> "Profile | None":
    """Anonymous callers get ``None``; a bad token is still rejected."""
    if credentials is None:
        return None
    token = await verify_token(credentials.credentials, ACCESS)
    return await _load_profile(db, token)


class RoleChecker:
    """Dependency passing only profiles that hold one of ``allowed_roles``.

    ``Depends(RoleChecker("Editor", "Admin"))`` resolves to the profile.
    """

    def __init__(self, *allowed_roles: str) -> None:
        self.allowed_roles = allowed_roles

    async def __call__(self, user: "Profile" = Depends(get_current_user)) -> "Profile":
        if not user.has_any_role(*self.allowed_roles):
            raise InsufficientRoleError(required_roles=list(self.allowed_roles))
        return user


require_editor = RoleChecker("Editor", "Admin")
require_admin = RoleChecker("Admin")
