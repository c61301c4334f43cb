"""Authentication service - business logic for auth operations."""

import secrets
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.database import transactional
from app.core.exceptions import (
    AccountBlockedError,
    AlreadyExistsError,
    InvalidCredentialsError,
    InvalidTokenError,
    InvalidVerificationTokenError,
    RateLimitExceededError,
    RegistrationClosedError,
    ValidationError,
)
from app.core.localization import normalize_language
from app.core.logging import get_logger
from app.core.redis import get_token_blacklist
from app.core.security import (
    REFRESH,
    TokenPayload,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
    verify_token,
)
from app.modules.auth.models import Profile, ProfileRole, UserRole
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenPair
from app.modules.notifications.email import EmailService
from app.modules.settings.cache import SettingsCache
from app.modules.settings.models import SettingKey

logger = get_logger(__name__)


def create_tokens(profile: Profile) -> TokenPair:
    """Create access and refresh tokens for a profile."""
    token_data = {
        "sub": str(profile.id),
        "email": profile.email,
        "roles": profile.role_names,
    }

    return TokenPair(
        access_token=create_access_token(token_data),
        refresh_token=create_refresh_token({"sub": str(profile.id)}),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


def email_domain(email: str) -> str:
    return email.rsplit("@", 1)[-1].lower()


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession, settings_cache: SettingsCache | None = None) -> None:
        self.db = db
        self.settings_cache = settings_cache

    async def _get_by_email(self, email: str) -> Profile | None:
        result = await self.db.execute(
            select(Profile).where(func.lower(Profile.email) == email.lower())
        )
        return result.scalar_one_or_none()

    # ========================================================================
    # Registration
    # ========================================================================

    async def _check_registration_allowed(self, data: RegisterRequest, ip_address: str | None) -> None:
        cache = self.settings_cache
        if cache is None:
            return

        if not await cache.get_bool(self.db, SettingKey.REGISTRATION_ENABLED, default=True):
            raise RegistrationClosedError()

        blocked_domains = {
            d.lower() for d in await cache.get_list(self.db, SettingKey.BLOCKED_EMAIL_DOMAINS)
        }
        if email_domain(data.email) in blocked_domains:
            raise ValidationError(
                "Registration with this email domain is not allowed",
                errors=[{"field": "email", "message": "Email domain is blocked"}],
            )

        if not ip_address:
            return

        now = datetime.now(UTC)
        limits = [
            (
                await cache.get_int(self.db, SettingKey.RATE_LIMIT_REGISTRATIONS_PER_HOUR, default=3),
                timedelta(hours=1),
            ),
            (
                await cache.get_int(self.db, SettingKey.RATE_LIMIT_REGISTRATIONS_PER_DAY, default=10),
                timedelta(days=1),
            ),
        ]
        for limit, window in limits:
            if limit <= 0:
                continue
            count = (
                await self.db.execute(
                    select(func.count())
                    .select_from(Profile)
                    .where(Profile.registration_ip == ip_address)
                    .where(Profile.created_at >= now - window)
                )
            ).scalar() or 0
            if count >= limit:
                logger.warning("registration_rate_limited", ip_address=ip_address, limit=limit)
                raise RateLimitExceededError(
                    "Too many registrations from this address",
                    retry_after=int(window.total_seconds()),
                )

    async def _username_taken(self, username: str) -> bool:
        result = await self.db.execute(
            select(Profile.id).where(func.lower(Profile.username) == username.lower())
        )
        return result.scalar_one_or_none() is not None

    async def register(self, data: RegisterRequest, ip_address: str | None = None) -> Profile:
        """Create a Viewer profile and send an email verification link.

        A filled ``website`` honeypot records a blocked placeholder profile
        and fails with a generic error.
        """
        if data.website and data.website.strip():
            await self._trap_bot(data, ip_address)
            raise ValidationError("Registration failed. Please try again later.")
        return await self._create_account(data, ip_address)

    @transactional
    async def _trap_bot(self, data: RegisterRequest, ip_address: str | None) -> None:
        username = f"{data.username[:46]}_bot"
        logger.warning("registration_honeypot", email=data.email, ip_address=ip_address)
        if await self._get_by_email(data.email) is not None or await self._username_taken(username):
            return

        self.db.add(
            Profile(
                username=username,
                email=data.email.lower(),
                password_hash=hash_password(secrets.token_urlsafe(16)),
                registration_ip=ip_address,
                is_blocked=True,
                frozen_until=datetime.now(UTC) + timedelta(days=settings.honeypot_freeze_days),
            )
        )
        await self.db.flush()

    @transactional
    async def _create_account(self, data: RegisterRequest, ip_address: str | None) -> Profile:
        await self._check_registration_allowed(data, ip_address)

        if await self._get_by_email(data.email) is not None:
            raise AlreadyExistsError("Profile", "email", data.email)
        if await self._username_taken(data.username):
            raise AlreadyExistsError("Profile", "username", data.username)

        now = datetime.now(UTC)
        token = secrets.token_urlsafe(32)
        profile = Profile(
            username=data.username,
            email=data.email.lower(),
            password_hash=hash_password(data.password),
            display_name=data.display_name,
            language=normalize_language(data.language),
            registration_ip=ip_address,
            email_verified=False,
            email_verification_token=token,
            email_verification_token_expiry=now
            + timedelta(hours=settings.email_verification_token_hours),
            frozen_until=now + timedelta(hours=settings.unverified_freeze_hours),
        )
        profile.roles = [ProfileRole(role=UserRole.VIEWER.value)]
        self.db.add(profile)
        await self.db.flush()

        await EmailService(self.db).send_verification_email(profile.email, profile.username, token)

        await self.db.refresh(profile)
        logger.info("profile_registered", profile_id=str(profile.id), username=profile.username)
        return profile

    @transactional
    async def verify_email(self, token: str) -> Profile:
        result = await self.db.execute(
            select(Profile).where(Profile.email_verification_token == token)
        )
        profile = result.scalar_one_or_none()

        now = datetime.now(UTC)
        if (
            profile is None
            or profile.email_verification_token_expiry is None
            or profile.email_verification_token_expiry < now
        ):
            raise InvalidVerificationTokenError()

        profile.email_verified = True
        profile.email_verification_token = None
        profile.email_verification_token_expiry = None
        profile.frozen_until = None
        await self.db.flush()
        logger.info("email_verified", profile_id=str(profile.id))
        return profile

    # ========================================================================
    # Sessions
    # ========================================================================

    @transactional
    async def authenticate(self, data: LoginRequest) -> tuple[Profile, TokenPair]:
        """Check credentials and issue tokens.

        Raises:
            InvalidCredentialsError: If credentials are invalid
            AccountBlockedError: If an admin blocked the profile
        """
        profile = await self._get_by_email(data.email)

        if not profile or not verify_password(data.password, profile.password_hash):
            logger.warning("login_failed", email=data.email)
            raise InvalidCredentialsError()
        if profile.is_blocked:
            logger.warning("login_blocked", profile_id=str(profile.id))
            raise AccountBlockedError()

        profile.last_seen_at = datetime.now(UTC)
        tokens = create_tokens(profile)

        await self.db.flush()
        await self.db.refresh(profile)
        logger.info("login_succeeded", profile_id=str(profile.id))
        return profile, tokens

    async def refresh_tokens(self, refresh_token: str) -> TokenPair:
        """Issue a new token pair for a valid, unrevoked refresh token."""
        token = await verify_token(refresh_token, REFRESH)

        profile = await self.db.get(Profile, token.user_id)
        if profile is None:
            raise InvalidTokenError("User not found")
        if profile.is_blocked:
            raise AccountBlockedError()

        return create_tokens(profile)

    async def logout(self, token: TokenPayload, refresh_token: str | None = None) -> None:
        """Revoke the access token and, if given, the refresh token."""
        blacklist = await get_token_blacklist()
        if blacklist is None:
            logger.warning("logout_blacklist_unavailable", user_id=str(token.user_id))
            return

        if token.jti:
            await blacklist.add(token.jti, token.expires_in_seconds)

        if refresh_token:
            refresh = TokenPayload(decode_token(refresh_token))
            if refresh.jti and refresh.user_id == token.user_id:
                await blacklist.add(refresh.jti, refresh.expires_in_seconds)

        logger.info("token_revoked", jti=(token.jti or "")[:8], user_id=str(token.user_id))

    @transactional
    async def set_language(self, profile: Profile, language: str) -> Profile:
        profile.language = normalize_language(language)
        await self.db.flush()
        return profile
