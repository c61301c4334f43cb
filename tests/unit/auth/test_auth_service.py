"""Unit tests for registration gates and credential checks."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from app.core.exceptions import (
    AccountBlockedError,
    AlreadyExistsError,
    InvalidCredentialsError,
    InvalidVerificationTokenError,
    RateLimitExceededError,
    RegistrationClosedError,
    ValidationError,
)
from app.core.security import REFRESH, TokenPayload, hash_password
from app.modules.auth.models import UserRole
from app.modules.auth.schemas import LoginRequest, RegisterRequest
from app.modules.auth.service import AuthService, email_domain
from app.modules.settings.cache import SettingsCache
from app.modules.settings.models import Setting
from tests.fixtures.helpers import build_profile, scalar_result, scalars_result

REGISTRATION = RegisterRequest(
    username="reader_42",
    email="Reader@Example.com",
    password="correct-horse-battery",
    language="kk",
)


def settings_rows(**values: str) -> list[Setting]:
    defaults = {
        "RegistrationEnabled": "true",
        "BlockedEmailDomains": "",
        "RateLimitRegistrationsPerHour": "3",
        "RateLimitRegistrationsPerDay": "10",
    }
    defaults.update(values)
    return [Setting(key=key, value=value) for key, value in defaults.items()]


@pytest.fixture
def email_service():
    with patch("app.modules.auth.service.EmailService") as email_cls:
        email_cls.return_value.send_verification_email = AsyncMock(return_value=True)
        yield email_cls.return_value


@pytest.mark.unit
def test_email_domain_is_lowercased() -> None:
    assert email_domain("Someone@Mail.EXAMPLE.org") == "mail.example.org"


class TestRegistrationGates:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_closed_registration(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = scalars_result(settings_rows(RegistrationEnabled="false"))
        service = AuthService(mock_db, SettingsCache(ttl_seconds=60))

        with pytest.raises(RegistrationClosedError) as exc_info:
            await service.register(REGISTRATION, "198.51.100.4")

        assert exc_info.value.status_code == 403
        mock_db.add.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_blocked_email_domain(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = scalars_result(
            settings_rows(BlockedEmailDomains="mailinator.com, EXAMPLE.com")
        )
        service = AuthService(mock_db, SettingsCache(ttl_seconds=60))

        with pytest.raises(ValidationError):
            await service.register(REGISTRATION, "198.51.100.4")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_hourly_ip_limit(self, mock_db: AsyncMock) -> None:
        mock_db.execute.side_effect = [
            scalars_result(settings_rows(RateLimitRegistrationsPerHour="3")),
            scalar_result(3),
        ]
        service = AuthService(mock_db, SettingsCache(ttl_seconds=60))

        with pytest.raises(RateLimitExceededError) as exc_info:
            await service.register(REGISTRATION, "198.51.100.4")

        assert exc_info.value.headers["Retry-After"] == "3600"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_daily_ip_limit(self, mock_db: AsyncMock) -> None:
        mock_db.execute.side_effect = [
            scalars_result(settings_rows()),
            scalar_result(1),
            scalar_result(10),
        ]
        service = AuthService(mock_db, SettingsCache(ttl_seconds=60))

        with pytest.raises(RateLimitExceededError) as exc_info:
            await service.register(REGISTRATION, "198.51.100.4")

        assert exc_info.value.headers["Retry-After"] == "86400"


class TestRegister:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_creates_unverified_viewer(self, mock_db: AsyncMock, email_service) -> None:
        mock_db.execute.side_effect = [scalar_result(None), scalar_result(None)]

        profile = await AuthService(mock_db).register(REGISTRATION, "198.51.100.4")

        assert profile.email == "reader@example.com"
        assert profile.language == "kk"
        assert profile.registration_ip == "198.51.100.4"
        assert profile.email_verified is False
        assert profile.role_names == [UserRole.VIEWER.value]
        assert profile.password_hash != REGISTRATION.password
        email_service.send_verification_email.assert_awaited_once_with(
            "reader@example.com", "reader_42", profile.email_verification_token
        )
        mock_db.commit.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_duplicate_email(self, mock_db: AsyncMock, email_service) -> None:
        mock_db.execute.return_value = scalar_result(build_profile())

        with pytest.raises(AlreadyExistsError):
            await AuthService(mock_db).register(REGISTRATION)

        email_service.send_verification_email.assert_not_awaited()


class TestAuthenticate:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_email(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(InvalidCredentialsError):
            await AuthService(mock_db).authenticate(
                LoginRequest(email="nobody@example.com", password="whatever")
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_wrong_password(self, mock_db: AsyncMock) -> None:
        profile = build_profile(password_hash=hash_password("right-password"))
        mock_db.execute.return_value = scalar_result(profile)

        with pytest.raises(InvalidCredentialsError):
            await AuthService(mock_db).authenticate(
                LoginRequest(email=profile.email, password="wrong-password")
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_success_issues_tokens(self, mock_db: AsyncMock) -> None:
        profile = build_profile(UserRole.EDITOR, password_hash=hash_password("right-password"))
        mock_db.execute.return_value = scalar_result(profile)

        result, tokens = await AuthService(mock_db).authenticate(
            LoginRequest(email=profile.email, password="right-password")
        )

        assert result is profile
        assert profile.last_seen_at is not None
        assert tokens.access_token
        assert tokens.refresh_token

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_blocked_profile_gets_no_tokens(self, mock_db: AsyncMock) -> None:
        profile = build_profile(is_blocked=True, password_hash=hash_password("right-password"))
        mock_db.execute.return_value = scalar_result(profile)

        with pytest.raises(AccountBlockedError) as exc_info:
            await AuthService(mock_db).authenticate(
                LoginRequest(email=profile.email, password="right-password")
            )

        assert exc_info.value.status_code == 403
        assert profile.last_seen_at is None
        mock_db.commit.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_blocked_profile_wrong_password_stays_generic(self, mock_db: AsyncMock) -> None:
        profile = build_profile(is_blocked=True, password_hash=hash_password("right-password"))
        mock_db.execute.return_value = scalar_result(profile)

        with pytest.raises(InvalidCredentialsError):
            await AuthService(mock_db).authenticate(
                LoginRequest(email=profile.email, password="wrong-password")
            )


class TestRefreshTokens:
    @staticmethod
    def refresh_payload(profile) -> TokenPayload:
        expires = datetime.now(UTC) + timedelta(days=1)
        return TokenPayload(
            {"sub": str(profile.id), "type": REFRESH, "jti": "abc", "exp": expires.timestamp()}
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_blocked_profile_cannot_refresh(self, mock_db: AsyncMock) -> None:
        profile = build_profile(is_blocked=True)
        mock_db.get.return_value = profile

        with (
            patch(
                "app.modules.auth.service.verify_token",
                AsyncMock(return_value=self.refresh_payload(profile)),
            ),
            pytest.raises(AccountBlockedError),
        ):
            await AuthService(mock_db).refresh_tokens("refresh-token")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_active_profile_gets_new_pair(self, mock_db: AsyncMock) -> None:
        profile = build_profile()
        mock_db.get.return_value = profile

        with patch(
            "app.modules.auth.service.verify_token",
            AsyncMock(return_value=self.refresh_payload(profile)),
        ):
            tokens = await AuthService(mock_db).refresh_tokens("refresh-token")

        assert tokens.access_token
        assert tokens.refresh_token


class TestSpamDefences:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_new_account_frozen_until_verified(
        self, mock_db: AsyncMock, email_service
    ) -> None:
        mock_db.execute.side_effect = [scalar_result(None), scalar_result(None)]

        profile = await AuthService(mock_db).register(REGISTRATION)

        remaining = profile.frozen_until - datetime.now(UTC)
        assert timedelta(minutes=59) < remaining <= timedelta(hours=1)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_honeypot_records_blocked_profile(
        self, mock_db: AsyncMock, email_service
    ) -> None:
        mock_db.execute.side_effect = [scalar_result(None), scalar_result(None)]
        bot = REGISTRATION.model_copy(update={"website": "http://spam.example"})

        with pytest.raises(ValidationError) as exc_info:
            await AuthService(mock_db).register(bot, "203.0.113.9")

        assert exc_info.value.status_code == 400
        trapped = mock_db.add.call_args.args[0]
        assert trapped.username == "reader_42_bot"
        assert trapped.is_blocked is True
        assert trapped.registration_ip == "203.0.113.9"
        assert trapped.frozen_until - datetime.now(UTC) > timedelta(days=6, hours=23)
        mock_db.commit.assert_awaited_once()
        email_service.send_verification_email.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_honeypot_skips_insert_for_known_email(
        self, mock_db: AsyncMock, email_service
    ) -> None:
        mock_db.execute.return_value = scalar_result(build_profile())
        bot = REGISTRATION.model_copy(update={"website": "x"})

        with pytest.raises(ValidationError):
            await AuthService(mock_db).register(bot)

        mock_db.add.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_verification_lifts_freeze(self, mock_db: AsyncMock) -> None:
        profile = build_profile(
            email_verified=False,
            email_verification_token="token-1",
            email_verification_token_expiry=datetime.now(UTC) + timedelta(hours=1),
            frozen_until=datetime.now(UTC) + timedelta(minutes=40),
        )
        mock_db.execute.return_value = scalar_result(profile)

        await AuthService(mock_db).verify_email("token-1")

        assert profile.email_verified is True
        assert profile.frozen_until is None
        assert profile.email_verification_token is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_expired_token_keeps_freeze(self, mock_db: AsyncMock) -> None:
        frozen_until = datetime.now(UTC) + timedelta(minutes=40)
        profile = build_profile(
            email_verified=False,
            email_verification_token="token-1",
            email_verification_token_expiry=datetime.now(UTC) - timedelta(minutes=1),
            frozen_until=frozen_until,
        )
        mock_db.execute.return_value = scalar_result(profile)

        with pytest.raises(InvalidVerificationTokenError):
            await AuthService(mock_db).verify_email("token-1")

        assert profile.frozen_until == frozen_until
