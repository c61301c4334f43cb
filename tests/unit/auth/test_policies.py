"""Unit tests for moderation policies applied before contributions."""

from datetime import UTC, datetime, timedelta

import pytest

from app.core.exceptions import AccountBlockedError, AccountFrozenError, CommentCooldownError
from app.modules.auth.models import UserRole
from app.modules.auth.policies import (
    ensure_can_contribute,
    ensure_comment_cooldown,
    ensure_not_blocked,
)
from tests.fixtures.helpers import build_profile

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class TestBlockedAndFrozen:
    """Blocked and frozen checks apply to every role."""

    @pytest.mark.unit
    def test_active_profile_may_contribute(self) -> None:
        ensure_can_contribute(build_profile(), NOW)

    @pytest.mark.unit
    def test_blocked_profile_is_rejected(self) -> None:
        with pytest.raises(AccountBlockedError):
            ensure_can_contribute(build_profile(is_blocked=True), NOW)

    @pytest.mark.unit
    def test_blocked_admin_is_rejected(self) -> None:
        with pytest.raises(AccountBlockedError):
            ensure_not_blocked(build_profile(UserRole.ADMIN, is_blocked=True))

    @pytest.mark.unit
    def test_frozen_profile_gets_remaining_seconds(self) -> None:
        profile = build_profile(frozen_until=NOW + timedelta(seconds=90, milliseconds=200))

        with pytest.raises(AccountFrozenError) as exc_info:
            ensure_can_contribute(profile, NOW)

        assert exc_info.value.detail["remaining_seconds"] == 91
        assert exc_info.value.status_code == 403

    @pytest.mark.unit
    def test_frozen_editor_is_rejected(self) -> None:
        profile = build_profile(UserRole.EDITOR, frozen_until=NOW + timedelta(hours=1))

        with pytest.raises(AccountFrozenError):
            ensure_can_contribute(profile, NOW)

    @pytest.mark.unit
    def test_expired_freeze_is_ignored(self) -> None:
        ensure_can_contribute(build_profile(frozen_until=NOW - timedelta(seconds=1)), NOW)

    @pytest.mark.unit
    def test_block_is_checked_before_freeze(self) -> None:
        profile = build_profile(is_blocked=True, frozen_until=NOW + timedelta(hours=1))

        with pytest.raises(AccountBlockedError):
            ensure_can_contribute(profile, NOW)


class TestCommentCooldown:
    """Cooldown between comments of one profile."""

    @pytest.mark.unit
    def test_first_comment_is_allowed(self) -> None:
        ensure_comment_cooldown(build_profile(), NOW, 30)

    @pytest.mark.unit
    def test_comment_inside_window_is_rejected(self) -> None:
        profile = build_profile(last_comment_at=NOW - timedelta(seconds=10))

        with pytest.raises(CommentCooldownError) as exc_info:
            ensure_comment_cooldown(profile, NOW, 30)

        assert exc_info.value.status_code == 429
        assert exc_info.value.detail["retry_after"] == 20
        assert exc_info.value.headers == {"Retry-After": "20"}

    @pytest.mark.unit
    def test_comment_at_window_end_is_allowed(self) -> None:
        profile = build_profile(last_comment_at=NOW - timedelta(seconds=30))

        ensure_comment_cooldown(profile, NOW, 30)

    @pytest.mark.unit
    @pytest.mark.parametrize("role", [UserRole.EDITOR, UserRole.ADMIN])
    def test_privileged_roles_skip_cooldown(self, role: UserRole) -> None:
        profile = build_profile(role, last_comment_at=NOW - timedelta(seconds=1))

        ensure_comment_cooldown(profile, NOW, 30)

    @pytest.mark.unit
    def test_zero_cooldown_disables_check(self) -> None:
        profile = build_profile(last_comment_at=NOW)

        ensure_comment_cooldown(profile, NOW, 0)
