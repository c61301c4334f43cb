"""Moderation checks applied before a profile may contribute content."""

import math
from datetime import datetime, timedelta

from app.core.exceptions import (
    AccountBlockedError,
    AccountFrozenError,
    CommentCooldownError,
)
from app.modules.auth.models import Profile


def ensure_not_blocked(profile: Profile) -> None:
    if profile.is_blocked:
        raise AccountBlockedError()


def ensure_can_contribute(profile: Profile, now: datetime) -> None:
    """Reject blocked or currently frozen profiles.

    Applies to every role; staff accounts can be frozen too.
    """
    ensure_not_blocked(profile)

    if profile.is_frozen_at(now):
        remaining = math.ceil((profile.frozen_until - now).total_seconds())
        raise AccountFrozenError(profile.frozen_until, remaining)


def ensure_comment_cooldown(profile: Profile, now: datetime, cooldown_seconds: int) -> None:
    """Enforce the minimum gap between two comments of one profile.

    Editors and admins are exempt.
    """
    if profile.is_privileged or cooldown_seconds <= 0 or profile.last_comment_at is None:
        return

    next_allowed = profile.last_comment_at + timedelta(seconds=cooldown_seconds)
    if now < next_allowed:
        raise CommentCooldownError(math.ceil((next_allowed - now).total_seconds()))
