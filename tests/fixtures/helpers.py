"""Builders for transient models and mocked query results."""

from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import Mock
from uuid import uuid4

from app.core.security import create_access_token
from app.modules.auth.models import Profile, ProfileRole, UserRole


def build_profile(*roles: UserRole, **overrides: Any) -> Profile:
    """Transient profile holding Viewer plus the given roles."""
    unique = uuid4().hex[:8]
    values: dict[str, Any] = {
        "id": uuid4(),
        "username": f"user_{unique}",
        "email": f"user_{unique}@example.com",
        "password_hash": "not-a-real-hash",
        "display_name": None,
        "language": "ru",
        "is_blocked": False,
        "frozen_until": None,
        "last_comment_at": None,
        "email_verified": True,
        "show_email": False,
        "email_notifications": True,
        "created_at": datetime.now(UTC),
        "updated_at": datetime.now(UTC),
    }
    values.update(overrides)
    profile = Profile(**values)
    names = {UserRole.VIEWER, *roles}
    profile.roles = [ProfileRole(role=r.value) for r in sorted(names, key=lambda r: r.value)]
    return profile


def token_for(profile: Profile) -> str:
    token_data = {
        "sub": str(profile.id),
        "email": profile.email,
        "roles": profile.role_names,
    }
    return create_access_token(token_data, expires_delta=timedelta(hours=1))


def scalar_result(value: Any) -> Mock:
    """Mock ``execute()`` result for scalar_one_or_none / scalar lookups."""
    result = Mock()
    result.scalar_one_or_none.return_value = value
    result.scalar.return_value = value
    return result


def scalars_result(values: list[Any]) -> Mock:
    """Mock ``execute()`` result for ``.scalars().all()``."""
    result = Mock()
    result.scalars.return_value.all.return_value = values
    return result


def rows_result(rows: list[tuple]) -> Mock:
    """Mock ``execute()`` result for ``.all()`` on tuple rows."""
    result = Mock()
    result.all.return_value = rows
    return result
