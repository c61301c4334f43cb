"""API tests for public profiles."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from app.modules.auth.models import Profile
from app.modules.profiles.service import ProfileService
from tests.fixtures.helpers import build_profile


@pytest.fixture
def profile_lookup():
    """Serve ``owner`` from ``get_profile`` with fixed comment totals."""
    owner = build_profile(username="author", bio="Пишу о стратегии")
    with (
        patch.object(ProfileService, "get_profile", AsyncMock(return_value=owner)),
        patch.object(ProfileService, "comment_totals", AsyncMock(return_value=(4, 11))),
    ):
        yield owner


class TestEmailVisibility:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_anonymous_sees_no_email(self, client: AsyncClient, profile_lookup) -> None:
        response = await client.get(f"/api/profile/{profile_lookup.id}")

        assert response.status_code == 200
        body = response.json()
        assert body["email"] is None
        assert body["bio"] == "Пишу о стратегии"
        assert body["total_comments"] == 4
        assert body["total_votes_received"] == 11

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_owner_sees_own_email(
        self, client: AsyncClient, login_as, profile_lookup
    ) -> None:
        login_as(profile_lookup)

        response = await client.get(f"/api/profile/{profile_lookup.id}")

        assert response.json()["email"] == profile_lookup.email

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_public_email_shown_to_others(
        self, client: AsyncClient, login_as, viewer: Profile, profile_lookup
    ) -> None:
        profile_lookup.show_email = True
        login_as(viewer)

        response = await client.get(f"/api/profile/{profile_lookup.id}")

        assert response.json()["email"] == profile_lookup.email


class TestUpdateProfile:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_owner_updates_fields(
        self, client: AsyncClient, login_as, mock_db, viewer: Profile
    ) -> None:
        login_as(viewer)

        with patch.object(ProfileService, "comment_totals", AsyncMock(return_value=(0, 0))):
            response = await client.put(
                "/api/profile",
                json={"display_name": "Читатель", "show_email": None, "bio": None},
            )

        assert response.status_code == 200
        assert response.json()["display_name"] == "Читатель"
        assert viewer.show_email is False
        mock_db.commit.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_requires_login(self, client: AsyncClient) -> None:
        response = await client.put("/api/profile", json={"display_name": "x"})

        assert response.status_code == 401
