"""API tests for authentication, role checks and problem details."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.modules.auth.models import Profile
from tests.fixtures.helpers import scalar_result, token_for

CHAPTER = {"title": "Введение", "slug": "vvedenie"}


class TestAuthentication:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_token_is_problem_json(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/comments", json={"content": "Привет", "page_id": str(uuid4())}
        )

        assert response.status_code == 401
        assert response.headers["content-type"].startswith("application/problem+json")
        body = response.json()
        assert body["type"].endswith("/authentication_required")
        assert body["status"] == 401
        assert body["instance"] == "/api/comments"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_garbage_token_rejected(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.json()["type"].endswith("/invalid_token")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_valid_token_loads_profile(
        self, client: AsyncClient, mock_db: AsyncMock, editor: Profile
    ) -> None:
        mock_db.execute.return_value = scalar_result(editor)

        response = await client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {token_for(editor)}"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == str(editor.id)
        assert body["roles"] == ["Editor", "Viewer"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_token_for_removed_profile(
        self, client: AsyncClient, mock_db: AsyncMock, viewer: Profile
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)

        response = await client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {token_for(viewer)}"}
        )

        assert response.status_code == 401


class TestRoles:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_viewer_cannot_create_chapter(
        self, client: AsyncClient, login_as, viewer: Profile
    ) -> None:
        login_as(viewer)

        response = await client.post("/api/chapters", json=CHAPTER)

        assert response.status_code == 403
        assert response.json()["type"].endswith("/insufficient_role")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_editor_cannot_open_admin_routes(
        self, client: AsyncClient, login_as, editor: Profile
    ) -> None:
        login_as(editor)

        response = await client.get("/api/admin/users")

        assert response.status_code == 403

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_viewer_cannot_approve(
        self, client: AsyncClient, login_as, viewer: Profile
    ) -> None:
        login_as(viewer)

        response = await client.post(f"/api/paragraphsuggestions/{uuid4()}/approve")

        assert response.status_code == 403


class TestValidation:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_malformed_id_is_422(self, client: AsyncClient) -> None:
        response = await client.get("/api/pages/not-a-uuid")

        assert response.status_code == 422

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unsupported_language_is_rejected(self, client: AsyncClient) -> None:
        response = await client.get("/api/chapters", params={"lang": "de"})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "language"
