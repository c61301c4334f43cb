"""API tests for comment endpoints."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.modules.auth.models import Profile
from app.modules.comments.service import CommentService
from tests.fixtures.factories import CommentFactory
from tests.fixtures.helpers import build_profile, scalars_result


def authored(comment, author: Profile | None = None):
    comment.author = author or build_profile()
    comment.user_id = comment.author.id
    return comment


class TestCreateComment:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_two_targets_is_422(
        self, client: AsyncClient, login_as, viewer: Profile
    ) -> None:
        login_as(viewer)

        response = await client.post(
            "/api/comments",
            json={"content": "Текст", "page_id": str(uuid4()), "paragraph_id": str(uuid4())},
        )

        assert response.status_code == 422

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_content_is_422(
        self, client: AsyncClient, login_as, viewer: Profile
    ) -> None:
        login_as(viewer)

        response = await client.post("/api/comments", json={"content": "", "page_id": str(uuid4())})

        assert response.status_code == 422

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_frozen_author(self, client: AsyncClient, login_as) -> None:
        login_as(build_profile(frozen_until=datetime.now(UTC) + timedelta(minutes=10)))

        response = await client.post(
            "/api/comments", json={"content": "Текст", "page_id": str(uuid4())}
        )

        assert response.status_code == 403
        body = response.json()
        assert body["type"].endswith("/account_frozen")
        assert 0 < body["remaining_seconds"] <= 600

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cooldown_sets_retry_after(
        self, client: AsyncClient, login_as, mock_db: AsyncMock
    ) -> None:
        mock_db.execute.return_value = scalars_result([])
        login_as(build_profile(last_comment_at=datetime.now(UTC) - timedelta(seconds=10)))

        response = await client.post(
            "/api/comments", json={"content": "Текст", "page_id": str(uuid4())}
        )

        assert response.status_code == 429
        assert 0 < int(response.headers["Retry-After"]) <= 20
        assert response.json()["retry_after"] == int(response.headers["Retry-After"])

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_created(self, client: AsyncClient, login_as, viewer: Profile) -> None:
        login_as(viewer)
        comment = authored(CommentFactory(content="Первый!"), viewer)

        with patch.object(CommentService, "create", AsyncMock(return_value=comment)):
            response = await client.post(
                "/api/comments", json={"content": "Первый!", "page_id": str(comment.page_id)}
            )

        assert response.status_code == 201
        body = response.json()
        assert body["content"] == "Первый!"
        assert body["author"]["username"] == viewer.username
        assert body["score"] == 0


class TestCommentTree:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_page_tree_for_anonymous(self, client: AsyncClient) -> None:
        page_id = uuid4()
        root = authored(CommentFactory(page_id=page_id, agree_count=2))
        reply = authored(CommentFactory(page_id=page_id, parent_id=root.id))
        gone = authored(
            CommentFactory(page_id=page_id, parent_id=root.id, deleted_at=datetime.now(UTC))
        )

        with patch.object(
            CommentService, "list_for_target", AsyncMock(return_value=[root, reply, gone])
        ):
            response = await client.get(f"/api/comments/page/{page_id}")

        assert response.status_code == 200
        tree = response.json()
        assert len(tree) == 1
        assert tree[0]["score"] == 2
        assert tree[0]["user_vote"] is None
        assert [r["id"] for r in tree[0]["replies"]] == [str(reply.id), str(gone.id)]
        assert tree[0]["replies"][1]["is_deleted"] is True
        assert tree[0]["replies"][1]["content"] == ""
