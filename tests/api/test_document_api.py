"""API tests for draft and hidden content on the document read routes."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.modules.auth.models import Profile
from app.modules.document.models import PageVersion, ParagraphVersion
from tests.fixtures.factories import ChapterFactory, PageFactory, ParagraphFactory
from tests.fixtures.helpers import scalar_result, scalars_result


def page_in(chapter_draft: bool = False, **overrides):
    page = PageFactory(**overrides)
    page.chapter = ChapterFactory(id=page.chapter_id, is_draft=chapter_draft)
    return page


def paragraph_on(page, **overrides):
    paragraph = ParagraphFactory(page_id=page.id, **overrides)
    paragraph.page = page
    return paragraph


def page_version(page, snapshot: list[dict]) -> PageVersion:
    return PageVersion(
        id=uuid4(),
        page_id=page.id,
        version_number=1,
        title="Secret draft",
        description=None,
        paragraphs_snapshot=snapshot,
        change_description=None,
        updated_by_profile_id=uuid4(),
        created_at=datetime.now(UTC),
    )


SNAPSHOT = [
    {"id": str(uuid4()), "type": "text", "content": "public text", "is_hidden": False},
    {"id": str(uuid4()), "type": "text", "content": "hidden text", "is_hidden": True},
]


class TestPageVersions:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_draft_page_history_is_404_for_anonymous(
        self, client: AsyncClient, mock_db: AsyncMock
    ) -> None:
        page = page_in(is_draft=True)
        mock_db.execute.side_effect = [
            scalar_result(page),
            scalars_result([page_version(page, SNAPSHOT)]),
        ]

        response = await client.get(f"/api/pages/{page.id}/versions")

        assert response.status_code == 404
        assert "Secret draft" not in response.text

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_draft_chapter_hides_single_version(
        self, client: AsyncClient, mock_db: AsyncMock, viewer: Profile, login_as
    ) -> None:
        login_as(viewer)
        page = page_in(chapter_draft=True)
        mock_db.execute.side_effect = [
            scalar_result(page),
            scalar_result(page_version(page, SNAPSHOT)),
        ]

        response = await client.get(f"/api/pages/{page.id}/versions/1")

        assert response.status_code == 404

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_hidden_paragraphs_stripped_for_readers(
        self, client: AsyncClient, mock_db: AsyncMock
    ) -> None:
        page = page_in()
        mock_db.execute.side_effect = [
            scalar_result(page),
            scalars_result([page_version(page, SNAPSHOT)]),
        ]

        response = await client.get(f"/api/pages/{page.id}/versions")

        assert response.status_code == 200
        [version] = response.json()
        assert [p["content"] for p in version["paragraphs_snapshot"]] == ["public text"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_editor_reads_full_draft_history(
        self, client: AsyncClient, mock_db: AsyncMock, editor: Profile, login_as
    ) -> None:
        login_as(editor)
        page = page_in(is_draft=True)
        mock_db.execute.side_effect = [
            scalar_result(page),
            scalar_result(page_version(page, SNAPSHOT)),
        ]

        response = await client.get(f"/api/pages/{page.id}/versions/1")

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Secret draft"
        assert len(body["paragraphs_snapshot"]) == 2


class TestParagraphReads:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_paragraph_on_draft_page_is_404(
        self, client: AsyncClient, mock_db: AsyncMock
    ) -> None:
        paragraph = paragraph_on(page_in(is_draft=True))
        mock_db.execute.return_value = scalar_result(paragraph)

        response = await client.get(f"/api/paragraphs/{paragraph.id}")

        assert response.status_code == 404

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_paragraph_in_draft_chapter_is_404(
        self, client: AsyncClient, mock_db: AsyncMock
    ) -> None:
        paragraph = paragraph_on(page_in(chapter_draft=True))
        mock_db.execute.return_value = scalar_result(paragraph)

        response = await client.get(f"/api/paragraphs/{paragraph.id}")

        assert response.status_code == 404

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_published_paragraph_is_readable(
        self, client: AsyncClient, mock_db: AsyncMock
    ) -> None:
        paragraph = paragraph_on(page_in(), content="Открытый текст")
        mock_db.execute.return_value = scalar_result(paragraph)

        response = await client.get(f"/api/paragraphs/{paragraph.id}")

        assert response.status_code == 200
        assert response.json()["content"] == "Открытый текст"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_hidden_paragraph_history_is_404(
        self, client: AsyncClient, mock_db: AsyncMock
    ) -> None:
        paragraph = paragraph_on(page_in(), is_hidden=True)
        mock_db.execute.return_value = scalar_result(paragraph)

        response = await client.get(f"/api/paragraphs/{paragraph.id}/versions")

        assert response.status_code == 404

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_editor_reads_hidden_paragraph_history(
        self, client: AsyncClient, mock_db: AsyncMock, editor: Profile, login_as
    ) -> None:
        login_as(editor)
        paragraph = paragraph_on(page_in(is_draft=True), is_hidden=True)
        version = ParagraphVersion(
            id=uuid4(),
            paragraph_id=paragraph.id,
            version_number=1,
            type="text",
            content="Было",
            attributes={},
            change_description=None,
            suggestion_id=None,
            updated_by_profile_id=editor.id,
            created_at=datetime.now(UTC),
        )
        mock_db.execute.side_effect = [scalar_result(paragraph), scalars_result([version])]

        response = await client.get(f"/api/paragraphs/{paragraph.id}/versions")

        assert response.status_code == 200
        assert [v["content"] for v in response.json()] == ["Было"]
