"""Unit tests for page and paragraph snapshots."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from app.modules.document.models import PageVersion, ParagraphVersion
from app.modules.document.versioning import archive_page, archive_paragraph, paragraph_state
from tests.fixtures.factories import PageFactory, ParagraphFactory
from tests.fixtures.helpers import scalar_result


class TestArchiveParagraph:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_first_snapshot_gets_number_one(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = scalar_result(0)
        paragraph = ParagraphFactory(content="Было", attributes={})
        actor_id = uuid4()

        version = await archive_paragraph(mock_db, paragraph, actor_id)

        assert isinstance(version, ParagraphVersion)
        assert version.version_number == 1
        assert version.content == "Было"
        assert version.updated_by_profile_id == actor_id
        mock_db.add.assert_called_once_with(version)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_snapshot_follows_existing_numbers(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = scalar_result(4)
        suggestion_id = uuid4()

        version = await archive_paragraph(
            mock_db,
            ParagraphFactory(),
            uuid4(),
            change_description="Approved suggestion",
            suggestion_id=suggestion_id,
        )

        assert version.version_number == 5
        assert version.suggestion_id == suggestion_id
        assert version.change_description == "Approved suggestion"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_snapshot_copies_attributes(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = scalar_result(0)
        paragraph = ParagraphFactory(type="header", attributes={"level": 2})

        version = await archive_paragraph(mock_db, paragraph, uuid4())
        paragraph.attributes["level"] = 3

        assert version.attributes == {"level": 2}


class TestArchivePage:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_page_snapshot_embeds_paragraphs(self, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = scalar_result(2)
        page = PageFactory(title="Цели", description=None)
        paragraphs = [
            ParagraphFactory(page_id=page.id, order_index=0),
            ParagraphFactory(page_id=page.id, order_index=1, is_hidden=True),
        ]

        version = await archive_page(mock_db, page, paragraphs, uuid4())

        assert isinstance(version, PageVersion)
        assert version.version_number == 3
        assert version.title == "Цели"
        assert [p["id"] for p in version.paragraphs_snapshot] == [str(p.id) for p in paragraphs]
        assert version.paragraphs_snapshot[1]["is_hidden"] is True

    @pytest.mark.unit
    def test_paragraph_state_is_json_ready(self) -> None:
        paragraph = ParagraphFactory(type="text", content="Текст", attributes={})

        state = paragraph_state(paragraph)

        assert state == {
            "id": str(paragraph.id),
            "type": "text",
            "content": "Текст",
            "attributes": {},
            "order_index": paragraph.order_index,
            "is_hidden": False,
        }
