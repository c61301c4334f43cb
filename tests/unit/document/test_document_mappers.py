"""Unit tests for localized document mapping."""

import pytest

from app.modules.document.mappers import map_chapter, map_page, map_paragraph
from app.modules.document.models import (
    ChapterTranslation,
    PageTranslation,
    ParagraphTranslation,
)
from tests.fixtures.factories import ChapterFactory, PageFactory, ParagraphFactory


class TestParagraphMapping:
    @pytest.mark.unit
    def test_translation_content_is_used(self) -> None:
        paragraph = ParagraphFactory(content="Исходный текст")
        paragraph.translations = [ParagraphTranslation(language="en", content="Source text")]

        response = map_paragraph(paragraph, "en")

        assert response.content == "Source text"
        assert response.language == "en"

    @pytest.mark.unit
    def test_missing_translation_falls_back_to_base(self) -> None:
        paragraph = ParagraphFactory(content="Исходный текст")
        paragraph.translations = [ParagraphTranslation(language="en", content="Source text")]

        assert map_paragraph(paragraph, "kk").content == "Исходный текст"

    @pytest.mark.unit
    def test_image_caption_is_translated(self) -> None:
        paragraph = ParagraphFactory(
            type="image",
            content="",
            attributes={"url": "https://example.com/a.png", "caption": "Схема"},
        )
        paragraph.translations = [ParagraphTranslation(language="en", caption="Diagram")]

        response = map_paragraph(paragraph, "en")

        assert response.block.caption == "Diagram"
        assert paragraph.attributes["caption"] == "Схема"


class TestPageAndChapterMapping:
    @pytest.mark.unit
    def test_page_title_translation(self) -> None:
        page = PageFactory(title="Цели", description="Описание")
        page.translations = [PageTranslation(language="en", title="Goals", description=None)]

        response = map_page(page, "en")

        assert response.title == "Goals"
        assert response.description == "Описание"
        assert response.paragraphs is None

    @pytest.mark.unit
    def test_page_embeds_given_paragraphs(self) -> None:
        page = PageFactory()
        paragraphs = [ParagraphFactory(page_id=page.id), ParagraphFactory(page_id=page.id)]

        response = map_page(page, "ru", paragraphs)

        assert [p.id for p in response.paragraphs] == [p.id for p in paragraphs]

    @pytest.mark.unit
    def test_chapter_lists_page_summaries(self) -> None:
        chapter = ChapterFactory(title="Глава")
        chapter.translations = [ChapterTranslation(language="kk", title="Тарау")]
        pages = [PageFactory(chapter_id=chapter.id)]

        response = map_chapter(chapter, "kk", pages)

        assert response.title == "Тарау"
        assert response.pages[0].id == pages[0].id
        assert response.pages[0].slug == pages[0].slug
