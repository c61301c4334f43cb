"""Test fixtures and factories."""

from tests.fixtures.factories import (
    ChapterFactory,
    CommentFactory,
    PageFactory,
    ParagraphFactory,
    SuggestionFactory,
)

__all__ = [
    "ChapterFactory",
    "PageFactory",
    "ParagraphFactory",
    "SuggestionFactory",
    "CommentFactory",
]
