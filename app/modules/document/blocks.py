"""Paragraph block variants.

Each paragraph type carries its own set of fields. The variant is stored
as ``paragraphs.type`` plus a JSONB ``attributes`` object, and validated
here as a discriminated union on ``type``.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class ParagraphType(str, Enum):
    TEXT = "text"
    HEADER = "header"
    IMAGE = "image"
    QUOTE = "quote"
    CODE = "code"
    LIST = "list"
    PAGE_LINK = "page_link"


class _Block(BaseModel):
    model_config = ConfigDict(extra="forbid")


class TextBlock(_Block):
    type: Literal["text"] = "text"


class HeaderBlock(_Block):
    type: Literal["header"] = "header"
    level: int = Field(default=2, ge=1, le=6)


class ImageBlock(_Block):
    type: Literal["image"] = "image"
    url: str = Field(..., min_length=1, max_length=1000)
    caption: str | None = Field(default=None, max_length=500)


class QuoteBlock(_Block):
    type: Literal["quote"] = "quote"
    source: str | None = Field(default=None, max_length=255)


class CodeBlock(_Block):
    type: Literal["code"] = "code"
    language: str | None = Field(default=None, max_length=50)


class ListBlock(_Block):
    type: Literal["list"] = "list"
    list_type: Literal["bulleted", "numbered"] = "bulleted"


class PageLinkBlock(_Block):
    type: Literal["page_link"] = "page_link"
    linked_page_id: UUID


ParagraphBlock = Annotated[
    Union[TextBlock, HeaderBlock, ImageBlock, QuoteBlock, CodeBlock, ListBlock, PageLinkBlock],
    Field(discriminator="type"),
]

block_adapter: TypeAdapter[ParagraphBlock] = TypeAdapter(ParagraphBlock)


def block_to_columns(block: BaseModel) -> tuple[str, dict[str, Any]]:
    """Split a block into the ``type`` column and the JSONB attributes."""
    data = block.model_dump(mode="json", exclude={"type"})
    return block.type, data


def block_from_columns(block_type: str, attributes: dict[str, Any] | None) -> BaseModel:
    """Rebuild a block from stored columns."""
    return block_adapter.validate_python({**(attributes or {}), "type": block_type})
