"""Unit tests for paragraph block variants."""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from app.modules.document.blocks import (
    HeaderBlock,
    ImageBlock,
    PageLinkBlock,
    TextBlock,
    block_adapter,
    block_from_columns,
    block_to_columns,
)


class TestBlockValidation:
    @pytest.mark.unit
    def test_discriminator_selects_variant(self) -> None:
        block = block_adapter.validate_python({"type": "header", "level": 3})

        assert isinstance(block, HeaderBlock)
        assert block.level == 3

    @pytest.mark.unit
    def test_header_level_is_bounded(self) -> None:
        with pytest.raises(ValidationError):
            block_adapter.validate_python({"type": "header", "level": 7})

    @pytest.mark.unit
    def test_image_requires_url(self) -> None:
        with pytest.raises(ValidationError):
            block_adapter.validate_python({"type": "image"})

    @pytest.mark.unit
    def test_unknown_type_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            block_adapter.validate_python({"type": "video"})

    @pytest.mark.unit
    def test_fields_of_other_variants_are_rejected(self) -> None:
        with pytest.raises(ValidationError):
            block_adapter.validate_python({"type": "text", "url": "https://example.com/a.png"})


class TestBlockColumns:
    @pytest.mark.unit
    def test_text_block_has_no_attributes(self) -> None:
        assert block_to_columns(TextBlock()) == ("text", {})

    @pytest.mark.unit
    def test_image_block_columns(self) -> None:
        block = ImageBlock(url="https://example.com/a.png", caption="Схема")

        block_type, attributes = block_to_columns(block)

        assert block_type == "image"
        assert attributes == {"url": "https://example.com/a.png", "caption": "Схема"}

    @pytest.mark.unit
    def test_page_link_id_is_stored_as_string(self) -> None:
        target = uuid4()

        _, attributes = block_to_columns(PageLinkBlock(linked_page_id=target))

        assert attributes == {"linked_page_id": str(target)}

    @pytest.mark.unit
    def test_columns_rebuild_the_block(self) -> None:
        target = uuid4()

        block = block_from_columns("page_link", {"linked_page_id": str(target)})

        assert isinstance(block, PageLinkBlock)
        assert block.linked_page_id == target

    @pytest.mark.unit
    def test_missing_attributes_use_defaults(self) -> None:
        block = block_from_columns("header", None)

        assert isinstance(block, HeaderBlock)
        assert block.level == 2
