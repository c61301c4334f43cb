"""Unit tests for language helpers."""

from types import SimpleNamespace

import pytest

from app.config import settings
from app.core.exceptions import UnsupportedLanguageError
from app.core.localization import localized, normalize_language, pick_translation


class TestNormalizeLanguage:
    @pytest.mark.unit
    @pytest.mark.parametrize("code", ["ru", "en", "kk"])
    def test_supported_codes(self, code: str) -> None:
        assert normalize_language(code) == code

    @pytest.mark.unit
    def test_case_and_whitespace_are_normalized(self) -> None:
        assert normalize_language(" EN ") == "en"

    @pytest.mark.unit
    @pytest.mark.parametrize("code", [None, ""])
    def test_missing_code_falls_back_to_default(self, code: str | None) -> None:
        assert normalize_language(code) == settings.default_language

    @pytest.mark.unit
    def test_unsupported_code_raises(self) -> None:
        with pytest.raises(UnsupportedLanguageError) as exc_info:
            normalize_language("de")

        assert exc_info.value.status_code == 400


class TestLocalized:
    @pytest.fixture
    def chapter(self) -> SimpleNamespace:
        return SimpleNamespace(title="Стратегия", description="Описание")

    @pytest.mark.unit
    def test_translation_value_wins(self, chapter: SimpleNamespace) -> None:
        translation = SimpleNamespace(language="en", title="Strategy", description=None)

        assert localized(chapter, translation, "title") == "Strategy"

    @pytest.mark.unit
    def test_empty_translation_field_falls_back(self, chapter: SimpleNamespace) -> None:
        translation = SimpleNamespace(language="en", title="Strategy", description="")

        assert localized(chapter, translation, "description") == "Описание"

    @pytest.mark.unit
    def test_missing_translation_falls_back(self, chapter: SimpleNamespace) -> None:
        assert localized(chapter, None, "title") == "Стратегия"

    @pytest.mark.unit
    def test_pick_translation(self) -> None:
        rows = [SimpleNamespace(language="en"), SimpleNamespace(language="kk")]

        assert pick_translation(rows, "kk") is rows[1]
        assert pick_translation(rows, "ru") is None
