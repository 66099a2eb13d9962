"""Tests for the theme system."""

from __future__ import annotations

import logging

import pytest

from inkpress.generators.themes import (
    CODING_THEME,
    DARK_THEME,
    DEFAULT_THEME,
    MODERN_THEME,
    PROFESSIONAL_THEME,
    Theme,
    get_theme,
    list_themes,
    resolve_theme,
    to_hex,
)


class TestThemeRegistry:
    def test_list_themes_returns_builtin(self):
        names = [t.name for t in list_themes()]
        assert names == ["professional", "modern", "elegant", "dark", "coding"]

    def test_get_theme_returns_correct_theme(self):
        assert get_theme("modern") is MODERN_THEME

    def test_get_theme_case_insensitive(self):
        assert get_theme("  CODING ") is CODING_THEME

    def test_get_theme_unknown_raises(self):
        with pytest.raises(KeyError):
            get_theme("nonexistent")

    def test_default_is_professional(self):
        assert DEFAULT_THEME is PROFESSIONAL_THEME
        assert DEFAULT_THEME.name == "professional"

    def test_registry_is_read_only(self):
        from inkpress.generators import themes

        with pytest.raises(TypeError):
            themes._THEME_REGISTRY["custom"] = Theme(name="custom")  # type: ignore[index]


class TestResolveTheme:
    def test_known_name(self):
        assert resolve_theme("dark") is DARK_THEME

    def test_unknown_name_falls_back_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="inkpress.generators.themes"):
            theme = resolve_theme("nonexistent-theme")
        assert theme is DEFAULT_THEME
        assert "nonexistent-theme" in caplog.text

    @pytest.mark.parametrize("name", [None, ""])
    def test_empty_name_uses_default(self, name):
        assert resolve_theme(name) is DEFAULT_THEME


class TestThemeValues:
    def test_professional_palette(self):
        c = PROFESSIONAL_THEME.colors
        assert to_hex(c.primary) == "#2563EB"
        assert to_hex(c.accent) == "#0EA5E9"
        assert c.background == (255, 255, 255)
        assert not c.has_gradient

    def test_gradient_themes(self):
        gradient = {t.name for t in list_themes() if t.colors.has_gradient}
        assert gradient == {"modern", "coding"}

    def test_dark_theme_has_dark_background(self):
        assert to_hex(DARK_THEME.colors.background) == "#111827"
        assert to_hex(DARK_THEME.colors.text) == "#F9FAFB"

    def test_themes_are_frozen(self):
        with pytest.raises(AttributeError):
            PROFESSIONAL_THEME.name = "changed"  # type: ignore[misc]
