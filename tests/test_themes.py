"""Tests for the themes module."""

from kafka_dash.themes import (
    DARK_PANEL_STYLE,
    DARK_THEME,
    LIGHT_PANEL_STYLE,
    LIGHT_THEME,
    THEME_NAMES,
    THEMES,
    get_panel_style,
    get_theme,
)


class TestThemeDefinitions:
    """Tests for theme definitions."""

    def test_theme_names_match(self) -> None:
        """Theme names list should match themes."""
        assert THEME_NAMES == ["dark", "light"]
        assert [t.name for t in THEMES] == THEME_NAMES

    def test_dark_theme_is_dark(self) -> None:
        """Dark theme should have dark=True."""
        assert DARK_THEME.dark is True

    def test_light_theme_is_light(self) -> None:
        """Light theme should have dark=False."""
        assert LIGHT_THEME.dark is False


class TestGetTheme:
    """Tests for theme lookup."""

    def test_get_known_theme(self) -> None:
        """Known names return their theme."""
        assert get_theme("light") is LIGHT_THEME

    def test_unknown_falls_back_to_dark(self) -> None:
        """Unknown names return the dark theme."""
        assert get_theme("neon") is DARK_THEME


class TestPanelStyle:
    """Tests for the styles handed to panels."""

    def test_panel_style_per_theme(self) -> None:
        """Each theme has a matching panel style."""
        assert get_panel_style("dark") is DARK_PANEL_STYLE
        assert get_panel_style("light") is LIGHT_PANEL_STYLE

    def test_unknown_panel_style_falls_back(self) -> None:
        """Unknown names use the dark panel style."""
        assert get_panel_style("neon") is DARK_PANEL_STYLE

    def test_border_for_focus(self) -> None:
        """Focused panels get the focus border."""
        style = DARK_PANEL_STYLE
        assert style.border_for(True) == style.border_focused
        assert style.border_for(False) == style.border

    def test_selection_for_focus(self) -> None:
        """Blurred tables dim their cursor row."""
        style = LIGHT_PANEL_STYLE
        assert style.selection_for(True) == style.selected
        assert style.selection_for(False) == style.selected_blurred
        assert style.selected != style.selected_blurred
