"""Theme definitions for the dashboard TUI.

Textual themes colour the application chrome. Panels do not read any global
styling: every render call receives a PanelStyle value derived from the
active theme.
"""

from __future__ import annotations

from dataclasses import dataclass

from textual.theme import Theme

# =============================================================================
# Palette
# =============================================================================


class Palette:
    """kafka-dash colour palette (xterm-256 indices as Rich colour names)."""

    BORDER = "color(240)"  # Blurred borders, muted text
    FOCUS = "color(69)"  # Focused borders
    SELECTED_BG = "color(57)"  # Cursor row of the focused table
    SELECTED_FG = "color(229)"
    INFO_BORDER = "color(62)"
    ERROR = "#ff0000"
    MUTED = "#555555"
    FORM_LABEL = "#FF06B7"
    FORM_FOCUS = "color(205)"


@dataclass(frozen=True)
class PanelStyle:
    """Styles handed to panel render calls."""

    border: str = Palette.BORDER
    border_focused: str = Palette.FOCUS
    selected: str = f"{Palette.SELECTED_FG} on {Palette.SELECTED_BG}"
    selected_blurred: str = f"{Palette.SELECTED_FG} on {Palette.BORDER}"
    header: str = "bold"
    muted: str = Palette.MUTED
    error: str = Palette.ERROR
    info_border: str = Palette.INFO_BORDER
    form_label: str = Palette.FORM_LABEL
    form_focus: str = Palette.FORM_FOCUS

    def border_for(self, focused: bool) -> str:
        return self.border_focused if focused else self.border

    def selection_for(self, focused: bool) -> str:
        return self.selected if focused else self.selected_blurred


# =============================================================================
# Theme Definitions
# =============================================================================

# Dark theme - default, easy on the eyes
DARK_THEME = Theme(
    name="dark",
    primary="#5F87FF",
    secondary="#5F5FD7",
    accent="#FF06B7",
    foreground="#E0E0E0",
    background="#1A1A1A",
    surface="#2A2A2A",
    panel="#333333",
    success="#50D8D7",
    warning="#FB8B24",
    error="#FF5252",
    dark=True,
)

# Light theme - for daylight work
LIGHT_THEME = Theme(
    name="light",
    primary="#3B60E4",
    secondary="#5F5FD7",
    accent="#D7005F",
    foreground="#1A1A1A",
    background="#F5F5F5",
    surface="#FFFFFF",
    panel="#E8E8E8",
    success="#00C853",
    warning="#FFB300",
    error="#D32F2F",
    dark=False,
)

DARK_PANEL_STYLE = PanelStyle()

LIGHT_PANEL_STYLE = PanelStyle(
    border="color(245)",
    border_focused="#3B60E4",
    selected="white on #3B60E4",
    selected_blurred="black on color(250)",
    muted="color(244)",
    info_border="#3B60E4",
    form_label="#D7005F",
    form_focus="#3B60E4",
)

# List of available themes in cycle order
THEMES = [DARK_THEME, LIGHT_THEME]
THEME_NAMES = [t.name for t in THEMES]

PANEL_STYLES = {
    "dark": DARK_PANEL_STYLE,
    "light": LIGHT_PANEL_STYLE,
}


def get_theme(name: str) -> Theme:
    """Get a theme by name."""
    for theme in THEMES:
        if theme.name == name:
            return theme
    return DARK_THEME


def get_panel_style(name: str) -> PanelStyle:
    """Get the panel style matching a theme name."""
    return PANEL_STYLES.get(name, DARK_PANEL_STYLE)
