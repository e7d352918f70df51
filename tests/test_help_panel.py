"""Tests for the help panel widget."""

from rich.console import Console

from kafka_dash.keys import FULL_HELP, MENU, NEXT_PANE, QUIT_HELP, SHORT_HELP, UP
from kafka_dash.messages import KeyPressed
from kafka_dash.themes import DARK_PANEL_STYLE
from kafka_dash.widgets.help_panel import HelpPanel, _format_key, format_keys


def render_text(panel: HelpPanel) -> str:
    console = Console(width=160, record=True, color_system=None)
    console.print(panel.render(DARK_PANEL_STYLE))
    return console.export_text()


class TestFormatKey:
    """Test key formatting for display."""

    def test_mapped_keys(self):
        """Named keys should use their display form."""
        assert _format_key("question_mark") == "?"
        assert _format_key("escape") == "esc"
        assert _format_key("up") == "↑"

    def test_letters_keep_case(self):
        """g and G are different bindings."""
        assert _format_key("g") == "g"
        assert _format_key("G") == "G"

    def test_modifier_combination(self):
        """Modifier combos map each part."""
        assert _format_key("ctrl+c") == "ctrl+c"
        assert _format_key("shift+tab") == "shift+tab"

    def test_format_keys_joins_alternatives(self):
        """All keys of a binding are shown."""
        assert format_keys(UP) == "↑/k"
        assert format_keys(QUIT_HELP) == "q/ctrl+c"
        assert format_keys(NEXT_PANE) == "tab/shift+tab"


class TestHelpPanel:
    """Tests for the short and expanded help views."""

    def test_starts_short(self):
        """Short help is shown by default."""
        panel = HelpPanel()
        assert panel.show_all is False
        text = render_text(panel)
        for binding in SHORT_HELP:
            assert binding.description in text
        assert MENU.description not in text

    def test_toggle_expands(self):
        """Toggling shows every documented binding."""
        panel = HelpPanel()
        panel.toggle()
        assert panel.show_all is True
        text = render_text(panel)
        for column in FULL_HELP:
            for binding in column:
                assert binding.description in text

    def test_toggle_twice_restores(self):
        panel = HelpPanel()
        panel.toggle()
        panel.toggle()
        assert panel.show_all is False

    def test_update_is_inert(self):
        """The help panel never produces commands."""
        assert HelpPanel().update(KeyPressed("?")) == []
