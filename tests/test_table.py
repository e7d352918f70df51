"""Tests for TablePanel and the table-based panes."""

import pytest
from rich.console import Console

from kafka_dash.messages import (
    ClientConnected,
    ConnectionChanged,
    ConsumerSelected,
    ConsumersLoaded,
    ConsumersSelected,
    InfoSelected,
    KeyPressed,
    Reset,
    TopicConfigLoaded,
    TopicSelected,
    TopicsLoaded,
    TopicsSelected,
    run_command,
)
from kafka_dash.models import Consumer, ConsumerTopicPartition, Topic, TopicConfig, TopicRecord
from kafka_dash.themes import DARK_PANEL_STYLE
from kafka_dash.widgets import (
    MAX_RECORDS,
    Column,
    ConnectionPanel,
    DetailsPanel,
    MenuPanel,
    ResultPanel,
    TablePanel,
)


def make_table(rows=(), height=3) -> TablePanel:
    table = TablePanel([Column("Name", 10), Column("Value", 10)], rows, height=height)
    table.focus()
    return table


def key(name: str) -> KeyPressed:
    return KeyPressed(name, name if len(name) == 1 else None)


def render_text(panel) -> str:
    console = Console(width=120, record=True, color_system=None)
    console.print(panel.render(DARK_PANEL_STYLE))
    return console.export_text()


class TestTableRows:
    """Tests for rows and the selected row."""

    def test_empty_table_has_no_selection(self):
        table = make_table()
        table.set_rows([])
        assert table.selected_row() is None
        assert table.cursor is None

    def test_set_rows_selects_first_row(self):
        table = make_table([("a", "1")])
        table.set_cursor(0)
        table.set_rows([("b", "2"), ("c", "3")])
        assert table.selected_row() == ("b", "2")
        assert table.cursor == 0

    def test_set_rows_resets_cursor(self):
        table = make_table([("a", "1"), ("b", "2")])
        table.update(key("down"))
        table.set_rows([("c", "3"), ("d", "4")])
        assert table.cursor == 0

    def test_cells_are_strings(self):
        table = make_table([("a", 1)])
        assert table.selected_row() == ("a", "1")


class TestTableCursor:
    """Tests for cursor movement."""

    @pytest.fixture
    def table(self) -> TablePanel:
        return make_table([(f"row{i}", str(i)) for i in range(10)])

    def test_down_and_up(self, table):
        table.update(key("down"))
        table.update(key("j"))
        assert table.cursor == 2
        table.update(key("up"))
        table.update(key("k"))
        assert table.cursor == 0

    def test_cursor_clamped(self, table):
        table.update(key("up"))
        assert table.cursor == 0
        table.update(key("end"))
        table.update(key("down"))
        assert table.cursor == 9

    def test_home_end_vim(self, table):
        table.update(key("G"))
        assert table.cursor == 9
        table.update(key("g"))
        assert table.cursor == 0

    def test_page_keys_move_by_height(self, table):
        table.update(key("pagedown"))
        assert table.cursor == 3
        table.update(key("pageup"))
        assert table.cursor == 0

    def test_blurred_table_ignores_keys(self, table):
        table.blur()
        table.update(key("down"))
        assert table.cursor == 0
        assert not table.selection_changed

    def test_update_returns_no_commands(self, table):
        assert table.update(key("down")) == []

    def test_selection_changed(self, table):
        table.update(key("down"))
        assert table.selection_changed
        table.update(key("left"))
        assert not table.selection_changed

    def test_reset_clears_selection_changed(self, table):
        table.update(key("down"))
        table.update(Reset())
        assert not table.selection_changed

    def test_same_primary_key_is_not_a_change(self):
        table = make_table([("a", "1"), ("a", "2")])
        table.update(key("down"))
        assert table.cursor == 1
        assert not table.selection_changed


class TestTableRender:
    def test_window_follows_cursor(self):
        table = make_table([(f"row{i}", str(i)) for i in range(10)], height=3)
        table.update(key("end"))
        assert table.visible_range() == range(7, 10)
        text = render_text(table)
        assert "row9" in text
        assert "row0" not in text

    def test_renders_headers(self):
        text = render_text(make_table([("a", "1")]))
        assert "Name" in text
        assert "Value" in text


class TestConnectionPanel:
    def test_rows_are_connection_names(self, connections):
        panel = ConnectionPanel(connections)
        assert panel.rows == [("prod",), ("staging",)]
        assert panel.selected_connection().name == "prod"

    def test_cursor_move_emits_connection_changed(self, connections):
        panel = ConnectionPanel(connections)
        panel.focus()
        commands = panel.update(key("down"))
        assert len(commands) == 1
        message = run_command(commands[0])
        assert isinstance(message, ConnectionChanged)
        assert message.connection.name == "staging"

    def test_no_emit_without_change(self, connections):
        panel = ConnectionPanel(connections)
        panel.focus()
        assert panel.update(key("up")) == []


class TestMenuPanel:
    @pytest.mark.parametrize(
        "moves,expected",
        [(0, TopicsSelected), (1, ConsumersSelected), (2, InfoSelected)],
    )
    def test_client_connected_emits_current_entry(self, moves, expected, connections):
        panel = MenuPanel()
        panel.set_cursor(moves)
        commands = panel.update(ClientConnected(connections.default, object()))
        assert len(commands) == 1
        assert isinstance(run_command(commands[0]), expected)

    def test_selection_change_emits(self):
        panel = MenuPanel()
        panel.focus()
        commands = panel.update(key("down"))
        assert isinstance(run_command(commands[0]), ConsumersSelected)
        assert panel.is_consumers_selected()

    def test_fixed_entries(self):
        panel = MenuPanel()
        assert [row[0] for row in panel.rows] == ["Topics", "Consumer Groups", "Info"]
        assert panel.is_topics_selected()


class TestResultPanel:
    topics = (Topic("zeta", 1), Topic("alpha", 3), Topic("mid", 2))

    def test_topics_loaded_triggers_one_detail_load(self):
        """Loading N topics auto-selects exactly the first row by name."""
        panel = ResultPanel()
        commands = panel.update(TopicsLoaded(self.topics))

        assert len(commands) == 1
        assert run_command(commands[0]) == TopicSelected(Topic("alpha", 3))
        assert panel.rows == [("alpha", "3"), ("mid", "2"), ("zeta", "1")]

    def test_empty_collection_triggers_nothing(self):
        panel = ResultPanel()
        assert panel.update(TopicsLoaded(())) == []
        assert panel.selected_topic() is None

    def test_cursor_move_selects_topic(self):
        panel = ResultPanel()
        panel.focus()
        panel.update(TopicsLoaded(self.topics))
        commands = panel.update(key("down"))
        assert run_command(commands[0]) == TopicSelected(Topic("mid", 2))

    def test_consumers_sorted_by_id(self):
        panel = ResultPanel()
        consumers = (
            Consumer("g2", "c-2", "Stable"),
            Consumer("g1", "c-1", "Stable"),
        )
        commands = panel.update(ConsumersLoaded(consumers))
        assert [row[0] for row in panel.rows] == ["c-1", "c-2"]
        assert run_command(commands[0]) == ConsumerSelected(consumers[1])
        assert [c.title for c in panel.columns] == ["ConsumerId", "GroupId", "State"]

    def test_memberless_groups_stay_distinct(self):
        panel = ResultPanel()
        panel.update(ConsumersLoaded((Consumer("a", "", "Empty"), Consumer("b", "", "Empty"))))
        assert [row[0] for row in panel.rows] == ["(a)", "(b)"]

    def test_show_topics_clears(self):
        panel = ResultPanel()
        panel.update(ConsumersLoaded((Consumer("g", "c", "Stable"),)))
        panel.show_topics()
        assert panel.rows == []
        assert panel.selected_consumer() is None
        assert [c.title for c in panel.columns] == ["Topics", "# of Partitions"]


class TestDetailsPanel:
    def test_config_sorted_by_key(self):
        panel = DetailsPanel()
        panel.show_topic_config("orders")
        panel.update(TopicConfigLoaded(TopicConfig("orders", {"b": "2", "a": "1"})))
        assert panel.rows == [("a", "1"), ("b", "2")]

    def test_consumer_selected_shows_assignments(self):
        panel = DetailsPanel()
        consumer = Consumer(
            "g",
            "c",
            "Stable",
            (ConsumerTopicPartition("t", 2, 5), ConsumerTopicPartition("t", 0, 9)),
        )
        panel.update(ConsumerSelected(consumer))
        assert panel.rows == [("t", "9", "0"), ("t", "5", "2")]
        assert panel.selected_assignment() == ConsumerTopicPartition("t", 0, 9)

    def test_no_assignment_outside_consumer_mode(self):
        panel = DetailsPanel()
        panel.show_topic_config("t")
        assert panel.selected_assignment() is None

    def test_records_capped(self):
        panel = DetailsPanel()
        panel.show_messages("t")
        panel.append_records(TopicRecord(0, i, "k", "v") for i in range(MAX_RECORDS + 5))
        assert len(panel.rows) == MAX_RECORDS
        assert panel.rows[0][1] == "5"
        assert panel.cursor == MAX_RECORDS - 1

    def test_records_ignored_in_other_modes(self):
        panel = DetailsPanel()
        panel.show_topic_config("t")
        panel.append_records([TopicRecord(0, 1, "k", "v")])
        assert panel.rows == []
