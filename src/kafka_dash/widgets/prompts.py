"""Input forms for creating topics and resetting consumer offsets."""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from rich import box
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from kafka_dash.keys import BACKSPACE, CANCEL, ENTER, ESC, SHIFT_TAB, TAB
from kafka_dash.messages import (
    AddTopicSubmitted,
    Command,
    FormCancelled,
    KeyPressed,
    ResetOffsetSubmitted,
    SessionMessage,
    emit,
    error,
)
from kafka_dash.themes import PanelStyle

logger = logging.getLogger(__name__)

TOPIC_NAME_LIMIT = 64
NUMBER_LIMIT = 32
OFFSET_LIMIT = 20

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# ASCII digits only: int() would also accept other Unicode digits and underscores
_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")

NEXT_KEYS = frozenset({TAB, "down"})
PREVIOUS_KEYS = frozenset({SHIFT_TAB, "up"})

Validator = Callable[[str], Optional[str]]


def parse_int64(value: str) -> int:
    """Parse a base-10 integer in the signed 64-bit range.

    Raises:
        ValueError: If value is not a plain integer or does not fit in 64 bits.
    """
    if not _INTEGER_PATTERN.fullmatch(value):
        raise ValueError(f'"{value}" is not a valid base-10 integer')
    number = int(value)
    if not INT64_MIN <= number <= INT64_MAX:
        raise ValueError(f'"{value}" is out of the 64-bit integer range')
    return number


def validate_int64(value: str) -> str | None:
    try:
        parse_int64(value)
    except ValueError as e:
        return str(e)
    return None


def validate_topic_name(value: str) -> str | None:
    if not value:
        return "topic name must not be empty"
    if len(value) > TOPIC_NAME_LIMIT:
        return f"topic name must be at most {TOPIC_NAME_LIMIT} characters"
    return None


class FormField:
    """A single-line text input."""

    def __init__(self, label: str, char_limit: int, validate: Validator | None = None) -> None:
        self.label = label
        self.char_limit = char_limit
        self._validate = validate
        self.value = ""

    def insert(self, text: str) -> None:
        room = self.char_limit - len(self.value)
        if room > 0:
            self.value += text[:room]

    def delete(self) -> None:
        self.value = self.value[:-1]

    def validate(self) -> str | None:
        """Return an error description, or None when the value is acceptable."""
        if self._validate is None:
            return None
        return self._validate(self.value)


class FormPanel:
    """Fields plus a submit button, navigated with tab and the arrow keys.

    The focus index runs over the fields and one extra slot for the submit
    button. Subclasses name the form and build the submitted message.
    """

    name = "form"
    title = "Form"

    def __init__(self, fields: list[FormField]) -> None:
        self.fields = fields
        self.focus_index = 0

    @property
    def submit_focused(self) -> bool:
        return self.focus_index == len(self.fields)

    @property
    def focused_field(self) -> FormField | None:
        if self.submit_focused:
            return None
        return self.fields[self.focus_index]

    def update(self, message: SessionMessage) -> list[Command]:
        if not isinstance(message, KeyPressed):
            return []

        key = message.key
        if key in (ESC, CANCEL):
            logger.debug("Form %s cancelled", self.name)
            return [emit(FormCancelled(self.name))]
        if key == ENTER:
            return [self._submit()]
        if key in NEXT_KEYS:
            self._cycle(1)
        elif key in PREVIOUS_KEYS:
            self._cycle(-1)
        elif key == BACKSPACE:
            if self.focused_field is not None:
                self.focused_field.delete()
        elif message.is_printable and self.focused_field is not None:
            self.focused_field.insert(message.character or "")
        return []

    def _cycle(self, step: int) -> None:
        self.focus_index = (self.focus_index + step) % (len(self.fields) + 1)

    def _submit(self) -> Command:
        for form_field in self.fields:
            problem = form_field.validate()
            if problem is not None:
                logger.debug("Form %s rejected: %s", self.name, problem)
                return error(f"{form_field.label}: {problem}")
        submitted = self.build_message()
        logger.info("Form %s submitted: %s", self.name, submitted)
        return emit(submitted)

    def build_message(self) -> SessionMessage:
        raise NotImplementedError

    def describe(self, style: PanelStyle) -> list[RenderableType]:
        """Extra lines shown above the fields."""
        return []

    def render(self, style: PanelStyle) -> RenderableType:
        lines: list[RenderableType] = self.describe(style)
        for index, form_field in enumerate(self.fields):
            focused = index == self.focus_index
            lines.append(Text(form_field.label, style=style.form_label))
            value = Text("> ", style=style.form_focus if focused else style.muted)
            value.append(form_field.value)
            if focused:
                value.append("█", style=style.form_focus)
            lines.append(value)
            lines.append(Text(""))

        button_style = f"bold {style.form_focus}" if self.submit_focused else style.muted
        lines.append(Text("[ Submit ]", style=button_style))
        return Panel(
            Group(*lines),
            title=self.title,
            box=box.ROUNDED,
            border_style=style.form_focus,
            width=TOPIC_NAME_LIMIT + 8,
        )


class AddTopicPrompt(FormPanel):
    name = "add_topic"
    title = "New Topic"

    def __init__(self) -> None:
        self.topic_name = FormField("Topic Name", TOPIC_NAME_LIMIT, validate_topic_name)
        self.partitions = FormField("Partitions", NUMBER_LIMIT, validate_int64)
        self.replication_factor = FormField("Replication Factor", NUMBER_LIMIT, validate_int64)
        super().__init__([self.topic_name, self.partitions, self.replication_factor])

    def build_message(self) -> AddTopicSubmitted:
        return AddTopicSubmitted(
            name=self.topic_name.value,
            partitions=parse_int64(self.partitions.value),
            replication_factor=parse_int64(self.replication_factor.value),
        )


class ResetOffsetPrompt(FormPanel):
    name = "reset_offset"
    title = "Reset Offset"

    def __init__(self, group_id: str, topic_name: str) -> None:
        self.group_id = group_id
        self.topic_name = topic_name
        self.offset = FormField("Offset", OFFSET_LIMIT, validate_int64)
        super().__init__([self.offset])

    def describe(self, style: PanelStyle) -> list[RenderableType]:
        return [
            Text.assemble(("Group: ", style.form_label), self.group_id),
            Text.assemble(("Topic: ", style.form_label), self.topic_name),
            Text(""),
        ]

    def build_message(self) -> ResetOffsetSubmitted:
        return ResetOffsetSubmitted(
            group_id=self.group_id,
            topic_name=self.topic_name,
            offset=parse_int64(self.offset.value),
        )
