"""Startup splash with a progress bar."""

from __future__ import annotations

import random
import time
from typing import Callable

from rich.align import Align
from rich.console import Group, RenderableType
from rich.progress_bar import ProgressBar
from rich.text import Text

from kafka_dash.messages import Command, Resized, SessionMessage, Tick
from kafka_dash.themes import PanelStyle

STEPS = 10
MIN_DELAY = 0.1
MAX_DELAY = 0.5
BAR_WIDTH = 50


def random_delay() -> float:
    return random.uniform(MIN_DELAY, MAX_DELAY)


class StartupPanel:
    """Fills a progress bar one step per Tick.

    Each tick command sleeps for delay() seconds before producing the next
    Tick, so the splash stays up for one to five seconds by default.
    """

    name = "startup"

    def __init__(self, delay: Callable[[], float] = random_delay) -> None:
        self._delay = delay
        self.steps = 0
        self.width = 0
        self.height = 0

    def initialized(self) -> bool:
        return self.steps >= STEPS

    @property
    def percent(self) -> float:
        return min(self.steps, STEPS) / STEPS

    def start(self) -> Command:
        delay = self._delay

        def tick() -> Tick:
            seconds = delay()
            if seconds > 0:
                time.sleep(seconds)
            return Tick()

        return tick

    def update(self, message: SessionMessage) -> list[Command]:
        if self.initialized():
            return []
        if isinstance(message, Resized):
            self.width = message.width
            self.height = message.height
        elif isinstance(message, Tick):
            self.steps += 1
            if not self.initialized():
                return [self.start()]
        return []

    def render(self, style: PanelStyle) -> RenderableType:
        bar = ProgressBar(total=STEPS, completed=min(self.steps, STEPS), width=BAR_WIDTH)
        text = Text("Initializing ...", style=style.muted, justify="center")
        box = Group(Align.center(bar), Align.center(text))
        return Align.center(box, vertical="middle", height=self.height or None)
