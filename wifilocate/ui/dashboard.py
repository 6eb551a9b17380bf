"""Live terminal status panel using rich."""

from __future__ import annotations

import asyncio
import time

from rich.console import Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text


class Dashboard:
    """Presenter that keeps the latest notifications and shows them live."""

    def __init__(self, max_scores: int = 12) -> None:
        self.movement_status = "waiting"
        self.level: int | None = None
        self.position: tuple[float, float] | None = None
        self.scores: list[str] = []
        self.updates = 0
        self._max_scores = max_scores

    # -- Presenter callbacks --

    def on_movement_status(self, text: str) -> None:
        self.movement_status = text

    def on_level_changed(self, level: int) -> None:
        self.level = level

    def on_position_update(self, scores: list[str], x: float, y: float) -> None:
        self.scores = list(scores)
        self.position = (x, y)
        self.updates += 1

    # -- Rendering --

    def _header(self) -> Text:
        title = Text()
        title.append("wifilocate", "bold white")
        title.append(f"  {time.strftime('%H:%M:%S')}  ", "dim")
        color = "green" if self.movement_status == "Stationary" else "yellow"
        title.append(self.movement_status, color)
        return title

    def _location(self) -> Text:
        text = Text()
        level = "?" if self.level is None else str(self.level)
        text.append("level ", "dim")
        text.append(level, "bold cyan")
        if self.position is None:
            text.append("  no fix yet", "dim red")
        else:
            x, y = self.position
            text.append("  cursor ", "dim")
            text.append(f"({x:.0f}, {y:.0f})", "cyan")
        return text

    def _score_table(self) -> Table:
        table = Table(show_header=True, header_style="bold", expand=True, box=None)
        table.add_column("location")
        table.add_column("score", justify="right")
        for entry in self.scores[: self._max_scores]:
            name, _sep, score = entry.rpartition(" ")
            table.add_row(name or entry, score)
        return table

    def render(self) -> Panel:
        body = Group(self._header(), self._location(), self._score_table())
        return Panel(body, title="position", title_align="left", border_style="blue")

    async def run(self, shutdown: asyncio.Event, refresh: float = 0.5) -> None:
        with Live(self.render(), refresh_per_second=4) as live:
            while not shutdown.is_set():
                live.update(self.render())
                try:
                    await asyncio.wait_for(shutdown.wait(), timeout=refresh)
                except asyncio.TimeoutError:
                    pass
