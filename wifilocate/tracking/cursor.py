"""Constant-speed cursor drift toward the best-fit location."""

from __future__ import annotations

import math
from dataclasses import dataclass

from wifilocate.config import ConfigError


@dataclass
class CursorState:
    current_x: float = 0.0
    current_y: float = 0.0
    dx: float = 0.0
    dy: float = 0.0
    last_update_ms: int | None = None


class CursorAnimator:
    """Moves the displayed position ``step_px`` per tick toward the target.

    The heading is only recomputed when a new fix arrives, so the cursor
    glides in a straight line between sparse updates.
    """

    def __init__(self, step_px: float) -> None:
        if step_px <= 0:
            raise ConfigError(f"cursor step must be positive, got {step_px!r}")
        self.step_px = step_px
        self.state = CursorState()

    @property
    def initialized(self) -> bool:
        return self.state.last_update_ms is not None

    @property
    def position(self) -> tuple[float, float]:
        return (self.state.current_x, self.state.current_y)

    def snap(self, x: float, y: float, now_ms: int) -> None:
        s = self.state
        s.current_x = x
        s.current_y = y
        s.dx = 0.0
        s.dy = 0.0
        s.last_update_ms = now_ms

    def update(self, target_x: float, target_y: float, now_ms: int, new_fix: bool) -> tuple[float, float]:
        """Advance one tick. Returns the displayed position."""
        if not self.initialized:
            self.snap(target_x, target_y, now_ms)
            return self.position

        s = self.state
        s.last_update_ms = now_ms
        half_step = self.step_px / 2.0
        if abs(target_x - s.current_x) < half_step and abs(target_y - s.current_y) < half_step:
            self.snap(target_x, target_y, now_ms)
        elif new_fix:
            theta = math.atan2(target_y - s.current_y, target_x - s.current_x)
            s.dx = self.step_px * math.cos(theta)
            s.dy = self.step_px * math.sin(theta)
        else:
            s.current_x += s.dx
            s.current_y += s.dy
        return self.position
