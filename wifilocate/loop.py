"""Fixed-cadence locate loop: scan -> windows -> best fit -> cursor -> presenter."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass

from wifilocate.collaborators import Presenter, SignalSource
from wifilocate.tracking.cursor import CursorAnimator
from wifilocate.tracking.tracker import Decision, PositionTracker

log = logging.getLogger(__name__)

_CHANGE_TOLERANCE = 1e-9


def scan_changed(previous: Mapping[str, float] | None, current: Mapping[str, float]) -> bool:
    """True when ``current`` is a new scan rather than a repeat of ``previous``."""
    if previous is None:
        return True
    if previous.keys() != current.keys():
        return True
    return any(abs(previous[k] - current[k]) > _CHANGE_TOLERANCE for k in current)


@dataclass
class TickResult:
    offset_ms: int
    new_scan: bool
    x: float
    y: float
    decision: Decision | None = None
    scores: list[str] | None = None


class LogPresenter:
    """Headless presenter: logs movement and level changes."""

    def __init__(self) -> None:
        self._status: str | None = None

    def on_movement_status(self, text: str) -> None:
        if text != self._status:
            log.info("movement: %s", text)
            self._status = text

    def on_level_changed(self, level: int) -> None:
        log.info("now on level %d", level)

    def on_position_update(self, scores: list[str], x: float, y: float) -> None:
        log.debug("position (%.1f, %.1f) %s", x, y, ", ".join(scores))


class PresentationQueue:
    """Presenter that hands notifications to another presenter in order.

    Calls made by the loop only enqueue; ``drain`` runs as its own task and
    dispatches one notification at a time, so a slow display never stalls
    the loop and never sees updates out of order.
    """

    def __init__(self, target: Presenter) -> None:
        self.target = target
        self._queue: asyncio.Queue[tuple[str, tuple]] = asyncio.Queue()

    def on_movement_status(self, text: str) -> None:
        self._queue.put_nowait(("on_movement_status", (text,)))

    def on_level_changed(self, level: int) -> None:
        self._queue.put_nowait(("on_level_changed", (level,)))

    def on_position_update(self, scores: list[str], x: float, y: float) -> None:
        self._queue.put_nowait(("on_position_update", (list(scores), x, y)))

    def dispatch_pending(self) -> int:
        """Deliver everything queued so far. Returns the number delivered."""
        delivered = 0
        while not self._queue.empty():
            self._dispatch(*self._queue.get_nowait())
            delivered += 1
        return delivered

    def _dispatch(self, method: str, args: tuple) -> None:
        try:
            getattr(self.target, method)(*args)
        except Exception:
            log.exception("presenter %s failed", method)

    async def drain(self, shutdown: asyncio.Event) -> None:
        while not shutdown.is_set():
            get_task = asyncio.ensure_future(self._queue.get())
            stop_task = asyncio.ensure_future(shutdown.wait())
            await asyncio.wait({get_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
            stop_task.cancel()
            if get_task.done():
                self._dispatch(*get_task.result())
            else:
                get_task.cancel()
        self.dispatch_pending()


class LocateLoop:
    """Single writer of tracker and cursor state.

    ``tick`` performs one iteration synchronously; ``run`` repeats it every
    ``cadence_ms`` until the shutdown event is set.
    """

    def __init__(
        self,
        source: SignalSource,
        tracker: PositionTracker,
        animator: CursorAnimator,
        presenter: Presenter | None = None,
        cadence_ms: int | None = None,
    ) -> None:
        self.source = source
        self.tracker = tracker
        self.animator = animator
        self.presenter = presenter
        self.cadence_ms = cadence_ms if cadence_ms is not None else tracker.config.cadence_ms
        self._last_readings: dict[str, float] | None = None
        self._scores: list[str] | None = None

    def tick(self, offset_ms: int) -> TickResult:
        readings = dict(self.source.get_scan(offset_ms))
        new_scan = scan_changed(self._last_readings, readings)
        state = self.tracker.state
        decision: Decision | None = None

        if new_scan:
            self._last_readings = readings
            self.tracker.ingest(offset_ms, readings)
            decision = self.tracker.update_best_fit(offset_ms)
            if decision.level_changed and self.animator.initialized:
                # no drifting across levels
                self.animator.snap(state.best_fit_x, state.best_fit_y, offset_ms)
            if state.has_fix:
                self.animator.update(state.best_fit_x, state.best_fit_y, offset_ms, new_fix=True)
                self._scores = self.tracker.scorer.scores_for_level(state.best_fit_level)
        elif state.has_fix:
            self.animator.update(state.best_fit_x, state.best_fit_y, offset_ms, new_fix=False)

        x, y = self.animator.position
        if self._scores is not None and self.presenter is not None:
            self.presenter.on_position_update(self._scores, x, y)
        return TickResult(
            offset_ms=offset_ms,
            new_scan=new_scan,
            x=x,
            y=y,
            decision=decision,
            scores=self._scores,
        )

    async def run(self, shutdown: asyncio.Event) -> None:
        period = self.cadence_ms / 1000.0
        started = time.monotonic()
        log.info("locate loop started, period %d ms", self.cadence_ms)
        while not shutdown.is_set():
            now = time.monotonic()
            self.tick(int((now - started) * 1000))

            elapsed = time.monotonic() - now
            sleep_time = max(0.0, period - elapsed)
            try:
                await asyncio.wait_for(shutdown.wait(), timeout=sleep_time)
                break
            except asyncio.TimeoutError:
                pass
        log.info("locate loop stopped")
