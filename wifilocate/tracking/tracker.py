"""Best-fit location tracking over short and long reading windows."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from wifilocate.collaborators import Fingerprint, Presenter, Scorer, Topology
from wifilocate.config import LocateConfig, validate_config
from wifilocate.tracking.motion import MotionGate
from wifilocate.tracking.window import ReadingWindow

log = logging.getLogger(__name__)


class MovementStatus(Enum):
    MOVING = "Moving"
    STATIONARY = "Stationary"


class Verdict(Enum):
    NO_CANDIDATES = "no-candidates"
    FIRST_FIX = "first-fix"
    SAME_IMPROVED = "same-improved"
    SAME_REJECTED = "same-rejected"
    STICKY = "sticky"
    PLAUSIBLE = "plausible"
    IMPLAUSIBLE = "implausible"


@dataclass
class TrackerState:
    best_fit_index: int | None = None
    best_fit_id: str | None = None
    best_fit_x: float = 0.0
    best_fit_y: float = 0.0
    best_fit_level: int | None = None
    best_fit_time_ms: int = 0
    best_fit_score: float = 0.0
    nearest_connection_index: int = -1

    @property
    def has_fix(self) -> bool:
        return self.best_fit_index is not None


@dataclass
class Decision:
    verdict: Verdict
    adopted: bool
    movement: MovementStatus
    candidate_index: int | None = None
    candidate_score: float | None = None
    time_to_there_ms: float | None = None
    level_changed: bool = False


def best_candidate(fingerprints: Sequence[Fingerprint]) -> int | None:
    """Index of the highest score. Ties go to the lowest index.

    NaN and infinite scores are skipped; None when no score is finite.
    """
    best_index: int | None = None
    best_score = -math.inf
    for index, fingerprint in enumerate(fingerprints):
        if not math.isfinite(fingerprint.score):
            continue
        if best_index is None or fingerprint.score > best_score:
            best_index = index
            best_score = fingerprint.score
    return best_index


def _distance(x0: float, y0: float, x1: float, y1: float) -> float:
    return math.hypot(x1 - x0, y1 - y0)


class PositionTracker:
    """Decides when the reported location moves.

    A short window follows the device while it moves; a long window,
    emptied whenever the motion gate fires, takes over once it holds more
    than ``min_stationary_obs`` scans. The best-scoring fingerprint replaces
    the current fix only if it passes, in order:

    1. first fix: always taken;
    2. same fingerprint: taken only on a higher score and when
       ``allow_same_position_update`` is set;
    3. sticky period: a different fingerprint must beat the current score
       by ``sticky_min_improvement`` until ``sticky_max_time_ms`` has passed;
    4. travel time: walking there (via the nearest stairs/lift when the
       level differs) must take less time than has passed since the last
       fix, after forgiving ``error_accommodation_m`` of distance.
    """

    def __init__(
        self,
        config: LocateConfig,
        scorer: Scorer,
        topology: Topology,
        motion_gate: MotionGate | None = None,
        presenter: Presenter | None = None,
    ) -> None:
        self.config = validate_config(config)
        self.scorer = scorer
        self.topology = topology
        self.motion_gate = motion_gate
        self.presenter = presenter
        self.short_window = ReadingWindow(config.short_window_length)
        self.long_window = ReadingWindow(config.max_stationary_obs)
        self.state = TrackerState()

    def ingest(self, offset_ms: int, readings: Mapping[str, float]) -> None:
        """Add one scan to both windows, honouring a pending motion reset."""
        self.short_window.add_scan(offset_ms, dict(readings))
        if self.motion_gate is not None and self.motion_gate.consume_reset():
            offsets = self.long_window.offsets
            if offsets:
                log.debug(
                    "device moved, clearing %d stationary scans spanning %d ms",
                    len(offsets), offsets[-1] - offsets[0],
                )
            self.long_window.clear()
        self.long_window.add_scan(offset_ms, dict(readings))

    def active_window(self) -> tuple[ReadingWindow, MovementStatus]:
        if len(self.long_window) > self.config.min_stationary_obs:
            return self.long_window, MovementStatus.STATIONARY
        return self.short_window, MovementStatus.MOVING

    def update_best_fit(self, now_ms: int) -> Decision:
        """Score the active window and move the fix if the rules allow it."""
        window, movement = self.active_window()
        if self.presenter is not None:
            self.presenter.on_movement_status(movement.value)

        self.scorer.update_scores(window.summarize())
        fingerprints = self.scorer.fingerprints
        candidate_index = best_candidate(fingerprints)
        if candidate_index is None:
            return Decision(verdict=Verdict.NO_CANDIDATES, adopted=False, movement=movement)

        adopted, verdict, time_to_there = self.decide(candidate_index, now_ms)
        decision = Decision(
            verdict=verdict,
            adopted=adopted,
            movement=movement,
            candidate_index=candidate_index,
            candidate_score=fingerprints[candidate_index].score,
            time_to_there_ms=time_to_there,
        )
        if adopted:
            decision.level_changed = self._adopt(candidate_index, now_ms)
        return decision

    def decide(self, candidate_index: int, now_ms: int) -> tuple[bool, Verdict, float | None]:
        """Apply the hysteresis rules to a candidate. First matching rule wins."""
        state = self.state
        if state.best_fit_index is None:
            return True, Verdict.FIRST_FIX, None

        fingerprints = self.scorer.fingerprints
        candidate = fingerprints[candidate_index]
        current_score = fingerprints[state.best_fit_index].score
        dwell_ms = now_ms - state.best_fit_time_ms

        if candidate_index == state.best_fit_index:
            # score stored at adoption; the fresh one is the candidate itself
            if candidate.score > state.best_fit_score and self.config.allow_same_position_update:
                return True, Verdict.SAME_IMPROVED, None
            return False, Verdict.SAME_REJECTED, None

        if (
            candidate.score < current_score + self.config.sticky_min_improvement
            and dwell_ms <= self.config.sticky_max_time_ms
        ):
            return False, Verdict.STICKY, None

        time_to_there = self.time_to_reach_ms(self.travel_distance_px(candidate))
        if time_to_there < dwell_ms:
            log.debug(
                "moving to %s: time to there %.0f ms, here for %d ms",
                candidate.id, time_to_there, dwell_ms,
            )
            return True, Verdict.PLAUSIBLE, time_to_there
        log.debug(
            "staying: %s needs %.0f ms to reach, here for %d ms",
            candidate.id, time_to_there, dwell_ms,
        )
        return False, Verdict.IMPLAUSIBLE, time_to_there

    def travel_distance_px(self, candidate: Fingerprint) -> float:
        """Walking distance in pixels from the current fix to ``candidate``.

        Changing level routes through the connector nearest the current fix.
        """
        state = self.state
        if candidate.level == state.best_fit_level:
            return _distance(state.best_fit_x, state.best_fit_y, candidate.x, candidate.y)

        index = state.nearest_connection_index
        if index < 0 or state.best_fit_level is None:
            log.debug("no connector on level %s, using straight-line distance", state.best_fit_level)
            return _distance(state.best_fit_x, state.best_fit_y, candidate.x, candidate.y)

        to_connector = _distance(
            state.best_fit_x,
            state.best_fit_y,
            self.topology.connector_x(index, state.best_fit_level),
            self.topology.connector_y(index, state.best_fit_level),
        )
        from_connector = _distance(
            self.topology.connector_x(index, candidate.level),
            self.topology.connector_y(index, candidate.level),
            candidate.x,
            candidate.y,
        )
        return to_connector + from_connector

    def time_to_reach_ms(self, distance_px: float) -> float:
        meters = distance_px / self.config.pixels_per_meter
        return (meters - self.config.error_accommodation_m) / self.config.walking_pace_mps * 1000.0

    def _adopt(self, index: int, now_ms: int) -> bool:
        fingerprint = self.scorer.fingerprints[index]
        state = self.state
        level_changed = fingerprint.level != state.best_fit_level

        state.best_fit_index = index
        state.best_fit_id = fingerprint.id
        state.best_fit_x = fingerprint.x
        state.best_fit_y = fingerprint.y
        state.best_fit_level = fingerprint.level
        state.best_fit_time_ms = now_ms
        state.best_fit_score = fingerprint.score
        state.nearest_connection_index = self.topology.nearest_connection_index(
            fingerprint.level, fingerprint.x, fingerprint.y,
        )

        if level_changed:
            log.info("level changed to %d at %s", fingerprint.level, fingerprint.id)
            if self.presenter is not None:
                self.presenter.on_level_changed(fingerprint.level)
        return level_changed
