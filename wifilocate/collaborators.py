"""Contracts between the tracking core and the collaborators it drives.

The core never owns a fingerprint database, a radio or a screen. It polls a
``SignalSource``, hands observation summaries to a ``Scorer``, asks a
``Topology`` where the stairs are, and tells a ``Presenter`` what changed.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True, slots=True)
class BeaconStats:
    presence: float  # fraction of scans in which the beacon was seen, 0-1
    mean: float
    stddev: float


# beacon_id -> stats over a reading window
ObservationSummary = dict[str, BeaconStats]


@dataclass
class Fingerprint:
    id: str
    x: float
    y: float
    level: int
    beacons: dict[str, BeaconStats] = field(default_factory=dict)
    score: float = 0.0  # rewritten by the scorer every decision


class SignalSource(Protocol):
    def get_scan(self, offset_ms: int) -> Mapping[str, float]:
        """Return beacon_id -> signal strength; an empty mapping when nothing is visible."""


class Scorer(Protocol):
    @property
    def fingerprints(self) -> Sequence[Fingerprint]:
        """Known locations in a stable order; indices are used as location handles."""

    def update_scores(self, summary: ObservationSummary) -> None:
        """Recompute ``score`` on every fingerprint from the summary."""

    def scores_for_level(self, level: int) -> list[str]:
        """Display strings for the fingerprints on one level."""


class Topology(Protocol):
    def nearest_connection_index(self, level: int, x: float, y: float) -> int:
        """Index of the closest stairs/lift on ``level``, or -1 when there is none."""

    def connector_x(self, index: int, level: int) -> float: ...

    def connector_y(self, index: int, level: int) -> float: ...


class Presenter(Protocol):
    def on_movement_status(self, text: str) -> None: ...

    def on_level_changed(self, level: int) -> None: ...

    def on_position_update(self, scores: list[str], x: float, y: float) -> None: ...
