"""Fixed-capacity window of recent scans, summarised per beacon."""

from __future__ import annotations

from collections import deque

import numpy as np

from wifilocate.collaborators import BeaconStats, ObservationSummary
from wifilocate.config import ConfigError


class ReadingWindow:
    """Ring buffer of scan snapshots.

    Each snapshot is a beacon_id -> strength dict. ``push`` opens a new empty
    slot (evicting the oldest once the window is full) and ``record`` fills
    the newest slot, so a scan is added with one ``push`` followed by one
    ``record`` per visible beacon.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ConfigError(f"window capacity must be positive, got {capacity!r}")
        self.capacity = capacity
        self._slots: deque[dict[str, float]] = deque(maxlen=capacity)
        self._offsets: deque[int] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def offsets(self) -> list[int]:
        """Tick offsets of the retained snapshots, oldest first."""
        return list(self._offsets)

    def push(self, offset_ms: int) -> None:
        self._slots.append({})
        self._offsets.append(offset_ms)

    def record(self, beacon_id: str, strength: float) -> None:
        # Callers push before recording; an empty window here is a bug upstream.
        self._slots[-1][beacon_id] = float(strength)

    def add_scan(self, offset_ms: int, readings: dict[str, float]) -> None:
        self.push(offset_ms)
        for beacon_id, strength in readings.items():
            self.record(beacon_id, strength)

    def clear(self) -> None:
        self._slots.clear()
        self._offsets.clear()

    def summarize(self) -> ObservationSummary:
        """Presence fraction, mean and population std-dev for every beacon seen.

        Beacons never seen in the window are left out rather than reported
        with zero presence. The population formula keeps a single reading
        well defined (stddev 0).
        """
        n = len(self._slots)
        if n == 0:
            return {}

        aggregate: dict[str, list[float]] = {}
        for slot in self._slots:
            for beacon_id, strength in slot.items():
                aggregate.setdefault(beacon_id, []).append(strength)

        summary: ObservationSummary = {}
        for beacon_id, values in aggregate.items():
            samples = np.asarray(values, dtype=np.float64)
            summary[beacon_id] = BeaconStats(
                presence=len(values) / n,
                mean=float(samples.mean()),
                stddev=float(samples.std(ddof=0)),
            )
        return summary
