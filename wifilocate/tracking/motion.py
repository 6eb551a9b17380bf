"""Accelerometer motion gate for the long reading window."""

from __future__ import annotations

import logging
import math
import threading

log = logging.getLogger(__name__)

GRAVITY_EARTH = 9.80665  # m/s^2, resting magnitude
ACCEL_DECAY = 0.9
MOTION_THRESHOLD = 0.5


class MotionGate:
    """Flags the moment the device starts moving.

    Samples arrive from a sensor thread; the locate loop consumes the flag.
    The filter is a single-pole high-pass on the acceleration magnitude:
    ``accel = accel * 0.9 + (m - m_prev)``. Crossing the threshold arms a
    one-shot reset that ``consume_reset`` reads and clears atomically.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._accel = 0.0
        self._last_magnitude = GRAVITY_EARTH
        self._reset_pending = False
        self.resets_signalled = 0

    @property
    def reset_pending(self) -> bool:
        with self._lock:
            return self._reset_pending

    @property
    def accel(self) -> float:
        with self._lock:
            return self._accel

    def on_sample(self, x: float, y: float, z: float) -> bool:
        """Feed one accelerometer sample. Returns True while a reset is pending."""
        magnitude = math.sqrt(x * x + y * y + z * z)
        with self._lock:
            delta = magnitude - self._last_magnitude
            self._last_magnitude = magnitude
            self._accel = self._accel * ACCEL_DECAY + delta
            if self._accel > MOTION_THRESHOLD and not self._reset_pending:
                self._reset_pending = True
                self.resets_signalled += 1
                log.debug("motion detected (accel=%.3f), long window reset armed", self._accel)
            return self._reset_pending

    def consume_reset(self) -> bool:
        """Swap the pending flag for False and return its previous value."""
        with self._lock:
            pending = self._reset_pending
            self._reset_pending = False
            return pending
