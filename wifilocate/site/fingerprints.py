"""In-memory fingerprint database with Gaussian likelihood scoring."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np

from wifilocate.collaborators import BeaconStats, Fingerprint, ObservationSummary

MIN_STD = 1.0  # dB floor so a perfectly steady recording does not explode the likelihood
MISSING_PENALTY = 3.0


def score_fingerprint(
    fingerprint: Fingerprint,
    summary: ObservationSummary,
    min_std: float = MIN_STD,
    missing_penalty: float = MISSING_PENALTY,
) -> float:
    """Log-likelihood style score of an observation at a recorded location.

    Shared beacons contribute ``-0.5 * z^2 - log(sigma)`` weighted by how
    often the beacon was observed, where sigma combines both spreads. A
    beacon present on only one side costs ``missing_penalty`` scaled by its
    presence on that side.
    """
    shared = [b for b in fingerprint.beacons if b in summary]
    score = 0.0
    if shared:
        recorded = fingerprint.beacons
        obs_mean = np.array([summary[b].mean for b in shared], dtype=np.float64)
        obs_std = np.array([summary[b].stddev for b in shared], dtype=np.float64)
        weight = np.array([summary[b].presence for b in shared], dtype=np.float64)
        fp_mean = np.array([recorded[b].mean for b in shared], dtype=np.float64)
        fp_std = np.array([recorded[b].stddev for b in shared], dtype=np.float64)

        sigma = np.maximum(np.sqrt(fp_std**2 + obs_std**2), min_std)
        z = (obs_mean - fp_mean) / sigma
        score += float(np.sum(weight * (-0.5 * z**2 - np.log(sigma))))

    unseen = sum(s.presence for b, s in fingerprint.beacons.items() if b not in summary)
    unexpected = sum(s.presence for b, s in summary.items() if b not in fingerprint.beacons)
    return score - missing_penalty * (unseen + unexpected)


class FingerprintDatabase:
    """Scorer over a fixed list of fingerprints. List order is the tie-break order."""

    def __init__(
        self,
        fingerprints: Iterable[Fingerprint] = (),
        min_std: float = MIN_STD,
        missing_penalty: float = MISSING_PENALTY,
    ) -> None:
        self._fingerprints = list(fingerprints)
        self.min_std = min_std
        self.missing_penalty = missing_penalty

    @property
    def fingerprints(self) -> Sequence[Fingerprint]:
        return tuple(self._fingerprints)

    def update_scores(self, summary: ObservationSummary) -> None:
        for fingerprint in self._fingerprints:
            fingerprint.score = score_fingerprint(
                fingerprint,
                summary,
                min_std=self.min_std,
                missing_penalty=self.missing_penalty,
            )

    def scores_for_level(self, level: int) -> list[str]:
        return [
            f"{fp.id} {fp.score:.1f}"
            for fp in self._fingerprints
            if fp.level == level
        ]

