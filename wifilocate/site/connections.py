"""Stairs and lifts linking the levels of a site."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


@dataclass
class Connector:
    name: str
    # level -> (x, y) in that level's map pixels
    positions: dict[int, tuple[float, float]] = field(default_factory=dict)


class ConnectionPoints:
    """Topology lookup over an ordered list of connectors.

    Indices are positions in the connector list and stay valid across
    levels, so the connector nearest the current fix can be followed to the
    candidate's level.
    """

    def __init__(self, connectors: list[Connector] | None = None) -> None:
        self.connectors = list(connectors or [])

    def nearest_connection_index(self, level: int, x: float, y: float) -> int:
        """Closest connector on ``level`` to (x, y), or -1 if the level has none."""
        candidates = [
            (index, connector.positions[level])
            for index, connector in enumerate(self.connectors)
            if level in connector.positions
        ]
        if not candidates:
            return -1
        points = np.array([pos for _index, pos in candidates], dtype=np.float64)
        dists = np.linalg.norm(points - np.array([x, y], dtype=np.float64), axis=1)
        return candidates[int(np.argmin(dists))][0]

    def _position(self, index: int, level: int) -> tuple[float, float]:
        connector = self.connectors[index]
        if level in connector.positions:
            return connector.positions[level]
        # A connector spans its levels at one horizontal spot; reuse any listed level.
        first_level = next(iter(connector.positions))
        return connector.positions[first_level]

    def connector_x(self, index: int, level: int) -> float:
        return float(self._position(index, level)[0])

    def connector_y(self, index: int, level: int) -> float:
        return float(self._position(index, level)[1])
