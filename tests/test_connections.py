from __future__ import annotations

from wifilocate.site.connections import ConnectionPoints, Connector


def _points() -> ConnectionPoints:
    return ConnectionPoints([
        Connector(name="lift", positions={0: (10.0, 10.0), 1: (12.0, 11.0), 2: (12.0, 11.0)}),
        Connector(name="stairs", positions={0: (100.0, 50.0), 1: (104.0, 52.0)}),
    ])


def test_nearest_connection_per_level() -> None:
    points = _points()
    assert points.nearest_connection_index(0, 0.0, 0.0) == 0
    assert points.nearest_connection_index(0, 90.0, 40.0) == 1
    assert points.nearest_connection_index(2, 90.0, 40.0) == 0


def test_no_connection_on_level() -> None:
    assert _points().nearest_connection_index(5, 0.0, 0.0) == -1
    assert ConnectionPoints().nearest_connection_index(0, 0.0, 0.0) == -1


def test_connector_coordinates_are_per_level() -> None:
    points = _points()
    assert (points.connector_x(1, 0), points.connector_y(1, 0)) == (100.0, 50.0)
    assert (points.connector_x(1, 1), points.connector_y(1, 1)) == (104.0, 52.0)
    # stairs do not reach level 2; fall back to their first listed level
    assert (points.connector_x(1, 2), points.connector_y(1, 2)) == (100.0, 50.0)
