from __future__ import annotations

import json
from pathlib import Path

import pytest

from wifilocate.site.siteplan import load, save

_SITE = {
    "pixels_per_meter": 12.5,
    "fingerprints": [
        {
            "id": "lobby",
            "x": 120,
            "y": 340,
            "level": 0,
            "beacons": {
                "aa:bb:cc:dd:ee:01": {"presence": 0.9, "mean": -48.0, "stddev": 2.5},
                "aa:bb:cc:dd:ee:02": {"mean": -71.0},
            },
        },
        {"id": "landing", "x": 80, "y": 60, "level": 1},
    ],
    "connections": [
        {"name": "stairs", "positions": {"0": [100, 300], "1": [90, 70]}},
    ],
}


def test_load_site_plan(tmp_path: Path) -> None:
    path = tmp_path / "site.json"
    path.write_text(json.dumps(_SITE))

    plan = load(path)
    lobby, landing = plan.fingerprints
    assert plan.pixels_per_meter == 12.5
    assert (lobby.x, lobby.y, lobby.level) == (120.0, 340.0, 0)
    assert lobby.beacons["aa:bb:cc:dd:ee:02"].presence == 1.0
    assert lobby.beacons["aa:bb:cc:dd:ee:02"].stddev == 0.0
    assert landing.beacons == {}

    topology = plan.topology()
    assert topology.nearest_connection_index(1, 0.0, 0.0) == 0
    assert topology.connector_x(0, 1) == 90.0
    assert len(plan.database().fingerprints) == 2


def test_save_then_load_keeps_site(tmp_path: Path) -> None:
    source = tmp_path / "site.json"
    source.write_text(json.dumps(_SITE))
    plan = load(source)

    copy = tmp_path / "nested" / "copy.json"
    save(plan, copy)
    assert load(copy) == plan


def test_connector_without_levels_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "site.json"
    path.write_text(json.dumps({"connections": [{"name": "void", "positions": {}}]}))
    with pytest.raises(ValueError):
        load(path)
