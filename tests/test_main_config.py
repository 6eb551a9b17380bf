from __future__ import annotations

import sys
from pathlib import Path

import pytest

from wifilocate.config import LocateConfig
from wifilocate.main import build_config, load_site
from wifilocate.site.siteplan import SitePlan, save


def test_cli_overrides_apply(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setattr(sys, "argv", [
        "wifilocate", "--headless", "--no-ble", "--cadence-ms", "200",
        "--site", str(tmp_path / "site.json"), "--interface", "wlp3s0",
    ])
    config = build_config()

    assert config.ui_enabled is False
    assert config.ble_enabled is False
    assert config.wifi_enabled is True
    assert config.cadence_ms == 200
    assert config.wifi_interface == "wlp3s0"
    assert config.resolved_site_path == tmp_path / "site.json"


def test_cli_rejects_bad_cadence(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setattr(sys, "argv", ["wifilocate", "--cadence-ms", "0"])
    with pytest.raises(SystemExit):
        build_config()


def test_site_scale_overrides_config(tmp_path: Path) -> None:
    path = tmp_path / "site.json"
    save(SitePlan(pixels_per_meter=32.0), path)
    config = LocateConfig(site_path=path)

    plan = load_site(config)
    assert plan.fingerprints == []
    assert config.pixels_per_meter == 32.0
