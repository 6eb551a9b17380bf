"""Site description: fingerprints + connectors, serializable to disk."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from wifilocate.collaborators import BeaconStats, Fingerprint
from wifilocate.site.connections import ConnectionPoints, Connector
from wifilocate.site.fingerprints import FingerprintDatabase

DEFAULT_PATH = Path.home() / ".wifilocate" / "site.json"


@dataclass
class SitePlan:
    fingerprints: list[Fingerprint] = field(default_factory=list)
    connectors: list[Connector] = field(default_factory=list)
    pixels_per_meter: float | None = None

    def database(self) -> FingerprintDatabase:
        return FingerprintDatabase(self.fingerprints)

    def topology(self) -> ConnectionPoints:
        return ConnectionPoints(self.connectors)


def _fingerprint_to_dict(fp: Fingerprint) -> dict:
    return {
        "id": fp.id,
        "x": fp.x,
        "y": fp.y,
        "level": fp.level,
        "beacons": {
            k: {"presence": v.presence, "mean": v.mean, "stddev": v.stddev}
            for k, v in fp.beacons.items()
        },
    }


def _fingerprint_from_dict(d: dict) -> Fingerprint:
    return Fingerprint(
        id=str(d["id"]),
        x=float(d["x"]),
        y=float(d["y"]),
        level=int(d["level"]),
        beacons={
            k: BeaconStats(
                presence=float(v.get("presence", 1.0)),
                mean=float(v["mean"]),
                stddev=float(v.get("stddev", 0.0)),
            )
            for k, v in d.get("beacons", {}).items()
        },
    )


def _connector_to_dict(c: Connector) -> dict:
    return {
        "name": c.name,
        "positions": {str(level): list(pos) for level, pos in c.positions.items()},
    }


def _connector_from_dict(d: dict) -> Connector:
    positions = {
        int(level): (float(pos[0]), float(pos[1]))
        for level, pos in d["positions"].items()
    }
    if not positions:
        raise ValueError(f"connector {d.get('name')!r} lists no levels")
    return Connector(name=d.get("name", ""), positions=positions)


def _plan_to_dict(plan: SitePlan) -> dict:
    data: dict = {
        "fingerprints": [_fingerprint_to_dict(fp) for fp in plan.fingerprints],
        "connections": [_connector_to_dict(c) for c in plan.connectors],
    }
    if plan.pixels_per_meter is not None:
        data["pixels_per_meter"] = plan.pixels_per_meter
    return data


def _plan_from_dict(d: dict) -> SitePlan:
    ppm = d.get("pixels_per_meter")
    return SitePlan(
        fingerprints=[_fingerprint_from_dict(fp) for fp in d.get("fingerprints", [])],
        connectors=[_connector_from_dict(c) for c in d.get("connections", [])],
        pixels_per_meter=float(ppm) if ppm is not None else None,
    )


def save(plan: SitePlan, path: Path = DEFAULT_PATH) -> None:
    """Serialize SitePlan to JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(_plan_to_dict(plan), indent=2) + "\n")


def load(path: Path = DEFAULT_PATH) -> SitePlan:
    """Deserialize SitePlan from JSON."""
    return _plan_from_dict(json.loads(path.read_text()))
