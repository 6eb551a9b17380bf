"""WiFi + BLE beacon scanning, cached for the locate loop."""

from __future__ import annotations

import asyncio
import logging
import platform
import re
import time
from dataclasses import dataclass, field
from enum import Enum

log = logging.getLogger(__name__)

_SYSTEM = platform.system()
_AIRPORT = (
    "/System/Library/PrivateFrameworks/Apple80211.framework"
    "/Versions/Current/Resources/airport"
)


class SignalType(Enum):
    WIFI = "wifi"
    BLE = "ble"


@dataclass(frozen=True, slots=True)
class Observation:
    beacon_id: str
    rssi: float
    timestamp: float
    signal_type: SignalType
    metadata: dict = field(default_factory=dict)


# ---------------------------------------------------------------------------
# WiFi
# ---------------------------------------------------------------------------

def parse_airport_output(raw: str) -> list[Observation]:
    """Parse macOS ``airport -s`` output: SSID, BSSID, RSSI, ..."""
    lines = raw.strip().splitlines()
    now = time.time()
    results: list[Observation] = []
    for line in lines[1:]:
        m = re.match(r"\s*(.+?)\s+([0-9a-fA-F:]{17})\s+(-?\d+)\s+", line)
        if m is None:
            continue
        results.append(Observation(
            beacon_id=m.group(2).lower(),
            rssi=float(m.group(3)),
            timestamp=now,
            signal_type=SignalType.WIFI,
            metadata={"ssid": m.group(1).strip()},
        ))
    return results


def parse_iwlist_output(raw: str) -> list[Observation]:
    """Parse Linux ``iwlist <iface> scan`` output, one observation per cell."""
    now = time.time()
    results: list[Observation] = []
    cell: dict[str, str | float] = {}

    def emit() -> None:
        if "bssid" in cell and "rssi" in cell:
            results.append(Observation(
                beacon_id=str(cell["bssid"]).lower(),
                rssi=float(cell["rssi"]),
                timestamp=now,
                signal_type=SignalType.WIFI,
                metadata={"ssid": cell.get("ssid", "")},
            ))

    for line in raw.splitlines():
        line = line.strip()
        m = re.match(r"Cell \d+ - Address: ([0-9A-Fa-f:]{17})", line)
        if m:
            emit()
            cell = {"bssid": m.group(1)}
            continue
        m = re.search(r"Signal level[=:](-?\d+)", line)
        if m:
            cell["rssi"] = float(m.group(1))
            continue
        m = re.match(r'ESSID:"(.*)"', line)
        if m:
            cell["ssid"] = m.group(1)
    emit()
    return results


async def scan_wifi(interface: str = "wlan0") -> list[Observation]:
    if _SYSTEM == "Darwin":
        cmd, parse = (_AIRPORT, "-s"), parse_airport_output
    else:
        cmd, parse = ("iwlist", interface, "scan"), parse_iwlist_output
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
    )
    stdout, _ = await proc.communicate()
    return parse(stdout.decode(errors="replace"))


# ---------------------------------------------------------------------------
# BLE
# ---------------------------------------------------------------------------

async def scan_ble(duration: float = 2.0) -> list[Observation]:
    from bleak import BleakScanner

    devices = await BleakScanner.discover(timeout=duration, return_adv=True)
    now = time.time()
    results: list[Observation] = []
    for _addr, (device, adv_data) in devices.items():
        meta: dict = {}
        if adv_data.local_name:
            meta["name"] = adv_data.local_name
        results.append(Observation(
            beacon_id=device.address.lower(),
            rssi=float(adv_data.rssi),
            timestamp=now,
            signal_type=SignalType.BLE,
            metadata=meta,
        ))
    return results


async def scan_all(
    wifi: bool = True,
    ble: bool = True,
    interface: str = "wlan0",
    ble_duration: float = 2.0,
) -> list[Observation]:
    tasks = []
    if wifi:
        tasks.append(scan_wifi(interface))
    if ble:
        tasks.append(scan_ble(ble_duration))
    if not tasks:
        return []
    results = await asyncio.gather(*tasks, return_exceptions=True)
    combined: list[Observation] = []
    for result in results:
        if isinstance(result, BaseException):
            log.debug("scanner unavailable", exc_info=result)
            continue
        combined.extend(result)
    return combined


def readings_from(observations: list[Observation]) -> dict[str, float]:
    """Collapse observations to beacon_id -> rssi, keeping the strongest."""
    readings: dict[str, float] = {}
    for obs in observations:
        current = readings.get(obs.beacon_id)
        if current is None or obs.rssi > current:
            readings[obs.beacon_id] = obs.rssi
    return readings


# ---------------------------------------------------------------------------
# Signal source
# ---------------------------------------------------------------------------

class ScannerSignalSource:
    """Signal source backed by periodic background scans.

    Radio scans take seconds while the locate loop ticks every 100 ms, so
    ``get_scan`` hands out the most recent completed scan. The loop's change
    detection turns repeats of the same scan into drift-only ticks.
    """

    def __init__(
        self,
        wifi: bool = True,
        ble: bool = True,
        interface: str = "wlan0",
        interval: float = 1.0,
        ble_duration: float = 2.0,
    ) -> None:
        self.wifi = wifi
        self.ble = ble
        self.interface = interface
        self.interval = interval
        self.ble_duration = ble_duration
        self._latest: dict[str, float] = {}
        self.scans_completed = 0

    def get_scan(self, offset_ms: int) -> dict[str, float]:
        del offset_ms
        return dict(self._latest)

    async def refresh(self) -> dict[str, float]:
        observations = await scan_all(
            wifi=self.wifi,
            ble=self.ble,
            interface=self.interface,
            ble_duration=self.ble_duration,
        )
        self._latest = readings_from(observations)
        self.scans_completed += 1
        log.debug("scan %d: %d beacons", self.scans_completed, len(self._latest))
        return dict(self._latest)

    async def run(self, shutdown: asyncio.Event) -> None:
        while not shutdown.is_set():
            started = time.monotonic()
            try:
                await self.refresh()
            except OSError:
                log.debug("scan failed", exc_info=True)
            sleep_time = max(0.0, self.interval - (time.monotonic() - started))
            try:
                await asyncio.wait_for(shutdown.wait(), timeout=sleep_time)
                break
            except asyncio.TimeoutError:
                pass
