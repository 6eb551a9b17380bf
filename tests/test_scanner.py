from __future__ import annotations

import asyncio

from wifilocate.scan import scanner
from wifilocate.scan.scanner import (
    Observation,
    ScannerSignalSource,
    SignalType,
    parse_airport_output,
    parse_iwlist_output,
    readings_from,
)

_IWLIST = """\
wlan0     Scan completed :
          Cell 01 - Address: AA:BB:CC:DD:EE:01
                    Channel:6
                    Quality=60/70  Signal level=-50 dBm
                    ESSID:"office"
          Cell 02 - Address: AA:BB:CC:DD:EE:02
                    Quality=30/70  Signal level=-80 dBm
                    ESSID:""
          Cell 03 - Address: AA:BB:CC:DD:EE:03
                    ESSID:"no-signal"
"""

_AIRPORT = """\
                            SSID BSSID             RSSI CHANNEL HT CC SECURITY
                      Guest Net aa:bb:cc:dd:ee:10 -61  11      Y  -- WPA2(PSK/AES/AES)
                         office aa:bb:cc:dd:ee:11 -47  36      Y  -- WPA2(PSK/AES/AES)
"""


def test_parse_iwlist_skips_cells_without_signal() -> None:
    observations = parse_iwlist_output(_IWLIST)

    assert [(o.beacon_id, o.rssi) for o in observations] == [
        ("aa:bb:cc:dd:ee:01", -50.0),
        ("aa:bb:cc:dd:ee:02", -80.0),
    ]
    assert observations[0].metadata["ssid"] == "office"


def test_parse_airport_output() -> None:
    observations = parse_airport_output(_AIRPORT)

    assert [(o.beacon_id, o.rssi) for o in observations] == [
        ("aa:bb:cc:dd:ee:10", -61.0),
        ("aa:bb:cc:dd:ee:11", -47.0),
    ]
    assert observations[0].metadata["ssid"] == "Guest Net"


def test_readings_keep_strongest_duplicate() -> None:
    observations = [
        Observation("ap", -70.0, 0.0, SignalType.WIFI),
        Observation("ap", -55.0, 0.0, SignalType.WIFI),
        Observation("tag", -90.0, 0.0, SignalType.BLE),
    ]
    assert readings_from(observations) == {"ap": -55.0, "tag": -90.0}


def test_source_serves_latest_completed_scan(monkeypatch) -> None:
    async def fake_scan_all(**kwargs) -> list[Observation]:
        return [Observation("ap", -42.0, 0.0, SignalType.WIFI)]

    monkeypatch.setattr(scanner, "scan_all", fake_scan_all)
    source = ScannerSignalSource(ble=False)
    assert source.get_scan(0) == {}

    asyncio.run(source.refresh())
    first = source.get_scan(100)
    first["ap"] = 0.0

    assert source.get_scan(200) == {"ap": -42.0}
    assert source.scans_completed == 1


def test_scan_all_tolerates_missing_scanner(monkeypatch) -> None:
    async def broken_wifi(interface: str = "wlan0") -> list[Observation]:
        raise FileNotFoundError("iwlist")

    monkeypatch.setattr(scanner, "scan_wifi", broken_wifi)
    assert asyncio.run(scanner.scan_all(wifi=True, ble=False)) == []
