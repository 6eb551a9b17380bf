"""Main entry point: wires scanner -> locate loop -> presenter."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from pathlib import Path

from wifilocate.config import (
    ConfigError,
    LocateConfig,
    apply_overrides,
    load_config_file,
    validate_config,
)
from wifilocate.loop import LocateLoop, LogPresenter, PresentationQueue
from wifilocate.scan.scanner import ScannerSignalSource
from wifilocate.site.siteplan import SitePlan
from wifilocate.site.siteplan import load as load_siteplan
from wifilocate.tracking.cursor import CursorAnimator
from wifilocate.tracking.motion import MotionGate
from wifilocate.tracking.tracker import PositionTracker

log = logging.getLogger("wifilocate")


def build_config() -> LocateConfig:
    parser = argparse.ArgumentParser(prog="wifilocate", description="Indoor WiFi/BLE fingerprint locator")
    parser.add_argument("--site", type=str, default="", help="Site plan JSON (fingerprints + connectors)")
    parser.add_argument("--headless", action="store_true", help="No dashboard, log only")
    parser.add_argument("--interface", type=str, default="", help="WiFi interface for iwlist")
    parser.add_argument("--cadence-ms", type=int, default=None, help="Loop period in ms")
    parser.add_argument("--no-wifi", action="store_true", help="Disable WiFi scanning")
    parser.add_argument("--no-ble", action="store_true", help="Disable BLE scanning")
    parser.add_argument("--debug", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )

    config = LocateConfig()

    # Load from config file
    apply_overrides(config, load_config_file(config.data_dir / "config.toml"))

    # Apply CLI overrides
    if args.site:
        config.site_path = Path(args.site).expanduser()
    if args.interface:
        config.wifi_interface = args.interface
    if args.cadence_ms is not None:
        config.cadence_ms = args.cadence_ms
    if args.no_wifi:
        config.wifi_enabled = False
    if args.no_ble:
        config.ble_enabled = False
    if args.headless:
        config.ui_enabled = False

    try:
        validate_config(config)
    except ConfigError as e:
        parser.error(str(e))
    return config


def load_site(config: LocateConfig) -> SitePlan:
    """Load the site plan and let its map scale override the configured one."""
    plan = load_siteplan(config.resolved_site_path)
    if plan.pixels_per_meter is not None:
        apply_overrides(config, {"pixels_per_meter": plan.pixels_per_meter})
        validate_config(config)
    log.info(
        "loaded site from %s (%d fingerprints, %d connectors)",
        config.resolved_site_path,
        len(plan.fingerprints),
        len(plan.connectors),
    )
    return plan


async def run(config: LocateConfig, motion_gate: MotionGate | None = None) -> None:
    """Main async loop."""
    try:
        plan = load_site(config)
    except (OSError, ValueError, KeyError):
        log.exception("cannot load site plan %s", config.resolved_site_path)
        raise SystemExit(1)
    if not plan.fingerprints:
        log.warning("site plan has no fingerprints, no position will be reported")

    shutdown = asyncio.Event()

    def handle_signal() -> None:
        log.info("shutting down...")
        shutdown.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal)

    dashboard = None
    if config.ui_enabled:
        from wifilocate.ui.dashboard import Dashboard

        dashboard = Dashboard()
        presenter = PresentationQueue(dashboard)
    else:
        presenter = PresentationQueue(LogPresenter())

    # Accelerometer samples reach the gate via MotionGate.on_sample from the host.
    gate = motion_gate if motion_gate is not None else MotionGate()
    tracker = PositionTracker(
        config,
        scorer=plan.database(),
        topology=plan.topology(),
        motion_gate=gate,
        presenter=presenter,
    )
    animator = CursorAnimator(config.step_px)
    source = ScannerSignalSource(
        wifi=config.wifi_enabled,
        ble=config.ble_enabled,
        interface=config.wifi_interface,
        interval=config.scan_interval,
        ble_duration=config.ble_duration,
    )
    locate_loop = LocateLoop(source, tracker, animator, presenter=presenter)

    tasks = [
        asyncio.create_task(source.run(shutdown)),
        asyncio.create_task(locate_loop.run(shutdown)),
        asyncio.create_task(presenter.drain(shutdown)),
    ]
    if dashboard is not None:
        tasks.append(asyncio.create_task(dashboard.run(shutdown)))

    try:
        await asyncio.gather(*tasks)
    except asyncio.CancelledError:
        pass
    finally:
        log.info("wifilocate stopped")


def main() -> None:
    config = build_config()
    asyncio.run(run(config))


if __name__ == "__main__":
    main()
