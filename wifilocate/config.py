"""Runtime configuration for wifilocate."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path


class ConfigError(ValueError):
    """Raised when a configuration value can never produce a working tracker."""


@dataclass
class LocateConfig:
    # Loop
    cadence_ms: int = 100

    # Map scale and walking model
    pixels_per_meter: float = 10.0
    walking_pace_mps: float = 2.0  # fast walk, ~7.2 km/h
    error_accommodation_m: float = 20.0  # distance allowed to move in zero time

    # Reading windows
    short_window_length: int = 3
    min_stationary_obs: int = 5
    max_stationary_obs: int = 20

    # Best-fit hysteresis
    allow_same_position_update: bool = False
    sticky_min_improvement: float = 5.0
    sticky_max_time_ms: int = 3000

    # Scanning
    wifi_enabled: bool = True
    ble_enabled: bool = True
    wifi_interface: str = "wlan0"
    scan_interval: float = 1.0
    ble_duration: float = 2.0

    # UI
    ui_enabled: bool = True

    # Paths
    data_dir: Path = field(default_factory=lambda: Path.home() / ".wifilocate")
    site_path: Path | None = None

    @property
    def step_px(self) -> float:
        """Pixels the cursor may drift in one loop period at walking pace."""
        return self.walking_pace_mps * self.pixels_per_meter * self.cadence_ms / 1000.0

    @property
    def resolved_site_path(self) -> Path:
        if self.site_path is not None:
            return self.site_path
        return self.data_dir / "site.json"


def validate_config(config: LocateConfig) -> LocateConfig:
    """Reject values the tracker cannot work with. Returns the config unchanged."""
    positive = (
        "cadence_ms",
        "pixels_per_meter",
        "walking_pace_mps",
        "short_window_length",
        "max_stationary_obs",
    )
    for name in positive:
        value = getattr(config, name)
        if value <= 0:
            raise ConfigError(f"{name} must be positive, got {value!r}")

    non_negative = (
        "error_accommodation_m",
        "min_stationary_obs",
        "sticky_min_improvement",
        "sticky_max_time_ms",
    )
    for name in non_negative:
        value = getattr(config, name)
        if value < 0:
            raise ConfigError(f"{name} must not be negative, got {value!r}")

    if config.min_stationary_obs >= config.max_stationary_obs:
        raise ConfigError(
            "min_stationary_obs must be below max_stationary_obs "
            f"({config.min_stationary_obs} >= {config.max_stationary_obs})"
        )
    return config


def load_config_file(path: Path) -> dict:
    """Load config overrides from a TOML file. Returns empty dict if not found."""
    if not path.exists():
        return {}
    import tomllib
    return tomllib.loads(path.read_text())


def apply_overrides(config: LocateConfig, overrides: dict) -> LocateConfig:
    """Apply dict overrides (from TOML, site file or CLI) onto a config."""
    for key, value in overrides.items():
        if key in ("data_dir", "site_path") and isinstance(value, str):
            setattr(config, key, Path(value).expanduser())
        elif key in ("cadence_ms", "sticky_max_time_ms") and isinstance(value, int | float):
            setattr(config, key, int(value))
        elif key in (
            "pixels_per_meter",
            "walking_pace_mps",
            "error_accommodation_m",
            "sticky_min_improvement",
        ) and isinstance(value, int | float):
            setattr(config, key, float(value))
        elif key in {f.name for f in fields(config)}:
            setattr(config, key, value)
    return config
