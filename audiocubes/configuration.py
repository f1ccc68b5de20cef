"""Configuration loading and dataclasses for the cube monitor."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Tuple

import yaml

from .debounce import DEFAULT_WINDOW_MS
from .filters import CLIP_HIGH, CLIP_LOW
from .osc_sender import BRIDGE_ADDRESS

Colour = Tuple[int, int, int]


@dataclass(frozen=True)
class OscConfig:
    host: str
    port: int
    address: str = BRIDGE_ADDRESS


@dataclass(frozen=True)
class BridgeConfig:
    host: str
    port: int
    address: str = BRIDGE_ADDRESS
    queue_size: int = 64


@dataclass(frozen=True)
class RouterSettings:
    debounce_ms: float = DEFAULT_WINDOW_MS


@dataclass(frozen=True)
class CalibrationConfig:
    clip_low: float = CLIP_LOW
    clip_high: float = CLIP_HIGH

    def __post_init__(self) -> None:
        if self.clip_low >= self.clip_high:
            raise ValueError("calibration.clip_low must be less than clip_high")


@dataclass(frozen=True)
class ColourConfig:
    attached: Optional[Colour] = None
    added: Optional[Colour] = None


@dataclass(frozen=True)
class LoggingConfig:
    level: str


@dataclass(frozen=True)
class AppConfig:
    osc: OscConfig
    bridge: BridgeConfig
    router: RouterSettings
    calibration: CalibrationConfig
    colours: ColourConfig
    logging: LoggingConfig


def load_config(path: Path) -> AppConfig:
    """Load configuration from a YAML file."""
    with path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    osc = raw.get("osc", {})
    bridge = raw.get("bridge", {})
    return AppConfig(
        osc=OscConfig(
            host=str(osc.get("host", "127.0.0.1")),
            port=int(osc.get("port", 7000)),
            address=str(osc.get("address", BRIDGE_ADDRESS)),
        ),
        bridge=BridgeConfig(
            host=str(bridge.get("host", "127.0.0.1")),
            port=int(bridge.get("port", 8000)),
            address=str(bridge.get("address", BRIDGE_ADDRESS)),
            queue_size=int(bridge.get("queue_size", 64)),
        ),
        router=_parse_router(raw.get("router", {})),
        calibration=CalibrationConfig(
            clip_low=float(raw.get("calibration", {}).get("clip_low", CLIP_LOW)),
            clip_high=float(raw.get("calibration", {}).get("clip_high", CLIP_HIGH)),
        ),
        colours=ColourConfig(
            attached=_parse_colour(raw.get("colours", {}).get("attached")),
            added=_parse_colour(raw.get("colours", {}).get("added")),
        ),
        logging=LoggingConfig(level=str(raw.get("logging", {}).get("level", "INFO"))),
    )


def _parse_router(raw: Any) -> RouterSettings:
    debounce_ms = float(raw.get("debounce_ms", DEFAULT_WINDOW_MS))
    if debounce_ms < 0:
        raise ValueError("router.debounce_ms must be non-negative")
    return RouterSettings(debounce_ms=debounce_ms)


def _parse_colour(raw: Any) -> Optional[Colour]:
    if raw is None:
        return None
    if not isinstance(raw, (list, tuple)) or len(raw) != 3:
        raise ValueError(f"Colour must be a list of three 0-255 values, got {raw!r}")
    red, green, blue = (int(channel) for channel in raw)
    for channel in (red, green, blue):
        if not 0 <= channel <= 255:
            raise ValueError(f"Colour channel must be 0-255, got {channel}")
    return (red, green, blue)


def load_default_config() -> AppConfig:
    """Load the default config.yaml shipped with the package."""
    path = Path(__file__).resolve().parent / "config.yaml"
    return load_config(path)


__all__ = [
    "AppConfig",
    "BridgeConfig",
    "CalibrationConfig",
    "ColourConfig",
    "LoggingConfig",
    "OscConfig",
    "RouterSettings",
    "load_config",
    "load_default_config",
]
