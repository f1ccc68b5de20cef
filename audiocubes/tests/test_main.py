"""Tests for the monitor's event handlers and argument parsing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from audiocubes.configuration import load_default_config
from audiocubes.main import build_handlers, parse_args
from audiocubes.router import CubeRouter


@dataclass
class FakeColourTx:
    sent: list = field(default_factory=list)

    def set_colour(self, device: int, red: int, green: int, blue: int) -> bool:
        self.sent.append((device, red, green, blue))
        return True


def test_lifecycle_events_set_configured_colours() -> None:
    config = load_default_config()
    tx = FakeColourTx()
    router = CubeRouter(build_handlers(config, tx))

    router.dispatch("attached", [1])
    router.dispatch("added", [2])
    router.dispatch("detached", [1])
    assert tx.sent == [(1, 255, 200, 0), (2, 50, 255, 30)]


def test_topology_is_logged(caplog) -> None:
    router = CubeRouter(build_handlers(load_default_config(), None))
    with caplog.at_level(logging.INFO, logger="audiocubes.main"):
        router.dispatch("topology_update", [1, 3, 1, 5, 2])
    assert "Topology : 3east=>5south " in caplog.text


def test_parse_args_overrides() -> None:
    args = parse_args(["--debounce-ms", "50"])
    assert args.debounce_ms == 50.0
    assert args.config is None
