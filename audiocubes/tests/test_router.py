"""Tests for message routing, debouncing and calibration in the cube router."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Tuple

import pytest

from audiocubes.router import CubeHandlers, CubeRouter
from audiocubes.state import INITIAL_CALIBRATION
from audiocubes.topology import CubePlacement, Edge, SubTopology


@dataclass
class Recorder:
    events: List[Tuple[str, Any]] = field(default_factory=list)

    def handler(self, kind: str):
        def _record(*args: Any) -> None:
            self.events.append((kind, args))

        return _record

    def of(self, kind: str) -> list:
        return [args for name, args in self.events if name == kind]

    def handlers(self) -> CubeHandlers:
        return CubeHandlers(
            on_topology=self.handler("topology"),
            on_topology2d=self.handler("topology2d"),
            on_attached=self.handler("attached"),
            on_detached=self.handler("detached"),
            on_added=self.handler("added"),
            on_sensor=self.handler("sensor"),
            on_colour=self.handler("colour"),
            on_sensor_mode=self.handler("sensor_mode"),
        )


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def router(recorder: Recorder, clock) -> CubeRouter:
    return CubeRouter(recorder.handlers(), debounce_ms=200, clock=clock)


def test_topology_routed_and_debounced(router: CubeRouter, recorder: Recorder, clock) -> None:
    router.dispatch("topology_update", [2, 3, 1, 5, 2, 0, 0, 1, 3])
    # Spurious empty message straight after the real one
    clock.now += 0.05
    router.dispatch("topology_update", [0])
    assert recorder.of("topology") == [([Edge(0, 0, 1, 3), Edge(3, 1, 5, 2)],)]

    clock.now += 0.3
    router.dispatch("topology_update", [0])
    assert recorder.of("topology")[-1] == ([],)


def test_topology_streams_debounce_independently(
    router: CubeRouter, recorder: Recorder, clock
) -> None:
    router.dispatch("topology_update", [0])
    clock.now += 0.01
    router.dispatch("topology_2D", [1, 1, 1, 1, 7, 0, 0, 2])
    assert len(recorder.of("topology")) == 1
    assert recorder.of("topology2d") == [
        ([SubTopology(width=1, height=1, cubes=(CubePlacement(7, 0, 0, 2),))],)
    ]


def test_malformed_topology_does_not_open_debounce_window(
    router: CubeRouter, recorder: Recorder, clock
) -> None:
    router.dispatch("topology_update", [2, 3, 1, 5, 2])
    assert recorder.of("topology") == []
    clock.now += 0.01
    router.dispatch("topology_update", [1, 3, 1, 5, 2])
    assert recorder.of("topology") == [([Edge(3, 1, 5, 2)],)]


def test_sensor_updates_are_calibrated(router: CubeRouter, recorder: Recorder) -> None:
    for raw in (0.5, 0.2, 0.8, 0.8):
        router.dispatch("sensor_update", [1, 2, raw])
    values = [args for args in recorder.of("sensor")]
    assert values == [(1, 2, 0.0), (1, 2, pytest.approx(1.0))]


def test_attached_resets_calibration(router: CubeRouter, recorder: Recorder) -> None:
    router.dispatch("sensor_update", [3, 0, 0.4])
    router.dispatch("sensor_update", [4, 0, 0.4])
    router.dispatch("attached", [3])
    assert recorder.of("attached") == [(3,)]
    for face in range(4):
        assert router.calibration_state(3, face) == INITIAL_CALIBRATION
    assert router.calibration_state(4, 0) != INITIAL_CALIBRATION


def test_added_resets_calibration(router: CubeRouter, recorder: Recorder) -> None:
    router.dispatch("sensor_update", [8, 1, 0.7])
    router.dispatch("added", [8])
    assert recorder.of("added") == [(8,)]
    assert router.calibration_state(8, 1) == INITIAL_CALIBRATION
    # After a reset the same reading is emitted again
    router.dispatch("sensor_update", [8, 1, 0.7])
    assert len(recorder.of("sensor")) == 2


def test_detached_does_not_reset(router: CubeRouter, recorder: Recorder) -> None:
    router.dispatch("sensor_update", [2, 3, 0.6])
    router.dispatch("detached", [2])
    assert recorder.of("detached") == [(2,)]
    assert router.calibration_state(2, 3) != INITIAL_CALIBRATION


@pytest.mark.parametrize("tag", ["color_update", "color-update"])
def test_colour_update(router: CubeRouter, recorder: Recorder, tag: str) -> None:
    router.dispatch(tag, [5, 255, 200, 0])
    assert recorder.of("colour") == [(5, 255, 200, 0)]


@pytest.mark.parametrize("tag", ["sensoring_only_mode", "sensoring-only-mode"])
def test_sensor_mode(router: CubeRouter, recorder: Recorder, tag: str) -> None:
    router.dispatch(tag, [6, 1])
    assert recorder.of("sensor_mode") == [(6, True)]


def test_unknown_tag_ignored(router: CubeRouter, recorder: Recorder) -> None:
    router.dispatch("firmware_version", [1, 2, 3])
    assert recorder.events == []


@pytest.mark.parametrize(
    "tag, payload",
    [
        ("attached", []),
        ("attached", [16]),
        ("detached", [1, 2]),
        ("sensor_update", [1, 4, 0.5]),
        ("sensor_update", [1, 0]),
        ("sensor_update", [1, 0, "high"]),
        ("color_update", [1, 255, 0]),
        ("sensoring_only_mode", [20, 1]),
        ("topology_2D", [1, 1, 1]),
    ],
)
def test_malformed_messages_are_dropped(
    router: CubeRouter, recorder: Recorder, tag: str, payload: list
) -> None:
    router.dispatch(tag, payload)
    assert recorder.events == []


def test_malformed_sensor_keeps_calibration(router: CubeRouter) -> None:
    router.dispatch("sensor_update", [0, 0, 0.3])
    before = router.calibration_state(0, 0)
    router.dispatch("sensor_update", [0, 0, None])
    assert router.calibration_state(0, 0) == before


@pytest.mark.parametrize(
    "tag, payload",
    [
        ("topology_update", [2, 3, 1]),
        ("topology_2D", [1, 1, 1]),
        ("sensor_update", [0, 0, "loud"]),
        ("color_update", [99]),
        ("sensoring_only_mode", [99]),
        ("detached", []),
    ],
)
def test_missing_handler_skips_decoding(clock, caplog, tag: str, payload: list) -> None:
    router = CubeRouter(CubeHandlers(), debounce_ms=200, clock=clock)
    with caplog.at_level(logging.WARNING, logger="audiocubes.router"):
        router.dispatch(tag, payload)
    assert caplog.records == []


def test_missing_handler_leaves_state_untouched(clock) -> None:
    router = CubeRouter(CubeHandlers(), debounce_ms=200, clock=clock)
    router.dispatch("sensor_update", [0, 0, 0.3])
    router.dispatch("topology_update", [0])
    router.dispatch("topology_2D", [0])
    assert router.calibration_state(0, 0) == INITIAL_CALIBRATION
    assert router._topology_debounce.last_accepted is None
    assert router._topology_2d_debounce.last_accepted is None

    # A handler registered afterwards sees the next message straight away
    recorder = Recorder()
    router._handlers = CubeHandlers(
        on_topology=recorder.handler("topology"),
        on_topology2d=recorder.handler("topology2d"),
    )
    router.dispatch("topology_update", [0])
    router.dispatch("topology_2D", [0])
    assert recorder.of("topology") == [([],)]
    assert recorder.of("topology2d") == [([],)]


@pytest.mark.parametrize("flag, expected", [(True, True), (False, False), (0, False), (1, True)])
def test_sensor_mode_flag_values(router: CubeRouter, recorder: Recorder, flag, expected: bool) -> None:
    router.dispatch("sensoring_only_mode", [3, flag])
    assert recorder.of("sensor_mode") == [(3, expected)]


@pytest.mark.parametrize("flag", ["false", 0.0, 2, None])
def test_sensor_mode_rejects_ambiguous_flag(router: CubeRouter, recorder: Recorder, flag) -> None:
    router.dispatch("sensoring_only_mode", [3, flag])
    assert recorder.of("sensor_mode") == []



def test_handle_osc_splits_tag(router: CubeRouter, recorder: Recorder) -> None:
    router.handle_osc("/audiocubes", "attached", 1)
    router.handle_osc("/audiocubes")
    router.handle_osc("/audiocubes", 42)
    assert recorder.events == [("attached", (1,))]
