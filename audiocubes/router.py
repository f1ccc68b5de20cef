"""Routes AudioCube bridge messages to caller-supplied handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from time import monotonic
from typing import Any, Callable, List, Optional, Sequence

from .calibration import SENSOR_TAG, CalibrationTable
from .debounce import DEFAULT_WINDOW_MS, SUPPRESSED, Debouncer
from .errors import MalformedMessage
from .filters import CLIP_HIGH, CLIP_LOW
from .state import CalibrationState
from .topology import (
    TOPOLOGY_2D_TAG,
    TOPOLOGY_TAG,
    Edge,
    SubTopology,
    parse_topology,
    parse_topology_2d,
    require_device,
    require_face,
    require_int,
)

LOGGER = logging.getLogger(__name__)

ATTACHED_TAG = "attached"
ADDED_TAG = "added"
DETACHED_TAG = "detached"
COLOUR_TAGS = ("color_update", "color-update")
SENSOR_MODE_TAGS = ("sensoring_only_mode", "sensoring-only-mode")


@dataclass(frozen=True)
class CubeHandlers:
    """Optional callbacks, one per message kind. Unset kinds are ignored."""

    on_topology: Optional[Callable[[List[Edge]], Any]] = None
    on_topology2d: Optional[Callable[[List[SubTopology]], Any]] = None
    on_attached: Optional[Callable[[int], Any]] = None
    on_detached: Optional[Callable[[int], Any]] = None
    on_added: Optional[Callable[[int], Any]] = None
    on_sensor: Optional[Callable[[int, int, float], Any]] = None
    on_colour: Optional[Callable[[int, int, int, int], Any]] = None
    on_sensor_mode: Optional[Callable[[int, bool], Any]] = None


def _expect_length(payload: Sequence[object], length: int, tag: str) -> None:
    if len(payload) != length:
        raise MalformedMessage(
            f"expected {length} values, got {len(payload)}", tag=tag
        )


def _require_flag(value: object, tag: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise MalformedMessage(f"flag must be a bool or 0/1, got {value!r}", tag=tag)


class CubeRouter:
    """Decodes tagged bridge messages and invokes the matching handler.

    Topology messages are debounced per stream and sensor readings are
    auto-calibrated per cube face before reaching the handlers. Calibration is
    reset whenever a cube is attached or added to the network.
    """

    def __init__(
        self,
        handlers: CubeHandlers,
        debounce_ms: float = DEFAULT_WINDOW_MS,
        clip_low: float = CLIP_LOW,
        clip_high: float = CLIP_HIGH,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        self._handlers = handlers
        self._calibration = CalibrationTable(clip_low, clip_high)
        self._topology_debounce = Debouncer(debounce_ms, clock)
        self._topology_2d_debounce = Debouncer(debounce_ms, clock)

    def calibration_state(self, device: int, face: int) -> CalibrationState:
        return self._calibration.state(device, face)

    def handle_osc(self, address: str, *args: object) -> None:
        """python-osc dispatcher entry point; the first argument is the tag."""
        if not args or not isinstance(args[0], str):
            LOGGER.warning("Discarding untagged message on %s: %r", address, args)
            return
        self.dispatch(args[0], args[1:])

    def dispatch(self, tag: str, payload: Sequence[object]) -> None:
        """Route one message. Malformed messages are logged and dropped."""
        try:
            self._route(tag, payload)
        except MalformedMessage as exc:
            LOGGER.warning("Discarding malformed %s message: %s", exc.tag or tag, exc)

    # Internal -----------------------------------------------------------------

    def _route(self, tag: str, payload: Sequence[object]) -> None:
        handlers = self._handlers
        if tag == TOPOLOGY_TAG:
            if handlers.on_topology is None:
                return
            edges = self._topology_debounce.call(parse_topology, payload)
            if edges is SUPPRESSED:
                LOGGER.debug("Debounced %s", tag)
                return
            handlers.on_topology(edges)
        elif tag == TOPOLOGY_2D_TAG:
            if handlers.on_topology2d is None:
                return
            groups = self._topology_2d_debounce.call(parse_topology_2d, payload)
            if groups is SUPPRESSED:
                LOGGER.debug("Debounced %s", tag)
                return
            handlers.on_topology2d(groups)
        elif tag in (ATTACHED_TAG, ADDED_TAG):
            _expect_length(payload, 1, tag)
            device = require_device(payload[0], tag)
            self._calibration.reset_device(device)
            handler = handlers.on_attached if tag == ATTACHED_TAG else handlers.on_added
            if handler is not None:
                handler(device)
        elif tag == DETACHED_TAG:
            if handlers.on_detached is None:
                return
            _expect_length(payload, 1, tag)
            handlers.on_detached(require_device(payload[0], tag))
        elif tag == SENSOR_TAG:
            if handlers.on_sensor is None:
                return
            _expect_length(payload, 3, tag)
            device = require_device(payload[0], tag)
            face = require_face(payload[1], tag)
            value = self._calibration.update(device, face, payload[2])
            if value is not None:
                handlers.on_sensor(device, face, value)
        elif tag in COLOUR_TAGS:
            if handlers.on_colour is None:
                return
            _expect_length(payload, 4, tag)
            red, green, blue = (require_int(v, "colour channel", tag) for v in payload[1:])
            handlers.on_colour(require_device(payload[0], tag), red, green, blue)
        elif tag in SENSOR_MODE_TAGS:
            if handlers.on_sensor_mode is None:
                return
            _expect_length(payload, 2, tag)
            handlers.on_sensor_mode(
                require_device(payload[0], tag), _require_flag(payload[1], tag)
            )
        else:
            LOGGER.debug("Ignoring unknown message %r", tag)


__all__ = ["CubeHandlers", "CubeRouter"]
