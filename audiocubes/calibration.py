"""Per-face auto-calibration state for every addressable cube."""

from __future__ import annotations

import logging
import math
import threading
from typing import Optional, Tuple

from .errors import MalformedMessage
from .filters import CLIP_HIGH, CLIP_LOW, calibrate
from .state import DEVICE_COUNT, FACE_COUNT, INITIAL_CALIBRATION, CalibrationState
from .topology import require_device, require_face

LOGGER = logging.getLogger(__name__)

SENSOR_TAG = "sensor_update"


class CalibrationCell:
    """Calibration window for a single cube face.

    The state record is immutable and always replaced whole under the cell's
    lock, so a reset racing an update never leaves a mixed record behind.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = INITIAL_CALIBRATION

    @property
    def state(self) -> CalibrationState:
        return self._state

    def reset(self) -> None:
        with self._lock:
            self._state = INITIAL_CALIBRATION

    def update(self, raw: float, clip_low: float, clip_high: float) -> Optional[float]:
        with self._lock:
            self._state, emitted = calibrate(self._state, raw, clip_low, clip_high)
        return emitted


class CalibrationTable:
    """Pre-allocated 16x4 grid of calibration cells.

    Every cube has state from construction, so sensor updates for a cube that
    was never reported as attached still calibrate normally.
    """

    def __init__(self, clip_low: float = CLIP_LOW, clip_high: float = CLIP_HIGH) -> None:
        if clip_low >= clip_high:
            raise ValueError("clip_low must be less than clip_high")
        self._clip_low = clip_low
        self._clip_high = clip_high
        self._cells: Tuple[Tuple[CalibrationCell, ...], ...] = tuple(
            tuple(CalibrationCell() for _ in range(FACE_COUNT)) for _ in range(DEVICE_COUNT)
        )

    def state(self, device: int, face: int) -> CalibrationState:
        """Return the current calibration record for ``device``/``face``."""
        require_device(device, SENSOR_TAG)
        require_face(face, SENSOR_TAG)
        return self._cells[device][face].state

    def reset_device(self, device: int) -> None:
        """Restore all four faces of ``device`` to the initial window."""
        require_device(device)
        for cell in self._cells[device]:
            cell.reset()
        LOGGER.debug("Calibration reset for cube %d", device)

    def update(self, device: int, face: int, raw: object) -> Optional[float]:
        """Calibrate a raw reading, returning ``None`` if it repeats the last value.

        Raises:
            MalformedMessage: ``raw`` is not a finite number, or ``device``/``face``
                is out of range. The cell is left untouched.
        """
        require_device(device, SENSOR_TAG)
        require_face(face, SENSOR_TAG)
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise MalformedMessage(f"sensor value must be numeric, got {raw!r}", tag=SENSOR_TAG)
        value = float(raw)
        if not math.isfinite(value):
            raise MalformedMessage(f"sensor value must be finite, got {value!r}", tag=SENSOR_TAG)
        return self._cells[device][face].update(value, self._clip_low, self._clip_high)


__all__ = ["CalibrationCell", "CalibrationTable", "SENSOR_TAG"]
