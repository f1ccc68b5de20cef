"""Dataclasses and constants modelling per-cube state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEVICE_COUNT = 16
FACE_COUNT = 4


@dataclass(frozen=True)
class CalibrationState:
    """Running calibration window for one cube face.

    ``min`` starts above ``max`` so the first reading defines both bounds.
    """

    min: float = 1.0
    max: float = 0.0
    last: Optional[float] = None


INITIAL_CALIBRATION = CalibrationState()


__all__ = ["CalibrationState", "DEVICE_COUNT", "FACE_COUNT", "INITIAL_CALIBRATION"]
