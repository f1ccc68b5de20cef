"""Signal conditioning for raw cube sensor readings."""

from __future__ import annotations

from typing import Optional, Tuple

from .state import CalibrationState

CLIP_LOW = 0.05
CLIP_HIGH = 0.95


def clamp(x: float, lower: float, upper: float) -> float:
    """Clamp ``x`` into the inclusive range [``lower``, ``upper``]."""
    if lower > upper:
        raise ValueError("lower bound must be <= upper bound")
    if x < lower:
        return lower
    if x > upper:
        return upper
    return x


def calibrate(
    state: CalibrationState,
    raw: float,
    clip_low: float = CLIP_LOW,
    clip_high: float = CLIP_HIGH,
) -> Tuple[CalibrationState, Optional[float]]:
    """Fold ``raw`` into the calibration window and rescale it.

    The reading is clipped to [``clip_low``, ``clip_high``], then mapped onto
    [0, 1] using the lowest and highest clipped readings seen since the last
    reset. The window only ever widens.

    Returns:
        The replacement state and the calibrated value, or ``None`` when the
        calibrated value equals the one emitted previously.
    """
    clipped = clamp(raw, clip_low, clip_high)
    low = min(state.min, clipped)
    high = max(state.max, clipped)
    # Degenerate window (first reading, or a constant signal)
    span = high - low if high > low else 1.0
    calibrated = (clipped - low) / span

    emitted: Optional[float] = None if calibrated == state.last else calibrated
    return CalibrationState(min=low, max=high, last=calibrated), emitted


__all__ = ["CLIP_HIGH", "CLIP_LOW", "calibrate", "clamp"]
