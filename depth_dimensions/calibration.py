"""
Calibration Module
==================

Holds the empty-scene baseline the difference engine compares against, and
the one-shot trigger that decides which frame becomes the next baseline.

The baseline is the only state shared across frames. A capture may be
requested from a UI thread while frames are processed on another, so both
the store and the trigger guard their state with a lock: a reader always sees
either the previous baseline or the new one, never a partially written grid.
"""

import logging
import threading
from enum import Enum
from typing import Optional

import numpy as np

from .frames import DepthGrid

logger = logging.getLogger(__name__)


class CalibrationBaselineStore:
    """
    Single-writer / multiple-reader holder of the calibration baseline.

    The store is empty until the first capture. Each capture replaces the
    baseline wholesale; the grid is copied and frozen before the reference
    is swapped, so later changes to the caller's array cannot leak in.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._baseline: Optional[DepthGrid] = None
        self._captures = 0

    def capture(self, grid: DepthGrid) -> None:
        """Replace the stored baseline with a frozen copy of grid."""
        data = np.array(grid.data, dtype=np.uint16, copy=True)
        data.setflags(write=False)
        baseline = grid.with_data(data)

        with self._lock:
            self._baseline = baseline
            self._captures += 1
            count = self._captures

        logger.info("Captured calibration baseline #%d (%dx%d)", count, grid.width, grid.height)

    def current(self) -> Optional[DepthGrid]:
        """Return the stored baseline, or None when not calibrated."""
        with self._lock:
            return self._baseline

    @property
    def is_calibrated(self) -> bool:
        return self.current() is not None

    @property
    def capture_count(self) -> int:
        with self._lock:
            return self._captures

    def clear(self) -> None:
        """Forget the baseline (e.g. after the camera was moved)."""
        with self._lock:
            self._baseline = None
        logger.info("Calibration baseline cleared")


class TriggerState(Enum):
    """State of the one-shot calibration trigger."""
    IDLE = "idle"
    ARMED = "armed"


class CalibrationTrigger:
    """
    One-shot calibration request.

    arm() moves the trigger to ARMED; consume() moves it back to IDLE and
    reports whether it was armed. The transition happens under a lock, so a
    request issued while a frame is being processed is either taken by that
    frame or by the next one, never both and never lost.

    Continuous mode makes every frame a calibration frame until switched off.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state = TriggerState.IDLE
        self._continuous = False

    def arm(self) -> None:
        with self._lock:
            self._state = TriggerState.ARMED

    def consume(self) -> bool:
        """Take the pending request, if any. Always True in continuous mode."""
        with self._lock:
            armed = self._state is TriggerState.ARMED
            self._state = TriggerState.IDLE
            return armed or self._continuous

    @property
    def state(self) -> TriggerState:
        with self._lock:
            return self._state

    @property
    def continuous(self) -> bool:
        with self._lock:
            return self._continuous

    @continuous.setter
    def continuous(self, enabled: bool) -> None:
        with self._lock:
            self._continuous = bool(enabled)
