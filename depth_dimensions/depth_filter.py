"""
Depth Filtering Module
======================

Region-of-interest filtering of raw depth frames and per-pixel differencing
against the empty-scene baseline.

Both stages are vectorised with numpy masks; neither modifies its inputs.
"""

import logging

import numpy as np

from .frames import DepthGrid, RegionOfInterest, FrameSizeMismatchError

logger = logging.getLogger(__name__)


def apply_roi_filter(
    grid: DepthGrid,
    roi: RegionOfInterest,
    min_valid: int = 500,
    max_valid: int = 4000
) -> DepthGrid:
    """
    Invalidate samples outside the region of interest or the valid depth band.

    A sample becomes 0 when its depth is below min_valid or above max_valid,
    or when its column is outside [x1, x2] or its row outside [y1, y2].
    Every other sample is passed through unchanged.

    Args:
        grid: Raw depth grid
        roi: Region of interest (inclusive bounds)
        min_valid: Nearest accepted depth in mm
        max_valid: Farthest accepted depth in mm

    Returns:
        New DepthGrid of the same shape
    """
    data = grid.data
    keep = (data >= min_valid) & (data <= max_valid)
    keep &= roi.mask(grid.width, grid.height)

    filtered = np.where(keep, data, 0).astype(np.uint16)
    return grid.with_data(filtered)


def compute_difference(
    baseline: DepthGrid,
    current: DepthGrid,
    noise_floor: int = 100
) -> np.ndarray:
    """
    Compute the excess depth of the current frame over the baseline.

    The baseline is the empty scene, so an object nearer to the sensor gives
    a positive delta baseline - current. Deltas are zeroed where either sample
    is invalid (0) and where the delta does not exceed the noise floor,
    which also removes every negative delta.

    Args:
        baseline: Filtered empty-scene grid
        current: Filtered current grid
        noise_floor: Largest delta (mm) still treated as noise

    Returns:
        uint16 array of excess depths, same shape as the inputs

    Raises:
        FrameSizeMismatchError: If the two grids differ in shape
    """
    if baseline.data.shape != current.data.shape:
        raise FrameSizeMismatchError(
            f"Baseline shape {baseline.data.shape} does not match "
            f"frame shape {current.data.shape}"
        )

    base = baseline.data.astype(np.int32)
    cur = current.data.astype(np.int32)
    delta = base - cur

    valid = (base != 0) & (cur != 0) & (delta > noise_floor)
    difference = np.where(valid, delta, 0).astype(np.uint16)

    logger.debug("Difference grid: %d pixels above noise floor", int(np.count_nonzero(difference)))
    return difference
