"""
Bounding Box Locator
====================

Finds the axis-aligned box around the object in a difference grid by
density-thresholded edge scanning.

Every pixel with a positive excess depth counts as "object present". The
top edge is the first row, scanning downwards, whose count of present pixels
exceeds the density threshold; the bottom edge is the first such row scanning
upwards. Left and right edges are found the same way over columns. Isolated
noise pixels never reach the threshold, so they cannot stretch the box.

An edge that is never found is reported as None rather than as pixel 0, so
"no object" is distinguishable from "object touching the frame border".
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class BoundingBox:
    """
    Pixel bounds of the measured object.

    Attributes:
        top: First object row
        bottom: Last object row (top <= bottom)
        left: First object column
        right: Last object column (left <= right)
    """
    top: int
    bottom: int
    left: int
    right: int

    def __post_init__(self):
        if self.top > self.bottom or self.left > self.right:
            raise ValueError(f"Inconsistent bounding box: {self}")

    @property
    def pixel_width(self) -> int:
        return self.right - self.left

    @property
    def pixel_height(self) -> int:
        return self.bottom - self.top

    def interior(self, array: np.ndarray) -> np.ndarray:
        """
        View of the samples used for histogram construction.

        Rows [top, bottom) and columns [left, right); the closing edges are
        excluded.
        """
        return array[self.top:self.bottom, self.left:self.right]


@dataclass(frozen=True)
class EdgeScan:
    """Result of a two-sided scan: first and last qualifying index, or None."""
    first: Optional[int]
    last: Optional[int]

    @property
    def found(self) -> bool:
        return self.first is not None and self.last is not None


@dataclass(frozen=True)
class BoxScan:
    """Outcome of locating a box; each edge is None when it was not found."""
    top: Optional[int]
    bottom: Optional[int]
    left: Optional[int]
    right: Optional[int]

    @property
    def found(self) -> bool:
        return None not in (self.top, self.bottom, self.left, self.right)

    @property
    def box(self) -> Optional[BoundingBox]:
        if not self.found:
            return None
        return BoundingBox(top=self.top, bottom=self.bottom, left=self.left, right=self.right)


def scan_edges(counts: np.ndarray, threshold: int) -> EdgeScan:
    """
    Scan a 1-D array of per-line counts from both ends at once.

    The first index from the front whose count exceeds the threshold becomes
    `first`, the first index from the back becomes `last`. The scan stops as
    soon as both are known.

    Args:
        counts: Present-pixel count per row (or per column)
        threshold: Count that must be exceeded

    Returns:
        EdgeScan with None for an edge that never qualified
    """
    n = len(counts)
    first: Optional[int] = None
    last: Optional[int] = None

    for offset in range(n):
        if first is None and counts[offset] > threshold:
            first = offset
        back = n - offset - 1
        if last is None and counts[back] > threshold:
            last = back
        if first is not None and last is not None:
            break

    return EdgeScan(first=first, last=last)


def presence_counts(difference: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Count object pixels per row and per column of a difference grid."""
    present = difference > 0
    return present.sum(axis=1), present.sum(axis=0)


def locate_bounding_box(difference: np.ndarray, threshold: int = 10) -> BoxScan:
    """
    Locate the object's bounding box in a difference grid.

    Args:
        difference: Excess-depth grid, shape (height, width)
        threshold: Object pixels a row/column must exceed to become an edge

    Returns:
        BoxScan; `.box` is None unless all four edges were found
    """
    row_counts, column_counts = presence_counts(difference)
    rows = scan_edges(row_counts, threshold)
    columns = scan_edges(column_counts, threshold)

    return BoxScan(top=rows.first, bottom=rows.last, left=columns.first, right=columns.last)
