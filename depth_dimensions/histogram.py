"""
Histogram & Mode Estimation
===========================

Frequency tables over the samples inside the bounding box, and the two
statistics the dimension calculator needs from them:

- object height: the largest excess depth that occurs often enough not to be
  an outlier (difference histogram);
- camera distance: the most frequent valid depth (current-frame histogram).

Histograms are built per frame and thrown away afterwards.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

import numpy as np

from .bounding_box import BoundingBox


class DepthHistogram:
    """
    Ordered mapping from a 16-bit depth value to its number of occurrences.

    Keys are unique and ascending.
    """

    def __init__(self, keys: np.ndarray, counts: np.ndarray):
        self._keys = np.asarray(keys, dtype=np.uint16)
        self._counts = np.asarray(counts, dtype=np.int64)

    @classmethod
    def from_values(cls, values: np.ndarray, exclude_zero: bool = False) -> "DepthHistogram":
        """
        Build a histogram from an array of samples.

        Args:
            values: Samples of any shape
            exclude_zero: Drop the invalid-depth sentinel 0 before counting
        """
        flat = np.asarray(values).ravel()
        if exclude_zero:
            flat = flat[flat != 0]
        keys, counts = np.unique(flat, return_counts=True)
        return cls(keys, counts)

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, value) -> bool:
        return self.count(value) > 0

    def items(self) -> Iterator[Tuple[int, int]]:
        for key, count in zip(self._keys, self._counts):
            yield int(key), int(count)

    def count(self, value: int) -> int:
        index = np.searchsorted(self._keys, value)
        if index < len(self._keys) and self._keys[index] == value:
            return int(self._counts[index])
        return 0

    def mode(self) -> Optional[int]:
        """
        Most frequent key, or None for an empty histogram.

        Ties go to the largest key.
        """
        if len(self._keys) == 0:
            return None
        tied = self._keys[self._counts == self._counts.max()]
        return int(tied[-1])

    def last_key_with_count_above(self, min_count: int) -> Optional[int]:
        """Largest key seen more than min_count times, or None."""
        qualifying = self._keys[self._counts > min_count]
        if len(qualifying) == 0:
            return None
        return int(qualifying[-1])


@dataclass(frozen=True)
class ModeEstimate:
    """
    Statistics taken from the bounding-box histograms.

    Attributes:
        object_height_raw: Largest non-outlier excess depth in mm, None when
            no value occurred often enough
        camera_distance: Most frequent valid depth in mm, 0 if there was none
    """
    object_height_raw: Optional[int]
    camera_distance: int


def estimate_modes(
    difference: np.ndarray,
    current: np.ndarray,
    box: BoundingBox,
    min_count: int = 4
) -> ModeEstimate:
    """
    Build both histograms inside the box and extract their statistics.

    The difference histogram keeps zero entries; the raw-depth histogram
    leaves out invalid (zero) samples.

    Args:
        difference: Excess-depth grid
        current: Filtered current depth grid (array)
        box: Bounding box restricting the samples
        min_count: Occurrences an excess depth must exceed to count as height

    Returns:
        ModeEstimate
    """
    difference_histogram = DepthHistogram.from_values(box.interior(difference))
    depth_histogram = DepthHistogram.from_values(box.interior(current), exclude_zero=True)

    camera_distance = depth_histogram.mode()
    return ModeEstimate(
        object_height_raw=difference_histogram.last_key_with_count_above(min_count),
        camera_distance=camera_distance if camera_distance is not None else 0
    )
