"""
Unit tests for histogram and mode estimation.
"""

import numpy as np
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from depth_dimensions.bounding_box import BoundingBox
from depth_dimensions.histogram import DepthHistogram, ModeEstimate, estimate_modes


class TestDepthHistogram:
    """Tests for DepthHistogram."""

    def test_ordered_unique_keys(self):
        """Test keys are unique and ascending with matching counts."""
        histogram = DepthHistogram.from_values(np.array([300, 100, 300, 200, 300, 100]))
        assert list(histogram.items()) == [(100, 2), (200, 1), (300, 3)]
        assert len(histogram) == 3

    def test_exclude_zero(self):
        """Test invalid samples can be left out."""
        values = np.array([0, 0, 0, 1500, 1500])
        assert DepthHistogram.from_values(values).count(0) == 3
        assert 0 not in DepthHistogram.from_values(values, exclude_zero=True)
        assert 1500 in DepthHistogram.from_values(values, exclude_zero=True)

    def test_count_missing_key(self):
        """Test count of an absent value is 0."""
        histogram = DepthHistogram.from_values(np.array([10, 20]))
        assert histogram.count(15) == 0
        assert histogram.count(99) == 0

    def test_mode(self):
        """Test the most frequent key is returned."""
        histogram = DepthHistogram.from_values(np.array([1500] * 5 + [1600] * 2 + [900] * 3))
        assert histogram.mode() == 1500

    def test_mode_tie_takes_largest_key(self):
        """Test ties resolve to the largest key."""
        histogram = DepthHistogram.from_values(np.array([1500, 1500, 1700, 1700, 1600]))
        assert histogram.mode() == 1700

    def test_mode_empty(self):
        """Test an empty histogram has no mode."""
        histogram = DepthHistogram.from_values(np.array([0, 0]), exclude_zero=True)
        assert len(histogram) == 0
        assert histogram.mode() is None

    def test_last_key_with_count_above(self):
        """Test the largest key that is not a low-frequency outlier."""
        values = np.array([0] * 20 + [480] * 9 + [500] * 30 + [510] * 5 + [900] * 4)
        histogram = DepthHistogram.from_values(values)
        # 900 occurs only 4 times, 510 occurs 5 times
        assert histogram.last_key_with_count_above(4) == 510
        assert histogram.last_key_with_count_above(5) == 500

    def test_last_key_none_qualifies(self):
        """Test None when every count is at or below the minimum."""
        histogram = DepthHistogram.from_values(np.array([100, 200, 200]))
        assert histogram.last_key_with_count_above(4) is None


class TestEstimateModes:
    """Tests for estimate_modes."""

    def test_block_scene(self):
        """Test height and camera distance for a uniform block."""
        current = np.full((40, 40), 2000, dtype=np.uint16)
        difference = np.zeros((40, 40), dtype=np.uint16)
        current[10:30, 10:30] = 1500
        difference[10:30, 10:30] = 500

        box = BoundingBox(top=10, bottom=29, left=10, right=29)
        estimate = estimate_modes(difference, current, box, min_count=4)

        assert estimate == ModeEstimate(object_height_raw=500, camera_distance=1500)

    def test_only_box_interior_counts(self):
        """Test samples outside the box do not influence the modes."""
        current = np.full((20, 20), 3000, dtype=np.uint16)
        difference = np.full((20, 20), 900, dtype=np.uint16)
        current[5:10, 5:10] = 1200
        difference[5:10, 5:10] = 300

        estimate = estimate_modes(difference, current, BoundingBox(5, 10, 5, 10))

        assert estimate.camera_distance == 1200
        assert estimate.object_height_raw == 300

    def test_invalid_depth_excluded_from_distance(self):
        """Test zero samples never become the camera distance."""
        current = np.zeros((10, 10), dtype=np.uint16)
        current[2, 2] = 1800
        difference = np.zeros((10, 10), dtype=np.uint16)

        estimate = estimate_modes(difference, current, BoundingBox(0, 9, 0, 9))

        assert estimate.camera_distance == 1800
        # only zeros in the difference histogram, 81 of them
        assert estimate.object_height_raw == 0

    def test_empty_depth_histogram(self):
        """Test camera distance is 0 when no valid depth is inside the box."""
        zeros = np.zeros((10, 10), dtype=np.uint16)
        estimate = estimate_modes(zeros, zeros, BoundingBox(0, 9, 0, 9))
        assert estimate.camera_distance == 0

    def test_height_unresolved(self):
        """Test a too-small window leaves the height undetermined."""
        difference = np.full((10, 10), 600, dtype=np.uint16)
        current = np.full((10, 10), 1400, dtype=np.uint16)

        estimate = estimate_modes(difference, current, BoundingBox(0, 2, 0, 2), min_count=4)

        assert estimate.object_height_raw is None
        assert estimate.camera_distance == 1400
