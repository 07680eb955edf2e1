"""
Unit tests for depth frame data model.
"""

import pytest
import numpy as np
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from depth_dimensions.frames import (
    DepthGrid,
    RegionOfInterest,
    FrameSizeMismatchError,
    decode_depth_buffer,
    ensure_frame_shape
)


class TestDepthGrid:
    """Tests for DepthGrid dataclass."""

    def test_dimensions(self):
        """Test width, height and sample size."""
        grid = DepthGrid(np.zeros((424, 512), dtype=np.uint16))
        assert grid.width == 512
        assert grid.height == 424
        assert grid.bytes_per_sample == 2

    def test_converts_to_uint16(self):
        """Test that other integer types are converted."""
        grid = DepthGrid(np.full((4, 6), 1500, dtype=np.int32))
        assert grid.data.dtype == np.uint16
        assert np.all(grid.data == 1500)

    def test_rejects_non_2d(self):
        """Test that a 1-D array is rejected."""
        with pytest.raises(FrameSizeMismatchError):
            DepthGrid(np.zeros(100, dtype=np.uint16))

    def test_with_data_keeps_bounds(self):
        """Test that reliable-distance bounds carry over."""
        grid = DepthGrid(np.zeros((2, 2), dtype=np.uint16), 500, 4500)
        other = grid.with_data(np.ones((2, 2), dtype=np.uint16))
        assert (other.min_reliable_distance, other.max_reliable_distance) == (500, 4500)
        assert np.all(other.data == 1)


class TestRegionOfInterest:
    """Tests for centred ROI computation."""

    def test_full_frame(self):
        """Test ROI covering the whole grid."""
        roi = RegionOfInterest.centered(512, 424, 512, 424)
        assert (roi.x1, roi.x2, roi.y1, roi.y2) == (0, 512, 0, 424)

    def test_centered(self):
        """Test x1 = (W - w) / 2, x2 = W - x1."""
        roi = RegionOfInterest.centered(300, 200, 512, 424)
        assert (roi.x1, roi.x2) == (106, 406)
        assert (roi.y1, roi.y2) == (112, 312)

    def test_oversized_roi_is_clamped(self):
        """Test that an ROI larger than the grid keeps 0 <= x1 <= x2 <= W."""
        roi = RegionOfInterest.centered(1000, 1000, 512, 424)
        assert (roi.x1, roi.x2, roi.y1, roi.y2) == (0, 512, 0, 424)

    def test_zero_size_roi(self):
        """Test a zero-size ROI collapses to the centre."""
        roi = RegionOfInterest.centered(0, 0, 512, 424)
        assert roi.x1 == roi.x2 == 256
        assert roi.y1 == roi.y2 == 212

    def test_contains_is_inclusive(self):
        """Test that both bounds belong to the ROI."""
        roi = RegionOfInterest(x1=10, x2=20, y1=5, y2=8)
        assert roi.contains(10, 5)
        assert roi.contains(20, 8)
        assert not roi.contains(9, 5)
        assert not roi.contains(21, 8)
        assert not roi.contains(15, 9)

    def test_mask_matches_contains(self):
        """Test the boolean mask agrees with contains()."""
        roi = RegionOfInterest(x1=2, x2=5, y1=1, y2=3)
        mask = roi.mask(8, 6)
        assert mask.shape == (6, 8)
        for row in range(6):
            for column in range(8):
                assert mask[row, column] == roi.contains(column, row)


class TestBufferDecoding:
    """Tests for raw buffer decoding and size validation."""

    def test_decode_valid_buffer(self):
        """Test little-endian uint16 decoding in row-major order."""
        data = np.arange(12, dtype='<u2').reshape(3, 4)
        decoded = decode_depth_buffer(data.tobytes(), width=4, height=3)

        assert decoded.shape == (3, 4)
        assert decoded.dtype == np.uint16
        # index = column + row * width
        assert decoded[2, 1] == 1 + 2 * 4

    def test_decode_wrong_size(self):
        """Test that a truncated buffer is rejected."""
        with pytest.raises(FrameSizeMismatchError):
            decode_depth_buffer(b"\x00" * 23, width=4, height=3)

    def test_decode_wrong_sample_width(self):
        """Test that non-16-bit samples are rejected."""
        with pytest.raises(FrameSizeMismatchError):
            decode_depth_buffer(b"\x00" * 48, width=4, height=3, bytes_per_sample=4)

    def test_mismatch_is_value_error(self):
        """Test the error can be caught as ValueError."""
        assert issubclass(FrameSizeMismatchError, ValueError)

    def test_ensure_frame_shape(self):
        """Test shape validation."""
        data = np.zeros((424, 512), dtype=np.uint16)
        assert ensure_frame_shape(data, 512, 424) is data
        with pytest.raises(FrameSizeMismatchError):
            ensure_frame_shape(data, 424, 512)
