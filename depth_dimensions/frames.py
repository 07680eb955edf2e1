"""
Depth Frame Data Model
======================

Containers for single depth frames and the centred region of interest the
measurement pipeline works inside, plus validation of raw sensor buffers.

A depth grid is a row-major array of unsigned 16-bit distances in
millimetres (index = column + row * width). A sample of 0 means the sensor
reported no valid depth for that pixel.
"""

from dataclasses import dataclass
from typing import Union

import numpy as np


class FrameSizeMismatchError(ValueError):
    """Raised when a frame does not have the expected width x height x sample size."""


@dataclass
class DepthGrid:
    """
    One depth frame.

    Attributes:
        data: 2-D uint16 array of depths in millimetres, shape (height, width)
        min_reliable_distance: Sensor-reported nearest reliable depth (mm)
        max_reliable_distance: Sensor-reported farthest reliable depth (mm)
    """
    data: np.ndarray
    min_reliable_distance: int = 0
    max_reliable_distance: int = 65535

    def __post_init__(self):
        if self.data.ndim != 2:
            raise FrameSizeMismatchError(
                f"Depth grid must be 2-D, got shape {self.data.shape}"
            )
        if self.data.dtype != np.uint16:
            self.data = self.data.astype(np.uint16)

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def bytes_per_sample(self) -> int:
        return self.data.dtype.itemsize

    def with_data(self, data: np.ndarray) -> "DepthGrid":
        """Return a grid carrying new samples but this frame's reliable-distance bounds."""
        return DepthGrid(
            data=data,
            min_reliable_distance=self.min_reliable_distance,
            max_reliable_distance=self.max_reliable_distance
        )


@dataclass(frozen=True)
class RegionOfInterest:
    """
    Centred rectangle of pixels that take part in measurement.

    Bounds are inclusive: a column c is inside when x1 <= c <= x2.
    """
    x1: int
    x2: int
    y1: int
    y2: int

    @classmethod
    def centered(
        cls,
        roi_width: int,
        roi_height: int,
        grid_width: int,
        grid_height: int
    ) -> "RegionOfInterest":
        """
        Build the ROI of the given size centred in a grid.

        The requested size is clamped to the grid so that
        0 <= x1 <= x2 <= grid_width (and likewise for rows) always holds.

        Args:
            roi_width: Requested ROI width in pixels
            roi_height: Requested ROI height in pixels
            grid_width: Width of the depth grid
            grid_height: Height of the depth grid

        Returns:
            RegionOfInterest
        """
        roi_width = min(max(int(roi_width), 0), grid_width)
        roi_height = min(max(int(roi_height), 0), grid_height)

        x1 = (grid_width - roi_width) // 2
        y1 = (grid_height - roi_height) // 2
        return cls(x1=x1, x2=grid_width - x1, y1=y1, y2=grid_height - y1)

    def contains(self, column: int, row: int) -> bool:
        return self.x1 <= column <= self.x2 and self.y1 <= row <= self.y2

    def mask(self, width: int, height: int) -> np.ndarray:
        """Boolean (height, width) mask, True inside the ROI."""
        columns = np.arange(width)
        rows = np.arange(height)
        col_inside = (columns >= self.x1) & (columns <= self.x2)
        row_inside = (rows >= self.y1) & (rows <= self.y2)
        return row_inside[:, np.newaxis] & col_inside[np.newaxis, :]


def ensure_frame_shape(data: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Check that a depth array has the expected (height, width) shape.

    Raises:
        FrameSizeMismatchError: If the shape differs
    """
    if data.shape != (height, width):
        raise FrameSizeMismatchError(
            f"Expected depth frame of {width}x{height}, got shape {data.shape}"
        )
    return data


def decode_depth_buffer(
    buffer: Union[bytes, bytearray, memoryview],
    width: int,
    height: int,
    bytes_per_sample: int = 2
) -> np.ndarray:
    """
    Interpret a raw little-endian sensor buffer as a depth array.

    Args:
        buffer: Raw bytes as delivered by the sensor
        width: Frame width in pixels
        height: Frame height in pixels
        bytes_per_sample: Sample width, must be 2

    Returns:
        (height, width) uint16 array (a copy, independent of the buffer)

    Raises:
        FrameSizeMismatchError: If the buffer size does not equal
            width * height * bytes_per_sample
    """
    if bytes_per_sample != 2:
        raise FrameSizeMismatchError(
            f"Unsupported depth sample width: {bytes_per_sample} bytes"
        )

    expected = width * height * bytes_per_sample
    if len(buffer) != expected:
        raise FrameSizeMismatchError(
            f"Depth buffer holds {len(buffer)} bytes, expected {expected} "
            f"({width}x{height}x{bytes_per_sample})"
        )

    samples = np.frombuffer(buffer, dtype='<u2', count=width * height)
    return samples.reshape(height, width).astype(np.uint16)
