"""
Visualization Module
====================

Turns depth and difference grids into 8-bit grayscale images and composes
them into a viewer window:
- filtered current frame and calibration baseline
- excess-depth map with the bounding box drawn in at full intensity
- region-of-interest outline and measurement readout

The grayscale mapping is a fixed integer division of millimetres, so the same
depth always gives the same gray level regardless of frame content.

References:
- OpenCV drawing functions: https://docs.opencv.org/4.x/dc/da5/tutorial_py_drawing_functions.html
"""

from typing import Optional

import cv2
import numpy as np

from .bounding_box import BoundingBox
from .dimensions import MeasurementResult
from .frames import RegionOfInterest

EDGE_INTENSITY = 255


def depth_to_display(
    depth: np.ndarray,
    min_reliable: int = 0,
    max_reliable: int = 65535,
    divisor: int = 31
) -> np.ndarray:
    """
    Map depths to gray levels.

    Depths inside [min_reliable, max_reliable] become depth // divisor;
    everything else (including the invalid sentinel 0 when min_reliable > 0)
    is black.

    Args:
        depth: uint16 depth array in mm
        min_reliable: Nearest reliable depth of the frame
        max_reliable: Farthest reliable depth of the frame
        divisor: Millimetres per gray level

    Returns:
        uint8 image of the same shape
    """
    reliable = (depth >= min_reliable) & (depth <= max_reliable)
    levels = np.minimum(depth // divisor, 255)
    return np.where(reliable, levels, 0).astype(np.uint8)


def difference_to_display(
    difference: np.ndarray,
    divisor: int = 31,
    gain: int = 10
) -> np.ndarray:
    """
    Map excess depths to gray levels, amplified by gain and saturated at 255.

    Args:
        difference: uint16 excess-depth array in mm
        divisor: Millimetres per gray level before amplification
        gain: Amplification factor

    Returns:
        uint8 image of the same shape
    """
    levels = (difference.astype(np.int64) // divisor) * gain
    return np.minimum(levels, 255).astype(np.uint8)


def draw_bounding_box(
    display: np.ndarray,
    box: BoundingBox,
    intensity: int = EDGE_INTENSITY
) -> np.ndarray:
    """
    Draw the box edges into a grayscale display image.

    The top and bottom rows are painted over columns [left, right), the left
    and right columns over rows [top, bottom).

    Args:
        display: uint8 image (will be copied)
        box: Bounding box
        intensity: Gray level of the edges

    Returns:
        Image with the box drawn
    """
    output = display.copy()
    output[box.top, box.left:box.right] = intensity
    output[box.bottom, box.left:box.right] = intensity
    output[box.top:box.bottom, box.left] = intensity
    output[box.top:box.bottom, box.right] = intensity
    return output


def to_bgr(image: np.ndarray) -> np.ndarray:
    """Convert a grayscale image to BGR; BGR input is copied unchanged."""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return image.copy()


def draw_roi(
    image: np.ndarray,
    roi: RegionOfInterest,
    color=(0, 200, 255)
) -> np.ndarray:
    """Outline the region of interest on a copy of the image (converted to BGR)."""
    output = to_bgr(image)
    h, w = output.shape[:2]
    x2 = min(roi.x2, w - 1)
    y2 = min(roi.y2, h - 1)
    cv2.rectangle(output, (roi.x1, roi.y1), (x2, y2), color, 1)
    return output


def add_measurement_overlay(
    image: np.ndarray,
    measurement: Optional[MeasurementResult],
    status: Optional[str] = None
) -> np.ndarray:
    """
    Write the measurement readout onto an image.

    Args:
        image: Grayscale or BGR image (will be copied)
        measurement: Latest measurement, or None if nothing was measured yet
        status: Short status line (e.g. "measured", "no baseline")

    Returns:
        BGR image with the text overlay
    """
    output = to_bgr(image)

    lines = []
    if status:
        lines.append(f"Status: {status}")
    if measurement is None:
        lines.append("No measurement")
    else:
        lines.append(f"Width:  {measurement.object_width} cm")
        lines.append(f"Height: {measurement.object_height} cm")
        lines.append(f"Depth:  {measurement.object_depth_from_camera} cm")
        lines.append(f"Range:  {measurement.camera_distance} mm")

    y_offset = 20
    for i, line in enumerate(lines):
        text_size = cv2.getTextSize(line, cv2.FONT_HERSHEY_SIMPLEX, 0.45, 1)[0]
        cv2.rectangle(output, (5, y_offset + i * 18 - 13),
                      (12 + text_size[0], y_offset + i * 18 + 4), (0, 0, 0), -1)
        cv2.putText(output, line, (8, y_offset + i * 18),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.45, (0, 255, 0), 1)

    return output


def _label(image: np.ndarray, text: str) -> np.ndarray:
    h = image.shape[0]
    cv2.putText(image, text, (8, h - 10), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 0), 1)
    return image


def create_visualization_grid(
    filtered_display: np.ndarray,
    baseline_display: Optional[np.ndarray] = None,
    difference_display: Optional[np.ndarray] = None,
    measurement: Optional[MeasurementResult] = None,
    status: Optional[str] = None,
    roi: Optional[RegionOfInterest] = None,
    fps: Optional[float] = None
) -> np.ndarray:
    """
    Create a single-row strip of all views for display.

    Layout:
    +----------------+----------------+----------------+
    |    Current     |    Baseline    |   Difference   |
    +----------------+----------------+----------------+

    Missing views are shown black.

    Args:
        filtered_display: Grayscale view of the filtered current frame
        baseline_display: Grayscale view of the baseline (optional)
        difference_display: Grayscale excess-depth view (optional)
        measurement: Latest measurement for the readout
        status: Status line for the readout
        roi: Region of interest, outlined on the baseline view
        fps: Current FPS for display

    Returns:
        Combined BGR image
    """
    blank = np.zeros_like(filtered_display)

    current = to_bgr(filtered_display)
    if fps is not None:
        cv2.putText(current, f"FPS: {fps:.1f}", (8, 20),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 255, 0), 1)

    baseline = to_bgr(baseline_display if baseline_display is not None else blank)
    if roi is not None:
        baseline = draw_roi(baseline, roi)

    difference = add_measurement_overlay(
        difference_display if difference_display is not None else blank,
        measurement,
        status
    )

    return np.hstack([
        _label(current, "Current"),
        _label(baseline, "Baseline"),
        _label(difference, "Difference"),
    ])
