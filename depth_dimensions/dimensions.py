"""
Dimension Calculator
====================

Converts bounding-box pixel extents into physical sizes using the sensor's
field of view.

At distance d a sensor with horizontal field of view H sees a strip
2 * d * tan(H / 2) wide spread over the full frame width, so a box spanning
p of W pixels is

    width = 2 * d * tan(H / 2) * p / W

and likewise vertically. All results are reported in whole centimetres,
truncated.

Reference: Basic pinhole camera geometry
https://en.wikipedia.org/wiki/Pinhole_camera_model
"""

import math
from dataclasses import dataclass
from typing import Optional

from .bounding_box import BoundingBox
from .config import MeasurementConfig


@dataclass(frozen=True)
class MeasurementResult:
    """
    Measured object dimensions.

    Attributes:
        object_height: Vertical extent of the object in the image plane, cm
        object_width: Horizontal extent of the object in the image plane, cm
        object_depth_from_camera: How far the object stands off the reference
            surface (largest non-outlier excess depth), cm
        camera_distance: Modal distance from the camera to the object, mm
        box: Bounding box the measurement was taken from
    """
    object_height: int
    object_width: int
    object_depth_from_camera: int
    camera_distance: int = 0
    box: Optional[BoundingBox] = None


def project_extent(distance: float, half_fov: float, pixels: int, total_pixels: int) -> float:
    """Physical length (same unit as distance) of `pixels` out of `total_pixels`."""
    return 2.0 * distance * math.tan(half_fov) * pixels / total_pixels


def compute_dimensions(
    box: BoundingBox,
    camera_distance: int,
    object_height_raw: int,
    grid_width: int,
    grid_height: int,
    config: MeasurementConfig
) -> MeasurementResult:
    """
    Compute the object's width, height and height off the surface.

    Args:
        box: Bounding box in pixels
        camera_distance: Modal object distance in mm
        object_height_raw: Excess depth in mm
        grid_width: Frame width in pixels
        grid_height: Frame height in pixels
        config: Provides the field of view

    Returns:
        MeasurementResult in centimetres
    """
    width_mm = project_extent(camera_distance, config.half_horizontal_fov, box.pixel_width, grid_width)
    height_mm = project_extent(camera_distance, config.half_vertical_fov, box.pixel_height, grid_height)

    return MeasurementResult(
        object_height=int(height_mm / 10),
        object_width=int(width_mm / 10),
        object_depth_from_camera=int(object_height_raw / 10),
        camera_distance=int(camera_distance),
        box=box
    )
