"""
Depth-Difference Volumetric Estimation
======================================

Measures the width, height and height-off-surface of an object placed in
front of a depth camera by comparing each live depth frame against an
empty-scene calibration baseline.

Pipeline: ROI filter -> difference against baseline -> density-thresholded
bounding box -> histogram modes -> field-of-view projection.

Why did the parcel refuse to be measured?
It didn't want anyone to know how deep its issues went!

References:
- Kinect v2 depth sensor: 512x424 pixels, 70.6 x 60 degree field of view
- Pinhole camera model: https://en.wikipedia.org/wiki/Pinhole_camera_model
"""

from .config import MeasurementConfig, create_default_config, load_config_from_json, save_config_to_json
from .frames import DepthGrid, RegionOfInterest, FrameSizeMismatchError
from .dimensions import MeasurementResult
from .pipeline import MeasurementEngine, FrameOutput, FrameStatus

__version__ = "1.0.0"

__all__ = [
    "MeasurementConfig",
    "create_default_config",
    "load_config_from_json",
    "save_config_to_json",
    "DepthGrid",
    "RegionOfInterest",
    "FrameSizeMismatchError",
    "MeasurementResult",
    "MeasurementEngine",
    "FrameOutput",
    "FrameStatus",
]
