"""
Measurement Configuration Module
================================

Handles loading and validation of the tunable constants used by the
depth-difference measurement pipeline: frame geometry, the valid depth band,
noise floor, scan thresholds and the sensor field of view.
Supports JSON configuration files or programmatic overrides.

References:
- Kinect v2 depth sensor: 512x424 depth image, 70.6 x 60 degree field of view
- Pinhole camera model: https://en.wikipedia.org/wiki/Pinhole_camera_model
"""

import json
import math
from dataclasses import dataclass, asdict, fields
from pathlib import Path


@dataclass
class MeasurementConfig:
    """
    Stores the constants of the measurement pipeline.

    Attributes:
        frame_width: Expected depth grid width in pixels
        frame_height: Expected depth grid height in pixels
        bytes_per_sample: Width of one raw depth sample in bytes (uint16)
        roi_width: Initial region-of-interest width in pixels
        roi_height: Initial region-of-interest height in pixels
        min_valid_depth: Samples nearer than this (mm) are discarded
        max_valid_depth: Samples farther than this (mm) are discarded
        noise_floor: Baseline/current deltas at or below this (mm) are zeroed
        edge_density_threshold: A row or column becomes a box edge once its
            count of object pixels exceeds this value
        height_min_count: Excess-depth values seen this many times or fewer are
            treated as outliers when estimating the object height
        horizontal_fov_deg: Horizontal field of view of the sensor in degrees
        vertical_fov_deg: Vertical field of view of the sensor in degrees
        display_max_depth: Depth (mm) that maps to the top of the 8-bit display range
        difference_display_gain: Multiplier applied to excess depth for display
    """
    frame_width: int = 512
    frame_height: int = 424
    bytes_per_sample: int = 2
    roi_width: int = 512
    roi_height: int = 424
    min_valid_depth: int = 500
    max_valid_depth: int = 4000
    noise_floor: int = 100
    edge_density_threshold: int = 10
    height_min_count: int = 4
    horizontal_fov_deg: float = 70.6
    vertical_fov_deg: float = 60.0
    display_max_depth: int = 8000
    difference_display_gain: int = 10

    @property
    def half_horizontal_fov(self) -> float:
        """Half of the horizontal field of view, in radians."""
        return math.radians(self.horizontal_fov_deg / 2.0)

    @property
    def half_vertical_fov(self) -> float:
        """Half of the vertical field of view, in radians."""
        return math.radians(self.vertical_fov_deg / 2.0)

    @property
    def display_divisor(self) -> int:
        """
        Integer divisor mapping millimetres onto the 0-255 display range.

        With the default 8000 mm range this is 31, i.e. one gray level per
        31 mm of depth.
        """
        return max(1, self.display_max_depth // 256)

    def validate(self) -> None:
        """
        Check the configuration for values the pipeline cannot work with.

        Raises:
            ValueError: If any value has the wrong type or is out of range
        """
        for f in fields(self):
            value = getattr(self, f.name)
            # float fields also take ints; bool is never a number here
            allowed = (int, float) if f.type is float else (f.type,)
            if isinstance(value, bool) or not isinstance(value, allowed):
                raise ValueError(
                    f"{f.name} must be of type {f.type.__name__}, got {type(value).__name__}"
                )

        if self.frame_width <= 0 or self.frame_height <= 0:
            raise ValueError("frame_width and frame_height must be positive")
        if self.bytes_per_sample != 2:
            raise ValueError("Only 16-bit depth samples (bytes_per_sample=2) are supported")
        if self.roi_width < 0 or self.roi_height < 0:
            raise ValueError("roi_width and roi_height must not be negative")
        if not 0 <= self.min_valid_depth < self.max_valid_depth <= 65535:
            raise ValueError("Valid depth range must satisfy 0 <= min < max <= 65535")
        if self.noise_floor < 0:
            raise ValueError("noise_floor must not be negative")
        if self.edge_density_threshold < 0 or self.height_min_count < 0:
            raise ValueError("Scan thresholds must not be negative")
        for name in ('horizontal_fov_deg', 'vertical_fov_deg'):
            value = getattr(self, name)
            if not 0.0 < value < 180.0:
                raise ValueError(f"{name} must be between 0 and 180 degrees")
        if self.display_max_depth <= 0:
            raise ValueError("display_max_depth must be positive")


def create_default_config(**overrides) -> MeasurementConfig:
    """
    Create the default configuration (Kinect v2 geometry), optionally
    overriding individual fields.

    Args:
        **overrides: Field values replacing the defaults

    Returns:
        Validated MeasurementConfig

    Raises:
        ValueError: If an override names an unknown field or is out of range
    """
    known = {f.name for f in fields(MeasurementConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")

    config = MeasurementConfig(**overrides)
    config.validate()
    return config


def load_config_from_json(config_path: str) -> MeasurementConfig:
    """
    Load measurement configuration from a JSON file.

    Every key is optional; missing keys keep their defaults. Unknown keys
    are rejected so typos do not silently fall back to defaults.

    Args:
        config_path: Path to the JSON configuration file

    Returns:
        MeasurementConfig object with loaded parameters

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is invalid
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, 'r') as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError("Configuration file must contain a JSON object")

    return create_default_config(**data)


def save_config_to_json(config: MeasurementConfig, output_path: str) -> None:
    """
    Save measurement configuration to a JSON file.

    Args:
        config: MeasurementConfig object to save
        output_path: Path for the output JSON file
    """
    with open(output_path, 'w') as f:
        json.dump(asdict(config), f, indent=4)
