"""
Measurement Pipeline
====================

Runs one depth frame through the full measurement chain:

    ROI filter -> (calibration capture | difference -> bounding box
    -> histograms -> dimensions)

Frames are processed synchronously, one at a time. The calibration baseline
is the only state carried between frames, together with the last measurement,
which is kept until a new one replaces it.
"""

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple, Union

import numpy as np

from .bounding_box import BoundingBox, locate_bounding_box
from .calibration import CalibrationBaselineStore, CalibrationTrigger
from .config import MeasurementConfig, create_default_config
from .depth_filter import apply_roi_filter, compute_difference
from .dimensions import MeasurementResult, compute_dimensions
from .frames import (
    DepthGrid,
    RegionOfInterest,
    decode_depth_buffer,
    ensure_frame_shape,
)
from .histogram import estimate_modes
from .visualization import depth_to_display, difference_to_display, draw_bounding_box

logger = logging.getLogger(__name__)

RawFrame = Union[np.ndarray, DepthGrid, bytes, bytearray, memoryview]


class FrameStatus(Enum):
    """
    What happened to a processed frame.

    CALIBRATED: The frame was stored as the new baseline
    NO_BASELINE: Nothing to compare against yet; no difference computed
    NO_OBJECT: Difference computed but no complete bounding box found
    MEASURED: A new measurement was produced
    """
    CALIBRATED = "calibrated"
    NO_BASELINE = "no baseline"
    NO_OBJECT = "no object"
    MEASURED = "measured"


@dataclass
class FrameOutput:
    """
    Container for the results of one processed frame.

    Attributes:
        status: Outcome of the frame
        filtered: ROI-filtered frame (the new baseline when status is CALIBRATED)
        roi: Region of interest the frame was filtered with
        difference: Excess-depth grid, None without a baseline
        box: Bounding box, None unless found
        measurement: New measurement, None unless status is MEASURED
        display_divisor: Millimetres per gray level for the display helpers
        difference_gain: Amplification of the difference display
        computation_time_ms: Time taken for processing
    """
    status: FrameStatus
    filtered: DepthGrid
    roi: RegionOfInterest
    difference: Optional[np.ndarray] = None
    box: Optional[BoundingBox] = None
    measurement: Optional[MeasurementResult] = None
    display_divisor: int = 31
    difference_gain: int = 10
    computation_time_ms: float = 0.0

    def filtered_display(self) -> np.ndarray:
        """Grayscale view of the filtered frame."""
        return depth_to_display(
            self.filtered.data,
            self.filtered.min_reliable_distance,
            self.filtered.max_reliable_distance,
            self.display_divisor
        )

    def difference_display(self) -> Optional[np.ndarray]:
        """Grayscale view of the difference grid with the box edges at full intensity."""
        if self.difference is None:
            return None
        display = difference_to_display(self.difference, self.display_divisor, self.difference_gain)
        if self.box is not None:
            display = draw_bounding_box(display, self.box)
        return display


class MeasurementEngine:
    """
    Depth-difference volumetric estimator.

    Usage:
        engine = MeasurementEngine()
        engine.request_calibration()
        engine.process_frame(empty_scene)      # stored as baseline
        output = engine.process_frame(frame)   # measured against it
        if output.measurement is not None:
            print(output.measurement.object_width)

    The baseline store may be shared or pre-filled by the caller. Calibration
    requests and ROI changes may come from another thread; each frame reads
    them once at its start.
    """

    def __init__(
        self,
        config: Optional[MeasurementConfig] = None,
        baseline_store: Optional[CalibrationBaselineStore] = None
    ):
        """
        Initialize the engine.

        Args:
            config: Pipeline constants (defaults to the Kinect v2 geometry)
            baseline_store: Store holding the calibration baseline
        """
        self.config = config or create_default_config()
        self.baseline_store = baseline_store or CalibrationBaselineStore()
        self.trigger = CalibrationTrigger()

        self._roi_size: Tuple[int, int] = (self.config.roi_width, self.config.roi_height)
        self._last_measurement: Optional[MeasurementResult] = None

    def set_region_of_interest(self, width: int, height: int) -> None:
        """Set the ROI size used from the next frame on."""
        if width < 0 or height < 0:
            raise ValueError("ROI width and height must not be negative")
        self._roi_size = (int(width), int(height))
        logger.debug("ROI size set to %dx%d", width, height)

    @property
    def roi_size(self) -> Tuple[int, int]:
        return self._roi_size

    def request_calibration(self) -> None:
        """Store the next processed frame as the baseline instead of measuring it."""
        self.trigger.arm()
        logger.info("Calibration requested")

    def set_continuous_calibration(self, enabled: bool) -> None:
        """While enabled, every processed frame replaces the baseline."""
        self.trigger.continuous = enabled

    @property
    def last_measurement(self) -> Optional[MeasurementResult]:
        """Most recent measurement; kept across frames that produce none."""
        return self._last_measurement

    def region_of_interest(self) -> RegionOfInterest:
        width, height = self._roi_size
        return RegionOfInterest.centered(width, height, self.config.frame_width, self.config.frame_height)

    def _to_grid(
        self,
        raw: RawFrame,
        min_reliable_distance: Optional[int],
        max_reliable_distance: Optional[int]
    ) -> DepthGrid:
        width, height = self.config.frame_width, self.config.frame_height

        if isinstance(raw, DepthGrid):
            ensure_frame_shape(raw.data, width, height)
            if min_reliable_distance is None and max_reliable_distance is None:
                return raw
            # explicit bounds override the grid's own
            return replace(
                raw,
                min_reliable_distance=(
                    raw.min_reliable_distance if min_reliable_distance is None else min_reliable_distance
                ),
                max_reliable_distance=(
                    raw.max_reliable_distance if max_reliable_distance is None else max_reliable_distance
                )
            )
        if isinstance(raw, (bytes, bytearray, memoryview)):
            data = decode_depth_buffer(raw, width, height, self.config.bytes_per_sample)
        else:
            data = ensure_frame_shape(np.asarray(raw), width, height)

        return DepthGrid(
            data=data,
            min_reliable_distance=0 if min_reliable_distance is None else min_reliable_distance,
            max_reliable_distance=65535 if max_reliable_distance is None else max_reliable_distance
        )

    def process_frame(
        self,
        raw: RawFrame,
        min_reliable_distance: Optional[int] = None,
        max_reliable_distance: Optional[int] = None
    ) -> FrameOutput:
        """
        Process one depth frame.

        Args:
            raw: (height, width) depth array, DepthGrid, or raw uint16 buffer
            min_reliable_distance: Sensor-reported nearest reliable depth (mm);
                None keeps a DepthGrid's own bound, or 0 for other inputs
            max_reliable_distance: Sensor-reported farthest reliable depth (mm);
                None keeps a DepthGrid's own bound, or 65535 for other inputs

        Returns:
            FrameOutput describing the frame's outcome

        Raises:
            FrameSizeMismatchError: If the frame does not have the configured
                size; no state is changed and a pending calibration stays pending
        """
        start_time = time.perf_counter()
        config = self.config

        grid = self._to_grid(raw, min_reliable_distance, max_reliable_distance)
        roi = self.region_of_interest()
        filtered = apply_roi_filter(grid, roi, config.min_valid_depth, config.max_valid_depth)

        output = FrameOutput(
            status=FrameStatus.NO_BASELINE,
            filtered=filtered,
            roi=roi,
            display_divisor=config.display_divisor,
            difference_gain=config.difference_display_gain
        )

        if self.trigger.consume():
            self.baseline_store.capture(filtered)
            output.status = FrameStatus.CALIBRATED
            return self._finish(output, start_time)

        baseline = self.baseline_store.current()
        if baseline is None:
            logger.debug("No calibration baseline, skipping measurement")
            return self._finish(output, start_time)

        difference = compute_difference(baseline, filtered, config.noise_floor)
        output.difference = difference

        scan = locate_bounding_box(difference, config.edge_density_threshold)
        box = scan.box
        if box is None:
            logger.debug("No object detected (edges: %s)", scan)
            output.status = FrameStatus.NO_OBJECT
            return self._finish(output, start_time)

        output.box = box
        modes = estimate_modes(difference, filtered.data, box, config.height_min_count)

        object_height_raw = modes.object_height_raw
        if object_height_raw is None:
            # keep the previous height off the surface
            previous = self._last_measurement
            object_height_raw = previous.object_depth_from_camera * 10 if previous else 0

        measurement = compute_dimensions(
            box,
            modes.camera_distance,
            object_height_raw,
            grid.width,
            grid.height,
            config
        )

        output.measurement = measurement
        output.status = FrameStatus.MEASURED
        self._last_measurement = measurement

        logger.debug(
            "Measured %dx%dx%d cm at %d mm (box %s)",
            measurement.object_width,
            measurement.object_height,
            measurement.object_depth_from_camera,
            measurement.camera_distance,
            box
        )
        return self._finish(output, start_time)

    @staticmethod
    def _finish(output: FrameOutput, start_time: float) -> FrameOutput:
        output.computation_time_ms = (time.perf_counter() - start_time) * 1000
        return output
