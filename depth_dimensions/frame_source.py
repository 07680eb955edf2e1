"""
Depth Frame Input Module
========================

Reads recorded depth frames from disk and hands them to the pipeline one at
a time, standing in for a live depth sensor.

Supported files:
- 16-bit single-channel PNG (read with cv2.IMREAD_UNCHANGED)
- numpy .npy arrays
- raw little-endian uint16 buffers (.raw / .bin), sized width x height x 2

References:
- OpenCV imread flags: https://docs.opencv.org/4.x/d8/d6a/group__imgcodecs__flags.html
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Generator, List, Optional, Union

import cv2
import numpy as np

from .frames import DepthGrid, FrameSizeMismatchError, decode_depth_buffer, ensure_frame_shape

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = ('.png', '.npy', '.raw', '.bin')


@dataclass
class DepthFrame:
    """
    A depth frame as delivered by a source.

    Attributes:
        grid: The depth grid
        timestamp: Time the frame was read, in milliseconds
        frame_number: Sequential frame number (1-based)
        path: File the frame came from
    """
    grid: DepthGrid
    timestamp: float
    frame_number: int
    path: Optional[Path] = None


def load_depth_file(path: Union[str, Path], width: int, height: int) -> np.ndarray:
    """
    Load one depth frame from a file.

    Args:
        path: .png, .npy, .raw or .bin file
        width: Expected frame width
        height: Expected frame height

    Returns:
        (height, width) uint16 array

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file type is not supported
        FrameSizeMismatchError: If the frame has the wrong size or sample type
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Depth frame not found: {path}")

    suffix = path.suffix.lower()
    if suffix == '.png':
        data = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if data is None:
            raise FrameSizeMismatchError(f"Could not decode depth image: {path}")
        if data.dtype != np.uint16 or data.ndim != 2:
            raise FrameSizeMismatchError(
                f"Depth image must be single-channel 16-bit, got {data.dtype} {data.shape}: {path}"
            )
    elif suffix == '.npy':
        data = np.load(path)
        if data.dtype.kind not in 'ui':
            raise FrameSizeMismatchError(f"Depth array must be integer, got {data.dtype}: {path}")
        data = data.astype(np.uint16)
    elif suffix in ('.raw', '.bin'):
        data = decode_depth_buffer(path.read_bytes(), width, height)
    else:
        raise ValueError(f"Unsupported depth frame type: {path.suffix}")

    return ensure_frame_shape(data, width, height)


def save_depth_frame(path: Union[str, Path], data: np.ndarray) -> None:
    """
    Save a depth array as a 16-bit PNG, .npy or raw buffer, chosen by suffix.

    Raises:
        ValueError: If the file type is not supported or writing failed
    """
    path = Path(path)
    data = np.asarray(data, dtype=np.uint16)
    suffix = path.suffix.lower()

    if suffix == '.png':
        if not cv2.imwrite(str(path), data):
            raise ValueError(f"Could not write depth image: {path}")
    elif suffix == '.npy':
        np.save(path, data)
    elif suffix in ('.raw', '.bin'):
        path.write_bytes(data.astype('<u2').tobytes())
    else:
        raise ValueError(f"Unsupported depth frame type: {path.suffix}")


class DepthFrameSource:
    """
    Sequential reader over recorded depth frames.

    Accepts a single file or a directory; directory entries are read in
    sorted filename order and files of other types are ignored.
    """

    def __init__(
        self,
        source: Union[str, Path],
        width: int = 512,
        height: int = 424,
        loop: bool = False,
        min_reliable_distance: int = 0,
        max_reliable_distance: int = 65535
    ):
        """
        Initialize depth frame source.

        Args:
            source: Depth file or directory of depth files
            width: Expected frame width
            height: Expected frame height
            loop: Restart from the first file after the last one
            min_reliable_distance: Reliable-distance bounds attached to every frame
            max_reliable_distance: (recordings carry no per-frame bounds)
        """
        self.source = Path(source)
        self.width = width
        self.height = height
        self.loop = loop
        self.min_reliable_distance = min_reliable_distance
        self.max_reliable_distance = max_reliable_distance

        self.frame_count = 0
        self._files: List[Path] = []
        self._index = 0
        self._opened = False

    def open(self) -> bool:
        """
        Collect the frame files.

        Returns:
            True if at least one frame file was found
        """
        if self.source.is_dir():
            self._files = sorted(
                p for p in self.source.iterdir()
                if p.is_file() and p.suffix.lower() in SUPPORTED_SUFFIXES
            )
        elif self.source.is_file():
            self._files = [self.source]
        else:
            logger.error("Depth source not found: %s", self.source)
            return False

        if not self._files:
            logger.error("No depth frames in %s", self.source)
            return False

        self._index = 0
        self._opened = True
        logger.info("Opened %d depth frame file(s) from %s", len(self._files), self.source)
        return True

    def read(self) -> Optional[DepthFrame]:
        """
        Read the next frame.

        Returns:
            DepthFrame or None if no more frames

        Raises:
            FrameSizeMismatchError: If the next file is not a valid frame
                (the source still advances past it)
        """
        if not self._opened:
            return None

        if self._index >= len(self._files):
            if not self.loop:
                return None
            self._index = 0

        path = self._files[self._index]
        self._index += 1

        data = load_depth_file(path, self.width, self.height)
        self.frame_count += 1

        return DepthFrame(
            grid=DepthGrid(
                data=data,
                min_reliable_distance=self.min_reliable_distance,
                max_reliable_distance=self.max_reliable_distance
            ),
            timestamp=time.time() * 1000.0,
            frame_number=self.frame_count,
            path=path
        )

    def frames(self) -> Generator[DepthFrame, None, None]:
        """
        Generator that yields all frames from the source.

        Invalid frames are skipped with a warning. Stops early if every file
        in a row turned out invalid, so a looping source of bad files ends.
        """
        failures = 0
        while True:
            try:
                frame = self.read()
            except FrameSizeMismatchError as e:
                logger.warning("Skipping frame: %s", e)
                failures += 1
                if failures >= len(self._files):
                    logger.error("No readable depth frames in %s", self.source)
                    break
                continue
            if frame is None:
                break
            failures = 0
            yield frame

    def close(self) -> None:
        self._files = []
        self._opened = False

    @property
    def frame_size(self):
        """Get frame dimensions (width, height)."""
        return (self.width, self.height)

    def __len__(self) -> int:
        return len(self._files)

    def __enter__(self):
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
