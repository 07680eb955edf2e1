#!/usr/bin/env python3
"""
Depth-Difference Object Measurement - Main Entry Point
======================================================

Measures objects placed in front of a depth camera by comparing recorded
depth frames against an empty-scene calibration frame.

Usage:
    python main.py --frames recordings/ --calibrate-first
    python main.py --frames recordings/ --calibration-frame empty.png --no-display

References:
- OpenCV Python Tutorials: https://docs.opencv.org/4.x/d6/d00/tutorial_py_root.html
- Pinhole camera model: https://en.wikipedia.org/wiki/Pinhole_camera_model
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import cv2

from depth_dimensions.config import (
    MeasurementConfig,
    load_config_from_json,
    create_default_config,
)
from depth_dimensions.frame_source import DepthFrameSource, load_depth_file
from depth_dimensions.frames import FrameSizeMismatchError
from depth_dimensions.pipeline import MeasurementEngine, FrameOutput, FrameStatus
from depth_dimensions.visualization import create_visualization_grid, depth_to_display

ROI_STEP = 16


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Depth-difference object measurement",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # First frame of the recording is the empty scene
    python main.py --frames recordings/ --calibrate-first

    # Separate empty-scene frame, headless, save annotated views
    python main.py --frames recordings/ --calibration-frame empty.png --no-display --output out/

    # Measure only inside a 300x250 window
    python main.py --frames recordings/ --calibrate-first --roi 300 250
        """,
    )

    # Input
    parser.add_argument(
        "--frames",
        type=str,
        required=True,
        help="Depth frame file or directory (.png 16-bit, .npy, .raw/.bin)",
    )
    parser.add_argument(
        "--loop", action="store_true", help="Replay the recording until quit"
    )

    # Configuration
    parser.add_argument(
        "--config", type=str, help="Path to measurement configuration JSON file"
    )
    parser.add_argument(
        "--roi",
        nargs=2,
        type=int,
        metavar=("WIDTH", "HEIGHT"),
        help="Region of interest size in pixels (default: full frame)",
    )

    # Calibration
    calibration_group = parser.add_mutually_exclusive_group()
    calibration_group.add_argument(
        "--calibration-frame",
        type=str,
        help="Depth frame of the empty scene to use as baseline",
    )
    calibration_group.add_argument(
        "--calibrate-first",
        action="store_true",
        help="Use the first frame of the recording as baseline",
    )
    parser.add_argument(
        "--continuous-calibration",
        action="store_true",
        help="Replace the baseline with every frame (toggle with 'C')",
    )

    # Output
    parser.add_argument(
        "--output", type=str, help="Output directory for saving views"
    )
    parser.add_argument(
        "--no-display",
        action="store_true",
        help="Run without display (useful for headless processing)",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging"
    )

    return parser.parse_args(argv)


def setup_config(args) -> MeasurementConfig:
    """Load or create measurement configuration."""
    if args.config:
        print(f"Loading configuration from: {args.config}")
        config = load_config_from_json(args.config)
    else:
        print("Using default measurement configuration")
        config = create_default_config()

    if args.roi:
        config.roi_width, config.roi_height = args.roi
        config.validate()
    return config


def format_measurement(output: FrameOutput) -> str:
    m = output.measurement
    return (
        f"W={m.object_width}cm H={m.object_height}cm D={m.object_depth_from_camera}cm "
        f"(range {m.camera_distance}mm, box {output.box.left},{output.box.top}"
        f"-{output.box.right},{output.box.bottom})"
    )


def save_views(output_dir: Path, frame_number: int, output: FrameOutput) -> None:
    """Write the grayscale views of a processed frame."""
    cv2.imwrite(str(output_dir / f"frame_{frame_number:04d}_depth.png"), output.filtered_display())
    difference = output.difference_display()
    if difference is not None:
        cv2.imwrite(str(output_dir / f"frame_{frame_number:04d}_difference.png"), difference)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Print header
    print("=" * 60)
    print("  Depth-Difference Object Measurement")
    print("=" * 60)
    print()

    try:
        config = setup_config(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Frame size: {config.frame_width}x{config.frame_height}")
    print(f"Valid depth: {config.min_valid_depth}-{config.max_valid_depth} mm")
    print(f"Field of view: {config.horizontal_fov_deg} x {config.vertical_fov_deg} deg")
    print()

    engine = MeasurementEngine(config)

    if args.calibration_frame:
        try:
            empty_scene = load_depth_file(
                args.calibration_frame, config.frame_width, config.frame_height
            )
        except (FileNotFoundError, ValueError) as e:
            print(f"Error: could not load calibration frame: {e}")
            sys.exit(1)
        engine.request_calibration()
        engine.process_frame(empty_scene)
        print(f"Calibrated from: {args.calibration_frame}")
    elif args.calibrate_first:
        engine.request_calibration()

    continuous = args.continuous_calibration
    engine.set_continuous_calibration(continuous)

    source = DepthFrameSource(
        args.frames,
        width=config.frame_width,
        height=config.frame_height,
        loop=args.loop,
    )
    if not source.open():
        print("Error: Could not open depth frame source")
        sys.exit(1)

    output_dir = None
    if args.output:
        output_dir = Path(args.output)
        output_dir.mkdir(parents=True, exist_ok=True)

    print("Processing...")
    if not args.no_display:
        print("Controls:")
        print("  'c' - Calibrate on next frame")
        print("  'C' - Toggle continuous calibration")
        print("  'q' - Quit")
        print("  's' - Save views")
        print("  'SPACE' - Pause/Resume")
        print("  '[' / ']' - Shrink/grow ROI width")
        print("  '{' / '}' - Shrink/grow ROI height")
    print()

    # FPS calculation
    fps_start_time = time.time()
    fps_frame_count = 0
    current_fps = 0.0

    paused = False
    baseline_display = None
    last_printed = None
    frame_idx = 0

    try:
        for depth_frame in source.frames():
            try:
                output = engine.process_frame(
                    depth_frame.grid,
                    depth_frame.grid.min_reliable_distance,
                    depth_frame.grid.max_reliable_distance,
                )
            except FrameSizeMismatchError as e:
                print(f"Frame {depth_frame.frame_number} discarded: {e}")
                continue

            if output.status is FrameStatus.CALIBRATED:
                print(f"Frame {depth_frame.frame_number}: captured as calibration baseline")
            elif output.status is FrameStatus.MEASURED:
                text = format_measurement(output)
                if text != last_printed:
                    print(f"Frame {depth_frame.frame_number}: {text}")
                    last_printed = text

            baseline = engine.baseline_store.current()
            if baseline is not None:
                baseline_display = depth_to_display(
                    baseline.data, divisor=config.display_divisor
                )

            # Update FPS
            fps_frame_count += 1
            if fps_frame_count >= 10:
                elapsed = time.time() - fps_start_time
                current_fps = fps_frame_count / elapsed if elapsed > 0 else 0.0
                fps_start_time = time.time()
                fps_frame_count = 0

            if output_dir and output.status is FrameStatus.MEASURED and args.no_display:
                save_views(output_dir, depth_frame.frame_number, output)

            if not args.no_display:
                grid = create_visualization_grid(
                    output.filtered_display(),
                    baseline_display,
                    output.difference_display(),
                    engine.last_measurement,
                    output.status.value,
                    output.roi,
                    current_fps,
                )
                cv2.imshow("Depth Measurement", grid)

                key = cv2.waitKey(1) & 0xFF

                while paused:
                    pause_key = cv2.waitKey(100) & 0xFF
                    if pause_key == ord(" "):
                        paused = False
                        print("Resumed")
                    elif pause_key == ord("q"):
                        paused = False
                        key = ord("q")
                        break
                    elif pause_key == ord("c"):
                        key = pause_key
                        paused = False

                width, height = engine.roi_size
                if key == ord("q"):
                    print("\nQuitting...")
                    break
                elif key == ord(" "):
                    paused = True
                    print("Paused (press SPACE to resume)")
                elif key == ord("c"):
                    engine.request_calibration()
                    print("Calibration requested")
                elif key == ord("C"):
                    continuous = not continuous
                    engine.set_continuous_calibration(continuous)
                    print(f"Continuous calibration {'on' if continuous else 'off'}")
                elif key == ord("["):
                    engine.set_region_of_interest(max(width - ROI_STEP, 0), height)
                elif key == ord("]"):
                    engine.set_region_of_interest(min(width + ROI_STEP, config.frame_width), height)
                elif key == ord("{"):
                    engine.set_region_of_interest(width, max(height - ROI_STEP, 0))
                elif key == ord("}"):
                    engine.set_region_of_interest(width, min(height + ROI_STEP, config.frame_height))
                elif key == ord("s"):
                    if output_dir:
                        save_views(output_dir, depth_frame.frame_number, output)
                        print(f"Saved frame {depth_frame.frame_number}")

            frame_idx += 1

    except KeyboardInterrupt:
        print("\nInterrupted by user")

    finally:
        source.close()
        if not args.no_display:
            cv2.destroyAllWindows()

    last = engine.last_measurement
    print(f"\nProcessed {frame_idx} frames")
    if last is not None:
        print(
            f"Last measurement: width {last.object_width} cm, height {last.object_height} cm, "
            f"depth {last.object_depth_from_camera} cm"
        )
    print("Done!")


if __name__ == "__main__":
    main()
