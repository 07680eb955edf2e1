"""
Unit tests for measurement configuration module.
"""

import pytest
import math
import json
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from depth_dimensions.config import (
    MeasurementConfig,
    load_config_from_json,
    create_default_config,
    save_config_to_json
)


class TestMeasurementConfig:
    """Tests for MeasurementConfig dataclass."""

    def test_defaults_match_kinect_geometry(self):
        """Test default frame size, depth band and thresholds."""
        config = MeasurementConfig()
        assert (config.frame_width, config.frame_height) == (512, 424)
        assert (config.min_valid_depth, config.max_valid_depth) == (500, 4000)
        assert config.noise_floor == 100
        assert config.edge_density_threshold == 10
        assert config.height_min_count == 4

    def test_half_fov_properties(self):
        """Test half field-of-view angles in radians."""
        config = MeasurementConfig()
        assert abs(config.half_horizontal_fov - math.radians(35.3)) < 1e-12
        assert abs(config.half_vertical_fov - math.radians(30.0)) < 1e-12

    def test_display_divisor(self):
        """Test millimetres-per-gray-level divisor."""
        assert MeasurementConfig().display_divisor == 31
        assert MeasurementConfig(display_max_depth=4096).display_divisor == 16

    def test_validate_rejects_inverted_depth_band(self):
        """Test that min >= max depth is rejected."""
        config = MeasurementConfig(min_valid_depth=4000, max_valid_depth=500)
        with pytest.raises(ValueError):
            config.validate()

    def test_validate_rejects_bad_fov(self):
        """Test that a field of view outside (0, 180) is rejected."""
        with pytest.raises(ValueError):
            MeasurementConfig(horizontal_fov_deg=0.0).validate()
        with pytest.raises(ValueError):
            MeasurementConfig(vertical_fov_deg=180.0).validate()

    def test_validate_rejects_non_16_bit_samples(self):
        """Test that only 2-byte samples are accepted."""
        with pytest.raises(ValueError):
            MeasurementConfig(bytes_per_sample=4).validate()


class TestDefaultConfig:
    """Tests for default configuration creation."""

    def test_create_default_config(self):
        """Test creating default configuration."""
        config = create_default_config()
        assert config == MeasurementConfig()

    def test_overrides(self):
        """Test custom parameter values."""
        config = create_default_config(frame_width=640, frame_height=480, noise_floor=50)
        assert config.frame_width == 640
        assert config.frame_height == 480
        assert config.noise_floor == 50

    def test_unknown_override(self):
        """Test that unknown fields are rejected."""
        with pytest.raises(ValueError):
            create_default_config(focal_length=700.0)


class TestConfigLoading:
    """Tests for configuration loading and saving."""

    def test_load_partial_config(self, tmp_path):
        """Test that missing keys keep their defaults."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"roi_width": 300, "roi_height": 200}))

        config = load_config_from_json(str(path))

        assert (config.roi_width, config.roi_height) == (300, 200)
        assert config.min_valid_depth == 500

    def test_load_missing_file(self):
        """Test loading non-existent file."""
        with pytest.raises(FileNotFoundError):
            load_config_from_json("/nonexistent/path/config.json")

    def test_load_unknown_key(self, tmp_path):
        """Test loading configuration with a misspelled field."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"noise_flor": 80}))

        with pytest.raises(ValueError):
            load_config_from_json(str(path))

    @pytest.mark.parametrize("value", ["100", None, [100], True])
    def test_load_wrong_type(self, tmp_path, value):
        """Test a value of the wrong type is reported as ValueError."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"noise_floor": value}))

        with pytest.raises(ValueError):
            load_config_from_json(str(path))

    def test_load_int_for_float_field(self, tmp_path):
        """Test whole-number JSON values are accepted for float fields."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"vertical_fov_deg": 45}))

        assert load_config_from_json(str(path)).vertical_fov_deg == 45

    def test_load_non_object(self, tmp_path):
        """Test loading a JSON file that is not an object."""
        path = tmp_path / "config.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(ValueError):
            load_config_from_json(str(path))

    def test_save_and_load_config(self, tmp_path):
        """Test save followed by load gives the same configuration."""
        original = create_default_config(horizontal_fov_deg=58.0, vertical_fov_deg=45.0, noise_floor=80)
        path = tmp_path / "config.json"

        save_config_to_json(original, str(path))
        loaded = load_config_from_json(str(path))

        assert loaded == original
