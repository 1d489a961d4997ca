import json

import pytest
from framekeep.config import FilterConfig, load_config
from framekeep.exceptions import ConfigurationError


class TestFilterConfig:
    def test_validate_returns_dependencies(self):
        config = FilterConfig(camera="cam", vision="vis")
        assert config.validate() == ["cam", "vis"]

    def test_camera_required(self):
        with pytest.raises(ConfigurationError, match="config field 'camera' is required"):
            FilterConfig(vision="vis").validate()

    def test_vision_required(self):
        with pytest.raises(ConfigurationError, match="config field 'vision' is required"):
            FilterConfig(camera="cam").validate()

    def test_path_prefixes_field_name(self):
        with pytest.raises(ConfigurationError, match="'components.0.camera'"):
            FilterConfig().validate("components.0")

    @pytest.mark.parametrize("window", [-1, 1.5, True, "10"])
    def test_invalid_window(self, window):
        with pytest.raises(ConfigurationError, match="window_seconds"):
            FilterConfig(camera="cam", vision="vis", window_seconds=window).validate()

    def test_non_numeric_threshold(self):
        config = FilterConfig(camera="cam", vision="vis", objects={"car": "high"})
        with pytest.raises(ConfigurationError, match="objects.car"):
            config.validate()

    def test_window_property(self):
        assert FilterConfig(window_seconds=10).window.total_seconds() == 10
        assert not FilterConfig().window

    def test_from_dict(self):
        config = FilterConfig.from_dict(
            {
                "camera": "cam",
                "vision": "vis",
                "window_seconds": 5,
                "classifications": {"person": 0.8},
                "objects": {"*": 0.9},
            }
        )
        assert config.window_seconds == 5
        assert config.classifications == {"person": 0.8}
        assert config.objects == {"*": 0.9}

    def test_from_dict_rejects_unknown_fields(self):
        with pytest.raises(ConfigurationError, match="unknown config fields: colour"):
            FilterConfig.from_dict({"camera": "cam", "colour": "red"})

    def test_from_dict_rejects_non_mapping(self):
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            FilterConfig.from_dict(["cam"])

    @pytest.mark.parametrize("field", ["classifications", "objects"])
    @pytest.mark.parametrize("value", [[0.5, 0.9], 0.8, "person"])
    def test_from_dict_rejects_non_mapping_thresholds(self, field, value):
        data = {"camera": "cam", "vision": "vis", field: value}
        with pytest.raises(ConfigurationError, match=f"config field '{field}' must be a mapping"):
            FilterConfig.from_dict(data)

    def test_from_dict_accepts_null_thresholds(self):
        config = FilterConfig.from_dict({"camera": "cam", "vision": "vis", "objects": None})
        assert config.objects == {}

    def test_validate_rejects_non_mapping_thresholds(self):
        config = FilterConfig(camera="cam", vision="vis", classifications=[("a", 0.8)])
        with pytest.raises(ConfigurationError, match="'classifications' must be a mapping"):
            config.validate()

    def test_to_dict_round_trips_through_from_dict(self):
        config = FilterConfig(camera="cam", vision="vis", window_seconds=3, objects={"b": 0.5})
        assert FilterConfig.from_dict(config.to_dict()) == config


class TestLoadConfig:
    def test_load_valid_file(self, tmp_path):
        path = tmp_path / "filter.json"
        path.write_text(json.dumps({"camera": "cam", "vision": "vis", "window_seconds": 2}))

        config = load_config(path)

        assert config.camera == "cam"
        assert config.window_seconds == 2

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "filter.json"
        path.write_text("{not json")

        with pytest.raises(ConfigurationError, match="invalid JSON"):
            load_config(path)

    def test_loaded_config_is_validated(self, tmp_path):
        path = tmp_path / "filter.json"
        path.write_text(json.dumps({"camera": "cam"}))

        with pytest.raises(ConfigurationError, match="'vision' is required"):
            load_config(path)
