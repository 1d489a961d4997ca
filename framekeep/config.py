"""
Configuration for a filtered camera.

The configuration names the frame source and the inference provider the
filter wraps, the trailing window length, and the two threshold maps::

    {
        "camera": "front-door",
        "vision": "person-detector",
        "window_seconds": 10,
        "classifications": {"person": 0.8},
        "objects": {"*": 0.9}
    }
"""

import json
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

from framekeep.exceptions import ConfigurationError

_FIELDS = ("camera", "vision", "window_seconds", "classifications", "objects")


@dataclass
class FilterConfig:
    """
    Attributes:
        camera: Name of the frame source dependency
        vision: Name of the inference provider dependency
        window_seconds: Trailing window length; 0 disables buffering
        classifications: Minimum scores per classifier label ("*" for any label)
        objects: Minimum scores per detector label ("*" for any label)
    """

    camera: str = ""
    vision: str = ""
    window_seconds: int = 0
    classifications: dict[str, float] = field(default_factory=dict)
    objects: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FilterConfig":
        """
        Build a config from its JSON form.

        Raises:
            ConfigurationError: If ``data`` or a threshold map is not a mapping,
                or ``data`` has unknown keys
        """
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"filter config must be a mapping, got {type(data).__name__}"
            )
        unknown = sorted(set(data) - set(_FIELDS))
        if unknown:
            raise ConfigurationError(f"unknown config fields: {', '.join(unknown)}")

        thresholds = {}
        for name in ("classifications", "objects"):
            value = data.get(name) or {}
            if not isinstance(value, dict):
                raise ConfigurationError(
                    _field_message("", name, f"must be a mapping, got {type(value).__name__}")
                )
            thresholds[name] = dict(value)

        return cls(
            camera=data.get("camera", ""),
            vision=data.get("vision", ""),
            window_seconds=data.get("window_seconds", 0),
            classifications=thresholds["classifications"],
            objects=thresholds["objects"],
        )

    def validate(self, path: str = "") -> list[str]:
        """
        Check the configuration and return the names of its dependencies.

        Args:
            path: Location of this config in a larger document, used in messages

        Returns:
            The frame source and inference provider names, in that order

        Raises:
            ConfigurationError: If a required field is missing or a value is invalid
        """
        if not self.camera:
            raise ConfigurationError(_field_message(path, "camera", "is required"))

        if not self.vision:
            raise ConfigurationError(_field_message(path, "vision", "is required"))

        if isinstance(self.window_seconds, bool) or not isinstance(self.window_seconds, int):
            raise ConfigurationError(
                _field_message(path, "window_seconds", "must be an integer")
            )
        if self.window_seconds < 0:
            raise ConfigurationError(
                _field_message(path, "window_seconds", "must not be negative")
            )

        for name in ("classifications", "objects"):
            thresholds = getattr(self, name)
            if not isinstance(thresholds, dict):
                raise ConfigurationError(_field_message(path, name, "must be a mapping"))
            for label, minimum in thresholds.items():
                if isinstance(minimum, bool) or not isinstance(minimum, (int, float)):
                    raise ConfigurationError(
                        _field_message(path, f"{name}.{label}", "must be a number")
                    )

        return [self.camera, self.vision]

    @property
    def window(self) -> timedelta:
        return timedelta(seconds=self.window_seconds)

    def to_dict(self) -> dict[str, Any]:
        return {
            "camera": self.camera,
            "vision": self.vision,
            "window_seconds": self.window_seconds,
            "classifications": dict(self.classifications),
            "objects": dict(self.objects),
        }


def _field_message(path: str, name: str, problem: str) -> str:
    location = f"{path}.{name}" if path else name
    return f"config field '{location}' {problem}"


def load_config(path: str | Path) -> FilterConfig:
    """Read a JSON config file, validate it, and return the config."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"invalid JSON in {path}: {e}") from e

    config = FilterConfig.from_dict(data)
    config.validate()
    return config
