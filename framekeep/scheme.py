"""
Data model shared by the frame sources, inference providers and the filter.

A :class:`FramePacket` is a single immutable image with its capture time. A
:class:`Capture` groups the frames returned by one pull from a source; it is
the unit the filter buffers and dispatches.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

import numpy as np


def _require_aware(value: datetime) -> None:
    # buffered captures are compared against an aware clock
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"captured_at must be timezone-aware, got naive {value.isoformat()}")


@dataclass(frozen=True, eq=False)
class FramePacket:
    """
    A single captured image.

    Attributes:
        frame_data: Image pixels as a NumPy array (HWC)
        captured_at: Timezone-aware capture timestamp
        label: Name the source gives this image (e.g. "color", "depth"), may be empty
        frame_number: Position of the frame in its source, 0 if unknown
        source_id: Identifier of the producing source
        additional_metadata: Free-form metadata attached by the source
    """

    frame_data: np.ndarray
    captured_at: datetime
    label: str = ""
    frame_number: int = 0
    source_id: str = ""
    additional_metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.frame_data, np.ndarray):
            raise TypeError(
                f"frame_data must be a numpy.ndarray, got {type(self.frame_data).__name__}"
            )
        if not isinstance(self.captured_at, datetime):
            raise TypeError(
                f"captured_at must be a datetime, got {type(self.captured_at).__name__}"
            )
        _require_aware(self.captured_at)

    def get_metadata(self, key: str, default: Any = None) -> Any:
        return self.additional_metadata.get(key, default)

    @property
    def frame_id(self) -> str:
        """Identifier used in log records."""
        return f"{self.source_id}_{self.frame_number}"


@dataclass
class Capture:
    """
    The frames returned by one pull from a frame source.

    Attributes:
        frames: Frames of the batch, in source order
        captured_at: Capture time of the batch as reported by the source
    """

    frames: list[FramePacket]
    captured_at: datetime

    def __post_init__(self):
        if not isinstance(self.captured_at, datetime):
            raise TypeError(
                f"captured_at must be a datetime, got {type(self.captured_at).__name__}"
            )
        _require_aware(self.captured_at)

    @classmethod
    def of(cls, frames: list[FramePacket]) -> "Capture":
        """Build a capture stamped with the newest frame's timestamp."""
        if not frames:
            raise ValueError("Capture.of requires at least one frame")
        return cls(frames=list(frames), captured_at=max(f.captured_at for f in frames))

    def __len__(self) -> int:
        return len(self.frames)


@dataclass(frozen=True)
class Classification:
    """One ranked label returned by a classifier."""

    label: str
    score: float

    def to_dict(self) -> dict:
        return {"label": self.label, "score": self.score}


@dataclass(frozen=True)
class Detection:
    """
    One object returned by a detector.

    Attributes:
        label: Detected class name
        score: Confidence between 0 and 1
        bbox: Bounding box in pixels as (x_min, y_min, x_max, y_max)
    """

    label: str
    score: float
    bbox: tuple[int, int, int, int] = (0, 0, 0, 0)

    def to_dict(self) -> dict:
        return {"label": self.label, "score": self.score, "bbox": list(self.bbox)}


@dataclass(frozen=True)
class CameraProperties:
    """Capabilities reported by a frame source."""

    supports_pcd: bool = False
    width: int | None = None
    height: int | None = None
    frame_rate: float | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def without_point_clouds(self) -> "CameraProperties":
        return replace(self, supports_pcd=False)
