"""
framekeep: trigger-based frame filtering for camera capture pipelines

framekeep sits between a frame source and a storage pipeline and forwards only
the frames whose classification or detection scores cross configured
thresholds. When a frame triggers, the frames buffered in the preceding
window are released as well, so stored data includes the lead-up to an event.

Quick Start:
    >>> from framekeep import FilterConfig, FilteredCamera
    >>> config = FilterConfig(camera="cam", vision="detector", window_seconds=10,
    ...                       objects={"person": 0.8})
    >>> camera = FilteredCamera(config, source, provider)
    >>> capture = await camera.get_images(data_capture=True)
    >>> if capture is not None:
    ...     store(capture)
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Core API
from .camera import FilteredCamera, FilteredStream
from .config import FilterConfig, load_config
from .controller import TriggerController
from .scheme import CameraProperties, Capture, Classification, Detection, FramePacket

# Collaborator interfaces
from .sources import FrameSource, FrameStream, InferenceProvider

# Building blocks
from .filters.threshold import ThresholdMap, ThresholdPolicy
from .buffers.window_buffer import DispatchQueue, WindowBuffer
from .metrics import FilterMetrics

# Exceptions
from .exceptions import (
    FramekeepError,
    ConfigurationError,
    UnsupportedOperationError,
    SourceExhaustedError,
)

__all__ = [
    # Core API
    "FilteredCamera",
    "FilteredStream",
    "FilterConfig",
    "load_config",
    "TriggerController",
    "FramePacket",
    "Capture",
    "Classification",
    "Detection",
    "CameraProperties",

    # Collaborator interfaces
    "FrameSource",
    "FrameStream",
    "InferenceProvider",

    # Building blocks
    "ThresholdMap",
    "ThresholdPolicy",
    "DispatchQueue",
    "WindowBuffer",
    "FilterMetrics",

    # Exceptions
    "FramekeepError",
    "ConfigurationError",
    "UnsupportedOperationError",
    "SourceExhaustedError",
]
