"""
Threshold filtering for inference results.

Filters decide whether a frame's classification or detection results are
strong enough to trigger a capture.
"""

from framekeep.filters.threshold import (
    WILDCARD,
    ThresholdMap,
    ThresholdPolicy,
    keep_classifications,
    keep_detections,
)

__all__ = [
    "WILDCARD",
    "ThresholdMap",
    "ThresholdPolicy",
    "keep_classifications",
    "keep_detections",
]
