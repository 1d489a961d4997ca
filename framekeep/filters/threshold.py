"""
Threshold policy for classification and detection results.

A frame is kept when any result scores strictly above the minimum configured
for its label, or strictly above the minimum configured for the wildcard label
``*``. Labels with no entry of their own and no wildcard never trigger.
"""

from collections.abc import Iterable, Iterator, Mapping
from typing import Protocol

WILDCARD = "*"


class ScoredLabel(Protocol):
    label: str
    score: float


class ThresholdMap(Mapping):
    """
    Read-only mapping from label to minimum confidence score.

    The minimum is an exclusive lower bound: a score equal to the threshold
    does not match. The reserved label ``*`` applies to every label.

    Example:
        >>> thresholds = ThresholdMap({"person": 0.8, "*": 0.95})
        >>> thresholds.matches("person", 0.9)
        True
        >>> thresholds.matches("dog", 0.9)
        False
    """

    def __init__(self, thresholds: Mapping[str, float] | None = None):
        values = {}
        for label, minimum in (thresholds or {}).items():
            if isinstance(minimum, bool) or not isinstance(minimum, (int, float)):
                raise ValueError(
                    f"threshold for label '{label}' must be a number, got {type(minimum).__name__}"
                )
            values[str(label)] = float(minimum)
        self._thresholds = values

    def __getitem__(self, label: str) -> float:
        return self._thresholds[label]

    def __iter__(self) -> Iterator[str]:
        return iter(self._thresholds)

    def __len__(self) -> int:
        return len(self._thresholds)

    def __repr__(self) -> str:
        return f"ThresholdMap({self._thresholds!r})"

    def matches(self, label: str, score: float) -> bool:
        """Check one (label, score) pair against its own and the wildcard minimum."""
        minimum = self._thresholds.get(label)
        if minimum is not None and score > minimum:
            return True

        minimum = self._thresholds.get(WILDCARD)
        if minimum is not None and score > minimum:
            return True

        return False


def keep_results(results: Iterable[ScoredLabel], thresholds: ThresholdMap) -> bool:
    """Return True if any result matches the threshold map."""
    return any(thresholds.matches(r.label, r.score) for r in results)


def keep_classifications(results, thresholds: ThresholdMap) -> bool:
    return keep_results(results, thresholds)


def keep_detections(results, thresholds: ThresholdMap) -> bool:
    return keep_results(results, thresholds)


class ThresholdPolicy:
    """
    The classification and detection threshold maps of one filter.

    An empty map disables its modality: the filter does not request those
    results at all, so the modality can neither trigger nor block a frame.

    Attributes:
        classifications: Minimum scores for classifier labels
        objects: Minimum scores for detector labels
    """

    def __init__(
        self,
        classifications: Mapping[str, float] | None = None,
        objects: Mapping[str, float] | None = None,
    ):
        self.classifications = ThresholdMap(classifications)
        self.objects = ThresholdMap(objects)

    @property
    def classification_enabled(self) -> bool:
        return len(self.classifications) > 0

    @property
    def detection_enabled(self) -> bool:
        return len(self.objects) > 0

    def keep_classifications(self, results) -> bool:
        return keep_classifications(results, self.classifications)

    def keep_detections(self, results) -> bool:
        return keep_detections(results, self.objects)
