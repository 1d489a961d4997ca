"""
Tests for the classification/detection threshold policy.
"""

import pytest
from framekeep.filters.threshold import (
    WILDCARD,
    ThresholdMap,
    ThresholdPolicy,
    keep_classifications,
    keep_detections,
)
from framekeep.scheme import Classification, Detection


class TestThresholdMap:
    def test_values_coerced_to_float(self):
        thresholds = ThresholdMap({"a": 1, "b": 0.5})
        assert thresholds["a"] == 1.0
        assert isinstance(thresholds["a"], float)
        assert len(thresholds) == 2
        assert set(thresholds) == {"a", "b"}

    def test_non_numeric_threshold_raises(self):
        with pytest.raises(ValueError, match="must be a number"):
            ThresholdMap({"a": "high"})

        with pytest.raises(ValueError, match="must be a number"):
            ThresholdMap({"a": True})

    def test_score_must_strictly_exceed_minimum(self):
        thresholds = ThresholdMap({"a": 0.8})
        assert thresholds.matches("a", 0.81)
        assert not thresholds.matches("a", 0.8)
        assert not thresholds.matches("a", 0.5)

    def test_unlisted_label_without_wildcard_never_matches(self):
        thresholds = ThresholdMap({"a": 0.0})
        assert not thresholds.matches("b", 1.0)

    def test_wildcard_matches_any_label(self):
        thresholds = ThresholdMap({WILDCARD: 0.8})
        assert thresholds.matches("f", 0.9)
        assert not thresholds.matches("f", 0.1)

    def test_wildcard_behaves_like_explicit_label(self):
        explicit = ThresholdMap({"e": 0.8})
        wildcard = ThresholdMap({WILDCARD: 0.8})
        for score in (0.1, 0.8, 0.9):
            assert explicit.matches("e", score) == wildcard.matches("e", score)

    def test_wildcard_applies_when_explicit_label_fails(self):
        thresholds = ThresholdMap({"a": 0.95, WILDCARD: 0.5})
        assert thresholds.matches("a", 0.6)

    def test_map_is_read_only(self):
        thresholds = ThresholdMap({"a": 0.8})
        with pytest.raises(TypeError):
            thresholds["a"] = 0.1


class TestKeepResults:
    def test_empty_results_never_trigger(self):
        assert not keep_classifications([], ThresholdMap({WILDCARD: 0.0}))
        assert not keep_detections([], ThresholdMap({WILDCARD: 0.0}))

    def test_any_matching_entry_triggers(self):
        results = [Classification("x", 0.99), Classification("a", 0.9)]
        assert keep_classifications(results, ThresholdMap({"a": 0.8}))

    def test_no_matching_entry(self):
        results = [Classification("a", 0.1), Classification("b", 0.95)]
        assert not keep_classifications(results, ThresholdMap({"a": 0.8}))

    def test_detections_keyed_on_detection_label(self):
        results = [Detection("b", 0.9, (1, 1, 5, 5))]
        assert keep_detections(results, ThresholdMap({"b": 0.8}))
        assert not keep_detections([Detection("b", 0.1)], ThresholdMap({"b": 0.8}))


class TestThresholdPolicy:
    def test_empty_maps_disable_modalities(self):
        policy = ThresholdPolicy()
        assert not policy.classification_enabled
        assert not policy.detection_enabled

    def test_enabled_modalities(self):
        policy = ThresholdPolicy(classifications={"a": 0.8}, objects={"b": 0.8})
        assert policy.classification_enabled
        assert policy.detection_enabled
        assert policy.keep_classifications([Classification("a", 0.9)])
        assert policy.keep_detections([Detection("b", 0.9)])
        assert not policy.keep_detections([Detection("a", 0.9)])
