# -*- coding: utf-8 -*-
"""End-to-end tests for ImageComparator."""

import pytest
from pydantic import ValidationError

from lcd_vision import ComparisonResult
from lcd_vision.comparator import NO_FEATURES_ERROR, UNKNOWN_ERROR


def _assert_valid(result):
    assert 0.0 <= result.score <= 100.0
    assert result.match_count >= 0
    assert 0.0 <= result.structural_similarity <= 1.0
    assert 0.0 <= result.spatial_score <= 1.0


class TestSuccessfulComparison:
    def test_self_comparison_scores_high(self, comparator, pattern, pattern_feature_count):
        result = comparator.compare(pattern, pattern)
        _assert_valid(result)
        assert result.error is None
        assert not result.degraded
        assert result.score >= 90.0
        # Nearly every feature finds its own twin
        assert pattern_feature_count > 0
        assert result.match_count >= 0.8 * pattern_feature_count
        assert result.match_count <= pattern_feature_count
        assert result.structural_similarity == pytest.approx(1.0, abs=1e-4)
        assert result.is_render1 and result.is_render2

    def test_bytes_and_arrays_agree(self, comparator, pattern, pattern_png):
        from_array = comparator.compare(pattern, pattern)
        from_bytes = comparator.compare(pattern_png, pattern_png)
        assert from_bytes == from_array

    def test_edited_pattern(self, comparator, pattern, edited_pattern):
        result = comparator.compare(pattern, edited_pattern)
        _assert_valid(result)
        assert result.error is None
        assert result.structural_similarity < 1.0

    def test_approximately_symmetric(self, comparator, pattern, edited_pattern):
        forward = comparator.compare(pattern, edited_pattern)
        backward = comparator.compare(edited_pattern, pattern)
        assert forward.structural_similarity == pytest.approx(backward.structural_similarity, abs=1e-6)
        assert abs(forward.score - backward.score) <= 10.0

    def test_mixed_pair(self, comparator, pattern, noisy_pattern):
        result = comparator.compare(noisy_pattern, pattern)
        _assert_valid(result)
        assert result.is_render1 is False
        assert result.is_render2 is True


class TestDegradedComparison:
    @pytest.mark.parametrize("fixture", ["black_image", "white_image"])
    def test_featureless_images(self, comparator, request, fixture):
        blank = request.getfixturevalue(fixture)
        result = comparator.compare(blank, blank)
        _assert_valid(result)
        assert result.error == NO_FEATURES_ERROR
        assert result.score == 0.0
        assert result.match_count == 0
        assert result.spatial_score == 0.0

    def test_one_featureless_side(self, comparator, pattern, black_image):
        result = comparator.compare(pattern, black_image)
        assert result.error == NO_FEATURES_ERROR
        assert result.score == 0.0
        assert result.is_render1 is True

    def test_undecodable_bytes(self, comparator, pattern):
        result = comparator.compare(b"\x89PNG garbage", pattern)
        assert result.degraded
        assert "decode" in result.error.lower()
        assert result.score == 0.0
        assert result.match_count == 0

    def test_unexpected_error(self, comparator, pattern, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(comparator.feature_engine, "detect", broken)
        result = comparator.compare(pattern, pattern)
        assert result.error == UNKNOWN_ERROR
        assert result.score == 0.0
        # Signals computed before the failure are kept
        assert result.structural_similarity == pytest.approx(1.0, abs=1e-4)
        assert result.is_render1 and result.is_render2

    def test_library_error_keeps_message(self, comparator, pattern, monkeypatch):
        def broken(*args, **kwargs):
            raise ValueError("descriptor type mismatch")

        monkeypatch.setattr(comparator.feature_engine, "match", broken)
        result = comparator.compare(pattern, pattern)
        assert result.error == "descriptor type mismatch"
        assert result.score == 0.0


class TestComparisonResult:
    def test_defaults(self):
        result = ComparisonResult()
        assert result.score == 0.0
        assert result.error is None
        assert not result.degraded

    def test_frozen(self):
        result = ComparisonResult(score=50.0)
        with pytest.raises(ValidationError):
            result.score = 10.0

    def test_score_range_enforced(self):
        with pytest.raises(ValidationError):
            ComparisonResult(score=120.0)
        with pytest.raises(ValidationError):
            ComparisonResult(match_count=-1)
