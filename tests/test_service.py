# -*- coding: utf-8 -*-
"""Tests for the serialized comparison service and its entry points."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

import services
from lcd_vision import ComparisonResult, to_grayscale
from lcd_vision.comparator import UNKNOWN_ERROR
from services import ComparisonService


@pytest.fixture
def service():
    svc = ComparisonService()
    yield svc
    svc.shutdown()


class TestSerialization:
    def test_one_comparison_at_a_time(self, service, pattern):
        lock = threading.Lock()
        state = {"active": 0, "peak": 0, "threads": set()}

        def fake_compare(image1, image2, comparison_id=None):
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
                state["threads"].add(threading.current_thread().name)
            time.sleep(0.02)
            with lock:
                state["active"] -= 1
            return ComparisonResult(score=float(comparison_id))

        service.comparator.compare = fake_compare

        with ThreadPoolExecutor(max_workers=6) as callers:
            results = list(callers.map(lambda _: service.compare_images(pattern, pattern), range(12)))

        assert state["peak"] == 1
        assert len(state["threads"]) == 1
        assert next(iter(state["threads"])).startswith("opencv-processing")
        assert sorted(r.score for r in results) == [float(i) for i in range(1, 13)]

    def test_fifo_order(self, service, pattern):
        order = []

        def fake_compare(image1, image2, comparison_id=None):
            order.append(comparison_id)
            return ComparisonResult()

        service.comparator.compare = fake_compare
        for _ in range(5):
            service.compare_images(pattern, pattern)
        assert order == [1, 2, 3, 4, 5]

    def test_failure_outside_pipeline_is_contained(self, service, pattern):
        def exploding(*args, **kwargs):
            raise MemoryError()

        service.comparator.compare = exploding
        result = service.compare_images(pattern, pattern)
        assert result.error == UNKNOWN_ERROR
        assert result.score == 0.0

    def test_compare_after_shutdown_is_degraded(self, service, pattern):
        service.shutdown()
        result = service.compare_images(pattern, pattern)
        assert result.error == UNKNOWN_ERROR
        assert result.score == 0.0
        assert result.match_count == 0

    def test_structural_classification_runs_on_worker(self, service, pattern):
        classifier = service.comparator.classifier
        seen = []
        original = classifier.classify

        def spy(gray):
            seen.append(threading.current_thread().name)
            return original(gray)

        classifier.classify = spy
        gray = to_grayscale(pattern)
        mask = service.extract_lcd_segments(gray, True)
        service.calculate_structural_similarity(gray, gray, mask, mask)

        assert len(seen) == 2
        assert all(name.startswith("opencv-processing") for name in seen)


class TestServiceOperations:
    def test_classify(self, service, pattern, noisy_pattern):
        assert service.is_digital_render(pattern) is True
        assert service.is_digital_render(noisy_pattern) is False

    def test_classify_undecodable(self, service):
        assert service.is_digital_render(b"not an image") is False

    def test_preprocess_and_segments(self, service, pattern):
        processed = service.preprocess_image(pattern, True)
        mask = service.extract_lcd_segments(processed, True)
        assert processed.shape == mask.shape == pattern.shape[:2]
        assert set(np.unique(mask)).issubset({0, 255})

    def test_structural_classifies_when_verdict_missing(self, service, pattern):
        gray = to_grayscale(pattern)
        mask = service.extract_lcd_segments(gray, True)
        implicit = service.calculate_structural_similarity(gray, gray, mask, mask)
        explicit = service.calculate_structural_similarity(gray, gray, mask, mask, both_render=True)
        assert implicit == pytest.approx(explicit)


class TestModuleEntryPoints:
    def test_singleton(self, fresh_service):
        assert services.get_comparison_service() is services.get_comparison_service()

    def test_restart_after_shutdown(self, fresh_service):
        first = services.get_comparison_service()
        services.shutdown_comparison_service()
        assert services.get_comparison_service() is not first

    def test_compare_images(self, fresh_service, pattern):
        result = services.compare_images(pattern, pattern)
        assert result.score >= 90.0

    def test_compare_never_raises(self, fresh_service):
        result = services.compare_images(None, 42)
        assert result.degraded
        assert result.score == 0.0

    def test_is_digital_render(self, fresh_service, pattern, black_image):
        assert services.is_digital_render(pattern) is True
        assert services.is_digital_render(black_image) is False

    def test_stage_functions(self, fresh_service, pattern):
        processed = services.preprocess_image(pattern, False)
        mask = services.extract_lcd_segments(processed, False)
        similarity = services.calculate_structural_similarity(processed, processed, mask, mask, False)
        assert similarity == pytest.approx(1.0, abs=1e-4)
