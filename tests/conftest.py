# -*- coding: utf-8 -*-
"""Shared fixtures: synthetic LCD test patterns."""

import cv2
import numpy as np
import pytest

from lcd_vision import ImageComparator, to_grayscale
from services import shutdown_comparison_service

# Two flat gray levels 55 apart: every cell boundary is a strong Canny
# edge (Sobel response 220 > 200) while the blur residual stays below 10.
LOW_LEVEL = 100
HIGH_LEVEL = 155
CELL = 7


def _cell_pattern(cells: np.ndarray, cell: int = CELL) -> np.ndarray:
    levels = np.where(cells > 0, HIGH_LEVEL, LOW_LEVEL).astype(np.uint8)
    gray = np.kron(levels, np.ones((cell, cell), dtype=np.uint8))
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)


@pytest.fixture(scope="session")
def pattern_cells():
    rng = np.random.default_rng(7)
    return rng.integers(0, 2, size=(34, 46))


@pytest.fixture(scope="session")
def pattern(pattern_cells):
    """Clean rendered test pattern, 322x238 BGR."""
    return _cell_pattern(pattern_cells)


@pytest.fixture(scope="session")
def edited_pattern(pattern_cells):
    """The same pattern with one block of cells inverted."""
    cells = pattern_cells.copy()
    cells[10:16, 12:22] = 1 - cells[10:16, 12:22]
    return _cell_pattern(cells)


@pytest.fixture(scope="session")
def noisy_pattern(pattern):
    """Heavily noised copy of the pattern, as a poor photograph would be."""
    rng = np.random.default_rng(11)
    noise = rng.normal(0.0, 40.0, size=pattern.shape)
    return np.clip(pattern.astype(np.float64) + noise, 0, 255).astype(np.uint8)


@pytest.fixture(scope="session")
def black_image():
    return np.zeros((238, 322, 3), dtype=np.uint8)


@pytest.fixture(scope="session")
def white_image():
    return np.full((238, 322, 3), 255, dtype=np.uint8)


@pytest.fixture(scope="session")
def pattern_png(pattern):
    ok, buffer = cv2.imencode(".png", pattern)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def comparator():
    return ImageComparator()


@pytest.fixture(scope="session")
def pattern_feature_count(pattern):
    """Size of the merged FeatureSet the pipeline builds for the pattern."""
    stages = ImageComparator()
    gray = to_grayscale(pattern)
    verdict = stages.classifier.classify(gray)
    processed = stages.preprocessor.preprocess(gray, verdict)
    segments = stages.segment_extractor.extract(processed, verdict)
    return len(stages.feature_engine.detect(processed, segments, verdict))


@pytest.fixture
def fresh_service():
    """Make sure each test using the module-level entry points gets its own worker."""
    shutdown_comparison_service()
    yield
    shutdown_comparison_service()
