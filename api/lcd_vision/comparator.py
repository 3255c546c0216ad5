"""
Image comparison module for LCD test-pattern captures.

This module orchestrates the full comparison of two images: render
classification, adaptive preprocessing, segment extraction, structural
similarity, feature matching and spatial analysis. The heterogeneous
signals are combined into one calibrated 0-100 score. Every failure is
folded into the returned ComparisonResult instead of being raised.
"""

import math
from enum import Enum
from typing import Optional, Sequence

import cv2
import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from config.models import ComparisonConfig, ScoringConfig
from utils.logger import get_logger, LoggerAdapter
from .features import FeatureEngine
from .preprocessor import AdaptivePreprocessor
from .render_classifier import RenderClassifier, RenderVerdict, both_rendered
from .segments import SegmentExtractor
from .spatial import SpatialAnalyzer
from .structural import StructuralSimilarityScorer
from .utils import ImageInput, to_grayscale

logger = get_logger(__name__)

NO_FEATURES_ERROR = "No features detected"
UNKNOWN_ERROR = "Unknown error in image processing"


class ComparisonResult(BaseModel):
    """Outcome of one comparison. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(0.0, ge=0.0, le=100.0)
    match_count: int = Field(0, ge=0)
    structural_similarity: float = Field(0.0, ge=0.0, le=1.0)
    spatial_score: float = Field(0.0, ge=0.0, le=1.0)
    is_render1: bool = False
    is_render2: bool = False
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.error is not None


class ComparisonStage(str, Enum):
    """Progress of a single comparison."""

    INIT = "init"
    CLASSIFIED = "classified"
    PREPROCESSED = "preprocessed"
    SEGMENTS_EXTRACTED = "segments_extracted"
    FEATURES_DETECTED = "features_detected"
    MATCHED = "matched"
    SCORED = "scored"
    DEGRADED = "degraded"


class NoFeaturesDetected(Exception):
    """One of the images produced an empty FeatureSet."""


def _unit(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return min(1.0, max(0.0, value))


def quality_score(distances: Sequence[float], both_render: bool, config: ScoringConfig = None) -> float:
    """
    Tightness of the best matches.

    Args:
        distances: Match distances sorted ascending
        both_render: Whether both images are screen renders
        config: Scoring constants

    Returns:
        Quality in [0, 1]; 0 when there are no matches
    """
    config = config or ScoringConfig()
    best = list(distances)[:config.quality_sample_size]
    if not best:
        return 0.0
    max_distance = config.profile(both_render).max_distance
    avg_distance = sum(best) / len(best)
    return _unit((max_distance - avg_distance) / max_distance)


def quantity_score(match_count: int, both_render: bool, config: ScoringConfig = None) -> float:
    """
    Number of matches relative to the expected count.

    Linear up to half the expectation, steeper up to the expectation,
    then logarithmic and capped at 1.

    Args:
        match_count: Number of surviving matches
        both_render: Whether both images are screen renders
        config: Scoring constants

    Returns:
        Quantity in [0, 1]
    """
    config = config or ScoringConfig()
    expected = config.nominal_features * config.profile(both_render).expected_match_fraction
    ratio = match_count / expected

    if ratio <= 0.5:
        score = ratio
    elif ratio <= 1.0:
        score = 0.5 + 0.5 * ratio
    else:
        score = min(1.0, 1.0 + 0.3 * math.log2(ratio))
    return _unit(score)


def final_score(
    structural: float,
    quantity: float,
    quality: float,
    both_render: bool,
    config: ScoringConfig = None
) -> float:
    """
    Combine the sub-scores into the final 0-100 score.

    The weighted sum is raised to a sub-unity power, which lifts the
    mid range, and scores above the bonus threshold are multiplied by
    the bonus factor before clamping.

    Args:
        structural: Structural similarity in [0, 1]
        quantity: Quantity score in [0, 1]
        quality: Quality score in [0, 1]
        both_render: Whether both images are screen renders
        config: Scoring constants

    Returns:
        Score in [0, 100]
    """
    config = config or ScoringConfig()
    profile = config.profile(both_render)

    combined = (
        profile.structural_weight * _unit(structural)
        + profile.quantity_weight * _unit(quantity)
        + profile.quality_weight * _unit(quality)
    )
    raw_score = 100.0 * math.pow(combined, profile.power)

    if raw_score > profile.bonus_threshold:
        raw_score *= config.bonus_multiplier

    return min(100.0, max(0.0, raw_score))


class ImageComparator:
    """
    Compares a captured LCD test pattern against a reference image.

    Stages: classify -> preprocess -> segment -> structural similarity ->
    detect -> match -> spatial analysis -> score. Each image is classified
    once and that verdict is used by every stage.
    """

    def __init__(self, config: ComparisonConfig = None):
        """
        Initialize the comparator and its stages.

        Args:
            config: Comparison table; defaults to the built-in tuned constants
        """
        self.config = config or ComparisonConfig()
        self.classifier = RenderClassifier(self.config.render_classifier)
        self.preprocessor = AdaptivePreprocessor(self.config.preprocessing)
        self.segment_extractor = SegmentExtractor(self.config.segmentation)
        self.structural_scorer = StructuralSimilarityScorer(self.config.structural)
        self.feature_engine = FeatureEngine(self.config.features, self.config.matching)
        self.spatial_analyzer = SpatialAnalyzer(self.config.spatial)

    def compare(
        self,
        image1: ImageInput,
        image2: ImageInput,
        comparison_id: Optional[int] = None
    ) -> ComparisonResult:
        """
        Compare two images.

        Never raises: decoding failures, empty feature sets and library
        errors produce a degraded result with score 0 and an error message.

        Args:
            image1: Query image (typically the live capture)
            image2: Reference image
            comparison_id: Optional id added to log messages

        Returns:
            ComparisonResult
        """
        log = LoggerAdapter(logger, {'comparison': comparison_id} if comparison_id is not None else {})
        partial = {}
        stage = ComparisonStage.INIT

        try:
            gray1 = to_grayscale(image1)
            gray2 = to_grayscale(image2)

            verdict1 = self.classifier.classify(gray1)
            verdict2 = self.classifier.classify(gray2)
            both_render = both_rendered(verdict1, verdict2)
            partial.update(is_render1=verdict1.is_render, is_render2=verdict2.is_render)
            stage = self._advance(log, ComparisonStage.CLASSIFIED)

            processed1 = self.preprocessor.preprocess(gray1, verdict1)
            processed2 = self.preprocessor.preprocess(gray2, verdict2)
            stage = self._advance(log, ComparisonStage.PREPROCESSED)

            segments1 = self.segment_extractor.extract(processed1, verdict1)
            segments2 = self.segment_extractor.extract(processed2, verdict2)
            stage = self._advance(log, ComparisonStage.SEGMENTS_EXTRACTED)

            structural = self.structural_scorer.score(
                processed1, processed2, segments1, segments2, both_render
            )
            partial['structural_similarity'] = structural

            features1 = self.feature_engine.detect(processed1, segments1, verdict1)
            features2 = self.feature_engine.detect(processed2, segments2, verdict2)
            if features1.is_empty or features2.is_empty:
                raise NoFeaturesDetected()
            stage = self._advance(log, ComparisonStage.FEATURES_DETECTED)

            matches = self.feature_engine.match(features1, features2, both_render)
            stage = self._advance(log, ComparisonStage.MATCHED)

            height, width = processed1.shape[:2]
            spatial = self.spatial_analyzer.analyze(features1, matches, (width, height))
            score = self._score_matches(matches, structural, both_render)

            stage = self._advance(log, ComparisonStage.SCORED)
            log.info(
                f"Scored {score:.1f} ({len(matches)} matches, structural={structural:.3f}, "
                f"spatial={spatial:.3f}, renders={verdict1.is_render}/{verdict2.is_render})"
            )
            return ComparisonResult(
                score=score,
                match_count=len(matches),
                structural_similarity=structural,
                spatial_score=spatial,
                is_render1=verdict1.is_render,
                is_render2=verdict2.is_render,
            )

        except NoFeaturesDetected:
            return self._degraded(log, stage, NO_FEATURES_ERROR, partial)
        except (cv2.error, ValueError) as e:
            return self._degraded(log, stage, str(e) or e.__class__.__name__, partial)
        except Exception:
            log.exception(f"Unexpected failure after stage {stage.value}")
            return self._degraded(log, stage, UNKNOWN_ERROR, partial)

    def _score_matches(self, matches: Sequence[cv2.DMatch], structural: float, both_render: bool) -> float:
        if not matches:
            return 0.0
        scoring = self.config.scoring
        quality = quality_score([m.distance for m in matches], both_render, scoring)
        quantity = quantity_score(len(matches), both_render, scoring)
        return final_score(structural, quantity, quality, both_render, scoring)

    @staticmethod
    def _advance(log: LoggerAdapter, stage: ComparisonStage) -> ComparisonStage:
        log.debug(f"Stage -> {stage.value}")
        return stage

    @staticmethod
    def _degraded(log: LoggerAdapter, stage: ComparisonStage, message: str, partial: dict) -> ComparisonResult:
        log.warning(f"Comparison degraded after stage {stage.value}: {message}")
        return ComparisonResult(
            score=0.0,
            match_count=0,
            structural_similarity=float(np.clip(partial.get('structural_similarity', 0.0), 0.0, 1.0)),
            spatial_score=0.0,
            is_render1=partial.get('is_render1', False),
            is_render2=partial.get('is_render2', False),
            error=message,
        )
