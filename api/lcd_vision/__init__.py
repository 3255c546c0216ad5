"""
Image comparison library for LCDMatch.

This package classifies, preprocesses and segments photographs or
renders of an LCD test pattern, matches their features, and scores how
well a capture agrees with a reference.
"""

from .render_classifier import RenderClassifier, RenderVerdict, RenderMeasurements, both_rendered
from .preprocessor import AdaptivePreprocessor
from .segments import SegmentExtractor
from .features import FeatureEngine, FeatureSet
from .spatial import SpatialAnalyzer
from .structural import StructuralSimilarityScorer
from .comparator import (
    ImageComparator,
    ComparisonResult,
    ComparisonStage,
    quality_score,
    quantity_score,
    final_score
)
from .utils import (
    ImageDecodeError,
    load_image_from_bytes,
    load_image_from_path,
    to_grayscale,
    image_to_bytes
)

__all__ = [
    'RenderClassifier',
    'RenderVerdict',
    'RenderMeasurements',
    'both_rendered',
    'AdaptivePreprocessor',
    'SegmentExtractor',
    'FeatureEngine',
    'FeatureSet',
    'SpatialAnalyzer',
    'StructuralSimilarityScorer',
    'ImageComparator',
    'ComparisonResult',
    'ComparisonStage',
    'quality_score',
    'quantity_score',
    'final_score',
    'ImageDecodeError',
    'load_image_from_bytes',
    'load_image_from_path',
    'to_grayscale',
    'image_to_bytes'
]
