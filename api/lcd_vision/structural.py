"""
Structural similarity between two preprocessed pattern images.

Combines three signals, each mapped from [-1, 1] to [0, 1]:
- normalized cross-correlation of the full images
- normalized cross-correlation of the segment masks
- correlation of the 256-bin intensity histograms
"""

from dataclasses import dataclass

import cv2
import numpy as np

from config.models import StructuralConfig


def _to_unit_interval(correlation: float) -> float:
    if not np.isfinite(correlation):
        correlation = 0.0
    return float(np.clip((correlation + 1.0) / 2.0, 0.0, 1.0))


def template_similarity(image1: np.ndarray, image2: np.ndarray) -> float:
    """
    Normalized cross-correlation of two images, mapped to [0, 1].

    image2 is resized to image1's size when they differ, so the template
    match yields exactly one coefficient.
    """
    if image1.shape[:2] != image2.shape[:2]:
        image2 = cv2.resize(image2, (image1.shape[1], image1.shape[0]), interpolation=cv2.INTER_AREA)
    result = cv2.matchTemplate(image1, image2, cv2.TM_CCOEFF_NORMED)
    return _to_unit_interval(float(result[0, 0]))


def histogram_similarity(image1: np.ndarray, image2: np.ndarray, bins: int = 256) -> float:
    """Correlation of the intensity histograms, mapped to [0, 1]."""
    hist1 = cv2.calcHist([image1], [0], None, [bins], [0, 256])
    hist2 = cv2.calcHist([image2], [0], None, [bins], [0, 256])
    return _to_unit_interval(cv2.compareHist(hist1, hist2, cv2.HISTCMP_CORREL))


@dataclass(frozen=True)
class StructuralComponents:
    original: float
    segments: float
    histogram: float


class StructuralSimilarityScorer:
    """
    Weighted structural agreement of two images and their segment masks.

    Segment-mask agreement is trusted more when both inputs are renders;
    photographs lean on raw-image correlation since their masks are noisier.
    """

    def __init__(self, config: StructuralConfig = None):
        self.config = config or StructuralConfig()

    def measure(
        self,
        image1: np.ndarray,
        image2: np.ndarray,
        segments1: np.ndarray,
        segments2: np.ndarray
    ) -> StructuralComponents:
        return StructuralComponents(
            original=template_similarity(image1, image2),
            segments=template_similarity(segments1, segments2),
            histogram=histogram_similarity(image1, image2, self.config.histogram_bins),
        )

    def score(
        self,
        image1: np.ndarray,
        image2: np.ndarray,
        segments1: np.ndarray,
        segments2: np.ndarray,
        both_render: bool
    ) -> float:
        """
        Compute the structural similarity.

        Args:
            image1: First preprocessed image
            image2: Second preprocessed image
            segments1: Segment mask of image1
            segments2: Segment mask of image2
            both_render: Whether both images were classified as renders

        Returns:
            Structural similarity in [0, 1]
        """
        components = self.measure(image1, image2, segments1, segments2)
        weights = self.config.weights(both_render)

        similarity = (
            weights.original_weight * components.original
            + weights.segment_weight * components.segments
            + weights.histogram_weight * components.histogram
        )
        return float(np.clip(similarity, 0.0, 1.0))
