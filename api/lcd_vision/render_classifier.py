"""
Render classification module.

Decides whether a grayscale image is a clean digital screen capture of
the test pattern or a camera photograph of a physical LCD. The decision
is a fixed heuristic over three measurements:

1. Edge sharpness: fraction of Canny edge pixels
2. Noise level: std of the residual left after a Gaussian blur
3. Histogram spread: std of the 256-bin intensity histogram counts

Renders have many crisp edges, almost no sensor noise and a few heavily
populated gray levels.
"""

from dataclasses import dataclass
from enum import Enum

import cv2
import numpy as np

from config.models import RenderClassifierConfig
from utils.logger import get_logger

logger = get_logger(__name__)


class RenderVerdict(str, Enum):
    """Provenance of one image. Threaded through every stage."""

    RENDERED = "rendered"
    PHOTOGRAPHED = "photographed"

    @property
    def is_render(self) -> bool:
        return self is RenderVerdict.RENDERED

    @classmethod
    def from_bool(cls, is_render: bool) -> "RenderVerdict":
        return cls.RENDERED if is_render else cls.PHOTOGRAPHED


def both_rendered(verdict1: RenderVerdict, verdict2: RenderVerdict) -> bool:
    """Pair verdict used to pick the tighter render-vs-render constants."""
    return verdict1.is_render and verdict2.is_render


@dataclass(frozen=True)
class RenderMeasurements:
    """Raw statistics behind a verdict."""

    edge_sharpness: float
    noise_std: float
    histogram_std: float


class RenderClassifier:
    """
    Heuristic screen-render vs. photograph classifier.

    No learning happens at runtime; the decision boundary lives in
    RenderClassifierConfig.
    """

    def __init__(self, config: RenderClassifierConfig = None):
        self.config = config or RenderClassifierConfig()

    def measure(self, gray: np.ndarray) -> RenderMeasurements:
        """
        Compute the three classification statistics.

        Args:
            gray: 8-bit grayscale image

        Returns:
            RenderMeasurements for the image
        """
        cfg = self.config

        edges = cv2.Canny(gray, cfg.canny_low, cfg.canny_high)
        edge_sharpness = float(np.mean(edges)) / 255.0

        blur = cv2.GaussianBlur(gray, (cfg.blur_kernel, cfg.blur_kernel), 0)
        residual = cv2.absdiff(gray, blur)
        _, noise_std = cv2.meanStdDev(residual)

        hist = cv2.calcHist([gray], [0], None, [cfg.histogram_bins], [0, 256])
        histogram_std = float(np.std(hist))

        return RenderMeasurements(
            edge_sharpness=edge_sharpness,
            noise_std=float(noise_std[0][0]),
            histogram_std=histogram_std,
        )

    def is_render(self, measurements: RenderMeasurements) -> bool:
        cfg = self.config
        return (
            measurements.edge_sharpness > cfg.min_edge_sharpness
            and measurements.noise_std < cfg.max_noise_std
            and measurements.histogram_std > cfg.min_histogram_std
        )

    def classify(self, gray: np.ndarray) -> RenderVerdict:
        """
        Classify an image as rendered or photographed.

        Any failure while measuring yields PHOTOGRAPHED.

        Args:
            gray: 8-bit grayscale image

        Returns:
            RenderVerdict
        """
        try:
            measurements = self.measure(gray)
        except Exception as e:
            logger.warning(f"Render classification failed, assuming photograph: {e}")
            return RenderVerdict.PHOTOGRAPHED

        verdict = RenderVerdict.from_bool(self.is_render(measurements))
        logger.debug(
            f"Render verdict={verdict.value} (edges={measurements.edge_sharpness:.3f}, "
            f"noise={measurements.noise_std:.2f}, hist_std={measurements.histogram_std:.0f})"
        )
        return verdict
