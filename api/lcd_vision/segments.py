"""
Segment extraction module.

Binarizes a preprocessed pattern image into a 0/255 mask of its discrete
visual elements (boxes, bars, digit strokes).
"""

import cv2
import numpy as np

from config.models import SegmentationConfig
from .render_classifier import RenderVerdict


class SegmentExtractor:
    """
    Extracts the segment mask of an LCD test pattern.

    Renders are cleanly binarized by a global threshold. Photographs use
    Gaussian adaptive thresholding to tolerate uneven lighting, then an
    opening and a median filter to remove the speckle it produces.
    """

    def __init__(self, config: SegmentationConfig = None):
        self.config = config or SegmentationConfig()

    def extract(self, gray: np.ndarray, verdict: RenderVerdict) -> np.ndarray:
        """
        Extract the binary segment mask.

        Args:
            gray: Preprocessed 8-bit grayscale image
            verdict: Render verdict of the image

        Returns:
            Binary uint8 mask with values 0 and 255 only
        """
        profile = self.config.profile(verdict.is_render)

        if verdict.is_render:
            _, binary = cv2.threshold(gray, profile.threshold, 255, cv2.THRESH_BINARY)
        else:
            binary = cv2.adaptiveThreshold(
                gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
                cv2.THRESH_BINARY, profile.adaptive_block_size, profile.adaptive_offset
            )

        kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (profile.kernel_size, profile.kernel_size))

        # Merge broken strokes
        binary = cv2.morphologyEx(binary, cv2.MORPH_CLOSE, kernel)

        if profile.denoise:
            binary = cv2.morphologyEx(binary, cv2.MORPH_OPEN, kernel)
            binary = cv2.medianBlur(binary, profile.median_kernel)

        return binary
