"""
Adaptive preprocessing for LCD pattern images.

Screen renders only need a mild contrast boost and edge emphasis.
Photographs of a physical display are denoised, equalized harder and
unsharp-masked to recover the pattern strokes.
"""

import cv2
import numpy as np

from config.models import PreprocessingConfig
from .render_classifier import RenderVerdict


class AdaptivePreprocessor:
    """
    Normalizes contrast and noise according to the render verdict.

    Both branches return a new uint8 image of the input's size.
    """

    def __init__(self, config: PreprocessingConfig = None):
        self.config = config or PreprocessingConfig()

    def preprocess(self, gray: np.ndarray, verdict: RenderVerdict) -> np.ndarray:
        """
        Preprocess a grayscale image.

        Args:
            gray: 8-bit grayscale image
            verdict: Render verdict of the image

        Returns:
            Preprocessed 8-bit grayscale image
        """
        if verdict.is_render:
            return self._preprocess_render(gray)
        return self._preprocess_photo(gray)

    def _preprocess_render(self, gray: np.ndarray) -> np.ndarray:
        cfg = self.config.render
        grid = (cfg.clahe_tile_grid, cfg.clahe_tile_grid)

        clahe = cv2.createCLAHE(clipLimit=cfg.clahe_clip_limit, tileGridSize=grid)
        enhanced = clahe.apply(gray)

        # Light edge enhancement
        edges = cv2.convertScaleAbs(cv2.Laplacian(enhanced, cv2.CV_64F))

        return cv2.addWeighted(enhanced, cfg.enhanced_weight, edges, cfg.edge_weight, 0)

    def _preprocess_photo(self, gray: np.ndarray) -> np.ndarray:
        cfg = self.config.photo
        grid = (cfg.clahe_tile_grid, cfg.clahe_tile_grid)

        denoised = cv2.fastNlMeansDenoising(
            gray, None, h=cfg.denoise_strength, templateWindowSize=cfg.denoise_template_window
        )

        clahe = cv2.createCLAHE(clipLimit=cfg.clahe_clip_limit, tileGridSize=grid)
        enhanced = clahe.apply(denoised)

        # Unsharp mask
        blur = cv2.GaussianBlur(enhanced, (0, 0), cfg.unsharp_sigma)
        sharpened = cv2.addWeighted(enhanced, cfg.unsharp_amount, blur, cfg.unsharp_blur_weight, 0)

        return cv2.normalize(sharpened, None, 0, 255, cv2.NORM_MINMAX)
