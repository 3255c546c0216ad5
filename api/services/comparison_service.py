"""
Comparison service for LCD test-pattern images.

OpenCV's vision primitives are not safe to drive from several threads at
once, so every comparison and render classification runs on one shared
single-worker executor. Callers block until their job is done; jobs are
served strictly in submission order. The executor is created lazily on
first use and lives for the rest of the process.
"""

import itertools
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import numpy as np

from config.models import ComparisonConfig, load_comparison_config
from lcd_vision import (
    ImageComparator,
    ComparisonResult,
    RenderVerdict,
    RenderMeasurements,
    to_grayscale
)
from lcd_vision.comparator import UNKNOWN_ERROR
from lcd_vision.utils import ImageInput, ImageDecodeError
from utils.logger import get_logger, log_execution_time

logger = get_logger(__name__)


class ComparisonService:
    """
    Serialized access to the comparison pipeline.

    Only compare_images, classify and measure go through the worker; the
    pipeline itself never submits to it again.
    """

    def __init__(self, config: Optional[ComparisonConfig] = None):
        """
        Initialize the service.

        Args:
            config: Comparison table; defaults to the YAML configuration
        """
        self.config = config or load_comparison_config()
        self.comparator = ImageComparator(self.config)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="opencv-processing")
        self._sequence = itertools.count(1)
        self._sequence_lock = threading.Lock()

    def _next_id(self) -> int:
        with self._sequence_lock:
            return next(self._sequence)

    @log_execution_time(logger)
    def compare_images(self, image1: ImageInput, image2: ImageInput) -> ComparisonResult:
        """
        Compare two images on the processing worker.

        Blocks until the comparison reaches a terminal state. Never raises.

        Args:
            image1: Query image (typically the live capture)
            image2: Reference image

        Returns:
            ComparisonResult
        """
        comparison_id = self._next_id()
        try:
            future = self._executor.submit(self.comparator.compare, image1, image2, comparison_id)
            return future.result()
        except Exception:
            logger.exception(f"Comparison {comparison_id} failed outside the pipeline")
            return ComparisonResult(error=UNKNOWN_ERROR)

    def _classify(self, image: ImageInput) -> RenderVerdict:
        try:
            gray = to_grayscale(image)
        except ImageDecodeError as e:
            logger.warning(f"Cannot classify undecodable image: {e}")
            return RenderVerdict.PHOTOGRAPHED
        return self.comparator.classifier.classify(gray)

    def classify(self, image: ImageInput) -> RenderVerdict:
        """Render verdict of one image, computed on the processing worker."""
        return self._executor.submit(self._classify, image).result()

    def measure(self, image: ImageInput) -> RenderMeasurements:
        """
        Classifier statistics of one image, computed on the processing worker.

        Raises:
            ImageDecodeError: If the image cannot be decoded
        """
        def _measure():
            return self.comparator.classifier.measure(to_grayscale(image))

        return self._executor.submit(_measure).result()

    def is_digital_render(self, image: ImageInput) -> bool:
        return self.classify(image).is_render

    def preprocess_image(self, image: ImageInput, is_render: bool) -> np.ndarray:
        return self.comparator.preprocessor.preprocess(to_grayscale(image), RenderVerdict.from_bool(is_render))

    def extract_lcd_segments(self, image: ImageInput, is_render: bool) -> np.ndarray:
        return self.comparator.segment_extractor.extract(to_grayscale(image), RenderVerdict.from_bool(is_render))

    def calculate_structural_similarity(
        self,
        image1: ImageInput,
        image2: ImageInput,
        segments1: ImageInput,
        segments2: ImageInput,
        both_render: Optional[bool] = None
    ) -> float:
        """
        Structural similarity of two preprocessed images and their masks.

        Args:
            image1: First preprocessed image
            image2: Second preprocessed image
            segments1: Segment mask of image1
            segments2: Segment mask of image2
            both_render: Pair verdict; when None the two images are
                classified on the processing worker

        Returns:
            Structural similarity in [0, 1]
        """
        gray1, gray2 = to_grayscale(image1), to_grayscale(image2)
        if both_render is None:
            both_render = self.classify(gray1).is_render and self.classify(gray2).is_render
        return self.comparator.structural_scorer.score(
            gray1, gray2, to_grayscale(segments1), to_grayscale(segments2), both_render
        )

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)


# Process-wide instance
_service: Optional[ComparisonService] = None
_service_lock = threading.Lock()


def get_comparison_service() -> ComparisonService:
    """
    Get the process-wide comparison service, creating it on first use.

    Returns:
        ComparisonService instance
    """
    global _service
    with _service_lock:
        if _service is None:
            _service = ComparisonService()
            logger.debug("Comparison service started")
        return _service


def shutdown_comparison_service(wait: bool = True):
    """Stop the processing worker; the next call starts a fresh one."""
    global _service
    with _service_lock:
        if _service is not None:
            _service.shutdown(wait=wait)
            _service = None


# Boundary entry points

def compare_images(image1: ImageInput, image2: ImageInput) -> ComparisonResult:
    """Compare two images. Blocking, serialized, never raises."""
    return get_comparison_service().compare_images(image1, image2)


def is_digital_render(image: ImageInput) -> bool:
    """Whether an image is a clean screen render rather than a photograph."""
    return get_comparison_service().is_digital_render(image)


def preprocess_image(image: ImageInput, is_render: bool) -> np.ndarray:
    """Adaptively preprocessed grayscale image."""
    return get_comparison_service().preprocess_image(image, is_render)


def extract_lcd_segments(image: ImageInput, is_render: bool) -> np.ndarray:
    """Binary 0/255 segment mask of a preprocessed image."""
    return get_comparison_service().extract_lcd_segments(image, is_render)


def calculate_structural_similarity(
    image1: ImageInput,
    image2: ImageInput,
    segments1: ImageInput,
    segments2: ImageInput,
    both_render: Optional[bool] = None
) -> float:
    """Structural similarity of two preprocessed images and their masks."""
    return get_comparison_service().calculate_structural_similarity(
        image1, image2, segments1, segments2, both_render
    )
