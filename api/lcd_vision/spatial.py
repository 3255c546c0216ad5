"""
Spatial distribution analysis of feature matches.

A genuine match of a test pattern spreads over the whole display and
lines up with the pattern's rows and columns; a spurious one tends to
cluster in a corner. Matched query keypoints are binned into a fine and
a coarse occupancy grid, and coverage, evenness and row/column alignment
are combined into one score.
"""

from typing import Sequence, Tuple

import cv2
import numpy as np

from config.models import SpatialConfig
from .features import FeatureSet

EPSILON = 1e-6


def occupancy_grid(points: np.ndarray, grid_size: int, image_size: Tuple[int, int]) -> np.ndarray:
    """
    Count points per cell of a grid_size x grid_size grid over the image.

    Args:
        points: (N, 2) array of (x, y) locations
        grid_size: Number of cells per side
        image_size: (width, height) of the image

    Returns:
        float32 array of shape (grid_size, grid_size), indexed [row, col]
    """
    width, height = image_size
    grid = np.zeros((grid_size, grid_size), dtype=np.float32)
    if len(points) == 0:
        return grid

    cols = np.clip((points[:, 0] * grid_size / width).astype(int), 0, grid_size - 1)
    rows = np.clip((points[:, 1] * grid_size / height).astype(int), 0, grid_size - 1)
    np.add.at(grid, (rows, cols), 1)
    return grid


def coverage(grid: np.ndarray) -> float:
    return np.count_nonzero(grid) / float(grid.size)


def evenness(grid: np.ndarray) -> float:
    """1 - coefficient of variation of the occupied cells. May go negative."""
    occupied = grid[grid > 0]
    if occupied.size == 0:
        return 0.0
    return 1.0 - float(occupied.std()) / (float(occupied.mean()) + EPSILON)


def coefficient_of_variation(values: np.ndarray) -> float:
    return float(values.std()) / (float(values.mean()) + EPSILON)


def alignment(grid: np.ndarray) -> float:
    """Reward counts that line up along rows or columns of the grid."""
    row_variation = coefficient_of_variation(grid.sum(axis=1))
    col_variation = coefficient_of_variation(grid.sum(axis=0))
    return max(0.0, 1.0 - min(row_variation, col_variation))


class SpatialAnalyzer:
    """Scores how evenly matches cover the first image."""

    def __init__(self, config: SpatialConfig = None):
        self.config = config or SpatialConfig()

    def analyze(
        self,
        features: FeatureSet,
        matches: Sequence[cv2.DMatch],
        image_size: Tuple[int, int]
    ) -> float:
        """
        Compute the spatial score of a match set.

        Args:
            features: FeatureSet of the first (query) image
            matches: Filtered matches whose queryIdx index into features
            image_size: (width, height) of the first image

        Returns:
            Spatial score in [0, 1]; 0 when there are no matches
        """
        if not matches:
            return 0.0

        cfg = self.config
        all_points = features.points()
        points = all_points[[m.queryIdx for m in matches]]

        fine = occupancy_grid(points, cfg.fine_grid, image_size)
        coarse = occupancy_grid(points, cfg.coarse_grid, image_size)

        score = (
            cfg.fine_coverage_weight * coverage(fine)
            + cfg.coarse_coverage_weight * coverage(coarse)
            + cfg.fine_evenness_weight * evenness(fine)
            + cfg.coarse_evenness_weight * evenness(coarse)
            + cfg.alignment_weight * alignment(coarse)
        )
        return float(np.clip(score, 0.0, 1.0))
