"""
Feature detection and matching module.

ORB keypoints are detected on both the preprocessed image and its segment
mask and merged into one FeatureSet. Two FeatureSets are matched with a
brute-force Hamming kNN search filtered by Lowe's ratio test.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import cv2
import numpy as np

from config.models import FeatureConfig, FeatureProfile, MatchingConfig
from utils.logger import get_logger
from .render_classifier import RenderVerdict

logger = get_logger(__name__)


@dataclass(frozen=True)
class FeatureSet:
    """
    Ordered keypoints with one binary descriptor row per keypoint.

    Match indices refer to positions in this order, so the concatenation
    order (image features first, segment features second) is significant.
    """

    keypoints: Tuple[cv2.KeyPoint, ...] = ()
    descriptors: Optional[np.ndarray] = None

    def __len__(self) -> int:
        return len(self.keypoints)

    @property
    def is_empty(self) -> bool:
        return len(self.keypoints) == 0 or self.descriptors is None or len(self.descriptors) == 0

    def points(self) -> np.ndarray:
        """Keypoint locations as an (N, 2) float32 array of (x, y)."""
        if not self.keypoints:
            return np.empty((0, 2), dtype=np.float32)
        return np.array([kp.pt for kp in self.keypoints], dtype=np.float32)

    @classmethod
    def concatenate(cls, first: "FeatureSet", second: "FeatureSet") -> "FeatureSet":
        """Union of two sets; an empty side contributes nothing."""
        if first.is_empty:
            return second if not second.is_empty else cls()
        if second.is_empty:
            return first
        return cls(
            keypoints=tuple(first.keypoints) + tuple(second.keypoints),
            descriptors=np.vstack([first.descriptors, second.descriptors]),
        )


class FeatureEngine:
    """
    Adaptive ORB detector and ratio-test matcher.

    Photographs get a deeper pyramid, larger patches and a higher FAST
    threshold than renders to cope with perspective and lighting noise.
    """

    def __init__(self, config: FeatureConfig = None, matching: MatchingConfig = None):
        self.config = config or FeatureConfig()
        self.matching = matching or MatchingConfig()

    @staticmethod
    def _create_orb(profile: FeatureProfile):
        return cv2.ORB_create(
            nfeatures=profile.nfeatures,
            scaleFactor=profile.scale_factor,
            nlevels=profile.nlevels,
            edgeThreshold=profile.edge_threshold,
            firstLevel=profile.first_level,
            WTA_K=profile.wta_k,
            scoreType=cv2.ORB_HARRIS_SCORE,
            patchSize=profile.patch_size,
            fastThreshold=profile.fast_threshold,
        )

    @staticmethod
    def _detect_single(orb, image: np.ndarray) -> FeatureSet:
        keypoints, descriptors = orb.detectAndCompute(image, None)
        if not keypoints or descriptors is None:
            return FeatureSet()
        return FeatureSet(keypoints=tuple(keypoints), descriptors=descriptors)

    def detect(self, image: np.ndarray, segments: np.ndarray, verdict: RenderVerdict) -> FeatureSet:
        """
        Detect features on an image and its segment mask.

        Args:
            image: Preprocessed 8-bit grayscale image
            segments: Binary segment mask of the same image
            verdict: Render verdict of the image

        Returns:
            Merged FeatureSet (possibly empty)
        """
        orb = self._create_orb(self.config.profile(verdict.is_render))

        image_features = self._detect_single(orb, image)
        segment_features = self._detect_single(orb, segments)

        features = FeatureSet.concatenate(image_features, segment_features)
        logger.debug(
            f"Detected {len(image_features)} image + {len(segment_features)} segment features "
            f"({verdict.value})"
        )
        return features

    def match(self, query: FeatureSet, train: FeatureSet, both_render: bool) -> List[cv2.DMatch]:
        """
        Match two feature sets and keep unambiguous matches.

        A kNN pair survives when best.distance < ratio * second.distance.

        Args:
            query: Features of the first image
            train: Features of the second image
            both_render: Whether both images are screen renders

        Returns:
            Surviving matches sorted by ascending distance
        """
        if query.is_empty or train.is_empty:
            return []

        matcher = cv2.BFMatcher(cv2.NORM_HAMMING)
        knn_matches = matcher.knnMatch(query.descriptors, train.descriptors, k=self.matching.k)

        ratio = self.matching.ratio(both_render)
        good_matches = [
            pair[0] for pair in knn_matches
            if len(pair) >= 2 and pair[0].distance < ratio * pair[1].distance
        ]

        good_matches.sort(key=lambda m: m.distance)
        return good_matches
