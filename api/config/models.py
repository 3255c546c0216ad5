"""
Pydantic Models for the LCDMatch comparison table

Provides type-safe, validated access to every tuned constant of the
comparison pipeline. Defaults reproduce the tuned values so a bare
ComparisonConfig() behaves exactly like the shipped YAML table.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, Dict, Any


def _require_odd(v: int) -> int:
    if v % 2 == 0:
        raise ValueError('kernel sizes must be odd')
    return v


# ============================================================
# Render Classifier
# ============================================================

class RenderClassifierConfig(BaseModel):
    """Decision boundary of the screen-render vs. photograph heuristic."""

    canny_low: int = Field(100, ge=0, le=255, description="Canny hysteresis low threshold")
    canny_high: int = Field(200, ge=0, le=1020, description="Canny hysteresis high threshold")
    blur_kernel: int = Field(5, ge=3, le=31, description="Gaussian kernel for the noise residual")
    histogram_bins: int = Field(256, ge=2, le=256)
    min_edge_sharpness: float = Field(0.10, ge=0, le=1, description="Minimum edge pixel fraction")
    max_noise_std: float = Field(10.0, gt=0, description="Maximum std of the blur residual")
    min_histogram_std: float = Field(1000.0, ge=0, description="Minimum std of histogram bin counts")

    @field_validator('blur_kernel')
    @classmethod
    def validate_kernel(cls, v):
        return _require_odd(v)

    @model_validator(mode='after')
    def validate_thresholds(self):
        if self.canny_low > self.canny_high:
            raise ValueError('canny_low must not exceed canny_high')
        return self


# ============================================================
# Adaptive Preprocessor
# ============================================================

class RenderPreprocessConfig(BaseModel):
    """Contrast equalization + Laplacian edge blend for screen renders."""

    clahe_clip_limit: float = Field(2.0, gt=0)
    clahe_tile_grid: int = Field(8, ge=1, le=64)
    enhanced_weight: float = Field(0.8, ge=0, le=1)
    edge_weight: float = Field(0.2, ge=0, le=1)


class PhotoPreprocessConfig(BaseModel):
    """Denoise, equalize and sharpen for photographs of a physical display."""

    denoise_strength: float = Field(10.0, gt=0)
    denoise_template_window: int = Field(21, ge=3, description="Template window passed to fastNlMeansDenoising")
    clahe_clip_limit: float = Field(3.0, gt=0)
    clahe_tile_grid: int = Field(8, ge=1, le=64)
    unsharp_sigma: float = Field(3.0, gt=0)
    unsharp_amount: float = Field(1.5, gt=0)
    unsharp_blur_weight: float = Field(-0.5, le=0)

    @field_validator('denoise_template_window')
    @classmethod
    def validate_window(cls, v):
        return _require_odd(v)


class PreprocessingConfig(BaseModel):
    render: RenderPreprocessConfig = RenderPreprocessConfig()
    photo: PhotoPreprocessConfig = PhotoPreprocessConfig()


# ============================================================
# Segment Extractor
# ============================================================

class SegmentationProfile(BaseModel):
    """Binarization and morphology settings for one render verdict."""

    threshold: Optional[int] = Field(None, ge=0, le=255, description="Global threshold (renders)")
    adaptive_block_size: Optional[int] = Field(None, ge=3, description="Gaussian neighbourhood (photos)")
    adaptive_offset: float = Field(0.0, description="Constant subtracted from the local mean")
    kernel_size: int = Field(3, ge=1, le=31)
    denoise: bool = Field(False, description="Apply opening + median filter after closing")
    median_kernel: int = Field(5, ge=3, le=31)

    @field_validator('adaptive_block_size')
    @classmethod
    def validate_block(cls, v):
        return v if v is None else _require_odd(v)

    @field_validator('median_kernel')
    @classmethod
    def validate_median(cls, v):
        return _require_odd(v)


class SegmentationConfig(BaseModel):
    render: SegmentationProfile = SegmentationProfile(threshold=127, kernel_size=3, denoise=False)
    photo: SegmentationProfile = SegmentationProfile(
        adaptive_block_size=25, adaptive_offset=15, kernel_size=5, denoise=True, median_kernel=5
    )

    @model_validator(mode='after')
    def validate_branches(self):
        if self.render.threshold is None:
            raise ValueError('segmentation.render.threshold is required')
        if self.photo.adaptive_block_size is None:
            raise ValueError('segmentation.photo.adaptive_block_size is required')
        return self

    def profile(self, is_render: bool) -> SegmentationProfile:
        return self.render if is_render else self.photo


# ============================================================
# Feature Engine
# ============================================================

class FeatureProfile(BaseModel):
    """ORB detector parameters for one render verdict."""

    nfeatures: int = Field(3000, ge=1)
    scale_factor: float = Field(1.1, gt=1.0)
    nlevels: int = Field(8, ge=1)
    edge_threshold: int = Field(10, ge=0)
    patch_size: int = Field(15, ge=2)
    fast_threshold: int = Field(10, ge=0)
    first_level: int = Field(0, ge=0)
    wta_k: int = Field(3, ge=2, le=4)


class FeatureConfig(BaseModel):
    render: FeatureProfile = FeatureProfile()
    photo: FeatureProfile = FeatureProfile(nlevels=12, edge_threshold=15, patch_size=21, fast_threshold=20)

    def profile(self, is_render: bool) -> FeatureProfile:
        return self.render if is_render else self.photo


class MatchingConfig(BaseModel):
    """Brute-force kNN matching and Lowe ratio test."""

    k: int = Field(2, ge=2)
    ratio_both_render: float = Field(0.80, gt=0, le=1)
    ratio_mixed: float = Field(0.85, gt=0, le=1)

    def ratio(self, both_render: bool) -> float:
        return self.ratio_both_render if both_render else self.ratio_mixed


# ============================================================
# Spatial Analyzer
# ============================================================

class SpatialConfig(BaseModel):
    fine_grid: int = Field(8, ge=1)
    coarse_grid: int = Field(4, ge=1)
    fine_coverage_weight: float = 0.3
    coarse_coverage_weight: float = 0.2
    fine_evenness_weight: float = 0.2
    coarse_evenness_weight: float = 0.1
    alignment_weight: float = 0.2


# ============================================================
# Structural Similarity Scorer
# ============================================================

class StructuralWeights(BaseModel):
    original_weight: float = Field(0.4, ge=0, le=1)
    segment_weight: float = Field(0.4, ge=0, le=1)
    histogram_weight: float = Field(0.2, ge=0, le=1)


class StructuralConfig(BaseModel):
    histogram_bins: int = Field(256, ge=2, le=256)
    both_render: StructuralWeights = StructuralWeights(original_weight=0.2, segment_weight=0.6)
    mixed: StructuralWeights = StructuralWeights()

    def weights(self, both_render: bool) -> StructuralWeights:
        return self.both_render if both_render else self.mixed


# ============================================================
# Score Composer
# ============================================================

class ScoringProfile(BaseModel):
    """Pair-dependent weights of the final score."""

    max_distance: float = Field(100.0, gt=0, description="Hamming distance mapped to quality 0")
    expected_match_fraction: float = Field(0.03, gt=0, le=1)
    structural_weight: float = Field(0.4, ge=0, le=1)
    quantity_weight: float = Field(0.35, ge=0, le=1)
    quality_weight: float = Field(0.25, ge=0, le=1)
    power: float = Field(0.7, gt=0)
    bonus_threshold: float = Field(65.0, ge=0, le=100)


class ScoringConfig(BaseModel):
    quality_sample_size: int = Field(100, ge=1)
    nominal_features: int = Field(3000, ge=1)
    bonus_multiplier: float = Field(1.3, ge=1.0)
    both_render: ScoringProfile = ScoringProfile(
        max_distance=80.0,
        expected_match_fraction=0.05,
        structural_weight=0.5,
        quantity_weight=0.3,
        quality_weight=0.2,
        power=0.6,
        bonus_threshold=75.0,
    )
    mixed: ScoringProfile = ScoringProfile()

    def profile(self, both_render: bool) -> ScoringProfile:
        return self.both_render if both_render else self.mixed


# ============================================================
# Complete comparison table
# ============================================================

class ComparisonConfig(BaseModel):
    """Every tuned constant of the comparison pipeline."""

    render_classifier: RenderClassifierConfig = RenderClassifierConfig()
    preprocessing: PreprocessingConfig = PreprocessingConfig()
    segmentation: SegmentationConfig = SegmentationConfig()
    features: FeatureConfig = FeatureConfig()
    matching: MatchingConfig = MatchingConfig()
    spatial: SpatialConfig = SpatialConfig()
    structural: StructuralConfig = StructuralConfig()
    scoring: ScoringConfig = ScoringConfig()


# ============================================================
# Helper Functions
# ============================================================

def validate_comparison_config(config: Dict[str, Any]) -> ComparisonConfig:
    """
    Validate a comparison table dictionary.

    Unknown top-level sections (e.g. "logging") are ignored.

    Args:
        config: Configuration dictionary

    Returns:
        Validated ComparisonConfig

    Raises:
        ValidationError: If validation fails
    """
    return ComparisonConfig.model_validate(config or {})


def load_comparison_config(loader=None) -> ComparisonConfig:
    """
    Build the comparison table from the YAML configuration.

    Args:
        loader: Optional ConfigLoader (defaults to the singleton)

    Returns:
        Validated ComparisonConfig
    """
    if loader is None:
        from .config_loader import get_config
        loader = get_config()
    return validate_comparison_config(loader.as_dict())
