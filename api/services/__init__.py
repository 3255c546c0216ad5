"""
Services layer for LCDMatch.

This package provides the serialized boundary entry points of the
comparison pipeline.
"""

from .comparison_service import (
    ComparisonService,
    get_comparison_service,
    shutdown_comparison_service,
    compare_images,
    is_digital_render,
    preprocess_image,
    extract_lcd_segments,
    calculate_structural_similarity
)

__all__ = [
    'ComparisonService',
    'get_comparison_service',
    'shutdown_comparison_service',
    'compare_images',
    'is_digital_render',
    'preprocess_image',
    'extract_lcd_segments',
    'calculate_structural_similarity'
]
