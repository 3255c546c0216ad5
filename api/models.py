"""
Pydantic models for request/response validation.

These models define the API contracts for LCDMatch endpoints.
"""

from pydantic import BaseModel, Field
from typing import Literal

from lcd_vision import ComparisonResult


class ClassificationResponse(BaseModel):
    """Response model for render classification."""

    is_render: bool
    verdict: Literal["rendered", "photographed"]
    edge_sharpness: float = Field(..., ge=0.0, le=1.0, description="Fraction of Canny edge pixels")
    noise_std: float = Field(..., ge=0.0, description="Std of the Gaussian blur residual")
    histogram_std: float = Field(..., ge=0.0, description="Std of the 256-bin histogram counts")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    version: str


__all__ = ['ComparisonResult', 'ClassificationResponse', 'HealthResponse']
