"""
LCDMatch API Routers

This package contains the FastAPI routers of the service:
- comparison: image comparison, classification and inspection endpoints
"""

from .comparison import router as comparison_router

__all__ = [
    "comparison_router"
]
