"""
LCDMatch API - LCD Test-Pattern Capture Comparison

This FastAPI application provides endpoints for:
- Comparing a camera capture of an LCD test pattern with a reference
- Classifying images as screen renders or photographs
- Inspecting intermediate preprocessing and segmentation results
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from config import get_config
from models import HealthResponse
from routers import comparison_router
from services import get_comparison_service, shutdown_comparison_service
from utils.logger import setup_from_config

__version__ = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Configure logging and start the processing worker.
    """
    setup_from_config(get_config())
    get_comparison_service()
    yield
    shutdown_comparison_service()


# Initialize FastAPI app
app = FastAPI(
    title="LCDMatch API",
    description="Similarity scoring of LCD test-pattern captures against a reference",
    version=__version__,
    lifespan=lifespan
)

app.include_router(comparison_router)


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Returns:
        Service status and version
    """
    return HealthResponse(status="healthy", version=__version__)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
