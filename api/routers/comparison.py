"""
Comparison Router - Image comparison endpoints for LCDMatch API

Contains endpoints for:
- Comparing a capture with a reference image
- Render classification of a single image
- Preprocessed image and segment mask inspection
"""

from fastapi import APIRouter, UploadFile, File, HTTPException, Form
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
import io

from lcd_vision import ImageDecodeError, image_to_bytes, load_image_from_bytes
from models import ComparisonResult, ClassificationResponse
from services import get_comparison_service, compare_images
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["comparison"])


async def _read_image(file: UploadFile):
    """Read and decode an uploaded image, 400 if it is not an image."""
    content = await file.read()
    try:
        return load_image_from_bytes(content)
    except ImageDecodeError as e:
        raise HTTPException(status_code=400, detail=f"{file.filename}: {e}")


def _png_response(image) -> StreamingResponse:
    return StreamingResponse(io.BytesIO(image_to_bytes(image)), media_type="image/png")


@router.post("/compare", response_model=ComparisonResult)
async def compare(
    image1: UploadFile = File(...),
    image2: UploadFile = File(...)
):
    """
    Compare a captured image with a reference image.

    Undecodable uploads are not rejected here: they come back as a
    degraded result with score 0 and an error message, like any other
    comparison failure.

    Args:
        image1: Captured image
        image2: Reference image

    Returns:
        ComparisonResult
    """
    content1 = await image1.read()
    content2 = await image2.read()

    return await run_in_threadpool(compare_images, content1, content2)


@router.post("/classify", response_model=ClassificationResponse)
async def classify(image: UploadFile = File(...)):
    """
    Classify an image as screen render or photograph.

    Args:
        image: Image to classify

    Returns:
        Verdict with the underlying measurements
    """
    decoded = await _read_image(image)
    service = get_comparison_service()

    measurements = await run_in_threadpool(service.measure, decoded)
    is_render = service.comparator.classifier.is_render(measurements)

    return ClassificationResponse(
        is_render=is_render,
        verdict="rendered" if is_render else "photographed",
        edge_sharpness=measurements.edge_sharpness,
        noise_std=measurements.noise_std,
        histogram_std=measurements.histogram_std
    )


@router.post("/preprocess")
async def preprocess(
    image: UploadFile = File(...),
    is_render: bool = Form(False)
):
    """
    Return the adaptively preprocessed grayscale image as PNG.

    Args:
        image: Image to preprocess
        is_render: Treat the image as a screen render
    """
    decoded = await _read_image(image)
    service = get_comparison_service()
    processed = await run_in_threadpool(service.preprocess_image, decoded, is_render)
    return _png_response(processed)


@router.post("/segments")
async def segments(
    image: UploadFile = File(...),
    is_render: bool = Form(False)
):
    """
    Return the binary segment mask of an (already preprocessed) image as PNG.

    Args:
        image: Preprocessed image
        is_render: Treat the image as a screen render
    """
    decoded = await _read_image(image)
    service = get_comparison_service()
    mask = await run_in_threadpool(service.extract_lcd_segments, decoded, is_render)
    return _png_response(mask)
