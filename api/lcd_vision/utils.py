"""
Utility functions for image ingestion.

This module converts boundary image objects (OpenCV arrays, PIL images,
encoded bytes) into the single-channel 8-bit grayscale buffers every
comparison stage works on, and encodes results back for transport.
"""

import cv2
import numpy as np
from PIL import Image
from pathlib import Path
from typing import Union


ImageInput = Union[np.ndarray, Image.Image, bytes, bytearray]


class ImageDecodeError(ValueError):
    """Raised when an input cannot be turned into a grayscale image."""


def load_image_from_bytes(image_bytes: bytes) -> np.ndarray:
    """
    Load an image from bytes.

    Args:
        image_bytes: Encoded image data (PNG, JPEG, ...)

    Returns:
        Image as numpy array in BGR format

    Raises:
        ImageDecodeError: If the bytes are not a decodable image
    """
    if not image_bytes:
        raise ImageDecodeError("Empty image data")
    nparr = np.frombuffer(bytes(image_bytes), np.uint8)
    img = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    if img is None:
        raise ImageDecodeError("Could not decode image data")
    return img


def load_image_from_path(path: Union[str, Path]) -> np.ndarray:
    """
    Load an image file as a BGR array.

    np.fromfile + imdecode handles non-ASCII paths that cv2.imread rejects.
    """
    path = Path(path)
    if not path.is_file():
        raise ImageDecodeError(f"Image file not found: {path}")
    return load_image_from_bytes(np.fromfile(str(path), dtype=np.uint8).tobytes())


def to_grayscale(image: ImageInput) -> np.ndarray:
    """
    Convert a boundary image object to an 8-bit grayscale buffer.

    Color images go through cv2.cvtColor, i.e. the fixed luma weights
    0.299 R + 0.587 G + 0.114 B, so every downstream threshold sees the
    same gray mapping regardless of input format.

    Args:
        image: BGR/BGRA/gray numpy array, PIL image, or encoded bytes

    Returns:
        New 2D uint8 array at the image's native resolution

    Raises:
        ImageDecodeError: If the input cannot be interpreted as an image
    """
    if isinstance(image, (bytes, bytearray)):
        image = load_image_from_bytes(image)
    elif isinstance(image, Image.Image):
        rgb = np.asarray(image.convert("RGB"))
        return cv2.cvtColor(rgb, cv2.COLOR_RGB2GRAY)

    if not isinstance(image, np.ndarray):
        raise ImageDecodeError(f"Unsupported image type: {type(image).__name__}")
    if image.size == 0:
        raise ImageDecodeError("Image has no pixels")

    if image.dtype != np.uint8:
        if np.issubdtype(image.dtype, np.floating) and image.max() <= 1.0:
            image = image * 255.0
        image = np.clip(image, 0, 255).astype(np.uint8)

    if image.ndim == 2:
        return image.copy()
    if image.ndim == 3 and image.shape[2] == 1:
        return image[:, :, 0].copy()
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)

    raise ImageDecodeError(f"Unsupported image shape: {image.shape}")


def image_to_bytes(image: np.ndarray, format: str = 'PNG') -> bytes:
    """
    Convert numpy image to bytes.

    Args:
        image: Image as numpy array
        format: Output format (PNG, JPEG, etc.)

    Returns:
        Image as bytes
    """
    is_success, buffer = cv2.imencode(f'.{format.lower()}', image)
    if not is_success:
        raise ValueError("Failed to encode image")
    return buffer.tobytes()
