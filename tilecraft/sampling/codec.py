"""
Decode and encode helpers for in-memory images.

Images are numpy arrays in OpenCV channel order (BGR / BGRA). Decoding goes
through OpenCV with the EXIF orientation read by Pillow; PNG encoding goes
through Pillow.
"""

import base64
import binascii
import io
import logging
from pathlib import Path
from typing import Union

import cv2
import numpy as np
from PIL import Image

from ..errors import DecodeError, RasterizationFailure

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".tiff", ".tif", ".webp"}

EXIF_ORIENTATION_TAG = 0x0112


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode raw file bytes into an image.

    Alpha channels are preserved (BGRA). The EXIF orientation, when present,
    is applied so the array is upright.

    Raises:
        DecodeError: Empty or malformed input
    """
    if not data:
        raise DecodeError("Cannot decode an empty buffer")

    buffer = np.frombuffer(data, dtype=np.uint8)
    try:
        image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise DecodeError(f"Failed to decode image: {e}") from e

    if image is None or image.size == 0:
        raise DecodeError("Failed to decode image: unsupported or corrupt data")

    return apply_exif_orientation(image, read_exif_orientation(data))


def read_exif_orientation(data: bytes) -> int:
    """Return the EXIF orientation tag of encoded image bytes (1 when absent)."""
    try:
        with Image.open(io.BytesIO(data)) as pil_image:
            orientation = pil_image.getexif().get(EXIF_ORIENTATION_TAG, 1)
    except (OSError, SyntaxError, ValueError) as e:
        logger.debug(f"No EXIF orientation available: {e}")
        return 1
    return orientation if orientation in range(1, 9) else 1


def apply_exif_orientation(image: np.ndarray, orientation: int) -> np.ndarray:
    """
    Rotate or mirror a decoded array into its display orientation.

    Orientations follow the EXIF convention (1 = upright, 6 = rotate 90 deg
    clockwise, 8 = rotate 90 deg counter-clockwise).
    """
    if orientation == 2:
        return cv2.flip(image, 1)
    if orientation == 3:
        return cv2.rotate(image, cv2.ROTATE_180)
    if orientation == 4:
        return cv2.flip(image, 0)
    if orientation == 5:
        return cv2.transpose(image)
    if orientation == 6:
        return cv2.rotate(image, cv2.ROTATE_90_CLOCKWISE)
    if orientation == 7:
        return cv2.rotate(cv2.transpose(image), cv2.ROTATE_180)
    if orientation == 8:
        return cv2.rotate(image, cv2.ROTATE_90_COUNTERCLOCKWISE)
    return image


def load_image(path: Union[str, Path]) -> np.ndarray:
    """
    Read and decode an image file.

    Raises:
        DecodeError: File missing, unreadable or not an image
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise DecodeError(f"Could not read image file {path}: {e}") from e

    try:
        return decode_image(data)
    except DecodeError as e:
        raise DecodeError(f"{path.name}: {e}") from e


def image_from_base64(base64_string: str) -> np.ndarray:
    """Decode a base64 image string (with or without data URL prefix)."""
    # Remove data URL prefix if present
    if "," in base64_string:
        base64_string = base64_string.split(",", 1)[1]

    try:
        img_bytes = base64.b64decode(base64_string, validate=False)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 image data: {e}") from e

    return decode_image(img_bytes)


def _to_pil(image: np.ndarray) -> Image.Image:
    """Convert an OpenCV-ordered array to a PIL image."""
    if image.ndim == 3 and image.shape[2] == 1:
        image = image[:, :, 0]

    if image.dtype != np.uint8:
        if image.dtype == np.uint16:
            image = (image >> 8).astype(np.uint8)
        else:
            image = np.clip(image, 0, 255).astype(np.uint8)

    if image.ndim == 2:
        return Image.fromarray(image)
    if image.shape[2] == 4:
        return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA))
    if image.shape[2] == 3:
        return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))

    raise RasterizationFailure(f"Cannot encode image with {image.shape[2]} channels")


def encode_png(image: np.ndarray, compress_level: int = 6) -> bytes:
    """
    Encode an image as PNG bytes.

    Args:
        image: BGR, BGRA or grayscale array
        compress_level: zlib compression level (0-9)

    Raises:
        RasterizationFailure: Image cannot be encoded
    """
    if image is None or not isinstance(image, np.ndarray) or image.size == 0:
        raise RasterizationFailure("Cannot encode a missing or empty image")

    pil_image = _to_pil(image)
    buffer = io.BytesIO()
    pil_image.save(buffer, format="PNG", compress_level=compress_level)
    return buffer.getvalue()


def image_to_base64(image: np.ndarray, data_url: bool = False) -> str:
    """Encode an image as base64 PNG, optionally as a ``data:`` URL."""
    encoded = base64.b64encode(encode_png(image)).decode("utf-8")
    if data_url:
        return f"data:image/png;base64,{encoded}"
    return encoded
