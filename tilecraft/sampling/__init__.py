"""
Image Sampler

Resampling of source rectangles plus the decode/encode collaborator.
"""

from .sampler import ImageSampler, INTERPOLATION, DEFAULT_QUALITY, sampling_matrix
from .codec import (
    decode_image,
    load_image,
    image_from_base64,
    encode_png,
    image_to_base64,
    SUPPORTED_EXTENSIONS,
)

__all__ = [
    # Sampler
    "ImageSampler",
    "INTERPOLATION",
    "DEFAULT_QUALITY",
    "sampling_matrix",
    # Codec
    "decode_image",
    "load_image",
    "image_from_base64",
    "encode_png",
    "image_to_base64",
    "SUPPORTED_EXTENSIONS",
]
