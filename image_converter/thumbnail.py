"""
thumbnail.py - Small JPEG previews for display.
"""

import logging

from .compression import EncodedImage, render_raster
from .dimensions import thumbnail_dimensions
from .formats import ImageFormat
from .rasterize import SourceImage, decode_source, raster_dimensions

logger = logging.getLogger(__name__)

DEFAULT_THUMBNAIL_SIZE = 120
THUMBNAIL_QUALITY = 0.8


def generate_thumbnail(source: SourceImage, max_size: int = DEFAULT_THUMBNAIL_SIZE) -> EncodedImage:
    """
    Render a JPEG thumbnail whose longer side is max_size pixels.

    Use EncodedImage.as_data_url() to display it inline.

    Raises:
        DecodeError, SurfaceUnavailableError, EncodeError
    """
    if max_size < 1:
        raise ValueError(f"max_size must be positive, got {max_size}")

    pixels = decode_source(source)
    original = raster_dimensions(pixels)
    dimensions = thumbnail_dimensions(original.width, original.height, max_size)

    thumb = render_raster(pixels, dimensions, ImageFormat.JPEG, THUMBNAIL_QUALITY)
    logger.debug(f"Thumbnail {source.name}: {original} -> {dimensions}, {thumb.byte_length:,} bytes")
    return thumb
