"""
rasterize.py - Source image handle and decoding to a pixel array.

Decoding is a blocking Pillow call; every call returns a freshly
allocated array owned by the caller.
"""

import io
import logging
import mimetypes
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from .dimensions import Dimensions
from .exceptions import DecodeError
from .formats import ImageFormat, canonical_format

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceImage:
    """Raw image bytes plus what the caller declared about them."""
    data: bytes = field(repr=False)
    mime_type: str = ""
    size: int = -1
    name: str = "image"

    def __post_init__(self):
        # Declared size defaults to the actual buffer length
        if self.size < 0:
            object.__setattr__(self, "size", len(self.data))

    @classmethod
    def from_bytes(cls, data: bytes, name: str, mime_type: Optional[str] = None) -> "SourceImage":
        """Build a source, guessing the MIME type from the name if not given."""
        if mime_type is None:
            mime_type = mimetypes.guess_type(name)[0] or ""
        return cls(data=data, mime_type=mime_type, size=len(data), name=name)

    @property
    def declared_format(self) -> Optional[ImageFormat]:
        return canonical_format(self.mime_type)


# Integer modes Pillow uses for 16-bit grayscale
_HIGH_BIT_DEPTH_MODES = ("I", "I;16", "I;16B", "I;16L", "I;16N")


def _to_rgba(img: Image.Image) -> Image.Image:
    if img.mode in _HIGH_BIT_DEPTH_MODES:
        # convert() would clip 16-bit samples to 255, scale them down instead
        samples = np.clip(np.asarray(img).astype(np.int64), 0, 65535)
        gray = (samples >> 8).astype(np.uint8)
        return Image.fromarray(gray).convert("RGBA")
    return img.convert("RGBA")


def decode_source(source: SourceImage) -> np.ndarray:
    """
    Decode a source image to an RGBA array.

    Returns:
        uint8 numpy array of shape (height, width, 4)

    Raises:
        DecodeError: if the bytes are not a readable image
    """
    try:
        with Image.open(io.BytesIO(source.data)) as img:
            img.load()
            rgba = _to_rgba(img)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise DecodeError(f"Failed to load image {source.name}: {e}") from e

    pixels = np.asarray(rgba, dtype=np.uint8).copy()  # Copy to own the memory
    if pixels.ndim != 3 or pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise DecodeError(f"Failed to load image {source.name}: empty raster")

    logger.debug(f"Decoded {source.name}: {pixels.shape[1]}x{pixels.shape[0]} from {len(source.data):,} bytes")
    return pixels


def raster_dimensions(pixels: np.ndarray) -> Dimensions:
    """Dimensions of a decoded (height, width, channels) array."""
    return Dimensions(width=int(pixels.shape[1]), height=int(pixels.shape[0]))
