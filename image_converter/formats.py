"""
formats.py - Supported formats and the conversion table.

Formats:
- JPEG (lossy, no alpha)
- PNG (lossless, alpha)
- PDF (single page, target only)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

logger = logging.getLogger(__name__)


class ImageFormat(str, Enum):
    """Canonical format tags. Values double as file extensions."""
    JPEG = "jpg"
    PNG = "png"
    PDF = "pdf"

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self]

    @property
    def pil_format(self) -> str:
        """Format name Pillow expects in Image.save()."""
        return _PIL_FORMATS[self]

    @property
    def is_bitmap(self) -> bool:
        return self in BITMAP_FORMATS

    @property
    def is_lossy(self) -> bool:
        return self is ImageFormat.JPEG


_MIME_TYPES = {
    ImageFormat.JPEG: "image/jpeg",
    ImageFormat.PNG: "image/png",
    ImageFormat.PDF: "application/pdf",
}

_PIL_FORMATS = {
    ImageFormat.JPEG: "JPEG",
    ImageFormat.PNG: "PNG",
}

BITMAP_FORMATS = frozenset({ImageFormat.JPEG, ImageFormat.PNG})

# Every name a caller may use for a format
_SYNONYMS = {
    "jpg": ImageFormat.JPEG,
    "jpeg": ImageFormat.JPEG,
    "jpe": ImageFormat.JPEG,
    "image/jpeg": ImageFormat.JPEG,
    "image/jpg": ImageFormat.JPEG,
    "image/pjpeg": ImageFormat.JPEG,
    "png": ImageFormat.PNG,
    "image/png": ImageFormat.PNG,
    "pdf": ImageFormat.PDF,
    "application/pdf": ImageFormat.PDF,
}

FormatLike = Union[ImageFormat, str]


@dataclass(frozen=True)
class SupportedConversion:
    """One row of the conversion table."""
    source: ImageFormat
    target: ImageFormat
    supports_compression: bool = True


# Same-format pairs are deliberately absent; see convert_image()
SUPPORTED_CONVERSIONS: Tuple[SupportedConversion, ...] = (
    SupportedConversion(ImageFormat.JPEG, ImageFormat.PNG),
    SupportedConversion(ImageFormat.PNG, ImageFormat.JPEG),
    SupportedConversion(ImageFormat.JPEG, ImageFormat.PDF),
    SupportedConversion(ImageFormat.PNG, ImageFormat.PDF),
)


def canonical_format(tag: FormatLike) -> Optional[ImageFormat]:
    """
    Map a format name, extension or MIME type to its canonical tag.

    Returns None for anything unknown.
    """
    if isinstance(tag, ImageFormat):
        return tag
    if not tag:
        return None
    key = tag.strip().lower().lstrip(".")
    return _SYNONYMS.get(key)


def find_conversion(source: FormatLike, target: FormatLike) -> Optional[SupportedConversion]:
    """Look up a (source, target) pair in the table after canonicalization."""
    src = canonical_format(source)
    dst = canonical_format(target)
    if src is None or dst is None:
        return None
    for conversion in SUPPORTED_CONVERSIONS:
        if conversion.source is src and conversion.target is dst:
            return conversion
    return None


def is_supported(source: FormatLike, target: FormatLike) -> bool:
    return find_conversion(source, target) is not None


def supported_targets(source: FormatLike) -> Tuple[ImageFormat, ...]:
    """Targets reachable from a source format, in table order."""
    src = canonical_format(source)
    return tuple(c.target for c in SUPPORTED_CONVERSIONS if c.source is src)
