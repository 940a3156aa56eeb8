"""
Image Converter - JPEG/PNG conversion, compression and single-page PDF output.

Convert one image per call with convert_image(); every failure comes back
as a ConversionResult with an ErrorKind instead of an exception.
"""

__version__ = "1.0.0"
__author__ = "Image Converter"

from .compression import (
    CompressionPreview,
    CompressionSettings,
    CompressionStats,
    EncodedImage,
    preview_compression,
    reencode,
)
from .dimensions import Dimensions, Placement, calculate_dimensions, fit_to_page
from .exceptions import (
    ConversionError,
    DecodeError,
    DocumentAssemblyError,
    EncodeError,
    ErrorKind,
    NoOperationRequestedError,
    SurfaceUnavailableError,
    UnsupportedConversionError,
)
from .formats import (
    SUPPORTED_CONVERSIONS,
    ImageFormat,
    SupportedConversion,
    canonical_format,
    find_conversion,
    is_supported,
    supported_targets,
)
from .pdf_writer import build_document
from .pipeline import ConversionResult, convert_image
from .rasterize import SourceImage
from .thumbnail import generate_thumbnail

__all__ = [
    "SUPPORTED_CONVERSIONS",
    "CompressionPreview",
    "CompressionSettings",
    "CompressionStats",
    "ConversionError",
    "ConversionResult",
    "DecodeError",
    "Dimensions",
    "DocumentAssemblyError",
    "EncodeError",
    "EncodedImage",
    "ErrorKind",
    "ImageFormat",
    "NoOperationRequestedError",
    "Placement",
    "SourceImage",
    "SupportedConversion",
    "SurfaceUnavailableError",
    "UnsupportedConversionError",
    "build_document",
    "calculate_dimensions",
    "canonical_format",
    "convert_image",
    "find_conversion",
    "fit_to_page",
    "generate_thumbnail",
    "is_supported",
    "preview_compression",
    "reencode",
    "supported_targets",
]
