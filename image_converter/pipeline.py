"""
pipeline.py - Single entry point for image conversion.

Pipeline:
1. Canonicalize format names
2. Check the pair against the conversion table
3. Re-encode (JPEG/PNG) or assemble a PDF
4. Wrap bytes and stats into a ConversionResult

One call converts one image. Batches are the caller's loop.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Optional

from .compression import CompressionSettings, CompressionStats, reencode
from .exceptions import (
    ConversionError,
    ErrorKind,
    NoOperationRequestedError,
    UnsupportedConversionError,
)
from .formats import FormatLike, ImageFormat, canonical_format, find_conversion
from .pdf_writer import build_document
from .rasterize import SourceImage

logger = logging.getLogger(__name__)

_EXTENSION_RE = re.compile(r"\.[^/.]+$")


@dataclass
class ConversionResult:
    """Outcome of converting one image. Either success or failure, never both."""
    source_name: str
    source_format: str
    target_format: str
    success: bool
    converted_name: str = ""
    converted_bytes: bytes = field(default=b"", repr=False)
    stats: Optional[CompressionStats] = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None

    @classmethod
    def succeeded(
        cls,
        source: SourceImage,
        source_format: str,
        target: ImageFormat,
        data: bytes,
        stats: Optional[CompressionStats]
    ) -> "ConversionResult":
        return cls(
            source_name=source.name,
            source_format=source_format,
            target_format=target.value,
            success=True,
            converted_name=converted_file_name(source.name, target),
            converted_bytes=data,
            stats=stats
        )

    @classmethod
    def failed(
        cls,
        source: SourceImage,
        source_format: str,
        target_format: str,
        error: ConversionError
    ) -> "ConversionResult":
        return cls(
            source_name=source.name,
            source_format=source_format,
            target_format=target_format,
            success=False,
            error_kind=error.kind,
            error=str(error)
        )

    @property
    def output_size(self) -> int:
        return len(self.converted_bytes)

    def summary(self) -> str:
        if not self.success:
            kind = f" ({self.error_kind.value})" if self.error_kind is not None else ""
            return f"{self.source_name}: FAILED{kind} {self.error}"
        line = f"{self.source_name} -> {self.converted_name} ({self.output_size:,} bytes)"
        if self.stats is not None:
            line += (
                f" | {self.stats.original_dimensions} -> {self.stats.new_dimensions}"
                f" | {self.stats.compression_ratio:.1f}% saved"
            )
        return line


def converted_file_name(name: str, target: ImageFormat) -> str:
    """Swap the file extension for the target's canonical one."""
    if _EXTENSION_RE.search(name):
        return _EXTENSION_RE.sub(target.extension, name)
    return name + target.extension


def _label(fmt: FormatLike) -> str:
    return str(getattr(fmt, "value", fmt))


def _delegate(
    source: SourceImage,
    source_format: FormatLike,
    target_format: FormatLike,
    settings: CompressionSettings
):
    src = canonical_format(source_format)
    dst = canonical_format(target_format)

    # Same-format bitmap requests are recompression, not a table lookup
    same_bitmap = src is not None and src is dst and src.is_bitmap
    if not same_bitmap and find_conversion(src, dst) is None:
        raise UnsupportedConversionError(
            f"Conversion from {_label(source_format).upper()} to {_label(target_format).upper()} is not supported"
        )

    if dst is ImageFormat.PDF:
        document, stats = build_document(source, settings)
        return dst, document.data, stats

    if src is not dst or settings.enable_compression:
        encoded, stats = reencode(source, dst, settings)
        return dst, encoded.data, stats

    raise NoOperationRequestedError("No conversion or compression requested")


def convert_image(
    source: SourceImage,
    source_format: FormatLike,
    target_format: FormatLike,
    settings: Optional[CompressionSettings] = None
) -> ConversionResult:
    """
    Convert one image between formats, optionally compressing and resizing.

    Args:
        source: Image bytes and metadata
        source_format: Declared source format (jpg, jpeg, png, or MIME type)
        target_format: Requested target (jpg, jpeg, png, pdf)
        settings: Compression options, defaults to no compression

    Returns:
        ConversionResult; failures are reported in it, not raised
    """
    if settings is None:
        settings = CompressionSettings()

    src_label = _label(source_format)
    dst_label = _label(target_format)

    try:
        target, data, stats = _delegate(source, source_format, target_format, settings)
    except ConversionError as e:
        logger.warning(f"{source.name}: {src_label} -> {dst_label} failed: {e}")
        return ConversionResult.failed(source, src_label, dst_label, e)

    # Stats describe the artifact actually returned, not an intermediate raster
    if stats is not None and stats.final_size != len(data):
        stats = replace(stats, final_size=len(data))

    result = ConversionResult.succeeded(source, src_label, target, data, stats)
    logger.info(f"Converted {result.summary()}")
    return result
