"""
compression.py - Raster re-encoding with optional resize and quality reduction.

Supports:
- JPEG output, composited onto opaque white (JPEG has no alpha)
- PNG output, lossless, alpha preserved
"""

import base64
import io
import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

import cv2
import numpy as np
from PIL import Image

from .dimensions import Dimensions, calculate_dimensions
from .exceptions import EncodeError, SurfaceUnavailableError, UnsupportedConversionError
from .formats import FormatLike, ImageFormat, canonical_format
from .rasterize import SourceImage, decode_source, raster_dimensions

logger = logging.getLogger(__name__)

# Quality is normalized to 0.1-1.0 everywhere outside the encoder call
MIN_QUALITY = 0.1
MAX_QUALITY = 1.0
DEFAULT_QUALITY = 0.8

# JPEG quality when the caller did not ask for compression
UNCOMPRESSED_JPEG_QUALITY = 0.95

# Reported quality for lossless PNG output
LOSSLESS_QUALITY = 1.0

WHITE = 255.0


def clamp_quality(quality: float) -> float:
    """Clamp quality to [MIN_QUALITY, MAX_QUALITY]."""
    return max(MIN_QUALITY, min(MAX_QUALITY, float(quality)))


@dataclass
class CompressionSettings:
    """Caller-supplied compression and resize options."""
    quality: float = DEFAULT_QUALITY
    max_width: Optional[int] = None
    max_height: Optional[int] = None
    maintain_aspect_ratio: bool = True
    enable_compression: bool = False

    def __post_init__(self):
        clamped = clamp_quality(self.quality)
        if clamped != self.quality:
            logger.debug(f"Quality {self.quality} clamped to {clamped}")
        self.quality = clamped


@dataclass(frozen=True)
class CompressionStats:
    """Size and dimension accounting for one re-encode."""
    original_size: int
    final_size: int
    quality: float
    original_dimensions: Dimensions
    new_dimensions: Dimensions

    @property
    def compression_ratio(self) -> float:
        """Percent saved. Negative when the output grew."""
        if self.original_size <= 0:
            return 0.0
        return (self.original_size - self.final_size) / self.original_size * 100

    @property
    def bytes_saved(self) -> int:
        return self.original_size - self.final_size


@dataclass(frozen=True)
class EncodedImage:
    """Encoder output. Owned by the caller once returned."""
    data: bytes = field(repr=False)
    format: ImageFormat
    width: int
    height: int

    @property
    def byte_length(self) -> int:
        return len(self.data)

    def as_data_url(self) -> str:
        """Inline data: URL, for displaying previews."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.format.mime_type};base64,{encoded}"


@dataclass(frozen=True)
class CompressionPreview:
    """Estimated result of compressing at a given quality."""
    size: int
    compression_ratio: float
    data: bytes = field(repr=False)


def encoding_quality(target: ImageFormat, settings: CompressionSettings) -> float:
    """Quality actually used for a target format under the given settings."""
    if settings.enable_compression:
        return clamp_quality(settings.quality)
    if target.is_lossy:
        return UNCOMPRESSED_JPEG_QUALITY
    return LOSSLESS_QUALITY


def allocate_surface(dimensions: Dimensions, target: ImageFormat) -> np.ndarray:
    """
    Allocate a fresh drawing surface.

    JPEG surfaces are opaque white RGB, PNG surfaces transparent RGBA.
    """
    channels = 3 if target.is_lossy else 4
    fill = WHITE if target.is_lossy else 0.0
    try:
        return np.full((dimensions.height, dimensions.width, channels), fill, dtype=np.float32)
    except (MemoryError, ValueError) as e:
        raise SurfaceUnavailableError(f"Could not allocate {dimensions} surface: {e}") from e


def draw_onto_surface(surface: np.ndarray, pixels: np.ndarray) -> np.ndarray:
    """
    Resample an RGBA raster to the surface size and composite it on top.

    Resampling happens on premultiplied alpha so transparent pixels do not
    bleed their color into neighbours.

    Args:
        surface: float32 array from allocate_surface()
        pixels: uint8 RGBA array from decode_source()

    Returns:
        uint8 array with the surface's shape
    """
    height, width = surface.shape[:2]
    src_height, src_width = pixels.shape[:2]

    try:
        raster = pixels.astype(np.float32)
        raster[:, :, :3] *= raster[:, :, 3:4] / 255.0

        if (width, height) != (src_width, src_height):
            shrinking = width * height <= src_width * src_height
            interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_CUBIC
            raster = cv2.resize(raster, (width, height), interpolation=interpolation)
            raster = np.clip(raster, 0.0, 255.0)

        alpha = raster[:, :, 3:4] / 255.0
        color = raster[:, :, :3]

        if surface.shape[2] == 3:
            out = color + surface * (1.0 - alpha)
        else:
            surface_alpha = surface[:, :, 3:4] / 255.0
            out_alpha = alpha + surface_alpha * (1.0 - alpha)
            premultiplied = color + surface[:, :, :3] * surface_alpha * (1.0 - alpha)
            safe_alpha = np.where(out_alpha > 0, out_alpha, 1.0)
            out = np.concatenate([premultiplied / safe_alpha, out_alpha * 255.0], axis=2)
    except (cv2.error, MemoryError) as e:
        raise SurfaceUnavailableError(f"Could not draw {src_width}x{src_height} raster at {width}x{height}: {e}") from e

    return np.rint(np.clip(out, 0.0, 255.0)).astype(np.uint8)


def encode_surface(
    surface: np.ndarray,
    target: ImageFormat,
    quality: float,
    optimize: bool = False
) -> bytes:
    """
    Encode a drawn uint8 surface.

    Args:
        surface: RGB (JPEG) or RGBA (PNG) uint8 array
        target: Output format
        quality: Normalized quality, ignored for PNG
        optimize: Extra encoder passes for a smaller file

    Returns:
        Encoded bytes (never empty)
    """
    if target is ImageFormat.PNG and np.all(surface[:, :, 3] == 255):
        # Fully opaque, alpha channel is dead weight
        surface = surface[:, :, :3]

    save_kwargs = {}
    if target.is_lossy:
        save_kwargs.update(
            quality=int(round(clamp_quality(quality) * 100)),
            optimize=True,
            subsampling=2  # 4:2:0 chroma subsampling
        )
    else:
        save_kwargs["optimize"] = optimize

    buffer = io.BytesIO()
    try:
        Image.fromarray(np.ascontiguousarray(surface)).save(buffer, format=target.pil_format, **save_kwargs)
    except (OSError, ValueError) as e:
        raise EncodeError(f"Failed to encode {target.name}: {e}") from e

    data = buffer.getvalue()
    if not data:
        raise EncodeError(f"Encoder produced no {target.name} output")
    return data


def render_raster(
    pixels: np.ndarray,
    dimensions: Dimensions,
    target: ImageFormat,
    quality: float,
    optimize: bool = False
) -> EncodedImage:
    """Draw a decoded raster at the given size and encode it."""
    surface = allocate_surface(dimensions, target)
    drawn = draw_onto_surface(surface, pixels)
    data = encode_surface(drawn, target, quality, optimize=optimize)
    return EncodedImage(data=data, format=target, width=dimensions.width, height=dimensions.height)


def reencode(
    source: SourceImage,
    target_format: FormatLike,
    settings: Optional[CompressionSettings] = None
) -> Tuple[EncodedImage, CompressionStats]:
    """
    Decode, resize and re-encode an image to a bitmap format.

    Args:
        source: Image to convert
        target_format: JPEG or PNG (any synonym)
        settings: Compression options, defaults to no compression

    Returns:
        (encoded image, stats)

    Raises:
        DecodeError, SurfaceUnavailableError, EncodeError
    """
    target = canonical_format(target_format)
    if target is None or not target.is_bitmap:
        raise UnsupportedConversionError(f"Cannot re-encode to {str(getattr(target_format, 'value', target_format)).upper()}")
    if settings is None:
        settings = CompressionSettings()

    pixels = decode_source(source)
    original_dimensions = raster_dimensions(pixels)
    new_dimensions = calculate_dimensions(
        original_dimensions.width,
        original_dimensions.height,
        settings.max_width,
        settings.max_height,
        settings.maintain_aspect_ratio
    )
    quality = encoding_quality(target, settings)

    encoded = render_raster(
        pixels,
        new_dimensions,
        target,
        quality,
        optimize=settings.enable_compression
    )

    stats = CompressionStats(
        original_size=source.size,
        final_size=encoded.byte_length,
        quality=quality,
        original_dimensions=original_dimensions,
        new_dimensions=new_dimensions
    )

    logger.info(
        f"{source.name}: {stats.original_size:,} -> {stats.final_size:,} bytes | "
        f"{original_dimensions} -> {new_dimensions} | {target.name} q={quality:.2f}"
    )

    return encoded, stats


def preview_compression(source: SourceImage, quality: float) -> CompressionPreview:
    """
    Estimate the effect of compressing a source at the given quality.

    The source keeps its own format (PNG stays PNG, anything else becomes
    JPEG) and its original dimensions.
    """
    target = ImageFormat.PNG if source.declared_format is ImageFormat.PNG else ImageFormat.JPEG
    settings = CompressionSettings(quality=quality, enable_compression=True, maintain_aspect_ratio=True)
    encoded, stats = reencode(source, target, settings)
    return CompressionPreview(
        size=stats.final_size,
        compression_ratio=stats.compression_ratio,
        data=encoded.data
    )
