"""
pdf_writer.py - Single-page PDF assembly from a JPEG raster.

The raster is embedded as a DCTDecode image XObject, scaled to fit the
page inside a fixed margin and centered.
"""

import io
import logging
from typing import Optional, Tuple

import pikepdf
from pikepdf import Pdf, Stream, Dictionary, Name

from .compression import (
    UNCOMPRESSED_JPEG_QUALITY,
    CompressionSettings,
    CompressionStats,
    EncodedImage,
    reencode,
    render_raster,
)
from .dimensions import Placement, fit_to_page
from .exceptions import DocumentAssemblyError
from .formats import ImageFormat
from .rasterize import SourceImage, decode_source, raster_dimensions

logger = logging.getLogger(__name__)

# US Letter in PDF points (1/72 inch)
PAGE_WIDTH_PTS = 612.0
PAGE_HEIGHT_PTS = 792.0

# Blank border on each side of the image
PAGE_MARGIN_PTS = 10.0


class PDFWriter:
    """
    Assembles one JPEG image into a one-page PDF.

    No text layers, no masks, no additional pages.
    """

    def __init__(self, page_width: float = PAGE_WIDTH_PTS, page_height: float = PAGE_HEIGHT_PTS):
        self.pdf = Pdf.new()
        self.page_width = page_width
        self.page_height = page_height

    def add_page(self, image: EncodedImage, placement: Placement):
        """Add the page holding the image at the given placement."""
        if image.format is not ImageFormat.JPEG:
            raise DocumentAssemblyError(f"Embedded raster must be JPEG, got {image.format.name}")
        if len(self.pdf.pages) > 0:
            raise DocumentAssemblyError("Document already has a page")

        try:
            self.pdf.add_blank_page(page_size=(self.page_width, self.page_height))
            page = self.pdf.pages[-1]

            image_dict = Dictionary({
                '/Type': Name.XObject,
                '/Subtype': Name.Image,
                '/Width': image.width,
                '/Height': image.height,
                '/ColorSpace': Name.DeviceRGB,
                '/BitsPerComponent': 8,
                '/Filter': Name.DCTDecode,
            })
            img_stream = Stream(self.pdf, image.data, image_dict)

            xobjects = Dictionary({})
            xobjects['/Im0'] = self.pdf.make_indirect(img_stream)
            page.Resources = Dictionary({'/XObject': xobjects})

            content = f"""
q
{placement.width:.4f} 0 0 {placement.height:.4f} {placement.x:.4f} {placement.y:.4f} cm
/Im0 Do
Q
"""
            page.Contents = self.pdf.make_indirect(
                Stream(self.pdf, content.strip().encode("latin-1"))
            )
        except (pikepdf.PdfError, ValueError, TypeError) as e:
            raise DocumentAssemblyError(f"Could not build PDF page: {e}") from e

        logger.debug(
            f"Added {image.width}x{image.height} JPEG ({image.byte_length:,} bytes) at "
            f"x={placement.x:.2f} y={placement.y:.2f} w={placement.width:.2f} h={placement.height:.2f}"
        )

    def to_bytes(self) -> bytes:
        """Serialize the PDF."""
        if len(self.pdf.pages) == 0:
            raise DocumentAssemblyError("Document has no pages")

        buffer = io.BytesIO()
        try:
            self.pdf.save(
                buffer,
                compress_streams=True,
                object_stream_mode=pikepdf.ObjectStreamMode.generate
            )
        except (pikepdf.PdfError, OSError, ValueError) as e:
            raise DocumentAssemblyError(f"Could not serialize PDF: {e}") from e

        data = buffer.getvalue()
        if not data:
            raise DocumentAssemblyError("PDF serialization produced no output")
        return data

    def close(self):
        self.pdf.close()


def build_document(
    source: SourceImage,
    settings: Optional[CompressionSettings] = None
) -> Tuple[EncodedImage, CompressionStats]:
    """
    Convert an image into a one-page PDF.

    With compression enabled the image is first re-encoded to JPEG with the
    caller's quality and size bounds, and that output becomes the page
    raster. Otherwise the original is embedded at native resolution.

    Returns:
        (PDF as EncodedImage sized like the embedded raster, stats)

    Raises:
        DecodeError, SurfaceUnavailableError, EncodeError, DocumentAssemblyError
    """
    if settings is None:
        settings = CompressionSettings()

    inner_stats = None
    raster_source = source
    if settings.enable_compression:
        compressed, inner_stats = reencode(source, ImageFormat.JPEG, settings)
        raster_source = SourceImage(
            data=compressed.data,
            mime_type=ImageFormat.JPEG.mime_type,
            name=source.name
        )

    pixels = decode_source(raster_source)
    dimensions = raster_dimensions(pixels)
    placement = fit_to_page(
        dimensions.width,
        dimensions.height,
        PAGE_WIDTH_PTS,
        PAGE_HEIGHT_PTS,
        PAGE_MARGIN_PTS
    )

    quality = settings.quality if settings.enable_compression else UNCOMPRESSED_JPEG_QUALITY
    embedded = render_raster(pixels, dimensions, ImageFormat.JPEG, quality)

    writer = PDFWriter()
    try:
        writer.add_page(embedded, placement)
        data = writer.to_bytes()
    finally:
        writer.close()

    document = EncodedImage(
        data=data,
        format=ImageFormat.PDF,
        width=dimensions.width,
        height=dimensions.height
    )

    stats = inner_stats
    if stats is None:
        stats = CompressionStats(
            original_size=source.size,
            final_size=document.byte_length,
            quality=quality,
            original_dimensions=dimensions,
            new_dimensions=dimensions
        )

    logger.info(
        f"{source.name}: PDF {document.byte_length:,} bytes | "
        f"{dimensions} raster | q={quality:.2f}"
    )

    return document, stats
