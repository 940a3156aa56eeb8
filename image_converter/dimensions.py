"""
dimensions.py - Target size and page placement math.

All functions are pure: no I/O, no state.
"""

import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Dimensions:
    """Pixel dimensions. Always at least 1x1."""
    width: int
    height: int

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class Placement:
    """Image rectangle on a page, in page units (PDF points)."""
    x: float
    y: float
    width: float
    height: float


def _round_half_up(value: float) -> int:
    # round() would use banker's rounding; 2.5 must become 3
    return max(1, int(math.floor(value + 0.5)))


def calculate_dimensions(
    original_width: int,
    original_height: int,
    max_width: Optional[int] = None,
    max_height: Optional[int] = None,
    maintain_aspect_ratio: bool = True
) -> Dimensions:
    """
    Calculate output dimensions for a resize request.

    With aspect lock, the width bound is applied first and the height bound
    second, each deriving the other side from the original aspect ratio.
    Width is never recomputed after the height pass, so a height-driven
    shrink can leave width unchanged relative to the width pass.

    Args:
        original_width: Source width in pixels
        original_height: Source height in pixels
        max_width: Optional width bound (None or <= 0 = no bound)
        max_height: Optional height bound (None or <= 0 = no bound)
        maintain_aspect_ratio: Scale both sides together

    Returns:
        Dimensions rounded to the nearest integer, minimum 1x1
    """
    width = float(original_width)
    height = float(original_height)

    if not (max_width and max_width > 0):
        max_width = None
    if not (max_height and max_height > 0):
        max_height = None

    if max_width is None and max_height is None:
        return Dimensions(_round_half_up(width), _round_half_up(height))

    if maintain_aspect_ratio:
        aspect_ratio = original_width / original_height

        if max_width is not None and width > max_width:
            width = float(max_width)
            height = width / aspect_ratio

        if max_height is not None and height > max_height:
            height = float(max_height)
            width = height * aspect_ratio
    else:
        if max_width is not None:
            width = min(width, max_width)
        if max_height is not None:
            height = min(height, max_height)

    return Dimensions(_round_half_up(width), _round_half_up(height))


def thumbnail_dimensions(width: int, height: int, max_size: int) -> Dimensions:
    """Fit into a max_size square box: the longer side becomes max_size."""
    aspect_ratio = width / height
    if aspect_ratio > 1:
        return Dimensions(_round_half_up(max_size), _round_half_up(max_size / aspect_ratio))
    return Dimensions(_round_half_up(max_size * aspect_ratio), _round_half_up(max_size))


def fit_to_page(
    raster_width: int,
    raster_height: int,
    page_width: float,
    page_height: float,
    margin: float
) -> Placement:
    """
    Center a raster on a page, preserving aspect ratio.

    The raster fills the page width minus margins if it is relatively wider
    than the page, otherwise the page height minus margins.
    """
    image_aspect = raster_width / raster_height
    page_aspect = page_width / page_height

    if image_aspect > page_aspect:
        final_width = page_width - 2 * margin
        final_height = final_width / image_aspect
    else:
        final_height = page_height - 2 * margin
        final_width = final_height * image_aspect

    return Placement(
        x=(page_width - final_width) / 2,
        y=(page_height - final_height) / 2,
        width=final_width,
        height=final_height,
    )
