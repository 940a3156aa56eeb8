"""Shared fixtures: images built in memory with Pillow and numpy."""

import io

import numpy as np
import pytest
from PIL import Image

from image_converter import SourceImage


def encode(array: np.ndarray, fmt: str, **kwargs) -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(array).save(buffer, format=fmt, **kwargs)
    return buffer.getvalue()


def decode(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


def make_source(array: np.ndarray, fmt: str, name: str, **kwargs) -> SourceImage:
    mime = "image/png" if fmt == "PNG" else "image/jpeg"
    return SourceImage(data=encode(array, fmt, **kwargs), mime_type=mime, name=name)


@pytest.fixture
def gradient_rgb():
    """200x100 RGB gradient with a red square."""
    x = np.linspace(0, 255, 200, dtype=np.uint8)
    image = np.zeros((100, 200, 3), dtype=np.uint8)
    image[:, :, 0] = x
    image[:, :, 1] = x[::-1]
    image[:, :, 2] = 128
    image[20:60, 20:60] = (255, 0, 0)
    return image


@pytest.fixture
def png_source(gradient_rgb):
    return make_source(gradient_rgb, "PNG", "gradient.png")


@pytest.fixture
def jpeg_source(gradient_rgb):
    return make_source(gradient_rgb, "JPEG", "gradient.jpg", quality=90)


@pytest.fixture
def transparent_png_source():
    """40x40 PNG: left half fully transparent black, right half opaque blue."""
    image = np.zeros((40, 40, 4), dtype=np.uint8)
    image[:, 20:] = (0, 0, 255, 255)
    return make_source(image, "PNG", "half_transparent.png")


@pytest.fixture
def wide_png_source():
    """2000x1000 flat gray PNG."""
    image = np.full((1000, 2000, 3), 90, dtype=np.uint8)
    return make_source(image, "PNG", "wide.png")


@pytest.fixture
def tiny_png_source():
    """4x4 PNG, small enough that any JPEG/PDF output is larger."""
    image = np.full((4, 4, 3), 200, dtype=np.uint8)
    return make_source(image, "PNG", "tiny.png")


@pytest.fixture
def garbage_source():
    return SourceImage(data=b"definitely not an image", mime_type="image/png", name="broken.png")


@pytest.fixture
def sixteen_bit_png_source():
    """20x20 16-bit grayscale PNG: left half nearly black, right half light."""
    image = np.full((20, 20), 1000, dtype=np.uint16)
    image[:, 10:] = 60000
    return make_source(image, "PNG", "deep.png")
