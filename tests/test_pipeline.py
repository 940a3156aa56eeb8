import pytest
from PIL import Image

from conftest import decode
from image_converter import compression
from image_converter import (
    CompressionSettings,
    ErrorKind,
    ImageFormat,
    SourceImage,
    convert_image,
)
from image_converter.pipeline import converted_file_name


def test_png_to_jpeg(png_source):
    result = convert_image(png_source, "png", "jpg")

    assert result.success
    assert result.error_kind is None and result.error is None
    assert result.converted_name == "gradient.jpg"
    assert result.target_format == "jpg"
    assert decode(result.converted_bytes).format == "JPEG"
    assert result.stats.final_size == result.output_size


@pytest.mark.parametrize("source_format", ["jpeg", "jpg", "image/jpeg", ImageFormat.JPEG])
def test_jpeg_synonyms(jpeg_source, source_format):
    result = convert_image(jpeg_source, source_format, "png")
    assert result.success
    assert result.converted_name == "gradient.png"


def test_jpeg_target_synonym_uses_canonical_extension(png_source):
    result = convert_image(png_source, "png", "jpeg")
    assert result.success
    assert result.converted_name == "gradient.jpg"


def test_same_format_without_compression_is_rejected(png_source):
    result = convert_image(png_source, "png", "png", CompressionSettings(enable_compression=False))

    assert not result.success
    assert result.error_kind is ErrorKind.NO_OPERATION_REQUESTED
    assert result.converted_bytes == b""
    assert result.stats is None


def test_jpeg_synonyms_count_as_same_format(jpeg_source):
    result = convert_image(jpeg_source, "jpg", "jpeg")
    assert result.error_kind is ErrorKind.NO_OPERATION_REQUESTED


def test_same_format_with_compression(jpeg_source):
    settings = CompressionSettings(quality=0.3, max_width=50, enable_compression=True)
    result = convert_image(jpeg_source, "jpg", "jpg", settings)

    assert result.success
    assert decode(result.converted_bytes).size == (50, 25)
    assert result.stats.quality == pytest.approx(0.3)


@pytest.mark.parametrize("target", ["jpg", "jpeg", "png", "pdf"])
def test_pdf_source_is_unsupported(png_source, target):
    result = convert_image(png_source, "pdf", target)
    assert not result.success
    assert result.error_kind is ErrorKind.UNSUPPORTED_PAIR


def test_unknown_format_is_unsupported(png_source):
    result = convert_image(png_source, "png", "gif")
    assert result.error_kind is ErrorKind.UNSUPPORTED_PAIR
    assert "GIF" in result.error


def test_pdf_target(png_source):
    result = convert_image(png_source, "png", "pdf")
    assert result.success
    assert result.converted_bytes.startswith(b"%PDF")
    assert result.converted_name == "gradient.pdf"
    assert result.stats is not None


def test_decode_failure_is_reported(garbage_source):
    result = convert_image(garbage_source, "png", "jpg")
    assert not result.success
    assert result.error_kind is ErrorKind.DECODE_FAILED
    assert result.converted_bytes == b""
    assert "broken.png" in result.summary()


def test_negative_ratio_is_reported(tiny_png_source):
    result = convert_image(tiny_png_source, "png", "jpg")
    assert result.success
    assert result.stats.compression_ratio < 0


def test_default_source_name():
    assert SourceImage(data=b"x").name == "image"
    assert SourceImage(data=b"abc").size == 3


@pytest.mark.parametrize("name, target, expected", [
    ("photo.jpeg", ImageFormat.PNG, "photo.png"),
    ("scan.PNG", ImageFormat.PDF, "scan.pdf"),
    ("archive.tar.png", ImageFormat.JPEG, "archive.tar.jpg"),
    ("photo", ImageFormat.PDF, "photo.pdf"),
    ("dir.v1/photo", ImageFormat.JPEG, "dir.v1/photo.jpg"),
])
def test_converted_file_name(name, target, expected):
    assert converted_file_name(name, target) == expected


def test_summary(png_source):
    result = convert_image(png_source, "png", "jpg")
    assert result.summary().startswith("gradient.png -> gradient.jpg")


def test_compressed_pdf_stats_match_returned_document(wide_png_source):
    settings = CompressionSettings(quality=0.5, enable_compression=True)
    result = convert_image(wide_png_source, "png", "pdf", settings)

    assert result.success
    assert result.stats.final_size == result.output_size
    expected = (result.stats.original_size - result.output_size) / result.stats.original_size * 100
    assert result.stats.compression_ratio == pytest.approx(expected)
    # Dimensions and quality still come from the re-encode
    assert result.stats.quality == pytest.approx(0.5)


def test_surface_failure_is_reported(monkeypatch, png_source):
    def no_memory(*args, **kwargs):
        raise MemoryError("out of memory")

    monkeypatch.setattr(compression.np, "full", no_memory)
    result = convert_image(png_source, "png", "jpg")

    assert not result.success
    assert result.error_kind is ErrorKind.SURFACE_UNAVAILABLE
    assert result.converted_bytes == b""


def test_encode_failure_is_reported(monkeypatch, png_source):
    def broken_save(self, *args, **kwargs):
        raise OSError("encoder error -2")

    monkeypatch.setattr(Image.Image, "save", broken_save)
    result = convert_image(png_source, "png", "jpg")

    assert not result.success
    assert result.error_kind is ErrorKind.ENCODE_FAILED
    assert result.stats is None
