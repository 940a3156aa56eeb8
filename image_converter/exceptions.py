"""Error kinds and exception types for :mod:`image_converter`."""

from enum import Enum


class ErrorKind(str, Enum):
    """Why a single conversion failed."""
    UNSUPPORTED_PAIR = "unsupported_pair"
    NO_OPERATION_REQUESTED = "no_operation_requested"
    DECODE_FAILED = "decode_failed"
    ENCODE_FAILED = "encode_failed"
    SURFACE_UNAVAILABLE = "surface_unavailable"
    DOCUMENT_ASSEMBLY_FAILED = "document_assembly_failed"


class ConversionError(Exception):
    """Base exception for all conversion failures."""

    kind: ErrorKind


class UnsupportedConversionError(ConversionError):
    """Raised when a format pair is not in the conversion table."""

    kind = ErrorKind.UNSUPPORTED_PAIR


class NoOperationRequestedError(ConversionError):
    """Raised when source and target match and compression is off."""

    kind = ErrorKind.NO_OPERATION_REQUESTED


class DecodeError(ConversionError):
    """Raised when the input bytes cannot be decoded as an image."""

    kind = ErrorKind.DECODE_FAILED


class EncodeError(ConversionError):
    """Raised when the encoder fails or produces no output."""

    kind = ErrorKind.ENCODE_FAILED


class SurfaceUnavailableError(ConversionError):
    """Raised when a pixel surface cannot be allocated or drawn on."""

    kind = ErrorKind.SURFACE_UNAVAILABLE


class DocumentAssemblyError(ConversionError):
    """Raised when the PDF page cannot be built or serialized."""

    kind = ErrorKind.DOCUMENT_ASSEMBLY_FAILED
