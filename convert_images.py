#!/usr/bin/env python3
"""
convert_images.py - Convert and compress JPEG/PNG images, or wrap them in a PDF.

Usage:
    python convert_images.py photo.png --to jpg
    python convert_images.py *.jpg --to pdf --compress -q 0.6 --output-dir ./out/
    python convert_images.py big.jpg --to jpg --compress --max-width 1920
"""

import argparse
import logging
import mimetypes
import multiprocessing
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

# Add parent to path when running as script
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent))

from image_converter import (
    CompressionSettings,
    ConversionError,
    ConversionResult,
    DecodeError,
    SourceImage,
    canonical_format,
    convert_image,
    generate_thumbnail,
    preview_compression,
)
from image_converter.compression import DEFAULT_QUALITY
from image_converter.pipeline import converted_file_name
from image_converter.thumbnail import DEFAULT_THUMBNAIL_SIZE

logger = logging.getLogger(__name__)

# Inputs above this are rejected before conversion
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB

# Upper limit for --max-width / --max-height
MAX_DIMENSION = 4000

ACCEPTED_MIME_TYPES = ("image/jpeg", "image/png")


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Convert JPEG/PNG images, optionally compressed and resized, or wrap them in a PDF.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python convert_images.py photo.png --to jpg
  python convert_images.py scan.jpg --to pdf --compress -q 0.6
  python convert_images.py *.png --to jpg --output-dir ./out/ --workers 4
  python convert_images.py big.jpg --to jpg --compress --max-width 1920

Supported conversions:
  JPG -> PNG, PDF
  PNG -> JPG, PDF
  JPG -> JPG and PNG -> PNG only with --compress
"""
    )

    parser.add_argument(
        "input",
        nargs="+",
        type=Path,
        help="Input image file(s)"
    )

    parser.add_argument(
        "-t", "--to",
        required=True,
        choices=["jpg", "jpeg", "png", "pdf"],
        help="Target format"
    )

    parser.add_argument(
        "-f", "--from",
        dest="source_format",
        help="Source format (default: taken from each file's extension)"
    )

    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "-o", "--output",
        type=Path,
        help="Output file (single input only)"
    )
    output.add_argument(
        "--output-dir",
        type=Path,
        help="Output directory (default: next to each input)"
    )

    parser.add_argument(
        "-c", "--compress",
        action="store_true",
        help="Enable compression at --quality"
    )

    parser.add_argument(
        "-q", "--quality",
        type=float,
        default=DEFAULT_QUALITY,
        help=f"Quality 0.1-1.0 (default: {DEFAULT_QUALITY})"
    )

    parser.add_argument(
        "--max-width",
        type=int,
        help=f"Maximum output width in pixels (1-{MAX_DIMENSION})"
    )

    parser.add_argument(
        "--max-height",
        type=int,
        help=f"Maximum output height in pixels (1-{MAX_DIMENSION})"
    )

    parser.add_argument(
        "--no-aspect",
        action="store_true",
        help="Clamp width and height independently"
    )

    parser.add_argument(
        "--thumbnail",
        type=int,
        nargs="?",
        const=DEFAULT_THUMBNAIL_SIZE,
        metavar="SIZE",
        help=f"Also write a JPEG thumbnail (default size: {DEFAULT_THUMBNAIL_SIZE})"
    )

    parser.add_argument(
        "--preview",
        action="store_true",
        help="Only print the estimated compressed size, write nothing"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Parallel workers (0 = auto, default: 1)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    return parser.parse_args(argv)


def format_file_size(size: int) -> str:
    """Human-readable size, e.g. 1.5 MB."""
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(abs(size))
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    sign = "-" if size < 0 else ""
    return f"{sign}{value:.2f}".rstrip("0").rstrip(".") + f" {units[i]}"


def validate_input(path: Path) -> Optional[str]:
    """Return a reason to skip the file, or None if it is acceptable."""
    if not path.is_file():
        return f"File not found: {path}"
    size = path.stat().st_size
    if size > MAX_FILE_SIZE:
        return f"Image {path.name} is too large ({format_file_size(size)}). Maximum size is 10MB."
    mime_type = mimetypes.guess_type(path.name)[0]
    if mime_type not in ACCEPTED_MIME_TYPES:
        return f"Not a JPEG or PNG image: {path}"
    return None


def load_source(path: Path) -> SourceImage:
    """Read an input file into a SourceImage."""
    return SourceImage.from_bytes(path.read_bytes(), path.name)


def unreadable_result(path: Path, source_format: str, target: str, error: OSError) -> ConversionResult:
    """Failure record for an input that could not be read from disk."""
    source = SourceImage(data=b"", name=path.name)
    return ConversionResult.failed(
        source, source_format, target, DecodeError(f"Could not read {path}: {error}")
    )


def output_path_for(
    input_path: Path,
    target: str,
    output: Optional[Path],
    output_dir: Optional[Path]
) -> Path:
    if output is not None:
        return output
    directory = output_dir if output_dir is not None else input_path.parent
    path = directory / converted_file_name(input_path.name, canonical_format(target))
    if path.resolve() == input_path.resolve():
        # Recompressing in place would clobber the input
        path = path.with_name(f"{path.stem}_compressed{path.suffix}")
    return path


def plan_output_paths(
    inputs: List[Path],
    target: str,
    output: Optional[Path] = None,
    output_dir: Optional[Path] = None
) -> List[Path]:
    """
    Pick one output path per input before anything is written.

    Inputs that would share an output name (photo.png and photo.jpg to pdf)
    get _1, _2, ... suffixes. Outputs never land on another input.
    """
    taken = {p.resolve() for p in inputs}
    planned = []
    for path in inputs:
        base = output_path_for(path, target, output, output_dir)
        candidate = base
        n = 1
        while candidate.resolve() in taken:
            candidate = base.with_name(f"{base.stem}_{n}{base.suffix}")
            n += 1
        if candidate != base:
            logger.info(f"{path.name}: {base.name} already taken, writing {candidate.name}")
        taken.add(candidate.resolve())
        planned.append(candidate)
    return planned


def convert_file(
    input_path: Path,
    target: str,
    settings: CompressionSettings,
    out_path: Path,
    source_format: Optional[str] = None,
    thumbnail_size: Optional[int] = None
) -> ConversionResult:
    """
    Convert one file and write the result to out_path.

    Returns the ConversionResult; failures, including I/O errors, are not raised.
    """
    fmt = source_format or input_path.suffix
    try:
        source = load_source(input_path)
    except OSError as e:
        logger.error(f"Could not read {input_path}: {e}")
        return unreadable_result(input_path, fmt, target, e)

    result = convert_image(source, fmt, target, settings)
    if not result.success:
        return result

    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(result.converted_bytes)
    except OSError as e:
        logger.error(f"Could not write {out_path}: {e}")
        return replace(
            result,
            success=False,
            converted_bytes=b"",
            stats=None,
            error=f"Could not write {out_path}: {e}"
        )
    logger.debug(f"Wrote {out_path}")
    result = replace(result, converted_name=out_path.name)

    if thumbnail_size:
        thumb_path = out_path.with_name(f"{out_path.stem}_thumb.jpg")
        try:
            thumb = generate_thumbnail(source, thumbnail_size)
            thumb_path.write_bytes(thumb.data)
        except (ConversionError, OSError) as e:
            logger.warning(f"Thumbnail for {input_path.name} failed: {e}")
        else:
            logger.debug(f"Wrote {thumb_path}")

    return result


def print_progress(current: int, total: int):
    """Print progress bar."""
    width = 40
    filled = int(width * current / total)
    bar = "=" * filled + "-" * (width - filled)
    pct = current / total * 100
    print(f"\r[{bar}] {current}/{total} ({pct:.0f}%)", end="", file=sys.stderr)
    if current == total:
        print(file=sys.stderr)


def format_savings(saved: int, ratio: float) -> str:
    """Size change as -1.2 KB, 15% smaller or +1.2 KB, 15% larger."""
    if saved >= 0:
        return f"-{format_file_size(saved)}, {round(ratio)}% smaller"
    return f"+{format_file_size(-saved)}, {round(-ratio)}% larger"


def run_preview(inputs: List[Path], quality: float) -> int:
    """Print estimated compression for each input. Returns exit code."""
    failures = 0
    for path in inputs:
        try:
            source = load_source(path)
            preview = preview_compression(source, quality)
        except (ConversionError, OSError) as e:
            print(f"{path.name}: Unable to preview compression ({e})", file=sys.stderr)
            failures += 1
            continue
        print(
            f"{path.name}: {format_file_size(source.size)} -> {format_file_size(preview.size)} "
            f"({format_savings(source.size - preview.size, preview.compression_ratio)})"
        )
    return 0 if failures == 0 else 1


def convert_batch(
    inputs: List[Path],
    args,
    settings: CompressionSettings
) -> List[ConversionResult]:
    """Convert every input independently; one failure never stops the rest."""
    max_workers = args.workers
    if max_workers <= 0:
        max_workers = multiprocessing.cpu_count()

    out_paths = plan_output_paths(inputs, args.to, args.output, args.output_dir)

    def run(i: int) -> ConversionResult:
        return convert_file(
            inputs[i],
            args.to,
            settings,
            out_paths[i],
            source_format=args.source_format,
            thumbnail_size=args.thumbnail
        )

    results: List[Optional[ConversionResult]] = [None] * len(inputs)

    if max_workers == 1 or len(inputs) == 1:
        for i in range(len(inputs)):
            results[i] = run(i)
            print_progress(i + 1, len(inputs))
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {executor.submit(run, i): i for i in range(len(inputs))}

            completed = 0
            for future in as_completed(futures):
                results[futures[future]] = future.result()
                completed += 1
                print_progress(completed, len(inputs))

    return results


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    for name in ("max_width", "max_height"):
        value = getattr(args, name)
        if value is not None and not 1 <= value <= MAX_DIMENSION:
            print(f"Error: --{name.replace('_', '-')} must be 1-{MAX_DIMENSION}", file=sys.stderr)
            return 1

    if args.source_format and canonical_format(args.source_format) is None:
        print(f"Error: Unknown source format: {args.source_format}", file=sys.stderr)
        return 1

    # Validate inputs
    valid_inputs = []
    for p in args.input:
        reason = validate_input(p)
        if reason:
            print(f"Warning: Skipping {reason}", file=sys.stderr)
            continue
        valid_inputs.append(p)

    if not valid_inputs:
        print("Error: No valid image files", file=sys.stderr)
        return 1

    if args.output and len(valid_inputs) > 1:
        print("Error: Use --output-dir for multiple files", file=sys.stderr)
        return 1

    settings = CompressionSettings(
        quality=args.quality,
        max_width=args.max_width,
        max_height=args.max_height,
        maintain_aspect_ratio=not args.no_aspect,
        enable_compression=args.compress
    )

    if args.preview:
        return run_preview(valid_inputs, settings.quality)

    results = convert_batch(valid_inputs, args, settings)

    total_in = 0
    total_out = 0
    successes = 0
    for result in results:
        print(result.summary())
        if result.success:
            successes += 1
            if result.stats is not None:
                total_in += result.stats.original_size
                total_out += result.output_size

    print(f"\n{'='*50}")
    print(f"Converted: {successes}/{len(results)} files")
    if total_in > 0:
        print(f"Total: {format_file_size(total_in)} -> {format_file_size(total_out)}")
        print(f"Reduction: {(1 - total_out/total_in)*100:.1f}%")

    return 0 if successes == len(results) else 1


if __name__ == "__main__":
    sys.exit(main())
