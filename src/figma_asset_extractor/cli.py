"""CLI command for extracting assets from Figma .fig files."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .common import ConfigLoader, FigExtractError, setup_logging, verbosity_to_level
from .config import FigExtractConfig, TargetEncoding, TransformOptions
from .errors import classify_error
from .extractor import FigmaAssetExtractor, resolve_output_dir

# Application name derived from package name
_package = __package__ or "figma_asset_extractor"
APP_NAME = _package.replace('_', '-').replace('.', '-')

EPILOG = """\
Examples:
  figma-asset-extractor design.fig
  figma-asset-extractor design.fig --out ./assets --webp
  figma-asset-extractor design.fig --avif --quality 90 --max-width 1920 --max-height 1080
  figma-asset-extractor design.fig --webp --quality 60 --max-width 800 --quiet

What it does:
  - Extracts image assets from the .fig file
  - Creates an output folder named after the .fig file (minus extension) or the folder given with --out
  - Adds correct file extensions by inspecting magic bytes
  - Optionally converts raster images to WebP or AVIF
  - Optionally resizes images to fit within the given dimensions
"""


def _quality(value: str) -> int:
    try:
        quality = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("--quality must be a number between 1 and 100") from None
    if not 1 <= quality <= 100:
        raise argparse.ArgumentTypeError("--quality must be a number between 1 and 100")
    return quality


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"must be a positive number, got {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number, got {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Extract image assets from a Figma .fig file",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "source",
        type=Path,
        help="Path to the .fig file to extract assets from"
    )
    parser.add_argument(
        "--out",
        type=Path,
        help="Output directory (default: folder named after the .fig file, in the current directory)"
    )
    parser.add_argument(
        "--webp",
        action="store_true",
        help="Convert all non-vector assets to WebP"
    )
    parser.add_argument(
        "--avif",
        action="store_true",
        help="Convert all non-vector assets to AVIF (wins over --webp)"
    )
    parser.add_argument(
        "--quality",
        type=_quality,
        help="Quality for WebP/AVIF conversion, 1-100 (default: 80)"
    )
    parser.add_argument(
        "--max-width",
        type=_positive_int,
        help="Resize images wider than this, keeping aspect ratio"
    )
    parser.add_argument(
        "--max-height",
        type=_positive_int,
        help="Resize images taller than this, keeping aspect ratio"
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        help="Number of threads processing assets (overrides config)"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress console output except errors (wins over --debug)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show archive contents and per-file details"
    )
    parser.add_argument(
        "--log-format",
        choices=["simple", "detailed", "json"],
        help="Console log format (overrides config)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (defaults.toml)"
    )
    return parser


def apply_overrides(config: FigExtractConfig, args: argparse.Namespace) -> FigExtractConfig:
    """Return a copy of ``config`` with command-line flags applied on top."""
    transform_updates = {}
    if args.avif:
        transform_updates["target_encoding"] = TargetEncoding.AVIF
    elif args.webp:
        transform_updates["target_encoding"] = TargetEncoding.WEBP
    if args.quality is not None:
        transform_updates["quality"] = args.quality
    if args.max_width is not None:
        transform_updates["max_width"] = args.max_width
    if args.max_height is not None:
        transform_updates["max_height"] = args.max_height

    transform = TransformOptions(**{**config.transform.model_dump(), **transform_updates})

    extraction = config.extraction
    if args.out is not None or args.workers is not None:
        extraction = extraction.model_copy(update={
            key: value for key, value in (
                ("output_dir", str(args.out) if args.out is not None else None),
                ("workers", args.workers),
            ) if value is not None
        })

    logging_config = config.logging
    logging_updates = {}
    if args.quiet:
        logging_updates["level"] = verbosity_to_level("quiet")
    elif args.debug:
        logging_updates["level"] = verbosity_to_level("debug")
    if args.log_format:
        logging_updates["format"] = args.log_format
    if logging_updates:
        logging_config = logging_config.model_copy(update=logging_updates)

    return config.model_copy(update={
        "transform": transform,
        "extraction": extraction,
        "logging": logging_config,
    })


def extract_command(config: FigExtractConfig, source: Path) -> int:
    """Extract, rename and transform the assets of one .fig file.

    Args:
        config: Configuration with command-line overrides applied
        source: Path to the .fig file

    Returns:
        Exit code (0 for success, including per-asset warnings)
    """
    # Use __package__ to avoid __main__ when run as module
    logger_name = __package__ or __name__
    logger = logging.getLogger(logger_name)

    try:
        output_dir = resolve_output_dir(source, config.extraction.output_dir)
        extractor = FigmaAssetExtractor(
            source=source,
            output_dir=output_dir,
            options=config.transform,
            workers=config.extraction.workers,
        )
        report = extractor.run()
    except FigExtractError as e:
        logger.error(
            f"Error: {e.message}",
            extra={"extra_fields": {"category": classify_error(e), **e.context}},
        )
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1

    if report.warnings:
        logger.info(f"{len(report.warnings)} asset(s) need attention: {report.counts()}")
    logger.info(f"All set! Images are in: {report.output_dir}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the extract command."""
    args = build_parser().parse_args(argv)

    try:
        loader = ConfigLoader(app_name=APP_NAME, config_class=FigExtractConfig)
        config = apply_overrides(loader.load(defaults_path=args.config), args)
    except FigExtractError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    log_file = Path(config.logging.file) if config.logging.file else None
    setup_logging(level=config.logging.level, format=config.logging.format, log_file=log_file)

    return extract_command(config=config, source=args.source)


if __name__ == "__main__":
    sys.exit(main())
