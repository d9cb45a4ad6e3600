"""Extraction pipeline: unpack images, restore extensions, transform rasters."""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

from .archive import ArchiveReader
from .common.errors import InputError, UndeterminedType
from .common.path_utils import has_extension
from .config import TransformOptions
from .errors import classify_error
from .mime_detector import detect_file_type
from .results import AssetAction, AssetResult, RunReport
from .transformer import RasterTransformer, rename_asset

logger = logging.getLogger(__name__)

EXPECTED_SUFFIXES = ('.fig', '.zip')


def validate_source(source: Path) -> Path:
    """Check the container exists, is a readable regular file and is not empty.

    A suffix other than .fig/.zip only produces a warning.

    Raises:
        InputError: If the file is missing, unreadable or empty
    """
    source = Path(source)

    if not source.exists():
        raise InputError(f"File not found: {source}", path=str(source))
    if not source.is_file():
        raise InputError(f"Not a file: {source}", path=str(source))

    try:
        size = source.stat().st_size
    except OSError as e:
        raise InputError(f"Error reading file stats: {e}", path=str(source)) from e

    logger.info(f"File size: {size / 1024 / 1024:.2f} MB")
    if size == 0:
        raise InputError(f"File is empty: {source}", path=str(source))
    if not os.access(source, os.R_OK):
        raise InputError(f"File is not readable: {source}", path=str(source))

    if source.suffix.lower() not in EXPECTED_SUFFIXES:
        logger.warning("File does not have .fig extension. Proceeding anyway.")

    return source


def resolve_output_dir(
    source: Path,
    out: Optional[Path | str] = None,
    cwd: Optional[Path] = None,
) -> Path:
    """Resolve the output directory.

    ``out`` is resolved against ``cwd``; without it the source file name
    minus its extension is used, also relative to ``cwd``.
    """
    base = Path(cwd) if cwd is not None else Path.cwd()
    if out:
        return (base / Path(out).expanduser()).resolve()
    return (base / Path(source).stem).resolve()


def list_extensionless_files(directory: Path) -> List[Path]:
    """Immediate regular files of ``directory`` whose names have no extension."""
    return sorted(
        entry for entry in directory.iterdir()
        if entry.is_file() and not has_extension(entry)
    )


class FigmaAssetExtractor:
    """High-level interface for extracting and post-processing Figma assets."""

    def __init__(
        self,
        source: Path,
        output_dir: Path,
        options: Optional[TransformOptions] = None,
        workers: int = 1,
    ):
        """Initialize the extractor.

        Args:
            source: Path to the .fig (ZIP) container
            output_dir: Directory receiving the assets (created if missing)
            options: Transform options applied to every raster asset
            workers: Number of threads processing assets (1 = sequential)
        """
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self.source = Path(source)
        self.output_dir = Path(output_dir)
        self.options = options or TransformOptions()
        self.workers = workers
        self.reader = ArchiveReader(self.source)
        self.transformer = RasterTransformer(self.options)

    def run(self) -> RunReport:
        """Validate the input, extract images and process each asset.

        Returns:
            RunReport with the extraction result and one entry per asset

        Raises:
            InputError: If the source file is missing or empty
            ArchiveError: If the container cannot be read
        """
        validate_source(self.source)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        extraction = self.reader.extract_images(self.output_dir)
        report = RunReport(source=self.source, output_dir=self.output_dir, extraction=extraction)
        report.assets = self.process_directory()

        counts = report.counts()
        logger.info(
            "Processing complete",
            extra={"extra_fields": {"entries": extraction.total_entries,
                                    "extracted": extraction.image_count, **counts}},
        )
        return report

    def process_directory(self) -> List[AssetResult]:
        """Detect types and transform every extensionless file in the output directory."""
        all_files = [p for p in self.output_dir.iterdir() if p.is_file()]
        targets = list_extensionless_files(self.output_dir)

        logger.debug(f"Found {len(all_files)} total files in output directory")
        for f in sorted(all_files):
            state = "needs extension" if f in targets else "already has extension"
            logger.debug(f"  {f.name} ({state})")

        if not targets:
            logger.debug("No extensionless files found to rename.")
            if not all_files:
                logger.warning("Output directory is empty - no images were extracted")
            return []

        logger.info(f"Adding file extensions to {len(targets)} files...")

        if self.workers == 1 or len(targets) == 1:
            results = [self.process_asset(path) for path in targets]
        else:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="asset") as pool:
                results = list(pool.map(self.process_asset, targets))

        logger.info("Done adding extensions.")
        return results

    def process_asset(self, path: Path) -> AssetResult:
        """Detect, rename or transform one asset. Never raises."""
        try:
            result = self._process_asset(path)
        except Exception as e:
            logger.error(
                f"Failed to process {path.name}: {e}",
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            return AssetResult(
                source=path,
                action=AssetAction.FAILED,
                error=str(e),
                error_category=classify_error(e),
            )

        if result.action is AssetAction.FALLBACK:
            logger.warning(result.describe())
        elif result.action in (AssetAction.TRANSFORMED, AssetAction.UNDETERMINED):
            logger.info(result.describe())
        else:
            logger.debug(result.describe())
        return result

    def _process_asset(self, path: Path) -> AssetResult:
        detected = detect_file_type(path)

        if not detected.is_determined:
            error = UndeterminedType(f"Could not determine type of {path.name}", path=str(path))
            return AssetResult(
                source=path,
                action=AssetAction.UNDETERMINED,
                detected=detected,
                error=error.message,
                error_category=classify_error(error),
            )

        if detected.is_raster and self.options.needs_processing:
            return self.transformer.transform(path, detected.extension, detected)

        renamed = rename_asset(path, detected.extension)
        return AssetResult(
            source=path,
            action=AssetAction.RENAMED,
            output=renamed,
            detected=detected,
        )
