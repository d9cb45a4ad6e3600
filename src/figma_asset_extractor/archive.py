"""Archive reading and selective extraction of Figma image members."""

import logging
import shutil
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .common.errors import ArchiveError
from .common.path_utils import normalize_path, strip_prefix, is_safe_relative_path

logger = logging.getLogger(__name__)

# Members below this directory are the embedded image payloads
IMAGES_PREFIX = "images/"

# Local file header, empty archive (end of central directory), spanned archive
ZIP_SIGNATURES = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")

COPY_BUFFER_SIZE = 64 * 1024


@dataclass(frozen=True)
class ArchiveEntry:
    """A member of the container, with its path normalized."""
    path: str
    is_directory: bool
    size: int
    compressed: bool

    @property
    def is_image(self) -> bool:
        return not self.is_directory and strip_prefix(self.path, IMAGES_PREFIX) is not None


@dataclass
class ExtractionResult:
    """Outcome of extracting the image members of one container."""
    entries: List[ArchiveEntry] = field(default_factory=list)
    extracted: List[Path] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    signature_ok: bool = True

    @property
    def total_entries(self) -> int:
        return len(self.entries)

    @property
    def image_count(self) -> int:
        return len(self.extracted)


class ArchiveReader:
    """Reads a Figma container and extracts its ``images/`` members."""

    def __init__(self, source: Path):
        self.source = Path(source)

    def check_signature(self) -> bool:
        """Check the first 4 bytes for a ZIP magic number.

        Advisory only: a mismatch is reported but extraction is still
        attempted, and real failures surface from ``extract_images``.
        """
        try:
            with open(self.source, 'rb') as f:
                head = f.read(4)
        except OSError as e:
            logger.debug(f"Could not read file signature: {e}")
            return False

        if head not in ZIP_SIGNATURES:
            logger.debug(
                f"File does not appear to be a ZIP archive (signature {head.hex() or 'empty'}). "
                f"Extraction may fail."
            )
            return False
        return True

    def _open(self) -> zipfile.ZipFile:
        try:
            return zipfile.ZipFile(self.source, 'r')
        except (zipfile.BadZipFile, OSError) as e:
            raise ArchiveError(
                f"Cannot open {self.source} as a ZIP archive: {e}",
                path=str(self.source)
            ) from e
        except OSError as e:
            logger.error(f"Cannot write extracted images to {destination}: {e}")
            raise ArchiveError(
                f"Failed to write images from {self.source}: {e}",
                path=str(self.source)
            ) from e

    @staticmethod
    def _to_entry(info: zipfile.ZipInfo) -> ArchiveEntry:
        path = normalize_path(info.filename)
        return ArchiveEntry(
            path=path,
            is_directory=path.endswith('/'),
            size=info.file_size,
            compressed=info.compress_type != zipfile.ZIP_STORED,
        )

    def list_entries(self) -> List[ArchiveEntry]:
        """Enumerate every member of the container.

        Raises:
            ArchiveError: If the container cannot be opened or parsed
        """
        with self._open() as zip_ref:
            return [self._to_entry(info) for info in zip_ref.infolist()]

    def extract_images(self, destination: Path) -> ExtractionResult:
        """Extract every ``images/`` member into ``destination``.

        Each member lands at ``destination/<path below images/>``. Existing
        files are overwritten; when two members map to the same output path
        the last one written wins.

        Args:
            destination: Directory to extract to (created if missing)

        Returns:
            Extraction result; zero extracted images is not an error

        Raises:
            ArchiveError: If the container cannot be opened, parsed or read
        """
        destination = Path(destination)
        destination.mkdir(parents=True, exist_ok=True)
        logger.info(f"Extracting images from: {self.source}")

        result = ExtractionResult(signature_ok=self.check_signature())

        try:
            with self._open() as zip_ref:
                infos = zip_ref.infolist()
                logger.debug(f"Found {len(infos)} entries in archive")

                for index, info in enumerate(infos, start=1):
                    entry = self._to_entry(info)
                    result.entries.append(entry)
                    logger.debug(
                        f"  Entry {index}: {entry.path} "
                        f"({'compressed' if entry.compressed else 'stored'}, {entry.size} bytes)"
                    )

                    if not entry.is_image:
                        continue

                    relative = strip_prefix(entry.path, IMAGES_PREFIX)
                    if not is_safe_relative_path(relative):
                        logger.warning(f"Skipping unsafe path: {entry.path}")
                        result.skipped.append(entry.path)
                        continue

                    target_path = destination / relative
                    target_path.parent.mkdir(parents=True, exist_ok=True)

                    logger.debug(f"  Extracting image: {relative}")
                    with zip_ref.open(info) as source, open(target_path, 'wb') as target:
                        shutil.copyfileobj(source, target, COPY_BUFFER_SIZE)

                    result.extracted.append(target_path)
        except ArchiveError:
            raise
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as e:
            logger.error("Extraction failed. The .fig file may be corrupted or use an unsupported format.")
            raise ArchiveError(
                f"Failed to read {self.source}: {e}",
                path=str(self.source)
            ) from e
        except OSError as e:
            logger.error(f"Cannot write extracted images to {destination}: {e}")
            raise ArchiveError(
                f"Failed to write images from {self.source}: {e}",
                path=str(self.source)
            ) from e

        self._log_summary(result)
        return result

    def _log_summary(self, result: ExtractionResult) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Contents of .fig file:")
            if not result.entries:
                logger.debug("   No entries found in archive")
            else:
                logger.debug(f"   Total entries: {result.total_entries}")
                for entry in result.entries:
                    marker = "image" if entry.is_image else "other"
                    logger.debug(f"   [{marker}] {entry.path}")

        if result.image_count == 0:
            logger.warning("No images found in the .fig file")
            logger.debug(
                "   This could mean: the .fig file has no embedded images; "
                "images are stored in a different directory structure; "
                "or the .fig file is corrupted or not a standard Figma file"
            )
        else:
            logger.info(f"Successfully extracted {result.image_count} images")
