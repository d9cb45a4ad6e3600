"""Resize and re-encode raster assets with Pillow."""

import logging
import math
import os
import tempfile
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image

from .common.errors import TransformError
from .config import TargetEncoding, TransformOptions
from .errors import classify_error
from .mime_detector import DetectionResult
from .results import AssetAction, AssetResult

logger = logging.getLogger(__name__)

# Modes WebP and AVIF encoders take without conversion
ENCODABLE_MODES = ("RGB", "RGBA")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_target_size(
    width: int,
    height: int,
    max_width: Optional[int] = None,
    max_height: Optional[int] = None,
) -> Optional[Tuple[int, int]]:
    """Compute the downscaled size that fits within the bounds.

    An unset bound is unconstrained. The scale factor is clamped to 1, so
    images are never enlarged.

    Returns:
        (new_width, new_height), or None when no resize is needed
    """
    if width <= 0 or height <= 0:
        return None

    width_ratio = max_width / width if max_width else 1.0
    height_ratio = max_height / height if max_height else 1.0
    scale = min(width_ratio, height_ratio, 1.0)

    if scale >= 1.0:
        return None

    return (
        max(1, _round_half_up(width * scale)),
        max(1, _round_half_up(height * scale)),
    )


def rename_asset(path: Path, extension: str) -> Path:
    """Rename ``path`` to ``<name>.<extension>`` in place, overwriting any existing file."""
    target = path.with_name(f"{path.name}.{extension}")
    os.replace(path, target)
    return target


class RasterTransformer:
    """Applies the run's transform options to one raster asset at a time.

    Stateless apart from the read-only options, so one instance can be
    shared by worker threads.
    """

    def __init__(self, options: TransformOptions):
        self.options = options

    def transform(
        self,
        path: Path,
        original_ext: str,
        detected: Optional[DetectionResult] = None,
    ) -> AssetResult:
        """Resize and/or re-encode ``path``, then remove it.

        The output is written to a temporary file and moved onto
        ``<name>.<ext>`` atomically. If anything fails the original bytes are
        renamed to ``<name>.<original_ext>`` untouched and a FALLBACK result
        is returned; this method does not raise for image errors.

        Args:
            path: Extensionless asset file
            original_ext: Extension detected from the asset's content
            detected: Detection result, carried into the returned record

        Returns:
            AssetResult with action TRANSFORMED or FALLBACK
        """
        path = Path(path)

        try:
            output_path, original_size, new_size = self._write_transformed(path, original_ext)
        except TransformError as e:
            logger.warning(
                f"Failed to process raster image {path.name}: {e.message}",
                extra={"extra_fields": {"asset": path.name, **e.context}},
            )
            fallback_path = rename_asset(path, original_ext)
            return AssetResult(
                source=path,
                action=AssetAction.FALLBACK,
                output=fallback_path,
                detected=detected,
                error=e.message,
                error_category=classify_error(e),
            )

        path.unlink(missing_ok=True)
        return AssetResult(
            source=path,
            action=AssetAction.TRANSFORMED,
            output=output_path,
            detected=detected,
            original_size=original_size,
            new_size=new_size,
        )

    def _write_transformed(self, path: Path, original_ext: str):
        encoding = self.options.target_encoding
        output_ext = encoding.extension or original_ext
        output_path = path.with_name(f"{path.name}.{output_ext}")

        tmp_path = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=f".{output_ext}.tmp", dir=path.parent
            )
            os.close(fd)
            tmp_path = Path(tmp_name)

            with Image.open(path) as img:
                img.load()
                original_size = img.size
                source_format = img.format

                target_size = compute_target_size(
                    img.width, img.height, self.options.max_width, self.options.max_height
                )
                out = img.resize(target_size, Image.Resampling.LANCZOS) if target_size else img

                if encoding is TargetEncoding.NONE:
                    save_format = source_format
                    save_kwargs = {}
                else:
                    save_format = encoding.pil_format
                    save_kwargs = {"quality": self.options.quality}
                    if out.mode not in ENCODABLE_MODES:
                        out = out.convert("RGBA" if out.has_transparency_data else "RGB")
                icc_profile = img.info.get("icc_profile")
                if icc_profile:
                    save_kwargs["icc_profile"] = icc_profile

                out.save(tmp_path, format=save_format, **save_kwargs)
                new_size = out.size

            os.replace(tmp_path, output_path)
        except Exception as e:
            # Pillow signals decode/encode problems with many exception types
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise TransformError(
                f"{type(e).__name__}: {e}",
                path=str(path),
                encoding=encoding.value,
            ) from e

        logger.debug(f"Wrote {output_path.name} ({save_format}, {new_size[0]}x{new_size[1]})")
        return output_path, original_size, new_size
