"""Path utilities for archive member names and output files."""

import unicodedata
from pathlib import Path, PurePosixPath


def normalize_path(path: Path | str) -> str:
    """
    Normalize a path for consistent comparison regardless of origin.

    Applies:
    - Unicode NFC normalization (canonical composition)
    - Forward slash conversion, so archives written on Windows with
      backslash separators compare equal to POSIX-style member names

    Args:
        path: Path object or string to normalize

    Returns:
        Normalized path string with forward slashes and NFC Unicode normalization

    Examples:
        >>> normalize_path("images\\\\abc123")
        'images/abc123'
        >>> normalize_path(Path("café/résumé"))
        'café/résumé'
    """
    path_str = str(path)
    normalized = unicodedata.normalize('NFC', path_str)
    normalized = normalized.replace('\\', '/')
    return normalized


def strip_prefix(member_path: str, prefix: str) -> str | None:
    """Return the part of a normalized member path below ``prefix``.

    Returns None when the path is not under the prefix or nothing remains
    after it (the prefix directory itself).
    """
    if not member_path.startswith(prefix):
        return None
    remainder = member_path[len(prefix):].lstrip('/')
    return remainder or None


def is_safe_relative_path(relative: str) -> bool:
    """Check that a member path stays inside the extraction directory."""
    pure = PurePosixPath(relative)
    if pure.is_absolute() or (pure.parts and pure.parts[0].endswith(':')):
        return False
    return '..' not in pure.parts


def has_extension(path: Path) -> bool:
    """True when the file name carries an extension (``abc.png``, not ``abc``)."""
    return path.suffix != ''
