"""File type detection using the filetype library plus text sniffing for SVG.

Detection is an ordered list of independent classifiers. Each returns a
``(matched, result)`` pair and the first match wins; when nothing matches the
result is undetermined (``extension is None``).
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import filetype
from filetype.types import TYPES
from filetype.types.base import Type

# Leading bytes read from a file; covers every signature filetype checks
HEAD_READ_SIZE = 8192

# Bytes of leading content inspected for SVG markup
TEXT_SNIFF_LENGTH = 1024

VECTOR_EXTENSIONS = frozenset({"svg", "eps"})

# filetype reports JPEG as jpg, other tables use jpeg
EXTENSION_ALIASES = {"jpeg": "jpg"}


@dataclass(frozen=True)
class DetectionResult:
    """Sniffed media type of a byte buffer."""
    extension: Optional[str]
    is_vector: bool = False
    mime: Optional[str] = None

    @property
    def is_determined(self) -> bool:
        return self.extension is not None

    @property
    def is_raster(self) -> bool:
        return self.is_determined and not self.is_vector


UNDETERMINED = DetectionResult(extension=None)

Classifier = Callable[[bytes], Tuple[bool, DetectionResult]]


class Eps(Type):
    """Encapsulated PostScript: DOS binary header or an EPSF comment line."""

    MIME = 'application/postscript'
    EXTENSION = 'eps'

    def __init__(self):
        super(Eps, self).__init__(mime=Eps.MIME, extension=Eps.EXTENSION)

    def match(self, buf):
        if len(buf) >= 4 and buf[:4] == b'\xc5\xd0\xd3\xc6':
            return True
        if not buf.startswith(b'%!PS-Adobe-'):
            return False
        first_line = bytes(buf[:64]).split(b'\n', 1)[0]
        return b'EPSF' in first_line


# EPS comes first, otherwise the generic PostScript matcher claims it
SIGNATURE_MATCHERS = [Eps()] + list(TYPES)


def _normalize(extension: str, mime: Optional[str]) -> DetectionResult:
    extension = EXTENSION_ALIASES.get(extension, extension)
    return DetectionResult(
        extension=extension,
        is_vector=extension in VECTOR_EXTENSIONS,
        mime=mime,
    )


def classify_signature(buf: bytes) -> Tuple[bool, DetectionResult]:
    """Magic-number detection over the standard signature table."""
    if not buf:
        return False, UNDETERMINED
    kind = filetype.match(buf, matchers=SIGNATURE_MATCHERS)
    if kind is None:
        return False, UNDETERMINED
    return True, _normalize(kind.extension, kind.mime)


def classify_svg_text(buf: bytes) -> Tuple[bool, DetectionResult]:
    """Treat text that looks like SVG markup as a vector asset."""
    text = buf[:TEXT_SNIFF_LENGTH].decode('utf-8', errors='replace')
    if '<svg' in text or ('<?xml' in text and 'svg' in text):
        return True, DetectionResult(extension='svg', is_vector=True, mime='image/svg+xml')
    return False, UNDETERMINED


CLASSIFIERS: List[Classifier] = [
    classify_signature,
    classify_svg_text,
]


def detect_type(buf: bytes) -> DetectionResult:
    """
    Detect the media type of a byte buffer.

    Pure and deterministic: the same bytes always give the same result.

    Args:
        buf: File content (the leading 8 KB are enough for every classifier)

    Returns:
        DetectionResult; ``extension`` is None when undetermined
    """
    for classifier in CLASSIFIERS:
        matched, result = classifier(buf)
        if matched:
            return result
    return UNDETERMINED


def detect_file_type(file_path: Path) -> DetectionResult:
    """
    Detect the media type of a file from its leading bytes.

    Args:
        file_path: Path to the file

    Returns:
        DetectionResult for the file's content

    Raises:
        OSError: If file cannot be read
    """
    with open(file_path, 'rb') as f:
        head = f.read(HEAD_READ_SIZE)
    return detect_type(head)
