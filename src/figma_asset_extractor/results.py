"""Per-asset and per-run result records."""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from .archive import ExtractionResult
from .mime_detector import DetectionResult


class AssetAction(str, Enum):
    """What happened to one extracted asset."""
    RENAMED = "renamed"            # extension added, bytes untouched
    TRANSFORMED = "transformed"    # resized and/or re-encoded
    FALLBACK = "fallback"          # transform failed, original renamed instead
    UNDETERMINED = "undetermined"  # type unknown, left as-is
    FAILED = "failed"              # unexpected error, asset may be left as-is


@dataclass(frozen=True)
class AssetResult:
    """Outcome of processing a single extracted asset."""
    source: Path
    action: AssetAction
    output: Optional[Path] = None
    detected: Optional[DetectionResult] = None
    original_size: Optional[tuple[int, int]] = None
    new_size: Optional[tuple[int, int]] = None
    error: Optional[str] = None
    error_category: Optional[str] = None

    @property
    def resized(self) -> bool:
        return self.new_size is not None and self.new_size != self.original_size

    def describe(self) -> str:
        """One-line human summary, e.g. ``abc -> abc.webp (2000x1000 -> 1000x500, png -> webp)``."""
        name = self.source.name
        if self.action is AssetAction.UNDETERMINED:
            return f"Unknown type (leaving as-is): {name}"
        if self.action is AssetAction.FAILED:
            return f"Failed to process {name}: {self.error}"

        target = self.output.name if self.output else name
        notes = []
        if self.action is AssetAction.FALLBACK:
            notes.append("processing failed, kept original")
        if self.resized:
            (w, h), (nw, nh) = self.original_size, self.new_size
            notes.append(f"{w}x{h} -> {nw}x{nh}")
        if self.action is AssetAction.TRANSFORMED and self.detected and self.output:
            new_ext = self.output.suffix.lstrip('.')
            if new_ext != self.detected.extension:
                notes.append(f"{self.detected.extension} -> {new_ext}")
        if self.action is AssetAction.RENAMED and self.detected and self.detected.is_vector:
            notes.append(f"detected as {self.detected.extension.upper()}")

        suffix = f" ({', '.join(notes)})" if notes else ""
        return f"{name} -> {target}{suffix}"


@dataclass
class RunReport:
    """Everything one extraction run did, for reporting to the user."""
    source: Path
    output_dir: Path
    extraction: ExtractionResult
    assets: List[AssetResult] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        counter = Counter(result.action.value for result in self.assets)
        return {action.value: counter.get(action.value, 0) for action in AssetAction}

    @property
    def warnings(self) -> List[AssetResult]:
        return [
            r for r in self.assets
            if r.action in (AssetAction.FALLBACK, AssetAction.UNDETERMINED, AssetAction.FAILED)
        ]
