"""Base error definitions for figma_asset_extractor."""

from typing import Any, Dict


class FigExtractError(Exception):
    """Base exception for all figma_asset_extractor errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class ConfigurationError(FigExtractError):
    """Configuration file or environment override is invalid."""
    pass


class InputError(FigExtractError):
    """Source file is missing, empty or unreadable."""
    pass


class ArchiveError(FigExtractError):
    """Container cannot be opened or parsed as a ZIP archive."""
    pass


class AssetError(FigExtractError):
    """Base exception for per-asset failures (never fatal for a run)."""
    pass


class UndeterminedType(AssetError):
    """Asset content could not be classified."""
    pass


class TransformError(AssetError):
    """Decoding, resizing or encoding of a raster asset failed."""
    pass
