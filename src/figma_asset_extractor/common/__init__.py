"""Common utilities for figma_asset_extractor."""

from .config import ConfigLoader
from .config_utils import expand_path_variables, auto_detect_workers
from .logging import setup_logging, verbosity_to_level
from .logging_config import LoggingConfig
from .errors import (
    FigExtractError, ConfigurationError, InputError, ArchiveError,
    AssetError, UndeterminedType, TransformError
)
from .path_utils import normalize_path, strip_prefix, is_safe_relative_path, has_extension

__all__ = [
    'ConfigLoader',
    'LoggingConfig',
    'setup_logging',
    'verbosity_to_level',
    'expand_path_variables',
    'auto_detect_workers',
    'FigExtractError',
    'ConfigurationError',
    'InputError',
    'ArchiveError',
    'AssetError',
    'UndeterminedType',
    'TransformError',
    'normalize_path',
    'strip_prefix',
    'is_safe_relative_path',
    'has_extension',
]
