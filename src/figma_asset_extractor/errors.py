"""Error classes and classification for asset extraction."""

import zipfile

from .common.errors import (
    FigExtractError,
    ConfigurationError,
    InputError,
    ArchiveError,
    AssetError,
    UndeterminedType,
    TransformError,
)

__all__ = [
    'FigExtractError',
    'ConfigurationError',
    'InputError',
    'ArchiveError',
    'AssetError',
    'UndeterminedType',
    'TransformError',
    'classify_error',
]


def classify_error(exception: BaseException) -> str:
    """
    Classify an exception into a report category.

    Args:
        exception: The exception to classify

    Returns:
        Error category string: 'input', 'archive', 'config', 'undetermined',
        'transform', 'io', or 'unknown'
    """
    if isinstance(exception, InputError):
        return 'input'
    elif isinstance(exception, (ArchiveError, zipfile.BadZipFile)):
        return 'archive'
    elif isinstance(exception, ConfigurationError):
        return 'config'
    elif isinstance(exception, UndeterminedType):
        return 'undetermined'
    elif isinstance(exception, TransformError):
        return 'transform'
    elif isinstance(exception, OSError):
        return 'io'
    else:
        return 'unknown'
