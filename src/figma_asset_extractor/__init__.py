"""Extract embedded image assets from Figma .fig files."""

from .archive import ArchiveReader, ArchiveEntry, ExtractionResult
from .config import FigExtractConfig, TransformOptions, TargetEncoding
from .extractor import FigmaAssetExtractor, validate_source, resolve_output_dir
from .mime_detector import DetectionResult, detect_type, detect_file_type
from .results import AssetAction, AssetResult, RunReport
from .transformer import RasterTransformer, compute_target_size

__version__ = "0.1.0"

__all__ = [
    'ArchiveReader',
    'ArchiveEntry',
    'ExtractionResult',
    'FigExtractConfig',
    'TransformOptions',
    'TargetEncoding',
    'FigmaAssetExtractor',
    'validate_source',
    'resolve_output_dir',
    'DetectionResult',
    'detect_type',
    'detect_file_type',
    'AssetAction',
    'AssetResult',
    'RunReport',
    'RasterTransformer',
    'compute_target_size',
]
