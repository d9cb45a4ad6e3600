"""Configuration schema for the asset extractor."""

from enum import Enum

from pydantic import BaseModel, Field, ConfigDict, field_validator

from .common import LoggingConfig, auto_detect_workers, expand_path_variables


class TargetEncoding(str, Enum):
    """Output encoding for raster assets."""
    NONE = "none"
    WEBP = "webp"
    AVIF = "avif"

    @property
    def extension(self) -> str | None:
        return None if self is TargetEncoding.NONE else self.value

    @property
    def pil_format(self) -> str | None:
        return None if self is TargetEncoding.NONE else self.value.upper()


class TransformOptions(BaseModel):
    """Raster transform options, fixed for a whole run."""

    model_config = ConfigDict(extra='forbid', frozen=True)

    target_encoding: TargetEncoding = Field(
        default=TargetEncoding.NONE,
        description="Re-encode raster assets to this format (none keeps the original)"
    )
    quality: int = Field(
        default=80,
        ge=1,
        le=100,
        description="WebP/AVIF quality, higher is larger and less lossy"
    )
    max_width: int | None = Field(
        default=None,
        gt=0,
        description="Downscale images wider than this, keeping aspect ratio"
    )
    max_height: int | None = Field(
        default=None,
        gt=0,
        description="Downscale images taller than this, keeping aspect ratio"
    )

    @field_validator('target_encoding', mode='before')
    @classmethod
    def normalize_encoding(cls, v):
        """Accept case-insensitive names and an explicit null."""
        if v is None:
            return TargetEncoding.NONE
        if isinstance(v, str):
            return v.lower()
        return v

    @property
    def resize_requested(self) -> bool:
        return self.max_width is not None or self.max_height is not None

    @property
    def needs_processing(self) -> bool:
        """Whether raster assets go through the transformer at all."""
        return self.target_encoding is not TargetEncoding.NONE or self.resize_requested


class ExtractionConfig(BaseModel):
    """Configuration for extraction runs."""

    model_config = ConfigDict(extra='forbid')

    output_dir: str | None = Field(
        default=None,
        description="Output directory (default: source file name without extension, in cwd)"
    )
    workers: int = Field(
        default_factory=auto_detect_workers,
        ge=1,
        description="Number of threads processing extracted assets"
    )

    @field_validator('output_dir', mode='after')
    @classmethod
    def expand_output_dir(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return expand_path_variables(v)


class FigExtractConfig(BaseModel):
    """Root configuration for the asset extractor."""

    model_config = ConfigDict(extra='forbid')

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    transform: TransformOptions = Field(default_factory=TransformOptions)
