"""Logging configuration model."""

from typing import Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .config_utils import expand_path_variables

LogLevel: TypeAlias = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat: TypeAlias = Literal["simple", "detailed", "json"]


class LoggingConfig(BaseModel):
    """The ``[logging]`` section: console level and format, optional log file."""

    model_config = ConfigDict(extra='forbid')

    level: LogLevel = Field(default="INFO", description="Console and file log level")
    format: LogFormat = Field(default="simple", description="Console format; the file is always JSON")
    file: str | None = Field(default=None, description="Rotating log file path (${VAR} placeholders allowed)")

    @field_validator('level', 'format', mode='before')
    @classmethod
    def normalize_case(cls, v, info: ValidationInfo):
        """Accept any case: levels are stored upper-case, formats lower-case."""
        if not isinstance(v, str):
            return v
        return v.upper() if info.field_name == 'level' else v.lower()

    @field_validator('file', mode='after')
    @classmethod
    def expand_file(cls, v: str | None) -> str | None:
        return None if v is None else expand_path_variables(v)
