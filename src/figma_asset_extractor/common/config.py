"""Layered configuration loading: TOML files, then environment variables."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

import platformdirs
import toml
from pydantic import BaseModel, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)

DEFAULTS_FILE = "defaults.toml"
CONFIG_FILE = "config.toml"


class ConfigLoader(Generic[T]):
    """Builds one validated configuration object from layered sources.

    Layers, lowest priority first:

    1. defaults file (explicit path, or ``./config/defaults.toml``)
    2. system config (``/etc/<app>/config.toml``, ``%PROGRAMDATA%`` on Windows)
    3. user config (platformdirs user config dir)
    4. environment variables ``<APP>_<SECTION>_<KEY>``

    Command-line flags are applied by the caller on top of the result.
    """

    def __init__(self, app_name: str = "figma-asset-extractor", config_class: Optional[Type[T]] = None) -> None:
        self.app_name = app_name
        self.config_class = config_class
        self._config: Optional[T] = None

    @property
    def env_prefix(self) -> str:
        return f"{self.app_name.upper().replace('-', '_')}_"

    def load(self, defaults_path: Optional[Path] = None) -> T:
        """Merge every layer and validate the result.

        Raises:
            ConfigurationError: If a config file is missing (explicit path
                only), cannot be parsed, or the merged values are invalid
        """
        merged: Dict[str, Any] = {}
        for label, layer in self._file_layers(defaults_path):
            if layer:
                logger.debug(f"Applying {label} config ({', '.join(sorted(layer))})")
                merged = self._deep_merge(merged, layer)

        merged = self._apply_env_overrides(merged)

        if self.config_class is None:
            self._config = merged
            return self._config

        try:
            self._config = self.config_class(**merged)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration: {e}", app_name=self.app_name
            ) from e
        return self._config

    def _file_layers(self, defaults_path: Optional[Path]) -> List[Tuple[str, Optional[Dict[str, Any]]]]:
        return [
            ("defaults", self._load_defaults(defaults_path)),
            ("system", self._load_system_config()),
            ("user", self._load_user_config()),
        ]

    def _read_toml(self, path: Path) -> Dict[str, Any]:
        try:
            return toml.load(path)
        except (OSError, toml.TomlDecodeError) as e:
            raise ConfigurationError(
                f"Cannot read config file {path}: {e}", path=str(path)
            ) from e

    def _read_if_exists(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.is_file():
            return None
        return self._read_toml(path)

    def _load_defaults(self, defaults_path: Optional[Path] = None) -> Dict[str, Any]:
        """An explicit defaults file must exist; the implicit one is optional."""
        if defaults_path is not None:
            if not defaults_path.exists():
                raise ConfigurationError(
                    f"Config file not found: {defaults_path}", path=str(defaults_path)
                )
            return self._read_toml(defaults_path)

        return self._read_if_exists(Path.cwd() / "config" / DEFAULTS_FILE) or {}

    def _load_system_config(self) -> Optional[Dict[str, Any]]:
        if os.name == "nt":
            base = Path(os.environ.get("PROGRAMDATA", "C:\\ProgramData"))
        else:
            base = Path("/etc")
        return self._read_if_exists(base / self.app_name / CONFIG_FILE)

    def _load_user_config(self) -> Optional[Dict[str, Any]]:
        user_dir = Path(platformdirs.user_config_dir(appname=self.app_name, appauthor=False))
        return self._read_if_exists(user_dir / CONFIG_FILE)

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        result = dict(base)
        for key, value in override.items():
            if isinstance(result.get(key), dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply ``<APP>_<SECTION>_<KEY>`` environment variables.

        The first segment after the prefix is the section and the rest is
        the key, so keys containing underscores stay addressable:
        FIGMA_ASSET_EXTRACTOR_TRANSFORM_MAX_WIDTH -> transform.max_width
        """
        prefix = self.env_prefix

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(prefix):
                continue

            section, _, key = env_key[len(prefix):].lower().partition("_")
            if not section or not key:
                logger.debug(f"Ignoring environment variable without section and key: {env_key}")
                continue

            current = config.setdefault(section, {})
            if isinstance(current, dict):
                current[key] = self._convert_env_value(env_value)

        return config

    def _convert_env_value(self, value: str) -> Any:
        """Best-effort typing of an environment string: bool, int, float, else str."""
        lowered = value.lower()
        if lowered in ("true", "yes"):
            return True
        if lowered in ("false", "no"):
            return False

        for convert in (int, float):
            try:
                return convert(value)
            except ValueError:
                continue
        return value

    @property
    def config(self) -> T:
        """Loaded configuration, loading it on first access."""
        if self._config is None:
            self._config = self.load()
        return self._config
