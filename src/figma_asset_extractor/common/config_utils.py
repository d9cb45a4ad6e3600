"""Configuration helpers: path variables and worker sizing."""

import os
import tempfile
from pathlib import Path
from typing import Callable, Dict

import platformdirs

# ${VAR} placeholders usable in configured paths, resolved on use
PATH_VARIABLES: Dict[str, Callable[[], str]] = {
    "${USER_HOME}": lambda: str(Path.home()),
    "${USER_DATA}": platformdirs.user_data_dir,
    "${USER_PICTURES}": platformdirs.user_pictures_dir,
    "${USER_CACHE}": platformdirs.user_cache_dir,
    "${TEMP}": tempfile.gettempdir,
}


def expand_path_variables(path: str) -> str:
    """Expand ``${VAR}`` placeholders and a leading ``~`` in a configured path.

    Supported variables: ${USER_HOME}, ${USER_DATA}, ${USER_PICTURES},
    ${USER_CACHE}, ${TEMP}. Unknown placeholders are left as written.

    Examples:
        >>> expand_path_variables("${TEMP}/figma")  # doctest: +SKIP
        '/tmp/figma'
    """
    if not isinstance(path, str):
        return path

    for var, resolve in PATH_VARIABLES.items():
        if var in path:
            path = path.replace(var, resolve())

    return os.path.expanduser(path)


def auto_detect_workers(multiplier: float = 1.0, min_workers: int = 1, max_workers: int = 8) -> int:
    """Number of asset worker threads for this machine.

    Pillow releases the GIL while decoding and encoding, so threads scale
    with cores for this workload.

    Args:
        multiplier: Multiplier for CPU count (e.g., 0.5 for half cores)
        min_workers: Lower bound
        max_workers: Upper bound regardless of core count
    """
    cpu_count = os.cpu_count() or 4
    return min(max(min_workers, int(cpu_count * multiplier)), max_workers)
