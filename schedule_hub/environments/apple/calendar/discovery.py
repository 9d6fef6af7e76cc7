"""
Locate the calendar-bridge helper binary.

The helper usually ships next to the plugin, but development setups link
the plugin directory to a checkout where the binary sits a few levels up.
Candidates are probed in order and the first existing file wins; when none
exists the first candidate is returned so that is_available() reports
the source as unavailable.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from schedule_hub.core.config import settings


logger = logging.getLogger("schedule_hub.environments.apple.discovery")

PathLike = Union[str, os.PathLike]

# How far above the resolved plugin directory to look for a dev checkout
MAX_PARENT_LEVELS = 5


def _resolve(path: Path) -> Path:
    try:
        return path.resolve(strict=True)
    except OSError:
        return path


def bridge_candidates(
    plugin_dir: Optional[PathLike] = None,
    binary_name: Optional[str] = None,
    explicit_path: Optional[PathLike] = None,
    cwd: Optional[PathLike] = None,
) -> List[Path]:
    """
    Ordered, de-duplicated list of places the helper may live.

    Order: explicit path, resolved plugin dir and its parents (dev checkout),
    the plugin dir as given, then the working directory.
    """
    name = binary_name or settings.APPLE_BRIDGE_BINARY_NAME
    candidates: List[Path] = []

    if explicit_path:
        candidates.append(Path(explicit_path).expanduser())

    if plugin_dir:
        given = Path(plugin_dir).expanduser()
        resolved = _resolve(given)

        current = resolved
        for _ in range(MAX_PARENT_LEVELS + 1):
            candidates.append(current / name)
            if current.parent == current:
                break
            current = current.parent

        candidates.append(given / name)

    candidates.append(Path(cwd or os.getcwd()) / name)

    unique: List[Path] = []
    for candidate in candidates:
        if candidate not in unique:
            unique.append(candidate)
    return unique


def find_bridge_binary(
    plugin_dir: Optional[PathLike] = None,
    binary_name: Optional[str] = None,
    explicit_path: Optional[PathLike] = None,
    cwd: Optional[PathLike] = None,
) -> Path:
    """
    Return the first existing helper candidate, or the expected fallback.

    Args:
        plugin_dir: Plugin installation directory (may be a symlink)
        binary_name: Helper file name (defaults to settings)
        explicit_path: Configured path, tried first
        cwd: Working directory fallback (defaults to os.getcwd())
    """
    candidates = bridge_candidates(plugin_dir, binary_name, explicit_path, cwd)

    for candidate in candidates:
        if candidate.is_file():
            logger.info(f"Found calendar bridge at {candidate}")
            return candidate

    fallback = candidates[0]
    logger.warning(
        f"Calendar bridge binary not found, using fallback path: {fallback}",
        extra={"searched": [str(c) for c in candidates]},
    )
    return fallback
