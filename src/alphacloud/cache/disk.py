"""Single-file JSON cache of the storage systems list."""

import json
from pathlib import Path
from typing import Any

import structlog

from alphacloud.config.settings import get_settings

logger = structlog.get_logger(__name__)

CACHE_FILE_NAME = "alphacloud_storagesystems.json"


def default_cache_path(cache_dir: str | Path | None = None) -> Path:
    """Get the storage systems cache file path.

    Args:
        cache_dir: Cache directory, defaults to the configured one.
    """
    base = Path(cache_dir) if cache_dir is not None else get_settings().cache_dir
    return base / CACHE_FILE_NAME


class DiskCache:
    """Reads and writes a JSON array to a file.

    Both operations block and are meant to run in a worker thread.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_cache_path()

    def __repr__(self) -> str:
        return f"DiskCache({str(self.path)!r})"

    def read(self) -> list[Any] | None:
        """Read the cached array.

        Returns:
            The array, or None if the file is missing or does not hold a
            JSON array.
        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No cache file", path=str(self.path))
            return None
        except (OSError, ValueError) as e:
            logger.warning("Failed to read cache file", path=str(self.path), error=str(e))
            return None

        try:
            document = json.loads(content)
        except ValueError as e:
            logger.warning("Failed to parse cache file", path=str(self.path), error=str(e))
            return None

        if not isinstance(document, list):
            logger.warning("Cache file does not contain an array", path=str(self.path))
            return None

        return document

    def write(self, array: list[Any]) -> bool:
        """Write the array, replacing the file.

        Returns:
            Whether the file was written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(array, separators=(",", ":")), encoding="utf-8")
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Failed to write cache file", path=str(self.path), error=str(e))
            return False

        logger.debug("Wrote cache file", path=str(self.path), entries=len(array))
        return True
