"""Result caches."""

from alphacloud.cache.disk import CACHE_FILE_NAME, DiskCache, default_cache_path
from alphacloud.cache.memory import QueryCache

__all__ = [
    "CACHE_FILE_NAME",
    "DiskCache",
    "QueryCache",
    "default_cache_path",
]
