"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Generation-tagged response cache stores.
"""

from .base import CacheStore, GenerationHandle
from .factory import create_cache_store_from_env
from .inmemory import InMemoryCacheStore
from .sqlite import SQLiteCacheStore

__all__ = [
    "CacheStore",
    "GenerationHandle",
    "InMemoryCacheStore",
    "SQLiteCacheStore",
    "create_cache_store_from_env",
]
