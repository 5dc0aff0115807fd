"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Process-local cache store backend.
"""

from __future__ import annotations

from ..errors import GenerationNotFoundError
from ..types import ResourceEntry
from .base import CacheStore, GenerationHandle


class InMemoryCacheStore(CacheStore):
    """
    Dict-backed cache store suitable for development and tests.

    Generations are lost on process restart.
    """

    backend_id = "inmemory"

    def __init__(self) -> None:
        self._generations: dict[str, dict[str, ResourceEntry]] = {}
        self._active: str | None = None

    async def open_generation(self, tag: str) -> GenerationHandle:
        self._generations.setdefault(tag, {})
        return GenerationHandle(tag=tag)

    async def put(self, handle: GenerationHandle, key: str, entry: ResourceEntry) -> None:
        rows = self._generations.get(handle.tag)
        if rows is None:
            raise GenerationNotFoundError(f"Generation '{handle.tag}' does not exist")
        rows[key] = entry

    async def get(self, handle: GenerationHandle, key: str) -> ResourceEntry | None:
        rows = self._generations.get(handle.tag)
        if rows is None:
            return None
        return rows.get(key)

    async def keys(self, handle: GenerationHandle) -> list[str]:
        return list(self._generations.get(handle.tag, {}).keys())

    async def list_generations(self) -> set[str]:
        return set(self._generations.keys())

    async def delete(self, tag: str) -> bool:
        if tag == self._active:
            self._active = None
        return self._generations.pop(tag, None) is not None

    async def get_active(self) -> str | None:
        return self._active

    async def set_active(self, tag: str) -> None:
        if tag not in self._generations:
            raise GenerationNotFoundError(f"Generation '{tag}' does not exist")
        self._active = tag

    async def match(self, key: str) -> ResourceEntry | None:
        # No await between pointer read and entry read.
        if self._active is None:
            return None
        return self._generations.get(self._active, {}).get(key)

    async def close(self) -> None:
        return None
