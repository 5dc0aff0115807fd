"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cache store protocol: generation-tagged key/value storage of responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..types import ResourceEntry


@dataclass(frozen=True, slots=True)
class GenerationHandle:
    """Handle to one opened cache generation."""

    tag: str


class CacheStore(Protocol):
    """
    Protocol implemented by cache store backends.

    Every mutation is a single-key write. The active-generation pointer is the
    only value swapped as a whole; `match` must read the pointer and the entry
    together so a concurrent activation is never observed half-way.
    """

    backend_id: str

    async def open_generation(self, tag: str) -> GenerationHandle:
        """Create the generation if missing and return its handle."""
        ...

    async def put(self, handle: GenerationHandle, key: str, entry: ResourceEntry) -> None:
        """Store one entry; raises `GenerationNotFoundError` for deleted generations."""
        ...

    async def get(self, handle: GenerationHandle, key: str) -> ResourceEntry | None: ...

    async def keys(self, handle: GenerationHandle) -> list[str]: ...

    async def list_generations(self) -> set[str]: ...

    async def delete(self, tag: str) -> bool:
        """Delete one generation; returns False when it did not exist."""
        ...

    async def get_active(self) -> str | None: ...

    async def set_active(self, tag: str) -> None:
        """Atomically point readers at `tag`."""
        ...

    async def match(self, key: str) -> ResourceEntry | None:
        """Look up `key` in whichever generation is active at call time."""
        ...

    async def close(self) -> None: ...
