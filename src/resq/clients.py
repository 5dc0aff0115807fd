"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Connected window clients controlled by the worker.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urljoin

from .utils import new_id, origin_of

logger = logging.getLogger("resq.clients")


@dataclass(slots=True)
class WindowClient:
    """
    One connected application window.

    Attributes:
        id: Client identifier.
        url: Current URL of the window.
        focused: Whether the window has focus.
        controller: Generation tag controlling this client, or ``None``.
    """

    id: str
    url: str
    focused: bool = False
    controller: str | None = None


class ClientRegistry:
    """In-process registry of window clients, with claim/focus/navigate/open."""

    def __init__(self) -> None:
        self._clients: dict[str, WindowClient] = {}

    def connect(
        self,
        url: str,
        *,
        client_id: str | None = None,
        focused: bool = False,
        controller: str | None = None,
    ) -> WindowClient:
        client = WindowClient(
            id=client_id or new_id("client"),
            url=url,
            focused=focused,
            controller=controller,
        )
        self._clients[client.id] = client
        return client

    def disconnect(self, client_id: str) -> None:
        self._clients.pop(client_id, None)

    def get(self, client_id: str) -> WindowClient | None:
        return self._clients.get(client_id)

    def match_all(self, *, include_uncontrolled: bool = True) -> list[WindowClient]:
        clients = list(self._clients.values())
        if include_uncontrolled:
            return clients
        return [c for c in clients if c.controller is not None]

    def has_controlled_clients(self) -> bool:
        return any(c.controller is not None for c in self._clients.values())

    async def claim(self, tag: str) -> int:
        """Take control of every connected client without waiting for navigation."""
        for client in self._clients.values():
            client.controller = tag
        if self._clients:
            logger.info("Claimed %d client(s) for generation %s", len(self._clients), tag)
        return len(self._clients)

    async def focus(self, client_id: str) -> WindowClient:
        client = self._require(client_id)
        for other in self._clients.values():
            other.focused = other.id == client_id
        return client

    async def navigate(self, client_id: str, url: str) -> WindowClient:
        client = self._require(client_id)
        client.url = url
        return client

    async def open_window(self, url: str) -> WindowClient:
        for other in self._clients.values():
            other.focused = False
        return self.connect(url, focused=True)

    async def focus_or_open(self, url: str, *, origin: str) -> WindowClient:
        """
        Focus and navigate an existing same-origin window, else open a new one.
        """
        wanted = origin_of(origin)
        target = urljoin(origin.rstrip("/") + "/", url)
        for client in self.match_all(include_uncontrolled=True):
            if origin_of(client.url) == wanted:
                await self.focus(client.id)
                return await self.navigate(client.id, target)
        return await self.open_window(target)

    def _require(self, client_id: str) -> WindowClient:
        client = self._clients.get(client_id)
        if client is None:
            raise KeyError(f"Client '{client_id}' not found")
        return client
