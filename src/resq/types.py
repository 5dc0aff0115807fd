"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Core value types shared by the cache, engine and worker layers.
"""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass, field
from typing import Literal, TypeAlias
from urllib.parse import urljoin, urldefrag

JSONPrimitive: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]

RequestDestination = Literal[
    "", "document", "style", "script", "image", "font", "manifest"
]


@dataclass(frozen=True, slots=True)
class RequestIdentity:
    """
    Canonical identity of a request: upper-cased method plus absolute URL.

    Headers and body never participate in identity.
    """

    method: str
    url: str

    @classmethod
    def of(cls, method: str, url: str, *, base: str | None = None) -> RequestIdentity:
        """Build a canonical identity, resolving relative URLs against `base`."""
        resolved = urljoin(base.rstrip("/") + "/", url) if base else url
        resolved, _ = urldefrag(resolved)
        return cls(method=method.strip().upper(), url=resolved)

    @property
    def key(self) -> str:
        """Storage key for this identity."""
        return f"{self.method} {self.url}"


@dataclass(frozen=True, slots=True)
class Request:
    """
    An intercepted outbound request.

    Attributes:
        method: HTTP method.
        url: Absolute or origin-relative URL.
        headers: Request headers (not part of identity).
        body: Optional request body.
        destination: What the request loads; ``"document"`` marks navigations.
    """

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None
    destination: RequestDestination = ""

    def identity(self, *, base: str | None = None) -> RequestIdentity:
        return RequestIdentity.of(self.method, self.url, base=base)

    @property
    def is_navigation(self) -> bool:
        return self.destination == "document"


@dataclass(frozen=True, slots=True)
class ResponseSnapshot:
    """Opaque response snapshot: status, headers and body bytes."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    url: str = ""

    @property
    def ok(self) -> bool:
        """Whether the status is in the HTTP success class."""
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def to_dict(self) -> JSONObject:
        return {
            "status": self.status,
            "headers": dict(self.headers),
            "body": base64.b64encode(self.body).decode("ascii"),
            "url": self.url,
        }

    @classmethod
    def from_dict(cls, row: JSONObject) -> ResponseSnapshot:
        headers = row.get("headers")
        body = row.get("body")
        return cls(
            status=int(row.get("status") or 0),  # type: ignore[arg-type]
            headers=dict(headers) if isinstance(headers, dict) else {},  # type: ignore[arg-type]
            body=base64.b64decode(body) if isinstance(body, str) else b"",
            url=str(row.get("url") or ""),
        )


@dataclass(frozen=True, slots=True)
class ResourceEntry:
    """One cached response stored under a generation."""

    key: str
    response: ResponseSnapshot
    stored_at: float = field(default_factory=time.time)
