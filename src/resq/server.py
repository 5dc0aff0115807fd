"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

FastAPI host exposing one offline worker over HTTP.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import FetchError, ProvisioningError, WorkerError
from .types import Request
from .worker.events import (
    AlertEvent,
    LifecycleEvent,
    MessageEvent,
    NotificationClickEvent,
    RequestEvent,
    SyncTriggerEvent,
)
from .worker.runtime import OfflineWorker

_HOP_BY_HOP = {"content-length", "transfer-encoding", "connection", "content-encoding"}


class FetchRequestModel(BaseModel):
    """Request identity plus the fields the engine looks at."""

    method: str = "GET"
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: str | None = None
    destination: Literal["", "document", "style", "script", "image", "font", "manifest"] = ""


class ClientMessageModel(BaseModel):
    """Permissive client message envelope."""

    model_config = ConfigDict(extra="allow")

    client_id: str | None = None


class AlertPayloadModel(BaseModel):
    """Permissive alert payload; `type` selects the template."""

    model_config = ConfigDict(extra="allow")

    type: str | None = None


class NotificationClickModel(BaseModel):
    tag: str
    action: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class WorkerServiceHost:
    """Expose worker events via FastAPI endpoints."""

    def __init__(self, worker: OfflineWorker, *, service_name: str = "resq-worker") -> None:
        self.worker = worker
        self.service_name = service_name

    def create_app(self):
        """Create and return FastAPI app exposing worker endpoints."""
        try:
            from fastapi import FastAPI, HTTPException
            from fastapi.responses import JSONResponse, Response
        except Exception as exc:  # pragma: no cover - optional runtime path
            raise WorkerError(
                "FastAPI is required to host worker endpoints"
            ) from exc

        app = FastAPI(title=self.service_name)
        worker = self.worker
        state = worker.state

        @app.post("/fetch", response_model=None)
        async def fetch(payload: FetchRequestModel):
            request = Request(
                method=payload.method,
                url=payload.url,
                headers=dict(payload.headers),
                body=payload.body.encode("utf-8") if payload.body is not None else None,
                destination=payload.destination,
            )
            try:
                response = await worker.dispatch(RequestEvent(request=request))
            except FetchError as exc:
                return JSONResponse(
                    status_code=502, content={"error": "network", "message": str(exc)}
                )
            headers = {
                k: v for k, v in response.headers.items() if k.lower() not in _HOP_BY_HOP
            }
            return Response(content=response.body, status_code=response.status, headers=headers)

        @app.post("/messages")
        async def messages(payload: ClientMessageModel) -> dict[str, Any]:
            data = payload.model_dump(exclude={"client_id"})
            return await worker.dispatch(MessageEvent(data=data, client_id=payload.client_id))

        @app.post("/alerts")
        async def alerts(payload: AlertPayloadModel) -> dict[str, Any]:
            delivered = await worker.dispatch(AlertEvent(payload=payload.model_dump()))
            return {"delivered": delivered}

        @app.post("/sync/{tag}")
        async def sync(tag: str) -> dict[str, Any]:
            summary = await worker.dispatch(SyncTriggerEvent(tag=tag))
            if summary is None:
                return {"ran": False}
            return {"ran": True, **asdict(summary)}

        @app.post("/lifecycle/install")
        async def install() -> dict[str, Any]:
            try:
                tag = await worker.dispatch(LifecycleEvent(phase="install"))
            except ProvisioningError as exc:
                raise HTTPException(
                    status_code=503,
                    detail={"message": str(exc), "failed": exc.failed_urls},
                ) from exc
            return {
                "installed": tag,
                "active": await state.lifecycle.active_tag(),
                "waiting": state.lifecycle.waiting_tag,
            }

        @app.post("/lifecycle/activate")
        async def activate() -> dict[str, Any]:
            try:
                tag = await worker.dispatch(LifecycleEvent(phase="activate"))
            except WorkerError as exc:
                raise HTTPException(status_code=409, detail=str(exc)) from exc
            return {"active": tag}

        @app.post("/notifications/click")
        async def notification_click(payload: NotificationClickModel) -> dict[str, Any]:
            client = await worker.dispatch(
                NotificationClickEvent(tag=payload.tag, action=payload.action, data=payload.data)
            )
            return {"navigated": client.url if client is not None else None}

        @app.get("/status")
        async def status() -> dict[str, Any]:
            return {
                "service": self.service_name,
                "lifecycleState": state.lifecycle.state,
                "activeGeneration": await state.lifecycle.active_tag(),
                "waitingGeneration": state.lifecycle.waiting_tag,
                "generations": sorted(await state.store.list_generations()),
                "pendingRecords": await state.queue.count(),
            }

        return app
