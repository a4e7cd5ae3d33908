"""Endpoint exposing the state of the active cloud collector."""

from __future__ import annotations

from threading import Lock
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from collector.cloud import Collector

from .auth import require_token

router = APIRouter(prefix="/collector", tags=["collector"])


class StatusResponse(BaseModel):
    status: str = Field(description="Texto de estado del colector")
    ready: bool
    reference_id: Optional[str] = Field(None, description="Referencia de la ejecución en la nube")
    counters: Dict[str, int] = Field(default_factory=dict)


class CollectorRegistry:
    """Holds the collector the running process reports on."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._collector: Collector | None = None

    def register(self, collector: Collector) -> None:
        with self._lock:
            self._collector = collector

    def clear(self) -> None:
        with self._lock:
            self._collector = None

    def current(self) -> Collector | None:
        with self._lock:
            return self._collector


registry = CollectorRegistry()


@router.get("/status", response_model=StatusResponse)
async def collector_status(_: None = Depends(require_token)) -> Dict[str, object]:
    """Return status text, readiness and push counters of the active collector."""

    collector = registry.current()
    if collector is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="No hay un colector activo",
        )
    return {
        "status": str(collector),
        "ready": collector.is_ready(),
        "reference_id": collector.reference_id or None,
        "counters": collector.metrics.snapshot(),
    }
