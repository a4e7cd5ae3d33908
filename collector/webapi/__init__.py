"""FastAPI application exposing the cloud collector status."""

from __future__ import annotations

from fastapi import FastAPI

from .status import registry
from .status import router as status_router

app = FastAPI(title="Cloud Collector Web API", version="1.0.0")

app.include_router(status_router)


__all__ = ["app", "registry"]
