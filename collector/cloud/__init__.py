"""Salida hacia el servicio de agregación en la nube."""

from __future__ import annotations

from .buffer import SampleBuffer
from .client import CloudClient, CloudError, NotAuthorizedError
from .collector import Collector, derive_duration, sum_stages
from .models import CloudSample, CreateTestRunResponse, SampleData, TestRun, ThresholdResult, build_threshold_result
from .registrar import RemoteClient, RunRegistrar

__all__ = [
    "CloudClient",
    "CloudError",
    "CloudSample",
    "Collector",
    "CreateTestRunResponse",
    "NotAuthorizedError",
    "RemoteClient",
    "RunRegistrar",
    "SampleBuffer",
    "SampleData",
    "TestRun",
    "ThresholdResult",
    "build_threshold_result",
    "derive_duration",
    "sum_stages",
]
