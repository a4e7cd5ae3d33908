"""Representación en el cable de las muestras y del ciclo de vida de la prueba."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Tuple

from collector.stats import Sample, ThresholdTracker

ThresholdResult = Dict[str, Dict[str, bool]]


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


@dataclass(frozen=True)
class SampleData:
    type: str
    time: datetime
    value: float
    tags: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "time": _format_time(self.time),
            "value": self.value,
            "tags": dict(self.tags),
        }


@dataclass(frozen=True)
class CloudSample:
    """Muestra lista para enviarse al servicio de agregación."""

    metric: str
    data: SampleData
    type: str = "Point"

    @classmethod
    def from_sample(cls, sample: Sample) -> "CloudSample":
        return cls(
            metric=sample.metric.name,
            data=SampleData(
                type=sample.metric.type.value,
                time=sample.time,
                value=float(sample.value),
                tags=dict(sample.tags),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "metric": self.metric, "data": self.data.to_dict()}


@dataclass(frozen=True)
class TestRun:
    """Descriptor que se registra una única vez al iniciar la ejecución."""

    __test__ = False  # not a pytest test class

    name: str
    thresholds: Mapping[str, List[str]]
    duration: int = -1
    project_id: int = 0

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "thresholds": {name: list(sources) for name, sources in self.thresholds.items()},
            "duration": self.duration,
        }
        if self.project_id:
            payload["project_id"] = self.project_id
        return payload


@dataclass(frozen=True)
class CreateTestRunResponse:
    reference_id: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CreateTestRunResponse":
        return cls(reference_id=str(data.get("reference_id") or ""))


def build_threshold_result(thresholds: ThresholdTracker) -> Tuple[ThresholdResult, bool]:
    """Snapshot of every threshold's failed flag plus the tainted verdict."""

    tainted = False
    result: ThresholdResult = {}
    for name, items in thresholds.items():
        result[name] = {}
        for threshold in items:
            result[name][threshold.source] = threshold.failed
            if threshold.failed:
                tainted = True
    return result, tainted
