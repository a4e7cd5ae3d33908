"""Muestras y umbrales tal como los produce el motor de carga."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Sequence, Tuple


class MetricType(str, Enum):
    COUNTER = "counter"
    GAUGE = "gauge"
    TREND = "trend"
    RATE = "rate"


@dataclass(frozen=True)
class Metric:
    name: str
    type: MetricType = MetricType.TREND


@dataclass(frozen=True)
class Sample:
    """Una observación de una métrica en un instante dado."""

    metric: Metric
    time: datetime
    value: float
    tags: Mapping[str, str] = field(default_factory=dict)


@dataclass
class Threshold:
    """Expresión de umbral; ``failed`` lo actualiza el evaluador externo."""

    source: str
    failed: bool = False


class ThresholdTracker:
    """Vista de solo lectura sobre los umbrales de cada métrica.

    The tracker never evaluates anything: whoever owns the thresholds flips
    :attr:`Threshold.failed` and the tracker only reads the current state.
    """

    def __init__(self, thresholds: Mapping[str, Sequence[Threshold]] | None = None) -> None:
        self._thresholds: Dict[str, Tuple[Threshold, ...]] = {
            name: tuple(items) for name, items in (thresholds or {}).items()
        }

    @classmethod
    def from_sources(cls, sources: Mapping[str, Sequence[str]]) -> "ThresholdTracker":
        return cls({name: [Threshold(source=src) for src in srcs] for name, srcs in sources.items()})

    def __iter__(self) -> Iterator[str]:
        return iter(self._thresholds)

    def __len__(self) -> int:
        return len(self._thresholds)

    def items(self) -> Iterator[Tuple[str, Tuple[Threshold, ...]]]:
        return iter(self._thresholds.items())

    def get(self, name: str) -> Tuple[Threshold, ...]:
        return self._thresholds.get(name, ())

    def sources(self) -> Dict[str, List[str]]:
        """Expresiones de cada métrica en el orden en que se declararon."""

        return {name: [t.source for t in items] for name, items in self._thresholds.items()}
