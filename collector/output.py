"""Contrato común para las salidas que reciben muestras del motor."""

from __future__ import annotations

import threading
from typing import Protocol, Sequence, runtime_checkable

from .stats import Sample


@runtime_checkable
class Output(Protocol):
    """Contrato que el motor espera de una salida de métricas.

    ``open``/``close`` are optional helpers for outputs that can drive their
    own :meth:`run` loop; the engine may call :meth:`run` directly instead.
    """

    def init(self) -> None:
        """Prepara la salida antes de la ejecución; no debe abortarla."""

    def run(self, stop: threading.Event) -> None:
        """Bloquea hasta que ``stop`` se activa y la salida termina."""

    def collect(self, samples: Sequence[Sample]) -> None:
        """Recibe muestras nuevas desde cualquier hilo productor."""

    def is_ready(self) -> bool:
        """Indica si la salida puede recibir muestras."""

    def open(self) -> None:
        """Ejecuta :meth:`run` en segundo plano."""

    def close(self) -> None:
        """Detiene la ejecución en segundo plano y libera recursos."""

    def __str__(self) -> str:
        """Texto de estado legible para el usuario."""
