"""Fachada sobre las llamadas de ciclo de vida del cliente en la nube."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from .models import CloudSample, CreateTestRunResponse, TestRun, ThresholdResult

logger = logging.getLogger(__name__)


class RemoteClient(Protocol):
    """Contrato mínimo del cliente remoto; cualquier fallo es un ``CloudError``."""

    def create_test_run(self, test_run: TestRun) -> CreateTestRunResponse:
        """Registra la ejecución y devuelve su referencia."""

    def push_metric(self, reference_id: str, samples: Sequence[CloudSample]) -> None:
        """Envía un lote de muestras."""

    def test_finished(self, reference_id: str, thresholds: ThresholdResult, tainted: bool) -> None:
        """Notifica el final de la ejecución."""


class RunRegistrar:
    def __init__(self, client: RemoteClient) -> None:
        self.client = client

    def register(self, test_run: TestRun) -> str:
        response = self.client.create_test_run(test_run)
        return response.reference_id

    def push(self, reference_id: str, batch: Sequence[CloudSample]) -> None:
        logger.debug("Pushing metrics to cloud (samples=%d ref=%s)", len(batch), reference_id)
        self.client.push_metric(reference_id, batch)

    def finish(self, reference_id: str, thresholds: ThresholdResult, tainted: bool) -> None:
        logger.debug("Sending test finished (ref=%s tainted=%s)", reference_id, tainted)
        self.client.test_finished(reference_id, thresholds, tainted)

    def close(self) -> None:
        close = getattr(self.client, "close", None)
        if callable(close):
            close()
