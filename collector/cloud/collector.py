"""Salida que envía las muestras de la ejecución al servicio en la nube."""

from __future__ import annotations

import logging
import threading
from typing import Optional, Sequence, Tuple, Type

from collector.config.schema import CloudSettings, DEFAULT_WEB_URL, ExternalCloudConfig, RunOptions, Stage
from collector.metrics import CollectorMetrics
from collector.output import Output
from collector.stats import Sample, ThresholdTracker

from .buffer import SampleBuffer
from .client import CloudClient, CloudError, NotAuthorizedError
from .models import CloudSample, TestRun, build_threshold_result
from .registrar import RemoteClient, RunRegistrar

logger = logging.getLogger(__name__)

METRIC_PUSH_INTERVAL_S = 1.0
INIT_FAILED_MESSAGE = "Failed to create test run in the cloud"


def sum_stages(stages: Sequence[Stage]) -> int:
    total = sum(stage.duration_s for stage in stages)
    return int(total)


def derive_duration(options: RunOptions) -> int:
    """Duración total en segundos, o -1 si no se conoce."""

    if options.stages:
        return sum_stages(options.stages)
    if options.duration_s is not None:
        return int(options.duration_s)
    return -1


class Collector(Output):
    """Buffer samples from the engine and push them to the cloud periodically.

    Telemetry is best effort: a failed registration leaves ``reference_id``
    empty and every later operation turns into a no-op, and no method here
    raises a remote failure back to the engine.

    Parameters
    ----------
    name, project_id:
        Run identification; empty/zero let the service apply its defaults.
    thresholds:
        Read-only view of the thresholds whose state is reported at the end.
    duration:
        Expected duration in seconds, ``-1`` when unknown.
    client:
        Remote client; see :class:`~collector.cloud.registrar.RemoteClient`.
    """

    def __init__(
        self,
        name: str,
        project_id: int,
        thresholds: ThresholdTracker,
        duration: int,
        client: RemoteClient,
        *,
        push_interval_s: float = METRIC_PUSH_INTERVAL_S,
        web_url: str = DEFAULT_WEB_URL,
        recognized_errors: Tuple[Type[CloudError], ...] = (NotAuthorizedError,),
        metrics: Optional[CollectorMetrics] = None,
    ) -> None:
        self.name = name
        self.project_id = project_id
        self.thresholds = thresholds
        self.duration = duration
        self.push_interval_s = push_interval_s
        self.web_url = web_url.rstrip("/")
        self.recognized_errors = recognized_errors
        self.metrics = metrics or CollectorMetrics()
        self.reference_id = ""
        self.init_error: Optional[Exception] = None
        self.test_run: Optional[TestRun] = None
        self._registrar = RunRegistrar(client)
        self._buffer: SampleBuffer[CloudSample] = SampleBuffer()
        self._finished = False
        self._stop_event = threading.Event()
        self._worker_thread: Optional[threading.Thread] = None

    @classmethod
    def from_options(
        cls,
        options: RunOptions,
        settings: CloudSettings,
        *,
        script_path: Optional[str] = None,
        version: str = "dev",
        client: Optional[RemoteClient] = None,
    ) -> "Collector":
        try:
            ext_config = ExternalCloudConfig.from_mapping(options.external.get("cloud"))
        except ValueError as exc:
            logger.warning("Malformed cloud settings in script options: %s", exc)
            ext_config = ExternalCloudConfig()

        return cls(
            name=ext_config.get_name(script_path),
            project_id=ext_config.project_id,
            thresholds=ThresholdTracker.from_sources(options.thresholds),
            duration=derive_duration(options),
            client=client or CloudClient(settings, version=version),
            push_interval_s=settings.push_interval_s,
            web_url=settings.web_url,
        )

    # Ciclo de vida -------------------------------------------------------------
    def init(self) -> None:
        if self.test_run is not None:
            logger.debug("Cloud collector already initialized; ignoring init()")
            return None
        self.test_run = TestRun(
            name=self.name,
            thresholds=self.thresholds.sources(),
            duration=self.duration,
            project_id=self.project_id,
        )
        try:
            reference_id = self._registrar.register(self.test_run)
        except CloudError as exc:
            self.init_error = exc
            logger.error("Cloud collector failed to init: %s", exc)
            return None
        except Exception as exc:
            self.init_error = exc
            logger.exception("Cloud collector failed to init")
            return None
        self.reference_id = reference_id
        self.metrics.set_context(reference_id=reference_id)

        logger.debug(
            "Cloud collector init successful (name=%s project_id=%d duration=%d reference_id=%s)",
            self.name,
            self.project_id,
            self.duration,
            self.reference_id,
        )
        return None

    def run(self, stop: threading.Event) -> None:
        while not stop.wait(self.push_interval_s):
            self._push_metrics()
        self._push_metrics()
        self._test_finished()

    def is_ready(self) -> bool:
        return True

    def collect(self, samples: Sequence[Sample]) -> None:
        if not self.reference_id:
            return
        self._buffer.append(CloudSample.from_sample(sample) for sample in samples)

    def open(self) -> None:
        """Lanza ``run`` en un hilo propio hasta que se llame a :meth:`close`."""

        if self._worker_thread and self._worker_thread.is_alive():
            return
        self._stop_event.clear()
        self._worker_thread = threading.Thread(
            target=self.run, args=(self._stop_event,), name="cloud-collector", daemon=True
        )
        self._worker_thread.start()

    def close(self) -> None:
        """Detiene el hilo de :meth:`open` tras el envío final y la notificación.

        Without a prior :meth:`open` the engine is expected to drive :meth:`run`
        itself; anything still buffered is discarded.
        """

        if self._worker_thread is None:
            logger.debug(
                "Cloud collector closed without a worker thread (buffered=%d)", len(self._buffer)
            )
        else:
            self._stop_event.set()
            self._worker_thread.join()
            self._worker_thread = None
        self._registrar.close()

    def __str__(self) -> str:
        if self.reference_id:
            return f"Cloud ({self.web_url}/{self.reference_id})"
        if isinstance(self.init_error, self.recognized_errors):
            return str(self.init_error)
        return INIT_FAILED_MESSAGE

    # Envíos --------------------------------------------------------------------
    def _push_metrics(self) -> None:
        buffer = self._buffer.drain()
        if not buffer:
            return

        try:
            self._registrar.push(self.reference_id, buffer)
        except CloudError as exc:
            logger.warning("Failed to send metrics to cloud (samples=%d): %s", len(buffer), exc)
            self.metrics.record_push_failure(len(buffer))
            return
        except Exception:
            logger.exception("Unexpected error sending metrics to cloud (samples=%d)", len(buffer))
            self.metrics.record_push_failure(len(buffer))
            return
        self.metrics.record_push(len(buffer))

    def _test_finished(self) -> None:
        if not self.reference_id or self._finished:
            return
        self._finished = True

        thresholds, tainted = build_threshold_result(self.thresholds)
        try:
            self._registrar.finish(self.reference_id, thresholds, tainted)
        except CloudError as exc:
            logger.warning("Failed to send test finished to cloud: %s", exc)
            self.metrics.record_notify_failure()
        except Exception:
            logger.exception("Unexpected error sending test finished to cloud")
            self.metrics.record_notify_failure()
        self.metrics.maybe_log(force=True)
