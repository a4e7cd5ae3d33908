import json
import logging
import threading
import time
from typing import Dict, Optional

COUNTERS = (
    "batches_pushed",
    "samples_pushed",
    "push_failures",
    "samples_dropped",
    "notify_failures",
)


class CollectorMetrics:
    """Contadores de envío del colector, volcados periódicamente al log.

    The flush thread is the only writer; ``snapshot`` may be read from any
    thread (the status API does so).
    """

    def __init__(
        self,
        log_interval_s: float = 30.0,
        logger: Optional[logging.Logger] = None,
        clock=time.monotonic,
    ) -> None:
        self.log_interval_s = max(0.0, float(log_interval_s))
        self._logger = logger or logging.getLogger(__name__)
        self._clock = clock
        self._lock = threading.Lock()
        self._started = clock()
        self._last_log = self._started
        self._counters: Dict[str, int] = dict.fromkeys(COUNTERS, 0)
        self._logged: Dict[str, int] = dict(self._counters)
        self._reference_id: Optional[str] = None

    def set_context(self, *, reference_id: Optional[str]) -> None:
        with self._lock:
            self._reference_id = reference_id or None

    def record_push(self, count: int) -> None:
        self._bump(batches_pushed=1, samples_pushed=max(0, count))

    def record_push_failure(self, dropped: int) -> None:
        self._bump(push_failures=1, samples_dropped=max(0, dropped))

    def record_notify_failure(self) -> None:
        self._bump(notify_failures=1)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counters)

    def _bump(self, **increments: int) -> None:
        with self._lock:
            for key, value in increments.items():
                self._counters[key] += value
        self.maybe_log()

    def maybe_log(self, force: bool = False) -> None:
        now = self._clock()
        with self._lock:
            elapsed = now - self._last_log
            if not force and self.log_interval_s > 0.0 and elapsed < self.log_interval_s:
                return
            payload = {
                "type": "collector_metrics",
                "reference_id": self._reference_id,
                "uptime_s": round(now - self._started, 3),
                "interval_s": round(elapsed, 3),
                "counters": dict(self._counters),
                "delta": {key: value - self._logged[key] for key, value in self._counters.items()},
            }
            self._last_log = now
            self._logged = dict(self._counters)

        self._logger.info("collector_metrics %s", json.dumps(payload, sort_keys=True))
