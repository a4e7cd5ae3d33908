import json
import logging

import pytest

from collector.metrics import CollectorMetrics


def test_collector_metrics_logs_counters(caplog: pytest.LogCaptureFixture) -> None:
    """Los contadores acumulados se emiten como JSON en el log."""

    logger_name = "test.metrics"
    metrics = CollectorMetrics(log_interval_s=60.0, logger=logging.getLogger(logger_name))

    with caplog.at_level(logging.INFO, logger=logger_name):
        metrics.record_push(6)
        metrics.record_push(4)
        metrics.record_push_failure(dropped=3)
        metrics.record_notify_failure()
        metrics.maybe_log(force=True)

    metric_records = [rec for rec in caplog.records if rec.message.startswith("collector_metrics ")]
    assert metric_records, "Se esperaba al menos un log de métricas acumuladas"

    payload = json.loads(metric_records[-1].message.split(" ", 1)[1])
    counters = payload["counters"]
    delta = payload["delta"]

    assert payload["type"] == "collector_metrics"
    assert counters["batches_pushed"] == 2
    assert counters["samples_pushed"] == 10
    assert counters["push_failures"] == 1
    assert counters["samples_dropped"] == 3
    assert counters["notify_failures"] == 1

    assert delta == counters
    assert metrics.snapshot() == counters


def test_maybe_log_respects_interval(caplog: pytest.LogCaptureFixture) -> None:
    logger_name = "test.metrics.interval"
    metrics = CollectorMetrics(log_interval_s=3600.0, logger=logging.getLogger(logger_name))

    with caplog.at_level(logging.INFO, logger=logger_name):
        metrics.record_push(1)

    assert not [rec for rec in caplog.records if rec.name == logger_name]


def test_payload_carries_reference_id(caplog: pytest.LogCaptureFixture) -> None:
    logger_name = "test.metrics.context"
    metrics = CollectorMetrics(log_interval_s=60.0, logger=logging.getLogger(logger_name))

    with caplog.at_level(logging.INFO, logger=logger_name):
        metrics.maybe_log(force=True)
        metrics.set_context(reference_id="ref-7")
        metrics.maybe_log(force=True)

    payloads = [
        json.loads(rec.message.split(" ", 1)[1])
        for rec in caplog.records
        if rec.message.startswith("collector_metrics ")
    ]
    assert [payload["reference_id"] for payload in payloads] == [None, "ref-7"]
