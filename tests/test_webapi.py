from __future__ import annotations

import pytest

pytest.importorskip("fastapi")
pytest.importorskip("httpx")
from fastapi.testclient import TestClient

from collector.cloud import Collector, NotAuthorizedError
from collector.cloud.models import CreateTestRunResponse
from collector.stats import ThresholdTracker
from collector.webapi import app, registry


@pytest.fixture(autouse=True)
def clear_auth_env(monkeypatch):
    monkeypatch.delenv("COLLECTOR_WEBAPI_TOKEN", raising=False)
    monkeypatch.delenv("COLLECTOR_WEBAPI_TOKEN_FILE", raising=False)
    registry.clear()
    yield
    registry.clear()


@pytest.fixture
def api_client():
    return TestClient(app)


class StubClient:
    def __init__(self, error=None):
        self.error = error

    def create_test_run(self, test_run):
        if self.error is not None:
            raise self.error
        return CreateTestRunResponse(reference_id="ref-42")

    def push_metric(self, reference_id, samples):
        pass

    def test_finished(self, reference_id, thresholds, tainted):
        pass


def build_collector(error=None) -> Collector:
    collector = Collector(
        name="script.js",
        project_id=0,
        thresholds=ThresholdTracker(),
        duration=-1,
        client=StubClient(error),
    )
    collector.init()
    return collector


def test_status_without_collector_conflicts(api_client):
    response = api_client.get("/collector/status")

    assert response.status_code == 409


def test_status_reports_active_run(api_client):
    registry.register(build_collector())

    response = api_client.get("/collector/status")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "Cloud (https://app.loadimpact.com/k6/runs/ref-42)"
    assert body["ready"] is True
    assert body["reference_id"] == "ref-42"
    assert body["counters"]["batches_pushed"] == 0


def test_status_reports_authorization_failure(api_client):
    registry.register(build_collector(NotAuthorizedError()))

    body = api_client.get("/collector/status").json()

    assert body["status"] == "Not allowed to upload result to the cloud"
    assert body["reference_id"] is None


def test_status_requires_token_when_configured(api_client, monkeypatch):
    monkeypatch.setenv("COLLECTOR_WEBAPI_TOKEN", "s3cret")
    registry.register(build_collector())

    assert api_client.get("/collector/status").status_code == 401
    response = api_client.get("/collector/status", headers={"Authorization": "Bearer s3cret"})
    assert response.status_code == 200


def test_status_accepts_token_from_file(api_client, monkeypatch, tmp_path):
    token_path = tmp_path / "token"
    token_path.write_text("from-file\n", encoding="utf-8")
    monkeypatch.setenv("COLLECTOR_WEBAPI_TOKEN_FILE", str(token_path))
    registry.register(build_collector())

    wrong = api_client.get("/collector/status", headers={"Authorization": "Bearer nope"})
    right = api_client.get("/collector/status", headers={"Authorization": "Bearer from-file"})

    assert wrong.status_code == 401
    assert wrong.json()["detail"] == "Token inválido"
    assert right.status_code == 200
