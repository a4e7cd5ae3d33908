"""Unit tests for the typed configuration schema helpers."""

from __future__ import annotations

import pytest

from collector.config import store as config_store
from collector.config.schema import (
    CloudSettings,
    ExternalCloudConfig,
    RetrySettings,
    RunOptions,
    Stage,
)


def build_options_payload(**overrides):
    payload = {
        "stages": [
            {"duration_s": 30, "target": 10},
            {"duration_s": 60, "target": 50},
            {"duration_s": 30, "target": 0},
        ],
        "thresholds": {
            "http_req_duration": ["p95<200", "avg<100"],
            "http_req_failed": "rate<0.1",
        },
        "external": {"cloud": {"name": "Banco de pruebas", "projectID": 12}},
    }
    payload.update(overrides)
    return payload


def test_run_options_parse_stages_and_thresholds():
    options = RunOptions.from_mapping(build_options_payload())

    assert options.stages == [Stage(30.0, 10), Stage(60.0, 50), Stage(30.0, 0)]
    assert options.duration_s is None
    assert options.thresholds == {
        "http_req_duration": ["p95<200", "avg<100"],
        "http_req_failed": ["rate<0.1"],
    }


def test_run_options_reject_negative_stage_duration():
    payload = build_options_payload(stages=[{"duration_s": -5}])

    with pytest.raises(ValueError, match="stages\\[\\].duration_s debe ser >= 0"):
        RunOptions.from_mapping(payload)


def test_run_options_reject_non_mapping_thresholds():
    with pytest.raises(ValueError, match="thresholds"):
        RunOptions.from_mapping({"thresholds": ["p95<200"]})


def test_external_cloud_config_accepts_legacy_project_key():
    options = RunOptions.from_mapping(build_options_payload())
    ext = ExternalCloudConfig.from_mapping(options.external["cloud"])

    assert ext.project_id == 12
    assert ext.get_name("/scripts/load.js") == "Banco de pruebas"


@pytest.mark.parametrize(
    "script_path, expected",
    [
        ("/home/user/scripts/load.js", "load.js"),
        ("C:\\tests\\smoke.js", "smoke.js"),
        (None, ""),
    ],
)
def test_external_cloud_config_falls_back_to_script_name(script_path, expected):
    assert ExternalCloudConfig().get_name(script_path) == expected


def test_retry_settings_validate_attempts():
    with pytest.raises(ValueError, match="retry.max_attempts debe ser >= 1"):
        RetrySettings.from_mapping({"max_attempts": 0})


def test_cloud_settings_require_positive_push_interval():
    with pytest.raises(ValueError, match="push_interval_s debe ser > 0"):
        CloudSettings.from_mapping({"push_interval_s": 0})


def test_cloud_settings_from_env():
    env = {
        "CLOUD_COLLECTOR_URL": "http://ingest.local/v1",
        "CLOUD_COLLECTOR_TOKEN": "abc",
        "CLOUD_COLLECTOR_PUSH_INTERVAL_S": "2.5",
        "CLOUD_COLLECTOR_VERIFY_SSL": "false",
        "CLOUD_COLLECTOR_RETRY_MAX_ATTEMPTS": "4",
    }

    settings = config_store.cloud_settings_from_env(env)

    assert settings.url == "http://ingest.local/v1"
    assert settings.token == "abc"
    assert settings.push_interval_s == 2.5
    assert settings.verify_ssl is False
    assert settings.retry.max_attempts == 4
    assert settings.retry.base_delay_s == 0.5


def test_cloud_settings_from_env_tolerates_missing_token():
    settings = config_store.cloud_settings_from_env({})

    assert settings.token is None
    assert settings.url == "https://ingest.loadimpact.com/v1"
    assert settings.timeout_s == 10.0


def test_load_cloud_settings_reads_token_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("CLOUD_COLLECTOR_TOKEN", "from-env")
    cfg_path = tmp_path / "cloud.yaml"
    config_store.save_cloud_settings(CloudSettings(token="never-written", push_interval_s=3.0), cfg_path)

    assert "never-written" not in cfg_path.read_text(encoding="utf-8")

    settings = config_store.load_cloud_settings(cfg_path)
    assert settings.token == "from-env"
    assert settings.push_interval_s == 3.0


def test_load_cloud_settings_uses_packaged_defaults(monkeypatch):
    monkeypatch.delenv("CLOUD_COLLECTOR_TOKEN", raising=False)

    settings = config_store.load_cloud_settings()

    assert settings.token is None
    assert settings.retry.max_attempts == 3


def test_load_run_options_from_yaml(tmp_path):
    cfg_path = tmp_path / "options.yaml"
    cfg_path.write_text("duration_s: 45\nthresholds:\n  checks: ['rate>0.9']\n", encoding="utf-8")

    options = config_store.load_run_options(cfg_path)

    assert options.duration_s == 45.0
    assert options.thresholds == {"checks": ["rate>0.9"]}


def test_load_env_file_feeds_env_settings(tmp_path):
    env_path = tmp_path / ".env"
    env_path.write_text("CLOUD_COLLECTOR_TOKEN=dotenv-token\nCLOUD_COLLECTOR_TIMEOUT_S=3\n", encoding="utf-8")

    settings = config_store.cloud_settings_from_env(config_store.load_env_file(env_path))

    assert settings.token == "dotenv-token"
    assert settings.timeout_s == 3.0
