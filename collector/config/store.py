"""Helpers to load, validate and persist configuration files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import dotenv_values

from .schema import CloudSettings, RunOptions

CONFIG_DIR = Path(__file__).resolve().parent

TOKEN_ENV = "CLOUD_COLLECTOR_TOKEN"


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at {path}, found {type(data).__name__}")
    return data


def _write_yaml(path: Path, payload: Mapping[str, Any]):
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(payload, fh, sort_keys=False, allow_unicode=True)


def load_run_options(path: Path) -> RunOptions:
    """Read and validate run options (stages, duration, thresholds) from YAML."""

    raw = _read_yaml(path)
    return RunOptions.from_mapping(raw)


def load_cloud_settings(path: Optional[Path] = None) -> CloudSettings:
    """Read and validate client settings from cloud.yaml.

    The token is never stored in the file; it is always taken from the
    environment so that it is read once, when the settings are loaded.
    """

    cfg_path = path or CONFIG_DIR / "cloud.yaml"
    raw = _read_yaml(cfg_path)
    raw["token"] = os.environ.get(TOKEN_ENV) or raw.get("token")
    return CloudSettings.from_mapping(raw)


def save_cloud_settings(settings: CloudSettings, path: Optional[Path] = None):
    """Persist the client settings to cloud.yaml without the token."""

    cfg_path = path or CONFIG_DIR / "cloud.yaml"
    payload = settings.to_dict()
    payload.pop("token", None)
    _write_yaml(cfg_path, payload)


def cloud_settings_from_env(env: Optional[Mapping[str, Any]] = None) -> CloudSettings:
    """Create client settings from environment variables."""

    env = os.environ if env is None else env
    retry_payload = {
        "max_attempts": env.get("CLOUD_COLLECTOR_RETRY_MAX_ATTEMPTS"),
        "base_delay_s": env.get("CLOUD_COLLECTOR_RETRY_BASE_DELAY_S"),
        "max_backoff_s": env.get("CLOUD_COLLECTOR_RETRY_MAX_BACKOFF_S", 10.0),
    }

    payload = {
        "url": env.get("CLOUD_COLLECTOR_URL"),
        "token": env.get(TOKEN_ENV),
        "web_url": env.get("CLOUD_COLLECTOR_WEB_URL"),
        "timeout_s": env.get("CLOUD_COLLECTOR_TIMEOUT_S"),
        "push_interval_s": env.get("CLOUD_COLLECTOR_PUSH_INTERVAL_S"),
        "retry": retry_payload,
    }
    verify_ssl = env.get("CLOUD_COLLECTOR_VERIFY_SSL", True)
    if isinstance(verify_ssl, str):
        verify_ssl = verify_ssl.strip().lower() not in {"0", "false", "no"}
    payload["verify_ssl"] = verify_ssl
    return CloudSettings.from_mapping(payload)


def load_env_file(path: Path) -> Mapping[str, str]:
    """Load key/value pairs from a dotenv file."""

    values = dotenv_values(str(path))
    return {k: v for k, v in values.items() if v is not None}
