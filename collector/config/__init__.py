"""Configuration schemas and persistence helpers for the cloud collector."""

from .schema import CloudSettings, ExternalCloudConfig, RetrySettings, RunOptions, Stage
from .store import (
    TOKEN_ENV,
    cloud_settings_from_env,
    load_cloud_settings,
    load_env_file,
    load_run_options,
    save_cloud_settings,
)

__all__ = [
    "CloudSettings",
    "ExternalCloudConfig",
    "RetrySettings",
    "RunOptions",
    "Stage",
    "TOKEN_ENV",
    "cloud_settings_from_env",
    "load_cloud_settings",
    "load_env_file",
    "load_run_options",
    "save_cloud_settings",
]
