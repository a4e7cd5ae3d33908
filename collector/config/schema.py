"""Typed configuration models implemented with dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence


def _as_str(value: Any, field_name: str, *, optional: bool = False) -> Optional[str]:
    if value is None:
        if optional:
            return None
        raise ValueError(f"'{field_name}' es obligatorio")
    text = str(value).strip()
    if not text and not optional:
        raise ValueError(f"'{field_name}' no puede estar vacío")
    return text or None


def _as_int(value: Any, field_name: str) -> int:
    if value is None:
        raise ValueError(f"'{field_name}' es obligatorio")
    if isinstance(value, bool):
        raise ValueError(f"'{field_name}' debe ser un entero válido")
    try:
        result = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"'{field_name}' debe ser un entero válido") from exc
    return result


def _as_float(value: Any, field_name: str) -> float:
    if value is None:
        raise ValueError(f"'{field_name}' es obligatorio")
    try:
        result = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"'{field_name}' debe ser numérico") from exc
    return result


def _as_optional_float(value: Any, field_name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    result = _as_float(value, field_name)
    return result


def _as_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "si", "sí"}:
        return True
    if text in {"0", "false", "no"}:
        return False
    return default


@dataclass(frozen=True)
class Stage:
    """Tramo de carga con duración fija y objetivo opcional de VUs."""

    duration_s: float
    target: Optional[int] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Stage":
        duration = _as_float(data.get("duration_s", data.get("duration")), "stages[].duration_s")
        if duration < 0:
            raise ValueError("stages[].duration_s debe ser >= 0")
        target_raw = data.get("target")
        target = _as_int(target_raw, "stages[].target") if target_raw not in (None, "") else None
        return cls(duration_s=duration, target=target)

    def to_dict(self) -> Dict[str, Any]:
        return {"duration_s": self.duration_s, "target": self.target}


@dataclass
class ExternalCloudConfig:
    """Bloque ``external.cloud`` de las opciones del script."""

    name: Optional[str] = None
    project_id: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "ExternalCloudConfig":
        if not data:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError("external.cloud debe ser un mapa")
        name = _as_str(data.get("name"), "external.cloud.name", optional=True)
        project_raw = data.get("project_id", data.get("projectID"))
        project_id = _as_int(project_raw, "external.cloud.project_id") if project_raw not in (None, "") else 0
        if project_id < 0:
            raise ValueError("external.cloud.project_id debe ser >= 0")
        return cls(name=name, project_id=project_id)

    def get_name(self, script_path: Optional[str] = None) -> str:
        """Nombre explícito o, en su defecto, el nombre de archivo del script."""

        if self.name:
            return self.name
        if not script_path:
            return ""
        return script_path.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "project_id": self.project_id}


@dataclass
class RunOptions:
    """Opciones de ejecución relevantes para el colector."""

    stages: List[Stage] = field(default_factory=list)
    duration_s: Optional[float] = None
    thresholds: Dict[str, List[str]] = field(default_factory=dict)
    external: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "RunOptions":
        if not data:
            return cls()
        stages_payload = data.get("stages") or []
        if not isinstance(stages_payload, Sequence) or isinstance(stages_payload, str):
            raise ValueError("stages debe ser una lista")
        stages = [Stage.from_mapping(stage) for stage in stages_payload]

        duration = _as_optional_float(data.get("duration_s", data.get("duration")), "duration_s")
        if duration is not None and duration < 0:
            raise ValueError("duration_s debe ser >= 0")

        thresholds_payload = data.get("thresholds") or {}
        if not isinstance(thresholds_payload, Mapping):
            raise ValueError("thresholds debe ser un mapa métrica -> expresiones")
        thresholds: Dict[str, List[str]] = {}
        for metric, sources in thresholds_payload.items():
            if isinstance(sources, str):
                sources = [sources]
            if not isinstance(sources, Sequence):
                raise ValueError(f"thresholds.{metric} debe ser una lista de expresiones")
            thresholds[str(metric)] = [str(source) for source in sources]

        external = data.get("external") or {}
        if not isinstance(external, Mapping):
            raise ValueError("external debe ser un mapa")
        return cls(stages=stages, duration_s=duration, thresholds=thresholds, external=dict(external))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stages": [stage.to_dict() for stage in self.stages],
            "duration_s": self.duration_s,
            "thresholds": {name: list(sources) for name, sources in self.thresholds.items()},
            "external": dict(self.external),
        }


@dataclass
class RetrySettings:
    max_attempts: int = 3
    base_delay_s: float = 0.5
    max_backoff_s: Optional[float] = 10.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "RetrySettings":
        if not data:
            return cls()
        attempts_raw = data.get("max_attempts")
        max_attempts = _as_int(3 if attempts_raw in (None, "") else attempts_raw, "retry.max_attempts")
        if max_attempts < 1:
            raise ValueError("retry.max_attempts debe ser >= 1")
        base_delay_raw = data.get("base_delay_s")
        base_delay = _as_float(0.5 if base_delay_raw in (None, "") else base_delay_raw, "retry.base_delay_s")
        if base_delay < 0:
            raise ValueError("retry.base_delay_s debe ser >= 0")
        max_backoff_raw = data.get("max_backoff_s", 10.0)
        max_backoff = _as_optional_float(max_backoff_raw, "retry.max_backoff_s")
        if max_backoff is not None and max_backoff < 0:
            raise ValueError("retry.max_backoff_s debe ser >= 0")
        return cls(max_attempts=max_attempts, base_delay_s=base_delay, max_backoff_s=max_backoff)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_attempts": self.max_attempts,
            "base_delay_s": self.base_delay_s,
            "max_backoff_s": self.max_backoff_s,
        }


DEFAULT_INGEST_URL = "https://ingest.loadimpact.com/v1"
DEFAULT_WEB_URL = "https://app.loadimpact.com/k6/runs"


@dataclass
class CloudSettings:
    url: str = DEFAULT_INGEST_URL
    token: Optional[str] = None
    web_url: str = DEFAULT_WEB_URL
    timeout_s: float = 10.0
    push_interval_s: float = 1.0
    verify_ssl: bool = True
    retry: RetrySettings = field(default_factory=RetrySettings)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "CloudSettings":
        if not data:
            return cls()
        url = _as_str(data.get("url") or DEFAULT_INGEST_URL, "url")
        token = _as_str(data.get("token"), "token", optional=True)
        web_url = _as_str(data.get("web_url") or DEFAULT_WEB_URL, "web_url")
        timeout_raw = data.get("timeout_s")
        timeout_s = _as_float(10.0 if timeout_raw in (None, "") else timeout_raw, "timeout_s")
        if timeout_s <= 0:
            raise ValueError("timeout_s debe ser > 0")
        interval_raw = data.get("push_interval_s")
        push_interval_s = _as_float(1.0 if interval_raw in (None, "") else interval_raw, "push_interval_s")
        if push_interval_s <= 0:
            raise ValueError("push_interval_s debe ser > 0")
        verify_ssl = _as_bool(data.get("verify_ssl"), True)
        retry = RetrySettings.from_mapping(data.get("retry"))
        return cls(
            url=url,
            token=token,
            web_url=web_url,
            timeout_s=timeout_s,
            push_interval_s=push_interval_s,
            verify_ssl=verify_ssl,
            retry=retry,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "token": self.token,
            "web_url": self.web_url,
            "timeout_s": self.timeout_s,
            "push_interval_s": self.push_interval_s,
            "verify_ssl": self.verify_ssl,
            "retry": self.retry.to_dict(),
        }
