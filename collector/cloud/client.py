"""Cliente HTTP del servicio de agregación en la nube."""

from __future__ import annotations

import json
import logging
import random
import time
from typing import Any, Iterable, Optional

import requests

from collector.config.schema import CloudSettings

from .models import CloudSample, CreateTestRunResponse, TestRun, ThresholdResult

logger = logging.getLogger(__name__)

RETRIABLE_4XX = {408, 409, 425, 429}
UNAUTHORIZED = {401, 403}


class CloudError(Exception):
    """Fallo al comunicarse con el servicio en la nube."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotAuthorizedError(CloudError):
    def __init__(self, message: str = "Not allowed to upload result to the cloud", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class CloudClient:
    """Realiza las llamadas de registro, envío de métricas y cierre de la prueba."""

    def __init__(
        self,
        settings: CloudSettings,
        *,
        version: str = "dev",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings
        self.base_url = settings.url.rstrip("/")
        self.token = settings.token
        self.version = version
        self.max_attempts = settings.retry.max_attempts
        self.base_backoff = settings.retry.base_delay_s
        self.max_backoff = settings.retry.max_backoff_s
        self.timeout = settings.timeout_s
        self.session = session or requests.Session()
        self.session.verify = settings.verify_ssl
        self._sleep = time.sleep

    def create_test_run(self, test_run: TestRun) -> CreateTestRunResponse:
        response = self._post("/tests", test_run.to_dict())
        try:
            body = response.json()
        except ValueError as exc:
            raise CloudError(f"Invalid JSON in test run response: {exc}", status_code=response.status_code) from exc
        if not isinstance(body, dict):
            raise CloudError("Unexpected test run response payload", status_code=response.status_code)
        return CreateTestRunResponse.from_mapping(body)

    def push_metric(self, reference_id: str, samples: Iterable[CloudSample]) -> None:
        payload = [sample.to_dict() for sample in samples]
        self._post(f"/metrics/{reference_id}", payload)

    def test_finished(self, reference_id: str, thresholds: ThresholdResult, tainted: bool) -> None:
        payload = {"status": 1 if tainted else 0, "thresholds": thresholds}
        self._post(f"/tests/{reference_id}", payload)

    def close(self) -> None:
        self.session.close()

    def _headers(self) -> dict:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": f"cloud-collector/{self.version}",
        }
        if self.token:
            headers["Authorization"] = f"Token {self.token}"
        return headers

    def _post(self, path: str, payload: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        data = json.dumps(payload)
        headers = self._headers()
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self.session.post(url, headers=headers, data=data, timeout=self.timeout)
            except requests.RequestException as exc:
                reason = f"{type(exc).__name__}: {exc}"
                if attempt == self.max_attempts:
                    raise CloudError(
                        f"POST {path} failed after {attempt}/{self.max_attempts} attempts ({reason})"
                    ) from exc
                delay = self._compute_backoff(attempt)
                logger.warning(
                    "CloudClient POST %s attempt %d/%d raised %s; retrying in %.2fs.",
                    path,
                    attempt,
                    self.max_attempts,
                    reason,
                    delay,
                )
                self._sleep(delay)
                continue

            if response.status_code < 300:
                if attempt > 1:
                    logger.info("CloudClient POST %s succeeded after %d attempts.", path, attempt)
                return response

            if response.status_code in UNAUTHORIZED:
                raise NotAuthorizedError(status_code=response.status_code)

            body = self._extract_body(response)
            message = f"POST {path} failed (HTTP {response.status_code}) body={body}"
            if not self._should_retry(response.status_code) or attempt == self.max_attempts:
                raise CloudError(message, status_code=response.status_code)

            delay = self._compute_backoff(attempt)
            logger.warning(
                "CloudClient POST %s attempt %d/%d failed (HTTP %s); retrying in %.2fs.",
                path,
                attempt,
                self.max_attempts,
                response.status_code,
                delay,
            )
            self._sleep(delay)

        raise CloudError(f"POST {path} failed without a response")

    def _should_retry(self, status_code: int) -> bool:
        if status_code >= 500:
            return True
        if 400 <= status_code < 500:
            return status_code in RETRIABLE_4XX
        return False

    def _compute_backoff(self, attempt: int) -> float:
        exp_delay = self.base_backoff * (2 ** (attempt - 1))
        exp_delay = min(exp_delay, self.max_backoff) if self.max_backoff else exp_delay
        jitter = random.uniform(0, self.base_backoff) if self.base_backoff else 0.0
        total = exp_delay + jitter
        if self.max_backoff:
            total = min(total, self.max_backoff)
        return total

    @staticmethod
    def _extract_body(response: requests.Response, limit: int = 512) -> str:
        try:
            body = response.text or ""
        except Exception as exc:  # pragma: no cover - extremely rare
            return f"<unable to decode body: {exc}>"
        if len(body) <= limit:
            return body
        return f"{body[:limit]}... [truncated {len(body) - limit} chars]"
