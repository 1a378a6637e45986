from __future__ import annotations

from typing import Optional

import requests
from pydantic import ValidationError

from service.schemas import ThinkResponse
from sisyphus.state import Metrics


class ThoughtServiceError(RuntimeError):
    """Any failure talking to the thought service; callers fall back locally."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ThoughtServiceClient:
    """Blocking client for POST /think. Run it off the simulation thread."""

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout
        self._session = requests.Session()

    @classmethod
    def from_config(cls, cfg: dict) -> "ThoughtServiceClient":
        return cls(
            url=cfg.get("url", "http://127.0.0.1:8888/think"),
            timeout=float(cfg.get("timeout", 10.0)),
        )

    @staticmethod
    def build_payload(attempt_count: int, metrics: Metrics) -> dict:
        return {
            "attemptCount": int(attempt_count),
            "psychologicalState": {
                "despair": float(metrics.despair),
                "awareness": float(metrics.awareness),
                "resignation": float(metrics.resignation),
            },
        }

    def fetch(self, attempt_count: int, metrics: Metrics) -> ThinkResponse:
        try:
            response = self._session.post(
                self.url,
                json=self.build_payload(attempt_count, metrics),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ThoughtServiceError(f"thought service unreachable: {e}") from e

        if not 200 <= response.status_code < 300:
            raise ThoughtServiceError(
                f"thought service returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return ThinkResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ThoughtServiceError(f"thought service returned a malformed body: {e}") from e

    def close(self) -> None:
        self._session.close()
