"""
OpenAI-compatible chat completions provider.

Thin requests-based client; any transport failure or malformed payload is
raised as ProviderError so the endpoint has a single thing to catch.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests


class ProviderError(RuntimeError):
    """The upstream LLM call failed or returned something unusable."""


@dataclass
class Completion:
    text: str
    model: str
    tokens: int = 0


class ChatCompletionsProvider:
    """Client for a /chat/completions endpoint."""

    def __init__(
        self,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-3.5-turbo",
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        max_tokens: int = 250,
    ):
        """
        Args:
            base_url: API root, without the trailing /chat/completions.
            model: Model name sent with every request.
            api_key: Bearer token; defaults to $OPENAI_API_KEY.
            timeout: Request timeout in seconds.
            max_tokens: Completion length cap.
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key if api_key is not None else os.environ.get("OPENAI_API_KEY", "")
        self.timeout = timeout
        self.max_tokens = int(max_tokens)
        self._session = requests.Session()

    @classmethod
    def from_config(cls, cfg: dict) -> "ChatCompletionsProvider":
        return cls(
            base_url=cfg.get("base_url", "https://api.openai.com/v1"),
            model=cfg.get("model", "gpt-3.5-turbo"),
            timeout=float(cfg.get("timeout", 30.0)),
            max_tokens=int(cfg.get("max_tokens", 250)),
        )

    def chat(self, messages: List[Dict[str, str]], temperature: float = 0.7) -> Completion:
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": temperature,
        }
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            response = self._session.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data: Dict[str, Any] = response.json()
        except requests.RequestException as e:
            raise ProviderError(f"chat completion request failed: {e}") from e
        except ValueError as e:
            raise ProviderError(f"chat completion returned invalid JSON: {e}") from e

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"chat completion missing message content: {e}") from e
        if not isinstance(text, str) or not text.strip():
            raise ProviderError("chat completion returned empty content")

        try:
            usage = data.get("usage") or {}
            tokens = int(usage.get("total_tokens", 0) or 0)
        except (AttributeError, TypeError, ValueError) as e:
            raise ProviderError(f"chat completion returned malformed usage: {e}") from e

        return Completion(text=text, model=str(data.get("model", self.model)), tokens=tokens)

    def close(self) -> None:
        self._session.close()
