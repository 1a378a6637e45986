"""
FastAPI app exposing POST /think.

Takes the simulation's cycle count and psychological state, asks the LLM
provider for a self-reflective thought, and returns it together with metric
deltas derived from the text. Every failure is answered with a JSON body;
provider failures carry a fallback thought so callers always have something
to show.
"""

from __future__ import annotations

import asyncio
import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from service.analysis import SYSTEM_PROMPT, analyze_thought, build_prompt, sampling_temperature
from service.provider import ChatCompletionsProvider, ProviderError
from service.schemas import ThinkRequest, ThinkResponse, describe_validation_error
from sisyphus.thoughts import FALLBACK_THOUGHT
from utils.logging import log_event


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error(status: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": error, "message": message})


def create_app(provider: Optional[ChatCompletionsProvider] = None) -> FastAPI:
    """Build the app; pass a provider to override the environment-configured one."""

    app = FastAPI(
        title="Sisyphus Thought Service",
        description="LLM self-reflection for the eternal boulder simulation",
        version="0.1.0",
    )
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["POST"], allow_headers=["*"])
    app.state.provider = provider or ChatCompletionsProvider()

    @app.post("/think")
    async def think(request: Request):
        raw = await request.body()
        try:
            body = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            log_event("think_rejected", {"reason": "invalid_json"})
            return _error(400, "Invalid JSON", "Request body must be valid JSON")

        if not isinstance(body, dict) or "attemptCount" not in body or not body.get("psychologicalState"):
            log_event("think_rejected", {"reason": "missing_fields"})
            return _error(400, "Missing required fields", "attemptCount and psychologicalState are required")

        try:
            req = ThinkRequest.model_validate(body)
        except ValidationError as e:
            message = describe_validation_error(e)
            log_event("think_rejected", {"reason": "invalid_fields", "message": message})
            return _error(400, "Invalid fields", message)

        state = req.psychologicalState
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_prompt(req.attemptCount, state)},
        ]

        try:
            # Blocking HTTP call; run it in the default executor so other requests proceed.
            loop = asyncio.get_running_loop()
            completion = await loop.run_in_executor(
                None,
                lambda: app.state.provider.chat(messages, temperature=sampling_temperature(state)),
            )
            evolution = analyze_thought(completion.text, req.attemptCount)
        except Exception as e:
            # Any provider or analysis failure still answers with the fallback body.
            kind = "provider_error" if isinstance(e, ProviderError) else "unexpected_error"
            log_event(kind, {"attempt": req.attemptCount, "error": repr(e)})
            content: Dict[str, Any] = {
                "error": "Failed to generate AI thought",
                "fallback": FALLBACK_THOUGHT.format(cycle=req.attemptCount),
                "timestamp": _now_iso(),
            }
            if os.environ.get("SISYPHUS_ENV") == "development":
                content["details"] = str(e)
            return JSONResponse(status_code=500, content=content)

        log_event("think", {"attempt": req.attemptCount, "tokens": completion.tokens, **evolution.model_dump()})

        response = ThinkResponse(
            thought=completion.text,
            attempt=req.attemptCount,
            stateEvolution=evolution,
            timestamp=_now_iso(),
            model=completion.model,
            tokens=completion.tokens,
        )
        return JSONResponse(status_code=200, content=response.model_dump())

    @app.api_route("/think", methods=["GET", "PUT", "PATCH", "DELETE"])
    async def think_wrong_method():
        return _error(405, "Method Not Allowed", "Only POST requests are accepted")

    return app
