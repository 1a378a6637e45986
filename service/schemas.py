"""
Wire schemas for the thought service.

Field names follow the JSON protocol (camelCase) so request and response
bodies validate directly.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, ValidationError


class PsychologicalState(BaseModel):
    despair: float = Field(..., ge=0.0, le=1.0)
    awareness: float = Field(..., ge=0.0, le=1.0)
    resignation: float = Field(..., ge=0.0, le=1.0)


class ThinkRequest(BaseModel):
    attemptCount: int = Field(..., ge=0, description="Cycles completed so far")
    psychologicalState: PsychologicalState


class StateEvolution(BaseModel):
    despairDelta: float = 0.0
    awarenessDelta: float = 0.0
    resignationDelta: float = 0.0


class ThinkResponse(BaseModel):
    thought: str
    stateEvolution: StateEvolution
    attempt: Optional[int] = None
    timestamp: Optional[str] = None
    model: Optional[str] = None
    tokens: int = 0


def describe_validation_error(exc: ValidationError) -> str:
    """One line naming each offending field, e.g. 'psychologicalState.despair: Field required'."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "body"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)
