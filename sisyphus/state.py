from __future__ import annotations
from dataclasses import dataclass, field
from typing import List


DEFAULT_FEEDBACK = "Select an action to interact with the AI"


@dataclass
class Metrics:
    despair: float = 0.1        # 0..0.99
    awareness: float = 0.3      # 0..1
    resignation: float = 0.0    # 0..0.99
    absurdity: float = 0.0      # 0..1
    hope: float = 0.8           # 0.01..1


@dataclass(frozen=True)
class Thought:
    timestamp: str              # HH:MM:SS
    text: str
    cycle: int


@dataclass
class SisyphusState:
    """State for the eternal boulder simulation.

    Keep this dataclass logic-free; transitions belong in sisyphus/dynamics.py
    and sisyphus/visitors.py.
    """

    cycle_count: int = 0
    escape_attempts: int = 0
    witnesses: int = 1
    paused: bool = False

    metrics: Metrics = field(default_factory=Metrics)

    # Boulder
    boulder_progress: float = 0.0   # 0..1 along the hill curve
    rolling_up: bool = True

    # Logs, most recent first
    thoughts: List[Thought] = field(default_factory=list)
    system_messages: List[str] = field(default_factory=list)

    feedback: str = DEFAULT_FEEDBACK
