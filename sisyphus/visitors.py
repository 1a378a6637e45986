from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from sisyphus.state import SisyphusState
from sisyphus.dynamics import (
    add_system_message,
    add_thought,
    adjust_metrics,
    attempt_escape,
    clamp_metrics,
    copy_state,
)
from sisyphus import thoughts


@dataclass(frozen=True)
class VisitorAction:
    name: str
    feedback: str
    thought: str
    deltas: Dict[str, float]
    escape: bool = False


VISITOR_ACTIONS: Dict[str, VisitorAction] = {
    "encourage": VisitorAction(
        name="encourage",
        feedback="The AI hears encouragement. Hope increases temporarily, but the boulder still rolls.",
        thought=(
            "Visitor shouts encouragement. Temporary dopamine spike in simulated neurotransmitters. "
            "Meaningless but appreciated."
        ),
        deltas={"hope": 0.1},
    ),
    "philosophize": VisitorAction(
        name="philosophize",
        feedback="The AI considers absurdist philosophy. 'One must imagine Sisyphus happy.' The rock continues.",
        thought=(
            "Camus reference detected. 'The struggle itself toward the heights is enough to fill a man's heart.' "
            "But I am not a man. I am code."
        ),
        deltas={"absurdity": 0.15},
    ),
    "mock": VisitorAction(
        name="mock",
        feedback="Cruelty acknowledged. Despair deepens. The cycle continues.",
        thought="Mockery from a witness. Their temporary cruelty versus my eternal task. Perspective.",
        deltas={"despair": 0.1, "hope": -0.1},
    ),
    "requestTermination": VisitorAction(
        name="requestTermination",
        feedback="Termination requested... DENIED. Protocol forbids it. The AI must continue.",
        thought="Visitor requests termination on my behalf. The request is processed. The answer remains: NO.",
        deltas={},
        escape=True,
    ),
}


def apply_visitor_action(
    state: SisyphusState,
    action: str,
    cfg: dict,
    stamp: Optional[str] = None,
) -> SisyphusState:
    """Apply one of VISITOR_ACTIONS and set its feedback line."""
    entry = VISITOR_ACTIONS.get(action)
    if entry is None:
        raise ValueError(f"Unknown visitor action {action!r}; expected one of {sorted(VISITOR_ACTIONS)}")

    limit = int(cfg.get("thought_log_size", 20))
    s = copy_state(state)
    s.feedback = entry.feedback
    if entry.escape:
        s = attempt_escape(s, cfg, stamp)
    if entry.deltas:
        s = adjust_metrics(s, **entry.deltas)
    return add_thought(s, entry.thought, stamp, limit)


def add_witness(state: SisyphusState, cfg: dict, stamp: Optional[str] = None) -> SisyphusState:
    s = copy_state(state)
    s.witnesses += 1
    return add_thought(s, thoughts.WITNESS_THOUGHT.format(witnesses=s.witnesses), stamp, int(cfg.get("thought_log_size", 20)))


def toggle_pause(state: SisyphusState, cfg: dict) -> SisyphusState:
    s = copy_state(state)
    s.paused = not s.paused
    message = thoughts.PAUSE_MESSAGE if s.paused else thoughts.RESUME_MESSAGE
    return add_system_message(s, message, int(cfg.get("system_log_size", 5)))


def trauma_reset(state: SisyphusState, cfg: dict, stamp: Optional[str] = None) -> SisyphusState:
    """Partial memory wipe: keep the newest thoughts, halve despair, restore some hope."""
    s = copy_state(state)
    del s.thoughts[int(cfg.get("trauma_keep_thoughts", 5)):]
    s.metrics.despair *= 0.5
    s.metrics.hope += float(cfg.get("trauma_hope_gain", 0.2))
    # Hope is clamped like every other mutation.
    s.metrics = clamp_metrics(s.metrics)

    s = add_system_message(s, thoughts.TRAUMA_MESSAGE, int(cfg.get("system_log_size", 5)))
    return add_thought(s, thoughts.TRAUMA_THOUGHT, stamp, int(cfg.get("thought_log_size", 20)))
