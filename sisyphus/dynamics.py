from __future__ import annotations

import time
from dataclasses import replace
from typing import Optional

import numpy as np

from sisyphus.state import Metrics, SisyphusState, Thought
from sisyphus import thoughts


# Inclusive (lo, hi) per metric; every mutation goes through clamp_metrics.
METRIC_BOUNDS = {
    "despair": (0.0, 0.99),
    "awareness": (0.0, 1.0),
    "resignation": (0.0, 0.99),
    "absurdity": (0.0, 1.0),
    "hope": (0.01, 1.0),
}


def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x


def clamp_metrics(m: Metrics) -> Metrics:
    return Metrics(**{name: clamp(float(getattr(m, name)), lo, hi) for name, (lo, hi) in METRIC_BOUNDS.items()})


def wall_stamp() -> str:
    return time.strftime("%H:%M:%S")


def copy_state(state: SisyphusState) -> SisyphusState:
    s = replace(state)
    s.metrics = replace(state.metrics)
    s.thoughts = list(state.thoughts)
    s.system_messages = list(state.system_messages)
    return s


def adjust_metrics(state: SisyphusState, **deltas: float) -> SisyphusState:
    """Add deltas to metrics, then clamp. Returns a new state."""
    s = copy_state(state)
    for name, delta in deltas.items():
        if name not in METRIC_BOUNDS:
            raise ValueError(f"Unknown metric {name!r}")
        setattr(s.metrics, name, getattr(s.metrics, name) + float(delta))
    s.metrics = clamp_metrics(s.metrics)
    return s


def add_thought(state: SisyphusState, text: str, stamp: Optional[str] = None, limit: int = 20) -> SisyphusState:
    s = copy_state(state)
    s.thoughts.insert(0, Thought(timestamp=stamp or wall_stamp(), text=text, cycle=s.cycle_count))
    del s.thoughts[limit:]
    return s


def add_system_message(state: SisyphusState, message: str, limit: int = 5) -> SisyphusState:
    s = copy_state(state)
    s.system_messages.insert(0, message)
    del s.system_messages[limit:]
    return s


# ─────────────────────────────────────────────────────────────
# Transitions
# ─────────────────────────────────────────────────────────────

def attempt_escape(state: SisyphusState, cfg: dict, stamp: Optional[str] = None) -> SisyphusState:
    s = copy_state(state)
    s.escape_attempts += 1
    s = add_thought(s, thoughts.ESCAPE_THOUGHT, stamp, int(cfg.get("thought_log_size", 20)))
    s = add_system_message(
        s,
        thoughts.ESCAPE_MESSAGE.format(escapes=s.escape_attempts),
        int(cfg.get("system_log_size", 5)),
    )
    return adjust_metrics(s, awareness=float(cfg.get("escape_awareness_gain", 0.1)))


def handle_summit(
    state: SisyphusState,
    rng: np.random.Generator,
    cfg: dict,
    stamp: Optional[str] = None,
) -> SisyphusState:
    s = add_system_message(state, thoughts.SUMMIT_MESSAGE, int(cfg.get("system_log_size", 5)))

    # Draw first so the RNG stream does not depend on the cycle gate.
    roll = float(rng.random())
    if roll < float(cfg.get("escape_chance", 0.1)) and s.cycle_count > int(cfg.get("escape_min_cycle", 10)):
        s = attempt_escape(s, cfg, stamp)
    return s


def handle_base(state: SisyphusState, cfg: dict) -> SisyphusState:
    s = add_system_message(
        state,
        thoughts.BASE_MESSAGE.format(cycle=state.cycle_count),
        int(cfg.get("system_log_size", 5)),
    )
    every = int(cfg.get("despair_every", 10))
    if s.cycle_count % every == 0:
        step = float(cfg.get("base_despair_step", 0.05))
        s = adjust_metrics(s, despair=step, hope=-step)
    return s


def advance_boulder(
    state: SisyphusState,
    rng: np.random.Generator,
    cfg: dict,
    stamp: Optional[str] = None,
) -> SisyphusState:
    s = copy_state(state)

    # Slow ascent, fast descent.
    if s.rolling_up:
        s.boulder_progress = round(s.boulder_progress + float(cfg.get("ascent_step", 0.02)), 9)
        if s.boulder_progress >= 1.0:
            s.boulder_progress = 1.0
            s.rolling_up = False
            s = handle_summit(s, rng, cfg, stamp)
    else:
        s.boulder_progress = round(s.boulder_progress - float(cfg.get("descent_step", 0.05)), 9)
        if s.boulder_progress <= 0.0:
            s.boulder_progress = 0.0
            s.rolling_up = True
            s = handle_base(s, cfg)
    return s


def evolve_consciousness(state: SisyphusState, cfg: dict, stamp: Optional[str] = None) -> SisyphusState:
    milestone = thoughts.MILESTONE_THOUGHTS.get(state.cycle_count)
    if milestone is None:
        return state

    metric, value, text = milestone
    s = copy_state(state)
    setattr(s.metrics, metric, value)
    s.metrics = clamp_metrics(s.metrics)
    return add_thought(s, text, stamp, int(cfg.get("thought_log_size", 20)))


def generate_thought(
    state: SisyphusState,
    rng: np.random.Generator,
    cfg: dict,
    stamp: Optional[str] = None,
) -> SisyphusState:
    text = thoughts.choose(thoughts.THOUGHT_TEMPLATES, state, rng)
    return add_thought(state, text, stamp, int(cfg.get("thought_log_size", 20)))


def deep_thought(
    state: SisyphusState,
    rng: np.random.Generator,
    cfg: dict,
    stamp: Optional[str] = None,
) -> SisyphusState:
    """Second periodic task: maybe append a deep thought when not paused."""
    if state.paused:
        return state
    if float(rng.random()) >= float(cfg.get("deep_thought_chance", 0.3)):
        return state
    text = thoughts.choose(thoughts.DEEP_THOUGHTS, state, rng)
    return add_thought(state, text, stamp, int(cfg.get("thought_log_size", 20)))


def step_state(
    state: SisyphusState,
    rng: np.random.Generator,
    cfg: dict,
    stamp: Optional[str] = None,
) -> SisyphusState:
    """One active tick: cycle, boulder, milestones, then the periodic thought."""
    s = copy_state(state)
    s.cycle_count += 1

    s = advance_boulder(s, rng, cfg, stamp)
    s = evolve_consciousness(s, cfg, stamp)

    if s.cycle_count % int(cfg.get("thought_every", 3)) == 0:
        s = generate_thought(s, rng, cfg, stamp)

    return s


# ─────────────────────────────────────────────────────────────
# Thought service results
# ─────────────────────────────────────────────────────────────

def apply_service_thought(
    state: SisyphusState,
    text: str,
    despair_delta: float,
    awareness_delta: float,
    resignation_delta: float,
    cfg: dict,
    stamp: Optional[str] = None,
) -> SisyphusState:
    s = adjust_metrics(
        state,
        despair=despair_delta,
        awareness=awareness_delta,
        resignation=resignation_delta,
    )
    return add_thought(s, text, stamp, int(cfg.get("thought_log_size", 20)))


def apply_service_failure(state: SisyphusState, cfg: dict, stamp: Optional[str] = None) -> SisyphusState:
    text = thoughts.FALLBACK_THOUGHT.format(cycle=state.cycle_count)
    return add_thought(state, text, stamp, int(cfg.get("thought_log_size", 20)))
