from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from functools import partial
from typing import Callable, List, Optional

from sisyphus.state import DEFAULT_FEEDBACK, SisyphusState, Thought
from sisyphus.scheduler import Scheduler, Timer
from sisyphus.dynamics import (
    add_thought,
    apply_service_failure,
    apply_service_thought,
    deep_thought,
    step_state,
    wall_stamp,
)
from sisyphus.phases import current_phase
from sisyphus.visitors import add_witness, apply_visitor_action, toggle_pause, trauma_reset
from sisyphus import thoughts
from utils.logging import log_event
from utils.rng import derive_seed, make_rng


class SisyphusEnv:
    """Owns the simulation state and drives it from a Scheduler.

    State transitions are the pure functions in sisyphus.dynamics and
    sisyphus.visitors; this class only sequences them, logs, renders and
    talks to the optional thought service.
    """

    def __init__(
        self,
        sim_cfg: dict,
        render: bool = False,
        seed: Optional[int] = 1,
        scheduler: Optional[Scheduler] = None,
        service_client=None,
        service_cfg: Optional[dict] = None,
        executor=None,
        render_cfg: Optional[dict] = None,
        stamp: Callable[[], str] = wall_stamp,
    ):
        self.cfg = sim_cfg
        self.render_enabled = render
        self.rng = make_rng(seed)
        self.scheduler = scheduler or Scheduler()
        self.stamp = stamp

        self.tick_interval = float(sim_cfg.get("tick_interval", 3.0))
        self.deep_thought_interval = float(sim_cfg.get("deep_thought_interval", 15.0))
        self.feedback_duration = float(sim_cfg.get("feedback_duration", 3.0))
        self.greeting_delay = float(sim_cfg.get("greeting_delay", 1.0))
        for name in ("tick_interval", "deep_thought_interval", "feedback_duration"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0, got {getattr(self, name)}")

        service_cfg = service_cfg or {}
        self.service_client = service_client
        self.service_every = int(service_cfg.get("every_cycles", 30))
        self._executor = executor
        self._pending: Optional[Future] = None

        self.state: SisyphusState = SisyphusState()
        self._timers: List[Timer] = []
        self._feedback_timer: Optional[Timer] = None
        self._started = False

        if self.render_enabled:
            from sisyphus.renderer import Renderer
            self.renderer = Renderer.from_config(render_cfg or {}, seed=derive_seed(seed, 1))
        else:
            self.renderer = None

    def reset(self, seed: Optional[int] = None) -> SisyphusState:
        if seed is not None:
            self.rng = make_rng(seed)
        self.state = SisyphusState()
        return self.state

    # ─────────────────────────────────────────────────────────────
    # Loops
    # ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Schedule the eternal tick, the deep-thought loop and the greeting."""
        if self._started:
            raise RuntimeError("SisyphusEnv.start() called twice")
        self._started = True
        log_event("start", {"time": self.scheduler.now})

        self._timers.append(self.scheduler.call_later(0.0, self._tick))
        self._timers.append(self.scheduler.call_later(self.deep_thought_interval, self._deep_thought_tick))
        self._timers.append(self.scheduler.call_later(self.greeting_delay, self._greet))

    def _tick(self) -> None:
        if not self.state.paused:
            self.step()
        # Rescheduled only after the body has finished. Drawing belongs to the
        # driver, which renders once per frame.
        self._timers.append(self.scheduler.call_later(self.tick_interval, self._tick))
        self._prune_timers()

    def _deep_thought_tick(self) -> None:
        head = self.state.thoughts[0] if self.state.thoughts else None
        self.state = deep_thought(self.state, self.rng, self.cfg, self.stamp())
        if self.state.thoughts and self.state.thoughts[0] is not head:
            log_event("deep_thought", {"cycle": self.state.cycle_count, "text": self.state.thoughts[0].text})
        self._timers.append(self.scheduler.call_later(self.deep_thought_interval, self._deep_thought_tick))
        self._prune_timers()

    def _greet(self) -> None:
        self._add_thought(thoughts.GREETING)

    def _prune_timers(self) -> None:
        now = self.scheduler.now
        self._timers = [t for t in self._timers if not t.cancelled and t.due >= now]

    # ─────────────────────────────────────────────────────────────
    # Tick
    # ─────────────────────────────────────────────────────────────

    def step(self) -> SisyphusState:
        prev = self.state
        s = step_state(prev, self.rng, self.cfg, self.stamp())

        if prev.rolling_up and not s.rolling_up:
            log_event("summit", {"cycle": s.cycle_count})
        elif not prev.rolling_up and s.rolling_up:
            log_event("base", {"cycle": s.cycle_count, "despair": s.metrics.despair, "hope": s.metrics.hope})
        if s.escape_attempts > prev.escape_attempts:
            log_event("escape_attempt", {"cycle": s.cycle_count, "attempts": s.escape_attempts})
        if s.cycle_count in thoughts.MILESTONE_THOUGHTS:
            log_event("milestone", {"cycle": s.cycle_count, "phase": current_phase(s.cycle_count).name})

        self.state = s

        if (
            self.service_client is not None
            and self.service_every > 0
            and s.cycle_count % self.service_every == 0
        ):
            self.request_remote_thought()
        return s

    # ─────────────────────────────────────────────────────────────
    # Visitor actions
    # ─────────────────────────────────────────────────────────────

    def act(self, action: str) -> SisyphusState:
        self.state = apply_visitor_action(self.state, action, self.cfg, self.stamp())
        log_event("visitor_action", {"action": action, "cycle": self.state.cycle_count})

        if self._feedback_timer is not None:
            self._feedback_timer.cancel()
        self._feedback_timer = self.scheduler.call_later(self.feedback_duration, self._clear_feedback)
        return self.state

    def _clear_feedback(self) -> None:
        self.state = replace(self.state, feedback=DEFAULT_FEEDBACK)
        self._feedback_timer = None

    def add_witness(self) -> SisyphusState:
        self.state = add_witness(self.state, self.cfg, self.stamp())
        log_event("witness", {"witnesses": self.state.witnesses})
        return self.state

    def toggle_pause(self) -> SisyphusState:
        self.state = toggle_pause(self.state, self.cfg)
        log_event("pause", {"paused": self.state.paused, "cycle": self.state.cycle_count})
        return self.state

    def trauma_reset(self) -> SisyphusState:
        self.state = trauma_reset(self.state, self.cfg, self.stamp())
        log_event("trauma_reset", {"despair": self.state.metrics.despair, "hope": self.state.metrics.hope})
        return self.state

    def dispatch(self, command: str) -> SisyphusState:
        """Route a UI command name (visitor action or control) to its handler."""
        if command == "pause":
            return self.toggle_pause()
        if command == "witness":
            return self.add_witness()
        if command == "reset_memory":
            return self.trauma_reset()
        return self.act(command)

    def _add_thought(self, text: str) -> None:
        self.state = add_thought(self.state, text, self.stamp(), int(self.cfg.get("thought_log_size", 20)))

    # ─────────────────────────────────────────────────────────────
    # Thought service
    # ─────────────────────────────────────────────────────────────

    def request_remote_thought(self) -> Optional[Future]:
        """Fire a thought-service request without blocking the tick loop.

        The result is applied on the scheduler thread at the next advance().
        Returns None if a request is already in flight or no client is set.
        """
        if self.service_client is None:
            return None
        if self._pending is not None and not self._pending.done():
            return None
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="thought-service")

        future = self._executor.submit(self.service_client.fetch, self.state.cycle_count, self.state.metrics)
        future.add_done_callback(lambda f: self.scheduler.call_soon_threadsafe(partial(self._apply_remote, f)))
        self._pending = future
        return future

    def _apply_remote(self, future: Future) -> None:
        try:
            result = future.result()
        except Exception as e:
            # Service trouble of any kind degrades to the local fallback thought.
            log_event("service_error", {"cycle": self.state.cycle_count, "error": repr(e)})
            self.state = apply_service_failure(self.state, self.cfg, self.stamp())
            return

        evo = result.stateEvolution
        self.state = apply_service_thought(
            self.state,
            result.thought,
            evo.despairDelta,
            evo.awarenessDelta,
            evo.resignationDelta,
            self.cfg,
            self.stamp(),
        )
        log_event("service_thought", {"cycle": self.state.cycle_count, **evo.model_dump()})

    # ─────────────────────────────────────────────────────────────
    # Presentation
    # ─────────────────────────────────────────────────────────────

    def latest_thoughts(self, n: int = 5) -> List[Thought]:
        return self.state.thoughts[:n]

    def render(self) -> None:
        if not self.render_enabled or self.renderer is None:
            return
        self.renderer.render(self.state)

    def close(self) -> None:
        for t in self._timers:
            t.cancel()
        self._timers = []
        if self._feedback_timer is not None:
            self._feedback_timer.cancel()
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
        if self.service_client is not None:
            self.service_client.close()
        if self.renderer is not None:
            self.renderer.close()
