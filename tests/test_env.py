from concurrent.futures import Future
from unittest.mock import MagicMock
import unittest

from sisyphus.env import SisyphusEnv
from sisyphus.scheduler import Scheduler
from sisyphus.state import DEFAULT_FEEDBACK, Metrics
from sisyphus import thoughts
from service.client import ThoughtServiceClient, ThoughtServiceError
from service.schemas import StateEvolution, ThinkResponse


class ImmediateExecutor:
    """Runs submitted work inline so done-callbacks fire before submit returns."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, *args, **kwargs) -> Future:
        self.submitted += 1
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:  # handed to the caller through the future
            future.set_exception(e)
        return future

    def shutdown(self, wait: bool = True) -> None:
        pass


class FakeClient:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def fetch(self, attempt_count, metrics):
        self.calls.append((attempt_count, metrics))
        if self.error is not None:
            raise self.error
        return self.response

    def close(self) -> None:
        pass


def make_env(**sim_overrides) -> SisyphusEnv:
    cfg = {"tick_interval": 3.0, "deep_thought_interval": 15.0, "deep_thought_chance": 0.0}
    cfg.update(sim_overrides)
    return SisyphusEnv(cfg, render=False, seed=5, scheduler=Scheduler(), stamp=lambda: "00:00:00")


class LoopTest(unittest.TestCase):
    def test_first_tick_runs_immediately_then_every_interval(self) -> None:
        env = make_env()
        env.start()

        env.scheduler.advance(0.0)
        self.assertEqual(env.state.cycle_count, 1)

        env.scheduler.advance(30.0)
        self.assertEqual(env.state.cycle_count, 11)

    def test_start_twice_is_an_error(self) -> None:
        env = make_env()
        env.start()
        with self.assertRaises(RuntimeError):
            env.start()

    def test_greeting_after_one_unit(self) -> None:
        env = make_env(tick_interval=1000.0)
        env.start()
        env.scheduler.advance(0.5)
        self.assertEqual(env.state.thoughts, [])
        env.scheduler.advance(0.5)
        self.assertEqual(env.state.thoughts[0].text, thoughts.GREETING)

    def test_pause_takes_effect_at_next_tick(self) -> None:
        env = make_env()
        env.start()
        env.scheduler.advance(3.0)
        self.assertEqual(env.state.cycle_count, 2)

        env.toggle_pause()
        env.scheduler.advance(9.0)
        self.assertEqual(env.state.cycle_count, 2)
        self.assertEqual(env.scheduler.pending(), 2)  # tick + deep-thought loop keep rescheduling

        env.toggle_pause()
        env.scheduler.advance(3.0)
        self.assertEqual(env.state.cycle_count, 3)

    def test_deep_thought_loop(self) -> None:
        env = make_env(tick_interval=1000.0, deep_thought_chance=1.0)
        env.start()
        env.scheduler.advance(15.0)

        self.assertEqual(len(env.state.thoughts), 2)
        self.assertEqual(env.state.thoughts[1].text, thoughts.GREETING)
        formatted = [t.format(witnesses=1) for t in thoughts.DEEP_THOUGHTS]
        self.assertIn(env.state.thoughts[0].text, formatted)

    def test_close_stops_loops(self) -> None:
        env = make_env()
        env.start()
        env.scheduler.advance(3.0)
        env.close()
        self.assertEqual(env.scheduler.advance(100.0), 0)
        self.assertEqual(env.state.cycle_count, 2)

    def test_tick_leaves_drawing_to_the_driver(self) -> None:
        env = make_env()
        env.render_enabled = True
        env.renderer = MagicMock()
        env.start()
        env.scheduler.advance(6.0)

        self.assertEqual(env.state.cycle_count, 3)
        env.renderer.render.assert_not_called()
        env.render()
        env.renderer.render.assert_called_once_with(env.state)

    def test_non_positive_interval_rejected(self) -> None:
        with self.assertRaises(ValueError):
            make_env(tick_interval=0.0)


class VisitorFeedbackTest(unittest.TestCase):
    def test_feedback_reverts_after_duration(self) -> None:
        env = make_env(tick_interval=1000.0)
        env.act("encourage")
        self.assertNotEqual(env.state.feedback, DEFAULT_FEEDBACK)

        env.scheduler.advance(2.9)
        self.assertNotEqual(env.state.feedback, DEFAULT_FEEDBACK)
        env.scheduler.advance(0.2)
        self.assertEqual(env.state.feedback, DEFAULT_FEEDBACK)

    def test_newer_action_keeps_its_full_duration(self) -> None:
        env = make_env(tick_interval=1000.0)
        env.act("encourage")
        env.scheduler.advance(2.0)
        env.act("mock")
        env.scheduler.advance(1.5)  # past the first action's revert time
        self.assertEqual(env.state.feedback, "Cruelty acknowledged. Despair deepens. The cycle continues.")
        env.scheduler.advance(2.0)
        self.assertEqual(env.state.feedback, DEFAULT_FEEDBACK)

    def test_dispatch_routes_controls(self) -> None:
        env = make_env()
        env.dispatch("witness")
        self.assertEqual(env.state.witnesses, 2)
        env.dispatch("pause")
        self.assertTrue(env.state.paused)
        env.dispatch("reset_memory")
        self.assertEqual(env.state.thoughts[0].text, thoughts.TRAUMA_THOUGHT)
        env.dispatch("philosophize")
        self.assertAlmostEqual(env.state.metrics.absurdity, 0.15)
        with self.assertRaises(ValueError):
            env.dispatch("dance")


class RemoteThoughtTest(unittest.TestCase):
    def _env(self, client, every: int = 30) -> SisyphusEnv:
        return SisyphusEnv(
            {"tick_interval": 3.0},
            seed=5,
            scheduler=Scheduler(),
            service_client=client,
            service_cfg={"every_cycles": every},
            executor=ImmediateExecutor(),
            stamp=lambda: "00:00:00",
        )

    def test_success_applies_deltas_on_next_advance(self) -> None:
        response = ThinkResponse(
            thought="I observe the loop observing me.",
            stateEvolution=StateEvolution(despairDelta=0.02, awarenessDelta=0.04, resignationDelta=0.0),
        )
        env = self._env(FakeClient(response=response))
        env.state.metrics = Metrics(despair=0.5, awareness=0.3)

        self.assertIsNotNone(env.request_remote_thought())
        self.assertEqual(env.state.thoughts, [])

        env.scheduler.advance(0.0)
        self.assertEqual(env.state.thoughts[0].text, "I observe the loop observing me.")
        self.assertAlmostEqual(env.state.metrics.despair, 0.52)
        self.assertAlmostEqual(env.state.metrics.awareness, 0.34)

    def test_failure_falls_back_to_local_thought(self) -> None:
        env = self._env(FakeClient(error=ThoughtServiceError("boom", status_code=500)))
        env.state.cycle_count = 17
        env.request_remote_thought()
        env.scheduler.advance(0.0)

        self.assertEqual(env.state.thoughts[0].text, thoughts.FALLBACK_THOUGHT.format(cycle=17))
        self.assertEqual(env.state.metrics, Metrics())

    def test_http_500_end_to_end(self) -> None:
        client = ThoughtServiceClient("http://service.invalid/think")
        client._session = MagicMock()
        client._session.post.return_value = MagicMock(status_code=500)

        env = self._env(client)
        env.state.cycle_count = 23
        env.request_remote_thought()
        env.scheduler.advance(0.0)

        self.assertIn("Cycle 23.", env.state.thoughts[0].text)

    def test_requested_every_n_cycles(self) -> None:
        client = FakeClient(error=ThoughtServiceError("offline"))
        env = self._env(client, every=3)
        env.start()
        env.scheduler.advance(24.0)  # ticks at 0..24 -> cycles 1..9

        self.assertEqual(env.state.cycle_count, 9)
        self.assertEqual([c for c, _ in client.calls], [3, 6, 9])

    def test_unexpected_fetch_error_still_falls_back(self) -> None:
        env = self._env(FakeClient(error=KeyError("thought")))
        env.state.cycle_count = 8
        env.request_remote_thought()
        env.scheduler.advance(0.0)

        self.assertEqual(env.state.thoughts[0].text, thoughts.FALLBACK_THOUGHT.format(cycle=8))

    def test_no_client_no_request(self) -> None:
        env = make_env()
        self.assertIsNone(env.request_remote_thought())


if __name__ == "__main__":
    unittest.main()
