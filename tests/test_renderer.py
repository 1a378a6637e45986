import os
import unittest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

from sisyphus.renderer import Renderer, _clip, despair_color, DESCEND, TEXT, WARN
from sisyphus.state import Metrics, SisyphusState, Thought


class RendererTest(unittest.TestCase):
    def test_headless_render_returns_full_surface(self) -> None:
        r = Renderer(headless=True, seed=0)
        state = SisyphusState(
            cycle_count=42,
            boulder_progress=0.5,
            rolling_up=False,
            paused=True,
            metrics=Metrics(despair=0.8),
            thoughts=[Thought(timestamp="12:00:00", text="x" * 300, cycle=42)] * 20,
            system_messages=["Cycle 42 complete. Boulder at base."],
        )
        surf = r.render(state)
        self.assertEqual(surf.get_size(), (800, 700))
        self.assertEqual(r.poll_commands(), [])
        self.assertEqual(r.tick(), 0.0)
        r.close()

    def test_from_config(self) -> None:
        r = Renderer.from_config({"width": 400, "height": 200, "panel_height": 100, "headless": True})
        self.assertEqual(r.render(SisyphusState()).get_size(), (400, 300))

    def test_despair_color(self) -> None:
        self.assertEqual(despair_color(0.2), TEXT)
        self.assertEqual(despair_color(0.5), WARN)
        self.assertEqual(despair_color(0.71), DESCEND)

    def test_clip(self) -> None:
        self.assertEqual(_clip("short", 10), "short")
        self.assertEqual(_clip("abcdefghijkl", 8), "abcde...")


if __name__ == "__main__":
    unittest.main()
