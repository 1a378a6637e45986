from __future__ import annotations

from typing import List, Optional, Tuple

import pygame

from sisyphus.state import SisyphusState
from sisyphus.hill import Hill, boulder_position, hill_polyline
from sisyphus.phases import current_phase
from sisyphus.thoughts import pct
from utils.rng import make_rng


Color = Tuple[int, int, int]

SKY_TOP: Color = (10, 10, 42)
SKY_BOTTOM: Color = (0, 0, 0)
HILL_LINE: Color = (51, 51, 51)
HILL_FILL: Color = (34, 34, 34)
BOULDER_LIGHT: Color = (102, 102, 102)
BOULDER_DARK: Color = (34, 34, 34)
BODY: Color = (0, 170, 255)
HEAD: Color = (0, 102, 170)
TEXT: Color = (255, 255, 255)
ASCEND: Color = (0, 255, 136)
DESCEND: Color = (255, 68, 68)
WARN: Color = (255, 170, 0)
PANEL: Color = (12, 12, 16)
DIM: Color = (150, 150, 160)

KEY_COMMANDS = {
    pygame.K_e: "encourage",
    pygame.K_p: "philosophize",
    pygame.K_m: "mock",
    pygame.K_t: "requestTermination",
    pygame.K_w: "witness",
    pygame.K_r: "reset_memory",
    pygame.K_SPACE: "pause",
}


def despair_color(despair: float) -> Color:
    if despair > 0.7:
        return DESCEND
    if despair > 0.4:
        return WARN
    return TEXT


class Renderer:
    """Pygame renderer: hill scene on top, status panel and thought log below."""

    def __init__(
        self,
        width: int = 800,
        height: int = 400,
        panel_height: int = 300,
        stars: int = 100,
        fps: int = 30,
        boulder_radius: int = 25,
        hill: Optional[Hill] = None,
        headless: bool = False,
        seed: Optional[int] = None,
    ):
        self.w, self.h = int(width), int(height)
        self.panel_h = int(panel_height)
        self.n_stars = int(stars)
        self.fps = int(fps)
        self.boulder_radius = int(boulder_radius)
        self.hill = hill or Hill()
        self.headless = headless
        # Own RNG so drawing never advances the simulation's stream.
        self.rng = make_rng(seed)

        pygame.font.init()
        if headless:
            self.screen = pygame.Surface((self.w, self.h + self.panel_h))
            self.clock = None
        else:
            pygame.init()
            self.screen = pygame.display.set_mode((self.w, self.h + self.panel_h))
            pygame.display.set_caption("Eternal Sisyphus")
            self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont(None, 22)
        self.small = pygame.font.SysFont(None, 18)

    @classmethod
    def from_config(cls, cfg: dict, seed: Optional[int] = None) -> "Renderer":
        return cls(
            width=int(cfg.get("width", 800)),
            height=int(cfg.get("height", 400)),
            panel_height=int(cfg.get("panel_height", 300)),
            stars=int(cfg.get("stars", 100)),
            fps=int(cfg.get("fps", 30)),
            headless=bool(cfg.get("headless", False)),
            seed=seed,
        )

    def poll_commands(self) -> List[str]:
        """Drain the pygame event queue into command names for SisyphusEnv.dispatch."""
        if self.headless:
            return []
        commands = []
        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                raise SystemExit
            if e.type == pygame.KEYDOWN and e.key in KEY_COMMANDS:
                commands.append(KEY_COMMANDS[e.key])
        return commands

    def render(self, state: SisyphusState) -> pygame.Surface:
        scene = self.screen.subsurface((0, 0, self.w, self.h))
        self._draw_sky(scene)
        self._draw_stars(scene)
        self._draw_hill(scene)
        x, y = boulder_position(self.hill, state.boulder_progress)
        self._draw_boulder(scene, x, y)
        self._draw_figure(scene, x, y)
        self._draw_overlay(scene, state)
        self._draw_panel(state)

        if not self.headless:
            pygame.display.flip()
        return self.screen

    def tick(self) -> float:
        """Cap the frame rate; returns seconds since the previous frame."""
        if self.clock is None:
            return 0.0
        return self.clock.tick(self.fps) / 1000.0

    def _draw_sky(self, surf: pygame.Surface):
        for row in range(self.h):
            f = row / max(1, self.h - 1)
            color = tuple(int(a + (b - a) * f) for a, b in zip(SKY_TOP, SKY_BOTTOM))
            pygame.draw.line(surf, color, (0, row), (self.w, row))

    def _draw_stars(self, surf: pygame.Surface):
        # Fresh positions every frame; the flicker is intended.
        xs = self.rng.random(self.n_stars) * self.w
        ys = self.rng.random(self.n_stars) * self.h * 0.7
        rs = self.rng.random(self.n_stars) * 1.5
        for x, y, r in zip(xs, ys, rs):
            pygame.draw.circle(surf, TEXT, (int(x), int(y)), max(1, int(round(r))))

    def _draw_hill(self, surf: pygame.Surface):
        pts = hill_polyline(self.hill)
        fill = pts + [(self.hill.end[0], self.h), (self.hill.start[0], self.h)]
        pygame.draw.polygon(surf, HILL_FILL, fill)
        pygame.draw.lines(surf, HILL_LINE, False, pts, 3)

    def _draw_boulder(self, surf: pygame.Surface, x: float, y: float):
        r = self.boulder_radius
        shadow = pygame.Surface((2 * r + 8, 2 * r + 8), pygame.SRCALPHA)
        pygame.draw.circle(shadow, (0, 0, 0, 77), (r + 4, r + 4), r)
        surf.blit(shadow, (int(x) + 3 - r - 4, int(y) + 3 - r - 4))

        # Radial shading: dark rim to a lit spot up and to the left.
        steps = 8
        for i in range(steps):
            f = i / (steps - 1)
            color = tuple(int(d + (l - d) * f) for d, l in zip(BOULDER_DARK, BOULDER_LIGHT))
            radius = max(1, int(r - (r - 5) * f))
            cx = x - 10 * f
            cy = y - 10 * f
            pygame.draw.circle(surf, color, (int(cx), int(cy)), radius)

    def _draw_figure(self, surf: pygame.Surface, x: float, y: float):
        sx, sy = int(x - 40), int(y - 10)
        pygame.draw.rect(surf, BODY, (sx, sy, 20, 30))
        pygame.draw.circle(surf, HEAD, (sx + 10, sy - 10), 8)

    def _draw_overlay(self, surf: pygame.Surface, state: SisyphusState):
        lines = [
            (f"Cycle: {state.cycle_count}", TEXT),
            (f"Despair: {pct(state.metrics.despair)}%", TEXT),
            ("↑ ASCENDING", ASCEND) if state.rolling_up else ("↓ DESCENDING", DESCEND),
        ]
        y = 20
        for text, color in lines:
            surf.blit(self.font.render(text, True, color), (20, y))
            y += 20

    def _draw_panel(self, state: SisyphusState):
        panel = self.screen.subsurface((0, self.h, self.w, self.panel_h))
        panel.fill(PANEL)
        m = state.metrics

        header = (
            f"PHASE {current_phase(state.cycle_count).name}   cycles={state.cycle_count:,}   "
            f"escapes={state.escape_attempts}   witnesses={state.witnesses}"
            + ("   [PAUSED]" if state.paused else "")
        )
        panel.blit(self.font.render(header, True, TEXT), (12, 8))

        x = 12
        for label, value, color in (
            ("despair", m.despair, despair_color(m.despair)),
            ("awareness", m.awareness, TEXT),
            ("resignation", m.resignation, TEXT),
            ("absurdity", m.absurdity, TEXT),
            ("hope", m.hope, TEXT),
        ):
            surf = self.small.render(f"{label} {pct(value)}%", True, color)
            panel.blit(surf, (x, 32))
            x += surf.get_width() + 18

        system = f"SYSTEM: {state.system_messages[0]}" if state.system_messages else "SYSTEM: -"
        panel.blit(self.small.render(system, True, WARN), (12, 52))
        panel.blit(self.small.render(state.feedback, True, DIM), (12, 70))

        y = 94
        line_h = 18
        for thought in state.thoughts:
            if y + line_h > self.panel_h:
                break
            text = f"[{thought.timestamp}] {thought.text}"
            panel.blit(self.small.render(_clip(text, self.w // 7), True, TEXT), (12, y))
            y += line_h

    def close(self):
        if not self.headless:
            pygame.quit()


def _clip(text: str, max_chars: int) -> str:
    return text if len(text) <= max_chars else text[: max(0, max_chars - 3)] + "..."
