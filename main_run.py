from __future__ import annotations

import argparse
import time
from pathlib import Path
from typing import Optional

from sisyphus.env import SisyphusEnv
from sisyphus.phases import current_phase
from service.client import ThoughtServiceClient
from utils.config import load_config
from utils.logging import JsonlLogger, ensure_dir, flush
from utils.rng import set_global_seed


def print_new_thoughts(env: SisyphusEnv, seen: Optional[object]) -> Optional[object]:
    """Text log: echo thoughts added since the head we last printed."""
    fresh = []
    for thought in env.state.thoughts:
        if thought is seen:
            break
        fresh.append(thought)
    for thought in reversed(fresh):
        print(f"[{thought.timestamp}] (cycle {thought.cycle}) {thought.text}")
    return env.state.thoughts[0] if env.state.thoughts else seen


def main() -> None:
    ap = argparse.ArgumentParser(description="Run the eternal boulder simulation")
    ap.add_argument("--base", default="config.yaml", help="Base config")
    ap.add_argument("--exp", default="", help="Optional experiments/*.yaml override")
    ap.add_argument("--out", default=None, help="Log output dir (overrides logging.out)")
    ap.add_argument("--headless", action="store_true", help="No window; thoughts go to stdout")
    ap.add_argument("--duration", type=float, default=0.0, help="Stop after this many seconds (0 = forever)")
    args = ap.parse_args()

    cfg = load_config(args.base, args.exp or None)
    sim_cfg = cfg.get("sim", {})
    render_cfg = cfg.get("render", {})
    service_cfg = cfg.get("service", {})

    name = cfg.get("name", Path(args.exp).stem) if args.exp else "default"
    out_dir = Path(args.out or cfg.get("logging", {}).get("out", "logs")) / name
    seed = sim_cfg.get("seed")
    ensure_dir(out_dir)
    logger = JsonlLogger(
        out_dir / "events.jsonl",
        context={"run": name, "seed": seed},
        flush_every=float(cfg.get("logging", {}).get("flush_every", 30.0)),
    )
    print(f"[LOG] events -> {logger.path}")

    if seed is not None:
        set_global_seed(int(seed))

    client = ThoughtServiceClient.from_config(service_cfg) if service_cfg.get("enabled", False) else None
    if client is not None:
        print(f"[SERVICE] thought service at {client.url} every {service_cfg.get('every_cycles', 30)} cycles")

    render = bool(render_cfg.get("enabled", True)) and not args.headless
    env = SisyphusEnv(
        sim_cfg,
        render=render,
        seed=seed,
        service_client=client,
        service_cfg=service_cfg,
        render_cfg=render_cfg,
    )
    env.reset()
    env.start()

    started = time.monotonic()
    last = started
    seen = None

    try:
        while True:
            if env.renderer is not None:
                for command in env.renderer.poll_commands():
                    env.dispatch(command)
                env.render()
                env.renderer.tick()
            else:
                due = env.scheduler.next_due()
                wait = 0.05 if due is None else min(0.25, max(0.0, due - env.scheduler.now))
                time.sleep(wait)

            now = time.monotonic()
            env.scheduler.advance(now - last)
            last = now

            if env.renderer is None:
                seen = print_new_thoughts(env, seen)

            if args.duration and now - started >= args.duration:
                break
    except (KeyboardInterrupt, SystemExit):
        print()
    finally:
        s = env.state
        print(
            f"[END] cycles={s.cycle_count} phase={current_phase(s.cycle_count).name} "
            f"escapes={s.escape_attempts} despair={s.metrics.despair:.2f} hope={s.metrics.hope:.2f}"
        )
        env.close()
        flush()
        logger.close()


if __name__ == "__main__":
    main()
