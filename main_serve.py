from __future__ import annotations

import argparse
from pathlib import Path

import uvicorn

from service.app import create_app
from service.provider import ChatCompletionsProvider
from utils.config import load_config
from utils.logging import JsonlLogger, ensure_dir, flush


def main() -> None:
    ap = argparse.ArgumentParser(description="Serve the thought endpoint (POST /think)")
    ap.add_argument("--base", default="config.yaml", help="Base config")
    ap.add_argument("--exp", default="", help="Optional experiments/*.yaml override")
    ap.add_argument("--host", default=None)
    ap.add_argument("--port", type=int, default=None)
    args = ap.parse_args()

    cfg = load_config(args.base, args.exp or None)
    server_cfg = cfg.get("server", {})
    provider_cfg = cfg.get("provider", {})

    out_dir = Path(cfg.get("logging", {}).get("out", "logs")) / "server"
    ensure_dir(out_dir)
    logger = JsonlLogger(
        out_dir / "events.jsonl",
        context={"run": "server"},
        flush_every=float(cfg.get("logging", {}).get("flush_every", 30.0)),
    )

    provider = ChatCompletionsProvider.from_config(provider_cfg)
    if not provider.api_key:
        print("[SERVICE] OPENAI_API_KEY is not set; every request will get the fallback thought")

    host = args.host or server_cfg.get("host", "127.0.0.1")
    port = args.port or int(server_cfg.get("port", 8888))
    print(f"[SERVICE] model={provider.model} listening on http://{host}:{port}/think")

    try:
        uvicorn.run(create_app(provider), host=host, port=port)
    finally:
        provider.close()
        flush()
        logger.close()


if __name__ == "__main__":
    main()
