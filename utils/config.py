from __future__ import annotations

from typing import Optional

import yaml


def load_yaml(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def deep_update(base: dict, patch: dict) -> dict:
    # Recursively merge dict patch into base (in-place).
    for k, v in (patch or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            deep_update(base[k], v)
        else:
            base[k] = v
    return base


def load_config(base_path: str, exp_path: Optional[str] = None) -> dict:
    cfg = load_yaml(base_path)
    if exp_path:
        deep_update(cfg, load_yaml(exp_path))
    return cfg
