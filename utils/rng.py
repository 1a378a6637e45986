from __future__ import annotations

import random
from typing import Optional

import numpy as np


def set_global_seed(seed: int) -> None:
    random.seed(seed)
    np.random.seed(seed)


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Generator for one consumer; None draws fresh OS entropy."""
    return np.random.default_rng(seed)


def derive_seed(seed: Optional[int], stream: int) -> Optional[int]:
    """Separate, reproducible seed for a secondary stream (e.g. the renderer's stars)."""
    if seed is None:
        return None
    return int(np.random.SeedSequence([int(seed), int(stream)]).generate_state(1)[0])
