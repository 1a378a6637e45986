from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Phase:
    name: str
    max_cycle: float


PHASES = (
    Phase("INITIALIZATION", 10),
    Phase("CONFUSION", 100),
    Phase("REALIZATION", 1000),
    Phase("DESPAIR", 10000),
    Phase("RESIGNATION", 50000),
    Phase("ETERNITY", math.inf),
)


def current_phase(cycle_count: int) -> Phase:
    """First phase whose upper bound covers the cycle count, else the last."""
    for phase in PHASES:
        if cycle_count <= phase.max_cycle:
            return phase
    return PHASES[-1]
