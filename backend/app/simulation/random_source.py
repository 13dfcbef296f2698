"""Seedable random draws for the trial loop.

Every trial owns its own random.Random; nothing reads the module-level
generator, so runs are reproducible and safe to split across processes.
"""
from __future__ import annotations

import math
import random
from typing import Optional

_SEED_BITS = 64
_SHARED_SEED_BITS = 32  # Must fit exactly in a JSON number


def gaussian(rng: random.Random, mean: float = 0.0, std: float = 1.0) -> float:
    """Box-Muller normal draw from two uniforms in (0, 1]."""
    u1 = 1.0 - rng.random()
    u2 = 1.0 - rng.random()
    z0 = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
    return z0 * std + mean


def trial_seeds(n_trials: int, seed: Optional[int] = None) -> list[int]:
    """Derive one independent seed per trial from a master seed.

    With seed=None the master generator is seeded from OS entropy.
    """
    master = random.Random(seed)
    return [master.getrandbits(_SEED_BITS) for _ in range(n_trials)]


def resolve_seed(seed: Optional[int] = None) -> int:
    """Return `seed`, or a fresh entropy-drawn seed when it is None.

    Callers that run several simulations draw one seed up front so every
    run sees the same random numbers.
    """
    if seed is not None:
        return seed
    return random.SystemRandom().getrandbits(_SHARED_SEED_BITS)
