from __future__ import annotations

import numpy as np


def spawn_seeds(random_state: int | None, n: int) -> list[int]:
    """Derive ``n`` independent integer seeds from a single root seed.

    Parameters
    ----------
    random_state : Optional[int]
        Root seed. If None, fresh OS entropy is used (non-deterministic).
    n : int
        Number of seeds to derive.

    The derivation uses ``numpy.random.SeedSequence.spawn``, so the same root
    seed always yields the same list and child streams do not overlap.
    """
    children = np.random.SeedSequence(random_state).spawn(n)
    return [int(child.generate_state(1, dtype=np.uint32)[0]) for child in children]


def derive_seed(rng: np.random.RandomState) -> int:
    """Draw a seed for a sub-estimator from a parent random state."""
    return int(rng.randint(np.iinfo(np.int32).max))
