from __future__ import annotations
import random
import numpy as np


def seed_everything(seed: int) -> np.random.Generator:
    """
    Seed common RNGs for reproducibility and return a master generator.

    Seeds:
    - Python's random
    - NumPy's legacy global RNG

    Agents and stochastic environments own their own np.random.Generator, so pass them seeds drawn from the
    returned master generator (see 'spawn_seeds') to make a whole experiment reproducible from one number.

    :param seed: Master seed.
        :type seed: int

    :return: Master generator.
        :rtype: np.random.Generator
    """
    seed = int(seed)
    random.seed(seed)
    np.random.seed(seed)
    return np.random.default_rng(seed)


def spawn_seeds(rng: np.random.Generator, n: int) -> list[int]:
    """
    Draw n independent integer seeds from a generator.

    :param rng: Master generator.
        :type rng: np.random.Generator
    :param n: How many seeds.
        :type n: int

    :return: List of seeds in [0, 1_000_000).
        :rtype: list[int]
    """
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")
    return [int(s) for s in rng.integers(low=0, high=1_000_000, size=int(n))]
