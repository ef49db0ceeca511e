"""Parent selection over a fitness vector."""
from __future__ import annotations
import numpy as np


def roulette_select(fitness: np.ndarray, k: int, rng: np.random.Generator, *, floor: float = 1.0) -> np.ndarray:
    """Fitness-proportionate selection of ``k`` indices.

    Scores are shifted to be non-negative and lifted by ``floor`` so every
    individual keeps a non-zero chance of being picked.
    """

    f = np.asarray(fitness, dtype=np.float64)
    weights = f - min(float(f.min()), 0.0) + floor
    return rng.choice(f.shape[0], size=k, p=weights / weights.sum())


def tournament_select(fitness: np.ndarray, k: int, rng: np.random.Generator, *, size: int = 3) -> np.ndarray:
    f = np.asarray(fitness, dtype=np.float64)
    entrants = rng.integers(0, f.shape[0], size=(k, size))
    winners = np.argmax(f[entrants], axis=1)
    return entrants[np.arange(k), winners]


def select_parents(fitness: np.ndarray, k: int, rng: np.random.Generator, *, scheme: str = "roulette", tournament_size: int = 3) -> np.ndarray:
    if scheme == "roulette":
        return roulette_select(fitness, k, rng)
    if scheme == "tournament":
        return tournament_select(fitness, k, rng, size=tournament_size)
    raise ValueError(f"unknown selection scheme {scheme!r}")
