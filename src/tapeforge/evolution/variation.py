"""Crossover and mutation for real-valued genomes."""
from __future__ import annotations
from typing import Tuple
import numpy as np


def single_point_crossover(a: np.ndarray, b: np.ndarray, rng: np.random.Generator) -> Tuple[np.ndarray, np.ndarray]:
    """Swap the tails of two parents after a random cut point."""
    cut = int(rng.integers(1, a.shape[0])) if a.shape[0] > 1 else 0
    child_a = np.concatenate((a[:cut], b[cut:]))
    child_b = np.concatenate((b[:cut], a[cut:]))
    return child_a, child_b


def mutate(genes: np.ndarray, rate: float, rng: np.random.Generator) -> np.ndarray:
    """Replace each gene with a fresh uniform draw with probability ``rate``."""
    mask = rng.random(genes.shape[0]) < rate
    if not mask.any():
        return genes
    out = genes.copy()
    out[mask] = rng.random(int(mask.sum()))
    return out


def reproduce(
    population: np.ndarray,
    parents: np.ndarray,
    rng: np.random.Generator,
    *,
    crossover_rate: float,
    mutation_rate: float,
    count: int,
) -> np.ndarray:
    """Breed ``count`` offspring from consecutive pairs of ``parents`` indices."""
    children = []
    for i in range(0, len(parents) - 1, 2):
        a, b = population[parents[i]], population[parents[i + 1]]
        if rng.random() < crossover_rate:
            a, b = single_point_crossover(a, b, rng)
        else:
            a, b = a.copy(), b.copy()
        children.append(mutate(a, mutation_rate, rng))
        children.append(mutate(b, mutation_rate, rng))
    return np.stack(children[:count]) if count else np.empty((0, population.shape[1]))
