"""Real-valued genomes and their decoding into tape programs."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union
import numpy as np

from .interpreter import INSTRUCTIONS

# Closed upper bound of each bucket; anything above the last bound is ']'.
BUCKET_BOUNDS = np.array([0.125, 0.25, 0.375, 0.5, 0.625, 0.75, 0.875], dtype=np.float64)
_SYMBOLS = np.array(list(INSTRUCTIONS))


@dataclass(frozen=True)
class Genome:
    genes: np.ndarray

    @classmethod
    def random(cls, length: int, rng: np.random.Generator) -> "Genome":
        return cls(genes=rng.random(length))

    def __len__(self) -> int:
        return int(self.genes.shape[0])

    @property
    def program(self) -> str:
        return decode(self)


def decode(genome: Union[Genome, np.ndarray, list]) -> str:
    """Map each gene to one instruction symbol.

    The mapping is total and deterministic: values below 0 land in the first
    bucket, values above 1 in the last.
    """

    genes = genome.genes if isinstance(genome, Genome) else genome
    g = np.asarray(genes, dtype=np.float64).ravel()
    if np.isnan(g).any():
        raise ValueError("genome contains NaN genes")
    buckets = np.searchsorted(BUCKET_BOUNDS, g, side="left")
    return "".join(_SYMBOLS[buckets].tolist())
