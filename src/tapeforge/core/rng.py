"""Central RNG helpers using PCG64DXSM."""
from __future__ import annotations

from typing import Any, Dict

from numpy.random import Generator, PCG64DXSM


def make_rng(seed: int | None) -> Generator:
    return Generator(PCG64DXSM(seed))


def rng_state(rng: Generator) -> Dict[str, Any]:
    """Return the bit generator state as a JSON-serialisable dict."""
    return rng.bit_generator.state


def rng_from_state(state: Dict[str, Any]) -> Generator:
    if state.get("bit_generator") != "PCG64DXSM":
        raise ValueError(f"unsupported bit generator {state.get('bit_generator')!r}")
    bitgen = PCG64DXSM()
    bitgen.state = state
    return Generator(bitgen)
