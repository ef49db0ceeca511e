"""Parallel evaluation helpers."""
from __future__ import annotations
from multiprocessing.pool import ThreadPool
from typing import Callable, Iterable, Any, List


def parallel_map(fn: Callable[[Any], Any], items: Iterable[Any], workers: int) -> List[Any]:
    """Ordered map over ``items``; threads only, evaluations share one process."""
    if workers <= 1:
        return list(map(fn, items))
    with ThreadPool(processes=workers) as pool:
        return pool.map(fn, items)
