import numpy as np
import pytest

from tapeforge.evolution import (
    mutate,
    reproduce,
    roulette_select,
    select_parents,
    single_point_crossover,
    tournament_select,
)


def test_roulette_favours_fit_but_keeps_everyone_reachable():
    rng = np.random.default_rng(0)
    picks = roulette_select(np.array([0.0, 0.0, 0.0, 100.0]), 20000, rng)
    counts = np.bincount(picks, minlength=4)
    assert np.all(counts > 0)
    assert counts.argmax() == 3


def test_roulette_handles_all_zero_fitness():
    picks = roulette_select(np.zeros(5), 1000, np.random.default_rng(1))
    assert set(picks.tolist()) == {0, 1, 2, 3, 4}


def test_tournament_prefers_higher_fitness():
    picks = tournament_select(np.arange(10, dtype=float), 2000, np.random.default_rng(2), size=3)
    assert picks.mean() > 4.5
    assert picks.min() >= 0 and picks.max() <= 9


def test_unknown_scheme_is_rejected():
    with pytest.raises(ValueError):
        select_parents(np.ones(3), 2, np.random.default_rng(0), scheme="truncation")


def test_single_point_crossover_swaps_tails():
    a, b = np.zeros(10), np.ones(10)
    child_a, child_b = single_point_crossover(a, b, np.random.default_rng(3))
    assert np.array_equal(child_a + child_b, np.ones(10))
    assert child_a[0] == 0.0 and child_a[-1] == 1.0
    assert child_b[0] == 1.0 and child_b[-1] == 0.0


def test_mutation_rate_extremes():
    rng = np.random.default_rng(4)
    genes = np.full(20, 2.0)
    assert mutate(genes, 0.0, rng) is genes
    mutated = mutate(genes, 1.0, rng)
    assert np.all((mutated >= 0.0) & (mutated < 1.0))
    assert np.all(genes == 2.0)


def test_reproduce_returns_requested_count():
    rng = np.random.default_rng(5)
    population = rng.random((6, 8))
    parents = np.array([0, 1, 2, 3, 4, 5])
    children = reproduce(population, parents, rng, crossover_rate=1.0, mutation_rate=0.0, count=5)
    assert children.shape == (5, 8)
    # without mutation every child gene comes from one of its two parents
    for k, child in enumerate(children):
        pa, pb = population[parents[2 * (k // 2)]], population[parents[2 * (k // 2) + 1]]
        assert np.all((child == pa) | (child == pb))
