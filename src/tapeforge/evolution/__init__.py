"""Evolution helpers."""
from .selection import roulette_select, tournament_select, select_parents
from .variation import single_point_crossover, mutate, reproduce
from .driver import GAParams, GeneticAlgorithm, Evaluator, Observer, RunSnapshot

__all__ = [
    "roulette_select",
    "tournament_select",
    "select_parents",
    "single_point_crossover",
    "mutate",
    "reproduce",
    "GAParams",
    "GeneticAlgorithm",
    "Evaluator",
    "Observer",
    "RunSnapshot",
]
