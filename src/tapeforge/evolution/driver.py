"""Generational genetic algorithm over fixed-length real-valued genomes."""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
import logging
import math
import time
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Tuple
import numpy as np

from tapeforge.core.rng import make_rng, rng_from_state, rng_state
from tapeforge.engine.checkpointing import CheckpointIOFailure, load_checkpoint, save_checkpoint
from tapeforge.engine.parallel import parallel_map
from tapeforge.substrates.tape.fitness import BestRecord, EvaluationFault
from tapeforge.substrates.tape.genome import Genome
from .selection import select_parents
from .variation import reproduce

logger = logging.getLogger(__name__)


@dataclass
class GAParams:
    crossover_rate: float = 0.7
    mutation_rate: float = 0.01
    population_size: int = 100
    genome_length: int = 100
    generations: int = 10_000_000
    target_fitness: Optional[float] = None
    elitism: bool = True
    selection: str = "roulette"
    tournament_size: int = 3
    max_seconds: Optional[float] = None


@dataclass(frozen=True)
class RunSnapshot:
    generation: int
    best_fitness: float
    target_fitness: Optional[float]
    best_output: bytes
    best_program: str
    ticks: int
    no_errors: bool
    changed_at: float
    population_max: float
    population_mean: float
    elapsed: float


class Evaluator(Protocol):
    def evaluate(self, genes: np.ndarray, record: BestRecord) -> float: ...


class Observer(Protocol):
    def on_generation(self, snapshot: RunSnapshot) -> None: ...


class GeneticAlgorithm:
    """Population owner and generation loop.

    Fitness values always belong to the genome in the same row of
    ``population``; the elite keeps its score because its genes are copied
    unchanged, every other row is re-evaluated. The best-so-far record is
    owned here and handed to the evaluator by reference.
    """

    def __init__(self, params: GAParams, *, rng: Optional[np.random.Generator] = None, seed: Optional[int] = None):
        self.params = params
        self.rng = rng if rng is not None else make_rng(seed)
        self.population = np.empty((0, params.genome_length), dtype=np.float64)
        self.fitness = np.empty(0, dtype=np.float64)
        self.generation = 0
        self.best_record = BestRecord()
        self.metadata: Dict[str, Any] = {}
        self._elapsed_offset = 0.0
        self._clock_start: Optional[float] = None

    @property
    def elapsed(self) -> float:
        running = time.perf_counter() - self._clock_start if self._clock_start is not None else 0.0
        return self._elapsed_offset + running

    @property
    def best_fitness(self) -> float:
        pop_best = float(self.fitness.max()) if self.fitness.size else 0.0
        return max(self.best_record.fitness, pop_best)

    def initialize(self):
        p = self.params
        self.population = np.stack([Genome.random(p.genome_length, self.rng).genes for _ in range(p.population_size)])
        self.fitness = np.zeros(p.population_size, dtype=np.float64)
        self.generation = 0

    def _score(self, evaluator: Evaluator, genes: np.ndarray) -> float:
        try:
            value = float(evaluator.evaluate(genes, self.best_record))
            if not math.isfinite(value):
                raise EvaluationFault(f"non-finite score {value!r}")
        except Exception:
            logger.exception("evaluation fault at generation %d; genome scored 0", self.generation)
            return 0.0
        return value

    def evaluate_all(self, genomes: np.ndarray, evaluator: Evaluator, workers: int = 1) -> np.ndarray:
        scores = parallel_map(lambda genes: self._score(evaluator, genes), list(genomes), workers)
        return np.asarray(scores, dtype=np.float64)

    def step(self, evaluator: Evaluator, workers: int = 1):
        """Breed, evaluate, and install the next generation."""
        p = self.params
        n_children = p.population_size - 1 if p.elitism else p.population_size
        parents = select_parents(
            self.fitness,
            n_children + n_children % 2,
            self.rng,
            scheme=p.selection,
            tournament_size=p.tournament_size,
        )
        children = reproduce(
            self.population,
            parents,
            self.rng,
            crossover_rate=p.crossover_rate,
            mutation_rate=p.mutation_rate,
            count=n_children,
        )
        child_fitness = self.evaluate_all(children, evaluator, workers)
        if p.elitism:
            elite = int(np.argmax(self.fitness))
            population = np.vstack((self.population[elite][None, :], children))
            fitness = np.concatenate(([self.fitness[elite]], child_fitness))
        else:
            population, fitness = children, child_fitness
        self.population, self.fitness = population, fitness
        self.generation += 1

    def should_stop(self) -> bool:
        p = self.params
        if p.target_fitness is not None and self.best_fitness >= p.target_fitness:
            return True
        if self.generation >= p.generations:
            return True
        return p.max_seconds is not None and self.elapsed >= p.max_seconds

    def snapshot(self) -> RunSnapshot:
        record = self.best_record.copy()
        return RunSnapshot(
            generation=self.generation,
            best_fitness=self.best_fitness,
            target_fitness=self.params.target_fitness,
            best_output=record.output,
            best_program=record.program,
            ticks=record.ticks,
            no_errors=record.no_errors,
            changed_at=record.changed_at,
            population_max=float(self.fitness.max()) if self.fitness.size else 0.0,
            population_mean=float(self.fitness.mean()) if self.fitness.size else 0.0,
            elapsed=self.elapsed,
        )

    def _notify(self, observer: Optional[Observer]):
        if observer is None:
            return
        try:
            observer.on_generation(self.snapshot())
        except Exception:
            logger.exception("observer failed at generation %d", self.generation)

    def _loop(self, evaluator: Evaluator, observer: Optional[Observer], workers: int) -> BestRecord:
        while not self.should_stop():
            self.step(evaluator, workers)
            self._notify(observer)
        self._elapsed_offset = self.elapsed
        self._clock_start = None
        logger.info("evolution stopped at generation %d with best fitness %.1f", self.generation, self.best_fitness)
        return self.best_record

    def go(self, evaluator: Evaluator, observer: Optional[Observer] = None, *, workers: int = 1) -> BestRecord:
        """Start a fresh run and evolve until a termination condition holds."""
        self.best_record.reset()
        self._elapsed_offset = 0.0
        self._clock_start = time.perf_counter()
        self.initialize()
        self.fitness = self.evaluate_all(self.population, evaluator, workers)
        self._notify(observer)
        return self._loop(evaluator, observer, workers)

    def resume(self, evaluator: Evaluator, observer: Optional[Observer] = None, *, workers: int = 1) -> BestRecord:
        """Continue from a loaded or paused state with fresh callbacks."""
        if self.population.shape[0] == 0:
            raise RuntimeError("no population to resume; call load() or go() first")
        self._clock_start = time.perf_counter()
        # Evaluation draws no randomness, so reseeding the record leaves the run untouched.
        self._score(evaluator, self.population[int(np.argmax(self.fitness))])
        return self._loop(evaluator, observer, workers)

    def get_best(self) -> Tuple[np.ndarray, float]:
        if not self.fitness.size:
            raise RuntimeError("population has not been evaluated")
        idx = int(np.argmax(self.fitness))
        return self.population[idx].copy(), float(self.fitness[idx])

    def checkpoint_state(self, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Capture the run state as plain data, detached from later generations."""
        return {
            "params": asdict(self.params),
            "generation": self.generation,
            "population": self.population.tolist(),
            "fitness": self.fitness.tolist(),
            "rng": rng_state(self.rng),
            "elapsed": self.elapsed,
            "metadata": metadata if metadata is not None else self.metadata,
        }

    def save(self, path: Path, metadata: Optional[Dict[str, Any]] = None):
        save_checkpoint(Path(path), self.checkpoint_state(metadata))

    def load(self, path: Path) -> Dict[str, Any]:
        state = load_checkpoint(Path(path))
        known = {f.name for f in fields(GAParams)}
        try:
            params = GAParams(**{k: v for k, v in state["params"].items() if k in known})
            population = np.asarray(state["population"], dtype=np.float64).reshape(-1, params.genome_length)
            fitness = np.asarray(state["fitness"], dtype=np.float64)
            rng = rng_from_state(state["rng"])
            generation = int(state["generation"])
        except (KeyError, TypeError, ValueError) as exc:
            raise CheckpointIOFailure(f"checkpoint {path} is incomplete: {exc}") from exc
        if population.shape[0] != params.population_size or fitness.shape[0] != params.population_size:
            raise CheckpointIOFailure(f"checkpoint {path} population does not match its parameters")
        self.params = params
        self.population = population
        self.fitness = fitness
        self.rng = rng
        self.generation = generation
        self.metadata = dict(state.get("metadata") or {})
        self._elapsed_offset = float(state.get("elapsed", 0.0))
        self._clock_start = None
        self.best_record.reset()
        return self.metadata

    @classmethod
    def from_checkpoint(cls, path: Path) -> "GeneticAlgorithm":
        ga = cls(GAParams())
        ga.load(path)
        return ga
