"""Evolution runner: config in, run directory and best program out."""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
import json
import logging
from multiprocessing.pool import ThreadPool
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from tapeforge.config import ConfigSchema
from tapeforge.core.profiling import timer
from tapeforge.core.rng import make_rng
from tapeforge.engine.checkpointing import CheckpointIOFailure, save_checkpoint
from tapeforge.engine.metrics import load_history, save_history
from tapeforge.evolution.driver import GAParams, GeneticAlgorithm, RunSnapshot
from tapeforge.substrates.tape import FitnessEvaluator, InterpreterError, TapeInterpreter, decode

console = Console()
logger = logging.getLogger(__name__)

CHECKPOINT_NAME = "checkpoint.db"


@dataclass(frozen=True)
class EvolutionSummary:
    run_dir: Path
    generation: int
    fitness: float
    target_fitness: float
    program: str
    output: bytes


@dataclass(frozen=True)
class TraceResult:
    output: bytes
    ticks: int
    status: str


def status_line(snapshot: RunSnapshot) -> str:
    target = snapshot.target_fitness or 0.0
    pct = round(snapshot.best_fitness / target * 100, 2) if target else 0.0
    changed = datetime.fromtimestamp(snapshot.changed_at).strftime("%Y-%m-%d %H:%M:%S")
    output = snapshot.best_output.decode("latin-1")
    return (
        f"gen {snapshot.generation} | best {snapshot.best_fitness:g}/{target:g} {pct}% | ticks {snapshot.ticks} "
        f"| running {snapshot.elapsed / 60:.0f}m | output {output!r} | changed {changed} | program {snapshot.best_program}"
    )


class RunObserver:
    """Status output, history rows, and periodic checkpoints for one run."""

    def __init__(
        self,
        ga: GeneticAlgorithm,
        run_dir: Path,
        *,
        status_interval: int,
        checkpoint_interval: int,
        checkpoints: bool,
        metadata: Dict[str, Any],
    ):
        self.ga = ga
        self.run_dir = run_dir
        self.status_interval = status_interval
        self.checkpoint_interval = checkpoint_interval
        self.checkpoints = checkpoints
        self.metadata = metadata
        self.history: List[dict] = []
        self._writer: Optional[ThreadPool] = None

    @property
    def checkpoint_path(self) -> Path:
        return self.run_dir / CHECKPOINT_NAME

    def record(self, snapshot: RunSnapshot):
        self.history.append(
            {
                "generation": snapshot.generation,
                "best_fitness": snapshot.best_fitness,
                "population_max": snapshot.population_max,
                "population_mean": snapshot.population_mean,
                "ticks": snapshot.ticks,
                "elapsed": snapshot.elapsed,
            }
        )

    def checkpoint(self) -> bool:
        """Write a checkpoint now, after any queued background writes."""
        if not self.checkpoints:
            return False
        self.flush()
        try:
            self.ga.save(self.checkpoint_path, self.metadata)
        except CheckpointIOFailure as exc:
            logger.warning("checkpoint skipped: %s", exc)
            return False
        return True

    def checkpoint_async(self):
        """Queue a checkpoint write; the state is captured before returning."""
        if not self.checkpoints:
            return
        if self._writer is None:
            self._writer = ThreadPool(processes=1)
        state = self.ga.checkpoint_state(self.metadata)
        self._writer.apply_async(save_checkpoint, (self.checkpoint_path, state), error_callback=self._write_failed)

    def _write_failed(self, exc: BaseException):
        logger.warning("checkpoint skipped: %s", exc)

    def flush(self):
        """Wait for queued checkpoint writes to finish."""
        if self._writer is None:
            return
        self._writer.close()
        self._writer.join()
        self._writer = None

    def on_generation(self, snapshot: RunSnapshot) -> None:
        if snapshot.generation % self.status_interval == 0:
            self.record(snapshot)
            console.log(status_line(snapshot), markup=False)
        if snapshot.generation and snapshot.generation % self.checkpoint_interval == 0:
            self.checkpoint_async()


def build_evaluator(config: ConfigSchema) -> FitnessEvaluator:
    return FitnessEvaluator(
        config.fitness.target,
        instruction_budget=config.interpreter.instruction_budget,
        max_byte_distance=config.fitness.max_byte_distance,
        max_cells=config.interpreter.max_cells,
    )


def build_params(config: ConfigSchema, target_fitness: float) -> GAParams:
    evo = config.evolution
    return GAParams(
        crossover_rate=evo.crossover_rate,
        mutation_rate=evo.mutation_rate,
        population_size=evo.population,
        genome_length=evo.genome_length,
        generations=evo.generations,
        target_fitness=evo.target_fitness if evo.target_fitness is not None else target_fitness,
        elitism=evo.elitism,
        selection=evo.selection,
        tournament_size=evo.tournament_size,
        max_seconds=evo.max_seconds,
    )


def trace_program(program: str, *, instruction_budget: int, input_data: bytes = b"", max_cells: Optional[int] = None) -> TraceResult:
    """Run a finished program once, reporting faults instead of raising.

    Output emitted before a fault is kept.
    """
    produced = bytearray()
    kwargs = {"max_cells": max_cells} if max_cells is not None else {}
    interpreter = TapeInterpreter(program, input_data, produced.append, **kwargs)
    try:
        status = interpreter.run(instruction_budget).value
    except InterpreterError as exc:
        status = f"fault: {exc}"
    return TraceResult(output=bytes(produced), ticks=interpreter.ticks, status=status)


def _finish(ga: GeneticAlgorithm, observer: RunObserver, config: ConfigSchema) -> EvolutionSummary:
    run_dir = observer.run_dir
    final = ga.snapshot()
    if not observer.history or observer.history[-1]["generation"] != final.generation:
        observer.record(final)
    observer.checkpoint()
    save_history(observer.history, run_dir / "metrics.csv")
    genes, fitness = ga.get_best()
    program = decode(genes)
    trace = trace_program(
        program,
        instruction_budget=config.interpreter.instruction_budget,
        max_cells=config.interpreter.max_cells,
    )
    best = {
        "generation": ga.generation,
        "fitness": fitness,
        "target_fitness": ga.params.target_fitness,
        "program": program,
        "output": trace.output.decode("latin-1"),
        "status": trace.status,
        "best_ever": {
            "fitness": final.best_fitness,
            "program": final.best_program,
            "output": final.best_output.decode("latin-1"),
            "ticks": final.ticks,
            "no_errors": final.no_errors,
        },
    }
    (run_dir / "best_program.json").write_text(json.dumps(best, indent=2))
    with open(run_dir / "config.yaml", "w") as f:
        yaml.safe_dump(config.model_dump(mode="json"), f)
    if config.outputs.summarize:
        table = Table(title="Evolution summary", show_lines=True)
        table.add_column("metric")
        table.add_column("value")
        table.add_row("generation", str(ga.generation))
        table.add_row("fitness", f"{fitness:g} / {ga.params.target_fitness:g}")
        table.add_row("best ever", f"{final.best_fitness:g}")
        table.add_row("ticks", str(final.ticks))
        table.add_row("elapsed", f"{final.elapsed:.1f}s")
        console.print(table)
    console.print(f"evolution complete -> {run_dir}")
    return EvolutionSummary(
        run_dir=run_dir,
        generation=ga.generation,
        fitness=fitness,
        target_fitness=float(ga.params.target_fitness or 0.0),
        program=program,
        output=trace.output,
    )


def _observer_for(ga: GeneticAlgorithm, run_dir: Path, config: ConfigSchema) -> RunObserver:
    return RunObserver(
        ga,
        run_dir,
        status_interval=config.evolution.status_interval,
        checkpoint_interval=config.evolution.checkpoint_interval,
        checkpoints=config.outputs.checkpoints,
        metadata={"config": config.model_dump(mode="json")},
    )


def run_evolution(config: ConfigSchema) -> EvolutionSummary:
    evaluator = build_evaluator(config)
    ga = GeneticAlgorithm(build_params(config, evaluator.target_fitness), rng=make_rng(config.seed))
    run_dir = Path(config.outputs.run_dir) / f"evolve_{config.seed}"
    run_dir.mkdir(parents=True, exist_ok=True)
    observer = _observer_for(ga, run_dir, config)
    console.log(f"evolving a program for {config.fitness.target!r} (target fitness {ga.params.target_fitness:g})")
    with timer("evolution"):
        ga.go(evaluator, observer, workers=config.evolution.workers)
    return _finish(ga, observer, config)


def resume_run(checkpoint: Path, *, generations: Optional[int] = None, workers: Optional[int] = None) -> EvolutionSummary:
    """Continue the run stored in ``checkpoint``; load failures are fatal."""
    ga = GeneticAlgorithm.from_checkpoint(checkpoint)
    try:
        config = ConfigSchema(**ga.metadata["config"])
    except (KeyError, TypeError, ValidationError) as exc:
        raise CheckpointIOFailure(f"checkpoint {checkpoint} carries no usable run configuration") from exc
    if generations is not None:
        config.evolution.generations = generations
        ga.params.generations = generations
    if workers is not None:
        config.evolution.workers = workers
    run_dir = Path(checkpoint).parent
    observer = _observer_for(ga, run_dir, config)
    previous = load_history(run_dir / "metrics.csv")
    if previous is not None:
        observer.history = previous[previous["generation"] <= ga.generation].to_dict("records")
    console.log(f"resuming {checkpoint} at generation {ga.generation}")
    with timer("evolution"):
        ga.resume(build_evaluator(config), observer, workers=config.evolution.workers)
    return _finish(ga, observer, config)
