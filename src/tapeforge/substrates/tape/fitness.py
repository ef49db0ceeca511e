"""Target-string fitness for decoded tape programs."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
import threading
import time
from typing import Optional, Union
import numpy as np

from .genome import decode
from .interpreter import DEFAULT_MAX_CELLS, InterpreterError, RunOutcome, TapeInterpreter

logger = logging.getLogger(__name__)

MAX_BYTE_DISTANCE = 255


class EvaluationFault(Exception):
    """Unexpected failure while decoding or executing a genome."""


def as_target_bytes(target: Union[str, bytes]) -> bytes:
    return target.encode("utf-8") if isinstance(target, str) else bytes(target)


def target_fitness(target: Union[str, bytes], max_byte_distance: int = MAX_BYTE_DISTANCE) -> float:
    return float(len(as_target_bytes(target)) * (max_byte_distance + 1))


def score_output(produced: bytes, target: bytes, max_byte_distance: int = MAX_BYTE_DISTANCE) -> float:
    """Per-position closeness of ``produced`` to ``target``.

    Each position both strings share earns ``max_byte_distance + 1`` minus the
    absolute byte difference; missing positions earn nothing and surplus
    output is ignored.
    """

    n = min(len(produced), len(target))
    if n == 0:
        return 0.0
    p = np.frombuffer(produced[:n], dtype=np.uint8).astype(np.int64)
    t = np.frombuffer(target[:n], dtype=np.uint8).astype(np.int64)
    return float(((max_byte_distance + 1) - np.abs(p - t)).sum())


@dataclass(frozen=True)
class Evaluation:
    score: float
    output: bytes
    program: str
    ticks: int
    outcome: Optional[RunOutcome]
    no_errors: bool
    fault: Optional[str] = None


@dataclass
class BestRecord:
    """Best result seen during a run, independent of population turnover."""

    fitness: float = 0.0
    output: bytes = b""
    program: str = ""
    ticks: int = 0
    no_errors: bool = False
    changed_at: float = field(default_factory=time.time)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def offer(self, evaluation: Evaluation) -> bool:
        """Replace the record if ``evaluation`` scores strictly higher."""
        with self._lock:
            if evaluation.score <= self.fitness:
                return False
            self.fitness = evaluation.score
            self.output = evaluation.output
            self.program = evaluation.program
            self.ticks = evaluation.ticks
            self.no_errors = evaluation.no_errors
            self.changed_at = time.time()
            return True

    def copy(self) -> "BestRecord":
        with self._lock:
            return replace(self, _lock=threading.Lock())

    def reset(self):
        with self._lock:
            self.fitness = 0.0
            self.output = b""
            self.program = ""
            self.ticks = 0
            self.no_errors = False
            self.changed_at = time.time()


class FitnessEvaluator:
    """Decode, run, and score a genome against a target string."""

    def __init__(
        self,
        target: Union[str, bytes],
        *,
        instruction_budget: int = 2000,
        max_byte_distance: int = MAX_BYTE_DISTANCE,
        max_cells: int = DEFAULT_MAX_CELLS,
    ):
        self.target = as_target_bytes(target)
        if not self.target:
            raise ValueError("target must not be empty")
        self.instruction_budget = instruction_budget
        self.max_byte_distance = max_byte_distance
        self.max_cells = max_cells

    @property
    def target_fitness(self) -> float:
        return target_fitness(self.target, self.max_byte_distance)

    def run_genome(self, genes: np.ndarray) -> Evaluation:
        produced = bytearray()
        stop = threading.Event()
        target_len = len(self.target)

        def sink(value: int):
            produced.append(value)
            if len(produced) >= target_len:
                stop.set()

        program = ""
        interpreter: Optional[TapeInterpreter] = None
        outcome: Optional[RunOutcome] = None
        fault: Optional[str] = None
        try:
            program = decode(genes)
            interpreter = TapeInterpreter(program, None, sink, max_cells=self.max_cells)
            outcome = interpreter.run(self.instruction_budget, stop)
        except InterpreterError as exc:
            fault = str(exc)
        except Exception as exc:
            fault = f"{type(exc).__name__}: {exc}"
            logger.warning("evaluation fault in %r: %s", program, fault)
        output = bytes(produced)
        return Evaluation(
            score=score_output(output, self.target, self.max_byte_distance),
            output=output,
            program=program,
            ticks=interpreter.ticks if interpreter is not None else 0,
            outcome=outcome,
            no_errors=fault is None,
            fault=fault,
        )

    def evaluate(self, genes: np.ndarray, record: BestRecord) -> float:
        evaluation = self.run_genome(genes)
        record.offer(evaluation)
        return evaluation.score
