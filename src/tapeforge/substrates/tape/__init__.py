"""Tape-language substrate: interpreter, genome decoding, fitness."""
from .interpreter import (
    INSTRUCTIONS,
    InterpreterError,
    MalformedProgram,
    RunOutcome,
    RunResult,
    TapeBoundsError,
    TapeInterpreter,
    run,
)
from .genome import Genome, decode
from .fitness import BestRecord, Evaluation, EvaluationFault, FitnessEvaluator, score_output, target_fitness

__all__ = [
    "INSTRUCTIONS",
    "InterpreterError",
    "MalformedProgram",
    "RunOutcome",
    "RunResult",
    "TapeBoundsError",
    "TapeInterpreter",
    "run",
    "Genome",
    "decode",
    "BestRecord",
    "Evaluation",
    "EvaluationFault",
    "FitnessEvaluator",
    "score_output",
    "target_fitness",
]
