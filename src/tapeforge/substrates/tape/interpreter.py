"""Bounded interpreter for the eight-instruction tape language."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import threading
from typing import Callable, Dict, Iterable, Iterator, Optional

INSTRUCTIONS = "><+-.,[]"
DEFAULT_MAX_CELLS = 65536

OutputSink = Callable[[int], None]


class InterpreterError(Exception):
    """Program fault raised while executing."""


class MalformedProgram(InterpreterError):
    """A loop bracket has no matching partner."""


class TapeBoundsError(InterpreterError):
    """The data pointer left the permitted tape window."""


class RunOutcome(str, Enum):
    COMPLETED = "completed"
    BUDGET_EXCEEDED = "budget_exceeded"
    STOPPED_EARLY = "stopped_early"


@dataclass(frozen=True)
class RunResult:
    outcome: RunOutcome
    ticks: int
    output: bytes


class Tape:
    """Zero-initialised byte cells addressed by signed positions.

    Cells live in a ``bytearray``; ``origin`` is the array index of position
    zero, so negative positions never turn into negative indices. The array
    grows on demand in either direction up to ``max_cells``.
    """

    def __init__(self, max_cells: int = DEFAULT_MAX_CELLS, initial: int = 64):
        self.max_cells = max_cells
        size = min(initial, max_cells)
        self.cells = bytearray(size)
        self.origin = size // 2

    def __len__(self) -> int:
        return len(self.cells)

    def _index(self, position: int) -> int:
        idx = position + self.origin
        if 0 <= idx < len(self.cells):
            return idx
        self._grow(idx)
        return position + self.origin

    def _grow(self, idx: int):
        size = len(self.cells)
        needed = size + (-idx if idx < 0 else idx - size + 1)
        if needed > self.max_cells:
            raise TapeBoundsError(f"tape position {idx - self.origin} exceeds {self.max_cells} cells")
        extra = min(max(needed - size, size), self.max_cells - size)
        if idx < 0:
            self.cells[0:0] = bytes(extra)
            self.origin += extra
        else:
            self.cells.extend(bytes(extra))

    def __getitem__(self, position: int) -> int:
        return self.cells[self._index(position)]

    def __setitem__(self, position: int, value: int):
        self.cells[self._index(position)] = value & 0xFF


class TapeInterpreter:
    """Execute one program against a fresh tape.

    ``ticks``, ``pointer`` and ``tape`` stay readable after ``run`` returns or
    raises, so callers can report how far a faulted program got.
    """

    def __init__(
        self,
        program: str,
        input_source: Optional[Iterable[int]] = None,
        output_sink: Optional[OutputSink] = None,
        *,
        max_cells: int = DEFAULT_MAX_CELLS,
    ):
        bad = set(program) - set(INSTRUCTIONS)
        if bad:
            raise ValueError(f"program contains unknown symbols: {''.join(sorted(bad))!r}")
        self.program = program
        self._input: Optional[Iterator[int]] = iter(input_source) if input_source is not None else None
        self._sink = output_sink
        self.tape = Tape(max_cells)
        self.pointer = 0
        self.ip = 0
        self.ticks = 0
        self._jumps: Dict[int, int] = {}

    def match_forward(self, open_ip: int) -> int:
        if open_ip in self._jumps:
            return self._jumps[open_ip]
        depth = 0
        for ip in range(open_ip, len(self.program)):
            symbol = self.program[ip]
            if symbol == "[":
                depth += 1
            elif symbol == "]":
                depth -= 1
                if depth == 0:
                    self._jumps[open_ip] = ip
                    self._jumps[ip] = open_ip
                    return ip
        raise MalformedProgram(f"unmatched '[' at {open_ip}")

    def match_backward(self, close_ip: int) -> int:
        if close_ip in self._jumps:
            return self._jumps[close_ip]
        depth = 0
        for ip in range(close_ip, -1, -1):
            symbol = self.program[ip]
            if symbol == "]":
                depth += 1
            elif symbol == "[":
                depth -= 1
                if depth == 0:
                    self._jumps[close_ip] = ip
                    self._jumps[ip] = close_ip
                    return ip
        raise MalformedProgram(f"unmatched ']' at {close_ip}")

    def run(self, instruction_budget: int, stop: Optional[threading.Event] = None) -> RunOutcome:
        program = self.program
        tape = self.tape
        end = len(program)
        while self.ip < end:
            if self.ticks >= instruction_budget:
                return RunOutcome.BUDGET_EXCEEDED
            symbol = program[self.ip]
            self.ticks += 1
            if symbol == ">":
                self.pointer += 1
            elif symbol == "<":
                self.pointer -= 1
            elif symbol == "+":
                tape[self.pointer] = tape[self.pointer] + 1
            elif symbol == "-":
                tape[self.pointer] = tape[self.pointer] - 1
            elif symbol == ".":
                if self._sink is not None:
                    self._sink(tape[self.pointer])
                if stop is not None and stop.is_set():
                    self.ip += 1
                    return RunOutcome.STOPPED_EARLY
            elif symbol == ",":
                if self._input is not None:
                    value = next(self._input, None)
                    if value is not None:
                        tape[self.pointer] = value
            elif symbol == "[":
                if tape[self.pointer] == 0:
                    self.ip = self.match_forward(self.ip)
            elif symbol == "]":
                if tape[self.pointer] != 0:
                    self.ip = self.match_backward(self.ip)
            self.ip += 1
        return RunOutcome.COMPLETED


def run(
    program: str,
    input_source: Optional[Iterable[int]] = None,
    output_sink: Optional[OutputSink] = None,
    instruction_budget: int = 2000,
    stop: Optional[threading.Event] = None,
    *,
    max_cells: int = DEFAULT_MAX_CELLS,
) -> RunResult:
    """Run ``program`` and collect its output.

    Output bytes are forwarded to ``output_sink`` when given and always
    gathered into the returned ``RunResult``. Interpreter faults propagate.
    """
    produced = bytearray()

    def sink(value: int):
        produced.append(value)
        if output_sink is not None:
            output_sink(value)

    interpreter = TapeInterpreter(program, input_source, sink, max_cells=max_cells)
    outcome = interpreter.run(instruction_budget, stop)
    return RunResult(outcome=outcome, ticks=interpreter.ticks, output=bytes(produced))
