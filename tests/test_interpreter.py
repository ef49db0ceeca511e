import threading

import numpy as np
import pytest

from tapeforge.substrates.tape import Genome, decode
from tapeforge.substrates.tape.interpreter import (
    MalformedProgram,
    RunOutcome,
    Tape,
    TapeBoundsError,
    TapeInterpreter,
    run,
)


def test_cells_wrap_around():
    assert run("-.").output == b"\xff"
    assert run("+" * 256 + ".", instruction_budget=1000).output == b"\x00"


def test_negative_positions_are_addressable():
    result = run("<+++<++.>.>.")
    assert result.output == b"\x02\x03\x00"
    assert result.outcome is RunOutcome.COMPLETED
    assert result.ticks == 12


def test_tape_grows_both_ways():
    tape = Tape(max_cells=1000, initial=4)
    tape[-50] = 7
    tape[50] = 300
    assert tape[-50] == 7
    assert tape[50] == 300 & 0xFF
    assert all(tape[p] == 0 for p in range(-2, 3))
    assert len(tape) <= 1000


def test_tape_bounds_are_a_defined_failure():
    interp = TapeInterpreter(">" * 10 + "+", max_cells=8)
    with pytest.raises(TapeBoundsError):
        interp.run(100)
    # moving without touching a cell is fine
    assert TapeInterpreter(">" * 10, max_cells=8).run(100) is RunOutcome.COMPLETED


def test_input_reads_bytes_and_ignores_exhaustion():
    assert run(",.,.", input_source=b"A").output == b"AA"
    assert run(",.").output == b"\x00"


def test_loops_execute():
    # 8 * 9 = 72 = 'H'
    assert run("++++++++[>+++++++++<-]>.").output == b"H"
    # a zero cell skips the loop body entirely
    assert run("[+.]+.").output == b"\x01"


def test_unmatched_open_is_detected_lazily():
    produced = bytearray()
    interp = TapeInterpreter("+" * 72 + ".>[", output_sink=produced.append)
    with pytest.raises(MalformedProgram):
        interp.run(1000)
    assert bytes(produced) == b"H"
    assert interp.ticks == 75
    # never jumped, so never checked
    assert run("+[").outcome is RunOutcome.COMPLETED


def test_unmatched_close_with_nonzero_cell():
    with pytest.raises(MalformedProgram):
        run("+]")
    assert run("]").outcome is RunOutcome.COMPLETED


def test_bracket_matching_is_symmetric():
    program = "+[>[-]<[[]+]-]++[>]"
    forward = TapeInterpreter(program)
    backward = TapeInterpreter(program)
    opens = [i for i, s in enumerate(program) if s == "["]
    for i in opens:
        j = forward.match_forward(i)
        assert program[j] == "]"
        assert backward.match_backward(j) == i


def test_budget_stops_infinite_loop():
    result = run("+[]", instruction_budget=100)
    assert result.outcome is RunOutcome.BUDGET_EXCEEDED
    assert result.ticks == 100


def test_budget_is_never_exceeded_for_random_programs():
    rng = np.random.default_rng(11)
    for _ in range(200):
        interp = TapeInterpreter(decode(Genome.random(60, rng)))
        try:
            interp.run(50)
        except MalformedProgram:
            pass
        assert interp.ticks <= 50


def test_stop_token_halts_after_output():
    stop = threading.Event()
    produced = bytearray()

    def sink(value):
        produced.append(value)
        stop.set()

    interp = TapeInterpreter("+.+.+.", output_sink=sink)
    assert interp.run(100, stop) is RunOutcome.STOPPED_EARLY
    assert bytes(produced) == b"\x01"
    assert interp.ticks == 2


def test_unknown_symbols_are_rejected():
    with pytest.raises(ValueError):
        TapeInterpreter("+x.")
