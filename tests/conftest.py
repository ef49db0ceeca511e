"""Test configuration for local imports without installing the package."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure():
    """Ensure the src/ directory is importable for tests."""
    root = Path(__file__).resolve().parents[1] / "src"
    sys.path.insert(0, str(root))


@pytest.fixture
def genes_for():
    """Genes at the centre of each symbol's bucket."""
    from tapeforge.substrates.tape import INSTRUCTIONS

    def _genes(program: str) -> list[float]:
        return [(INSTRUCTIONS.index(symbol) + 0.5) / len(INSTRUCTIONS) for symbol in program]

    return _genes


@pytest.fixture
def hi_program() -> str:
    # 10 * 10 + 4 = 104 = "h", then 105 = "i"
    return "++++++++++[>++++++++++<-]>++++.+."
