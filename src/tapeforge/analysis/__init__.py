"""Analysis utilities."""
from __future__ import annotations

from .report import write_report
from .plots import plot_history

__all__ = ["write_report", "plot_history"]
