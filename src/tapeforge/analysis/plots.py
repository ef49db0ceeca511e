"""Plotting helpers."""
from __future__ import annotations
from pathlib import Path
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from tapeforge.engine.metrics import load_history


def plot_history(run_dir: Path):
    df = load_history(run_dir / "metrics.csv")
    if df is None or df.empty:
        return None
    out_dir = run_dir / "plots"
    out_dir.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots()
    for col in ("best_fitness", "population_max", "population_mean"):
        if col in df.columns:
            ax.plot(df["generation"], df[col], label=col)
    ax.set_xlabel("generation")
    ax.set_ylabel("fitness")
    ax.legend()
    out = out_dir / "fitness.png"
    fig.savefig(out)
    plt.close(fig)
    return out
