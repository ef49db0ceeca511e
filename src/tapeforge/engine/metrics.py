"""Per-generation history output."""
from __future__ import annotations
from pathlib import Path
import pandas as pd

HISTORY_COLUMNS = ["generation", "best_fitness", "population_max", "population_mean", "ticks", "elapsed"]


def save_history(records: list[dict], path: Path) -> pd.DataFrame:
    df = pd.DataFrame(records, columns=HISTORY_COLUMNS)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return df


def load_history(path: Path) -> pd.DataFrame | None:
    if not path.exists():
        return None
    return pd.read_csv(path)
