"""Markdown run reports."""
from __future__ import annotations
from pathlib import Path
import json

from tapeforge.engine.metrics import load_history


def write_report(run_dir: Path):
    df = load_history(run_dir / "metrics.csv")
    if df is None:
        return None
    best_path = run_dir / "best_program.json"
    best = json.loads(best_path.read_text()) if best_path.exists() else {}
    latest = df.iloc[-1].to_dict() if not df.empty else {}
    fitness_lines = "\n".join(
        f"- **{k}**: {latest[k]:.2f}" for k in ("best_fitness", "population_max", "population_mean") if k in latest
    )
    best_section = ""
    if best:
        best_section = "\n".join(
            [
                "## Best program",
                "",
                f"Fitness {best.get('fitness')} / {best.get('target_fitness')} at generation {best.get('generation')}",
                "",
                "```",
                best.get("program", ""),
                "```",
                "",
                f"Output: `{best.get('output', '')!r}` ({best.get('status', 'unknown')})",
            ]
        )
    plot_png = run_dir / "plots" / "fitness.png"
    plot_section = f"![fitness]({plot_png})" if plot_png.exists() else ""
    report_path = run_dir / "report.md"
    report_path.write_text(
        "\n".join(
            [
                "# Run Report",
                "",
                "## Fitness (final snapshot)",
                fitness_lines,
                "",
                "## History summary",
                df.describe().to_markdown(),
                "",
                best_section,
                "",
                plot_section,
            ]
        )
    )
    return report_path
