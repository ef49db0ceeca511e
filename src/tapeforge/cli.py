"""Typer CLI for tapeforge."""
from __future__ import annotations
import logging
import typer
from pathlib import Path
from rich import print
from rich.logging import RichHandler
from pydantic import ValidationError

from tapeforge.config import DEFAULT_CONFIG_PATH, ConfigSchema, load_config
from tapeforge.engine.checkpointing import CheckpointIOFailure
from tapeforge.engine.runner import EvolutionSummary, resume_run, run_evolution, trace_program
from tapeforge.analysis import plot_history, write_report

app = typer.Typer(help="Evolve tape-language programs that print a target string")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )


def _print_result(summary: EvolutionSummary):
    print(f"***** DONE! Best program had a fitness of {summary.fitness:g}")
    typer.echo(summary.program)
    typer.echo("------")
    typer.echo(summary.output.decode("latin-1"))


@app.command()
def run(
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, help="YAML config path"),
    target: str = typer.Option(None, help="Override target string"),
    seed: int = typer.Option(None, help="Override seed"),
    generations: int = typer.Option(None, help="Override generation ceiling"),
    pop: int = typer.Option(None, help="Override population"),
    genome_length: int = typer.Option(None, help="Override genome length"),
    budget: int = typer.Option(None, help="Override instruction budget"),
    workers: int = typer.Option(None, help="Evaluation threads"),
    run_dir: Path = typer.Option(None, help="Override output directory"),
):
    cfg = load_config(config)
    if target is not None:
        cfg.fitness.target = target
    if seed is not None:
        cfg.seed = seed
    if generations is not None:
        cfg.evolution.generations = generations
    if pop is not None:
        cfg.evolution.population = pop
    if genome_length is not None:
        cfg.evolution.genome_length = genome_length
    if budget is not None:
        cfg.interpreter.instruction_budget = budget
    if workers is not None:
        cfg.evolution.workers = workers
    if run_dir is not None:
        cfg.outputs.run_dir = run_dir
    # Overrides bypass field validation, so re-validate the assembled config.
    try:
        cfg = ConfigSchema.model_validate(cfg.model_dump())
    except ValidationError as exc:
        raise typer.BadParameter(str(exc))
    _print_result(run_evolution(cfg))


@app.command()
def resume(
    checkpoint: Path = typer.Argument(..., help="Checkpoint file"),
    generations: int = typer.Option(None, help="New generation ceiling"),
    workers: int = typer.Option(None, help="Evaluation threads"),
):
    try:
        summary = resume_run(checkpoint, generations=generations, workers=workers)
    except CheckpointIOFailure as exc:
        print(f"[red]cannot resume:[/red] {exc}")
        raise typer.Exit(code=1)
    _print_result(summary)


@app.command()
def execute(
    program: str = typer.Argument(..., help="Program text"),
    budget: int = typer.Option(2000, help="Instruction budget"),
    input_data: str = typer.Option("", "--input", help="Bytes fed to ','"),
):
    try:
        trace = trace_program(program, instruction_budget=budget, input_data=input_data.encode("utf-8"))
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    typer.echo(trace.output.decode("latin-1"))
    typer.echo(f"------ {trace.status} after {trace.ticks} ticks")


@app.command()
def analyze(run: Path = typer.Option(..., help="Run directory")):
    plot_history(run)
    write_report(run)
    print(f"Analysis complete for {run}")


if __name__ == "__main__":
    app()
