"""Pydantic config schema and loader."""
from pathlib import Path
from typing import Optional
import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_PATH = Path(__file__).with_name("defaults.yaml")
SELECTION_SCHEMES = ("roulette", "tournament")


class InterpreterConfig(BaseModel):
    instruction_budget: int = 2000
    max_cells: int = 65536

    @field_validator("instruction_budget", "max_cells")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("interpreter limits must be positive")
        return v


class FitnessConfig(BaseModel):
    target: str = "hi"
    max_byte_distance: int = 255

    @field_validator("target")
    @classmethod
    def validate_target(cls, v: str) -> str:
        if not v:
            raise ValueError("target must be a non-empty string")
        return v

    @field_validator("max_byte_distance")
    @classmethod
    def validate_distance(cls, v: int) -> int:
        if not 0 < v <= 255:
            raise ValueError("max_byte_distance must be within (0, 255]")
        return v


class EvolutionConfig(BaseModel):
    population: int = 100
    generations: int = 10_000_000
    genome_length: int = 100
    crossover_rate: float = 0.7
    mutation_rate: float = 0.01
    elitism: bool = True
    selection: str = "roulette"
    tournament_size: int = 3
    target_fitness: Optional[float] = None
    max_seconds: Optional[float] = None
    workers: int = 1
    checkpoint_interval: int = 1000
    status_interval: int = 1000

    @field_validator("population")
    @classmethod
    def validate_population(cls, v: int) -> int:
        if v < 2:
            raise ValueError("population must hold at least two genomes")
        return v

    @field_validator("generations", "genome_length", "tournament_size", "workers", "checkpoint_interval", "status_interval")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("counts must be positive")
        return v

    @field_validator("crossover_rate", "mutation_rate")
    @classmethod
    def validate_unit_interval(cls, v: float) -> float:
        if not 0 <= v <= 1:
            raise ValueError("rates must be within [0, 1]")
        return v

    @field_validator("selection")
    @classmethod
    def validate_selection(cls, v: str) -> str:
        if v not in SELECTION_SCHEMES:
            raise ValueError(f"selection must be one of {', '.join(SELECTION_SCHEMES)}")
        return v

    @field_validator("max_seconds", "target_fitness")
    @classmethod
    def validate_optional_positive(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("must be positive when set")
        return v


class OutputConfig(BaseModel):
    run_dir: Path = Path("runs")
    checkpoints: bool = True
    summarize: bool = True


class ConfigSchema(BaseModel):
    seed: int = 0
    interpreter: InterpreterConfig = Field(default_factory=InterpreterConfig)
    fitness: FitnessConfig = Field(default_factory=FitnessConfig)
    evolution: EvolutionConfig = Field(default_factory=EvolutionConfig)
    outputs: OutputConfig = Field(default_factory=OutputConfig)


def load_config(path: Path) -> ConfigSchema:
    data = yaml.safe_load(Path(path).read_text()) or {}
    return ConfigSchema(**data)
