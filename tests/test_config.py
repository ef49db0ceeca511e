import pytest
from pydantic import ValidationError

from tapeforge.config import DEFAULT_CONFIG_PATH, ConfigSchema, load_config


def test_bundled_defaults_match_schema_defaults():
    assert load_config(DEFAULT_CONFIG_PATH) == ConfigSchema()


def test_partial_yaml_fills_defaults(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("fitness:\n  target: hello\nevolution:\n  population: 20\n")
    cfg = load_config(path)
    assert cfg.fitness.target == "hello"
    assert cfg.evolution.population == 20
    assert cfg.evolution.mutation_rate == 0.01
    assert cfg.interpreter.instruction_budget == 2000


@pytest.mark.parametrize(
    "data",
    [
        {"evolution": {"mutation_rate": 1.5}},
        {"evolution": {"crossover_rate": -0.1}},
        {"evolution": {"selection": "truncation"}},
        {"evolution": {"population": 1}},
        {"fitness": {"target": ""}},
        {"interpreter": {"instruction_budget": 0}},
    ],
)
def test_invalid_values_are_rejected(data):
    with pytest.raises(ValidationError):
        ConfigSchema(**data)
