import numpy as np

from tapeforge.substrates.tape import INSTRUCTIONS, Genome, decode


def test_all_zero_genome_moves_right_only():
    assert decode(np.zeros(100)) == ">" * 100


def test_decode_is_deterministic():
    rng = np.random.default_rng(123)
    genome = Genome.random(100, rng)
    assert decode(genome) == decode(genome)
    assert decode(genome) == decode(genome.genes.copy())
    assert genome.program == decode(genome)


def test_bucket_centres_follow_instruction_table():
    genes = np.arange(8) / 8 + 1 / 16
    assert decode(genes) == INSTRUCTIONS == "><+-.,[]"


def test_bucket_upper_bounds_are_closed():
    genes = [0.125, 0.1250001, 0.25, 0.375, 0.5, 0.625, 0.75, 0.875, 0.8751, 1.0]
    assert decode(genes) == "><<+-.,[]]"


def test_decode_is_total_outside_unit_interval():
    assert decode([-3.0, 7.0]) == ">]"


def test_random_genome_shape_and_range():
    genome = Genome.random(50, np.random.default_rng(0))
    assert len(genome) == 50
    assert np.all((genome.genes >= 0.0) & (genome.genes < 1.0))
    assert set(decode(genome)) <= set(INSTRUCTIONS)
