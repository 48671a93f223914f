"""
Unit tests for Genome: structure queries, invariant validation and breeding.
"""

import numpy as np
import pytest

from arena.errors import DimensionMismatchError, MissingGeneError
from arena.genes import (
    HIDDEN_UNITS,
    OUTPUT_UNITS,
    WEIGHT_LAYER_PAIRS,
    Gene,
    GeneKind,
    Layer,
    num_inputs_for,
)
from arena.genome import Genome
from arena.rng import RandomSource


def _genes_equal(a: Genome, b: Genome) -> bool:
    return len(a) == len(b) and all(x == y for x, y in zip(a, b))


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------

class TestGenomeStructure:

    @pytest.mark.parametrize("num_eyes", [0, 1, 3])
    def test_random_genome_is_valid(self, num_eyes):
        genome = Genome.random(num_eyes, RandomSource(seed=num_eyes))
        genome.validate()
        assert len(genome.genes_of_kind(GeneKind.COLOR)) == 1
        assert genome.num_eyes == num_eyes
        assert len(genome.genes_of_kind(GeneKind.NEURON_WEIGHTS)) == 3
        for input_layer, output_layer in WEIGHT_LAYER_PAIRS:
            genome.weights_gene(input_layer, output_layer)

    def test_random_genome_hidden_paths_start_at_zero(self):
        genome = Genome.random(2, RandomSource(seed=1))
        assert np.all(genome.weights_gene(Layer.INPUT, Layer.HIDDEN).data.matrix == 0)
        assert np.all(genome.weights_gene(Layer.HIDDEN, Layer.OUTPUT).data.matrix == 0)

    def test_missing_color_raises(self, make_genome):
        genome = make_genome()
        genome.genes = [g for g in genome.genes if g.kind != GeneKind.COLOR]
        with pytest.raises(MissingGeneError):
            genome.validate()

    def test_duplicate_color_raises(self, make_genome):
        genome = make_genome().add_gene(Gene.color(1, 1, 1))
        with pytest.raises(MissingGeneError):
            genome.validate()

    @pytest.mark.parametrize("pair", WEIGHT_LAYER_PAIRS)
    def test_missing_weights_pair_raises(self, make_genome, pair):
        genome = make_genome()
        genome.genes = [g for g in genome.genes
                        if not (g.kind == GeneKind.NEURON_WEIGHTS and g.data.layers == pair)]
        with pytest.raises(MissingGeneError):
            genome.validate()

    def test_input_rows_must_match_eye_count(self, make_genome):
        genome = make_genome(eyes=[(1.0, 80, 0.0)], skip=np.zeros((5, OUTPUT_UNITS)))
        with pytest.raises(DimensionMismatchError):
            genome.validate()

    def test_hidden_output_rows_fixed(self, make_genome):
        genome = make_genome(hidden_output=np.zeros((4, OUTPUT_UNITS)))
        with pytest.raises(DimensionMismatchError):
            genome.validate()

    def test_mutants_query(self, make_genome):
        genome = make_genome()
        assert genome.mutants() == []
        assert not genome.is_mutant
        genome.add_gene(Gene.eye(1.0, 80, 0.0).mutate(RandomSource(seed=1)))
        assert len(genome.mutants()) == 1
        assert genome.is_mutant


# ---------------------------------------------------------------------------
# Breeding
# ---------------------------------------------------------------------------

class TestBreeding:

    def test_child_is_structurally_valid(self):
        rng = RandomSource(seed=42)
        for _ in range(30):
            mother = Genome.random(rng.integer(0, 3), rng)
            father = Genome.random(rng.integer(0, 3), rng)
            child = mother.breed_with(father, 0.5, rng)
            child.validate()
            assert len(child.genes_of_kind(GeneKind.COLOR)) == 1
            assert len(child.genes_of_kind(GeneKind.NEURON_WEIGHTS)) == 3
            assert len(child) == 1 + child.num_eyes + 3

    def test_eye_count_comes_from_a_parent_without_mutation(self):
        rng = RandomSource(seed=7)
        mother = Genome.random(1, rng)
        father = Genome.random(3, rng)
        counts = {mother.breed_with(father, 0.0, rng).num_eyes for _ in range(40)}
        assert counts == {1, 3}

    def test_no_mutants_without_mutation_chance(self):
        rng = RandomSource(seed=7)
        mother = Genome.random(2, rng)
        father = Genome.random(2, rng)
        for _ in range(20):
            assert not mother.breed_with(father, 0.0, rng).is_mutant

    def test_full_mutation_chance_mutates_every_gene(self):
        rng = RandomSource(seed=8)
        mother = Genome.random(2, rng)
        father = Genome.random(2, rng)
        child = mother.breed_with(father, 1.0, rng)
        assert child.color_gene.is_mutant
        assert all(eye.is_mutant for eye in child.eye_genes)
        for pair in WEIGHT_LAYER_PAIRS:
            assert child.weights_gene(*pair).is_mutant

    def test_extra_eyes_carried_through_unchanged(self):
        rng = RandomSource(seed=5)
        mother = Genome.random(3, rng)
        father = Genome.random(1, rng)
        for _ in range(40):
            child = mother.breed_with(father, 0.0, rng)
            if child.num_eyes == 3:
                assert child.eye_genes[1] == mother.eye_genes[1]
                assert child.eye_genes[2] == mother.eye_genes[2]
                return
        pytest.fail("no three-eyed child bred")

    def test_input_matrices_follow_child_eye_count(self):
        rng = RandomSource(seed=12)
        mother = Genome.random(0, rng)
        father = Genome.random(4, rng)
        for _ in range(30):
            child = mother.breed_with(father, 0.3, rng)
            expected = num_inputs_for(child.num_eyes)
            assert child.weights_gene(Layer.INPUT, Layer.OUTPUT).data.matrix.shape == (expected, OUTPUT_UNITS)
            assert child.weights_gene(Layer.INPUT, Layer.HIDDEN).data.matrix.shape == (expected, HIDDEN_UNITS)
            assert child.weights_gene(Layer.HIDDEN, Layer.OUTPUT).data.matrix.shape == (HIDDEN_UNITS, OUTPUT_UNITS)

    def test_breeding_is_deterministic_under_seed(self):
        parents = RandomSource(seed=99)
        mother = Genome.random(2, parents)
        father = Genome.random(1, parents)

        first = mother.breed_with(father, 0.3, RandomSource(seed=2024))
        second = mother.breed_with(father, 0.3, RandomSource(seed=2024))
        assert _genes_equal(first, second)

    def test_parents_untouched_by_breeding(self):
        rng = RandomSource(seed=31)
        mother = Genome.random(2, rng)
        father = Genome.random(2, rng)
        before = [g.copy() for g in mother]
        mother.breed_with(father, 1.0, rng)
        assert all(a == b for a, b in zip(before, mother))
