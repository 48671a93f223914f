"""
Genome - The complete set of genes defining one agent

A genome holds exactly one COLOR gene, zero or more EYE genes and exactly
three NEURON_WEIGHTS genes, one per (input layer, output layer) pair. The
input-layer matrices have num_eyes * 9 + 5 rows.

USAGE:
    rng = RandomSource(seed=7)
    mother = Genome.random(num_eyes=2, rng=rng)
    father = Genome.random(num_eyes=1, rng=rng)
    child = mother.breed_with(father, mutation_chance=0.05, rng=rng)
"""

import logging
from typing import Iterator, List, Optional

from .errors import DimensionMismatchError, MissingGeneError
from .genes import (
    HIDDEN_UNITS,
    WEIGHT_LAYER_PAIRS,
    Gene,
    GeneKind,
    Layer,
    num_inputs_for,
    random_color_gene,
    random_eye_gene,
    random_skip_weights_gene,
    zero_hidden_output_gene,
    zero_input_hidden_gene,
)
from .rng import RandomSource

logger = logging.getLogger(__name__)


class Genome:
    """
    Ordered collection of genes, queried by kind.

    Order carries no meaning; breed_with always emits colour, eyes, then the
    three weight genes.
    """

    def __init__(self, genes: Optional[List[Gene]] = None):
        self.genes: List[Gene] = list(genes) if genes else []

    def add_gene(self, gene: Gene) -> 'Genome':
        self.genes.append(gene)
        return self

    # =========================================================================
    # QUERIES
    # =========================================================================

    def genes_of_kind(self, kind: GeneKind) -> List[Gene]:
        return [g for g in self.genes if g.kind == kind]

    @property
    def color_gene(self) -> Gene:
        colors = self.genes_of_kind(GeneKind.COLOR)
        if len(colors) != 1:
            raise MissingGeneError(f"genome needs exactly one color gene, found {len(colors)}")
        return colors[0]

    @property
    def eye_genes(self) -> List[Gene]:
        return self.genes_of_kind(GeneKind.EYE)

    @property
    def num_eyes(self) -> int:
        return len(self.eye_genes)

    def weights_gene(self, input_layer: Layer, output_layer: Layer) -> Gene:
        """The neuron weights gene for one layer pair."""
        found = [g for g in self.genes_of_kind(GeneKind.NEURON_WEIGHTS)
                 if g.data.layers == (input_layer, output_layer)]
        if len(found) != 1:
            raise MissingGeneError(
                f"genome needs exactly one {input_layer.value}->{output_layer.value} "
                f"weights gene, found {len(found)}")
        return found[0]

    def mutants(self) -> List[Gene]:
        """Genes produced by a mutation."""
        return [g for g in self.genes if g.is_mutant]

    @property
    def is_mutant(self) -> bool:
        return any(g.is_mutant for g in self.genes)

    def validate(self) -> 'Genome':
        """
        Check the structural invariants.

        Raises:
            MissingGeneError: colour gene or a weight layer pair missing/duplicated
            DimensionMismatchError: a matrix's rows disagree with the eye count
        """
        _ = self.color_gene
        expected_inputs = num_inputs_for(self.num_eyes)

        for input_layer, output_layer in WEIGHT_LAYER_PAIRS:
            data = self.weights_gene(input_layer, output_layer).data
            expected_rows = expected_inputs if input_layer == Layer.INPUT else HIDDEN_UNITS
            if data.matrix.shape[0] != expected_rows:
                raise DimensionMismatchError(
                    f"{input_layer.value}->{output_layer.value} matrix has "
                    f"{data.matrix.shape[0]} rows, expected {expected_rows} "
                    f"for {self.num_eyes} eye(s)")
        return self

    # =========================================================================
    # BREEDING
    # =========================================================================

    def breed_with(self, other: 'Genome', mutation_chance: float,
                   rng: RandomSource) -> 'Genome':
        """
        Combine this genome with another into one child genome.

        1. Colour: crossover, then mutate with probability mutation_chance.
        2. Eyes: child takes one parent's eye count; shared indices are
           crossed, the rest carried over. With probability mutation_chance/2
           one random eye is appended or the last one dropped, then each eye
           mutates with probability mutation_chance.
        3. Weights: per layer pair, crossover then maybe mutate; input-layer
           matrices are resized to the final eye count.
        """
        color = self.color_gene.crossover(other.color_gene, rng)
        if rng.boolean(mutation_chance):
            color = color.mutate(rng)

        mine, theirs = self.eye_genes, other.eye_genes
        num_eyes = len(mine) if rng.boolean() else len(theirs)
        eyes: List[Gene] = []
        for i in range(num_eyes):
            if i < len(mine) and i < len(theirs):
                eyes.append(mine[i].crossover(theirs[i], rng))
            elif i < len(mine):
                eyes.append(mine[i].copy())
            else:
                eyes.append(theirs[i].copy())

        if rng.boolean(mutation_chance / 2):
            if rng.boolean():
                eyes.append(random_eye_gene(rng))
                logger.debug("Eye gained during breeding (%d eyes)", len(eyes))
            elif eyes:
                eyes.pop()
                logger.debug("Eye lost during breeding (%d eyes)", len(eyes))

        eyes = [eye.mutate(rng) if rng.boolean(mutation_chance) else eye for eye in eyes]

        weights: List[Gene] = []
        for input_layer, output_layer in WEIGHT_LAYER_PAIRS:
            child = self.weights_gene(input_layer, output_layer).crossover(
                other.weights_gene(input_layer, output_layer), rng)
            if rng.boolean(mutation_chance):
                child = child.mutate(rng)
            # Eye count is final here
            if input_layer == Layer.INPUT:
                child = child.resize_to_eye_count(len(eyes), rng)
            weights.append(child)

        return Genome([color, *eyes, *weights])

    # =========================================================================
    # FACTORIES
    # =========================================================================

    @classmethod
    def random(cls, num_eyes: int, rng: RandomSource) -> 'Genome':
        """
        Fresh genome: random colour and eyes, a sparse random skip matrix and
        zeroed input->hidden and hidden->output matrices.
        """
        genes = [random_color_gene(rng)]
        genes.extend(random_eye_gene(rng) for _ in range(num_eyes))
        genes.append(random_skip_weights_gene(num_eyes, rng))
        genes.append(zero_input_hidden_gene(num_eyes))
        genes.append(zero_hidden_output_gene())
        return cls(genes)

    def __len__(self) -> int:
        return len(self.genes)

    def __iter__(self) -> Iterator[Gene]:
        return iter(self.genes)

    def __repr__(self) -> str:
        return (f"Genome(genes={len(self.genes)}, eyes={self.num_eyes}, "
                f"mutants={len(self.mutants())})")


__all__ = ['Genome']
