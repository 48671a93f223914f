"""
Genes - Typed hereditary units of an agent

Three gene kinds make up a genome:
- COLOR: RGB body colour, channels reduced to [0, 254] on construction
- EYE: one vision sensor (field of vision, range of vision, mounting angle)
- NEURON_WEIGHTS: one weight matrix of the neural controller, tagged by its
  (input layer, output layer) pair

Every gene is immutable. Gene is a closed tagged variant: the kind selects the
payload type and the entry of GENE_OPERATIONS that implements crossover,
mutation and copy for it.

USAGE:
    rng = RandomSource(seed=1)
    a = random_eye_gene(rng)
    b = random_eye_gene(rng)
    child = a.crossover(b, rng)     # per-trait selection, never a blend
    mutant = child.mutate(rng)      # one trait redrawn, is_mutant=True
"""

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Tuple, Union

import numpy as np

from .errors import DimensionMismatchError, GenomeError
from .rng import RandomSource


# =============================================================================
# CONSTANTS
# =============================================================================

TWO_PI = 2 * math.pi

BASE_INPUTS = 5         # random, generation phase, x, y, rotation
INPUTS_PER_EYE = 9      # agent dx, dy, rotation, last x, y; food dx, dy, last x, y
HIDDEN_UNITS = 5
OUTPUT_UNITS = 2

COLOR_MUTATION_RANGE = (-25, 25)

FOV_RANGE = (math.pi / 6, 5 * math.pi / 6)
ROV_RANGE = (50, 150)
LOC_RANGE = (0.0, TWO_PI)

WEIGHT_RANGE = (-4.0, 4.0)
HIDDEN_WEIGHT_RANGE = (-4.0, 4.0)

MAX_WEIGHT_EDITS = 10


def num_inputs_for(num_eyes: int) -> int:
    """Controller input count for an agent with the given number of eyes."""
    return num_eyes * INPUTS_PER_EYE + BASE_INPUTS


# =============================================================================
# GENE KINDS AND PAYLOADS
# =============================================================================

class GeneKind(Enum):
    """Kinds of genes in a genome."""
    COLOR = "color"
    EYE = "eye"
    NEURON_WEIGHTS = "neuron_weights"


class Layer(Enum):
    """Controller layers a weight matrix connects."""
    INPUT = "input"
    HIDDEN = "hidden"
    OUTPUT = "output"


# Skip path, input->hidden, hidden->output
WEIGHT_LAYER_PAIRS: Tuple[Tuple[Layer, Layer], ...] = (
    (Layer.INPUT, Layer.OUTPUT),
    (Layer.INPUT, Layer.HIDDEN),
    (Layer.HIDDEN, Layer.OUTPUT),
)


@dataclass(frozen=True)
class ColorData:
    red: int
    green: int
    blue: int

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.red, self.green, self.blue)


@dataclass(frozen=True)
class EyeData:
    """Heritable traits of one eye. Angles are in radians."""
    field_of_vision: float
    range_of_vision: float
    eye_location: float
    can_detect: bool = False


@dataclass(frozen=True, eq=False)
class WeightsData:
    """
    A weight matrix tagged by the pair of layers it connects.

    Rows are inputs of the layer pair, columns are units of the output layer.
    The matrix is copied and made read-only on construction.
    """
    input_layer: Layer
    output_layer: Layer
    matrix: np.ndarray

    def __post_init__(self):
        if (self.input_layer, self.output_layer) not in WEIGHT_LAYER_PAIRS:
            raise GenomeError(
                f"unsupported layer pair ({self.input_layer.value}, {self.output_layer.value})")

        matrix = np.array(self.matrix, dtype=np.float64)
        if matrix.size == 0:
            matrix = matrix.reshape(0, self.units)
        if matrix.ndim != 2 or matrix.shape[1] != self.units:
            raise DimensionMismatchError(
                f"{self.input_layer.value}->{self.output_layer.value} matrix must have "
                f"{self.units} columns, got shape {matrix.shape}")
        matrix.setflags(write=False)
        object.__setattr__(self, 'matrix', matrix)

    @property
    def layers(self) -> Tuple[Layer, Layer]:
        return (self.input_layer, self.output_layer)

    @property
    def units(self) -> int:
        """Number of units in the output layer (matrix columns)."""
        return HIDDEN_UNITS if self.output_layer == Layer.HIDDEN else OUTPUT_UNITS

    @property
    def value_range(self) -> Tuple[float, float]:
        return HIDDEN_WEIGHT_RANGE if self.output_layer == Layer.HIDDEN else WEIGHT_RANGE

    def __eq__(self, other):
        if not isinstance(other, WeightsData):
            return NotImplemented
        return (self.layers == other.layers and
                np.array_equal(self.matrix, other.matrix))

    def __repr__(self) -> str:
        return (f"WeightsData({self.input_layer.value}->{self.output_layer.value}, "
                f"shape={self.matrix.shape})")


GeneData = Union[ColorData, EyeData, WeightsData]

_PAYLOAD_TYPES = {
    GeneKind.COLOR: ColorData,
    GeneKind.EYE: EyeData,
    GeneKind.NEURON_WEIGHTS: WeightsData,
}


# =============================================================================
# GENE
# =============================================================================

@dataclass(frozen=True)
class Gene:
    """
    A single heritable unit.

    is_mutant is set only on genes produced by mutate(); crossover never sets
    it and copy() preserves it.
    """
    kind: GeneKind
    data: GeneData
    is_mutant: bool = False

    def __post_init__(self):
        expected = _PAYLOAD_TYPES[self.kind]
        if not isinstance(self.data, expected):
            raise GenomeError(
                f"{self.kind.value} gene needs {expected.__name__}, got {type(self.data).__name__}")

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def color(cls, red: int, green: int, blue: int) -> 'Gene':
        """Colour gene with every channel reduced into [0, 254]."""
        return cls(GeneKind.COLOR, ColorData(int(red) % 255, int(green) % 255, int(blue) % 255))

    @classmethod
    def eye(cls, field_of_vision: float, range_of_vision: float,
            eye_location: float) -> 'Gene':
        return cls(GeneKind.EYE, EyeData(float(field_of_vision), range_of_vision,
                                         float(eye_location), can_detect=False))

    @classmethod
    def weights(cls, input_layer: Layer, output_layer: Layer, matrix) -> 'Gene':
        return cls(GeneKind.NEURON_WEIGHTS, WeightsData(input_layer, output_layer, matrix))

    # -------------------------------------------------------------------------
    # Operations (dispatched through GENE_OPERATIONS)
    # -------------------------------------------------------------------------

    def crossover(self, other: 'Gene', rng: RandomSource) -> 'Gene':
        """Combine with a gene of the same kind into one child gene."""
        if other.kind != self.kind:
            raise GenomeError(f"cannot cross {self.kind.value} gene with {other.kind.value} gene")
        return GENE_OPERATIONS[self.kind].crossover(self, other, rng)

    def mutate(self, rng: RandomSource) -> 'Gene':
        """Return a new, mutant-flagged gene with a localized perturbation."""
        return GENE_OPERATIONS[self.kind].mutate(self, rng)

    def copy(self) -> 'Gene':
        return GENE_OPERATIONS[self.kind].copy(self)

    def resize_to_eye_count(self, num_eyes: int, rng: RandomSource) -> 'Gene':
        """
        Fit an input-layer weight matrix to exactly num_eyes * 9 + 5 rows.

        Existing rows are kept up to the target count; missing rows are
        appended fresh: random pairs in the weight range for the skip path,
        zero rows for the input->hidden matrix. The mutant flag is preserved.
        """
        if self.kind != GeneKind.NEURON_WEIGHTS or self.data.input_layer != Layer.INPUT:
            raise GenomeError("only input-layer neuron weights genes can be resized")
        return _resize_weights(self, num_eyes, rng)

    def __repr__(self) -> str:
        flag = ", mutant" if self.is_mutant else ""
        return f"Gene({self.kind.value}, {self.data!r}{flag})"


# =============================================================================
# COLOR OPERATIONS
# =============================================================================

def _crossover_color(gene: Gene, other: Gene, rng: RandomSource) -> Gene:
    chosen = gene if rng.boolean() else other
    return Gene(GeneKind.COLOR, replace(chosen.data))


def _mutate_color(gene: Gene, rng: RandomSource) -> Gene:
    channels = list(gene.data.as_tuple())
    index = rng.integer(0, 2)
    channels[index] += rng.integer(*COLOR_MUTATION_RANGE)
    # No reduction here: only freshly constructed colour genes are reduced
    return Gene(GeneKind.COLOR, ColorData(*channels), is_mutant=True)


def _copy_color(gene: Gene) -> Gene:
    return Gene(GeneKind.COLOR, replace(gene.data), is_mutant=gene.is_mutant)


# =============================================================================
# EYE OPERATIONS
# =============================================================================

def _crossover_eye(gene: Gene, other: Gene, rng: RandomSource) -> Gene:
    mine, theirs = gene.data, other.data
    data = EyeData(
        field_of_vision=mine.field_of_vision if rng.boolean() else theirs.field_of_vision,
        range_of_vision=mine.range_of_vision if rng.boolean() else theirs.range_of_vision,
        eye_location=mine.eye_location if rng.boolean() else theirs.eye_location,
        can_detect=False,
    )
    return Gene(GeneKind.EYE, data)


def _mutate_eye(gene: Gene, rng: RandomSource) -> Gene:
    trait = rng.pick(('field_of_vision', 'range_of_vision', 'eye_location'))
    if trait == 'field_of_vision':
        value = rng.real(*FOV_RANGE)
    elif trait == 'range_of_vision':
        value = rng.integer(*ROV_RANGE)
    else:
        value = rng.real(*LOC_RANGE)
    data = replace(gene.data, can_detect=False, **{trait: value})
    return Gene(GeneKind.EYE, data, is_mutant=True)


def _copy_eye(gene: Gene) -> Gene:
    return Gene(GeneKind.EYE, replace(gene.data), is_mutant=gene.is_mutant)


# =============================================================================
# NEURON WEIGHTS OPERATIONS
# =============================================================================

def _crossover_weights(gene: Gene, other: Gene, rng: RandomSource) -> Gene:
    mine, theirs = gene.data, other.data
    if mine.layers != theirs.layers:
        raise GenomeError(
            f"cannot cross {mine.input_layer.value}->{mine.output_layer.value} weights with "
            f"{theirs.input_layer.value}->{theirs.output_layer.value} weights")

    a, b = mine.matrix, theirs.matrix
    # Parents with different eye counts have different row counts
    child = np.array(a if len(a) >= len(b) else b, dtype=np.float64)
    shared = min(len(a), len(b))
    if shared:
        take_mine = rng.boolean_mask((shared, mine.units))
        child[:shared] = np.where(take_mine, a[:shared], b[:shared])

    return Gene(GeneKind.NEURON_WEIGHTS, WeightsData(mine.input_layer, mine.output_layer, child))


def _mutate_weights(gene: Gene, rng: RandomSource) -> Gene:
    data = gene.data
    matrix = np.array(data.matrix, dtype=np.float64)
    rows, cols = matrix.shape
    low, high = data.value_range

    if rows:
        for _ in range(rng.integer(1, MAX_WEIGHT_EDITS)):
            row = rng.integer(0, rows - 1)
            col = rng.integer(0, cols - 1)
            matrix[row, col] = rng.real(low, high) if rng.boolean() else 0.0

    return Gene(GeneKind.NEURON_WEIGHTS,
                WeightsData(data.input_layer, data.output_layer, matrix),
                is_mutant=True)


def _copy_weights(gene: Gene) -> Gene:
    data = gene.data
    return Gene(GeneKind.NEURON_WEIGHTS,
                WeightsData(data.input_layer, data.output_layer, data.matrix.copy()),
                is_mutant=gene.is_mutant)


def _resize_weights(gene: Gene, num_eyes: int, rng: RandomSource) -> Gene:
    data = gene.data
    target = num_inputs_for(num_eyes)
    rows: List[np.ndarray] = [np.array(r) for r in data.matrix[:target]]
    low, high = data.value_range

    while len(rows) < target:
        if data.output_layer == Layer.OUTPUT:
            rows.append(np.array([rng.real(low, high) for _ in range(data.units)]))
        else:
            rows.append(np.zeros(data.units))

    matrix = np.array(rows, dtype=np.float64).reshape(target, data.units)
    return Gene(GeneKind.NEURON_WEIGHTS,
                WeightsData(data.input_layer, data.output_layer, matrix),
                is_mutant=gene.is_mutant)


# =============================================================================
# OPERATION TABLE
# =============================================================================

@dataclass(frozen=True)
class GeneOperations:
    """Crossover, mutate and copy for one gene kind."""
    crossover: Callable[[Gene, Gene, RandomSource], Gene]
    mutate: Callable[[Gene, RandomSource], Gene]
    copy: Callable[[Gene], Gene]


GENE_OPERATIONS: Dict[GeneKind, GeneOperations] = {
    GeneKind.COLOR: GeneOperations(_crossover_color, _mutate_color, _copy_color),
    GeneKind.EYE: GeneOperations(_crossover_eye, _mutate_eye, _copy_eye),
    GeneKind.NEURON_WEIGHTS: GeneOperations(_crossover_weights, _mutate_weights, _copy_weights),
}


# =============================================================================
# RANDOM GENE FACTORIES
# =============================================================================

def random_color_gene(rng: RandomSource) -> Gene:
    return Gene.color(rng.integer(0, 255), rng.integer(0, 255), rng.integer(0, 255))


def random_eye_data(rng: RandomSource) -> EyeData:
    return EyeData(
        field_of_vision=rng.real(*FOV_RANGE),
        range_of_vision=rng.integer(*ROV_RANGE),
        eye_location=rng.real(*LOC_RANGE),
        can_detect=False,
    )


def random_eye_gene(rng: RandomSource) -> Gene:
    return Gene(GeneKind.EYE, random_eye_data(rng))


def random_skip_weights_gene(num_eyes: int, rng: RandomSource) -> Gene:
    """Input->output matrix: each cell is a weight-range draw half the time, else 0."""
    low, high = WEIGHT_RANGE
    rows = [[rng.real(low, high) if rng.boolean() else 0.0 for _ in range(OUTPUT_UNITS)]
            for _ in range(num_inputs_for(num_eyes))]
    return Gene.weights(Layer.INPUT, Layer.OUTPUT,
                        np.array(rows, dtype=np.float64).reshape(-1, OUTPUT_UNITS))


def zero_input_hidden_gene(num_eyes: int) -> Gene:
    return Gene.weights(Layer.INPUT, Layer.HIDDEN,
                        np.zeros((num_inputs_for(num_eyes), HIDDEN_UNITS)))


def zero_hidden_output_gene() -> Gene:
    return Gene.weights(Layer.HIDDEN, Layer.OUTPUT, np.zeros((HIDDEN_UNITS, OUTPUT_UNITS)))


__all__ = [
    'TWO_PI',
    'BASE_INPUTS',
    'INPUTS_PER_EYE',
    'HIDDEN_UNITS',
    'OUTPUT_UNITS',
    'FOV_RANGE',
    'ROV_RANGE',
    'LOC_RANGE',
    'WEIGHT_RANGE',
    'HIDDEN_WEIGHT_RANGE',
    'WEIGHT_LAYER_PAIRS',
    'num_inputs_for',
    'GeneKind',
    'Layer',
    'ColorData',
    'EyeData',
    'WeightsData',
    'Gene',
    'GeneOperations',
    'GENE_OPERATIONS',
    'random_color_gene',
    'random_eye_data',
    'random_eye_gene',
    'random_skip_weights_gene',
    'zero_input_hidden_gene',
    'zero_hidden_output_gene',
]
