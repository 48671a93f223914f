"""
Neural Controller - The agent's fixed-topology "brain"

    inputs ──► hidden (5, SELU) ──► hidden_out (2, SELU) ─┐
       │                                                   ├─ add ─► tanh ─► (velocity, turn)
       └──────────────► skip (2, SELU) ───────────────────┘

No biases, no training: the three weight matrices come straight from the
genome and never change after construction.
"""

from typing import Sequence, Tuple

import numpy as np

from .errors import DimensionMismatchError
from .genes import HIDDEN_UNITS, OUTPUT_UNITS, Layer
from .genome import Genome

SELU_ALPHA = 1.6732632423543772848170429916717
SELU_SCALE = 1.0507009873554804934193349852946


def selu(x: np.ndarray) -> np.ndarray:
    """Scaled exponential linear unit. selu(0) == 0."""
    return SELU_SCALE * np.where(x > 0, x, SELU_ALPHA * np.expm1(np.minimum(x, 0.0)))


class NeuralController:
    """Feed-forward controller mapping perception + self state to motion."""

    def __init__(self, skip_weights: np.ndarray, input_hidden_weights: np.ndarray,
                 hidden_output_weights: np.ndarray):
        skip = np.array(skip_weights, dtype=np.float64)
        ih = np.array(input_hidden_weights, dtype=np.float64)
        ho = np.array(hidden_output_weights, dtype=np.float64)

        if skip.ndim != 2 or skip.shape[1] != OUTPUT_UNITS:
            raise DimensionMismatchError(f"skip matrix must be (n, {OUTPUT_UNITS}), got {skip.shape}")
        if ih.shape != (skip.shape[0], HIDDEN_UNITS):
            raise DimensionMismatchError(
                f"input->hidden matrix must be ({skip.shape[0]}, {HIDDEN_UNITS}), got {ih.shape}")
        if ho.shape != (HIDDEN_UNITS, OUTPUT_UNITS):
            raise DimensionMismatchError(
                f"hidden->output matrix must be ({HIDDEN_UNITS}, {OUTPUT_UNITS}), got {ho.shape}")

        for m in (skip, ih, ho):
            m.setflags(write=False)
        self._skip = skip
        self._ih = ih
        self._ho = ho

    @classmethod
    def from_genome(cls, genome: Genome) -> 'NeuralController':
        """Build from a genome's three weight genes, checking row counts against its eyes."""
        genome.validate()
        return cls(
            genome.weights_gene(Layer.INPUT, Layer.OUTPUT).data.matrix,
            genome.weights_gene(Layer.INPUT, Layer.HIDDEN).data.matrix,
            genome.weights_gene(Layer.HIDDEN, Layer.OUTPUT).data.matrix,
        )

    @property
    def num_inputs(self) -> int:
        return self._skip.shape[0]

    def think(self, inputs: Sequence[float]) -> Tuple[float, float]:
        """
        Run one inference.

        Returns:
            (velocity, rotation_delta), each in (-1, 1)
        """
        x = np.asarray(inputs, dtype=np.float64)
        if x.shape != (self.num_inputs,):
            raise DimensionMismatchError(
                f"controller expects {self.num_inputs} inputs, got {x.shape}")

        hidden = selu(x @ self._ih)
        skip = selu(x @ self._skip)
        hidden_out = selu(hidden @ self._ho)
        output = np.tanh(hidden_out + skip)
        return float(output[0]), float(output[1])

    def __repr__(self) -> str:
        return f"NeuralController(inputs={self.num_inputs}, hidden={HIDDEN_UNITS}, outputs={OUTPUT_UNITS})"


__all__ = ['NeuralController', 'selu']
