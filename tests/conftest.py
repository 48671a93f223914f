"""Shared fixtures: seeded randomness, small configs, hand-built genomes and agents."""

import itertools
import math

import numpy as np
import pytest

from arena.config import SimulationConfig
from arena.entities import Agent
from arena.genes import (
    HIDDEN_UNITS,
    OUTPUT_UNITS,
    Gene,
    Layer,
    num_inputs_for,
)
from arena.genome import Genome
from arena.rng import RandomSource


@pytest.fixture
def rng() -> RandomSource:
    return RandomSource(seed=1234)


@pytest.fixture
def config() -> SimulationConfig:
    """Small, fast config for testing."""
    return SimulationConfig(num_agents=6, num_food=5, seed=7)


@pytest.fixture
def make_genome():
    """
    Build a genome from explicit eye traits.

    eyes: list of (field_of_vision, range_of_vision, eye_location)
    Weight matrices default to zeros of the right shape.
    """
    def _make(eyes=(), color=(10, 20, 30), skip=None, input_hidden=None, hidden_output=None):
        n = num_inputs_for(len(eyes))
        genes = [Gene.color(*color)]
        genes.extend(Gene.eye(*traits) for traits in eyes)
        genes.append(Gene.weights(Layer.INPUT, Layer.OUTPUT,
                                  np.zeros((n, OUTPUT_UNITS)) if skip is None else skip))
        genes.append(Gene.weights(Layer.INPUT, Layer.HIDDEN,
                                  np.zeros((n, HIDDEN_UNITS)) if input_hidden is None else input_hidden))
        genes.append(Gene.weights(Layer.HIDDEN, Layer.OUTPUT,
                                  np.zeros((HIDDEN_UNITS, OUTPUT_UNITS)) if hidden_output is None
                                  else hidden_output))
        return Genome(genes)
    return _make


@pytest.fixture
def make_agent(make_genome):
    """Build an agent at a position with explicit eyes and zero weights."""
    counter = itertools.count()

    def _make(position=(600.0, 450.0), rotation=0.0, eyes=((math.pi, 100, 0.0),),
              size=10.0, agent_id=None):
        return Agent(agent_id or f"agent-{next(counter)}", position, size, rotation,
                     make_genome(eyes=eyes))
    return _make


class AlwaysTrueRandom(RandomSource):
    """RandomSource whose booleans always come up True."""

    def boolean(self, probability: float = 0.5) -> bool:
        return True


@pytest.fixture
def always_true_rng() -> RandomSource:
    return AlwaysTrueRandom(seed=0)
