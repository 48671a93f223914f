"""
Random Source - Injectable randomness for every stochastic operation

Gene operations, breeding, spawn placement and rotation jitter all draw from
a RandomSource handle passed in explicitly. Seeding it makes a whole run
reproducible.

USAGE:
    rng = RandomSource(seed=42)
    rng.real(0, 1)          # uniform float in [0, 1)
    rng.integer(50, 150)    # uniform int, both ends inclusive
    rng.boolean(0.05)       # True with probability 0.05
    rng.pick(['a', 'b'])    # one element of the sequence
"""

import uuid
from typing import Optional, Sequence, Tuple, TypeVar

import numpy as np

T = TypeVar('T')


class RandomSource:
    """Thin wrapper around numpy's Generator with the draws the core needs."""

    def __init__(self, seed: Optional[int] = None,
                 generator: Optional[np.random.Generator] = None):
        self.seed = seed
        self._gen = generator if generator is not None else np.random.default_rng(seed)

    @property
    def generator(self) -> np.random.Generator:
        return self._gen

    def real(self, low: float, high: float) -> float:
        """Uniform float in [low, high)."""
        return float(self._gen.uniform(low, high))

    def integer(self, low: int, high: int) -> int:
        """Uniform integer in [low, high], both ends inclusive."""
        return int(self._gen.integers(low, high, endpoint=True))

    def boolean(self, probability: float = 0.5) -> bool:
        """True with the given probability."""
        return bool(self._gen.random() < probability)

    def boolean_mask(self, shape: Tuple[int, ...], probability: float = 0.5) -> np.ndarray:
        """Array of independent booleans, each True with the given probability."""
        return self._gen.random(shape) < probability

    def pick(self, items: Sequence[T]) -> T:
        """Pick one element uniformly at random."""
        if len(items) == 0:
            raise ValueError("cannot pick from an empty sequence")
        return items[int(self._gen.integers(len(items)))]

    def uuid4(self) -> str:
        """Random version-4 UUID string, reproducible under a seed."""
        raw = self._gen.bytes(16)
        return str(uuid.UUID(bytes=raw, version=4))

    def spawn(self) -> 'RandomSource':
        """Independent child source derived from this one."""
        return RandomSource(generator=self._gen.spawn(1)[0])

    def __repr__(self) -> str:
        return f"RandomSource(seed={self.seed})"


__all__ = ['RandomSource']
