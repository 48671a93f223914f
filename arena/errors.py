"""
Error taxonomy for the arena simulation core.

All errors are structural invariant violations found at configuration,
genome/agent construction or controller-build time. They are never retried
or recovered from inside the core.
"""


class ArenaError(Exception):
    """Base class for every error raised by the simulation core."""


class ConfigurationError(ArenaError):
    """Invalid simulation configuration (counts, sizes, arena dimensions)."""


class GenomeError(ArenaError):
    """A genome or gene violates its structural invariants."""


class MissingGeneError(GenomeError):
    """A genome lacks its Color gene or a required neuron weights gene."""


class DimensionMismatchError(GenomeError):
    """A weight matrix shape does not match the genome's eye count."""


__all__ = [
    'ArenaError',
    'ConfigurationError',
    'GenomeError',
    'MissingGeneError',
    'DimensionMismatchError',
]
