"""
Simulation Configuration

All tunable parameters of the arena live in SimulationConfig. Defaults match
the classic setup: a 1200x900 arena, 40 agents with one or two eyes and 20
pieces of food, replaced by offspring every 250 ticks.
"""

import json
import math
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import ConfigurationError


@dataclass
class SimulationConfig:
    """
    Parameters consumed by the simulation core.

    The core trusts a validated config: call validate() once before handing
    it to the simulation (initialize_population and SimulationRunner do).
    """
    # ==========================================================================
    # ARENA
    # ==========================================================================
    world_width: int = 1200
    world_height: int = 900
    spawn_margin: int = 100         # Keep-out border for spawning agents/food

    # ==========================================================================
    # AGENTS
    # ==========================================================================
    num_agents: int = 40
    agent_size: float = 10.0        # Body radius
    min_spawn_eyes: int = 1
    max_spawn_eyes: int = 2

    # ==========================================================================
    # FOOD
    # ==========================================================================
    num_food: int = 20

    # ==========================================================================
    # EVOLUTION
    # ==========================================================================
    mutation_chance: float = 0.05   # Base rate used at generation boundaries
    generation_length: int = 250    # Ticks between generation boundaries

    # ==========================================================================
    # DRIVER
    # ==========================================================================
    tick_rate: float = 60.0         # Target ticks per second
    seed: Optional[int] = None

    def validate(self) -> 'SimulationConfig':
        """Raise ConfigurationError if the config cannot drive a simulation."""
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == 'seed' and value is None:
                continue
            expected = (int, float) if f.type is float else int
            if isinstance(value, bool) or not isinstance(value, expected):
                raise ConfigurationError(
                    f"{f.name} must be {'a number' if f.type is float else 'an integer'}, "
                    f"got {value!r}")

        if self.num_agents < 2:
            raise ConfigurationError(
                f"num_agents must be at least 2 for breeding, got {self.num_agents}")
        if self.num_food <= 0:
            raise ConfigurationError(f"num_food must be positive, got {self.num_food}")
        if self.agent_size <= 0:
            raise ConfigurationError(f"agent_size must be positive, got {self.agent_size}")
        if self.min_spawn_eyes < 0 or self.max_spawn_eyes < self.min_spawn_eyes:
            raise ConfigurationError(
                f"invalid spawn eye range [{self.min_spawn_eyes}, {self.max_spawn_eyes}]")
        if not 0.0 <= self.mutation_chance <= 1.0:
            raise ConfigurationError(
                f"mutation_chance must be in [0, 1], got {self.mutation_chance}")
        if self.generation_length <= 0:
            raise ConfigurationError(
                f"generation_length must be positive, got {self.generation_length}")
        if self.tick_rate <= 0:
            raise ConfigurationError(f"tick_rate must be positive, got {self.tick_rate}")
        if self.spawn_margin < 0:
            raise ConfigurationError(f"spawn_margin must not be negative, got {self.spawn_margin}")

        # Same integer spawn range as random_agent_position
        border = self.agent_size + self.spawn_margin
        for name, extent in (('world_width', self.world_width),
                             ('world_height', self.world_height)):
            if math.floor(extent - border) < math.ceil(border):
                raise ConfigurationError(
                    f"{name}={extent} is too small to place an agent of size "
                    f"{self.agent_size} with a {self.spawn_margin} margin")
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'SimulationConfig':
        """Build a config from a dictionary; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ConfigurationError(f"unknown config keys: {', '.join(unknown)}")
        return cls(**d)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> 'SimulationConfig':
        """Load a config from a JSON object on disk."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"{path}: cannot read config: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path}: expected a JSON object")
        return cls.from_dict(data)


__all__ = ['SimulationConfig']
