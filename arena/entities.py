"""
Entities - Agents, their eyes, and food

An Agent owns a Genome and caches what it derives from it at construction:
colour, eye sensors, mutant flag and the neural controller. Per tick it
mutates only its position, rotation, eye detections and eaten counter.

Rendering and UI code should read agents through view() snapshots
(AgentView / EyeView / FoodView), never mutate them.
"""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

import numpy as np

from .config import SimulationConfig
from .controller import NeuralController
from .genes import TWO_PI, EyeData
from .genome import Genome
from .rng import RandomSource

if TYPE_CHECKING:
    from .perception import WorldSnapshot


SPEED_SCALE = 2.0           # Distance moved per unit of |velocity|
TURN_PROBABILITY = 0.1      # Chance per tick that the turn output is applied
TURN_SCALE = 10.0           # Turn output is divided by this before applying

Vector = Tuple[float, float]


def _as_tuple(vec: Optional[np.ndarray]) -> Optional[Vector]:
    if vec is None:
        return None
    return (float(vec[0]), float(vec[1]))


# =============================================================================
# READ-ONLY VIEWS
# =============================================================================

@dataclass(frozen=True)
class EyeView:
    field_of_vision: float
    range_of_vision: float
    eye_location: float
    detected_agent_id: Optional[str]
    last_agent_pos: Optional[Vector]
    detected_food_id: Optional[str]
    last_food_pos: Optional[Vector]


@dataclass(frozen=True)
class AgentView:
    id: str
    position: Vector
    rotation: float
    size: float
    color: Tuple[int, int, int]
    is_mutant: bool
    num_eaten: int
    eyes: Tuple[EyeView, ...]


@dataclass(frozen=True)
class FoodView:
    id: str
    position: Vector
    is_eaten: bool


# =============================================================================
# EYE
# =============================================================================

@dataclass
class Eye:
    """
    A vision sensor: heritable traits plus detection state for the current tick.

    Detections hold ids, not agents or food; the referenced entity may be
    gone after the next generation boundary.
    """
    field_of_vision: float
    range_of_vision: float
    eye_location: float
    can_detect: bool = False
    detected_agent_id: Optional[str] = None
    last_agent_pos: Optional[np.ndarray] = None
    detected_food_id: Optional[str] = None
    last_food_pos: Optional[np.ndarray] = None

    @classmethod
    def from_data(cls, data: EyeData) -> 'Eye':
        return cls(data.field_of_vision, data.range_of_vision,
                   data.eye_location, data.can_detect)

    def clear_detection(self):
        self.detected_agent_id = None
        self.last_agent_pos = None
        self.detected_food_id = None
        self.last_food_pos = None

    @property
    def has_detection(self) -> bool:
        return self.detected_agent_id is not None or self.detected_food_id is not None

    def view(self) -> EyeView:
        return EyeView(
            field_of_vision=self.field_of_vision,
            range_of_vision=self.range_of_vision,
            eye_location=self.eye_location,
            detected_agent_id=self.detected_agent_id,
            last_agent_pos=_as_tuple(self.last_agent_pos),
            detected_food_id=self.detected_food_id,
            last_food_pos=_as_tuple(self.last_food_pos),
        )


# =============================================================================
# FOOD
# =============================================================================

class Food:
    """A food pellet. Once eaten it stays eaten."""

    def __init__(self, id: str, position: Sequence[float]):
        self.id = id
        self.position = np.array(position, dtype=np.float64)
        self._is_eaten = False

    @property
    def is_eaten(self) -> bool:
        return self._is_eaten

    def mark_eaten(self):
        self._is_eaten = True

    def view(self) -> FoodView:
        return FoodView(self.id, _as_tuple(self.position), self._is_eaten)

    def __repr__(self) -> str:
        state = "eaten" if self._is_eaten else "fresh"
        return f"Food({self.id[:8]}, ({self.position[0]:.0f}, {self.position[1]:.0f}), {state})"


# =============================================================================
# AGENT
# =============================================================================

class Agent:
    """
    An autonomous agent in the arena.

    Building the controller validates the genome before anything else is
    derived from it, so a malformed genome raises instead of yielding a
    half-built agent.
    """

    def __init__(self,
                 id: str,
                 position: Sequence[float],
                 size: float,
                 rotation: float,
                 genome: Genome):
        controller = NeuralController.from_genome(genome)

        self.id = id
        self.position = np.array(position, dtype=np.float64)
        self.size = float(size)
        self.rotation = float(rotation)
        self.genome = genome

        self._color = genome.color_gene.data.as_tuple()
        self._eyes = [Eye.from_data(g.data) for g in genome.eye_genes]
        self._is_mutant = genome.is_mutant
        self._controller = controller
        self._num_eaten = 0

    # -------------------------------------------------------------------------
    # Derived projections
    # -------------------------------------------------------------------------

    @property
    def color(self) -> Tuple[int, int, int]:
        return self._color

    @property
    def eyes(self) -> List[Eye]:
        return self._eyes

    @property
    def is_mutant(self) -> bool:
        return self._is_mutant

    @property
    def controller(self) -> NeuralController:
        return self._controller

    @property
    def num_eaten(self) -> int:
        return self._num_eaten

    # -------------------------------------------------------------------------
    # Per-tick behaviour
    # -------------------------------------------------------------------------

    def check_food(self, foods: Sequence[Food]) -> int:
        """Eat every uneaten food whose centre lies inside the body. Returns count eaten."""
        eaten = 0
        for food in foods:
            if food.is_eaten:
                continue
            if np.hypot(*(food.position - self.position)) < self.size:
                food.mark_eaten()
                self._num_eaten += 1
                eaten += 1
        return eaten

    def brain_inputs(self, tick: int, generation_length: int,
                     snapshot: 'WorldSnapshot', rng: RandomSource) -> np.ndarray:
        """
        Controller input vector: five self values, then nine per eye.

        Per eye: dx, dy and rotation of the detected agent, its last position,
        dx, dy of the detected food and its last position; zeros where
        nothing was detected.
        """
        x, y = self.position
        values = [rng.real(0, 1), tick % generation_length, x, y, self.rotation]

        for eye in self._eyes:
            if eye.detected_agent_id is not None:
                ax, ay = snapshot.agent_position(eye.detected_agent_id)
                values.extend([x - ax, y - ay, snapshot.agent_rotation(eye.detected_agent_id)])
            else:
                values.extend([0.0, 0.0, 0.0])

            values.extend(eye.last_agent_pos if eye.last_agent_pos is not None else [0.0, 0.0])

            if eye.detected_food_id is not None:
                fx, fy = snapshot.food_position(eye.detected_food_id)
                values.extend([x - fx, y - fy])
            else:
                values.extend([0.0, 0.0])

            values.extend(eye.last_food_pos if eye.last_food_pos is not None else [0.0, 0.0])

        return np.array(values, dtype=np.float64)

    def move(self, velocity: float, turn: float, rng: RandomSource):
        """Step forward by 2|velocity|; occasionally apply the turn output."""
        distance = abs(velocity * SPEED_SCALE)
        # Forward is (0, -1) rotated by the body rotation
        step = np.array([distance * math.sin(self.rotation), -distance * math.cos(self.rotation)])
        self.position = self.position + step

        if rng.boolean(TURN_PROBABILITY):
            self.rotation = (self.rotation + turn / TURN_SCALE) % TWO_PI

    def view(self) -> AgentView:
        return AgentView(
            id=self.id,
            position=_as_tuple(self.position),
            rotation=self.rotation,
            size=self.size,
            color=self._color,
            is_mutant=self._is_mutant,
            num_eaten=self._num_eaten,
            eyes=tuple(eye.view() for eye in self._eyes),
        )

    def __repr__(self) -> str:
        return (f"Agent({self.id[:8]}, pos=({self.position[0]:.0f}, {self.position[1]:.0f}), "
                f"eyes={len(self._eyes)}, eaten={self._num_eaten})")


# =============================================================================
# FACTORIES
# =============================================================================

def random_agent_position(config: SimulationConfig, rng: RandomSource) -> np.ndarray:
    """Integer spawn point at least size + margin away from every wall."""
    border = config.agent_size + config.spawn_margin
    return np.array([
        rng.integer(math.ceil(border), math.floor(config.world_width - border)),
        rng.integer(math.ceil(border), math.floor(config.world_height - border)),
    ], dtype=np.float64)


def random_food_position(config: SimulationConfig, rng: RandomSource) -> np.ndarray:
    margin = config.spawn_margin
    return np.array([
        rng.integer(margin, config.world_width - margin),
        rng.integer(margin, config.world_height - margin),
    ], dtype=np.float64)


def create_random_agent(config: SimulationConfig, rng: RandomSource) -> Agent:
    """Spawn an agent with a fresh random genome."""
    agent_id = rng.uuid4()
    position = random_agent_position(config, rng)
    rotation = rng.real(0, TWO_PI)
    num_eyes = rng.integer(config.min_spawn_eyes, config.max_spawn_eyes)
    return Agent(agent_id, position, config.agent_size, rotation,
                 Genome.random(num_eyes, rng))


def breed_agents(parent1: Agent, parent2: Agent, config: SimulationConfig,
                 rng: RandomSource) -> Agent:
    """One child of two parents, placed at a random spawn point."""
    child_id = rng.uuid4()
    position = random_agent_position(config, rng)
    genome = parent1.genome.breed_with(parent2.genome, config.mutation_chance, rng)
    rotation = rng.real(0, TWO_PI)
    return Agent(child_id, position, config.agent_size, rotation, genome)


def create_random_food(config: SimulationConfig, rng: RandomSource) -> Food:
    return Food(rng.uuid4(), random_food_position(config, rng))


__all__ = [
    'SPEED_SCALE',
    'TURN_PROBABILITY',
    'TURN_SCALE',
    'EyeView',
    'AgentView',
    'FoodView',
    'Eye',
    'Food',
    'Agent',
    'random_agent_position',
    'random_food_position',
    'create_random_agent',
    'breed_agents',
    'create_random_food',
]
