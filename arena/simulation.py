"""
Simulation - Per-tick update and generation lifecycle

advance_tick() is called once per logical tick by an external driver:

    tick % generation_length != 0:
        1. snapshot the world, run perception for every agent
        2. per agent: eat adjacent food, think, move
        3. drop eaten food and top the pile back up to num_food

    tick % generation_length == 0 (generation boundary):
        rank agents by food eaten, keep the top half, breed every unordered
        pair of survivors until the population is full again, swap it in

The agent list is replaced in a single locked assignment, so a reader taking
World.snapshot() sees either the old or the new generation, never a mix.
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import List, Sequence, Tuple

from .config import SimulationConfig
from .entities import (
    Agent,
    AgentView,
    Food,
    FoodView,
    breed_agents,
    create_random_agent,
    create_random_food,
)
from .errors import ConfigurationError
from .perception import WorldSnapshot, perceive_all
from .rng import RandomSource

logger = logging.getLogger(__name__)

MIN_SURVIVORS = 2


# =============================================================================
# WORLD STATE
# =============================================================================

@dataclass
class GenerationStats:
    """Counters reported to the UI, updated at every generation boundary."""
    generation: int = 0
    num_died: int = 0
    active_mutants: int = 0     # Mutant genes in the current generation
    total_mutants: int = 0      # Mutant genes across all generations
    food_eaten: int = 0         # This generation, refreshed every tick
    food_eaten_last: int = 0
    food_eaten_max: int = 0


@dataclass(frozen=True)
class WorldView:
    """Consistent read-only picture of the world at one tick."""
    tick: int
    agents: Tuple[AgentView, ...]
    food: Tuple[FoodView, ...]
    stats: GenerationStats


class World:
    """The agent and food collections plus the tick counter."""

    def __init__(self, agents: Sequence[Agent], food: Sequence[Food]):
        self._agents: List[Agent] = list(agents)
        self.food: List[Food] = list(food)
        self.tick = 0
        self.stats = GenerationStats()
        self.lock = threading.RLock()

    @property
    def agents(self) -> List[Agent]:
        return self._agents

    def replace_agents(self, agents: Sequence[Agent]):
        """Swap in a whole new population."""
        new_agents = list(agents)
        with self.lock:
            self._agents = new_agents

    def snapshot(self) -> WorldView:
        with self.lock:
            return WorldView(
                tick=self.tick,
                agents=tuple(a.view() for a in self._agents),
                food=tuple(f.view() for f in self.food if not f.is_eaten),
                stats=replace(self.stats),
            )

    def __repr__(self) -> str:
        return (f"World(tick={self.tick}, agents={len(self._agents)}, "
                f"food={len(self.food)}, generation={self.stats.generation})")


# =============================================================================
# INITIALIZATION
# =============================================================================

def initialize_population(config: SimulationConfig, rng: RandomSource) -> List[Agent]:
    config.validate()
    return [create_random_agent(config, rng) for _ in range(config.num_agents)]


def initialize_food(config: SimulationConfig, rng: RandomSource) -> List[Food]:
    config.validate()
    return [create_random_food(config, rng) for _ in range(config.num_food)]


def create_world(config: SimulationConfig, rng: RandomSource) -> World:
    world = World(initialize_population(config, rng), initialize_food(config, rng))
    logger.info("World created: %d agents, %d food, %dx%d arena",
                len(world.agents), len(world.food), config.world_width, config.world_height)
    return world


# =============================================================================
# TICK
# =============================================================================

def advance_tick(world: World, config: SimulationConfig, rng: RandomSource) -> bool:
    """
    Advance the world by one tick.

    Returns:
        True if this tick was a generation boundary
    """
    world.tick += 1

    if world.tick % config.generation_length == 0:
        run_generation_boundary(world, config, rng)
        return True

    agents = world.agents
    snapshot = WorldSnapshot.capture(agents, world.food)
    perceive_all(agents, snapshot)

    food_eaten = 0
    for agent in agents:
        agent.check_food(world.food)
        inputs = agent.brain_inputs(world.tick, config.generation_length, snapshot, rng)
        velocity, turn = agent.controller.think(inputs)
        agent.move(velocity, turn, rng)
        food_eaten += agent.num_eaten
    world.stats.food_eaten = food_eaten

    replenish_food(world, config, rng)
    return False


def replenish_food(world: World, config: SimulationConfig, rng: RandomSource) -> int:
    """Remove eaten food and spawn fresh food up to num_food. Returns the number spawned."""
    remaining = [f for f in world.food if not f.is_eaten]
    spawned = 0
    while len(remaining) < config.num_food:
        remaining.append(create_random_food(config, rng))
        spawned += 1
    world.food = remaining
    if spawned:
        logger.debug("Tick %d: spawned %d food", world.tick, spawned)
    return spawned


# =============================================================================
# GENERATION BOUNDARY
# =============================================================================

def select_survivors(agents: Sequence[Agent], num_agents: int) -> List[Agent]:
    """
    Top half of the population by food eaten; ties keep population order.

    At least MIN_SURVIVORS are kept so that breeding always has a pair.
    """
    if len(agents) < MIN_SURVIVORS:
        raise ConfigurationError(
            f"need at least {MIN_SURVIVORS} agents to breed, population has {len(agents)}")

    ranked = sorted(agents, key=lambda a: a.num_eaten, reverse=True)
    count = num_agents // 2
    if count < MIN_SURVIVORS:
        logger.warning("Only %d survivor(s) from %d agents, keeping %d",
                       count, num_agents, MIN_SURVIVORS)
        count = MIN_SURVIVORS
    return ranked[:count]


def breed_population(survivors: Sequence[Agent], target: int,
                     config: SimulationConfig, rng: RandomSource) -> List[Agent]:
    """
    Breed one child per unordered pair of survivors, in nested-loop order,
    restarting the pairing until the population reaches target.
    """
    if len(survivors) < MIN_SURVIVORS:
        raise ConfigurationError(
            f"need at least {MIN_SURVIVORS} survivors to breed, got {len(survivors)}")

    children: List[Agent] = []
    rounds = 0
    while len(children) < target:
        rounds += 1
        paired = set()
        for i, parent1 in enumerate(survivors):
            if len(children) >= target:
                break
            for j, parent2 in enumerate(survivors):
                if len(children) >= target:
                    break
                if i != j and j not in paired:
                    children.append(breed_agents(parent1, parent2, config, rng))
            paired.add(i)

    logger.debug("Bred %d children from %d survivors in %d pairing round(s)",
                 len(children), len(survivors), rounds)
    return children


def run_generation_boundary(world: World, config: SimulationConfig,
                            rng: RandomSource) -> List[Agent]:
    """Select, breed, swap the population in and roll the generation stats."""
    survivors = select_survivors(world.agents, config.num_agents)
    num_died = config.num_agents - len(survivors)
    children = breed_population(survivors, config.num_agents, config, rng)
    mutants = sum(len(child.genome.mutants()) for child in children)

    stats = world.stats
    with world.lock:
        food_eaten = stats.food_eaten
        world.replace_agents(children)

        stats.generation += 1
        stats.num_died = num_died
        stats.active_mutants = mutants
        stats.total_mutants += mutants
        stats.food_eaten_last = food_eaten
        stats.food_eaten_max = max(stats.food_eaten_max, food_eaten)
        stats.food_eaten = 0

    logger.info("Generation %d: %d died, %d mutant genes, %d food eaten (max %d)",
                stats.generation, num_died, mutants, food_eaten, stats.food_eaten_max)
    return children


__all__ = [
    'MIN_SURVIVORS',
    'GenerationStats',
    'WorldView',
    'World',
    'initialize_population',
    'initialize_food',
    'create_world',
    'advance_tick',
    'replenish_food',
    'select_survivors',
    'breed_population',
    'run_generation_boundary',
]
