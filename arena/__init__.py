# Genetic Arena - Evolving Vision-Guided Foragers
#
# Agents see through angular eyes, steer with a small genome-encoded
# neural controller, eat food, and are replaced every generation by
# offspring of the best foragers.
#
# MODULES:
# ├── genes.py        - Color / Eye / NeuronWeights genes + operation table
# ├── genome.py       - Genome container and breeding
# ├── controller.py   - Fixed-topology SELU/tanh controller
# ├── entities.py     - Agent, Eye, Food and read-only views
# ├── perception.py   - Vision-cone detection on a tick snapshot
# ├── simulation.py   - Tick update, food replenishment, generations
# ├── runner.py       - Headless fixed-rate driver and CLI
# ├── config.py       - SimulationConfig
# ├── rng.py          - Seedable RandomSource
# └── errors.py       - Error taxonomy

# =============================================================================
# CORE MODEL
# =============================================================================

from .genes import (
    Gene,
    GeneKind,
    Layer,
    ColorData,
    EyeData,
    WeightsData,
    GENE_OPERATIONS,
    num_inputs_for,
)
from .genome import Genome
from .controller import NeuralController

# =============================================================================
# WORLD AND LIFECYCLE
# =============================================================================

from .entities import (
    Agent,
    Eye,
    Food,
    AgentView,
    EyeView,
    FoodView,
    create_random_agent,
    breed_agents,
    create_random_food,
)
from .perception import WorldSnapshot, perceive, perceive_all
from .simulation import (
    World,
    WorldView,
    GenerationStats,
    initialize_population,
    initialize_food,
    create_world,
    advance_tick,
    replenish_food,
    run_generation_boundary,
)
from .runner import SimulationRunner

# =============================================================================
# SUPPORT
# =============================================================================

from .config import SimulationConfig
from .rng import RandomSource
from .errors import (
    ArenaError,
    ConfigurationError,
    GenomeError,
    MissingGeneError,
    DimensionMismatchError,
)

__version__ = "1.0.0"

__all__ = [
    'Gene',
    'GeneKind',
    'Layer',
    'ColorData',
    'EyeData',
    'WeightsData',
    'GENE_OPERATIONS',
    'num_inputs_for',
    'Genome',
    'NeuralController',
    'Agent',
    'Eye',
    'Food',
    'AgentView',
    'EyeView',
    'FoodView',
    'create_random_agent',
    'breed_agents',
    'create_random_food',
    'WorldSnapshot',
    'perceive',
    'perceive_all',
    'World',
    'WorldView',
    'GenerationStats',
    'initialize_population',
    'initialize_food',
    'create_world',
    'advance_tick',
    'replenish_food',
    'run_generation_boundary',
    'SimulationRunner',
    'SimulationConfig',
    'RandomSource',
    'ArenaError',
    'ConfigurationError',
    'GenomeError',
    'MissingGeneError',
    'DimensionMismatchError',
]
