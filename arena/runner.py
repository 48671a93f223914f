"""
Headless driver - delivers ticks to the simulation at a fixed rate

The runner owns start/stop. Pausing just stops tick delivery; run() again
resumes from the last completed tick with no other state change.

Usage:
    python -m arena --ticks 2000 --seed 42
    python -m arena --config my_config.json --unthrottled --log-level DEBUG
"""

import argparse
import logging
import time
from typing import Callable, List, Optional

from .config import SimulationConfig
from .errors import ArenaError
from .rng import RandomSource
from .simulation import World, advance_tick, create_world

logger = logging.getLogger(__name__)

TickCallback = Callable[[World, bool], None]


class SimulationRunner:
    """Owns a World and feeds it ticks while running."""

    def __init__(self, config: SimulationConfig,
                 rng: Optional[RandomSource] = None,
                 on_tick: Optional[TickCallback] = None):
        self.config = config.validate()
        self.rng = rng if rng is not None else RandomSource(config.seed)
        self.world = create_world(self.config, self.rng)
        self.on_tick = on_tick
        self.is_running = False

    def toggle_running(self) -> bool:
        self.is_running = not self.is_running
        return self.is_running

    def stop(self):
        self.is_running = False

    def step(self) -> bool:
        """Advance exactly one tick. Returns True on a generation boundary."""
        boundary = advance_tick(self.world, self.config, self.rng)
        if self.on_tick is not None:
            self.on_tick(self.world, boundary)
        return boundary

    def run(self, max_ticks: Optional[int] = None, throttle: bool = True) -> int:
        """
        Deliver ticks until stopped or max_ticks have run.

        Args:
            max_ticks: Ticks to run in this call (None = until stop())
            throttle: Sleep to hold the configured tick rate

        Returns:
            Number of ticks delivered
        """
        period = 1.0 / self.config.tick_rate
        delivered = 0
        self.is_running = True
        try:
            while self.is_running and (max_ticks is None or delivered < max_ticks):
                started = time.perf_counter()
                self.step()
                delivered += 1
                if throttle:
                    remaining = period - (time.perf_counter() - started)
                    if remaining > 0:
                        time.sleep(remaining)
        finally:
            self.is_running = False
        return delivered


# =============================================================================
# COMMAND LINE
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='genetic-arena',
        description='Evolve vision-guided foraging agents in a 2D arena (headless)')
    parser.add_argument('--config', '-c', help='JSON file with SimulationConfig fields')
    parser.add_argument('--ticks', '-t', type=int, default=2500,
                        help='Ticks to run (default: 2500, ten generations)')
    parser.add_argument('--seed', '-s', type=int, default=None, help='Random seed')
    parser.add_argument('--agents', type=int, default=None, help='Override number of agents')
    parser.add_argument('--food', type=int, default=None, help='Override food count')
    parser.add_argument('--unthrottled', action='store_true',
                        help='Run as fast as possible instead of at the tick rate')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        config = SimulationConfig.from_json_file(args.config) if args.config else SimulationConfig()
        if args.seed is not None:
            config.seed = args.seed
        if args.agents is not None:
            config.num_agents = args.agents
        if args.food is not None:
            config.num_food = args.food
        runner = SimulationRunner(config)
    except ArenaError as e:
        logger.error("Cannot start simulation: %s", e)
        return 2

    try:
        ticks = runner.run(max_ticks=args.ticks, throttle=not args.unthrottled)
    except KeyboardInterrupt:
        logger.info("Interrupted at tick %d", runner.world.tick)
        return 130

    stats = runner.world.stats
    logger.info("Ran %d ticks: generation %d, max food eaten %d, total mutant genes %d",
                ticks, stats.generation, stats.food_eaten_max, stats.total_mutants)
    return 0


__all__ = ['SimulationRunner', 'build_parser', 'main']
