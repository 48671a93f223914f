"""Tests for agents, eyes and food: eating, controller inputs, motion and factories."""

import dataclasses
import math

import numpy as np
import pytest

from arena.config import SimulationConfig
from arena.entities import (
    Agent,
    Food,
    breed_agents,
    create_random_agent,
    create_random_food,
)
from arena.errors import DimensionMismatchError
from arena.genes import OUTPUT_UNITS
from arena.perception import WorldSnapshot, perceive
from arena.rng import RandomSource


class AlwaysFalseRandom(RandomSource):
    def boolean(self, probability: float = 0.5) -> bool:
        return False


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestAgentConstruction:

    def test_derives_projections_from_genome(self, make_genome):
        genome = make_genome(eyes=[(1.0, 80, 0.5), (2.0, 120, 3.0)], color=(1, 2, 3))
        agent = Agent("a", (10, 20), 10.0, 0.0, genome)
        assert agent.color == (1, 2, 3)
        assert [eye.range_of_vision for eye in agent.eyes] == [80, 120]
        assert agent.controller.num_inputs == 23
        assert not agent.is_mutant
        assert agent.num_eaten == 0

    def test_invalid_genome_rejected(self, make_genome):
        genome = make_genome(eyes=[(1.0, 80, 0.5)], skip=np.zeros((5, OUTPUT_UNITS)))
        with pytest.raises(DimensionMismatchError):
            Agent("a", (0, 0), 10.0, 0.0, genome)

    def test_mutant_flag_from_genome(self, make_genome, rng):
        genome = make_genome()
        genome.genes[0] = genome.genes[0].mutate(rng)
        assert Agent("a", (0, 0), 10.0, 0.0, genome).is_mutant


# ---------------------------------------------------------------------------
# Eating
# ---------------------------------------------------------------------------

class TestEating:

    def test_eats_food_strictly_inside_body(self, make_agent):
        agent = make_agent()
        inside = Food("inside", (609, 450))
        edge = Food("edge", (610, 450))
        assert agent.check_food([inside, edge]) == 1
        assert inside.is_eaten
        assert not edge.is_eaten
        assert agent.num_eaten == 1

    def test_eaten_food_not_eaten_twice(self, make_agent):
        first = make_agent()
        second = make_agent()
        food = Food("f", (600, 450))
        first.check_food([food])
        second.check_food([food])
        assert first.num_eaten == 1
        assert second.num_eaten == 0

    def test_eats_several_at_once(self, make_agent):
        agent = make_agent()
        foods = [Food(str(i), (600 + i, 450)) for i in range(3)]
        assert agent.check_food(foods) == 3
        assert agent.num_eaten == 3


# ---------------------------------------------------------------------------
# Controller inputs
# ---------------------------------------------------------------------------

class TestBrainInputs:

    def test_layout_without_detections(self, make_agent, rng):
        agent = make_agent(position=(120, 340), rotation=1.25)
        snapshot = WorldSnapshot.capture([agent], [])
        perceive(agent, snapshot)
        inputs = agent.brain_inputs(260, 250, snapshot, rng)
        assert inputs.shape == (14,)
        assert 0.0 <= inputs[0] < 1.0
        assert inputs[1:5].tolist() == [10, 120, 340, 1.25]
        assert np.all(inputs[5:] == 0.0)

    def test_detections_fill_eye_block(self, make_agent, rng):
        agent = make_agent(agent_id="me")
        other = make_agent(position=(600, 400), rotation=1.5, agent_id="other")
        food = Food("food", (620, 420))
        snapshot = WorldSnapshot.capture([agent, other], [food])
        perceive(agent, snapshot)

        inputs = agent.brain_inputs(3, 250, snapshot, rng)
        assert inputs[5:].tolist() == pytest.approx([
            0, 50, 1.5,         # self minus detected agent, its rotation
            600, 400,           # detected agent position
            -20, 30,            # self minus detected food
            620, 420,           # detected food position
        ])

    def test_detected_agent_read_from_snapshot(self, make_agent, rng):
        agent = make_agent(agent_id="me")
        other = make_agent(position=(600, 400), rotation=1.5, agent_id="other")
        snapshot = WorldSnapshot.capture([agent, other], [])
        perceive(agent, snapshot)
        other.position = np.array([0.0, 0.0])
        other.rotation = 3.0

        inputs = agent.brain_inputs(3, 250, snapshot, rng)
        assert inputs[5:8].tolist() == pytest.approx([0, 50, 1.5])

    def test_one_block_per_eye(self, make_agent, rng):
        agent = make_agent(eyes=((1.0, 80, 0.0), (1.0, 80, 1.0), (1.0, 80, 2.0)))
        snapshot = WorldSnapshot.capture([agent], [])
        assert agent.brain_inputs(0, 250, snapshot, rng).shape == (agent.controller.num_inputs,)


# ---------------------------------------------------------------------------
# Motion
# ---------------------------------------------------------------------------

class TestMove:

    def test_moves_forward_and_turns(self, make_agent, always_true_rng):
        agent = make_agent(rotation=0.0)
        agent.move(0.5, 1.0, always_true_rng)
        assert agent.position == pytest.approx([600, 449])
        assert agent.rotation == pytest.approx(0.1)

    def test_negative_velocity_still_moves_forward(self, make_agent, always_true_rng):
        agent = make_agent(rotation=math.pi / 2)
        agent.move(-0.5, 0.0, always_true_rng)
        assert agent.position == pytest.approx([601, 450])

    def test_rotation_wraps(self, make_agent, always_true_rng):
        agent = make_agent(rotation=6.25)
        agent.move(0.0, 1.0, always_true_rng)
        assert agent.rotation == pytest.approx((6.25 + 0.1) % (2 * math.pi))

        agent = make_agent(rotation=0.05)
        agent.move(0.0, -1.0, always_true_rng)
        assert agent.rotation == pytest.approx(2 * math.pi - 0.05)

    def test_turn_skipped_when_draw_fails(self, make_agent):
        agent = make_agent(rotation=1.0)
        agent.move(1.0, 1.0, AlwaysFalseRandom(seed=0))
        assert agent.rotation == 1.0
        assert agent.position == pytest.approx([600 + 2 * math.sin(1.0), 450 - 2 * math.cos(1.0)])

    def test_turn_applied_about_one_tick_in_ten(self, make_agent):
        agent = make_agent(rotation=0.0)
        rng = RandomSource(seed=5)
        turns = 0
        for _ in range(2000):
            before = agent.rotation
            agent.move(0.0, 0.5, rng)
            turns += agent.rotation != before
        assert 120 < turns < 280


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------

class TestViews:

    def test_agent_view_is_frozen_copy(self, make_agent):
        agent = make_agent(agent_id="me")
        view = agent.view()
        assert view.id == "me"
        assert view.position == (600.0, 450.0)
        assert len(view.eyes) == 1
        agent.position = np.array([0.0, 0.0])
        assert view.position == (600.0, 450.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            view.rotation = 1.0

    def test_food_view(self):
        food = Food("f", (3, 4))
        food.mark_eaten()
        view = food.view()
        assert view.position == (3.0, 4.0)
        assert view.is_eaten


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

class TestFactories:

    def test_random_agents_spawn_inside_margin(self):
        config = SimulationConfig()
        rng = RandomSource(seed=1)
        for _ in range(100):
            agent = create_random_agent(config, rng)
            x, y = agent.position
            assert 110 <= x <= 1090 and 110 <= y <= 790
            assert x == int(x) and y == int(y)
            assert 1 <= len(agent.eyes) <= 2
            assert 0 <= agent.rotation < 2 * math.pi
            assert agent.size == 10.0

    def test_random_food_spawns_inside_margin(self):
        config = SimulationConfig()
        rng = RandomSource(seed=2)
        for _ in range(100):
            x, y = create_random_food(config, rng).position
            assert 100 <= x <= 1100 and 100 <= y <= 800

    def test_ids_unique(self):
        config = SimulationConfig()
        rng = RandomSource(seed=3)
        ids = {create_random_agent(config, rng).id for _ in range(50)}
        ids |= {create_random_food(config, rng).id for _ in range(50)}
        assert len(ids) == 100

    def test_breed_agents_gives_fresh_child(self):
        config = SimulationConfig(mutation_chance=0.5)
        rng = RandomSource(seed=4)
        a = create_random_agent(config, rng)
        b = create_random_agent(config, rng)
        child = breed_agents(a, b, config, rng)
        assert child.id not in (a.id, b.id)
        assert child.num_eaten == 0
        child.genome.validate()
