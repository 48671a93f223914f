"""
Perception Engine - Vision-cone detection of agents and food

Each eye sits on the body rim, offset by the agent's size in the direction of
(0, -1) rotated by the eye's mounting angle. It sees a target when

    (distance(anchor, target) - threshold) < range_of_vision

and the bearing from the anchor to the target lies inside the cone

    start = wrap(rotation + eye_location - fov/2 - pi/2)
    end   = wrap(rotation + eye_location + fov/2 - pi/2)

where threshold is the agent's own size for agents and FOOD_DETECTION_THRESHOLD
for food. Among visible targets the one nearest the agent's centre wins.

NOTE: the anchor ignores the body rotation while the cone includes it. That
asymmetry is kept as is.

All eyes read a WorldSnapshot captured at the start of the tick, so no agent
ever sees another agent's position after it moved in the same tick.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Sequence, Tuple

import numpy as np

from .entities import Agent, Eye, Food
from .genes import TWO_PI

FOOD_DETECTION_THRESHOLD = 5.0


# =============================================================================
# TICK SNAPSHOT
# =============================================================================

@dataclass(frozen=True)
class WorldSnapshot:
    """Frozen positions and rotations of every agent and uneaten food."""
    agent_ids: Tuple[str, ...]
    agent_positions: np.ndarray
    agent_rotations: np.ndarray
    food_ids: Tuple[str, ...]
    food_positions: np.ndarray
    _agent_index: Dict[str, int] = field(default_factory=dict, repr=False)
    _food_index: Dict[str, int] = field(default_factory=dict, repr=False)

    @classmethod
    def capture(cls, agents: Sequence[Agent], foods: Sequence[Food]) -> 'WorldSnapshot':
        fresh = [f for f in foods if not f.is_eaten]
        agent_positions = np.array([a.position for a in agents], dtype=np.float64).reshape(-1, 2)
        food_positions = np.array([f.position for f in fresh], dtype=np.float64).reshape(-1, 2)
        agent_positions.setflags(write=False)
        food_positions.setflags(write=False)
        return cls(
            agent_ids=tuple(a.id for a in agents),
            agent_positions=agent_positions,
            agent_rotations=np.array([a.rotation for a in agents], dtype=np.float64),
            food_ids=tuple(f.id for f in fresh),
            food_positions=food_positions,
            _agent_index={a.id: i for i, a in enumerate(agents)},
            _food_index={f.id: i for i, f in enumerate(fresh)},
        )

    def agent_position(self, agent_id: str) -> np.ndarray:
        return self.agent_positions[self._agent_index[agent_id]]

    def agent_rotation(self, agent_id: str) -> float:
        return float(self.agent_rotations[self._agent_index[agent_id]])

    def food_position(self, food_id: str) -> np.ndarray:
        return self.food_positions[self._food_index[food_id]]


# =============================================================================
# GEOMETRY
# =============================================================================

def wrap_angle(angle: float) -> float:
    """Wrap an angle into [0, 2*pi)."""
    wrapped = angle % TWO_PI
    return 0.0 if wrapped >= TWO_PI else wrapped


def eye_anchor(position: np.ndarray, size: float, eye_location: float) -> np.ndarray:
    """Eye position: (0, -size) rotated by the mounting angle, from the body centre."""
    return np.asarray(position, dtype=np.float64) + np.array(
        [size * math.sin(eye_location), -size * math.cos(eye_location)])


def cone_bounds(rotation: float, eye: Eye) -> Tuple[float, float]:
    centre = rotation + eye.eye_location - math.pi / 2
    half = eye.field_of_vision / 2
    return wrap_angle(centre - half), wrap_angle(centre + half)


def in_cone(bearing, start: float, end: float, field_of_vision: float):
    """
    Whether bearing(s) in [0, 2*pi) fall inside the cone [start, end].

    A cone with start > end spans angle 0. A full circle sees everything.
    """
    bearing = np.asarray(bearing, dtype=np.float64)
    if field_of_vision >= TWO_PI:
        return np.ones(bearing.shape, dtype=bool)
    if start <= end:
        return (bearing >= start) & (bearing <= end)
    return (bearing > start) | (bearing < end)


def _visible(anchor: np.ndarray, targets: np.ndarray, threshold: float,
             eye: Eye, start: float, end: float) -> np.ndarray:
    offsets = targets - anchor
    distance = np.hypot(offsets[:, 0], offsets[:, 1])
    in_range = (distance - threshold) < eye.range_of_vision
    bearing = np.mod(np.arctan2(offsets[:, 1], offsets[:, 0]), TWO_PI)
    bearing[bearing >= TWO_PI] = 0.0
    return in_range & in_cone(bearing, start, end, eye.field_of_vision)


def _nearest(centre: np.ndarray, targets: np.ndarray, mask: np.ndarray) -> Optional[int]:
    """Index of the nearest masked target; ties go to the earliest index."""
    if not mask.any():
        return None
    offsets = targets - centre
    distance = np.hypot(offsets[:, 0], offsets[:, 1])
    distance[~mask] = np.inf
    return int(np.argmin(distance))


# =============================================================================
# DETECTION
# =============================================================================

def perceive(agent: Agent, snapshot: WorldSnapshot):
    """Recompute every eye's detections for one agent from the snapshot."""
    not_self = np.array([agent_id != agent.id for agent_id in snapshot.agent_ids], dtype=bool)

    for eye in agent.eyes:
        eye.clear_detection()
        anchor = eye_anchor(agent.position, agent.size, eye.eye_location)
        start, end = cone_bounds(agent.rotation, eye)

        if len(snapshot.agent_ids):
            mask = _visible(anchor, snapshot.agent_positions, agent.size, eye, start, end) & not_self
            index = _nearest(agent.position, snapshot.agent_positions, mask)
            if index is not None:
                eye.detected_agent_id = snapshot.agent_ids[index]
                eye.last_agent_pos = snapshot.agent_positions[index].copy()

        if len(snapshot.food_ids):
            mask = _visible(anchor, snapshot.food_positions, FOOD_DETECTION_THRESHOLD,
                            eye, start, end)
            index = _nearest(agent.position, snapshot.food_positions, mask)
            if index is not None:
                eye.detected_food_id = snapshot.food_ids[index]
                eye.last_food_pos = snapshot.food_positions[index].copy()


def perceive_all(agents: Iterable[Agent], snapshot: WorldSnapshot):
    for agent in agents:
        perceive(agent, snapshot)


__all__ = [
    'FOOD_DETECTION_THRESHOLD',
    'WorldSnapshot',
    'wrap_angle',
    'eye_anchor',
    'cone_bounds',
    'in_cone',
    'perceive',
    'perceive_all',
]
