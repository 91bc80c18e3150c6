"""Organism body as seen by the brain.

The soft-body integrator, reproduction and rendering live in the outer
simulation. This module only describes the fields the brain reads each tick
(sensor readings, node kinds, springs) and the fields it writes back
(actuator commands).
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from softbrain.dtypes import Vec2

if TYPE_CHECKING:
    from softbrain.environment import EnvironmentContext


class NodeKind(Enum):
    """Node types an organism can be built from."""

    PREDATOR = 0
    EATER = 1
    PHOTOSYNTHETIC = 2
    NEURON = 3
    EMITTER = 4
    SWIMMER = 5
    EYE = 6
    JET = 7
    ATTRACTOR = 8
    REPULSOR = 9


@dataclass
class NeuronData:
    """Heritable neuron settings stored on a neuron node.

    Attributes
    ----------
    is_brain : bool
        Whether this neuron hosts the organism's controller.
    hidden_layer_size : int | None
        Hidden layer width gene; None until first assigned.
    """

    is_brain: bool = False
    hidden_layer_size: int | None = None


@dataclass
class JetData:
    """Jet actuator command."""

    current_magnitude: float = 0.0
    current_angle: float = 0.0


@dataclass
class MassPoint:
    """A point-mass node of the soft body."""

    pos: Vec2 = (0.0, 0.0)
    vel: Vec2 = (0.0, 0.0)
    node_kind: NodeKind = NodeKind.EATER
    can_be_grabber: bool = False
    neuron_data: NeuronData | None = None

    # Sensor readings written by the outer simulation
    sensed_fluid_velocity: Vec2 = (0.0, 0.0)
    sees_target: bool = False
    nearest_target_magnitude: float = 0.0
    nearest_target_direction: float = 0.0

    # Actuator commands written by the brain
    dye_color: list[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    exertion_level: float = 0.0
    jet_data: JetData = field(default_factory=JetData)
    is_grabbing: bool = False
    force: Vec2 = (0.0, 0.0)

    def apply_force(self, fx: float, fy: float) -> None:
        """Accumulate a force to be consumed by the integrator."""
        self.force = (self.force[0] + fx, self.force[1] + fy)


@dataclass
class Spring:
    """Spring connecting two mass points."""

    p1: MassPoint
    p2: MassPoint
    rest_length: float

    def current_length(self) -> float:
        """Return the current distance between the two endpoints."""
        return math.hypot(self.p1.pos[0] - self.p2.pos[0], self.p1.pos[1] - self.p2.pos[1])


FallbackBehavior = Callable[["SoftBody", float, "EnvironmentContext"], None]


@dataclass
class SoftBody:
    """Organism state shared between the simulation and the brain.

    Attributes
    ----------
    mass_points : list[MassPoint]
        Nodes in declaration order.
    springs : list[Spring]
        Springs in declaration order.
    creature_energy : float
        Current energy.
    current_max_energy : float
        Energy capacity.
    energy_gained_from_photosynthesis_this_tick : float
        Photosynthesis gain booked during the current tick.
    just_reproduced : bool
        Set by the simulation when the organism reproduced; consumed by the
        reproduction reward.
    reward_strategy : int
        Heritable reward strategy gene (a ``RewardStrategy`` value).
    fallback_behavior : FallbackBehavior | None
        Called when the brain cannot compute actions this tick.
    """

    mass_points: list[MassPoint] = field(default_factory=list)
    springs: list[Spring] = field(default_factory=list)
    creature_energy: float = 0.0
    current_max_energy: float = 1.0
    energy_gained_from_photosynthesis_this_tick: float = 0.0
    just_reproduced: bool = False
    reward_strategy: int = 0
    fallback_behavior: FallbackBehavior | None = None

    def average_position(self) -> Vec2:
        """Return the centre of mass (unweighted)."""
        if not self.mass_points:
            return (0.0, 0.0)
        n = len(self.mass_points)
        return (
            sum(p.pos[0] for p in self.mass_points) / n,
            sum(p.pos[1] for p in self.mass_points) / n,
        )

    def average_velocity(self) -> Vec2:
        """Return the mean velocity of all nodes."""
        if not self.mass_points:
            return (0.0, 0.0)
        n = len(self.mass_points)
        return (
            sum(p.vel[0] for p in self.mass_points) / n,
            sum(p.vel[1] for p in self.mass_points) / n,
        )

    def points_of_kind(self, kind: NodeKind) -> list[tuple[int, MassPoint]]:
        """Return ``(index, point)`` pairs for every node of ``kind``, in point order."""
        return [(i, p) for i, p in enumerate(self.mass_points) if p.node_kind == kind]

    def apply_fallback_behaviors(self, dt: float, context: EnvironmentContext) -> None:
        """Delegate to the simulation's non-neural behaviour, if one is installed."""
        if self.fallback_behavior is not None:
            self.fallback_behavior(self, dt, context)
