"""
Sensor encoding for the organism brain.

The encoder builds the fixed-length input vector once per tick and keeps a
typed reading for every entry. The reward evaluator and the diagnostics
snapshot read those readings instead of recomputing any value.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from softbrain.body import NodeKind
from softbrain.brain.dtypes import SensorKind
from softbrain.constants import (
    DEFAULT_NUTRIENT_READING,
    ENERGY_DELTA_NORMALIZATION_FRACTION,
    MAX_DYE_DENSITY,
)
from softbrain.logging_config import logger

if TYPE_CHECKING:
    from softbrain.body import MassPoint, SoftBody
    from softbrain.environment import EnvironmentContext


@dataclass(frozen=True)
class SensorReading:
    """One entry of the input vector.

    Attributes
    ----------
    kind : SensorKind
        What the entry measures.
    value : float
        Normalized value fed to the network.
    source : int | None
        Index of the owning mass point (or spring, for spring readings);
        None for body-level readings.
    """

    kind: SensorKind
    value: float
    source: int | None = None

    @property
    def label(self) -> str:
        """Human readable label, e.g. ``"Spring Length 3"``."""
        if self.source is None:
            return self.kind.value
        return f"{self.kind.value} {self.source}"


@dataclass(frozen=True)
class SensorSnapshot:
    """Everything the encoder produced for one tick.

    Attributes
    ----------
    readings : tuple[SensorReading, ...]
        Every assembled reading in vector order, including any truncated tail.
    vector : np.ndarray
        Network input of exactly ``input_size`` entries.
    energy_delta : float
        First discrete derivative of energy measured this tick.
    """

    readings: tuple[SensorReading, ...]
    vector: np.ndarray
    energy_delta: float = 0.0
    _by_kind: dict[SensorKind, list[float]] = field(
        default_factory=dict,
        init=False,
        repr=False,
        compare=False,
    )

    def __post_init__(self) -> None:
        for reading in self.readings:
            self._by_kind.setdefault(reading.kind, []).append(reading.value)

    def values(self, kind: SensorKind) -> list[float]:
        """Return every value of ``kind`` in vector order."""
        return list(self._by_kind.get(kind, []))

    def value(self, kind: SensorKind, default: float = 0.0) -> float:
        """Return the first value of ``kind``, or ``default`` if absent."""
        values = self._by_kind.get(kind)
        return values[0] if values else default

    def mean(self, kind: SensorKind) -> float | None:
        """Return the mean of all values of ``kind``, or None if absent."""
        values = self._by_kind.get(kind)
        if not values:
            return None
        return sum(values) / len(values)

    def of_kind(self, kind: SensorKind) -> list[SensorReading]:
        """Return the readings of ``kind`` in vector order."""
        return [reading for reading in self.readings if reading.kind == kind]


def normalize_nutrient(value: float, min_nutrient: float, max_nutrient: float) -> float:
    """Map a raw nutrient value into ``[0, 1]``."""
    normalized = (value - min_nutrient) / (max_nutrient - min_nutrient)
    return min(1.0, max(0.0, normalized))


def encode_sensors(  # noqa: PLR0913
    body: SoftBody,
    brain_node: MassPoint,
    context: EnvironmentContext,
    input_size: int,
    previous_energy: float | None,
    previous_energy_delta: float,
) -> SensorSnapshot:
    """
    Assemble the sensory input vector for one tick.

    Args:
        body: Organism being sensed.
        brain_node: Node at which local fields (dye, nutrient) are sampled.
        context: Read-only environment snapshot.
        input_size: Network input length; the vector is padded or truncated to it.
        previous_energy: Energy at the end of the previous tick, or None on the
            first tick.
        previous_energy_delta: Energy change measured on the previous tick.

    Returns
    -------
        SensorSnapshot: The labeled readings and the network input vector.
    """
    world = context.world
    readings: list[SensorReading] = []
    x, y = brain_node.pos

    # Local dye
    dye = (0.0, 0.0, 0.0)
    if context.fluid is not None:
        dye = context.fluid.sample_dye(x, y)
    for kind, density in zip(
        (SensorKind.DYE_R, SensorKind.DYE_G, SensorKind.DYE_B),
        dye,
        strict=True,
    ):
        readings.append(SensorReading(kind, density / MAX_DYE_DENSITY))

    # Energy
    max_energy = body.current_max_energy
    energy_ratio = body.creature_energy / max_energy if max_energy > 0 else 0.0
    readings.append(SensorReading(SensorKind.ENERGY_RATIO, energy_ratio))

    # Centre of mass relative to the brain, and its velocity
    com_x, com_y = body.average_position()
    readings.append(SensorReading(SensorKind.COM_POS_X, math.tanh((com_x - x) / world.width)))
    readings.append(SensorReading(SensorKind.COM_POS_Y, math.tanh((com_y - y) / world.height)))
    vel_x, vel_y = body.average_velocity()
    max_displacement = world.max_pixels_per_frame_displacement
    readings.append(SensorReading(SensorKind.COM_VEL_X, math.tanh(vel_x / max_displacement)))
    readings.append(SensorReading(SensorKind.COM_VEL_Y, math.tanh(vel_y / max_displacement)))

    # Nutrient
    nutrient = DEFAULT_NUTRIENT_READING
    raw_nutrient = context.nutrient_at(x, y)
    if raw_nutrient is not None:
        nutrient = normalize_nutrient(raw_nutrient, world.min_nutrient, world.max_nutrient)
    readings.append(SensorReading(SensorKind.NUTRIENT, nutrient))

    # Second discrete derivative of energy
    last_energy = body.creature_energy if previous_energy is None else previous_energy
    energy_delta = body.creature_energy - last_energy
    second_derivative = energy_delta - previous_energy_delta
    scale = max_energy * ENERGY_DELTA_NORMALIZATION_FRACTION or 1.0
    readings.append(
        SensorReading(SensorKind.ENERGY_DELTA_RATE, math.tanh(second_derivative / scale)),
    )

    # Springs
    for i, spring in enumerate(body.springs):
        strain = spring.current_length() / spring.rest_length - 1 if spring.rest_length > 0 else 0.0
        readings.append(SensorReading(SensorKind.SPRING_LENGTH, math.tanh(strain), i))

    # Fluid velocity at swimmers and jets
    for i, point in enumerate(body.mass_points):
        if point.node_kind in (NodeKind.SWIMMER, NodeKind.JET):
            fvx, fvy = point.sensed_fluid_velocity
            readings.append(SensorReading(SensorKind.FLUID_VEL_X, math.tanh(fvx), i))
            readings.append(SensorReading(SensorKind.FLUID_VEL_Y, math.tanh(fvy), i))

    # Eyes
    for i, point in body.points_of_kind(NodeKind.EYE):
        readings.append(
            SensorReading(SensorKind.EYE_SEES_TARGET, 1.0 if point.sees_target else 0.0, i),
        )
        readings.append(
            SensorReading(SensorKind.EYE_TARGET_DISTANCE, point.nearest_target_magnitude, i),
        )
        readings.append(
            SensorReading(
                SensorKind.EYE_TARGET_DIRECTION,
                point.nearest_target_direction / (2 * math.pi) + 0.5,
                i,
            ),
        )

    values = [reading.value for reading in readings]
    if len(values) > input_size:
        logger.debug(
            f"Truncating sensor vector from {len(values)} to {input_size} entries",
        )
        values = values[:input_size]
    vector = np.zeros(input_size, dtype=np.float64)
    vector[: len(values)] = values

    return SensorSnapshot(readings=tuple(readings), vector=vector, energy_delta=energy_delta)
