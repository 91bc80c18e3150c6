"""
Topology resolution for the organism brain.

Network dimensions are a pure function of the organism's phenotype: every
sensor kind contributes a fixed number of inputs and every actuator kind a
fixed number of raw outputs (two per Gaussian action). The hidden layer width
is a heritable gene stored on the brain neuron, drawn once and kept unless it
is missing or out of range.
"""

from __future__ import annotations

from numbers import Integral
from typing import NamedTuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from softbrain.body import MassPoint, NeuronData, NodeKind, SoftBody
from softbrain.constants import (
    DEFAULT_HIDDEN_LAYER_SIZE_MAX,
    DEFAULT_HIDDEN_LAYER_SIZE_MIN,
    NEURAL_INPUT_SIZE_BASE,
    NEURAL_INPUTS_PER_EYE,
    NEURAL_INPUTS_PER_FLUID_SENSOR,
    NEURAL_INPUTS_PER_SPRING_SENSOR,
    NEURAL_OUTPUTS_PER_ATTRACTOR,
    NEURAL_OUTPUTS_PER_EATER,
    NEURAL_OUTPUTS_PER_EMITTER,
    NEURAL_OUTPUTS_PER_GRABBER_TOGGLE,
    NEURAL_OUTPUTS_PER_JET,
    NEURAL_OUTPUTS_PER_PREDATOR,
    NEURAL_OUTPUTS_PER_REPULSOR,
    NEURAL_OUTPUTS_PER_SWIMMER,
)
from softbrain.logging_config import logger


class PhenotypeCounts(BaseModel):
    """Per-kind node and spring counts that determine the network dimensions."""

    model_config = ConfigDict(frozen=True)

    emitters: int = Field(default=0, ge=0)
    swimmers: int = Field(default=0, ge=0)
    eaters: int = Field(default=0, ge=0)
    predators: int = Field(default=0, ge=0)
    eyes: int = Field(default=0, ge=0)
    jets: int = Field(default=0, ge=0)
    springs: int = Field(default=0, ge=0)
    grabbers: int = Field(default=0, ge=0)
    attractors: int = Field(default=0, ge=0)
    repulsors: int = Field(default=0, ge=0)

    @classmethod
    def from_body(cls, body: SoftBody) -> PhenotypeCounts:
        """Count the sensor and actuator nodes of ``body``."""
        counts = dict.fromkeys(NodeKind, 0)
        grabbers = 0
        for point in body.mass_points:
            counts[point.node_kind] += 1
            if point.can_be_grabber:
                grabbers += 1
        return cls(
            emitters=counts[NodeKind.EMITTER],
            swimmers=counts[NodeKind.SWIMMER],
            eaters=counts[NodeKind.EATER],
            predators=counts[NodeKind.PREDATOR],
            eyes=counts[NodeKind.EYE],
            jets=counts[NodeKind.JET],
            springs=len(body.springs),
            grabbers=grabbers,
            attractors=counts[NodeKind.ATTRACTOR],
            repulsors=counts[NodeKind.REPULSOR],
        )


class Topology(NamedTuple):
    """Network dimensions."""

    input_size: int
    hidden_size: int
    output_size: int


def resolve_input_size(counts: PhenotypeCounts) -> int:
    """Return the sensory vector length for the given phenotype."""
    return (
        NEURAL_INPUT_SIZE_BASE
        + counts.eyes * NEURAL_INPUTS_PER_EYE
        + counts.swimmers * NEURAL_INPUTS_PER_FLUID_SENSOR
        + counts.jets * NEURAL_INPUTS_PER_FLUID_SENSOR
        + counts.springs * NEURAL_INPUTS_PER_SPRING_SENSOR
    )


def resolve_output_size(counts: PhenotypeCounts) -> int:
    """Return the raw output vector length for the given phenotype."""
    return (
        counts.emitters * NEURAL_OUTPUTS_PER_EMITTER
        + counts.swimmers * NEURAL_OUTPUTS_PER_SWIMMER
        + counts.eaters * NEURAL_OUTPUTS_PER_EATER
        + counts.predators * NEURAL_OUTPUTS_PER_PREDATOR
        + counts.jets * NEURAL_OUTPUTS_PER_JET
        + counts.grabbers * NEURAL_OUTPUTS_PER_GRABBER_TOGGLE
        + counts.attractors * NEURAL_OUTPUTS_PER_ATTRACTOR
        + counts.repulsors * NEURAL_OUTPUTS_PER_REPULSOR
    )


def resolve_topology(counts: PhenotypeCounts, hidden_size: int) -> Topology:
    """
    Resolve the full network topology.

    Args:
        counts: Phenotype node/spring counts.
        hidden_size: Hidden layer width gene (already validated).

    Returns
    -------
        Topology: ``(input_size, hidden_size, output_size)``.
    """
    return Topology(resolve_input_size(counts), hidden_size, resolve_output_size(counts))


def draw_hidden_size(
    rng: np.random.Generator,
    low: int = DEFAULT_HIDDEN_LAYER_SIZE_MIN,
    high: int = DEFAULT_HIDDEN_LAYER_SIZE_MAX,
) -> int:
    """Draw a hidden layer width uniformly from ``[low, high]``."""
    return int(rng.integers(low, high + 1))


def resolve_hidden_size(
    current: int | None,
    rng: np.random.Generator,
    low: int = DEFAULT_HIDDEN_LAYER_SIZE_MIN,
    high: int = DEFAULT_HIDDEN_LAYER_SIZE_MAX,
) -> int:
    """Keep ``current`` when it is an in-bounds integer, otherwise draw a fresh width."""
    if isinstance(current, Integral) and not isinstance(current, bool) and low <= current <= high:
        return int(current)
    return draw_hidden_size(rng, low, high)


def designate_brain(
    body: SoftBody,
    rng: np.random.Generator,
    low: int = DEFAULT_HIDDEN_LAYER_SIZE_MIN,
    high: int = DEFAULT_HIDDEN_LAYER_SIZE_MAX,
) -> MassPoint | None:
    """
    Find or designate the organism's single brain node.

    The first node already flagged as brain wins. Without one, the first
    neuron node is promoted. Every other brain flag is cleared so an organism
    never carries two brains.

    Returns
    -------
        MassPoint | None: The brain node, or None if the body has no neuron.
    """
    brain_node = next(
        (p for p in body.mass_points if p.neuron_data is not None and p.neuron_data.is_brain),
        None,
    )

    if brain_node is None:
        brain_node = next((p for p in body.mass_points if p.node_kind == NodeKind.NEURON), None)
        if brain_node is None:
            return None
        if brain_node.neuron_data is None:
            brain_node.neuron_data = NeuronData(hidden_layer_size=draw_hidden_size(rng, low, high))
        brain_node.neuron_data.is_brain = True
        logger.info(
            f"Designated node {_index_of(body, brain_node)} as brain "
            f"(hidden size gene: {brain_node.neuron_data.hidden_layer_size})",
        )

    for point in body.mass_points:
        if point is not brain_node and point.neuron_data is not None and point.neuron_data.is_brain:
            point.neuron_data.is_brain = False
            logger.debug(f"Demoted duplicate brain node {_index_of(body, point)}")

    return brain_node


def _index_of(body: SoftBody, point: MassPoint) -> int:
    return next(i for i, p in enumerate(body.mass_points) if p is point)
