"""
Gaussian action sampling and actuator command mapping.

Raw network outputs are consumed two at a time as ``(mean, raw_log_std)``.
Actuators are visited in a fixed order and each one consumes its declared
width from a shared cursor. When the raw output vector is too short for an
actuator, the actuator is left untouched but the cursor still advances so
that every later actuator reads its own slots.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from softbrain.body import NodeKind
from softbrain.brain.dtypes import ActionKind
from softbrain.brain.experience import ActionDetail
from softbrain.constants import (
    GRABBER_TOGGLE_THRESHOLD,
    LOG_2PI,
    MAX_DYE_DENSITY,
    NEURAL_OUTPUTS_PER_ACTION,
    NEURAL_OUTPUTS_PER_ATTRACTOR,
    NEURAL_OUTPUTS_PER_EATER,
    NEURAL_OUTPUTS_PER_EMITTER,
    NEURAL_OUTPUTS_PER_GRABBER_TOGGLE,
    NEURAL_OUTPUTS_PER_JET,
    NEURAL_OUTPUTS_PER_PREDATOR,
    NEURAL_OUTPUTS_PER_REPULSOR,
    NEURAL_OUTPUTS_PER_SWIMMER,
    STD_DEV_FLOOR,
)
from softbrain.logging_config import logger

if TYPE_CHECKING:
    from softbrain.body import MassPoint, SoftBody
    from softbrain.environment import WorldConfig


def sigmoid(x: float) -> float:
    """Numerically stable logistic function."""
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def sample_gaussian(rng: np.random.Generator, mean: float, std_dev: float) -> float:
    """Draw one value from ``Normal(mean, std_dev)``."""
    return float(mean + std_dev * rng.standard_normal())


def log_pdf_gaussian(x: float, mean: float, std_dev: float) -> float:
    """
    Log-density of ``Normal(mean, std_dev)`` at ``x``.

    A standard deviation at or below the floor is treated as degenerate: the
    density is ``0`` at the mean and ``-inf`` elsewhere.
    """
    if std_dev <= STD_DEV_FLOOR:
        return 0.0 if abs(x - mean) < STD_DEV_FLOOR else -math.inf
    z = (x - mean) / std_dev
    return -0.5 * z * z - math.log(std_dev) - 0.5 * LOG_2PI


def sample_action(
    rng: np.random.Generator,
    raw_outputs: np.ndarray,
    output_index: int,
    kind: ActionKind,
    source: int,
) -> ActionDetail:
    """Sample the Gaussian action whose parameters start at ``output_index``."""
    mean = float(raw_outputs[output_index])
    raw_log_std = float(raw_outputs[output_index + 1])
    std_dev = math.exp(raw_log_std) + STD_DEV_FLOOR
    sampled_value = sample_gaussian(rng, mean, std_dev)
    return ActionDetail(
        kind=kind,
        source=source,
        output_index=output_index,
        mean=mean,
        std_dev=std_dev,
        sampled_value=sampled_value,
        log_prob=log_pdf_gaussian(sampled_value, mean, std_dev),
    )


ACTUATOR_LAYOUT: dict[NodeKind, tuple[int, tuple[ActionKind, ...]]] = {
    NodeKind.EMITTER: (
        NEURAL_OUTPUTS_PER_EMITTER,
        (
            ActionKind.EMITTER_RED,
            ActionKind.EMITTER_GREEN,
            ActionKind.EMITTER_BLUE,
            ActionKind.EMITTER_EXERTION,
        ),
    ),
    NodeKind.SWIMMER: (
        NEURAL_OUTPUTS_PER_SWIMMER,
        (ActionKind.SWIMMER_MAGNITUDE, ActionKind.SWIMMER_DIRECTION),
    ),
    NodeKind.EATER: (NEURAL_OUTPUTS_PER_EATER, (ActionKind.EATER_EXERTION,)),
    NodeKind.PREDATOR: (NEURAL_OUTPUTS_PER_PREDATOR, (ActionKind.PREDATOR_EXERTION,)),
    NodeKind.JET: (NEURAL_OUTPUTS_PER_JET, (ActionKind.JET_MAGNITUDE, ActionKind.JET_DIRECTION)),
    NodeKind.ATTRACTOR: (NEURAL_OUTPUTS_PER_ATTRACTOR, (ActionKind.ATTRACTOR_EXERTION,)),
    NodeKind.REPULSOR: (NEURAL_OUTPUTS_PER_REPULSOR, (ActionKind.REPULSOR_EXERTION,)),
}


def _actuator_plan(body: SoftBody) -> list[tuple[int, MassPoint, tuple[ActionKind, ...], int]]:
    """
    List ``(index, point, action kinds, width)`` for every actuator in visiting order.

    Node actuators are visited in point order whatever their kind. Grabber
    toggles follow in a second pass over the points.
    """
    plan = []
    for i, point in enumerate(body.mass_points):
        layout = ACTUATOR_LAYOUT.get(point.node_kind)
        if layout is not None:
            width, action_kinds = layout
            plan.append((i, point, action_kinds, width))
    for i, point in enumerate(body.mass_points):
        if point.can_be_grabber:
            plan.append((i, point, (ActionKind.GRABBER_TOGGLE,), NEURAL_OUTPUTS_PER_GRABBER_TOGGLE))
    return plan


def _apply_command(
    point: MassPoint,
    details: list[ActionDetail],
    dt: float,
    world: WorldConfig,
) -> None:
    """Write the actuator command encoded by ``details`` onto ``point``."""
    first = details[0]
    kind = first.kind
    if kind == ActionKind.EMITTER_RED:
        for channel, detail in enumerate(details[:3]):
            point.dye_color[channel] = sigmoid(detail.sampled_value) * MAX_DYE_DENSITY
        point.exertion_level = sigmoid(details[3].sampled_value)
    elif kind == ActionKind.SWIMMER_MAGNITUDE:
        exertion = sigmoid(first.sampled_value)
        angle = details[1].sampled_value
        point.exertion_level = exertion
        magnitude = exertion * world.max_swimmer_output_magnitude
        if dt > 0:
            point.apply_force(
                magnitude * math.cos(angle) / dt,
                magnitude * math.sin(angle) / dt,
            )
    elif kind == ActionKind.JET_MAGNITUDE:
        point.exertion_level = sigmoid(first.sampled_value)
        point.jet_data.current_magnitude = point.exertion_level * world.max_jet_output_magnitude
        point.jet_data.current_angle = details[1].sampled_value
    elif kind == ActionKind.GRABBER_TOGGLE:
        point.is_grabbing = sigmoid(first.sampled_value) > GRABBER_TOGGLE_THRESHOLD
    else:
        point.exertion_level = sigmoid(first.sampled_value)


def apply_brain_actions(
    raw_outputs: np.ndarray,
    body: SoftBody,
    rng: np.random.Generator,
    dt: float,
    world: WorldConfig,
) -> list[ActionDetail]:
    """
    Sample every actuator's actions and write the resulting commands onto the body.

    Args:
        raw_outputs: Network outputs, read as ``(mean, raw_log_std)`` pairs.
        body: Organism whose actuator nodes receive the commands.
        rng: Random generator for the Gaussian draws.
        dt: Simulation time step, used to turn swimmer impulses into forces.
        world: World constants holding the actuator output scales.

    Returns
    -------
        list[ActionDetail]: Sampled actions in raw-output order.
    """
    action_details: list[ActionDetail] = []
    cursor = 0
    for source, point, action_kinds, width in _actuator_plan(body):
        if cursor + width > len(raw_outputs):
            logger.debug(
                f"Skipping actuator at node {source}: needs outputs "
                f"[{cursor}, {cursor + width}) but only {len(raw_outputs)} available",
            )
            cursor += width
            continue
        details = [
            sample_action(rng, raw_outputs, cursor + k * NEURAL_OUTPUTS_PER_ACTION, kind, source)
            for k, kind in enumerate(action_kinds)
        ]
        _apply_command(point, details, dt, world)
        action_details.extend(details)
        cursor += width
    return action_details
