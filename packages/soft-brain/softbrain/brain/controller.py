"""
Per-organism brain controller.

One :class:`BrainController` is owned by one organism and is driven by a
single :meth:`BrainController.process` call per simulation tick:

1. ensure the network matches the organism's current phenotype,
2. encode the senses,
3. run the policy and write actuator commands,
4. score the tick and record the experience,
5. train when the interval has elapsed and the experience window is full.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
from pydantic import BaseModel, ConfigDict

from softbrain.brain.dtypes import BrainConfig, RewardStrategy
from softbrain.brain.experience import ActionDetail, Experience, ExperienceBuffer
from softbrain.brain.network import forward
from softbrain.brain.parameters import ParameterStore
from softbrain.brain.rewards import RewardCalculator, RewardConfig, RewardSignals
from softbrain.brain.sampling import apply_brain_actions
from softbrain.brain.sensors import SensorSnapshot, encode_sensors
from softbrain.brain.topology import (
    PhenotypeCounts,
    Topology,
    designate_brain,
    resolve_hidden_size,
    resolve_topology,
)
from softbrain.brain.trainer import PolicyTrainer
from softbrain.logging_config import logger
from softbrain.utils.seeding import get_rng

if TYPE_CHECKING:
    from softbrain.body import MassPoint, SoftBody
    from softbrain.environment import EnvironmentContext


@dataclass
class BrainState:
    """Mutable learning state owned by one organism's brain."""

    params: ParameterStore
    buffer: ExperienceBuffer
    topology: Topology | None = None
    frames_since_train: int = 0
    previous_energy: float | None = None
    previous_energy_delta: float = 0.0
    last_avg_reward: float = 0.0
    last_snapshot: SensorSnapshot | None = None
    last_actions: list[ActionDetail] = field(default_factory=list)
    topology_version: int = 0
    buffer_resets: int = 0


class InputDiagnostic(BaseModel):
    """One labeled entry of the last input vector."""

    model_config = ConfigDict(frozen=True)

    label: str
    kind: str
    source: int | None
    value: float


class ActionDiagnostic(BaseModel):
    """One labeled action of the last tick."""

    model_config = ConfigDict(frozen=True)

    label: str
    kind: str
    source: int
    mean: float
    std_dev: float
    sampled_value: float
    log_prob: float


class BrainDiagnostics(BaseModel):
    """Read-only view of a brain for inspectors and reports."""

    model_config = ConfigDict(frozen=True)

    input_size: int = 0
    hidden_size: int = 0
    output_size: int = 0
    inputs: tuple[InputDiagnostic, ...] = ()
    actions: tuple[ActionDiagnostic, ...] = ()
    last_avg_reward: float = 0.0
    frames_since_train: int = 0
    buffer_length: int = 0
    buffer_capacity: int = 0
    topology_version: int = 0
    buffer_resets: int = 0


class BrainController:
    """Neural controller for a single organism.

    Parameters
    ----------
    body : SoftBody
        Organism this brain senses and actuates.
    config : BrainConfig | None
        Network and training settings.
    reward_config : RewardConfig | None
        Reward scales.
    rng : np.random.Generator | None
        Source of all randomness; seeded from ``config.seed`` when omitted.
    """

    def __init__(
        self,
        body: SoftBody,
        config: BrainConfig | None = None,
        reward_config: RewardConfig | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.body = body
        self.config = config or BrainConfig()
        self.rng = rng if rng is not None else get_rng(self.config.seed)
        self.reward_calculator = RewardCalculator(reward_config)

        self.trainer = PolicyTrainer(
            learning_rate=self.config.learning_rate,
            gamma=self.config.gamma,
            training_interval=self.config.training_interval,
            return_epsilon=self.config.return_epsilon,
            gradient_epsilon=self.config.gradient_epsilon,
        )
        self.state = BrainState(
            params=ParameterStore(init_scale=self.config.init_scale),
            buffer=ExperienceBuffer(self.config.buffer_capacity),
        )
        self.brain_node: MassPoint | None = None

    def ensure_topology(self) -> Topology | None:
        """
        Make the network match the organism's current phenotype.

        Any change in input, hidden or output size reallocates both layers,
        flushes the experience window and restarts the frame counter.

        Returns
        -------
            Topology | None: The current topology, or None without a brain node.
        """
        self.brain_node = designate_brain(
            self.body,
            self.rng,
            self.config.hidden_size_min,
            self.config.hidden_size_max,
        )
        if self.brain_node is None:
            return None

        neuron = self.brain_node.neuron_data
        neuron.hidden_layer_size = resolve_hidden_size(
            neuron.hidden_layer_size,
            self.rng,
            self.config.hidden_size_min,
            self.config.hidden_size_max,
        )
        topology = resolve_topology(PhenotypeCounts.from_body(self.body), neuron.hidden_layer_size)

        reallocated = self.state.params.ensure_shapes(topology, self.rng)
        if reallocated or self.state.topology != topology:
            self._reset_for_topology(topology)
        return topology

    def _reset_for_topology(self, topology: Topology) -> None:
        state = self.state
        if len(state.buffer) > 0:
            state.buffer_resets += 1
            logger.warning(
                f"Topology changed from {state.topology} to {tuple(topology)}; "
                f"discarding {len(state.buffer)} buffered experiences",
            )
        state.buffer.clear()
        state.frames_since_train = 0
        state.topology = topology
        state.topology_version += 1

    def process(self, dt: float, context: EnvironmentContext) -> None:
        """Run one tick of sensing, acting and learning."""
        topology = self.ensure_topology()
        if topology is None:
            self.body.apply_fallback_behaviors(dt, context)
            return
        state = self.state
        if not state.params.is_valid(topology):
            logger.warning("Brain parameters are missing or invalid; using fallback behaviour")
            self.body.apply_fallback_behaviors(dt, context)
            return

        snapshot = encode_sensors(
            self.body,
            self.brain_node,
            context,
            topology.input_size,
            state.previous_energy,
            state.previous_energy_delta,
        )
        state.previous_energy_delta = snapshot.energy_delta

        result = forward(state.params, snapshot.vector)
        action_details = apply_brain_actions(
            result.raw_outputs,
            self.body,
            self.rng,
            dt,
            context.world,
        )

        if action_details:
            reward = self._reward(snapshot)
            state.buffer.push(Experience.capture(snapshot.vector, action_details, reward))
        state.previous_energy = self.body.creature_energy

        state.frames_since_train += 1
        if self.trainer.should_train(state.frames_since_train, state.buffer):
            training = self.trainer.train(state.params, state.buffer)
            state.frames_since_train = 0
            state.last_avg_reward = training.mean_return

        state.last_snapshot = snapshot
        state.last_actions = action_details

    def _reward(self, snapshot: SensorSnapshot) -> float:
        body = self.body
        previous_energy = (
            body.creature_energy if self.state.previous_energy is None else self.state.previous_energy
        )
        strategy = RewardCalculator.resolve_strategy(body.reward_strategy)
        reward = self.reward_calculator.calculate_reward(
            strategy,
            snapshot,
            RewardSignals(
                energy=body.creature_energy,
                previous_energy=previous_energy,
                photosynthesis_gain=body.energy_gained_from_photosynthesis_this_tick,
                just_reproduced=body.just_reproduced,
            ),
        )
        if strategy == RewardStrategy.REPRODUCTION_EVENT:
            body.just_reproduced = False
        return reward

    def export_parameters(self) -> dict[str, np.ndarray]:
        """Return exact copies of the current weight and bias arrays."""
        return self.state.params.to_arrays()

    def load_parameters(self, arrays: dict[str, np.ndarray]) -> None:
        """
        Load weight and bias arrays for the current topology.

        Raises
        ------
            BrainShapeError: If the arrays do not match the current topology.
        """
        topology = self.ensure_topology()
        if topology is None:
            msg = "Cannot load brain parameters: the organism has no brain node."
            logger.error(msg)
            raise ValueError(msg)
        self.state.params.load_arrays(arrays, topology)

    def diagnostics(self) -> BrainDiagnostics:
        """Return a read-only snapshot of the brain for inspection."""
        state = self.state
        topology = state.topology or Topology(0, 0, 0)
        readings = state.last_snapshot.readings if state.last_snapshot is not None else ()
        return BrainDiagnostics(
            input_size=topology.input_size,
            hidden_size=topology.hidden_size,
            output_size=topology.output_size,
            inputs=tuple(
                InputDiagnostic(
                    label=reading.label,
                    kind=reading.kind.name,
                    source=reading.source,
                    value=reading.value,
                )
                for reading in readings
            ),
            actions=tuple(
                ActionDiagnostic(
                    label=detail.label,
                    kind=detail.kind.name,
                    source=detail.source,
                    mean=detail.mean,
                    std_dev=detail.std_dev,
                    sampled_value=detail.sampled_value,
                    log_prob=detail.log_prob,
                )
                for detail in state.last_actions
            ),
            last_avg_reward=state.last_avg_reward,
            frames_since_train=state.frames_since_train,
            buffer_length=len(state.buffer),
            buffer_capacity=state.buffer.capacity,
            topology_version=state.topology_version,
            buffer_resets=state.buffer_resets,
        )
