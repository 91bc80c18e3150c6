"""Neural controller: topology, parameters, sensing, policy, rewards and training."""

from softbrain.brain.controller import (
    ActionDiagnostic,
    BrainController,
    BrainDiagnostics,
    BrainState,
    InputDiagnostic,
)
from softbrain.brain.dtypes import (
    DEFAULT_REWARD_STRATEGY,
    ActionKind,
    BrainConfig,
    RewardStrategy,
    SensorKind,
)
from softbrain.brain.experience import ActionDetail, Experience, ExperienceBuffer
from softbrain.brain.parameters import ParameterStore
from softbrain.brain.rewards import RewardCalculator, RewardConfig, RewardSignals
from softbrain.brain.sensors import SensorReading, SensorSnapshot, encode_sensors
from softbrain.brain.topology import PhenotypeCounts, Topology, resolve_topology
from softbrain.brain.trainer import PolicyTrainer, TrainingResult

__all__ = [
    "DEFAULT_REWARD_STRATEGY",
    "ActionDetail",
    "ActionDiagnostic",
    "ActionKind",
    "BrainConfig",
    "BrainController",
    "BrainDiagnostics",
    "BrainState",
    "Experience",
    "ExperienceBuffer",
    "InputDiagnostic",
    "ParameterStore",
    "PhenotypeCounts",
    "PolicyTrainer",
    "RewardCalculator",
    "RewardConfig",
    "RewardSignals",
    "RewardStrategy",
    "SensorKind",
    "SensorReading",
    "SensorSnapshot",
    "Topology",
    "TrainingResult",
    "encode_sensors",
    "resolve_topology",
]
