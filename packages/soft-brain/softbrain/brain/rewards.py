"""Reward calculation logic for the organism brain."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from pydantic import BaseModel, Field

from softbrain.brain.dtypes import DEFAULT_REWARD_STRATEGY, RewardStrategy, SensorKind
from softbrain.brain.sensors import SensorSnapshot
from softbrain.constants import (
    ENERGY_SECOND_DERIVATIVE_REWARD_SCALE,
    PARTICLE_PROXIMITY_REWARD_SCALE,
    REPRODUCTION_REWARD_VALUE,
)
from softbrain.logging_config import logger


class RewardConfig(BaseModel):
    """Configuration for reward scales."""

    reproduction_reward: float = REPRODUCTION_REWARD_VALUE
    particle_proximity_scale: float = Field(default=PARTICLE_PROXIMITY_REWARD_SCALE, ge=0)
    energy_second_derivative_scale: float = ENERGY_SECOND_DERIVATIVE_REWARD_SCALE


@dataclass(frozen=True)
class RewardSignals:
    """Body-level figures the reward needs besides the sensor snapshot.

    Attributes
    ----------
    energy : float
        Energy at the end of the tick.
    previous_energy : float
        Energy at the end of the previous tick.
    photosynthesis_gain : float
        Energy gained from photosynthesis during this tick.
    just_reproduced : bool
        Whether the organism reproduced during this tick.
    """

    energy: float
    previous_energy: float
    photosynthesis_gain: float = 0.0
    just_reproduced: bool = False


def _rectified_mean(snapshot: SensorSnapshot, kind: SensorKind, sign: float) -> float:
    mean = snapshot.mean(kind)
    if mean is None:
        return 0.0
    return max(0.0, sign * mean)


def _eye_distances(snapshot: SensorSnapshot) -> list[float]:
    return [d for d in snapshot.values(SensorKind.EYE_TARGET_DISTANCE) if d > 0]


class RewardCalculator:
    """Evaluates one heritable reward strategy over a tick's sensor snapshot.

    The calculator never reads the body or the environment directly: every
    sensed value comes from the :class:`SensorSnapshot` the encoder produced
    this tick, and every other figure from :class:`RewardSignals`. It holds
    no state, so the same inputs always give the same reward.

    Parameters
    ----------
    config : RewardConfig
        Reward scales.
    """

    def __init__(self, config: RewardConfig | None = None) -> None:
        self.config = config or RewardConfig()
        self._strategies: dict[RewardStrategy, Callable[[SensorSnapshot, RewardSignals], float]] = {
            RewardStrategy.ENERGY_CHANGE: self._energy_change,
            RewardStrategy.REPRODUCTION_EVENT: self._reproduction_event,
            RewardStrategy.PARTICLE_PROXIMITY: self._particle_proximity,
            RewardStrategy.ENERGY_SECOND_DERIVATIVE: self._energy_second_derivative,
            RewardStrategy.SENSED_DYE_R: self._raw(SensorKind.DYE_R),
            RewardStrategy.SENSED_DYE_R_INV: self._inverted(SensorKind.DYE_R),
            RewardStrategy.SENSED_DYE_G: self._raw(SensorKind.DYE_G),
            RewardStrategy.SENSED_DYE_G_INV: self._inverted(SensorKind.DYE_G),
            RewardStrategy.SENSED_DYE_B: self._raw(SensorKind.DYE_B),
            RewardStrategy.SENSED_DYE_B_INV: self._inverted(SensorKind.DYE_B),
            RewardStrategy.ENERGY_RATIO: self._raw(SensorKind.ENERGY_RATIO),
            RewardStrategy.ENERGY_RATIO_INV: self._inverted(SensorKind.ENERGY_RATIO),
            RewardStrategy.REL_COM_POS_X_POS: self._rectified(SensorKind.COM_POS_X, 1.0),
            RewardStrategy.REL_COM_POS_X_NEG: self._rectified(SensorKind.COM_POS_X, -1.0),
            RewardStrategy.REL_COM_POS_Y_POS: self._rectified(SensorKind.COM_POS_Y, 1.0),
            RewardStrategy.REL_COM_POS_Y_NEG: self._rectified(SensorKind.COM_POS_Y, -1.0),
            RewardStrategy.REL_COM_VEL_X_POS: self._rectified(SensorKind.COM_VEL_X, 1.0),
            RewardStrategy.REL_COM_VEL_X_NEG: self._rectified(SensorKind.COM_VEL_X, -1.0),
            RewardStrategy.REL_COM_VEL_Y_POS: self._rectified(SensorKind.COM_VEL_Y, 1.0),
            RewardStrategy.REL_COM_VEL_Y_NEG: self._rectified(SensorKind.COM_VEL_Y, -1.0),
            RewardStrategy.SENSED_NUTRIENT: self._raw(SensorKind.NUTRIENT),
            RewardStrategy.SENSED_NUTRIENT_INV: self._inverted(SensorKind.NUTRIENT),
            RewardStrategy.AVG_SPRING_COMPRESSION: self._rectified(SensorKind.SPRING_LENGTH, -1.0),
            RewardStrategy.AVG_SPRING_EXTENSION: self._rectified(SensorKind.SPRING_LENGTH, 1.0),
            RewardStrategy.AVG_FLUID_VEL_X_POS: self._rectified(SensorKind.FLUID_VEL_X, 1.0),
            RewardStrategy.AVG_FLUID_VEL_X_NEG: self._rectified(SensorKind.FLUID_VEL_X, -1.0),
            RewardStrategy.AVG_FLUID_VEL_Y_POS: self._rectified(SensorKind.FLUID_VEL_Y, 1.0),
            RewardStrategy.AVG_FLUID_VEL_Y_NEG: self._rectified(SensorKind.FLUID_VEL_Y, -1.0),
            RewardStrategy.EYE_SEES_TARGET: self._eye_sees_target,
            RewardStrategy.EYE_TARGET_PROXIMITY: self._eye_target_proximity,
            RewardStrategy.EYE_TARGET_DISTANCE: self._eye_target_distance,
        }

    @staticmethod
    def resolve_strategy(gene: int | RewardStrategy | None) -> RewardStrategy:
        """Turn a stored strategy gene into a :class:`RewardStrategy`, defaulting when unknown."""
        if isinstance(gene, RewardStrategy):
            return gene
        try:
            return RewardStrategy(gene)
        except ValueError:
            logger.debug(f"Unknown reward strategy {gene!r}, using {DEFAULT_REWARD_STRATEGY.name}")
            return DEFAULT_REWARD_STRATEGY

    def calculate_reward(
        self,
        strategy: int | RewardStrategy | None,
        snapshot: SensorSnapshot,
        signals: RewardSignals,
    ) -> float:
        """Calculate the reward for this tick.

        Parameters
        ----------
        strategy : int | RewardStrategy | None
            Heritable strategy gene. Unknown values and strategies without a
            dedicated rule use the energy-change reward.
        snapshot : SensorSnapshot
            Readings produced by the sensor encoder this tick.
        signals : RewardSignals
            Body-level figures for this tick.

        Returns
        -------
        float
            Reward value.
        """
        resolved = self.resolve_strategy(strategy)
        rule = self._strategies.get(resolved, self._energy_change)
        reward = float(rule(snapshot, signals))
        logger.debug(f"[Reward] {resolved.name}: {reward}")
        return reward

    @staticmethod
    def _energy_change(_snapshot: SensorSnapshot, signals: RewardSignals) -> float:
        return (signals.energy - signals.previous_energy) - signals.photosynthesis_gain

    def _reproduction_event(self, _snapshot: SensorSnapshot, signals: RewardSignals) -> float:
        return self.config.reproduction_reward if signals.just_reproduced else 0.0

    def _particle_proximity(self, snapshot: SensorSnapshot, _signals: RewardSignals) -> float:
        distances = {r.source: r.value for r in snapshot.of_kind(SensorKind.EYE_TARGET_DISTANCE)}
        nearest = 1.0
        found = False
        for reading in snapshot.of_kind(SensorKind.EYE_SEES_TARGET):
            if reading.value > 0 and reading.source in distances:
                nearest = min(nearest, distances[reading.source])
                found = True
        if not found:
            return 0.0
        return (1.0 - nearest) * self.config.particle_proximity_scale

    def _energy_second_derivative(
        self,
        snapshot: SensorSnapshot,
        _signals: RewardSignals,
    ) -> float:
        rate = snapshot.value(SensorKind.ENERGY_DELTA_RATE)
        return rate * self.config.energy_second_derivative_scale

    @staticmethod
    def _raw(kind: SensorKind) -> Callable[[SensorSnapshot, RewardSignals], float]:
        return lambda snapshot, _signals: snapshot.value(kind)

    @staticmethod
    def _inverted(kind: SensorKind) -> Callable[[SensorSnapshot, RewardSignals], float]:
        return lambda snapshot, _signals: 1.0 - snapshot.value(kind)

    @staticmethod
    def _rectified(
        kind: SensorKind,
        sign: float,
    ) -> Callable[[SensorSnapshot, RewardSignals], float]:
        return lambda snapshot, _signals: _rectified_mean(snapshot, kind, sign)

    @staticmethod
    def _eye_sees_target(snapshot: SensorSnapshot, _signals: RewardSignals) -> float:
        return 1.0 if any(v > 0 for v in snapshot.values(SensorKind.EYE_SEES_TARGET)) else 0.0

    @staticmethod
    def _eye_target_proximity(snapshot: SensorSnapshot, _signals: RewardSignals) -> float:
        distances = _eye_distances(snapshot)
        return 1.0 - min(distances) if distances else 0.0

    @staticmethod
    def _eye_target_distance(snapshot: SensorSnapshot, _signals: RewardSignals) -> float:
        distances = _eye_distances(snapshot)
        return min(distances) if distances else 0.0
