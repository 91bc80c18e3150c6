"""Load and configure brain settings from a YAML file."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from softbrain.brain.dtypes import DEFAULT_REWARD_STRATEGY, BrainConfig, RewardStrategy
from softbrain.brain.rewards import RewardConfig
from softbrain.environment import WorldConfig
from softbrain.logging_config import logger

DEFAULT_TICKS = 200
DEFAULT_DT = 1.0 / 60.0


class OrganismConfig(BaseModel):
    """Population size and phenotype of the synthetic organisms driven by the demo."""

    population: int = Field(default=1, gt=0)
    emitters: int = Field(default=1, ge=0)
    swimmers: int = Field(default=1, ge=0)
    eaters: int = Field(default=1, ge=0)
    jets: int = Field(default=0, ge=0)
    eyes: int = Field(default=1, ge=0)
    grabbers: int = Field(default=0, ge=0)
    fluid_grid_size: int = Field(default=64, gt=0)


class SimulationConfig(BaseModel):
    """Configuration for a brain simulation run."""

    brain: BrainConfig | None = None
    reward: RewardConfig | None = None
    world: WorldConfig | None = None
    organism: OrganismConfig | None = None
    ticks: int = Field(default=DEFAULT_TICKS, gt=0)
    dt: float = Field(default=DEFAULT_DT, gt=0)
    reward_strategy: str | None = None

    @field_validator("reward_strategy")
    @classmethod
    def validate_reward_strategy(cls, v: str | None) -> str | None:
        """Validate that the reward strategy names a known strategy."""
        if v is not None:
            configure_reward_strategy(v)
        return v


def load_simulation_config(config_path: str | Path) -> SimulationConfig:
    """
    Load simulation configuration from a YAML file and parse it into a SimulationConfig model.

    Args:
        config_path (str | Path): Path to the YAML configuration file.

    Returns
    -------
        SimulationConfig: Parsed configuration as a Pydantic model.
    """
    with Path(config_path).open() as file:
        data = yaml.safe_load(file) or {}
        return SimulationConfig(**data)


def configure_brain(config: SimulationConfig) -> BrainConfig:
    """
    Configure the brain based on the provided configuration.

    Args:
        config (SimulationConfig): Simulation configuration object.

    Returns
    -------
        BrainConfig: The configured brain settings.
    """
    if config.brain is None:
        logger.warning("No brain configuration provided. Using default brain configuration.")
        return BrainConfig()
    return config.brain


def configure_reward(config: SimulationConfig) -> RewardConfig:
    """
    Configure the reward scales based on the provided configuration.

    Args:
        config (SimulationConfig): Simulation configuration object.

    Returns
    -------
        RewardConfig: The configured reward scales.
    """
    return config.reward or RewardConfig()


def configure_world(config: SimulationConfig) -> WorldConfig:
    """
    Configure the world constants based on the provided configuration.

    Args:
        config (SimulationConfig): Simulation configuration object.

    Returns
    -------
        WorldConfig: The configured world constants.
    """
    return config.world or WorldConfig()


def configure_organism(config: SimulationConfig) -> OrganismConfig:
    """Return the demo organism phenotype, or its defaults."""
    return config.organism or OrganismConfig()


def configure_reward_strategy(name: str | None) -> RewardStrategy:
    """
    Resolve a reward strategy from its name.

    Args:
        name (str | None): Strategy name, matched case-insensitively against
            the ``RewardStrategy`` member names. None selects the default.

    Returns
    -------
        RewardStrategy: The resolved strategy.

    Raises
    ------
        ValueError: If the name does not match any strategy.
    """
    if name is None:
        return DEFAULT_REWARD_STRATEGY
    key = name.strip().upper().replace("-", "_")
    try:
        return RewardStrategy[key]
    except KeyError:
        valid = ", ".join(strategy.name.lower() for strategy in RewardStrategy)
        error_message = f"Invalid reward strategy: {name}. Valid strategies are: {valid}."
        logger.error(error_message)
        raise ValueError(error_message) from None
