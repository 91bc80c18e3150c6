"""Define the types used by the organism brain."""

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from softbrain.constants import (
    DEFAULT_EXPERIENCE_BUFFER_SIZE,
    DEFAULT_GAMMA,
    DEFAULT_GRADIENT_EPSILON,
    DEFAULT_HIDDEN_LAYER_SIZE_MAX,
    DEFAULT_HIDDEN_LAYER_SIZE_MIN,
    DEFAULT_INIT_SCALE,
    DEFAULT_LEARNING_RATE,
    DEFAULT_RETURN_EPSILON,
    DEFAULT_TRAINING_INTERVAL_FRAMES,
)


class SensorKind(str, Enum):
    """Kinds of entries in the sensory input vector."""

    DYE_R = "Sensed Dye (R)"
    DYE_G = "Sensed Dye (G)"
    DYE_B = "Sensed Dye (B)"
    ENERGY_RATIO = "Energy Ratio"
    COM_POS_X = "Relative CoM Pos X"
    COM_POS_Y = "Relative CoM Pos Y"
    COM_VEL_X = "CoM Vel X"
    COM_VEL_Y = "CoM Vel Y"
    NUTRIENT = "Nutrient"
    ENERGY_DELTA_RATE = "Energy Delta-Rate"
    SPRING_LENGTH = "Spring Length"
    FLUID_VEL_X = "Fluid Vel X"
    FLUID_VEL_Y = "Fluid Vel Y"
    EYE_SEES_TARGET = "Eye Sees Target"
    EYE_TARGET_DISTANCE = "Eye Target Dist"
    EYE_TARGET_DIRECTION = "Eye Target Dir"


class ActionKind(str, Enum):
    """Kinds of Gaussian actions emitted by the policy."""

    EMITTER_RED = "Emitter Red"
    EMITTER_GREEN = "Emitter Green"
    EMITTER_BLUE = "Emitter Blue"
    EMITTER_EXERTION = "Emitter Exertion"
    SWIMMER_MAGNITUDE = "Swimmer Magnitude"
    SWIMMER_DIRECTION = "Swimmer Direction"
    EATER_EXERTION = "Eater Exertion"
    PREDATOR_EXERTION = "Predator Exertion"
    JET_MAGNITUDE = "Jet Magnitude"
    JET_DIRECTION = "Jet Direction"
    ATTRACTOR_EXERTION = "Attractor Exertion"
    REPULSOR_EXERTION = "Repulsor Exertion"
    GRABBER_TOGGLE = "Grabber Toggle"


class RewardStrategy(Enum):
    """Heritable reward signals an organism can learn from.

    Values are stable integers so the gene survives save/load and mutation.
    """

    ENERGY_CHANGE = 0
    REPRODUCTION_EVENT = 1
    PARTICLE_PROXIMITY = 2
    ENERGY_SECOND_DERIVATIVE = 3
    CREATURE_PROXIMITY = 4
    CREATURE_DISTANCE = 5
    SENSED_DYE_R = 6
    SENSED_DYE_R_INV = 7
    SENSED_DYE_G = 8
    SENSED_DYE_G_INV = 9
    SENSED_DYE_B = 10
    SENSED_DYE_B_INV = 11
    ENERGY_RATIO = 12
    ENERGY_RATIO_INV = 13
    REL_COM_POS_X_POS = 14
    REL_COM_POS_X_NEG = 15
    REL_COM_POS_Y_POS = 16
    REL_COM_POS_Y_NEG = 17
    REL_COM_VEL_X_POS = 18
    REL_COM_VEL_X_NEG = 19
    REL_COM_VEL_Y_POS = 20
    REL_COM_VEL_Y_NEG = 21
    SENSED_NUTRIENT = 22
    SENSED_NUTRIENT_INV = 23
    AVG_SPRING_COMPRESSION = 24
    AVG_SPRING_EXTENSION = 25
    AVG_FLUID_VEL_X_POS = 26
    AVG_FLUID_VEL_X_NEG = 27
    AVG_FLUID_VEL_Y_POS = 28
    AVG_FLUID_VEL_Y_NEG = 29
    EYE_SEES_TARGET = 30
    EYE_TARGET_PROXIMITY = 31
    EYE_TARGET_DISTANCE = 32


DEFAULT_REWARD_STRATEGY = RewardStrategy.ENERGY_CHANGE


class BrainConfig(BaseModel):
    """Configuration for the organism brain and its online trainer."""

    seed: int | None = None  # Random seed for reproducibility
    learning_rate: float = Field(default=DEFAULT_LEARNING_RATE, gt=0)
    gamma: float = Field(default=DEFAULT_GAMMA, ge=0.0, le=1.0)
    training_interval: int = Field(default=DEFAULT_TRAINING_INTERVAL_FRAMES, gt=0)
    buffer_capacity: int = Field(default=DEFAULT_EXPERIENCE_BUFFER_SIZE, gt=0)
    hidden_size_min: int = Field(default=DEFAULT_HIDDEN_LAYER_SIZE_MIN, gt=0)
    hidden_size_max: int = Field(default=DEFAULT_HIDDEN_LAYER_SIZE_MAX, gt=0)
    init_scale: float = Field(default=DEFAULT_INIT_SCALE, gt=0)
    return_epsilon: float = Field(default=DEFAULT_RETURN_EPSILON, gt=0)
    gradient_epsilon: float = Field(default=DEFAULT_GRADIENT_EPSILON, gt=0)

    @model_validator(mode="after")
    def validate_hidden_bounds(self) -> "BrainConfig":
        """Validate that the hidden size bounds are ordered."""
        if self.hidden_size_min > self.hidden_size_max:
            msg = (
                f"Invalid hidden size bounds: hidden_size_min ({self.hidden_size_min}) "
                f"exceeds hidden_size_max ({self.hidden_size_max})."
            )
            raise ValueError(msg)
        return self
