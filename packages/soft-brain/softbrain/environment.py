"""Read-only environment snapshot handed to the brain once per tick.

The fluid solver and nutrient map are owned by the outer simulation. The brain
only needs grid lookups into them, so it receives a thin view over the arrays
together with the world dimensions.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np
from pydantic import BaseModel, Field, model_validator

from softbrain.constants import (
    DEFAULT_WORLD_HEIGHT,
    DEFAULT_WORLD_WIDTH,
    MAX_JET_OUTPUT_MAGNITUDE,
    MAX_NUTRIENT_VALUE,
    MAX_PIXELS_PER_FRAME_DISPLACEMENT,
    MAX_SWIMMER_OUTPUT_MAGNITUDE,
    MIN_NUTRIENT_VALUE,
    NUTRIENT_OUT_OF_GRID_VALUE,
)


class WorldConfig(BaseModel):
    """World dimensions and normalization constants used by sensors and actuators."""

    width: float = Field(default=DEFAULT_WORLD_WIDTH, gt=0)
    height: float = Field(default=DEFAULT_WORLD_HEIGHT, gt=0)
    max_pixels_per_frame_displacement: float = Field(
        default=MAX_PIXELS_PER_FRAME_DISPLACEMENT,
        gt=0,
    )
    min_nutrient: float = MIN_NUTRIENT_VALUE
    max_nutrient: float = MAX_NUTRIENT_VALUE
    max_swimmer_output_magnitude: float = MAX_SWIMMER_OUTPUT_MAGNITUDE
    max_jet_output_magnitude: float = MAX_JET_OUTPUT_MAGNITUDE

    @model_validator(mode="after")
    def validate_nutrient_range(self) -> WorldConfig:
        """Validate that the nutrient range is non-empty."""
        if self.max_nutrient <= self.min_nutrient:
            msg = (
                f"Invalid nutrient range: max_nutrient ({self.max_nutrient}) must be "
                f"greater than min_nutrient ({self.min_nutrient})."
            )
            raise ValueError(msg)
        return self


@dataclass(frozen=True)
class FluidFieldView:
    """Grid lookup over the fluid solver's dye channels.

    Attributes
    ----------
    size : int
        Number of cells per side of the square grid.
    scale_x : float
        World units per grid cell along x.
    scale_y : float
        World units per grid cell along y.
    density_r, density_g, density_b : np.ndarray
        Flattened dye channels in ``[0, 255]``, indexed by :meth:`index`.
    use_wrapping : bool
        Wrap out-of-range coordinates instead of clamping them.
    """

    size: int
    scale_x: float
    scale_y: float
    density_r: np.ndarray
    density_g: np.ndarray
    density_b: np.ndarray
    use_wrapping: bool = False

    def index(self, gx: int, gy: int) -> int:
        """Return the flat array index for grid cell ``(gx, gy)``."""
        if self.use_wrapping:
            gx = gx % self.size
            gy = gy % self.size
        else:
            gx = max(0, min(gx, self.size - 1))
            gy = max(0, min(gy, self.size - 1))
        return gx + gy * self.size

    def cell_index(self, x: float, y: float) -> int:
        """Return the flat array index of the cell containing world position ``(x, y)``."""
        return self.index(math.floor(x / self.scale_x), math.floor(y / self.scale_y))

    def sample_dye(self, x: float, y: float) -> tuple[float, float, float]:
        """Return the raw RGB dye densities at world position ``(x, y)``."""
        idx = self.cell_index(x, y)
        return (
            _read_channel(self.density_r, idx),
            _read_channel(self.density_g, idx),
            _read_channel(self.density_b, idx),
        )

    @classmethod
    def empty(cls, size: int, world: WorldConfig | None = None) -> FluidFieldView:
        """Create a dye-free view covering the given world."""
        world = world or WorldConfig()
        cells = size * size
        return cls(
            size=size,
            scale_x=world.width / size,
            scale_y=world.height / size,
            density_r=np.zeros(cells),
            density_g=np.zeros(cells),
            density_b=np.zeros(cells),
        )


def _read_channel(channel: np.ndarray, idx: int) -> float:
    if idx >= len(channel):
        return 0.0
    value = float(channel[idx])
    return value if math.isfinite(value) else 0.0


@dataclass(frozen=True)
class EnvironmentContext:
    """Per-tick read-only inputs from the outer simulation.

    Attributes
    ----------
    fluid : FluidFieldView | None
        Dye field, or None when the simulation runs without fluid.
    nutrients : np.ndarray | None
        Nutrient map sharing the fluid grid's indexing, or None.
    world : WorldConfig
        World dimensions and normalization constants.
    """

    fluid: FluidFieldView | None = None
    nutrients: np.ndarray | None = None
    world: WorldConfig = field(default_factory=WorldConfig)

    def nutrient_at(self, x: float, y: float) -> float | None:
        """Return the raw nutrient value at ``(x, y)``, or None without a nutrient grid."""
        if self.nutrients is None or self.fluid is None:
            return None
        idx = self.fluid.cell_index(x, y)
        if idx >= len(self.nutrients):
            return NUTRIENT_OUT_OF_GRID_VALUE
        return float(self.nutrients[idx])
