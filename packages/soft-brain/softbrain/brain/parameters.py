"""Weight and bias storage for the two affine layers of the policy network."""

from __future__ import annotations

import numpy as np

from softbrain.brain.topology import Topology
from softbrain.constants import DEFAULT_INIT_SCALE
from softbrain.dtypes import Matrix, Vector
from softbrain.errors import ERROR_ARRAY_SHAPE_MISMATCH, BrainShapeError
from softbrain.logging_config import logger

PARAMETER_NAMES = ("weights_ih", "biases_h", "weights_ho", "biases_o")


class ParameterStore:
    """
    Owns the input→hidden and hidden→output layers.

    Layers are only ever replaced as a whole block: when the requested
    topology differs from the stored shapes in any dimension, both layers are
    reinitialized together. Matching shapes leave learned values untouched.

    Attributes
    ----------
    weights_ih : Matrix | None
        Input→hidden weights, shape ``(hidden, input)``.
    biases_h : Vector | None
        Hidden biases, shape ``(hidden,)``.
    weights_ho : Matrix | None
        Hidden→output weights, shape ``(output, hidden)``.
    biases_o : Vector | None
        Output biases, shape ``(output,)``.
    """

    def __init__(self, init_scale: float = DEFAULT_INIT_SCALE) -> None:
        self.init_scale = init_scale
        self.weights_ih: Matrix | None = None
        self.biases_h: Vector | None = None
        self.weights_ho: Matrix | None = None
        self.biases_o: Vector | None = None

    @property
    def topology(self) -> Topology | None:
        """Return the stored topology, or None when unallocated or inconsistent."""
        if self.weights_ih is None or self.weights_ho is None:
            return None
        if self.biases_h is None or self.biases_o is None:
            return None
        hidden, input_size = self.weights_ih.shape
        output, hidden_o = self.weights_ho.shape
        if hidden_o != hidden or self.biases_h.shape != (hidden,) or self.biases_o.shape != (
            output,
        ):
            return None
        return Topology(input_size, hidden, output)

    @property
    def parameter_count(self) -> int:
        """Total number of scalar parameters currently stored."""
        return sum(0 if array is None else array.size for array in self._arrays())

    def matches(self, topology: Topology) -> bool:
        """Whether the stored shapes exactly match ``topology``."""
        return self.topology == topology

    def is_valid(self, topology: Topology) -> bool:
        """Whether the layers match ``topology`` and hold only finite values."""
        if not self.matches(topology):
            return False
        return all(np.all(np.isfinite(array)) for array in self._arrays())

    def ensure_shapes(
        self,
        topology: Topology,
        rng: np.random.Generator,
    ) -> bool:
        """
        Make the stored layers match ``topology``.

        Args:
            topology: Requested ``(input, hidden, output)`` sizes.
            rng: Generator used for fresh initialization.

        Returns
        -------
            bool: True if the layers were reallocated.
        """
        if self.matches(topology):
            return False
        self.initialize(topology, rng)
        return True

    def initialize(self, topology: Topology, rng: np.random.Generator) -> None:
        """Replace both layers with small fan-in-scaled uniform values."""
        input_size, hidden_size, output_size = topology
        ih_limit = self.init_scale / np.sqrt(max(input_size, 1))
        ho_limit = self.init_scale / np.sqrt(max(hidden_size, 1))

        weights_ih = rng.uniform(-ih_limit, ih_limit, size=(hidden_size, input_size))
        biases_h = rng.uniform(-ih_limit, ih_limit, size=hidden_size)
        weights_ho = rng.uniform(-ho_limit, ho_limit, size=(output_size, hidden_size))
        biases_o = rng.uniform(-ho_limit, ho_limit, size=output_size)

        self.weights_ih, self.biases_h = weights_ih, biases_h
        self.weights_ho, self.biases_o = weights_ho, biases_o

        logger.info(
            f"Initialized brain parameters for topology {tuple(topology)}: "
            f"{self.parameter_count:,} parameters",
        )

    def to_arrays(self) -> dict[str, np.ndarray]:
        """Return copies of the raw parameter arrays keyed by name."""
        arrays = {}
        for name in PARAMETER_NAMES:
            array = getattr(self, name)
            if array is not None:
                arrays[name] = array.copy()
        return arrays

    def load_arrays(self, arrays: dict[str, np.ndarray], topology: Topology) -> None:
        """
        Load raw parameter arrays saved by :meth:`to_arrays`.

        Values are copied exactly; dtype and bits are preserved.

        Raises
        ------
            BrainShapeError: If any array is missing or has the wrong shape.
        """
        input_size, hidden_size, output_size = topology
        expected = {
            "weights_ih": (hidden_size, input_size),
            "biases_h": (hidden_size,),
            "weights_ho": (output_size, hidden_size),
            "biases_o": (output_size,),
        }
        loaded = {}
        for name, shape in expected.items():
            array = arrays.get(name)
            actual = None if array is None else np.shape(array)
            if actual != shape:
                error_message = ERROR_ARRAY_SHAPE_MISMATCH.format(
                    name=name,
                    actual=actual,
                    expected=shape,
                )
                logger.error(error_message)
                raise BrainShapeError(error_message)
            loaded[name] = np.array(array, copy=True)

        for name, array in loaded.items():
            setattr(self, name, array)

    def _arrays(self) -> list[np.ndarray | None]:
        return [getattr(self, name) for name in PARAMETER_NAMES]
