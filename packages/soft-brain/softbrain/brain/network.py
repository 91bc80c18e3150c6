"""
Forward pass of the policy network.

``hidden = tanh(W_ih · x + b_h)`` followed by ``raw = W_ho · hidden + b_o``.
The raw outputs are read two at a time as the mean and log standard deviation
of an independent Gaussian per action; no output nonlinearity is applied.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from softbrain.errors import (
    ERROR_INPUT_SIZE_MISMATCH,
    ERROR_PARAMETERS_MISSING,
    BrainShapeError,
)

if TYPE_CHECKING:
    from softbrain.brain.parameters import ParameterStore
    from softbrain.dtypes import Vector


@dataclass(frozen=True)
class ForwardResult:
    """Activations produced by one forward pass."""

    hidden: np.ndarray
    raw_outputs: np.ndarray


def hidden_activations(params: ParameterStore, inputs: Vector) -> Vector:
    """
    Compute the hidden layer activations for ``inputs``.

    Raises
    ------
        BrainShapeError: If the parameters are missing or the input length
            does not match the input layer.
    """
    if params.topology is None:
        raise BrainShapeError(ERROR_PARAMETERS_MISSING)
    x = np.asarray(inputs, dtype=np.float64)
    expected = params.weights_ih.shape[1]
    if x.shape != (expected,):
        raise BrainShapeError(ERROR_INPUT_SIZE_MISMATCH.format(actual=x.size, expected=expected))
    return np.tanh(params.weights_ih @ x + params.biases_h)


def forward(params: ParameterStore, inputs: Vector) -> ForwardResult:
    """Run the full network on ``inputs``."""
    hidden = hidden_activations(params, inputs)
    raw_outputs = params.weights_ho @ hidden + params.biases_o
    return ForwardResult(hidden=hidden, raw_outputs=raw_outputs)
