"""
Batched REINFORCE update for the organism brain.

The whole experience window forms one batch. Returns are discounted with a
backward scan and normalized across the batch, hidden activations are
recomputed against the current weights, and the averaged score-function
gradients are applied with a single gradient-ascent step.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from softbrain.brain.network import hidden_activations
from softbrain.constants import (
    DEFAULT_GAMMA,
    DEFAULT_GRADIENT_EPSILON,
    DEFAULT_LEARNING_RATE,
    DEFAULT_RETURN_EPSILON,
    DEFAULT_TRAINING_INTERVAL_FRAMES,
    STD_DEV_FLOOR,
)
from softbrain.logging_config import logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from softbrain.brain.experience import ActionDetail, Experience, ExperienceBuffer
    from softbrain.brain.parameters import ParameterStore


def compute_discounted_returns(rewards: Sequence[float], gamma: float = DEFAULT_GAMMA) -> np.ndarray:
    """Return ``G_t = r_t + gamma * G_{t+1}`` for every step."""
    returns = np.zeros(len(rewards), dtype=np.float64)
    running = 0.0
    for t in range(len(rewards) - 1, -1, -1):
        running = rewards[t] + gamma * running
        returns[t] = running
    return returns


def normalize_returns(returns: np.ndarray, epsilon: float = DEFAULT_RETURN_EPSILON) -> np.ndarray:
    """Standardize returns across the batch (population standard deviation)."""
    if returns.size == 0:
        return returns
    return (returns - returns.mean()) / (returns.std() + epsilon)


def log_prob_gradients(
    detail: ActionDetail,
    epsilon: float = DEFAULT_GRADIENT_EPSILON,
) -> tuple[float, float]:
    """
    Gradient of the action's log-probability w.r.t. its raw ``(mean, log_std)``.

    The log-std gradient is taken through ``std = exp(s) + floor``, hence the
    ``(std - floor)`` factor.
    """
    diff = detail.sampled_value - detail.mean
    std = detail.std_dev
    d_mean = diff / (std * std + epsilon)
    d_log_std = (diff * diff / (std**3 + epsilon) - 1.0 / (std + epsilon)) * (std - STD_DEV_FLOOR)
    return d_mean, d_log_std


@dataclass
class PolicyGradients:
    """Accumulated parameter gradients, one array per parameter."""

    weights_ih: np.ndarray
    biases_h: np.ndarray
    weights_ho: np.ndarray
    biases_o: np.ndarray

    @classmethod
    def zeros_like(cls, params: ParameterStore) -> PolicyGradients:
        """Create zero gradients shaped like ``params``."""
        return cls(
            weights_ih=np.zeros_like(params.weights_ih),
            biases_h=np.zeros_like(params.biases_h),
            weights_ho=np.zeros_like(params.weights_ho),
            biases_o=np.zeros_like(params.biases_o),
        )

    def scale(self, factor: float) -> None:
        """Multiply every gradient in place."""
        self.weights_ih *= factor
        self.biases_h *= factor
        self.weights_ho *= factor
        self.biases_o *= factor


def compute_policy_gradients(
    params: ParameterStore,
    experiences: Sequence[Experience],
    normalized_returns: np.ndarray,
    epsilon: float = DEFAULT_GRADIENT_EPSILON,
) -> PolicyGradients:
    """
    Average the REINFORCE gradients over a batch.

    Args:
        params: Current network parameters.
        experiences: Batch, oldest first.
        normalized_returns: One normalized return per experience.
        epsilon: Denominator guard for the log-probability gradients.

    Returns
    -------
        PolicyGradients: Batch-averaged gradients of the return-weighted
        log-probability.
    """
    grads = PolicyGradients.zeros_like(params)
    output_size = params.weights_ho.shape[0]

    for experience, advantage in zip(experiences, normalized_returns, strict=True):
        hidden = hidden_activations(params, experience.state)

        output_grad = np.zeros(output_size, dtype=np.float64)
        for detail in experience.action_details:
            if detail.output_index + 1 >= output_size:
                continue
            d_mean, d_log_std = log_prob_gradients(detail, epsilon)
            output_grad[detail.output_index] += advantage * d_mean
            output_grad[detail.output_index + 1] += advantage * d_log_std

        grads.weights_ho += np.outer(output_grad, hidden)
        grads.biases_o += output_grad

        hidden_error = (1.0 - hidden * hidden) * (params.weights_ho.T @ output_grad)
        grads.weights_ih += np.outer(hidden_error, experience.state)
        grads.biases_h += hidden_error

    if experiences:
        grads.scale(1.0 / len(experiences))
    return grads


def apply_gradients(params: ParameterStore, grads: PolicyGradients, learning_rate: float) -> None:
    """Take one gradient-ascent step."""
    params.weights_ih += learning_rate * grads.weights_ih
    params.biases_h += learning_rate * grads.biases_h
    params.weights_ho += learning_rate * grads.weights_ho
    params.biases_o += learning_rate * grads.biases_o


@dataclass(frozen=True)
class TrainingResult:
    """Outcome of one training step."""

    batch_size: int
    mean_return: float


class PolicyTrainer:
    """REINFORCE trainer driven by the per-tick frame counter.

    Parameters
    ----------
    learning_rate : float
        Gradient-ascent step size.
    gamma : float
        Discount factor.
    training_interval : int
        Minimum number of ticks between training steps.
    return_epsilon : float
        Guard for return normalization.
    gradient_epsilon : float
        Guard for the log-probability gradients.
    """

    def __init__(  # noqa: PLR0913
        self,
        learning_rate: float = DEFAULT_LEARNING_RATE,
        gamma: float = DEFAULT_GAMMA,
        training_interval: int = DEFAULT_TRAINING_INTERVAL_FRAMES,
        return_epsilon: float = DEFAULT_RETURN_EPSILON,
        gradient_epsilon: float = DEFAULT_GRADIENT_EPSILON,
    ) -> None:
        self.learning_rate = learning_rate
        self.gamma = gamma
        self.training_interval = training_interval
        self.return_epsilon = return_epsilon
        self.gradient_epsilon = gradient_epsilon

    def should_train(self, frames_since_train: int, buffer: ExperienceBuffer) -> bool:
        """Whether the interval has elapsed and the buffer is exactly full."""
        if frames_since_train < self.training_interval:
            return False
        if not buffer.is_full():
            logger.debug(
                f"Training due but buffer holds {len(buffer)}/{buffer.capacity} experiences; "
                "still accumulating",
            )
            return False
        return True

    def train(self, params: ParameterStore, buffer: ExperienceBuffer) -> TrainingResult:
        """
        Run one training step on the whole buffer and clear it.

        The caller resets its frame counter.
        """
        experiences = buffer.snapshot()
        rewards = [experience.reward for experience in experiences]
        returns = compute_discounted_returns(rewards, self.gamma)
        normalized = normalize_returns(returns, self.return_epsilon)

        grads = compute_policy_gradients(params, experiences, normalized, self.gradient_epsilon)
        apply_gradients(params, grads, self.learning_rate)
        buffer.clear()

        mean_return = float(returns.mean()) if returns.size else 0.0
        logger.debug(f"Trained on {len(experiences)} experiences, mean return {mean_return:.4f}")
        return TrainingResult(batch_size=len(experiences), mean_return=mean_return)
