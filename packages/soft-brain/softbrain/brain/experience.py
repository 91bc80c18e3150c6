"""Experience records and the fixed-capacity replay window used for training."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np

from softbrain.brain.dtypes import ActionKind
from softbrain.constants import DEFAULT_EXPERIENCE_BUFFER_SIZE


@dataclass(frozen=True)
class ActionDetail:
    """One sampled Gaussian action.

    Attributes
    ----------
    kind : ActionKind
        Which actuator channel the action drives.
    source : int
        Index of the actuating mass point.
    output_index : int
        Position of the action's mean in the raw output vector; the raw
        log-std follows at ``output_index + 1``.
    mean : float
        Gaussian mean (raw output).
    std_dev : float
        Gaussian standard deviation, ``exp(raw_log_std) + 1e-6``.
    sampled_value : float
        Drawn value.
    log_prob : float
        Log-density of ``sampled_value`` under the Gaussian.
    """

    kind: ActionKind
    source: int
    output_index: int
    mean: float
    std_dev: float
    sampled_value: float
    log_prob: float

    @property
    def label(self) -> str:
        """Human readable label, e.g. ``"Emitter Red 2"``."""
        return f"{self.kind.value} {self.source}"


@dataclass(frozen=True)
class Experience:
    """State, actions and reward of a single tick."""

    state: np.ndarray
    action_details: tuple[ActionDetail, ...]
    reward: float

    @classmethod
    def capture(
        cls,
        state: np.ndarray,
        action_details: list[ActionDetail],
        reward: float,
    ) -> Experience:
        """Build an experience that shares no mutable data with the caller."""
        frozen_state = np.array(state, dtype=np.float64, copy=True)
        frozen_state.setflags(write=False)
        return cls(state=frozen_state, action_details=tuple(action_details), reward=float(reward))


class ExperienceBuffer:
    """Bounded FIFO of experiences; the oldest entry is evicted on overflow."""

    def __init__(self, capacity: int = DEFAULT_EXPERIENCE_BUFFER_SIZE) -> None:
        self.capacity = capacity
        self._items: deque[Experience] = deque(maxlen=capacity)

    def push(self, experience: Experience) -> None:
        """Append an experience, evicting the oldest when full."""
        self._items.append(experience)

    def is_full(self) -> bool:
        """Whether the buffer holds exactly ``capacity`` experiences."""
        return len(self._items) == self.capacity

    def clear(self) -> None:
        """Drop every stored experience."""
        self._items.clear()

    def snapshot(self) -> list[Experience]:
        """Return the stored experiences, oldest first."""
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Experience]:
        return iter(self._items)

    def __getitem__(self, index: int) -> Experience:
        return self._items[index]
