"""Tests for the REINFORCE trainer."""

import math

import numpy as np
import pytest
from softbrain.brain.dtypes import ActionKind
from softbrain.brain.experience import ActionDetail, Experience, ExperienceBuffer
from softbrain.brain.network import forward
from softbrain.brain.parameters import ParameterStore
from softbrain.brain.sampling import log_pdf_gaussian, sample_action
from softbrain.brain.topology import Topology
from softbrain.brain.trainer import (
    PolicyTrainer,
    compute_discounted_returns,
    compute_policy_gradients,
    log_prob_gradients,
    normalize_returns,
)
from softbrain.constants import STD_DEV_FLOOR

TOPOLOGY = Topology(4, 3, 4)


def make_store(seed=0, init_scale=1.0):
    store = ParameterStore(init_scale=init_scale)
    store.ensure_shapes(TOPOLOGY, np.random.default_rng(seed))
    return store


def make_batch(store, size=10, seed=1):
    """Sample a batch of experiences from the store's own policy."""
    rng = np.random.default_rng(seed)
    batch = []
    for t in range(size):
        state = rng.uniform(-1, 1, TOPOLOGY.input_size)
        raw = forward(store, state).raw_outputs
        details = [
            sample_action(rng, raw, 0, ActionKind.EATER_EXERTION, 1),
            sample_action(rng, raw, 2, ActionKind.PREDATOR_EXERTION, 2),
        ]
        batch.append(Experience.capture(state, details, reward=float(t % 3)))
    return batch


def fill_buffer(batch, capacity=10):
    buffer = ExperienceBuffer(capacity)
    for experience in batch:
        buffer.push(experience)
    return buffer


class TestReturns:
    """Test cases for discounted and normalized returns."""

    def test_geometric_returns(self):
        """Test constant rewards against the closed-form geometric series."""
        gamma = 0.99
        returns = compute_discounted_returns([1.0] * 10, gamma)

        for t in range(10):
            expected = (1 - gamma ** (10 - t)) / (1 - gamma)
            assert returns[t] == pytest.approx(expected, rel=1e-12)
        assert np.all(np.diff(returns) < 0)

    def test_backward_scan(self):
        """Test a hand-computed sequence."""
        returns = compute_discounted_returns([1.0, 0.0, 2.0], 0.5)
        assert list(returns) == pytest.approx([1.5, 1.0, 2.0])

    def test_normalized_returns(self):
        """Test that normalized returns have zero mean and unit population std."""
        normalized = normalize_returns(np.array([1.0, 2.0, 3.0, 10.0]))
        assert normalized.mean() == pytest.approx(0.0, abs=1e-12)
        assert normalized.std() == pytest.approx(1.0, abs=1e-5)

    def test_constant_returns_normalize_to_zero(self):
        """Test that identical returns normalize to zero without dividing by zero."""
        normalized = normalize_returns(np.full(5, 3.0))
        assert np.all(normalized == 0.0)


class TestGradients:
    """Test cases for the policy gradients."""

    def test_log_prob_gradients_match_finite_differences(self):
        """Test the analytic gradient w.r.t. raw mean and raw log-std."""
        mean, raw_log_std, x = 0.3, -0.4, 1.1

        def log_prob(m, s):
            return log_pdf_gaussian(x, m, math.exp(s) + STD_DEV_FLOOR)

        detail = ActionDetail(
            kind=ActionKind.EATER_EXERTION,
            source=0,
            output_index=0,
            mean=mean,
            std_dev=math.exp(raw_log_std) + STD_DEV_FLOOR,
            sampled_value=x,
            log_prob=log_prob(mean, raw_log_std),
        )
        d_mean, d_log_std = log_prob_gradients(detail)

        h = 1e-6
        numeric_mean = (log_prob(mean + h, raw_log_std) - log_prob(mean - h, raw_log_std)) / (2 * h)
        numeric_std = (log_prob(mean, raw_log_std + h) - log_prob(mean, raw_log_std - h)) / (2 * h)
        assert d_mean == pytest.approx(numeric_mean, rel=1e-5)
        assert d_log_std == pytest.approx(numeric_std, rel=1e-5)

    def test_batch_gradients_match_finite_differences(self):
        """Test the backpropagated gradients against the return-weighted log-likelihood."""
        store = make_store()
        batch = make_batch(store, size=4)
        advantages = np.array([1.0, -0.5, 0.25, -0.75])

        def objective():
            total = 0.0
            for experience, advantage in zip(batch, advantages, strict=True):
                raw = forward(store, experience.state).raw_outputs
                for detail in experience.action_details:
                    m = raw[detail.output_index]
                    std = math.exp(raw[detail.output_index + 1]) + STD_DEV_FLOOR
                    total += advantage * log_pdf_gaussian(detail.sampled_value, m, std)
            return total / len(batch)

        grads = compute_policy_gradients(store, batch, advantages)

        h = 1e-6
        for name in ("weights_ih", "biases_h", "weights_ho", "biases_o"):
            array = getattr(store, name)
            numeric = np.zeros_like(array)
            for index in np.ndindex(array.shape):
                original = array[index]
                array[index] = original + h
                plus = objective()
                array[index] = original - h
                minus = objective()
                array[index] = original
                numeric[index] = (plus - minus) / (2 * h)
            assert np.allclose(getattr(grads, name), numeric, rtol=1e-4, atol=1e-6), name


class TestPolicyTrainer:
    """Test cases for the training schedule and update."""

    def test_no_training_under_capacity(self):
        """Test that an under-filled buffer never trains even when the interval elapsed."""
        store = make_store()
        buffer = fill_buffer(make_batch(store, size=9))
        trainer = PolicyTrainer(training_interval=10)

        assert not trainer.should_train(10, buffer)
        assert not trainer.should_train(500, buffer)

    def test_no_training_before_interval(self):
        """Test that a full buffer waits for the interval."""
        store = make_store()
        buffer = fill_buffer(make_batch(store))
        trainer = PolicyTrainer(training_interval=10)

        assert not trainer.should_train(9, buffer)
        assert trainer.should_train(10, buffer)

    def test_train_updates_and_clears(self):
        """Test that training changes the weights, clears the buffer and reports the mean return."""
        store = make_store()
        batch = make_batch(store)
        buffer = fill_buffer(batch)
        before = store.to_arrays()
        trainer = PolicyTrainer(learning_rate=0.01, gamma=0.9)

        result = trainer.train(store, buffer)

        returns = compute_discounted_returns([e.reward for e in batch], 0.9)
        assert result.batch_size == 10
        assert result.mean_return == pytest.approx(returns.mean())
        assert len(buffer) == 0
        assert not np.allclose(store.weights_ho, before["weights_ho"])

    def test_doubling_learning_rate_doubles_update(self):
        """Test that the weight delta scales linearly with the learning rate."""
        deltas = []
        for learning_rate in (0.001, 0.002):
            store = make_store()
            batch = make_batch(make_store())
            before = store.to_arrays()
            PolicyTrainer(learning_rate=learning_rate).train(store, fill_buffer(batch))
            deltas.append(
                {name: getattr(store, name) - before[name] for name in before},
            )

        for name, delta in deltas[0].items():
            assert np.allclose(deltas[1][name], 2 * delta, rtol=1e-9, atol=1e-15)
