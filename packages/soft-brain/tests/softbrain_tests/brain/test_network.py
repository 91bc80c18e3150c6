"""Tests for the policy network forward pass."""

import numpy as np
import pytest
from softbrain.brain.network import forward, hidden_activations
from softbrain.brain.parameters import ParameterStore
from softbrain.brain.topology import Topology
from softbrain.errors import BrainShapeError


def make_store(topology, seed=0):
    store = ParameterStore()
    store.ensure_shapes(topology, np.random.default_rng(seed))
    return store


class TestForward:
    """Test cases for the forward pass."""

    @pytest.mark.parametrize(
        "topology",
        [Topology(10, 5, 0), Topology(10, 5, 8), Topology(19, 30, 26), Topology(40, 17, 2)],
    )
    def test_output_lengths(self, topology):
        """Test that hidden and raw output lengths follow the topology."""
        store = make_store(topology)
        result = forward(store, np.ones(topology.input_size))

        assert result.hidden.shape == (topology.hidden_size,)
        assert result.raw_outputs.shape == (topology.output_size,)

    def test_deterministic(self):
        """Test that repeated passes on the same input agree exactly."""
        store = make_store(Topology(12, 9, 6))
        x = np.linspace(-1, 1, 12)
        first = forward(store, x)
        second = forward(store, x)

        assert np.array_equal(first.hidden, second.hidden)
        assert np.array_equal(first.raw_outputs, second.raw_outputs)

    def test_matches_manual_computation(self):
        """Test the affine-tanh-affine composition."""
        store = make_store(Topology(3, 2, 2))
        store.weights_ih = np.array([[1.0, 0.0, -1.0], [0.5, 0.5, 0.5]])
        store.biases_h = np.array([0.0, -0.5])
        store.weights_ho = np.array([[2.0, 0.0], [1.0, -1.0]])
        store.biases_o = np.array([0.1, 0.2])
        x = np.array([1.0, 2.0, 3.0])

        hidden = np.tanh(np.array([-2.0, 2.5]))
        expected = np.array([2.0 * hidden[0] + 0.1, hidden[0] - hidden[1] + 0.2])

        result = forward(store, x)
        assert np.allclose(result.hidden, hidden)
        assert np.allclose(result.raw_outputs, expected)

    def test_near_zero_init_gives_small_outputs(self):
        """Test that zero input through fresh weights stays well inside (-1, 1)."""
        store = make_store(Topology(10, 30, 8), seed=7)
        result = forward(store, np.zeros(10))
        assert np.all(np.abs(result.raw_outputs) < 1.0)

    def test_input_length_mismatch_raises(self):
        """Test that a wrong input length is rejected."""
        store = make_store(Topology(10, 5, 4))
        with pytest.raises(BrainShapeError, match="does not match"):
            forward(store, np.zeros(9))

    def test_missing_parameters_raise(self):
        """Test that an unallocated store is rejected."""
        with pytest.raises(BrainShapeError, match="not been allocated"):
            hidden_activations(ParameterStore(), np.zeros(3))
