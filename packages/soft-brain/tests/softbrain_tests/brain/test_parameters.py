"""Tests for the parameter store."""

import numpy as np
import pytest
from softbrain.brain.parameters import ParameterStore
from softbrain.brain.topology import Topology
from softbrain.errors import BrainShapeError


class TestParameterStore:
    """Test cases for allocation and validation."""

    def test_unallocated(self):
        """Test that a fresh store has no topology and no parameters."""
        store = ParameterStore()
        assert store.topology is None
        assert store.parameter_count == 0
        assert not store.is_valid(Topology(10, 5, 8))

    def test_ensure_shapes_allocates(self, rng):
        """Test that the first call allocates both layers."""
        store = ParameterStore()
        topology = Topology(10, 6, 8)

        assert store.ensure_shapes(topology, rng) is True
        assert store.weights_ih.shape == (6, 10)
        assert store.biases_h.shape == (6,)
        assert store.weights_ho.shape == (8, 6)
        assert store.biases_o.shape == (8,)
        assert store.topology == topology
        assert store.parameter_count == 6 * 10 + 6 + 8 * 6 + 8

    def test_matching_shapes_untouched(self, rng):
        """Test that learned values survive a matching request."""
        store = ParameterStore()
        topology = Topology(10, 6, 8)
        store.ensure_shapes(topology, rng)
        store.weights_ho[0, 0] = 3.5

        assert store.ensure_shapes(topology, rng) is False
        assert store.weights_ho[0, 0] == 3.5

    @pytest.mark.parametrize("changed", [Topology(11, 6, 8), Topology(10, 7, 8), Topology(10, 6, 10)])
    def test_any_dimension_change_reinitializes_both_layers(self, rng, changed):
        """Test that a change in any dimension replaces both layers."""
        store = ParameterStore()
        store.ensure_shapes(Topology(10, 6, 8), rng)
        store.weights_ih[:] = 9.0
        store.weights_ho[:] = 9.0

        assert store.ensure_shapes(changed, rng) is True
        assert store.topology == changed
        assert not np.any(store.weights_ih == 9.0)
        assert not np.any(store.weights_ho == 9.0)

    def test_initialization_is_fan_in_scaled(self, rng):
        """Test that initial values respect the fan-in-scaled bound."""
        store = ParameterStore(init_scale=0.1)
        store.ensure_shapes(Topology(25, 16, 8), rng)

        assert np.all(np.abs(store.weights_ih) <= 0.1 / np.sqrt(25))
        assert np.all(np.abs(store.weights_ho) <= 0.1 / np.sqrt(16))

    def test_non_finite_values_invalid(self, rng):
        """Test that NaN parameters are reported invalid."""
        store = ParameterStore()
        topology = Topology(10, 5, 2)
        store.ensure_shapes(topology, rng)
        assert store.is_valid(topology)

        store.biases_h[0] = np.nan
        assert not store.is_valid(topology)


class TestParameterArrays:
    """Test cases for raw array export and import."""

    def test_export_import_preserves_bits(self, rng):
        """Test that exported arrays load back bit-for-bit."""
        topology = Topology(10, 5, 4)
        source = ParameterStore()
        source.ensure_shapes(topology, rng)
        arrays = source.to_arrays()

        target = ParameterStore()
        target.load_arrays(arrays, topology)

        for name, array in arrays.items():
            loaded = getattr(target, name)
            assert loaded.tobytes() == array.tobytes()
            assert loaded is not array

    def test_export_is_a_copy(self, rng):
        """Test that mutating exported arrays leaves the store untouched."""
        store = ParameterStore()
        store.ensure_shapes(Topology(10, 5, 4), rng)
        arrays = store.to_arrays()
        arrays["biases_o"][:] = 100.0
        assert not np.any(store.biases_o == 100.0)

    def test_wrong_shape_rejected(self, rng):
        """Test that mismatched arrays raise and leave the store unchanged."""
        topology = Topology(10, 5, 4)
        store = ParameterStore()
        store.ensure_shapes(topology, rng)
        before = store.to_arrays()
        arrays = store.to_arrays()
        arrays["weights_ho"] = np.zeros((3, 5))

        with pytest.raises(BrainShapeError, match="weights_ho"):
            store.load_arrays(arrays, topology)
        assert np.array_equal(store.weights_ih, before["weights_ih"])

    def test_missing_array_rejected(self):
        """Test that a missing array raises."""
        with pytest.raises(BrainShapeError, match="weights_ih"):
            ParameterStore().load_arrays({}, Topology(10, 5, 4))
