"""Tests for the sensor encoder."""

import math

import numpy as np
import pytest
from softbrain.body import NodeKind
from softbrain.brain.dtypes import SensorKind
from softbrain.brain.sensors import SensorReading, encode_sensors, normalize_nutrient
from softbrain.brain.topology import PhenotypeCounts, resolve_input_size
from softbrain.environment import EnvironmentContext


def encode(body, context, input_size=None, previous_energy=None, previous_energy_delta=0.0):
    if input_size is None:
        input_size = resolve_input_size(PhenotypeCounts.from_body(body))
    return encode_sensors(
        body,
        body.mass_points[0],
        context,
        input_size,
        previous_energy,
        previous_energy_delta,
    )


class TestSensorLayout:
    """Test cases for vector order and length."""

    def test_base_layout(self, emitter_body, context):
        """Test the order and values of the base readings."""
        snapshot = encode(emitter_body, context)

        kinds = [reading.kind for reading in snapshot.readings]
        assert kinds == [
            SensorKind.DYE_R,
            SensorKind.DYE_G,
            SensorKind.DYE_B,
            SensorKind.ENERGY_RATIO,
            SensorKind.COM_POS_X,
            SensorKind.COM_POS_Y,
            SensorKind.COM_VEL_X,
            SensorKind.COM_VEL_Y,
            SensorKind.NUTRIENT,
            SensorKind.ENERGY_DELTA_RATE,
        ]
        assert snapshot.vector.shape == (10,)
        assert snapshot.vector[0] == pytest.approx(1.0)
        assert snapshot.vector[1] == pytest.approx(0.5)
        assert snapshot.vector[2] == pytest.approx(0.0)
        assert snapshot.vector[3] == pytest.approx(0.5)
        assert snapshot.vector[4] == pytest.approx(math.tanh(5.0 / 8000.0))
        assert snapshot.vector[5] == pytest.approx(0.0)
        assert snapshot.vector[8] == pytest.approx(0.5)

    def test_mixed_layout(self, mixed_body, context):
        """Test that springs, fluid sensors and eyes follow the base block in order."""
        mixed_body.mass_points[2].sensed_fluid_velocity = (1.0, -1.0)
        mixed_body.mass_points[5].sensed_fluid_velocity = (0.5, 0.0)
        eye = mixed_body.mass_points[8]
        eye.sees_target = True
        eye.nearest_target_magnitude = 0.3
        eye.nearest_target_direction = 0.0

        snapshot = encode(mixed_body, context)
        tail = [(r.kind, r.source) for r in snapshot.readings[10:]]

        assert tail == [
            (SensorKind.SPRING_LENGTH, 0),
            (SensorKind.SPRING_LENGTH, 1),
            (SensorKind.FLUID_VEL_X, 2),
            (SensorKind.FLUID_VEL_Y, 2),
            (SensorKind.FLUID_VEL_X, 5),
            (SensorKind.FLUID_VEL_Y, 5),
            (SensorKind.EYE_SEES_TARGET, 8),
            (SensorKind.EYE_TARGET_DISTANCE, 8),
            (SensorKind.EYE_TARGET_DIRECTION, 8),
        ]
        assert snapshot.vector.shape == (19,)
        assert snapshot.vector[12] == pytest.approx(math.tanh(1.0))
        assert snapshot.vector[13] == pytest.approx(math.tanh(-1.0))
        assert snapshot.vector[14] == pytest.approx(math.tanh(0.5))
        assert list(snapshot.vector[16:19]) == pytest.approx([1.0, 0.3, 0.5])

    def test_short_vector_padded(self, emitter_body, context):
        """Test that missing entries are zero-padded."""
        snapshot = encode(emitter_body, context, input_size=14)
        assert snapshot.vector.shape == (14,)
        assert np.all(snapshot.vector[10:] == 0.0)

    def test_long_vector_truncated(self, mixed_body, context):
        """Test that extra entries are dropped from the vector but kept as readings."""
        snapshot = encode(mixed_body, context, input_size=12)
        assert snapshot.vector.shape == (12,)
        assert len(snapshot.readings) == 19


class TestSensorValues:
    """Test cases for individual readings."""

    def test_no_fluid_defaults(self, emitter_body, world):
        """Test the dye and nutrient defaults without environment fields."""
        snapshot = encode(emitter_body, EnvironmentContext(world=world))
        assert snapshot.value(SensorKind.DYE_R) == 0.0
        assert snapshot.value(SensorKind.DYE_G) == 0.0
        assert snapshot.value(SensorKind.DYE_B) == 0.0
        assert snapshot.value(SensorKind.NUTRIENT) == 0.5

    def test_spring_strain(self, body_factory, context):
        """Test the per-spring strain reading."""
        body = body_factory([NodeKind.NEURON, NodeKind.EATER], spring_pairs=[(0, 1)])
        body.springs[0].rest_length = 5.0
        snapshot = encode(body, context)
        assert snapshot.value(SensorKind.SPRING_LENGTH) == pytest.approx(math.tanh(1.0))

    def test_energy_second_derivative(self, emitter_body, context):
        """Test the normalized second derivative of energy."""
        snapshot = encode(emitter_body, context, previous_energy=40.0, previous_energy_delta=4.0)
        assert snapshot.energy_delta == pytest.approx(10.0)
        # (10 - 4) / (100 * 0.05)
        assert snapshot.value(SensorKind.ENERGY_DELTA_RATE) == pytest.approx(math.tanh(1.2))

    def test_first_tick_energy_delta_is_zero(self, emitter_body, context):
        """Test that the first tick has no energy change."""
        snapshot = encode(emitter_body, context)
        assert snapshot.energy_delta == 0.0
        assert snapshot.value(SensorKind.ENERGY_DELTA_RATE) == 0.0

    @pytest.mark.parametrize(("raw", "expected"), [(0.1, 0.0), (2.0, 1.0), (-5.0, 0.0), (9.0, 1.0)])
    def test_nutrient_normalization_clamped(self, raw, expected):
        """Test that nutrient values are clamped into [0, 1]."""
        assert normalize_nutrient(raw, 0.1, 2.0) == pytest.approx(expected)


class TestSensorSnapshot:
    """Test cases for typed lookups."""

    def test_lookups(self, mixed_body, context):
        """Test value, values and mean lookups by kind."""
        mixed_body.springs[0].rest_length = 5.0
        snapshot = encode(mixed_body, context)

        values = snapshot.values(SensorKind.SPRING_LENGTH)
        assert values == pytest.approx([math.tanh(1.0), 0.0])
        assert snapshot.mean(SensorKind.SPRING_LENGTH) == pytest.approx(math.tanh(1.0) / 2)
        assert snapshot.mean(SensorKind.FLUID_VEL_X) is not None

    def test_absent_kind(self, emitter_body, context):
        """Test lookups for kinds the body does not have."""
        snapshot = encode(emitter_body, context)
        assert snapshot.values(SensorKind.EYE_SEES_TARGET) == []
        assert snapshot.mean(SensorKind.EYE_SEES_TARGET) is None
        assert snapshot.value(SensorKind.EYE_SEES_TARGET, default=-1.0) == -1.0

    def test_labels(self):
        """Test reading labels with and without a source."""
        assert SensorReading(SensorKind.NUTRIENT, 0.5).label == "Nutrient"
        assert SensorReading(SensorKind.SPRING_LENGTH, 0.0, 3).label == "Spring Length 3"
