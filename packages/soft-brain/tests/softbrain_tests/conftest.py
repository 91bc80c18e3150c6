import numpy as np
import pytest
from softbrain.body import MassPoint, NeuronData, NodeKind, SoftBody, Spring
from softbrain.environment import EnvironmentContext, FluidFieldView, WorldConfig


def build_body(
    kinds: list[NodeKind],
    *,
    brain_hidden_size: int | None = 8,
    spring_pairs: list[tuple[int, int]] | None = None,
    grabbers: tuple[int, ...] = (),
) -> SoftBody:
    """Build a body from node kinds laid out on a line, 10 units apart."""
    points = []
    for i, kind in enumerate(kinds):
        point = MassPoint(pos=(100.0 + 10.0 * i, 100.0), node_kind=kind)
        if kind == NodeKind.NEURON and brain_hidden_size is not None:
            point.neuron_data = NeuronData(hidden_layer_size=brain_hidden_size)
        points.append(point)
    for i in grabbers:
        points[i].can_be_grabber = True
    springs = [
        Spring(points[a], points[b], 10.0) for a, b in (spring_pairs or [])
    ]
    return SoftBody(
        mass_points=points,
        springs=springs,
        creature_energy=50.0,
        current_max_energy=100.0,
    )


@pytest.fixture
def rng():
    """Create a seeded random generator."""
    return np.random.default_rng(1234)


@pytest.fixture
def world():
    """Create default world constants."""
    return WorldConfig()


@pytest.fixture
def context(world):
    """Create an environment snapshot with a uniform dye field and nutrient map."""
    fluid = FluidFieldView.empty(16, world)
    fluid.density_r[:] = 255.0
    fluid.density_g[:] = 127.5
    nutrients = np.full(16 * 16, 1.05)
    return EnvironmentContext(fluid=fluid, nutrients=nutrients, world=world)


@pytest.fixture
def emitter_body():
    """Create a body with one brain neuron and exactly one emitter."""
    return build_body([NodeKind.NEURON, NodeKind.EMITTER])


@pytest.fixture
def mixed_body():
    """Create a body with every actuator kind, an eye and two springs."""
    return build_body(
        [
            NodeKind.NEURON,
            NodeKind.EMITTER,
            NodeKind.SWIMMER,
            NodeKind.EATER,
            NodeKind.PREDATOR,
            NodeKind.JET,
            NodeKind.ATTRACTOR,
            NodeKind.REPULSOR,
            NodeKind.EYE,
        ],
        spring_pairs=[(0, 1), (1, 2)],
        grabbers=(3,),
    )


@pytest.fixture
def body_factory():
    """Expose the body builder to tests."""
    return build_body
