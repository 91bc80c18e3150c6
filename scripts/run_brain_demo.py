"""Drive the brains of a small population of synthetic organisms for a number of ticks."""

import argparse
import math
from datetime import UTC, datetime

import numpy as np
from rich.console import Console

from softbrain.body import MassPoint, NeuronData, NodeKind, SoftBody, Spring
from softbrain.brain import BrainConfig, BrainController, RewardConfig, RewardStrategy
from softbrain.environment import EnvironmentContext, FluidFieldView, WorldConfig
from softbrain.logging_config import LOG_LEVEL_NONE, configure_log_level, logger
from softbrain.report.diagnostics import render_diagnostics
from softbrain.utils.config_loader import (
    OrganismConfig,
    SimulationConfig,
    configure_brain,
    configure_organism,
    configure_reward,
    configure_reward_strategy,
    configure_world,
    load_simulation_config,
)
from softbrain.utils.seeding import (
    derive_organism_seed,
    ensure_seed,
    get_rng,
    get_seed_registry,
    register_seed,
)

NODE_SPACING = 20.0
ROW_SPACING = 200.0
ENERGY_CAPACITY = 100.0
FOUNDING_GENERATION = 0


def parse_arguments() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Run the soft-body brain demo.")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML configuration file.",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Number of ticks to simulate (overrides the configuration).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility. Auto-generated if not provided.",
    )
    parser.add_argument(
        "--strategy",
        type=str,
        default=None,
        help="Reward strategy name, e.g. energy_change or eye_sees_target.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", LOG_LEVEL_NONE],
        help="Set the logging level (default: INFO). Use 'NONE' to disable logging.",
    )
    return parser.parse_args()


def build_organism(organism: OrganismConfig, origin: tuple[float, float]) -> SoftBody:
    """Build a chain-shaped organism with one brain neuron and the requested actuators."""
    kinds = [NodeKind.NEURON]
    kinds += [NodeKind.EMITTER] * organism.emitters
    kinds += [NodeKind.SWIMMER] * organism.swimmers
    kinds += [NodeKind.EATER] * organism.eaters
    kinds += [NodeKind.JET] * organism.jets
    kinds += [NodeKind.EYE] * organism.eyes

    points = []
    for i, kind in enumerate(kinds):
        point = MassPoint(pos=(origin[0] + i * NODE_SPACING, origin[1]), node_kind=kind)
        if kind == NodeKind.NEURON:
            point.neuron_data = NeuronData(is_brain=True)
        points.append(point)
    for point in points[1 : 1 + organism.grabbers]:
        point.can_be_grabber = True

    springs = [Spring(a, b, NODE_SPACING) for a, b in zip(points, points[1:], strict=False)]
    return SoftBody(
        mass_points=points,
        springs=springs,
        creature_energy=ENERGY_CAPACITY / 2,
        current_max_energy=ENERGY_CAPACITY,
    )


def build_environment(
    organism: OrganismConfig,
    world: WorldConfig,
    rng: np.random.Generator,
) -> EnvironmentContext:
    """Create a random dye field and nutrient map."""
    size = organism.fluid_grid_size
    cells = size * size
    fluid = FluidFieldView(
        size=size,
        scale_x=world.width / size,
        scale_y=world.height / size,
        density_r=rng.uniform(0, 255, cells),
        density_g=rng.uniform(0, 255, cells),
        density_b=rng.uniform(0, 255, cells),
    )
    nutrients = rng.uniform(world.min_nutrient, world.max_nutrient, cells)
    return EnvironmentContext(fluid=fluid, nutrients=nutrients, world=world)


def spawn_population(  # noqa: PLR0913
    organism: OrganismConfig,
    world: WorldConfig,
    brain_config: BrainConfig,
    reward_config: RewardConfig,
    strategy: RewardStrategy,
    seed: int,
) -> list[BrainController]:
    """Build every organism of the founding generation, each brain on its own seed."""
    controllers = []
    for organism_id in range(organism.population):
        organism_seed = derive_organism_seed(seed, FOUNDING_GENERATION, organism_id)
        register_seed(f"organism_{organism_id}", organism_seed)
        origin = (
            world.width / 2,
            (world.height / 2 + organism_id * ROW_SPACING) % world.height,
        )
        body = build_organism(organism, origin)
        body.reward_strategy = strategy.value
        controllers.append(
            BrainController(body, brain_config, reward_config, rng=get_rng(organism_seed)),
        )
    return controllers


def drift(body: SoftBody, rng: np.random.Generator, dt: float) -> None:
    """Stand-in for the physics step: integrate forces with jitter and update senses."""
    for point in body.mass_points:
        vx = point.vel[0] + point.force[0] * dt + rng.normal(0, 0.5)
        vy = point.vel[1] + point.force[1] * dt + rng.normal(0, 0.5)
        point.vel = (vx, vy)
        point.pos = (point.pos[0] + vx * dt, point.pos[1] + vy * dt)
        point.force = (0.0, 0.0)
        point.sensed_fluid_velocity = (rng.normal(0, 0.5), rng.normal(0, 0.5))
        if point.node_kind == NodeKind.EYE:
            point.sees_target = bool(rng.random() < 0.3)
            point.nearest_target_magnitude = float(rng.random()) if point.sees_target else 0.0
            point.nearest_target_direction = float(rng.uniform(-math.pi, math.pi))

    exertion = sum(p.exertion_level for p in body.mass_points)
    photosynthesis = float(rng.uniform(0, 0.2))
    body.energy_gained_from_photosynthesis_this_tick = photosynthesis
    body.creature_energy = min(
        body.current_max_energy,
        max(0.0, body.creature_energy + photosynthesis - 0.05 * exertion),
    )


def main() -> None:
    """Run the soft-body brain demo."""
    args = parse_arguments()

    config = load_simulation_config(args.config) if args.config else SimulationConfig()
    brain_config = configure_brain(config)
    reward_config = configure_reward(config)
    world = configure_world(config)
    organism_config = configure_organism(config)
    strategy = configure_reward_strategy(args.strategy or config.reward_strategy)
    ticks = args.ticks or config.ticks

    configure_log_level(args.log_level)

    seed = ensure_seed(args.seed if args.seed is not None else brain_config.seed)
    register_seed("run", seed)
    brain_config = brain_config.model_copy(update={"seed": seed})

    timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    logger.info(f"Session ID: {timestamp}")
    logger.info(f"Seed: {seed}, ticks: {ticks}, reward strategy: {strategy.name}")
    logger.info(f"Brain configuration: {brain_config}")

    rng = get_rng(seed)
    context = build_environment(organism_config, world, rng)
    controllers = spawn_population(
        organism_config,
        world,
        brain_config,
        reward_config,
        strategy,
        seed,
    )
    logger.info(f"Seeds: {get_seed_registry()}")

    for _ in range(ticks):
        for controller in controllers:
            controller.process(config.dt, context)
            drift(controller.body, rng, config.dt)

    console = Console()
    for organism_id, controller in enumerate(controllers):
        console.rule(f"Organism {organism_id}")
        render_diagnostics(controller.diagnostics(), console)


if __name__ == "__main__":
    main()
