"""Constants."""

import math

# Topology: sensory inputs
# 3 (dye RGB) + 1 (energy ratio) + 2 (CoM rel pos) + 2 (CoM vel) + 1 (nutrient)
# + 1 (energy second derivative)
NEURAL_INPUT_SIZE_BASE = 10
NEURAL_INPUTS_PER_EYE = 3
NEURAL_INPUTS_PER_FLUID_SENSOR = 2
NEURAL_INPUTS_PER_SPRING_SENSOR = 1

# Topology: actuator outputs, two raw outputs (mean, log-std) per Gaussian action
NEURAL_OUTPUTS_PER_ACTION = 2
NEURAL_OUTPUTS_PER_EMITTER = 8  # red, green, blue, exertion
NEURAL_OUTPUTS_PER_SWIMMER = 4  # magnitude, direction
NEURAL_OUTPUTS_PER_EATER = 2
NEURAL_OUTPUTS_PER_PREDATOR = 2
NEURAL_OUTPUTS_PER_JET = 4  # magnitude, direction
NEURAL_OUTPUTS_PER_GRABBER_TOGGLE = 2
NEURAL_OUTPUTS_PER_ATTRACTOR = 2
NEURAL_OUTPUTS_PER_REPULSOR = 2

# Hidden layer size bounds (inclusive)
DEFAULT_HIDDEN_LAYER_SIZE_MIN = 5
DEFAULT_HIDDEN_LAYER_SIZE_MAX = 30

# Parameter initialization: uniform in +/- scale / sqrt(fan_in)
DEFAULT_INIT_SCALE = 0.1

# RL training
DEFAULT_LEARNING_RATE = 0.001
DEFAULT_GAMMA = 0.99
DEFAULT_TRAINING_INTERVAL_FRAMES = 10
DEFAULT_EXPERIENCE_BUFFER_SIZE = 10
DEFAULT_RETURN_EPSILON = 1e-6
DEFAULT_GRADIENT_EPSILON = 1e-9

# Gaussian policy
STD_DEV_FLOOR = 1e-6
LOG_2PI = math.log(2 * math.pi)

# World
DEFAULT_WORLD_WIDTH = 8000.0
DEFAULT_WORLD_HEIGHT = 6000.0
MAX_PIXELS_PER_FRAME_DISPLACEMENT = 100.0
MIN_NUTRIENT_VALUE = 0.1
MAX_NUTRIENT_VALUE = 2.0
MAX_DYE_DENSITY = 255.0

# Actuators
MAX_SWIMMER_OUTPUT_MAGNITUDE = 1.0
MAX_JET_OUTPUT_MAGNITUDE = 1.0
GRABBER_TOGGLE_THRESHOLD = 0.5

# Sensors
ENERGY_DELTA_NORMALIZATION_FRACTION = 0.05
DEFAULT_NUTRIENT_READING = 0.5
NUTRIENT_OUT_OF_GRID_VALUE = 1.0

# Rewards
REPRODUCTION_REWARD_VALUE = 50.0
PARTICLE_PROXIMITY_REWARD_SCALE = 1.0
ENERGY_SECOND_DERIVATIVE_REWARD_SCALE = 1.0
