"""Core type definitions for Soft Brain.

This module provides type aliases shared by the brain, body and environment
modules.
"""

import numpy as np
import numpy.typing as npt

# =============================================================================
# Numeric Types
# =============================================================================

# Dense float vector (sensor inputs, biases, activations)
Vector = npt.NDArray[np.float64]

# Dense float matrix, row-major (rows = layer outputs, cols = layer inputs)
Matrix = npt.NDArray[np.float64]

# =============================================================================
# Geometry Types
# =============================================================================

# Continuous 2D position or velocity in world units
Vec2 = tuple[float, float]
