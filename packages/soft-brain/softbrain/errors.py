"""Define error messages and exceptions for the Soft Brain package."""

ERROR_INPUT_SIZE_MISMATCH = (
    "Input vector length {actual} does not match the network input size {expected}."
)
ERROR_PARAMETERS_MISSING = "Network parameters have not been allocated."
ERROR_ARRAY_SHAPE_MISMATCH = "Array '{name}' has shape {actual}, expected {expected}."


class BrainShapeError(ValueError):
    """Raised when a vector or matrix does not match the current network topology."""
