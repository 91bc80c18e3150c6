"""Soft-body organism brain: policy network, sensors, rewards and online training."""
