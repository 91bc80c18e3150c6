"""Utilities module for Soft Brain."""

from softbrain.utils.seeding import (
    derive_organism_seed,
    ensure_seed,
    generate_seed,
    get_rng,
    get_seed_registry,
    register_seed,
)

__all__ = [
    "derive_organism_seed",
    "ensure_seed",
    "generate_seed",
    "get_rng",
    "get_seed_registry",
    "register_seed",
]
