"""Seeding infrastructure for reproducible brains.

Every random draw a brain makes goes through its own numpy ``Generator``:
the hidden size gene, weight initialization and action sampling. A run is
started from one base seed and every organism derives its brain's stream
from it, so organisms never share a stream and any single organism can be
replayed on its own.

Usage:
    seed = ensure_seed(config.seed)
    rng = get_rng(derive_organism_seed(seed, generation, organism_id))
"""

import hashlib
import secrets

import numpy as np

# Exclusive upper bound for seeds accepted by numpy
MAX_SEED = 2**32

# Seeds handed out during this session, by component name
_seed_registry: dict[str, int] = {}


def generate_seed() -> int:
    """Generate a cryptographically random seed in ``[0, 2^32)``."""
    return secrets.randbelow(MAX_SEED)


def ensure_seed(seed: int | None = None) -> int:
    """Return ``seed`` unchanged, or a freshly generated one when it is None."""
    if seed is not None:
        return seed
    return generate_seed()


def get_rng(seed: int | None = None) -> np.random.Generator:
    """Create an independent numpy Generator, seeded randomly when ``seed`` is None."""
    return np.random.default_rng(ensure_seed(seed))


def derive_organism_seed(base_seed: int, generation: int, organism_id: int) -> int:
    """Derive the seed of one organism's brain from the run's base seed.

    The key is hashed with BLAKE2b rather than the builtin ``hash()``, which
    is salted per process.

    Args:
        base_seed: Base seed of the run.
        generation: Generation the organism was born in.
        organism_id: Identifier of the organism within its generation.

    Returns
    -------
        Deterministic seed in ``[0, 2^32)``.
    """
    payload = f"{base_seed}:{generation}:{organism_id}".encode()
    digest = hashlib.blake2b(payload, digest_size=8).digest()
    return int.from_bytes(digest, byteorder="little") & 0xFFFF_FFFF


def register_seed(name: str, seed: int) -> None:
    """Record the seed handed to a component, e.g. ``"run"`` or ``"organism_3"``."""
    _seed_registry[name] = seed


def get_seed_registry() -> dict[str, int]:
    """Return a copy of the seeds recorded in this session."""
    return _seed_registry.copy()
