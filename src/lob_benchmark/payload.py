"""
Payload generator for the benchmark.

Every storage strategy receives the same payload object, so all four
targets hold byte-identical copies.
"""

import numpy as np
from typing import Optional


def generate_payload(size: int, seed: Optional[int] = None) -> bytes:
    """
    Generate pseudo-random payload bytes.

    Args:
        size: Payload size in bytes
        seed: Random seed for reproducibility (None = fresh entropy)

    Returns:
        Immutable bytes of exactly ``size`` length

    Example:
        >>> len(generate_payload(16, seed=42))
        16
    """
    if size < 0:
        raise ValueError(f"size must be >= 0, got {size}")

    rng = np.random.default_rng(seed)
    return rng.bytes(size)
