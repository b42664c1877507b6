"""Uniform random sample generation for Monte Carlo estimation."""

from __future__ import annotations

import time
from typing import Optional

import numpy as np

from mcpi.utils.logger import get_logger

logger = get_logger(__name__)

SAMPLE_DTYPE = np.float32


def time_seed() -> int:
    """Wall-clock seed so that unseeded runs are statistically independent."""
    return time.time_ns()


class SampleGenerator:
    """Produces interleaved (x, y) points uniformly distributed in [0, 1)^2."""

    def generate(self, count: int, seed: Optional[int] = None) -> np.ndarray:
        """Return a flat float32 buffer of ``2 * count`` values in [0, 1).

        Args:
            count: Number of (x, y) pairs
            seed: Seed for the generator; None reseeds from the wall clock

        Returns:
            Array laid out as x0, y0, x1, y1, ...
        """
        if count < 0:
            raise ValueError(f"sample count must be non-negative, got {count}")
        if seed is None:
            seed = time_seed()
        logger.debug(f"Generating {count:,} samples (seed={seed})")
        rng = np.random.default_rng(seed)
        return rng.random(2 * count, dtype=SAMPLE_DTYPE)


def as_pairs(samples: np.ndarray) -> np.ndarray:
    """View a flat sample buffer as an (N, 2) array of points."""
    if samples.ndim != 1 or samples.size % 2:
        raise ValueError(f"sample buffer must be flat with an even length, got shape {samples.shape}")
    return samples.reshape(-1, 2)
