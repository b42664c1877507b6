"""Single-threaded CPU baseline for the Monte Carlo estimate of pi."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

import numpy as np

from mcpi.benchmark.models import EstimationResult
from mcpi.compute.samples import SampleGenerator, as_pairs

CPU_METHOD = "Single Core CPU"
CPU_DEVICE = "CPU"


def estimate_pi(inside_count: int, sample_count: int) -> float:
    """Scale an inside-circle count to an estimate of pi.

    An empty workload has no estimate; 0.0 is returned instead of NaN.
    """
    if sample_count <= 0:
        return 0.0
    return 4.0 * inside_count / sample_count


def count_inside(samples: np.ndarray) -> int:
    """Count points with x*x + y*y < 1 using float32 arithmetic."""
    pairs = as_pairs(samples).astype(np.float32, copy=False)
    x = pairs[:, 0]
    y = pairs[:, 1]
    return int(np.count_nonzero(x * x + y * y < np.float32(1.0)))


@dataclass(frozen=True)
class CpuEstimate:
    pi_estimate: float
    inside_count: int
    sample_count: int
    elapsed_usec: float


class CpuEstimator:
    """Counts points inside the unit quarter circle on the host."""

    def estimate(self, samples: np.ndarray) -> CpuEstimate:
        """Estimate pi from a flat sample buffer; only the counting is timed."""
        sample_count = samples.size // 2
        start = time.perf_counter_ns()
        inside = count_inside(samples)
        elapsed_usec = (time.perf_counter_ns() - start) / 1e3
        return CpuEstimate(
            pi_estimate=estimate_pi(inside, sample_count),
            inside_count=inside,
            sample_count=sample_count,
            elapsed_usec=elapsed_usec,
        )

    def run(
        self,
        sample_count: int,
        seed: Optional[int] = None,
        generator: Optional[SampleGenerator] = None,
    ) -> EstimationResult:
        """Generate fresh samples and produce the baseline table row."""
        generator = generator or SampleGenerator()
        estimate = self.estimate(generator.generate(sample_count, seed=seed))
        return EstimationResult(
            method=CPU_METHOD,
            device=CPU_DEVICE,
            pi_estimate=estimate.pi_estimate,
            device_time_usec=0.0,
            host_time_usec=estimate.elapsed_usec,
            total_time_usec=estimate.elapsed_usec,
            sample_count=estimate.sample_count,
            inside_count=estimate.inside_count,
        )
