"""Generic device runner shared by every kernel strategy.

One run is a fixed sequence: generate samples, build the strategy's kernel,
upload, allocate the per-unit output, launch over a 1-D range, wait, read the
partial counts back (or map them for zero-copy), reduce on the host and scale
to an estimate of pi.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np
import pyopencl as cl

from mcpi.benchmark.defaults import DEFAULT_WORK_SIZE
from mcpi.benchmark.exceptions import DeviceExecutionError, RuntimeDispatchError
from mcpi.benchmark.models import EstimationResult
from mcpi.compute.cpu_estimator import estimate_pi
from mcpi.compute.kernel_sources import load_kernel_source
from mcpi.compute.opencl_runtime import DeviceSession
from mcpi.compute.samples import SAMPLE_DTYPE, SampleGenerator, as_pairs
from mcpi.compute.strategies import Strategy, StrategySpec, describe
from mcpi.utils.logger import get_logger

logger = get_logger(__name__)

RESULT_DTYPE = np.uint32

# (1, 1) lies outside the quarter circle, so padding never changes a count
PAD_VALUE = 1.0


def pad_samples(samples: np.ndarray, padded_count: int) -> np.ndarray:
    """Extend a flat sample buffer to ``padded_count`` points with (1, 1)."""
    missing = 2 * padded_count - samples.size
    if missing <= 0:
        return samples
    padding = np.full(missing, PAD_VALUE, dtype=SAMPLE_DTYPE)
    return np.concatenate([samples, padding])


@dataclass
class KernelExecution:
    """Raw outcome of one strategy run, including the per-unit partial counts."""

    spec: StrategySpec
    device_name: str
    sample_count: int
    partials: np.ndarray
    inside_count: int
    device_time_usec: float = 0.0
    host_time_usec: float = 0.0
    total_time_usec: float = 0.0

    @property
    def pi_estimate(self) -> float:
        return estimate_pi(self.inside_count, self.sample_count)

    def to_result(self, platform: Optional[str] = None) -> EstimationResult:
        return EstimationResult(
            method=self.spec.method,
            device=self.device_name,
            pi_estimate=self.pi_estimate,
            device_time_usec=self.device_time_usec,
            host_time_usec=self.host_time_usec,
            total_time_usec=self.total_time_usec,
            sample_count=self.sample_count,
            inside_count=self.inside_count,
            strategy=self.spec.strategy.value,
            platform=platform,
        )


class DeviceKernelRunner:
    """Runs any Strategy on any DeviceSession."""

    def __init__(
        self,
        work_size: int = DEFAULT_WORK_SIZE,
        kernel_dir: Optional[Union[str, Path]] = None,
        generator: Optional[SampleGenerator] = None,
    ):
        self.work_size = work_size
        self.kernel_dir = kernel_dir
        self.generator = generator or SampleGenerator()

    def run(
        self,
        strategy: Union[Strategy, str],
        session: DeviceSession,
        sample_count: int,
        seed: Optional[int] = None,
    ) -> EstimationResult:
        """Generate fresh samples and estimate pi with ``strategy`` on ``session``.

        Raises:
            KernelSourceNotFoundError: the strategy's kernel file is missing
            KernelCompilationError: the kernel failed to build for the device
            RuntimeDispatchError: the input or output buffer could not be allocated
            DeviceExecutionError: the launch or readback failed
        """
        samples = self.generator.generate(sample_count, seed=seed)
        execution = self.execute(strategy, session, samples)
        return execution.to_result(platform=session.info.platform_name)

    def execute(
        self,
        strategy: Union[Strategy, str],
        session: DeviceSession,
        samples: np.ndarray,
    ) -> KernelExecution:
        """Run ``strategy`` over an existing sample buffer."""
        spec = describe(strategy, self.work_size)
        samples = np.ascontiguousarray(samples, dtype=SAMPLE_DTYPE)
        sample_count = as_pairs(samples).shape[0]
        if sample_count == 0:
            logger.warning(f"{spec.method}: no samples, nothing to launch")
            return KernelExecution(
                spec=spec,
                device_name=session.device_name,
                sample_count=0,
                partials=np.zeros(0, dtype=RESULT_DTYPE),
                inside_count=0,
            )

        program = self._build(spec, session)
        units = spec.unit_count(sample_count)
        host_samples = pad_samples(samples, spec.padded_sample_count(sample_count))

        try:
            d_samples = session.upload(host_samples, zero_copy=spec.zero_copy)
            d_results = session.allocate(units * np.dtype(RESULT_DTYPE).itemsize, zero_copy=spec.zero_copy)
        except cl.Error as exc:
            raise RuntimeDispatchError(
                f"Buffer allocation failed on {session.device_name}: {exc}",
                stage="allocation",
                original_error=exc,
            ) from exc

        try:
            start = time.perf_counter_ns()
            device_usec = session.launch(program, spec.kernel_name, units, d_samples, d_results)

            if spec.zero_copy:
                with session.map_read(d_results, units, RESULT_DTYPE) as mapped:
                    sum_start = time.perf_counter_ns()
                    inside = int(mapped.sum(dtype=np.uint64))
                    copy_start = time.perf_counter_ns()
                    partials = np.array(mapped, copy=True)
                    copy_ns = time.perf_counter_ns() - copy_start
                # host time covers the mapped sum and the unmap, not the partials copy
                stop = time.perf_counter_ns() - copy_ns
            else:
                partials = np.empty(units, dtype=RESULT_DTYPE)
                session.read(d_results, partials)
                sum_start = time.perf_counter_ns()
                inside = int(partials.sum(dtype=np.uint64))
                stop = time.perf_counter_ns()
        except cl.Error as exc:
            raise DeviceExecutionError(
                f"{spec.method} failed on {session.device_name}: {exc}",
                method=spec.method,
                device_name=session.device_name,
                original_error=exc,
            ) from exc

        return KernelExecution(
            spec=spec,
            device_name=session.device_name,
            sample_count=sample_count,
            partials=partials,
            inside_count=inside,
            device_time_usec=device_usec,
            host_time_usec=(stop - sum_start) / 1e3,
            total_time_usec=(stop - start) / 1e3,
        )

    def _build(self, spec: StrategySpec, session: DeviceSession) -> Any:
        source = load_kernel_source(spec.kernel_file, self.kernel_dir)
        logger.debug(f"Building {spec.kernel_file} for {session.device_name}")
        return session.build(source, options=["-D", f"WORK_SIZE={self.work_size}"])
