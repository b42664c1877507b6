"""Monte Carlo estimation of pi: CPU baseline vs OpenCL kernel strategies."""

from mcpi.benchmark.exceptions import (
    BenchmarkError,
    ConfigurationError,
    DeviceExecutionError,
    KernelCompilationError,
    KernelSourceNotFoundError,
    RuntimeDispatchError,
)
from mcpi.benchmark.models import BenchmarkRun, DeviceInfo, EstimationResult, SkippedRun
from mcpi.compute.cpu_estimator import CpuEstimator
from mcpi.compute.kernel_runner import DeviceKernelRunner
from mcpi.compute.samples import SampleGenerator
from mcpi.compute.strategies import Strategy
from mcpi.harness.benchmark_harness import BenchmarkConfig, BenchmarkHarness, run_benchmarks

__version__ = "0.1.0"

__all__ = [
    "BenchmarkConfig",
    "BenchmarkError",
    "BenchmarkHarness",
    "BenchmarkRun",
    "ConfigurationError",
    "CpuEstimator",
    "DeviceExecutionError",
    "DeviceInfo",
    "DeviceKernelRunner",
    "EstimationResult",
    "KernelCompilationError",
    "KernelSourceNotFoundError",
    "RuntimeDispatchError",
    "SampleGenerator",
    "SkippedRun",
    "Strategy",
    "run_benchmarks",
]
