"""Benchmark harness: CPU baseline plus every kernel strategy on every device.

Runs strictly sequentially on one host thread. Each device gets one session
(context and profiling queue) that its strategies reuse one after another.
A strategy that cannot build or run on a device is logged and skipped so the
table still lists every pair that succeeded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, Protocol, TextIO, Union

from mcpi.benchmark.defaults import BenchmarkDefaults, get_defaults
from mcpi.benchmark.exceptions import (
    ConfigurationError,
    DeviceExecutionError,
    KernelCompilationError,
    KernelSourceNotFoundError,
)
from mcpi.benchmark.models import BenchmarkRun, EstimationResult, SkippedRun
from mcpi.compute.cpu_estimator import CPU_DEVICE, CPU_METHOD, CpuEstimator
from mcpi.compute.kernel_runner import DeviceKernelRunner
from mcpi.compute.opencl_runtime import ComputeDevice, DeviceSession, OpenCLRuntime
from mcpi.compute.samples import SampleGenerator
from mcpi.compute.strategies import Strategy, describe, parse_strategies
from mcpi.reporting import print_result, print_result_header
from mcpi.utils.logger import (
    get_logger,
    log_benchmark_complete,
    log_benchmark_error,
    log_benchmark_skipped,
    log_benchmark_start,
)

logger = get_logger(__name__)

CPU_POSITIONS = ("first", "last")


def _get_default_value(attr_name: str, fallback):
    """Get default value from BenchmarkDefaults, with fallback."""
    defaults: BenchmarkDefaults = get_defaults()
    value = getattr(defaults, attr_name, fallback)
    if isinstance(value, list):
        return list(value)
    return value


@dataclass
class BenchmarkConfig:
    """Configuration for a benchmark run.

    Default values are loaded from BenchmarkDefaults at instance creation time,
    so set_defaults() in tests and explicit arguments both take effect.
    """
    sample_count: int = field(default_factory=lambda: _get_default_value("sample_count", 20_000_000))
    work_size: int = field(default_factory=lambda: _get_default_value("work_size", 1000))
    strategies: List[Union[Strategy, str]] = field(
        default_factory=lambda: _get_default_value("strategies", [s.value for s in Strategy])
    )
    include_cpu: bool = field(default_factory=lambda: _get_default_value("include_cpu", True))
    cpu_position: str = field(default_factory=lambda: _get_default_value("cpu_position", "last"))
    seed: Optional[int] = field(default_factory=lambda: _get_default_value("seed", None))
    kernel_dir: Optional[Union[str, Path]] = field(default_factory=lambda: _get_default_value("kernel_dir", None))
    platform_filter: Optional[str] = field(default_factory=lambda: _get_default_value("platform_filter", None))
    device_filter: Optional[str] = field(default_factory=lambda: _get_default_value("device_filter", None))
    print_table: bool = field(default_factory=lambda: _get_default_value("print_table", True))

    def __post_init__(self):
        """Normalise strategy names and reject values the runner cannot honour."""
        if self.sample_count is None or self.sample_count < 0:
            raise ConfigurationError(
                f"sample_count must be >= 0, got {self.sample_count}",
                config_key="sample_count",
                config_value=self.sample_count,
                reason="negative sample count",
            )
        if self.work_size is None or self.work_size < 1:
            raise ConfigurationError(
                f"work_size must be >= 1, got {self.work_size}",
                config_key="work_size",
                config_value=self.work_size,
                reason="non-positive work size",
            )
        self.cpu_position = str(self.cpu_position).lower()
        if self.cpu_position not in CPU_POSITIONS:
            raise ConfigurationError(
                f"cpu_position must be one of {CPU_POSITIONS}, got '{self.cpu_position}'",
                config_key="cpu_position",
                config_value=self.cpu_position,
                reason="unknown position",
            )
        self.strategies = parse_strategies(self.strategies)


class ComputeRuntime(Protocol):
    def list_devices(
        self,
        platform_filter: Optional[str] = None,
        device_filter: Optional[str] = None,
    ) -> List[ComputeDevice]:
        ...

    def open_session(self, device: ComputeDevice) -> DeviceSession:
        ...


class BenchmarkHarness:
    """Runs the CPU baseline once and each configured strategy on each device."""

    def __init__(
        self,
        config: Optional[BenchmarkConfig] = None,
        runtime: Optional[ComputeRuntime] = None,
        stream: Optional[TextIO] = None,
        generator: Optional[SampleGenerator] = None,
    ):
        self.config = config or BenchmarkConfig()
        self.runtime = runtime or OpenCLRuntime()
        self.stream = stream
        self.generator = generator or SampleGenerator()
        self.cpu = CpuEstimator()
        self.runner = DeviceKernelRunner(
            work_size=self.config.work_size,
            kernel_dir=self.config.kernel_dir,
            generator=self.generator,
        )

    def run_all(self) -> BenchmarkRun:
        """Run everything and return the rows in print order.

        Order: CPU (if first), then platform order, device order and the
        configured strategy order, then CPU (if last).

        Raises:
            RuntimeDispatchError: device enumeration, session setup or buffer
                allocation failed
        """
        config = self.config
        run = BenchmarkRun(
            sample_count=config.sample_count,
            work_size=config.work_size,
            strategies=[s.value for s in config.strategies],
            cpu_position=config.cpu_position if config.include_cpu else None,
            timestamp=datetime.now().isoformat(),
        )
        if config.print_table:
            print_result_header(self.stream)

        if config.include_cpu and config.cpu_position == "first":
            self._record(run, self._run_cpu())

        devices = self.runtime.list_devices(config.platform_filter, config.device_filter)
        if not devices:
            logger.warning("No compute devices found; only the CPU baseline will run")
        for device in devices:
            run.devices.append(device.info)
            self._run_device(run, device)

        if config.include_cpu and config.cpu_position == "last":
            self._record(run, self._run_cpu())

        logger.info(f"Finished: {len(run.results)} result(s), {len(run.skipped)} skipped")
        return run

    def _run_cpu(self) -> EstimationResult:
        log_benchmark_start(logger, CPU_METHOD, CPU_DEVICE)
        result = self.cpu.run(self.config.sample_count, seed=self.config.seed, generator=self.generator)
        log_benchmark_complete(logger, result.method, result.device, result.pi_estimate, result.total_time_usec)
        return result

    def _run_device(self, run: BenchmarkRun, device: ComputeDevice) -> None:
        session = self.runtime.open_session(device)
        for strategy in self.config.strategies:
            method = describe(strategy, self.config.work_size).method
            log_benchmark_start(logger, method, device.name)
            try:
                result = self.runner.run(strategy, session, self.config.sample_count, seed=self.config.seed)
            except KernelCompilationError as exc:
                log_benchmark_skipped(logger, method, device.name, str(exc))
                logger.error(f"{exc.device_name} build log:\n{exc.build_log}")
                run.skipped.append(SkippedRun(method=method, device=device.name, reason=str(exc), build_log=exc.build_log))
                continue
            except KernelSourceNotFoundError as exc:
                log_benchmark_skipped(logger, method, device.name, str(exc))
                run.skipped.append(SkippedRun(method=method, device=device.name, reason=str(exc)))
                continue
            except DeviceExecutionError as exc:
                log_benchmark_error(logger, exc.method, exc.device_name, str(exc.original_error or exc))
                run.skipped.append(SkippedRun(method=method, device=device.name, reason=str(exc)))
                continue
            log_benchmark_complete(logger, result.method, result.device, result.pi_estimate, result.total_time_usec)
            self._record(run, result)

    def _record(self, run: BenchmarkRun, result: EstimationResult) -> None:
        run.results.append(result)
        if self.config.print_table:
            print_result(result, self.stream)


def run_benchmarks(config: Optional[BenchmarkConfig] = None, **kwargs: Any) -> BenchmarkRun:
    """Convenience wrapper: ``BenchmarkHarness(config, **kwargs).run_all()``."""
    return BenchmarkHarness(config, **kwargs).run_all()
