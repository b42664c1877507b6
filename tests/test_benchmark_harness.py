"""Tests for BenchmarkHarness ordering, skipping and configuration."""

import io
import logging
import sys
from pathlib import Path

import pytest

repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from mcpi.benchmark.defaults import BenchmarkDefaults, get_defaults, set_defaults
from mcpi.benchmark.exceptions import ConfigurationError, RuntimeDispatchError
from mcpi.compute.kernel_sources import DEFAULT_KERNEL_DIR
from mcpi.compute.strategies import Strategy
from mcpi.harness.benchmark_harness import BenchmarkConfig, BenchmarkHarness, run_benchmarks
from mcpi.reporting import HEADER, SEPARATOR
from tests.fake_opencl import FakeRuntime, make_device

GPU_METHODS = ["OCL naive", "OCL reduction", "OCL Coalesced", "OCL ZeroCopy"]


def _config(**overrides):
    values = dict(sample_count=5_000, work_size=100, seed=42, print_table=False)
    values.update(overrides)
    return BenchmarkConfig(**values)


def _two_platforms():
    return FakeRuntime(
        devices=[
            make_device("GPU A", "Platform 0", 0, 0),
            make_device("GPU B", "Platform 0", 0, 1),
            make_device("CPU C", "Platform 1", 1, 0),
        ]
    )


class TestOrdering:
    def test_platform_then_device_then_strategy_cpu_last(self):
        run = BenchmarkHarness(_config(), runtime=_two_platforms()).run_all()
        rows = [(r.method, r.device) for r in run.results]
        expected = [(m, d) for d in ("GPU A", "GPU B", "CPU C") for m in GPU_METHODS]
        expected.append(("Single Core CPU", "CPU"))
        assert rows == expected
        assert run.cpu_position == "last"

    def test_cpu_first(self):
        run = BenchmarkHarness(_config(cpu_position="first"), runtime=FakeRuntime()).run_all()
        assert run.results[0].method == "Single Core CPU"
        assert [r.method for r in run.results[1:]] == GPU_METHODS

    def test_cpu_runs_once_regardless_of_device_count(self):
        run = BenchmarkHarness(_config(), runtime=_two_platforms()).run_all()
        assert sum(1 for r in run.results if r.method == "Single Core CPU") == 1

    def test_configured_strategy_subset_and_order(self):
        config = _config(strategies=["zero-copy", "naive"], include_cpu=False)
        run = BenchmarkHarness(config, runtime=FakeRuntime()).run_all()
        assert [r.method for r in run.results] == ["OCL ZeroCopy", "OCL naive"]
        assert run.cpu_position is None

    def test_one_session_per_device(self):
        runtime = _two_platforms()
        BenchmarkHarness(_config(), runtime=runtime).run_all()
        assert set(runtime.sessions) == {"GPU A", "GPU B", "CPU C"}
        assert len(runtime.sessions["GPU A"].launches) == 4

    def test_all_strategies_agree_with_fixed_seed(self):
        run = BenchmarkHarness(_config(sample_count=20_000), runtime=FakeRuntime()).run_all()
        estimates = {r.pi_estimate for r in run.results}
        assert len(estimates) == 1


class TestSkipping:
    def test_missing_kernel_dir_keeps_cpu_row(self, tmp_path):
        config = _config(kernel_dir=tmp_path)
        run = BenchmarkHarness(config, runtime=FakeRuntime()).run_all()
        assert [r.method for r in run.results] == ["Single Core CPU"]
        assert [s.method for s in run.skipped] == GPU_METHODS
        assert "not readable" in run.skipped[0].reason

    def test_one_missing_kernel_only_skips_its_strategy(self, tmp_path):
        for name in ("pi_naive.cl", "pi_reduction.cl"):
            (tmp_path / name).write_text((DEFAULT_KERNEL_DIR / name).read_text())
        run = BenchmarkHarness(_config(kernel_dir=tmp_path), runtime=FakeRuntime()).run_all()
        assert [r.method for r in run.results] == ["OCL naive", "OCL reduction", "Single Core CPU"]
        assert {s.method for s in run.skipped} == {"OCL Coalesced", "OCL ZeroCopy"}

    def test_build_failure_skips_only_that_device(self):
        runtime = FakeRuntime(
            devices=[make_device("Broken", device_index=0), make_device("Working", device_index=1)],
            failing_builds=["Broken"],
        )
        run = BenchmarkHarness(_config(), runtime=runtime).run_all()
        assert {r.device for r in run.results} == {"Working", "CPU"}
        assert len(run.skipped) == 4
        assert all(s.device == "Broken" for s in run.skipped)
        assert "simulated failure" in run.skipped[0].build_log

    def test_no_devices_still_runs_cpu(self):
        run = BenchmarkHarness(_config(), runtime=FakeRuntime(devices=[])).run_all()
        assert [r.method for r in run.results] == ["Single Core CPU"]
        assert run.skipped == []

    def test_device_filter(self):
        run = BenchmarkHarness(_config(device_filter="gpu b", include_cpu=False), runtime=_two_platforms()).run_all()
        assert {r.device for r in run.results} == {"GPU B"}

    def test_enumeration_failure_is_fatal(self):
        runtime = FakeRuntime(enumeration_error=OSError("driver gone"))
        with pytest.raises(RuntimeDispatchError) as excinfo:
            BenchmarkHarness(_config(), runtime=runtime).run_all()
        assert excinfo.value.stage == "platforms"

    def test_launch_failure_skips_only_that_device(self, caplog):
        runtime = FakeRuntime(
            devices=[make_device("Flaky", device_index=0), make_device("Working", device_index=1)],
            failing_launches=["Flaky"],
        )
        with caplog.at_level(logging.ERROR, logger="mcpi.harness.benchmark_harness"):
            run = BenchmarkHarness(_config(), runtime=runtime).run_all()
        assert [(r.method, r.device) for r in run.results] == [(m, "Working") for m in GPU_METHODS] + [
            ("Single Core CPU", "CPU")
        ]
        assert [(s.method, s.device) for s in run.skipped] == [(m, "Flaky") for m in GPU_METHODS]
        assert "OUT_OF_RESOURCES" in run.skipped[0].reason
        assert run.skipped[0].build_log is None
        assert "Failed: OCL naive on Flaky" in caplog.text

    def test_buffer_allocation_failure_is_fatal(self):
        runtime = FakeRuntime(failing_uploads=["Fake GPU"])
        with pytest.raises(RuntimeDispatchError) as excinfo:
            BenchmarkHarness(_config(), runtime=runtime).run_all()
        assert excinfo.value.stage == "allocation"

    def test_session_setup_failure_is_fatal(self):
        runtime = FakeRuntime(session_error=OSError("out of host memory"))
        with pytest.raises(RuntimeDispatchError) as excinfo:
            BenchmarkHarness(_config(), runtime=runtime).run_all()
        assert excinfo.value.stage == "context"
        assert runtime.sessions == {}


class TestRunBenchmarks:
    def test_wrapper_forwards_runtime_and_stream(self):
        stream = io.StringIO()
        run = run_benchmarks(_config(print_table=True), runtime=FakeRuntime(), stream=stream)
        assert [r.method for r in run.results] == GPU_METHODS + ["Single Core CPU"]
        assert stream.getvalue().startswith(HEADER)


class TestTableOutput:
    def test_header_printed_once_before_rows(self):
        stream = io.StringIO()
        config = _config(print_table=True)
        BenchmarkHarness(config, runtime=_two_platforms(), stream=stream).run_all()
        lines = stream.getvalue().splitlines()
        assert lines[0] == HEADER
        assert lines[1] == SEPARATOR
        assert lines.count(HEADER) == 1
        assert len(lines) == 2 + 3 * 4 + 1
        assert lines[-1].startswith("| Single Core CPU")

    def test_json_round_trip(self):
        run = BenchmarkHarness(_config(), runtime=FakeRuntime()).run_all()
        payload = run.model_dump_json()
        assert '"OCL ZeroCopy"' in payload
        assert run.find("OCL naive", "Fake GPU") is not None


class TestBenchmarkConfig:
    def setup_method(self):
        self._original_defaults = get_defaults()

    def teardown_method(self):
        set_defaults(self._original_defaults)

    def test_defaults(self):
        config = BenchmarkConfig()
        assert config.sample_count == 20_000_000
        assert config.work_size == 1000
        assert config.strategies == [Strategy.NAIVE, Strategy.REDUCTION, Strategy.COALESCED, Strategy.ZERO_COPY]
        assert config.cpu_position == "last"
        assert config.seed is None

    def test_defaults_are_read_at_creation(self):
        set_defaults(BenchmarkDefaults(sample_count=10, work_size=5))
        config = BenchmarkConfig()
        assert config.sample_count == 10
        assert config.work_size == 5

    def test_defaults_list_not_shared(self):
        config = BenchmarkConfig()
        config.strategies.pop()
        assert len(get_defaults().strategies) == 4

    @pytest.mark.parametrize(
        "overrides, key",
        [
            ({"sample_count": -1}, "sample_count"),
            ({"work_size": 0}, "work_size"),
            ({"cpu_position": "middle"}, "cpu_position"),
            ({"strategies": ["naive", "bogus"]}, "strategies"),
        ],
    )
    def test_invalid_values(self, overrides, key):
        with pytest.raises(ConfigurationError) as excinfo:
            BenchmarkConfig(**overrides)
        assert excinfo.value.config_key == key

    def test_zero_samples_allowed(self):
        run = BenchmarkHarness(_config(sample_count=0), runtime=FakeRuntime()).run_all()
        assert all(r.pi_estimate == 0.0 for r in run.results)
