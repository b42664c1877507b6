#!/usr/bin/env python3
"""
mcpi - Monte Carlo pi benchmark CLI (Typer)

`mcpi run` prints the CPU vs OpenCL comparison table; `mcpi devices` lists
what the OpenCL runtime can see.
"""

from __future__ import annotations

import sys
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer

from mcpi.benchmark.defaults import get_defaults
from mcpi.benchmark.exceptions import ConfigurationError, RuntimeDispatchError
from mcpi.compute.opencl_runtime import OpenCLRuntime
from mcpi.compute.strategies import Strategy
from mcpi.harness.benchmark_harness import BenchmarkConfig, BenchmarkHarness
from mcpi.reporting import print_devices
from mcpi.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


class CpuPosition(str, Enum):
    first = "first"
    last = "last"


class LogFormat(str, Enum):
    text = "text"
    json = "json"


app = typer.Typer(
    name="mcpi",
    help="Monte Carlo pi: CPU baseline vs OpenCL kernel strategies",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def _root(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="DEBUG, INFO, WARNING or ERROR (default: INFO)"
    ),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write logs to this file"),
    log_format: LogFormat = typer.Option(LogFormat.text, "--log-format", help="File log format"),
) -> None:
    """Configure logging for every subcommand."""
    level = log_level or get_defaults().log_level
    setup_logging(level=level, log_file=log_file, log_format=log_format.value)


@app.command("run", help="Run the CPU baseline and every strategy on every OpenCL device")
def run_command(
    samples: Optional[int] = typer.Option(None, "--samples", "-n", help="Number of (x, y) samples"),
    work_size: Optional[int] = typer.Option(None, "--work-size", "-w", help="Samples per work unit in grouped kernels"),
    strategy: Optional[List[Strategy]] = typer.Option(
        None, "--strategy", "-s", help="Strategy to run (repeatable, keeps the given order)"
    ),
    cpu_position: Optional[CpuPosition] = typer.Option(None, "--cpu-position", help="Print the CPU row first or last"),
    no_cpu: bool = typer.Option(False, "--no-cpu", help="Skip the CPU baseline"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Fixed seed (default: reseed from the clock)"),
    kernel_dir: Optional[Path] = typer.Option(None, "--kernel-dir", help="Directory holding the .cl sources"),
    platform: Optional[str] = typer.Option(None, "--platform", help="Only platforms whose name contains this"),
    device: Optional[str] = typer.Option(None, "--device", help="Only devices whose name contains this"),
    json_out: Optional[Path] = typer.Option(None, "--json-out", help="Write the full run as JSON"),
) -> None:
    overrides = {
        "sample_count": samples,
        "work_size": work_size,
        "strategies": [s.value for s in strategy] if strategy else None,
        "cpu_position": cpu_position.value if cpu_position else None,
        "seed": seed,
        "kernel_dir": kernel_dir,
        "platform_filter": platform,
        "device_filter": device,
    }
    kwargs = {key: value for key, value in overrides.items() if value is not None}
    if no_cpu:
        kwargs["include_cpu"] = False

    try:
        config = BenchmarkConfig(**kwargs)
        run = BenchmarkHarness(config).run_all()
    except ConfigurationError as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(code=1)
    except RuntimeDispatchError as exc:
        logger.error(f"OpenCL runtime failure ({exc.stage}): {exc}")
        raise typer.Exit(code=1)

    if json_out:
        json_out.parent.mkdir(parents=True, exist_ok=True)
        json_out.write_text(run.model_dump_json(indent=2))
        logger.info(f"Wrote {json_out}")


@app.command("devices", help="List OpenCL platforms and devices")
def devices_command(
    platform: Optional[str] = typer.Option(None, "--platform", help="Only platforms whose name contains this"),
    device: Optional[str] = typer.Option(None, "--device", help="Only devices whose name contains this"),
) -> None:
    try:
        found = OpenCLRuntime().list_devices(platform, device)
    except RuntimeDispatchError as exc:
        logger.error(f"OpenCL runtime failure ({exc.stage}): {exc}")
        raise typer.Exit(code=1)
    print_devices([d.info for d in found])


def main() -> int:
    try:
        app()
    except SystemExit as exc:  # Typer raises SystemExit
        return int(exc.code or 0)
    return 0


if __name__ == "__main__":
    sys.exit(main())
