"""Fixed-width console table for estimation results."""

from __future__ import annotations

import sys
from typing import Iterable, List, Optional, TextIO

from rich.console import Console
from rich.table import Table

from mcpi.benchmark.models import DeviceInfo, EstimationResult

COLUMN_WIDTHS = (15, 15, 12, 11, 11, 13)

HEADER = "|     Method     |     Device     | Pi estimate | GPU (usec) | CPU (usec) | Total (usec) |"
SEPARATOR = "|----------------|----------------|-------------|------------|------------|--------------|"


def _cell(value, width: int) -> str:
    if isinstance(value, float):
        value = f"{value:g}"
    return f"| {value:<{width}}"


def format_result(result: EstimationResult) -> str:
    """One pipe-delimited, left-aligned row. Long names are not truncated."""
    values = (
        result.method,
        result.device,
        float(result.pi_estimate),
        float(result.device_time_usec),
        float(result.host_time_usec),
        float(result.total_time_usec),
    )
    return "".join(_cell(v, w) for v, w in zip(values, COLUMN_WIDTHS)) + "| "


def print_result_header(stream: Optional[TextIO] = None) -> None:
    stream = stream or sys.stdout
    print(HEADER, file=stream)
    print(SEPARATOR, file=stream)


def print_result(result: EstimationResult, stream: Optional[TextIO] = None) -> None:
    print(format_result(result), file=stream or sys.stdout, flush=True)


def render_table(results: Iterable[EstimationResult]) -> List[str]:
    """Header, separator and one line per result."""
    return [HEADER, SEPARATOR, *(format_result(r) for r in results)]


def print_devices(devices: List[DeviceInfo], console: Optional[Console] = None) -> None:
    console = console or Console()
    if not devices:
        console.print("[yellow]No OpenCL devices found.[/yellow]")
        return
    table = Table(title="OpenCL Devices")
    table.add_column("Platform", style="cyan")
    table.add_column("#", justify="right")
    table.add_column("Device", style="green")
    table.add_column("Type", style="yellow")
    table.add_column("Unified memory")
    for info in devices:
        unified = "?" if info.host_unified_memory is None else ("yes" if info.host_unified_memory else "no")
        table.add_row(info.platform_name, str(info.device_index), info.name, info.type, unified)
    console.print(table)
