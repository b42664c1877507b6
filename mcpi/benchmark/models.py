"""Pydantic models for benchmark data structures.

Provides type-safe, validated data models for estimation results, devices and
complete runs. All models include schemaVersion for forward compatibility.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DeviceInfo(BaseModel):
    """Identity of one compute device as reported by the OpenCL runtime."""

    platform_index: int = Field(..., description="Position of the platform in enumeration order")
    platform_name: str = Field(..., description="Platform name")
    device_index: int = Field(..., description="Position of the device within its platform")
    name: str = Field(..., description="Device name (CL_DEVICE_NAME)")
    type: str = Field("ALL", description="Device type (GPU, CPU, ACCELERATOR, ...)")
    host_unified_memory: Optional[bool] = Field(
        None, description="Whether the device shares physical memory with the host"
    )

    schemaVersion: str = Field("1.0", description="Schema version for forward compatibility")

    model_config = ConfigDict(frozen=True)

    @field_validator("name", "platform_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        """Runtimes pad names with whitespace and trailing NULs."""
        if isinstance(v, str):
            return v.strip().strip("\x00").strip()
        return v


class EstimationResult(BaseModel):
    """One row of the comparison table: a (method, device) estimate with timings."""

    method: str = Field(..., description="Method label, e.g. 'OCL naive' or 'Single Core CPU'")
    device: str = Field(..., description="Device name, 'CPU' for the host baseline")
    pi_estimate: float = Field(..., description="Estimated value of pi")
    device_time_usec: float = Field(0.0, description="Kernel execution time from profiling events")
    host_time_usec: float = Field(0.0, description="Host-side reduction (or counting) time")
    total_time_usec: float = Field(0.0, description="Launch-to-reduced wall time")

    sample_count: int = Field(0, description="Number of (x, y) samples used")
    inside_count: int = Field(0, description="Samples that landed inside the quarter circle")
    strategy: Optional[str] = Field(None, description="Strategy tag; None for the CPU baseline")
    platform: Optional[str] = Field(None, description="Platform name of the device")

    schemaVersion: str = Field("1.0", description="Schema version for forward compatibility")

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "method": "OCL Coalesced",
                "device": "GeForce GTX 1080",
                "pi_estimate": 3.14158,
                "device_time_usec": 812.3,
                "host_time_usec": 21.0,
                "total_time_usec": 1050.0,
                "sample_count": 20000000,
                "inside_count": 15707900,
                "strategy": "coalesced",
                "platform": "NVIDIA CUDA",
                "schemaVersion": "1.0",
            }
        },
    )


class SkippedRun(BaseModel):
    """A (method, device) pair that produced no row."""

    method: str = Field(..., description="Method label of the skipped strategy")
    device: str = Field(..., description="Device name")
    reason: str = Field(..., description="Why the pair was skipped")
    build_log: Optional[str] = Field(None, description="Compiler output when the build failed")

    schemaVersion: str = Field("1.0", description="Schema version for forward compatibility")


class BenchmarkRun(BaseModel):
    """Complete benchmark run: ordered rows plus everything that was skipped."""

    results: List[EstimationResult] = Field(default_factory=list, description="Rows in print order")
    skipped: List[SkippedRun] = Field(default_factory=list, description="Pairs omitted from the table")
    devices: List[DeviceInfo] = Field(default_factory=list, description="Devices the run visited")

    sample_count: int = Field(..., description="Samples per estimation")
    work_size: int = Field(..., description="Samples per work unit in grouped strategies")
    strategies: List[str] = Field(default_factory=list, description="Strategy order used")
    cpu_position: Optional[str] = Field(None, description="'first', 'last' or None when the CPU row is disabled")

    timestamp: Optional[str] = Field(None, description="ISO timestamp of run")

    schemaVersion: str = Field("1.0", description="Schema version for forward compatibility")

    def find(self, method: str, device: Optional[str] = None) -> Optional[EstimationResult]:
        """Return the first row matching method (and device when given)."""
        for result in self.results:
            if result.method == method and (device is None or result.device == device):
                return result
        return None
