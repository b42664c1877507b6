"""Thin pyopencl layer: device enumeration and one session per device.

A session owns one context and one profiling-enabled command queue. The
strategies run against it one after another; nothing is shared across
devices. Every call here blocks until the runtime reports completion.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Protocol, Sequence

import numpy as np
import pyopencl as cl

from mcpi.benchmark.exceptions import KernelCompilationError, RuntimeDispatchError
from mcpi.benchmark.models import DeviceInfo
from mcpi.utils.logger import get_logger

logger = get_logger(__name__)

# Returned by clGetPlatformIDs through the ICD loader when nothing is installed
PLATFORM_NOT_FOUND_KHR = -1001
DEVICE_NOT_FOUND = -1


def error_code(exc: Exception) -> Optional[int]:
    code = getattr(exc, "code", None)
    if callable(code):
        code = code()
    return code


class DeviceSession(Protocol):
    """Operations the kernel runner needs from a device."""

    info: DeviceInfo

    @property
    def device_name(self) -> str:
        ...

    def build(self, source: str, options: Sequence[str] = ()) -> Any:
        ...

    def upload(self, host: np.ndarray, zero_copy: bool = False) -> Any:
        ...

    def allocate(self, nbytes: int, zero_copy: bool = False) -> Any:
        ...

    def launch(self, program: Any, kernel_name: str, global_size: int, *args: Any) -> float:
        """Run the kernel to completion and return its device time in microseconds."""
        ...

    def read(self, buffer: Any, out: np.ndarray) -> None:
        ...

    def map_read(self, buffer: Any, count: int, dtype: Any) -> Any:
        """Context manager yielding a host view of ``buffer``; unmaps on exit."""
        ...


@dataclass(frozen=True)
class ComputeDevice:
    """A device handle plus the identity reported by the runtime."""

    info: DeviceInfo
    handle: Any

    @property
    def name(self) -> str:
        return self.info.name


def _matches(name: str, pattern: Optional[str]) -> bool:
    return not pattern or pattern.lower() in name.lower()


def _describe_device(platform_index: int, platform: Any, device_index: int, device: Any) -> DeviceInfo:
    try:
        unified = bool(device.host_unified_memory)
    except (cl.Error, AttributeError):
        unified = None
    return DeviceInfo(
        platform_index=platform_index,
        platform_name=platform.name,
        device_index=device_index,
        name=device.name,
        type=cl.device_type.to_string(device.type),
        host_unified_memory=unified,
    )


class OpenCLSession:
    """One context and one profiling queue bound to a single device."""

    def __init__(self, device: ComputeDevice):
        self.info = device.info
        self.device = device.handle
        try:
            self.context = cl.Context([self.device])
            self.queue = cl.CommandQueue(
                self.context,
                self.device,
                properties=cl.command_queue_properties.PROFILING_ENABLE,
            )
        except cl.Error as exc:
            raise RuntimeDispatchError(
                f"Could not create context/queue on {device.name}: {exc}",
                stage="context",
                original_error=exc,
            ) from exc

    @property
    def device_name(self) -> str:
        return self.info.name

    def build(self, source: str, options: Sequence[str] = ()) -> cl.Program:
        """Build ``source`` for this device, blocking until the build finishes."""
        program = cl.Program(self.context, source)
        try:
            return program.build(options=list(options), devices=[self.device])
        except cl.Error as exc:
            # pyopencl folds the per-device build log into the message
            raise KernelCompilationError(
                f"Kernel build failed on {self.device_name}",
                device_name=self.device_name,
                build_log=str(exc),
            ) from exc

    def upload(self, host: np.ndarray, zero_copy: bool = False) -> cl.Buffer:
        flags = cl.mem_flags.READ_ONLY | cl.mem_flags.COPY_HOST_PTR
        if zero_copy:
            flags |= cl.mem_flags.ALLOC_HOST_PTR
        return cl.Buffer(self.context, flags, hostbuf=host)

    def allocate(self, nbytes: int, zero_copy: bool = False) -> cl.Buffer:
        flags = cl.mem_flags.WRITE_ONLY
        if zero_copy:
            flags |= cl.mem_flags.ALLOC_HOST_PTR
        return cl.Buffer(self.context, flags, size=nbytes)

    def launch(self, program: cl.Program, kernel_name: str, global_size: int, *args: Any) -> float:
        kernel = cl.Kernel(program, kernel_name)
        kernel.set_args(*args)
        event = cl.enqueue_nd_range_kernel(self.queue, kernel, (global_size,), None)
        event.wait()
        return (event.profile.end - event.profile.start) * 1e-3

    def read(self, buffer: cl.Buffer, out: np.ndarray) -> None:
        cl.enqueue_copy(self.queue, out, buffer, is_blocking=True)

    @contextmanager
    def map_read(self, buffer: cl.Buffer, count: int, dtype: Any) -> Iterator[np.ndarray]:
        mapped, _ = cl.enqueue_map_buffer(
            self.queue, buffer, cl.map_flags.READ, 0, (count,), dtype, is_blocking=True
        )
        try:
            yield mapped
        finally:
            # hand the region back to the runtime
            mapped.base.release(self.queue).wait()


class OpenCLRuntime:
    """Enumerates platforms/devices and opens sessions through pyopencl."""

    def list_devices(
        self,
        platform_filter: Optional[str] = None,
        device_filter: Optional[str] = None,
    ) -> List[ComputeDevice]:
        """All devices of all platforms, in platform order then device order.

        Raises:
            RuntimeDispatchError: the runtime failed to enumerate
        """
        try:
            platforms = cl.get_platforms()
        except cl.Error as exc:
            if error_code(exc) == PLATFORM_NOT_FOUND_KHR:
                logger.warning("No OpenCL platforms installed")
                return []
            raise RuntimeDispatchError(
                f"OpenCL platform enumeration failed: {exc}",
                stage="platforms",
                original_error=exc,
            ) from exc

        devices: List[ComputeDevice] = []
        for platform_index, platform in enumerate(platforms):
            if not _matches(platform.name, platform_filter):
                continue
            try:
                handles = platform.get_devices(device_type=cl.device_type.ALL)
            except cl.Error as exc:
                if error_code(exc) == DEVICE_NOT_FOUND:
                    logger.warning(f"Platform '{platform.name.strip()}' reports no devices")
                    continue
                raise RuntimeDispatchError(
                    f"Device enumeration failed on platform '{platform.name.strip()}': {exc}",
                    stage="devices",
                    original_error=exc,
                ) from exc
            for device_index, handle in enumerate(handles):
                info = _describe_device(platform_index, platform, device_index, handle)
                if _matches(info.name, device_filter):
                    devices.append(ComputeDevice(info=info, handle=handle))
        logger.debug(f"Found {len(devices)} OpenCL device(s)")
        return devices

    def open_session(self, device: ComputeDevice) -> OpenCLSession:
        return OpenCLSession(device)
