"""Custom exception hierarchy for the π benchmark.

Per-pair failures (kernel source missing, build failure, a failed launch) are
caught by the harness and turned into skipped rows. Runtime dispatch and
configuration failures propagate to the caller.
"""

from __future__ import annotations

from typing import Any, Optional


class BenchmarkError(Exception):
    """Base exception for all benchmark-related errors."""
    pass


class KernelSourceNotFoundError(BenchmarkError, FileNotFoundError):
    """Raised when a kernel source file cannot be read.

    Attributes:
        path: Path of the kernel source that was requested
    """

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path


class KernelCompilationError(BenchmarkError):
    """Raised when a kernel program fails to build for a device.

    Attributes:
        device_name: Name of the device the build targeted
        build_log: Full compiler output reported by the runtime
    """

    def __init__(self, message: str, device_name: str, build_log: str = ""):
        super().__init__(message)
        self.device_name = device_name
        self.build_log = build_log


class DeviceExecutionError(BenchmarkError):
    """Raised when a transfer, launch or readback fails for one strategy.

    Attributes:
        method: Method label of the strategy that failed
        device_name: Device the strategy was running on
        original_error: The runtime exception that caused the failure
    """

    def __init__(
        self,
        message: str,
        method: str,
        device_name: str,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.method = method
        self.device_name = device_name
        self.original_error = original_error


class RuntimeDispatchError(BenchmarkError):
    """Raised when platform/device enumeration or context setup fails.

    Attributes:
        stage: Stage that failed ('platforms', 'devices', 'context')
        original_error: The runtime exception that caused the failure
    """

    def __init__(
        self,
        message: str,
        stage: str,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.stage = stage
        self.original_error = original_error


class ConfigurationError(BenchmarkError):
    """Raised when benchmark configuration is invalid.

    Attributes:
        config_key: Configuration key that is invalid
        config_value: Invalid value
        reason: Reason for invalidity
    """

    def __init__(
        self,
        message: str,
        config_key: str,
        config_value: Any,
        reason: str,
    ):
        super().__init__(message)
        self.config_key = config_key
        self.config_value = config_value
        self.reason = reason
