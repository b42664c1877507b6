"""Centralized default values for benchmark configuration.

This module provides a single source of truth for the defaults used by the
harness. Values can be overridden by passing them to BenchmarkConfig directly
or via CLI flags (e.g., --samples, --work-size, --strategy).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


# Samples handled by one work unit in the grouped kernels. Controls the
# compute-per-transferred-byte ratio; tunable, not derived.
DEFAULT_WORK_SIZE = 1000
DEFAULT_SAMPLE_COUNT = 20_000_000
DEFAULT_STRATEGIES = ["naive", "reduction", "coalesced", "zero_copy"]


@dataclass
class BenchmarkDefaults:
    """Centralized default values for benchmark configuration."""

    # Workload
    sample_count: int = DEFAULT_SAMPLE_COUNT
    work_size: int = DEFAULT_WORK_SIZE
    strategies: List[str] = field(default_factory=lambda: list(DEFAULT_STRATEGIES))

    # CPU baseline placement: "first" or "last"
    include_cpu: bool = True
    cpu_position: str = "last"

    # None reseeds every run from the wall clock
    seed: Optional[int] = None

    # Kernel sources (None = packaged kernels directory)
    kernel_dir: Optional[str] = None

    # Device selection (case-insensitive substring match)
    platform_filter: Optional[str] = None
    device_filter: Optional[str] = None

    # Output
    print_table: bool = True
    log_level: str = "INFO"


# Global instance - can be overridden for testing or custom configurations
_defaults = BenchmarkDefaults()


def get_defaults() -> BenchmarkDefaults:
    """Get the global BenchmarkDefaults instance."""
    return _defaults


def set_defaults(defaults: BenchmarkDefaults) -> None:
    """Set the global BenchmarkDefaults instance (useful for testing)."""
    global _defaults
    _defaults = defaults
