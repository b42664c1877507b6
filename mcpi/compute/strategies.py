"""Kernel strategies: how samples are split across work units and moved.

All four strategies share one runner. They differ in the kernel source, the
number of samples each work unit reduces, and whether buffers are copied or
mapped.

| Strategy  | Units  | Samples/unit | Access pattern            | Transfer        |
|-----------|--------|--------------|---------------------------|-----------------|
| naive     | N      | 1            | one read/write per unit   | copy in/out     |
| reduction | N/W    | W            | strided per unit          | copy in/out     |
| coalesced | N/W    | W            | float2, adjacent per unit | copy in/out     |
| zero_copy | N/W    | W            | as coalesced              | host-mapped     |
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Union

from mcpi.benchmark.exceptions import ConfigurationError


class Strategy(str, Enum):
    """Execution/memory strategy for the device kernels."""
    NAIVE = "naive"
    REDUCTION = "reduction"
    COALESCED = "coalesced"
    ZERO_COPY = "zero_copy"


@dataclass(frozen=True)
class StrategySpec:
    """Everything the generic runner needs to know about one strategy."""

    strategy: Strategy
    method: str
    kernel_file: str
    kernel_name: str
    samples_per_unit: int
    zero_copy: bool = False

    def unit_count(self, sample_count: int) -> int:
        """Work units needed to cover ``sample_count`` samples (rounded up)."""
        return -(-sample_count // self.samples_per_unit)

    def padded_sample_count(self, sample_count: int) -> int:
        return self.unit_count(sample_count) * self.samples_per_unit


_METHODS = {
    Strategy.NAIVE: "OCL naive",
    Strategy.REDUCTION: "OCL reduction",
    Strategy.COALESCED: "OCL Coalesced",
    Strategy.ZERO_COPY: "OCL ZeroCopy",
}

# zero-copy reuses the coalesced kernel
_KERNELS = {
    Strategy.NAIVE: ("pi_naive.cl", "pi_naive"),
    Strategy.REDUCTION: ("pi_reduction.cl", "pi_reduction"),
    Strategy.COALESCED: ("pi_coalesced.cl", "pi_coalesced"),
    Strategy.ZERO_COPY: ("pi_coalesced.cl", "pi_coalesced"),
}


def describe(strategy: Union[Strategy, str], work_size: int) -> StrategySpec:
    """Build the StrategySpec for ``strategy`` with ``work_size`` samples per grouped unit."""
    strategy = parse_strategy(strategy)
    if work_size < 1:
        raise ConfigurationError(
            f"work_size must be >= 1, got {work_size}",
            config_key="work_size",
            config_value=work_size,
            reason="non-positive work size",
        )
    kernel_file, kernel_name = _KERNELS[strategy]
    return StrategySpec(
        strategy=strategy,
        method=_METHODS[strategy],
        kernel_file=kernel_file,
        kernel_name=kernel_name,
        samples_per_unit=1 if strategy is Strategy.NAIVE else work_size,
        zero_copy=strategy is Strategy.ZERO_COPY,
    )


def parse_strategy(value: Union[Strategy, str]) -> Strategy:
    """Accept enum members, values and common spellings ('zero-copy', 'ZeroCopy')."""
    if isinstance(value, Strategy):
        return value
    normalized = str(value).strip().lower().replace("-", "_")
    if normalized == "zerocopy":
        normalized = Strategy.ZERO_COPY.value
    try:
        return Strategy(normalized)
    except ValueError as exc:
        choices = ", ".join(s.value for s in Strategy)
        raise ConfigurationError(
            f"Unknown strategy '{value}'. Expected one of: {choices}",
            config_key="strategies",
            config_value=value,
            reason="unknown strategy",
        ) from exc


def parse_strategies(values: Iterable[Union[Strategy, str]]) -> List[Strategy]:
    return [parse_strategy(v) for v in values]
