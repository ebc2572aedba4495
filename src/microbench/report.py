"""
Benchmark Report

Read-only result of one benchmarking run.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from microbench.reasons import Reason

_TIME_UNITS = (
    (1.0, "s"),
    (1e-3, "ms"),
    (1e-6, "μs"),
    (1e-9, "ns"),
)

_BYTE_UNITS = ("bytes", "KiB", "MiB", "GiB", "TiB")


def format_time(seconds: float) -> str:
    """Format a duration with a unit suited to its magnitude.

    Example:
        >>> format_time(0.0000123)
        '12.300 μs'
    """
    for scale, unit in _TIME_UNITS:
        if seconds >= scale:
            return f"{seconds / scale:.3f} {unit}"
    return f"{seconds / 1e-9:.3f} ns"


def format_bytes(nbytes: int) -> str:
    """Format a byte count using binary prefixes.

    Example:
        >>> format_bytes(80128)
        '78.25 KiB'
    """
    if nbytes < 1024:
        return f"{nbytes} bytes"
    value = float(nbytes)
    for unit in _BYTE_UNITS[1:]:
        value /= 1024
        if value < 1024:
            break
    return f"{value:.2f} {unit}"


@dataclass(frozen=True)
class Report:
    """Result of a benchmark run.

    Times are per invocation, in seconds: each sample's elapsed time is
    divided by its evals before aggregation. Timing samples run without
    allocation tracing; the memory fields come from a separate pass of
    tracked samples.

    Attributes:
        min_time: Fastest per-invocation time.
        median_time: Median per-invocation time (canonical "typical" time).
        mean_time: Mean per-invocation time.
        max_time: Slowest per-invocation time.
        std_time: Population standard deviation of per-invocation times.
        min_bytes: Minimum bytes allocated per invocation, None if unknown.
            On the host this is the peak one invocation needs.
        alloc_count: Minimum allocations per invocation, None if unknown.
            On the host this counts memory blocks an invocation leaves
            alive, so a unit that frees its temporaries reports 0 even
            when ``min_bytes`` is large. On CUDA it counts every
            allocation made.
        sample_count: Number of measured samples.
        evals_per_sample: Invocations per sample.
        total_time: Wall time the harness spent on the run, in seconds.
        degraded: Whether an internal limitation affected the run.
        reasons: Why the run is degraded.
        times: Per-invocation time of every sample, in recording order.
    """

    min_time: float
    median_time: float
    mean_time: float
    max_time: float
    std_time: float
    min_bytes: Optional[int]
    alloc_count: Optional[int]
    sample_count: int
    evals_per_sample: int
    total_time: float
    degraded: bool = False
    reasons: tuple[Reason, ...] = ()
    times: tuple[float, ...] = ()

    @property
    def memory_known(self) -> bool:
        """Whether allocation figures were measured."""
        return self.min_bytes is not None

    @property
    def reason_codes(self) -> list[str]:
        return [r.code for r in self.reasons]

    def time(self, estimator: str = "median") -> float:
        """Per-invocation time under the given estimator.

        Args:
            estimator: "median", "min" or "mean".

        Raises:
            ValueError: If the estimator is unknown.
        """
        if estimator == "median":
            return self.median_time
        if estimator == "min":
            return self.min_time
        if estimator == "mean":
            return self.mean_time
        raise ValueError(f"Unknown estimator: {estimator}")

    def summary(self) -> str:
        """Generate a one-line summary.

        Returns:
            Human-readable summary.
        """
        if self.memory_known:
            memory = f"{self.alloc_count} allocations: {format_bytes(self.min_bytes)}"
        else:
            memory = "allocations unknown"
        line = (
            f"{format_time(self.median_time)} "
            f"(median of {self.sample_count} samples x {self.evals_per_sample} evals, "
            f"{memory})"
        )
        if self.degraded:
            codes = ", ".join(self.reason_codes) or "unspecified"
            line += f" [degraded: {codes}]"
        return line

    def __str__(self) -> str:
        return self.summary()

    def to_dict(self) -> dict[str, Any]:
        """Convert report to dictionary."""
        return {
            "min_time": self.min_time,
            "median_time": self.median_time,
            "mean_time": self.mean_time,
            "max_time": self.max_time,
            "std_time": self.std_time,
            "min_bytes": self.min_bytes,
            "alloc_count": self.alloc_count,
            "sample_count": self.sample_count,
            "evals_per_sample": self.evals_per_sample,
            "total_time": self.total_time,
            "degraded": self.degraded,
            "reasons": [r.to_dict() for r in self.reasons],
            "times": list(self.times),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Report":
        """Create report from dictionary."""
        return cls(
            min_time=data["min_time"],
            median_time=data["median_time"],
            mean_time=data["mean_time"],
            max_time=data["max_time"],
            std_time=data["std_time"],
            min_bytes=data.get("min_bytes"),
            alloc_count=data.get("alloc_count"),
            sample_count=data["sample_count"],
            evals_per_sample=data["evals_per_sample"],
            total_time=data["total_time"],
            degraded=data.get("degraded", False),
            reasons=tuple(Reason.from_dict(r) for r in data.get("reasons", [])),
            times=tuple(data.get("times", [])),
        )
