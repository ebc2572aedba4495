"""
Report Comparison

Provides head-to-head comparison of benchmark reports.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from microbench.config import BenchmarkConfig
from microbench.harness import BenchmarkHarness
from microbench.report import Report, format_time
from microbench.stats import is_statistically_significant


@dataclass(frozen=True)
class Comparison:
    """Result of comparing two reports.

    Attributes:
        a: Report of the first unit.
        b: Report of the second unit.
        speedup_ratio: time(a) / time(b); above 1 means b is faster.
        allocation_delta: min_bytes(b) - min_bytes(a), None if unknown.
        winner: "a", "b" or "tie".
        significant: Whether the time difference is statistically significant.
        p_value: P-value from Welch's t-test on per-invocation times.
        estimator: Statistic the speedup was computed from.
    """

    a: Report
    b: Report
    speedup_ratio: float
    allocation_delta: Optional[int]
    winner: str
    significant: bool
    p_value: float = 1.0
    estimator: str = "median"

    def summary(self) -> str:
        """Generate summary string.

        Returns:
            Human-readable summary.
        """
        if self.allocation_delta is None:
            delta = "unknown"
        else:
            delta = f"{self.allocation_delta:+d} bytes"
        lines = [
            f"A:           {format_time(self.a.time(self.estimator))} ({self.estimator})",
            f"B:           {format_time(self.b.time(self.estimator))} ({self.estimator})",
            f"Speedup:     {self.speedup_ratio:.2f}x",
            f"Allocation:  {delta}",
            f"Winner:      {self.winner}",
            f"Significant: {self.significant} (p={self.p_value:.4f})",
        ]
        return "\n".join(lines)


def compare(
    report_a: Report,
    report_b: Report,
    *,
    estimator: str = "median",
    significance_threshold: float = 0.05,
    min_speedup_threshold: float = 1.05,
) -> Comparison:
    """Compare two benchmark reports.

    Args:
        report_a: First report.
        report_b: Second report.
        estimator: Statistic to compare ("median", "min" or "mean").
        significance_threshold: P-value threshold for significance.
        min_speedup_threshold: Minimum speedup to declare a winner.

    Returns:
        Comparison of the two reports.
    """
    time_a = report_a.time(estimator)
    time_b = report_b.time(estimator)

    if time_b > 0:
        speedup = time_a / time_b
    elif time_a > 0:
        speedup = float("inf")
    else:
        speedup = 1.0

    allocation_delta = None
    if report_a.memory_known and report_b.memory_known:
        allocation_delta = report_b.min_bytes - report_a.min_bytes

    significant, p_value = is_statistically_significant(
        list(report_a.times),
        list(report_b.times),
        p_threshold=significance_threshold,
    )

    if not significant:
        winner = "tie"
    elif speedup >= min_speedup_threshold:
        winner = "b"
    elif speedup <= 1 / min_speedup_threshold:
        winner = "a"
    else:
        winner = "tie"

    return Comparison(
        a=report_a,
        b=report_b,
        speedup_ratio=speedup,
        allocation_delta=allocation_delta,
        winner=winner,
        significant=significant,
        p_value=p_value,
        estimator=estimator,
    )


def compare_units(
    unit_a: Callable[[], Any],
    unit_b: Callable[[], Any],
    config: Optional[BenchmarkConfig] = None,
    **kwargs: Any,
) -> Comparison:
    """Benchmark two units with the same configuration and compare them.

    Example:
        ```python
        result = compare_units(
            bind(copy_back, matrix),
            bind(reverse_twice, matrix),
        )
        print(result.summary())
        ```
    """
    config = config or BenchmarkConfig()
    harness = BenchmarkHarness(config)

    report_a = harness.run(unit_a)
    report_b = harness.run(unit_b)

    return compare(report_a, report_b, estimator=config.estimator, **kwargs)
