"""
Statistical Analysis for Benchmarks

Provides statistical functions and the reduction of samples into a report.
"""
from __future__ import annotations

import math
from typing import Optional, Sequence

from microbench.reasons import Reason
from microbench.report import Report
from microbench.runner import SampleSet


def calculate_percentile(values: list[float], percentile: float) -> float:
    """Calculate percentile value from a list.

    Uses linear interpolation between data points.

    Args:
        values: List of numeric values.
        percentile: Percentile to calculate (0-100).

    Returns:
        The percentile value.

    Raises:
        ValueError: If values is empty or percentile is out of range.
    """
    if not values:
        raise ValueError("Cannot calculate percentile of empty list")

    if not 0 <= percentile <= 100:
        raise ValueError("Percentile must be between 0 and 100")

    sorted_values = sorted(values)
    n = len(sorted_values)

    if n == 1:
        return sorted_values[0]

    index = (percentile / 100) * (n - 1)
    lower = int(index)
    upper = lower + 1

    if upper >= n:
        return sorted_values[-1]

    fraction = index - lower
    return sorted_values[lower] * (1 - fraction) + sorted_values[upper] * fraction


def calculate_mean(values: list[float]) -> float:
    """Calculate mean.

    Raises:
        ValueError: If values is empty.
    """
    if not values:
        raise ValueError("Cannot calculate mean of empty list")

    return sum(values) / len(values)


def calculate_variance(values: list[float]) -> float:
    """Calculate population variance.

    Args:
        values: List of numeric values.

    Returns:
        Population variance.

    Raises:
        ValueError: If values is empty.
    """
    if not values:
        raise ValueError("Cannot calculate variance of empty list")

    mean = calculate_mean(values)
    return sum((x - mean) ** 2 for x in values) / len(values)


def calculate_std(values: list[float]) -> float:
    """Calculate population standard deviation."""
    return math.sqrt(calculate_variance(values))


def is_statistically_significant(
    a: list[float],
    b: list[float],
    p_threshold: float = 0.05,
) -> tuple[bool, float]:
    """Check if difference between distributions is statistically significant.

    Uses Welch's t-test for unequal variances, with a normal
    approximation for the p-value.

    Args:
        a: First distribution samples.
        b: Second distribution samples.
        p_threshold: P-value threshold for significance.

    Returns:
        Tuple of (is_significant, p_value).
    """
    if len(a) < 2 or len(b) < 2:
        return False, 1.0

    mean_a = calculate_mean(a)
    mean_b = calculate_mean(b)

    var_a = calculate_variance(a)
    var_b = calculate_variance(b)

    # Identical constant samples: significant only if the constants differ
    if var_a == 0 and var_b == 0:
        if mean_a == mean_b:
            return False, 1.0
        return True, 0.0

    se_total = var_a / len(a) + var_b / len(b)
    t_stat = abs(mean_a - mean_b) / math.sqrt(se_total)

    p_value = 2 * (1 - _normal_cdf(t_stat))

    return p_value < p_threshold, p_value


def _normal_cdf(x: float) -> float:
    """Standard normal CDF."""
    return 0.5 * (1 + math.erf(x / math.sqrt(2)))


class StatsAggregator:
    """Reduces a SampleSet into a Report.

    Times are normalized per invocation before aggregation. The median
    is the canonical typical time since scheduling noise skews sample
    times to the right; the minimum is reported alongside it. Memory
    comes from the separately tracked allocation samples and is the
    minimum across them, which drops stray one-off allocations.
    """

    def aggregate(
        self,
        samples: SampleSet,
        *,
        total_time: float,
        reasons: Sequence[Reason] = (),
        allocations: Optional[SampleSet] = None,
    ) -> Report:
        """Build the report for a run.

        Args:
            samples: Measured samples (at least one).
            total_time: Wall time spent on the run in seconds.
            reasons: Degradation reasons collected during the run.
            allocations: Tracked samples carrying allocation figures, or
                None if memory was not measured.

        Returns:
            Report with per-invocation statistics.

        Raises:
            ValueError: If the sample set is empty.
        """
        if not len(samples):
            raise ValueError("Cannot aggregate an empty sample set")

        times = samples.times()

        min_bytes = None
        alloc_count = None
        if allocations:
            min_bytes = min(s.bytes_allocated for s in allocations)
            alloc_count = min(s.alloc_count for s in allocations)

        return Report(
            min_time=min(times),
            median_time=calculate_percentile(times, 50),
            mean_time=calculate_mean(times),
            max_time=max(times),
            std_time=calculate_std(times),
            min_bytes=min_bytes,
            alloc_count=alloc_count,
            sample_count=len(samples),
            evals_per_sample=samples.evals,
            total_time=total_time,
            degraded=bool(reasons),
            reasons=tuple(reasons),
            times=tuple(times),
        )
