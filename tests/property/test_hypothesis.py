"""Property-based tests using Hypothesis for Microbench.

Tests invariants of the statistics, calibration and formatting across
random inputs.
"""
from __future__ import annotations

import pytest
from hypothesis import HealthCheck, assume, given, settings, strategies as st

from microbench.barrier import bind, opaque
from microbench.calibration import Calibrator
from microbench.config import BenchmarkConfig
from microbench.harness import benchmark
from microbench.report import format_bytes, format_time
from microbench.runner import Sample, SampleSet
from microbench.stats import StatsAggregator, calculate_percentile


class StillClock:
    """Clock pinned at t=0 with a nanosecond timer."""

    def now(self) -> int:
        return 0

    def resolution(self) -> float:
        return 1e-9

    def read_overhead(self) -> float:
        return 1e-8


elapsed_lists = st.lists(st.integers(0, 10**9), min_size=1, max_size=50)


class TestStatsProperties:
    """Properties of sample aggregation."""

    @given(elapsed=elapsed_lists, evals=st.integers(1, 10**6))
    @settings(max_examples=100)
    def test_order_statistics(self, elapsed: list[int], evals: int) -> None:
        """min <= median <= max and min <= mean <= max."""
        samples = SampleSet(evals)
        for ns in elapsed:
            samples.append(Sample(ns, evals))

        report = StatsAggregator().aggregate(samples, total_time=1.0)

        tolerance = 1e-12 * max(report.max_time, 1e-300)
        assert report.min_time <= report.median_time <= report.max_time
        assert report.min_time - tolerance <= report.mean_time <= report.max_time + tolerance
        assert report.std_time >= 0
        assert report.sample_count == len(elapsed)

    @given(
        memory=st.lists(
            st.tuples(st.integers(0, 10**7), st.integers(0, 1000)),
            min_size=1,
            max_size=30,
        )
    )
    @settings(max_examples=100)
    def test_memory_is_minimum(self, memory: list[tuple[int, int]]) -> None:
        samples = SampleSet(1)
        for nbytes, count in memory:
            samples.append(Sample(1_000, 1, nbytes, count))

        report = StatsAggregator().aggregate(samples, total_time=1.0)

        assert report.min_bytes == min(b for b, _ in memory)
        assert report.alloc_count == min(c for _, c in memory)

    @given(
        values=st.lists(st.floats(0, 1e6, allow_nan=False), min_size=1, max_size=50),
        p=st.floats(0, 100),
    )
    @settings(max_examples=100)
    def test_percentile_within_range(self, values: list[float], p: float) -> None:
        result = calculate_percentile(values, p)

        slack = 1e-9 * max(values)
        assert min(values) - slack <= result <= max(values) + slack


class TestCalibrationProperties:
    """Properties of the evals-per-sample search."""

    @given(cost=st.floats(1e-9, 1e-2), min_sample_time=st.floats(1e-5, 1e-2))
    @settings(max_examples=200)
    def test_smallest_sufficient_count(self, cost: float, min_sample_time: float) -> None:
        """The accepted count reaches the threshold and its half does not."""
        config = BenchmarkConfig(min_sample_time=min_sample_time)
        calibrator = Calibrator(config, StillClock())
        threshold = calibrator.threshold()
        assume(threshold / cost < config.max_evals / 2)

        result = calibrator.calibrate(lambda evals: evals * cost)
        evals = result.evals_per_sample

        assert not result.degraded
        assert evals * cost >= threshold
        assert evals == 1 or (evals // 2) * cost < threshold

    @given(max_evals=st.integers(1, 4096))
    @settings(max_examples=50)
    def test_never_exceeds_max_evals(self, max_evals: int) -> None:
        config = BenchmarkConfig(max_evals=max_evals)

        result = Calibrator(config, StillClock()).calibrate(lambda evals: 0.0)

        assert result.evals_per_sample == max_evals
        assert all(evals <= max_evals for evals, _ in result.probes)
        assert result.degraded


class TestBarrierProperties:
    """Properties of the opaque barrier."""

    @given(value=st.one_of(st.integers(), st.floats(allow_nan=False), st.text(), st.none()))
    def test_opaque_identity(self, value) -> None:
        assert opaque(value) is value


class TestFormattingProperties:
    """Properties of report formatting."""

    @given(seconds=st.floats(0, 1e4, allow_nan=False))
    def test_format_time_units(self, seconds: float) -> None:
        assert format_time(seconds).rsplit(" ", 1)[1] in ("s", "ms", "μs", "ns")

    @given(nbytes=st.integers(0, 2**50))
    def test_format_bytes_units(self, nbytes: int) -> None:
        unit = format_bytes(nbytes).rsplit(" ", 1)[1]

        assert unit in ("bytes", "KiB", "MiB", "GiB", "TiB")


class TestMonotonicMedian:
    """More work per call yields a larger median."""

    @pytest.mark.slow
    @given(size=st.integers(200, 2000))
    @settings(
        max_examples=5,
        deadline=None,
        suppress_health_check=[HealthCheck.too_slow],
    )
    def test_double_work_is_slower(self, size: int) -> None:
        data = list(range(size))

        def once(xs: list[int]) -> int:
            return sum(xs)

        def twice(xs: list[int]) -> int:
            return sum(xs) + sum(xs)

        config = BenchmarkConfig(
            min_sample_time=5e-4,
            target_samples=21,
            track_allocations=False,
        )

        cheap = benchmark(bind(once, data), config)
        expensive = benchmark(bind(twice, data), config)

        assert expensive.median_time > cheap.median_time
