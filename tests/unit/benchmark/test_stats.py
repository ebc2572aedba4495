"""Tests for benchmark statistics."""
from __future__ import annotations

import math

import pytest

from microbench.reasons import BUDGET_EXHAUSTED, make_reason
from microbench.runner import Sample, SampleSet
from microbench.stats import (
    StatsAggregator,
    calculate_mean,
    calculate_percentile,
    calculate_std,
    calculate_variance,
    is_statistically_significant,
)


def make_samples(elapsed: list[int], evals: int = 1, memory=None) -> SampleSet:
    samples = SampleSet(evals)
    for i, ns in enumerate(elapsed):
        nbytes, count = memory[i] if memory else (0, 0)
        samples.append(Sample(ns, evals, nbytes, count))
    return samples


class TestPercentile:
    """Tests for calculate_percentile."""

    def test_median_odd(self) -> None:
        assert calculate_percentile([3.0, 1.0, 2.0], 50) == 2.0

    def test_median_even_interpolates(self) -> None:
        assert calculate_percentile([1.0, 2.0, 3.0, 4.0], 50) == pytest.approx(2.5)

    def test_extremes(self) -> None:
        values = [5.0, 1.0, 9.0]

        assert calculate_percentile(values, 0) == 1.0
        assert calculate_percentile(values, 100) == 9.0

    def test_single_value(self) -> None:
        assert calculate_percentile([7.0], 95) == 7.0

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValueError):
            calculate_percentile([], 50)

    def test_out_of_range_rejected(self) -> None:
        with pytest.raises(ValueError):
            calculate_percentile([1.0], 101)


class TestMoments:
    """Tests for mean, variance and std."""

    def test_mean(self) -> None:
        assert calculate_mean([1.0, 2.0, 3.0]) == pytest.approx(2.0)

    def test_population_variance(self) -> None:
        """Variance divides by n, not n - 1."""
        assert calculate_variance([1.0, 3.0]) == pytest.approx(1.0)

    def test_std(self) -> None:
        assert calculate_std([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]) == pytest.approx(2.0)

    def test_std_single_value(self) -> None:
        assert calculate_std([1.5]) == 0.0

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValueError):
            calculate_mean([])
        with pytest.raises(ValueError):
            calculate_variance([])


class TestSignificance:
    """Tests for is_statistically_significant."""

    def test_clearly_different(self) -> None:
        a = [1.0, 1.1, 0.9, 1.0, 1.05]
        b = [2.0, 2.1, 1.9, 2.0, 2.05]

        significant, p_value = is_statistically_significant(a, b)

        assert significant is True
        assert p_value < 0.05

    def test_same_distribution(self) -> None:
        a = [1.0, 1.2, 0.8, 1.1, 0.9]

        significant, p_value = is_statistically_significant(a, list(a))

        assert significant is False
        assert p_value == pytest.approx(1.0)

    def test_too_few_samples(self) -> None:
        assert is_statistically_significant([1.0], [2.0]) == (False, 1.0)

    def test_constant_samples(self) -> None:
        assert is_statistically_significant([1.0, 1.0], [1.0, 1.0]) == (False, 1.0)
        assert is_statistically_significant([1.0, 1.0], [2.0, 2.0]) == (True, 0.0)


class TestStatsAggregator:
    """Tests for StatsAggregator."""

    def test_per_invocation_times(self) -> None:
        """Sample times are divided by evals before aggregation."""
        samples = make_samples([4_000, 8_000, 6_000], evals=4)

        report = StatsAggregator().aggregate(samples, total_time=0.5)

        assert report.min_time == pytest.approx(1e-6)
        assert report.median_time == pytest.approx(1.5e-6)
        assert report.max_time == pytest.approx(2e-6)
        assert report.mean_time == pytest.approx(1.5e-6)
        assert report.evals_per_sample == 4
        assert report.sample_count == 3
        assert report.total_time == 0.5
        assert report.times == (
            pytest.approx(1e-6),
            pytest.approx(2e-6),
            pytest.approx(1.5e-6),
        )

    def test_time_ordering(self) -> None:
        samples = make_samples([5_000, 1_000, 9_000, 3_000, 7_000])

        report = StatsAggregator().aggregate(samples, total_time=1.0)

        assert report.min_time <= report.median_time <= report.max_time
        assert report.min_time <= report.mean_time <= report.max_time
        assert report.std_time >= 0

    def test_memory_is_minimum(self) -> None:
        """Stray allocations in a few samples do not inflate memory."""
        allocations = make_samples(
            [1_000, 1_000, 1_000],
            memory=[(512, 3), (256, 1), (4096, 9)],
        )

        report = StatsAggregator().aggregate(
            make_samples([1_000]), total_time=1.0, allocations=allocations
        )

        assert report.min_bytes == 256
        assert report.alloc_count == 1
        assert report.memory_known is True

    def test_memory_unknown(self) -> None:
        report = StatsAggregator().aggregate(make_samples([1_000]), total_time=1.0)

        assert report.min_bytes is None
        assert report.alloc_count is None
        assert report.memory_known is False

    def test_reasons_mark_degraded(self) -> None:
        reason = make_reason(BUDGET_EXHAUSTED, "ran out")

        report = StatsAggregator().aggregate(
            make_samples([1_000]), total_time=1.0, reasons=[reason]
        )

        assert report.degraded is True
        assert report.reasons == (reason,)

    def test_not_degraded_without_reasons(self) -> None:
        report = StatsAggregator().aggregate(make_samples([1_000]), total_time=1.0)

        assert report.degraded is False
        assert report.reasons == ()

    def test_empty_rejected(self) -> None:
        with pytest.raises(ValueError):
            StatsAggregator().aggregate(SampleSet(1), total_time=0.0)

    def test_identical_samples_zero_std(self) -> None:
        report = StatsAggregator().aggregate(make_samples([2_000] * 4), total_time=1.0)

        assert report.std_time == pytest.approx(0.0, abs=1e-15)
        assert math.isclose(report.median_time, report.min_time)

    def test_times_ignore_allocation_samples(self) -> None:
        """Slow tracked samples never reach the timing statistics."""
        allocations = make_samples([50_000, 60_000], memory=[(64, 0), (64, 0)])

        report = StatsAggregator().aggregate(
            make_samples([1_000, 2_000, 3_000]), total_time=1.0, allocations=allocations
        )

        assert report.max_time == pytest.approx(3e-6)
        assert report.sample_count == 3
        assert report.min_bytes == 64

    def test_empty_allocations_mean_unknown(self) -> None:
        report = StatsAggregator().aggregate(
            make_samples([1_000]), total_time=1.0, allocations=SampleSet(1)
        )

        assert report.memory_known is False
