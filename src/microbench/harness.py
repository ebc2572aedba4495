"""
Benchmark Harness

Provides the microbenchmark harness: calibration, warmup, measurement
and aggregation of a zero-argument unit.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from microbench import reasons as reason_codes
from microbench.allocation import make_probe
from microbench.barrier import bind
from microbench.calibration import Calibrator
from microbench.clock import Clock, make_clock
from microbench.config import BenchmarkConfig
from microbench.exceptions import AllocationTrackingUnavailable, InsufficientSamples
from microbench.reasons import Reason, make_reason
from microbench.report import Report
from microbench.runner import SampleSet, TrialRunner
from microbench.stats import StatsAggregator

logger = logging.getLogger(__name__)


class BenchmarkHarness:
    """Harness for running micro-benchmarks.

    A run calibrates evals-per-sample, runs warmup samples, takes a
    short pass of allocation-tracked samples, collects timing samples
    until the target count or the time budget is reached, and reduces
    them into a Report. The unit runs
    synchronously on the calling thread; nothing is shared between
    runs, so independent harnesses may run on separate threads.

    Example:
        ```python
        config = BenchmarkConfig(target_samples=50)
        harness = BenchmarkHarness(config)

        report = harness.run(bind(sum, data))
        print(report.summary())
        ```
    """

    def __init__(self, config: Optional[BenchmarkConfig] = None) -> None:
        """Initialize benchmark harness.

        Args:
            config: Benchmark configuration (uses defaults if None).
        """
        self.config = config or BenchmarkConfig()
        self._aggregator = StatsAggregator()

    def run(self, unit: Callable[[], Any]) -> Report:
        """Benchmark a unit.

        Args:
            unit: Zero-argument callable. Its inputs should already be
                materialized and routed through an OpaqueBarrier.

        Returns:
            Report with per-invocation statistics.

        Raises:
            ClockError: If the platform timer is unavailable.
            UnitFailure: If the unit raises.
            InsufficientSamples: If fewer than ``min_viable_samples``
                samples fit in the time budget.
        """
        if not callable(unit):
            raise TypeError(f"Benchmark unit must be callable, got {type(unit).__name__}")

        config = self.config
        clock = make_clock(config)
        started = clock.now()
        deadline = started + int(config.max_total_time * 1e9)
        degradations: list[Reason] = []

        if clock.is_coarse():
            degradations.append(make_reason(
                reason_codes.CLOCK_RESOLUTION_COARSE,
                f"Timer resolution is {clock.resolution():.3g} s",
            ))

        probe = make_probe(config) if config.track_allocations else None
        runner = TrialRunner(config, clock, probe)
        calibration = Calibrator(config, clock).calibrate(
            lambda evals: runner.run_sample(unit, evals, phase="calibration").elapsed,
            deadline,
        )
        evals = calibration.evals_per_sample
        if calibration.degraded:
            degradations.append(make_reason(
                reason_codes.CALIBRATION_DEGRADED,
                f"Samples of {evals} evals lasted {calibration.sample_time:.3g} s, "
                f"below the {calibration.threshold:.3g} s threshold",
            ))

        runner.warmup(unit, evals, deadline)
        allocations = self._measure_allocations(runner, unit, evals, deadline, degradations)
        samples = runner.measure(unit, evals, deadline)

        total_time = Clock.elapsed(started, clock.now())

        if len(samples) < config.min_viable_samples:
            raise InsufficientSamples(
                len(samples), config.min_viable_samples, config.max_total_time
            )

        if len(samples) < config.target_samples:
            degradations.append(make_reason(
                reason_codes.BUDGET_EXHAUSTED,
                f"Collected {len(samples)} of {config.target_samples} samples "
                f"within {config.max_total_time:g} s",
            ))

        if degradations:
            logger.warning(
                "Benchmark degraded: %s", "; ".join(str(r) for r in degradations)
            )

        report = self._aggregator.aggregate(
            samples,
            total_time=total_time,
            reasons=degradations,
            allocations=allocations,
        )
        logger.debug("Benchmark finished: %s", report.summary())
        return report

    def _measure_allocations(
        self,
        runner: TrialRunner,
        unit: Callable[[], Any],
        evals: int,
        deadline: int,
        degradations: list[Reason],
    ) -> Optional[SampleSet]:
        # Timing samples run untraced; the probe is live only for this pass.
        probe = runner.probe
        if probe is None:
            return None

        try:
            probe.start()
        except AllocationTrackingUnavailable as e:
            degradations.append(make_reason(
                reason_codes.ALLOCATION_TRACKING_UNAVAILABLE, e.reason
            ))
            return None

        try:
            runner.measure_baseline()
            allocations = runner.measure_allocations(unit, evals, deadline)
        finally:
            probe.stop()

        if not allocations:
            degradations.append(make_reason(
                reason_codes.ALLOCATION_TRACKING_UNAVAILABLE,
                "Time budget ran out before allocation samples were taken",
            ))
            return None
        return allocations


def benchmark(
    unit: Callable[[], Any],
    config: Optional[BenchmarkConfig] = None,
    **overrides: Any,
) -> Report:
    """Benchmark a zero-argument unit.

    Args:
        unit: Unit to benchmark.
        config: Benchmark configuration (uses defaults if None).
        **overrides: Config fields to override for this run.

    Returns:
        Report with per-invocation statistics.
    """
    config = config or BenchmarkConfig()
    if overrides:
        config = config.with_overrides(**overrides)
    return BenchmarkHarness(config).run(unit)


def belapsed(
    fn: Callable[..., Any],
    *args: Any,
    config: Optional[BenchmarkConfig] = None,
    **kwargs: Any,
) -> float:
    """Benchmark ``fn(*args, **kwargs)`` and return seconds per call.

    Arguments are bound through an OpaqueBarrier. The returned time is
    the statistic named by ``config.estimator``.

    Example:
        ```python
        seconds = belapsed(operator.mul, a, b)
        ```
    """
    config = config or BenchmarkConfig()
    report = BenchmarkHarness(config).run(bind(fn, *args, **kwargs))
    return report.time(config.estimator)
