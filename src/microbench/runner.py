"""
Trial Runner

Executes warmup and measured samples of a benchmarkable unit.

This module provides:
- Sample: One timed block of consecutive invocations
- SampleSet: Ordered samples of a single run
- TrialRunner: Runs timing samples and separately tracked allocation samples
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from microbench.allocation import Probe
from microbench.clock import Clock
from microbench.config import BenchmarkConfig
from microbench.exceptions import UnitFailure

logger = logging.getLogger(__name__)

# Empty samples taken to measure what the plumbing itself allocates.
BASELINE_SAMPLES = 5

# Tracked samples whose minimum gives the allocation figures.
ALLOCATION_SAMPLES = 5


@dataclass(frozen=True, slots=True)
class Sample:
    """One measured execution of ``evals`` invocations.

    Attributes:
        elapsed_ns: Wall time of the whole sample in nanoseconds.
        evals: Number of invocations in the sample.
        bytes_allocated: Bytes allocated per invocation.
        alloc_count: Allocations per invocation.
    """

    elapsed_ns: int
    evals: int
    bytes_allocated: int = 0
    alloc_count: int = 0

    def __post_init__(self) -> None:
        if self.evals < 1:
            raise ValueError("evals must be at least 1")
        if self.elapsed_ns < 0:
            raise ValueError("elapsed_ns must be non-negative")
        if self.bytes_allocated < 0 or self.alloc_count < 0:
            raise ValueError("allocation figures must be non-negative")

    @property
    def elapsed(self) -> float:
        """Wall time of the sample in seconds."""
        return self.elapsed_ns / 1e9

    @property
    def time_per_eval(self) -> float:
        """Seconds per invocation."""
        return self.elapsed_ns / self.evals / 1e9


class SampleSet:
    """Ordered samples produced by one benchmarking run.

    Every sample in a set shares the same ``evals``.
    """

    def __init__(self, evals: int) -> None:
        if evals < 1:
            raise ValueError("evals must be at least 1")
        self._evals = evals
        self._samples: list[Sample] = []

    @property
    def evals(self) -> int:
        return self._evals

    def append(self, sample: Sample) -> None:
        """Record a sample.

        Raises:
            ValueError: If the sample's evals differ from the set's.
        """
        if sample.evals != self._evals:
            raise ValueError(
                f"Sample has {sample.evals} evals, set requires {self._evals}"
            )
        self._samples.append(sample)

    def times(self) -> list[float]:
        """Per-invocation times in seconds, in recording order."""
        return [s.time_per_eval for s in self._samples]

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self._samples)

    def __getitem__(self, index: int) -> Sample:
        return self._samples[index]


def _noop() -> None:
    pass


class TrialRunner:
    """Runs samples of a benchmarkable unit.

    Timing samples read the clock, invoke the unit ``evals`` times back
    to back, then read the clock again. Allocation samples additionally
    read the probe outside that interval; they run in a separate pass so
    the probe's bookkeeping never lands in a timing sample. The time
    budget is only checked between samples.

    Example:
        ```python
        runner = TrialRunner(config, clock, probe)
        runner.warmup(unit, evals, deadline)
        allocations = runner.measure_allocations(unit, evals, deadline)
        samples = runner.measure(unit, evals, deadline)
        ```
    """

    def __init__(
        self,
        config: BenchmarkConfig,
        clock: Clock,
        probe: Optional[Probe] = None,
    ) -> None:
        """Initialize the runner.

        Args:
            config: Benchmark configuration.
            clock: Clock used to bracket samples.
            probe: Allocation probe for tracked samples, or None.
        """
        self.config = config
        self._clock = clock
        self._probe = probe
        self._baseline = (0, 0)

    @property
    def probe(self) -> Optional[Probe]:
        return self._probe

    @property
    def baseline(self) -> tuple[int, int]:
        """Bytes and blocks attributed to the plumbing of one sample."""
        return self._baseline

    def run_sample(
        self,
        unit: Callable[[], object],
        evals: int,
        phase: str = "measurement",
        tracked: bool = False,
    ) -> Sample:
        """Run one sample of ``evals`` invocations.

        Args:
            unit: Zero-argument unit to invoke.
            evals: Invocations in the sample.
            phase: Harness phase, reported if the unit fails.
            tracked: Read the allocation probe around the sample. The
                probe must have been started.

        Returns:
            The recorded Sample.

        Raises:
            UnitFailure: If the unit raises.
            ClockError: If the clock cannot be read.
        """
        probe = self._probe if tracked else None
        now = self._clock.now
        loop = itertools.repeat(None, evals)

        before = probe.snapshot() if probe is not None else None
        start = now()
        try:
            for _ in loop:
                unit()
        except Exception as e:
            raise UnitFailure(e, phase=phase) from e
        end = now()

        if probe is None:
            return Sample(end - start, evals)

        after = probe.read()
        nbytes, count = probe.delta(before, after, evals, self._baseline)
        return Sample(end - start, evals, nbytes, count)

    def measure_baseline(self) -> tuple[int, int]:
        """Measure what an empty tracked sample allocates.

        The minimum over a few empty samples is subtracted from every
        later tracked sample's allocation figures.
        """
        if self._probe is None:
            return self._baseline

        self._baseline = (0, 0)
        empty = [
            self.run_sample(_noop, 1, phase="baseline", tracked=True)
            for _ in range(BASELINE_SAMPLES)
        ]
        self._baseline = (
            min(s.bytes_allocated for s in empty),
            min(s.alloc_count for s in empty),
        )
        logger.debug(
            "Probe baseline: %d bytes, %d blocks", self._baseline[0], self._baseline[1]
        )
        return self._baseline

    def warmup(self, unit: Callable[[], object], evals: int, deadline_ns: int) -> int:
        """Run and discard warmup samples.

        Args:
            unit: Unit to warm up.
            evals: Invocations per sample.
            deadline_ns: Clock timestamp after which no sample starts.

        Returns:
            Number of warmup samples run.
        """
        ran = 0
        for _ in range(self.config.warmup_samples):
            if self._clock.now() >= deadline_ns:
                break
            self.run_sample(unit, evals, phase="warmup")
            ran += 1
        return ran

    def measure_allocations(
        self,
        unit: Callable[[], object],
        evals: int,
        deadline_ns: int,
    ) -> SampleSet:
        """Collect tracked samples for the allocation figures.

        Runs up to ``ALLOCATION_SAMPLES`` samples with the probe read
        around each one. Their times are inflated by the probe and are
        not used for timing statistics.

        Raises:
            ValueError: If the runner has no probe.
        """
        if self._probe is None:
            raise ValueError("Allocation samples need a probe")

        samples = SampleSet(evals)
        for _ in range(ALLOCATION_SAMPLES):
            if self._clock.now() >= deadline_ns:
                logger.debug("Time budget exhausted after %d allocation samples", len(samples))
                break
            samples.append(self.run_sample(unit, evals, phase="allocation", tracked=True))
        return samples

    def measure(
        self,
        unit: Callable[[], object],
        evals: int,
        deadline_ns: int,
    ) -> SampleSet:
        """Collect measured timing samples.

        Stops at ``target_samples`` or when the deadline passes,
        whichever comes first.

        Args:
            unit: Unit to measure.
            evals: Invocations per sample.
            deadline_ns: Clock timestamp after which no sample starts.

        Returns:
            SampleSet with the collected samples.
        """
        samples = SampleSet(evals)
        target = self.config.target_samples
        while len(samples) < target:
            if self._clock.now() >= deadline_ns:
                logger.debug(
                    "Time budget exhausted after %d of %d samples", len(samples), target
                )
                break
            samples.append(self.run_sample(unit, evals))
        return samples
