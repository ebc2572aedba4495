"""
Calibration

Chooses how many invocations each sample runs.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from microbench.clock import Clock
from microbench.config import BenchmarkConfig

logger = logging.getLogger(__name__)

# Clock resolution and read overhead must each stay below 0.1% of a sample.
RESOLUTION_FACTOR = 1000


@dataclass(frozen=True)
class CalibrationResult:
    """Outcome of calibration.

    Attributes:
        evals_per_sample: Invocations per sample for the whole run.
        threshold: Sample duration (seconds) calibration aimed for.
        degraded: True if no probe reached the threshold.
        probes: (evals, elapsed seconds) for every calibration probe.
    """

    evals_per_sample: int
    threshold: float
    degraded: bool = False
    probes: tuple[tuple[int, float], ...] = ()

    @property
    def sample_time(self) -> float:
        """Duration of the accepted probe in seconds."""
        return self.probes[-1][1] if self.probes else 0.0


class Calibrator:
    """Geometric search for evals-per-sample.

    Starts at one invocation and doubles until a sample lasts at least
    the threshold. Per-invocation cost spans many orders of magnitude,
    so doubling reaches the right count in a logarithmic number of
    probes. The search stops early at ``max_evals`` or at the run's
    deadline, accepting the largest count tried and flagging the
    result as degraded.
    """

    def __init__(self, config: BenchmarkConfig, clock: Clock) -> None:
        self.config = config
        self._clock = clock

    def threshold(self) -> float:
        """Minimum sample duration in seconds."""
        return max(
            self.config.min_sample_time,
            RESOLUTION_FACTOR * self._clock.resolution(),
            RESOLUTION_FACTOR * self._clock.read_overhead(),
        )

    def calibrate(
        self,
        measure: Callable[[int], float],
        deadline_ns: Optional[int] = None,
    ) -> CalibrationResult:
        """Find evals-per-sample.

        Args:
            measure: Runs one sample of the given evals and returns its
                duration in seconds.
            deadline_ns: Optional clock timestamp ending the search.

        Returns:
            CalibrationResult for the run.
        """
        threshold = self.threshold()
        max_evals = self.config.max_evals
        probes: list[tuple[int, float]] = []
        evals = 1

        while True:
            elapsed = measure(evals)
            probes.append((evals, elapsed))

            if elapsed >= threshold:
                logger.debug(
                    "Calibrated %d evals/sample (%.3g s >= %.3g s) in %d probes",
                    evals, elapsed, threshold, len(probes),
                )
                return CalibrationResult(evals, threshold, False, tuple(probes))

            if evals >= max_evals:
                logger.debug("Calibration hit max_evals=%d at %.3g s", max_evals, elapsed)
                break
            if deadline_ns is not None and self._clock.now() >= deadline_ns:
                logger.debug("Calibration ran out of time at %d evals", evals)
                break

            evals = min(evals * 2, max_evals)

        return CalibrationResult(evals, threshold, True, tuple(probes))
