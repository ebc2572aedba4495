"""
Benchmark Clock

Monotonic nanosecond time source used to bracket samples.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import torch

from microbench.config import BenchmarkConfig
from microbench.exceptions import ClockError

logger = logging.getLogger(__name__)

# Resolutions coarser than this degrade the report.
COARSE_RESOLUTION = 1e-6

_OVERHEAD_PROBES = 200


class Clock:
    """Monotonic high-resolution clock.

    Timestamps are integer nanoseconds from ``time.perf_counter_ns``.
    When a synchronizer is given it runs before every read, so that
    asynchronous device work queued by the benchmarked unit is
    charged to the sample that queued it.

    Example:
        ```python
        clock = Clock()
        start = clock.now()
        work()
        seconds = clock.elapsed(start, clock.now())
        ```
    """

    def __init__(self, sync: Optional[Callable[[], None]] = None) -> None:
        """Initialize the clock.

        Args:
            sync: Optional barrier run before each timestamp read.

        Raises:
            ClockError: If the platform timer is unavailable or not monotonic.
        """
        try:
            info = time.get_clock_info("perf_counter")
        except (OSError, ValueError) as e:
            raise ClockError(str(e)) from e

        if not info.monotonic:
            raise ClockError("perf_counter is not monotonic on this platform")

        self._sync = sync
        self._resolution = max(float(info.resolution), 1e-9)
        self._read_overhead: float | None = None

    @property
    def synchronized(self) -> bool:
        """Whether reads synchronize a device first."""
        return self._sync is not None

    def now(self) -> int:
        """Read the current timestamp in nanoseconds.

        Raises:
            ClockError: If the timer cannot be read.
        """
        if self._sync is not None:
            self._sync()
        try:
            return time.perf_counter_ns()
        except OSError as e:
            raise ClockError(str(e)) from e

    def resolution(self) -> float:
        """Smallest interval the platform timer distinguishes, in seconds."""
        return self._resolution

    def read_overhead(self) -> float:
        """Minimum observed cost of one timestamp read, in seconds.

        Measured once on first use and cached.
        """
        if self._read_overhead is None:
            best = None
            for _ in range(_OVERHEAD_PROBES):
                t0 = self.now()
                t1 = self.now()
                while t1 == t0:
                    t1 = self.now()
                delta = t1 - t0
                if best is None or delta < best:
                    best = delta
            self._read_overhead = best / 1e9
            logger.debug("Clock read overhead: %.1f ns", best)
        return self._read_overhead

    def is_coarse(self) -> bool:
        """Whether the timer resolution is too coarse for microbenchmarks."""
        return self._resolution > COARSE_RESOLUTION

    @staticmethod
    def elapsed(start: int, end: int) -> float:
        """Seconds between two timestamps."""
        return (end - start) / 1e9


def make_clock(config: BenchmarkConfig) -> Clock:
    """Build the clock for a run.

    Args:
        config: Benchmark configuration.

    Returns:
        Clock that synchronizes CUDA when requested and available.
    """
    sync = None
    if config.sync_cuda and torch.cuda.is_available():
        sync = torch.cuda.synchronize
    return Clock(sync=sync)
