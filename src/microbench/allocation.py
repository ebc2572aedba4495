"""
Allocation probes.

This module provides:
- AllocSnapshot: Allocator state read at a sample boundary
- AllocationProbe: Host allocations traced with tracemalloc
- DeviceAllocationProbe: CUDA caching allocator counters via torch
- make_probe: Select the probe for a configuration
"""
from __future__ import annotations

import logging
import sys
import threading
import tracemalloc
from dataclasses import dataclass
from typing import Union

import torch

from microbench.config import BenchmarkConfig
from microbench.exceptions import AllocationTrackingUnavailable

logger = logging.getLogger(__name__)

# tracemalloc is process-wide; concurrent runs share one tracing session.
_tracing_lock = threading.Lock()
_tracing_users = 0
_tracing_owned = False


@dataclass(frozen=True, slots=True)
class AllocSnapshot:
    """Allocator state at one instant.

    Attributes:
        bytes_allocated: Bytes the allocator reports at this instant.
        peak_bytes: High-water mark since the last peak reset.
        alloc_count: Allocation count the allocator reports at this instant.
    """

    bytes_allocated: int
    peak_bytes: int
    alloc_count: int


class AllocationProbe:
    """Host allocation probe backed by tracemalloc.

    CPython keeps no cumulative allocation counters, so a sample is
    characterized by the traced high-water mark above the footprint it
    started from, and by the number of memory blocks it left alive.
    For a unit that releases what it allocates, the high-water mark is
    the memory a single invocation needs.

    Example:
        ```python
        probe = AllocationProbe()
        probe.start()
        try:
            before = probe.snapshot()
            work()
            after = probe.read()
            nbytes, count = probe.delta(before, after)
        finally:
            probe.stop()
        ```
    """

    name = "tracemalloc"

    def __init__(self) -> None:
        self._active = False

    @property
    def active(self) -> bool:
        """Whether this probe holds a tracing session."""
        return self._active

    def start(self) -> None:
        """Start tracing allocations, sharing any session already running.

        Raises:
            AllocationTrackingUnavailable: If tracing cannot be enabled.
        """
        global _tracing_users, _tracing_owned

        if self._active:
            return

        if sys.getallocatedblocks() == 0:
            raise AllocationTrackingUnavailable(
                self.name, "interpreter does not report allocated blocks"
            )

        with _tracing_lock:
            if not tracemalloc.is_tracing():
                try:
                    tracemalloc.start()
                except (RuntimeError, ValueError) as e:
                    raise AllocationTrackingUnavailable(self.name, str(e)) from e
                if not tracemalloc.is_tracing():
                    raise AllocationTrackingUnavailable(
                        self.name, "tracemalloc did not start"
                    )
                _tracing_owned = True
                logger.debug("Started tracemalloc for allocation tracking")
            _tracing_users += 1
        self._active = True

    def stop(self) -> None:
        """Release the tracing session, stopping it if this harness started it."""
        global _tracing_users, _tracing_owned

        if not self._active:
            return

        with _tracing_lock:
            _tracing_users -= 1
            if _tracing_users == 0 and _tracing_owned:
                tracemalloc.stop()
                _tracing_owned = False
                logger.debug("Stopped tracemalloc")
        self._active = False

    def snapshot(self) -> AllocSnapshot:
        """Reset the peak and read the current allocator state."""
        tracemalloc.reset_peak()
        current, peak = tracemalloc.get_traced_memory()
        return AllocSnapshot(current, peak, sys.getallocatedblocks())

    def delta(
        self,
        before: AllocSnapshot,
        after: AllocSnapshot,
        evals: int = 1,
        baseline: tuple[int, int] = (0, 0),
    ) -> tuple[int, int]:
        """Allocation attributed to the interval between two snapshots.

        Args:
            before: Snapshot taken before the sample.
            after: Snapshot taken after the sample (without a peak reset).
            evals: Invocations in the sample.
            baseline: Bytes and blocks the measurement plumbing itself
                accounts for, subtracted before normalizing.

        Returns:
            Tuple of (bytes, count), both non-negative.
        """
        nbytes = max(0, after.peak_bytes - before.bytes_allocated - baseline[0])
        count = max(0, after.alloc_count - before.alloc_count - baseline[1])
        return nbytes, count // evals

    def read(self) -> AllocSnapshot:
        """Read the allocator state without resetting the peak."""
        current, peak = tracemalloc.get_traced_memory()
        return AllocSnapshot(current, peak, sys.getallocatedblocks())


class DeviceAllocationProbe:
    """CUDA allocation probe backed by the torch caching allocator.

    The caching allocator keeps cumulative counters, so the figures for
    a sample are exact and divided evenly across its invocations.
    """

    name = "cuda"

    def __init__(self, device: str = "cuda") -> None:
        self._device = torch.device(device)
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        """Check the device can be introspected.

        Raises:
            AllocationTrackingUnavailable: If CUDA is not available.
        """
        if not torch.cuda.is_available():
            raise AllocationTrackingUnavailable(self.name, "CUDA is not available")
        self._active = True

    def stop(self) -> None:
        self._active = False

    def snapshot(self) -> AllocSnapshot:
        stats = torch.cuda.memory_stats(self._device)
        return AllocSnapshot(
            bytes_allocated=stats.get("allocated_bytes.all.allocated", 0),
            peak_bytes=stats.get("allocated_bytes.all.peak", 0),
            alloc_count=stats.get("allocation.all.allocated", 0),
        )

    read = snapshot

    def delta(
        self,
        before: AllocSnapshot,
        after: AllocSnapshot,
        evals: int = 1,
        baseline: tuple[int, int] = (0, 0),
    ) -> tuple[int, int]:
        """Per-invocation bytes and allocation count between two snapshots."""
        nbytes = max(0, after.bytes_allocated - before.bytes_allocated - baseline[0])
        count = max(0, after.alloc_count - before.alloc_count - baseline[1])
        return nbytes // evals, count // evals


Probe = Union[AllocationProbe, DeviceAllocationProbe]


def make_probe(config: BenchmarkConfig) -> Probe:
    """Select the allocation probe for a configuration."""
    if config.uses_cuda:
        return DeviceAllocationProbe(config.device)
    return AllocationProbe()
