"""
Benchmark Suites

Runs several units, or one unit over a range of problem sizes,
sequentially on the calling thread.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional, TypeVar

from microbench.config import BenchmarkConfig
from microbench.harness import BenchmarkHarness
from microbench.report import Report

logger = logging.getLogger(__name__)

SizeT = TypeVar("SizeT")


def benchmark_suite(
    units: dict[str, Callable[[], Any]],
    config: Optional[BenchmarkConfig] = None,
) -> dict[str, Report]:
    """Benchmark named units one after another.

    Args:
        units: Dictionary mapping names to units.
        config: Benchmark configuration.

    Returns:
        Dictionary mapping names to reports.
    """
    harness = BenchmarkHarness(config)
    results = {}

    for name, unit in units.items():
        logger.debug("Benchmarking %s", name)
        results[name] = harness.run(unit)

    return results


def find_fastest(
    units: dict[str, Callable[[], Any]],
    config: Optional[BenchmarkConfig] = None,
) -> tuple[str, Report]:
    """Find the fastest unit from a set of candidates.

    Args:
        units: Dictionary mapping names to units.
        config: Benchmark configuration.

    Returns:
        Tuple of (name, report) for the fastest unit under the
        configured estimator.
    """
    if not units:
        raise ValueError("No units to compare")

    config = config or BenchmarkConfig()
    results = benchmark_suite(units, config)

    fastest = min(results, key=lambda k: results[k].time(config.estimator))
    return fastest, results[fastest]


def sweep(
    factory: Callable[[SizeT], Callable[[], Any]],
    sizes: Iterable[SizeT],
    config: Optional[BenchmarkConfig] = None,
) -> dict[SizeT, Report]:
    """Benchmark a unit across problem sizes.

    ``factory(n)`` materializes the inputs for size ``n`` and returns
    the unit to benchmark; input construction is not timed.

    Example:
        ```python
        reports = sweep(
            lambda n: bind(torch.mm, torch.rand(n, n), torch.rand(n, n)),
            [2**k for k in range(2, 8)],
        )
        ```
    """
    harness = BenchmarkHarness(config)
    results = {}

    for size in sizes:
        unit = factory(size)
        results[size] = harness.run(unit)
        logger.debug("Size %s: %s", size, results[size].summary())

    return results
