"""
Microbench - Microbenchmark Measurement Harness

Times a unit of work repeatedly and reports statistically sound,
allocation-aware results while keeping the measured work from being
folded away at compile time.

Main APIs:
- benchmark(): Benchmark a zero-argument unit and return a Report
- bind(): Build a unit whose arguments pass through an OpaqueBarrier
- belapsed(): Seconds per call of fn(*args) under the configured estimator
- compare(): Speedup and allocation delta between two reports
- sweep(): Benchmark a unit factory across problem sizes
"""

__version__ = "0.1.0"

from microbench.barrier import OpaqueBarrier, bind, opaque
from microbench.comparison import Comparison, compare, compare_units
from microbench.config import BenchmarkConfig, load_config
from microbench.exceptions import (
    AllocationTrackingUnavailable,
    ClockError,
    ConfigurationError,
    InsufficientSamples,
    MicrobenchError,
    UnitFailure,
)
from microbench.harness import BenchmarkHarness, belapsed, benchmark
from microbench.reasons import Reason, ReasonCategory
from microbench.report import Report
from microbench.suite import benchmark_suite, find_fastest, sweep

__all__ = [
    "__version__",
    # Harness
    "benchmark",
    "belapsed",
    "BenchmarkHarness",
    "BenchmarkConfig",
    "load_config",
    "Report",
    # Barrier
    "OpaqueBarrier",
    "bind",
    "opaque",
    # Comparison
    "Comparison",
    "compare",
    "compare_units",
    # Suites
    "benchmark_suite",
    "find_fastest",
    "sweep",
    # Reasons
    "Reason",
    "ReasonCategory",
    # Exceptions
    "MicrobenchError",
    "ClockError",
    "AllocationTrackingUnavailable",
    "UnitFailure",
    "InsufficientSamples",
    "ConfigurationError",
]
