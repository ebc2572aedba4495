"""
Microbench Exception Hierarchy

Fatal conditions raised by the benchmark harness. Recoverable
degradations are reported through ``microbench.reasons`` instead.
"""
from __future__ import annotations

from typing import Any, Optional


class MicrobenchError(Exception):
    """Base exception for all microbench errors.

    All microbench-specific exceptions inherit from this class,
    allowing users to catch all harness errors with a single
    except clause.

    Attributes:
        message: Human-readable error description.
        context: Optional dict of additional context for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        """Initialize MicrobenchError.

        Args:
            message: Error message.
            context: Optional context dict.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        ctx_str = f", context={self.context}" if self.context else ""
        return f"{self.__class__.__name__}({self.message!r}{ctx_str})"


class ClockError(MicrobenchError):
    """Raised when the platform timer cannot be used.

    This aborts the whole run: without a monotonic clock no
    measurement is meaningful.

    Attributes:
        reason: Why the clock is unusable.
    """

    def __init__(
        self,
        reason: str,
        *,
        message: Optional[str] = None,
    ) -> None:
        """Initialize ClockError.

        Args:
            reason: Why the clock is unusable.
            message: Optional custom message.
        """
        self.reason = reason

        if message is None:
            message = f"Benchmark clock unavailable: {reason}"

        super().__init__(message, context={"reason": reason})


class AllocationTrackingUnavailable(MicrobenchError):
    """Raised by an allocation probe that cannot introspect the allocator.

    The harness catches this and degrades the run, reporting memory
    as unknown.

    Attributes:
        probe: Name of the probe that failed.
        reason: Why allocation tracking is unavailable.
    """

    def __init__(
        self,
        probe: str,
        reason: str,
        *,
        message: Optional[str] = None,
    ) -> None:
        """Initialize AllocationTrackingUnavailable.

        Args:
            probe: Probe identifier.
            reason: Why tracking is unavailable.
            message: Optional custom message.
        """
        self.probe = probe
        self.reason = reason

        if message is None:
            message = f"Allocation tracking unavailable for '{probe}': {reason}"

        super().__init__(message, context={"probe": probe, "reason": reason})


class UnitFailure(MicrobenchError):
    """Raised when the benchmarked unit fails.

    Wraps the original exception from the unit. The partial sample
    set is discarded and no report is produced.

    Attributes:
        original_error: The underlying exception.
        phase: Harness phase in which the unit failed
            ("calibration", "warmup", "allocation" or "measurement").
    """

    def __init__(
        self,
        original_error: BaseException,
        *,
        phase: str = "measurement",
        message: Optional[str] = None,
    ) -> None:
        """Initialize UnitFailure.

        Args:
            original_error: The original exception.
            phase: Harness phase during which the failure occurred.
            message: Optional custom message.
        """
        self.original_error = original_error
        self.phase = phase

        if message is None:
            message = f"Benchmarked unit failed during {phase}: {original_error!r}"

        super().__init__(
            message,
            context={
                "phase": phase,
                "error_type": type(original_error).__name__,
                "error_message": str(original_error),
            },
        )
        self.__cause__ = original_error


class InsufficientSamples(MicrobenchError):
    """Raised when the time budget ran out before enough samples were taken.

    Attributes:
        collected: Number of measured samples obtained.
        required: Minimum viable sample count.
        budget: Total time budget in seconds.
    """

    def __init__(
        self,
        collected: int,
        required: int,
        budget: float,
        *,
        message: Optional[str] = None,
    ) -> None:
        """Initialize InsufficientSamples.

        Args:
            collected: Samples obtained before the budget ran out.
            required: Minimum viable sample count.
            budget: Time budget in seconds.
            message: Optional custom message.
        """
        self.collected = collected
        self.required = required
        self.budget = budget

        if message is None:
            message = (
                f"Collected {collected} of at least {required} samples "
                f"within the {budget:g}s time budget"
            )

        super().__init__(
            message,
            context={
                "collected": collected,
                "required": required,
                "budget": budget,
            },
        )


class ConfigurationError(MicrobenchError):
    """Raised when a benchmark configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected: Optional[Any] = None,
        got: Optional[Any] = None,
    ) -> None:
        """Initialize ConfigurationError.

        Args:
            message: Error message.
            config_key: The configuration key with the error.
            expected: Expected value or type.
            got: Actual value received.
        """
        self.config_key = config_key
        self.expected = expected
        self.got = got

        super().__init__(
            message,
            context={
                "config_key": config_key,
                "expected": expected,
                "got": got,
            },
        )
