"""
Microbench Degradation Reasons

Structured reason codes explaining why a report is degraded.
A degraded report is still usable; each reason names the internal
limitation that made it less precise than requested.

This module provides:
- ReasonCategory: Categories of degradation reasons
- Reason: Frozen dataclass for structured reasons
- Individual reason code constants
- ALL_REASON_CODES: Mapping of all codes to their categories
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum, unique
from typing import Any


@unique
class ReasonCategory(str, Enum):
    """Categories of degradation reasons."""

    TIMER = "timer"
    MEMORY = "memory"
    CALIBRATION = "calibration"
    BUDGET = "budget"


@dataclass(frozen=True, slots=True)
class Reason:
    """Structured degradation reason.

    Attributes:
        code: Unique string identifier (SCREAMING_SNAKE_CASE)
        message: Human-readable description of the reason
        category: ReasonCategory for grouping
    """

    code: str
    message: str
    category: ReasonCategory

    def __str__(self) -> str:
        """Return formatted string representation."""
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON compatibility.

        Returns:
            Dict with 'code', 'message', 'category' keys.
        """
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Reason:
        """Deserialize from dictionary.

        Args:
            d: Dict with 'code', 'message', 'category' keys.

        Returns:
            New Reason instance.
        """
        return cls(
            code=d["code"],
            message=d["message"],
            category=ReasonCategory(d["category"]),
        )

    @classmethod
    def from_json(cls, json_str: str) -> Reason:
        """Deserialize from JSON string."""
        return cls.from_dict(json.loads(json_str))


# =============================================================================
# Timer Reason Codes
# =============================================================================

CLOCK_RESOLUTION_COARSE = "CLOCK_RESOLUTION_COARSE"
"""Platform timer resolution is coarser than one microsecond."""


# =============================================================================
# Memory Reason Codes
# =============================================================================

ALLOCATION_TRACKING_UNAVAILABLE = "ALLOCATION_TRACKING_UNAVAILABLE"
"""Allocator introspection failed; memory fields are unknown."""


# =============================================================================
# Calibration Reason Codes
# =============================================================================

CALIBRATION_DEGRADED = "CALIBRATION_DEGRADED"
"""Calibration stopped before a sample reached the minimum sample time."""


# =============================================================================
# Budget Reason Codes
# =============================================================================

BUDGET_EXHAUSTED = "BUDGET_EXHAUSTED"
"""Time budget ran out before the target sample count was reached."""


ALL_REASON_CODES: dict[str, ReasonCategory] = {
    CLOCK_RESOLUTION_COARSE: ReasonCategory.TIMER,
    ALLOCATION_TRACKING_UNAVAILABLE: ReasonCategory.MEMORY,
    CALIBRATION_DEGRADED: ReasonCategory.CALIBRATION,
    BUDGET_EXHAUSTED: ReasonCategory.BUDGET,
}


def make_reason(code: str, message: str) -> Reason:
    """Create a Reason with automatic category lookup.

    Args:
        code: Reason code string (must be in ALL_REASON_CODES).
        message: Human-readable message.

    Returns:
        New Reason instance with correct category.

    Raises:
        ValueError: If code is not found in ALL_REASON_CODES.
    """
    if code not in ALL_REASON_CODES:
        raise ValueError(f"Unknown reason code: {code}")
    return Reason(code=code, message=message, category=ALL_REASON_CODES[code])
