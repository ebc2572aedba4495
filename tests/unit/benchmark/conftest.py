"""Fixtures for benchmark harness tests."""
from __future__ import annotations

import pytest


class FakeClock:
    """Clock stand-in whose timestamps are set by the test."""

    def __init__(
        self,
        resolution: float = 1e-9,
        read_overhead: float = 5e-8,
        now_ns: int = 0,
    ) -> None:
        self._resolution = resolution
        self._read_overhead = read_overhead
        self.now_ns = now_ns

    def now(self) -> int:
        return self.now_ns

    def resolution(self) -> float:
        return self._resolution

    def read_overhead(self) -> float:
        return self._read_overhead

    def is_coarse(self) -> bool:
        return False

    @staticmethod
    def elapsed(start: int, end: int) -> float:
        return (end - start) / 1e9


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock frozen at t=0."""
    return FakeClock()


@pytest.fixture
def call_counter():
    """Unit that counts its invocations in ``unit.calls``."""
    def unit() -> None:
        unit.calls += 1

    unit.calls = 0
    return unit


@pytest.fixture
def clock_factory():
    """Build FakeClocks with chosen resolution and read overhead."""
    return FakeClock
