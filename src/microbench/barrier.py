"""
Opaque Barrier

Keeps benchmarked values out of reach of compile-time constant folding.

CPython folds constant expressions while compiling: ``lambda: 1 + 2``
compiles to a function returning the constant ``3`` and never adds
anything. Routing operands through an OpaqueBarrier makes them runtime
loads the compiler cannot see through, and routing results into its
sink keeps every invocation's output observable.
"""
from __future__ import annotations

from typing import Any, Callable


class OpaqueBarrier:
    """Runtime indirection for benchmark inputs and outputs.

    ``wrap(v)`` is semantically the identity, but the value is written
    to a storage cell and read back through a call, so no literal
    reaches the benchmarked expression. ``sink(v)`` records a result so
    the work producing it is never provably unused.

    Example:
        ```python
        barrier = OpaqueBarrier()
        a = barrier.wrap(1.0)
        b = barrier.wrap(2.0)
        unit = lambda: barrier.sink(a + b)
        ```
    """

    __slots__ = ("_cell", "_sunk")

    def __init__(self) -> None:
        self._cell: Any = None
        self._sunk: Any = None

    def wrap(self, value: Any) -> Any:
        """Return ``value`` through the opaque storage cell."""
        self._cell = value
        return self._load()

    def _load(self) -> Any:
        value = self._cell
        self._cell = None
        return value

    def sink(self, value: Any) -> None:
        """Consume a benchmarked result."""
        self._sunk = value

    @property
    def last_result(self) -> Any:
        """Most recent value passed to ``sink``."""
        return self._sunk

    def bind(
        self,
        fn: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Callable[[], None]:
        """Build a zero-argument unit calling ``fn`` with opaque arguments.

        Arguments are materialized once, passed through ``wrap`` and held
        by the unit alone, so several units may share one barrier. The
        call's result goes to ``sink``.

        Args:
            fn: Function to benchmark.
            *args: Positional arguments for ``fn``.
            **kwargs: Keyword arguments for ``fn``.

        Returns:
            Benchmarkable unit.
        """
        bound_args = tuple(self.wrap(a) for a in args)
        bound_kwargs = {k: self.wrap(v) for k, v in kwargs.items()}
        barrier = self

        if bound_kwargs:
            def unit() -> None:
                barrier._sunk = fn(*bound_args, **bound_kwargs)
        else:
            def unit() -> None:
                barrier._sunk = fn(*bound_args)

        unit.barrier = barrier  # type: ignore[attr-defined]
        unit.__qualname__ = f"bind({getattr(fn, '__qualname__', repr(fn))})"
        return unit


def opaque(value: Any) -> Any:
    """Return ``value`` through a fresh OpaqueBarrier."""
    return OpaqueBarrier().wrap(value)


def bind(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Callable[[], None]:
    """Build a benchmarkable unit with its own OpaqueBarrier.

    Equivalent to interpolating every argument into the benchmarked
    expression: the values are fixed before benchmarking starts, but
    the unit reads them at run time.

    Example:
        ```python
        report = benchmark(bind(operator.add, 1.0, 2.0))
        ```
    """
    return OpaqueBarrier().bind(fn, *args, **kwargs)
