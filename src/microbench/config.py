"""
Benchmark configuration.

This module provides:
- BenchmarkConfig: Options recognized by the benchmark harness
- load_config: Load a BenchmarkConfig from a YAML file
"""
from __future__ import annotations

import dataclasses
import os
import re
from dataclasses import dataclass
from typing import Any, Callable

import yaml

from microbench.exceptions import ConfigurationError

ESTIMATORS = ("median", "min", "mean")

_DEVICE_PATTERN = re.compile(r"^(cpu|cuda(:\d+)?)$")


@dataclass(frozen=True)
class BenchmarkConfig:
    """Configuration for a benchmark run.

    All durations are in seconds.

    Attributes:
        min_sample_time: Duration a sample must reach before calibration
            accepts its evals-per-sample count.
        target_samples: Desired number of measured samples.
        max_total_time: Hard ceiling on harness wall time, covering
            calibration, warmup and measurement.
        warmup_samples: Samples run and discarded before measurement.
        track_allocations: Whether to probe allocations around samples.
        max_evals: Upper bound on evals-per-sample during calibration.
        min_viable_samples: Fewer measured samples than this is an error.
        estimator: Statistic treated as the canonical time
            ("median", "min" or "mean").
        sync_cuda: Whether to synchronize CUDA around clock reads.
        device: "cpu" for host allocation tracking, "cuda" or "cuda:N"
            for the CUDA caching allocator.

    Example:
        config = BenchmarkConfig(
            min_sample_time=0.0005,
            target_samples=50,
            track_allocations=False,
        )
    """

    min_sample_time: float = 0.001
    target_samples: int = 100
    max_total_time: float = 5.0
    warmup_samples: int = 1
    track_allocations: bool = True
    max_evals: int = 2**20
    min_viable_samples: int = 3
    estimator: str = "median"
    sync_cuda: bool = True
    device: str = "cpu"

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.min_sample_time <= 0:
            raise ConfigurationError(
                "min_sample_time must be positive",
                config_key="min_sample_time",
                expected="> 0",
                got=self.min_sample_time,
            )
        if self.max_total_time <= 0:
            raise ConfigurationError(
                "max_total_time must be positive",
                config_key="max_total_time",
                expected="> 0",
                got=self.max_total_time,
            )
        if self.target_samples < 1:
            raise ConfigurationError(
                "target_samples must be at least 1",
                config_key="target_samples",
                expected=">= 1",
                got=self.target_samples,
            )
        if self.warmup_samples < 0:
            raise ConfigurationError(
                "warmup_samples must be non-negative",
                config_key="warmup_samples",
                expected=">= 0",
                got=self.warmup_samples,
            )
        if self.max_evals < 1:
            raise ConfigurationError(
                "max_evals must be at least 1",
                config_key="max_evals",
                expected=">= 1",
                got=self.max_evals,
            )
        if not 1 <= self.min_viable_samples <= self.target_samples:
            raise ConfigurationError(
                "min_viable_samples must be between 1 and target_samples",
                config_key="min_viable_samples",
                expected=f"1..{self.target_samples}",
                got=self.min_viable_samples,
            )
        if self.estimator not in ESTIMATORS:
            raise ConfigurationError(
                f"Unknown estimator: {self.estimator}",
                config_key="estimator",
                expected=ESTIMATORS,
                got=self.estimator,
            )
        if not _DEVICE_PATTERN.match(self.device):
            raise ConfigurationError(
                f"Unsupported device: {self.device}",
                config_key="device",
                expected="cpu, cuda or cuda:N",
                got=self.device,
            )

    @property
    def uses_cuda(self) -> bool:
        """Whether allocations are tracked on a CUDA device."""
        return self.device.startswith("cuda")

    def with_overrides(self, **overrides: Any) -> "BenchmarkConfig":
        """Return a copy with the given fields replaced.

        Raises:
            ConfigurationError: If an override names an unknown option.
        """
        _check_keys(overrides)
        return dataclasses.replace(self, **overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BenchmarkConfig":
        """Create config from dictionary.

        Args:
            data: Mapping of option name to value.

        Returns:
            BenchmarkConfig instance.

        Raises:
            ConfigurationError: If the mapping contains unknown options.
        """
        _check_keys(data)
        return cls(**data)

    @classmethod
    def from_env(cls) -> "BenchmarkConfig":
        """Create config from environment variables.

        Environment variables:
            MICROBENCH_MIN_SAMPLE_TIME: Minimum sample time in seconds
            MICROBENCH_TARGET_SAMPLES: Desired sample count
            MICROBENCH_MAX_TOTAL_TIME: Time budget in seconds
            MICROBENCH_WARMUP_SAMPLES: Discarded warmup samples
            MICROBENCH_TRACK_ALLOCATIONS: "0" or "false" to disable
            MICROBENCH_MAX_EVALS: Calibration cap on evals per sample
            MICROBENCH_ESTIMATOR: median, min or mean
            MICROBENCH_DEVICE: cpu, cuda or cuda:N

        Returns:
            BenchmarkConfig with values from environment.

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """
        defaults = cls()

        track_str = os.environ.get("MICROBENCH_TRACK_ALLOCATIONS", "1")
        track_allocations = track_str.lower() not in ("0", "false", "no")

        return cls(
            min_sample_time=_env_number(
                "MICROBENCH_MIN_SAMPLE_TIME", float, defaults.min_sample_time
            ),
            target_samples=_env_number(
                "MICROBENCH_TARGET_SAMPLES", int, defaults.target_samples
            ),
            max_total_time=_env_number(
                "MICROBENCH_MAX_TOTAL_TIME", float, defaults.max_total_time
            ),
            warmup_samples=_env_number(
                "MICROBENCH_WARMUP_SAMPLES", int, defaults.warmup_samples
            ),
            track_allocations=track_allocations,
            max_evals=_env_number("MICROBENCH_MAX_EVALS", int, defaults.max_evals),
            estimator=os.environ.get("MICROBENCH_ESTIMATOR", defaults.estimator),
            device=os.environ.get("MICROBENCH_DEVICE", defaults.device),
        )


def _env_number(name: str, convert: Callable[[str], Any], default: Any) -> Any:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return convert(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid value for {name}: {raw!r}",
            config_key=name,
            expected=convert.__name__,
            got=raw,
        ) from e


def _check_keys(data: dict[str, Any]) -> None:
    known = {f.name for f in dataclasses.fields(BenchmarkConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(
            f"Unknown benchmark options: {unknown}",
            config_key=unknown[0],
            expected=sorted(known),
            got=unknown,
        )


def load_config(path: str) -> BenchmarkConfig:
    """Load a benchmark configuration from a YAML file.

    Args:
        path: Path to YAML configuration file.

    Returns:
        BenchmarkConfig built from the file.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ConfigurationError: If config file is invalid.

    YAML format::

        min_sample_time: 0.0005
        target_samples: 200
        max_total_time: 10.0
        track_allocations: false
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        return BenchmarkConfig()

    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid config file format: {path}")

    return BenchmarkConfig.from_dict(data)
