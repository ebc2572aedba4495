"""
PyTest Configuration for Microbench Tests

Provides fixtures, markers, and test setup.
"""
import sys
from pathlib import Path

import pytest
import torch

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from microbench.config import BenchmarkConfig  # noqa: E402


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "gpu: mark test as requiring GPU")
    config.addinivalue_line("markers", "stress: mark test as stress test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(scope="session")
def has_cuda():
    """Check if CUDA is available."""
    try:
        return torch.cuda.is_available()
    except Exception:
        return False


@pytest.fixture
def fast_config() -> BenchmarkConfig:
    """Small configuration that keeps harness runs well under a second."""
    return BenchmarkConfig(
        min_sample_time=2e-4,
        target_samples=15,
        max_total_time=5.0,
        warmup_samples=1,
    )


@pytest.fixture
def untracked_config(fast_config: BenchmarkConfig) -> BenchmarkConfig:
    """Fast configuration without allocation tracking."""
    return fast_config.with_overrides(track_allocations=False)


@pytest.fixture
def random_seed() -> int:
    """Provide reproducible random seed."""
    seed = 42
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)
    return seed


@pytest.fixture
def matrix(random_seed: int) -> list[float]:
    """100x100 matrix of floats, row-major in a flat list."""
    return torch.rand(100 * 100, dtype=torch.float64).tolist()
