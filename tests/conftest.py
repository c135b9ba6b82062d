"""Pytest fixtures for UNIMIX test suite."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import pytest

if TYPE_CHECKING:
    from unimix.simulate import SimulatedMixture
    from unimix.validation import ToleranceConfig

# =============================================================================
# Test Tier System
# =============================================================================
#
# tier0 - Fast Unit Tests (<5s each)
#   - Pure computation on small arrays, file I/O under tmp_path
#   - Run on every commit in CI
#   - Run: pytest -m tier0
#
# tier1 - Statistical Tests (<60s each)
#   - Parameter recovery over many restarts, numpy/JAX backend parity
#   - Run on PRs and merges
#   - Run: pytest -m tier1
#
# Quick reference:
#   pytest -m tier0             # Fast tests only
#   pytest -m "tier0 or tier1"  # Everything marked
#   pytest                      # All tests
# =============================================================================


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Create temporary output directory for test results.

    Args:
        tmp_path: pytest's temporary path fixture

    Returns:
        Path to output directory
    """
    out = tmp_path / "output"
    out.mkdir()
    return out


@pytest.fixture
def simulated() -> SimulatedMixture:
    """Three well-separated components, N=300, gap=6 (fixed seed)."""
    from unimix.simulate import simulate_mixture

    return simulate_mixture(k=3, n=300, gap=6.0, seed=20240611)


@pytest.fixture
def two_cluster_data() -> np.ndarray:
    """Small overlapping two-component sample for loop-level tests."""
    rng = np.random.default_rng(7)
    return np.concatenate([rng.normal(0.0, 1.0, 60), rng.normal(2.5, 1.0, 40)])


@pytest.fixture
def tolerance_config() -> ToleranceConfig:
    """Default tolerance configuration for parameter recovery.

    Returns:
        ToleranceConfig with default absolute tolerances
    """
    from unimix.validation import ToleranceConfig

    return ToleranceConfig()
