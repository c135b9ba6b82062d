"""UNIMIX: univariate Gaussian-mixture fitting by Expectation-Maximization.

UNIMIX fits a K-component one-dimensional Gaussian mixture with a
closed-form EM loop whose log-likelihood trace is checked to be
non-decreasing at every iteration.

Key features:
- Responsibilities that sum to exactly one per observation
- Distinct errors for invalid input, collapsed components, numerical
  breakdown and log-likelihood decreases
- numpy reference path and a JIT-compiled JAX path

Example:
    >>> from unimix import fit_mixture, simulate_mixture
    >>> sim = simulate_mixture(k=3, n=300, gap=6.0, seed=1)
    >>> result = fit_mixture(sim.observations, k=3, threshold=1e-3, max_iter=1000)
    >>> print(result.state.value, result.params.means)
"""

import sys
from importlib.metadata import version

from loguru import logger

__version__ = version("unimix")

# Configure loguru with sensible defaults on import
# Users can override by calling logger.remove()/add()
logger.remove()
logger.add(
    sys.stdout,
    level="INFO",
    format="{time:HH:mm:ss} | <level>{level: <8}</level> | {message}",
    colorize=True,
)

from unimix.core.config import EMConfig  # noqa: E402
from unimix.fit import fit_mixture  # noqa: E402
from unimix.mixture import FitResult, FitState, MixtureParams, run_em  # noqa: E402
from unimix.simulate import SimulatedMixture, simulate_mixture  # noqa: E402

__all__ = [
    "EMConfig",
    "FitResult",
    "FitState",
    "MixtureParams",
    "SimulatedMixture",
    "__version__",
    "fit_mixture",
    "run_em",
    "simulate_mixture",
]
