"""Synthetic clustered data for evaluating mixture fits.

Draws N observations from K Normal components whose means are spaced
``gap`` apart, together with the ground truth needed to score a fit.

Example:
    >>> from unimix.simulate import simulate_mixture
    >>> sim = simulate_mixture(k=3, n=300, gap=6.0, seed=1)
    >>> sim.observations.shape, sim.truth.n_components
    ((300,), 3)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from unimix.exceptions import ConfigurationError
from unimix.mixture.params import MixtureParams

# Symmetric Dirichlet concentration for the true mixing weights
WEIGHT_CONCENTRATION = 5.0


@dataclass
class SimulatedMixture:
    """Synthetic observations with ground truth.

    Attributes:
        observations: Drawn values (N,)
        labels: Generating component of each observation (N,)
        truth: Parameters the data was drawn from.
        empirical_weights: Realised component proportions of ``labels`` (K,)
    """

    observations: np.ndarray
    labels: np.ndarray
    truth: MixtureParams
    empirical_weights: np.ndarray


def simulate_mixture(
    k: int,
    n: int,
    gap: float = 6.0,
    *,
    sd_range: tuple[float, float] = (0.5, 1.5),
    seed: int | np.random.Generator | None = None,
) -> SimulatedMixture:
    """Draw observations from K well-separated Normal components.

    Means are ``gap * (0, 1, ..., K-1)``, standard deviations are uniform in
    ``sd_range`` and mixing weights come from a symmetric Dirichlet.

    Args:
        k: Number of components (>= 1).
        n: Number of observations (>= k).
        gap: Distance between consecutive means.
        sd_range: (low, high) bounds for the standard deviations, low > 0.
        seed: Seed or Generator for reproducibility.

    Returns:
        SimulatedMixture with observations, labels and truth.

    Raises:
        ConfigurationError: If k, n, gap or sd_range are out of range.
    """
    if k < 1:
        raise ConfigurationError(f"k must be >= 1, got {k}")
    if n < k:
        raise ConfigurationError(f"n must be >= k ({k}), got {n}")
    if not gap > 0:
        raise ConfigurationError(f"gap must be positive, got {gap}")
    low, high = sd_range
    if not 0 < low <= high:
        raise ConfigurationError(
            f"sd_range must satisfy 0 < low <= high, got {sd_range}"
        )

    rng = np.random.default_rng(seed)

    means = gap * np.arange(k, dtype=np.float64)
    sds = rng.uniform(low, high, size=k)
    weights = rng.dirichlet(np.full(k, WEIGHT_CONCENTRATION)) if k > 1 else np.ones(1)

    labels = rng.choice(k, size=n, p=weights)
    observations = rng.normal(means[labels], sds[labels])
    empirical = np.bincount(labels, minlength=k) / n

    return SimulatedMixture(
        observations=observations,
        labels=labels,
        truth=MixtureParams(means=means, sds=sds, weights=weights),
        empirical_weights=empirical,
    )
