"""Starting parameter sets for EM.

- uniform: means drawn uniformly from [min(x), max(x)], every sd equal to the
  population sd of the data, equal weights. Different draws per restart.
- quantile: means at evenly spaced sample quantiles, same sds and weights.
  Deterministic.
"""

from __future__ import annotations

import numpy as np

from unimix.exceptions import ConfigurationError, InvalidParameterError
from unimix.mixture.params import MixtureParams

INIT_METHODS = ("uniform", "quantile")


def _spread(x: np.ndarray) -> float:
    sd = float(np.std(x))
    if not sd > 0:
        raise InvalidParameterError(
            "Cannot initialise components: all observations are identical",
            field="data",
        )
    return sd


def uniform_means_init(
    x: np.ndarray, k: int, rng: np.random.Generator
) -> MixtureParams:
    """Random means over the data range, data sd for every component."""
    sd = _spread(x)
    means = rng.uniform(float(np.min(x)), float(np.max(x)), size=k)
    return MixtureParams(
        means=means, sds=np.full(k, sd), weights=np.full(k, 1.0 / k)
    )


def quantile_init(x: np.ndarray, k: int) -> MixtureParams:
    """Means at the 1/(2K), 3/(2K), ... quantiles of the data."""
    sd = _spread(x)
    probs = (np.arange(k) + 0.5) / k
    return MixtureParams(
        means=np.quantile(x, probs), sds=np.full(k, sd), weights=np.full(k, 1.0 / k)
    )


def initial_params(
    x: np.ndarray, k: int, method: str, rng: np.random.Generator
) -> MixtureParams:
    """Dispatch to an initialisation method by name.

    Raises:
        ConfigurationError: Unknown method or k < 1.
    """
    if k < 1:
        raise ConfigurationError(f"Number of components must be >= 1, got {k}")
    if method == "uniform":
        return uniform_means_init(x, k, rng)
    if method == "quantile":
        return quantile_init(x, k)
    raise ConfigurationError(
        f"Unknown init method {method!r}, expected one of {', '.join(INIT_METHODS)}"
    )
