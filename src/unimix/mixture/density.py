"""Normal density evaluation.

The E-step and the log-likelihood scorer both start from the same (N, K)
matrix of weighted component densities ``w_k * phi(x_i; mu_k, sigma_k)``.
Far-tail evaluations underflow to exactly 0.0, which is a valid density
value; callers decide whether a zero mixture density is an error.
"""

from __future__ import annotations

import numpy as np

from unimix.exceptions import InvalidParameterError
from unimix.mixture.params import MixtureParams

SQRT_2PI = float(np.sqrt(2.0 * np.pi))


def normal_pdf(x, mu, sigma):
    """Normal probability density phi(x; mu, sigma).

    Broadcasts over numpy arrays; scalar inputs return a numpy float.

    Args:
        x: Observation(s)
        mu: Mean(s)
        sigma: Standard deviation(s), strictly positive

    Returns:
        1/(sigma*sqrt(2*pi)) * exp(-(x - mu)^2 / (2*sigma^2))

    Raises:
        InvalidParameterError: If any sigma is not strictly positive.
    """
    sigma = np.asarray(sigma, dtype=np.float64)
    if np.any(~(sigma > 0)):
        raise InvalidParameterError(
            f"sigma must be strictly positive, got {sigma}", field="sds"
        )
    z = (np.asarray(x, dtype=np.float64) - mu) / sigma
    # exp underflow to 0 is expected far from the mean
    with np.errstate(under="ignore"):
        return np.exp(-0.5 * z * z) / (sigma * SQRT_2PI)


def weighted_densities(x: np.ndarray, params: MixtureParams) -> np.ndarray:
    """Weighted component densities for every observation.

    Args:
        x: Observations (N,)
        params: Current parameter set with K components

    Returns:
        Matrix (N, K) with entry (i, k) = w_k * phi(x_i; mu_k, sigma_k)
    """
    dens = normal_pdf(x[:, None], params.means[None, :], params.sds[None, :])
    return dens * params.weights[None, :]
