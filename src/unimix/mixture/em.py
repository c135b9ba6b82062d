"""E-step, M-step and log-likelihood for a univariate Gaussian mixture.

Reference numpy implementation of one EM iteration:

1. E-step: responsibilities r_ik = w_k phi_ik / sum_j w_j phi_ij
2. M-step: S_k = sum_i r_ik, then means, then standard deviations around
   the new means, then weights S_k / N
3. Score: LL = sum_i log(sum_k w_k phi_ik) under the new parameters

The E-step computes columns 0..K-2 directly and derives the last column as
one minus the others, so every row sums to 1 by construction instead of
accumulating rounding from K independent divisions. Rows where the last
component's weighted density is exactly zero get a zero last column, so
a zero-weight component collapses the same way in every position.

The weighted density matrix of a parameter set is shared between the scorer
and the following E-step (see ``responsibilities_from_weighted`` and
``log_likelihood_from_weighted``).
"""

from __future__ import annotations

import numpy as np

from unimix.exceptions import DegenerateComponentError, NumericalInstabilityError
from unimix.mixture.density import weighted_densities
from unimix.mixture.params import MixtureParams


def check_normalizers(norm: np.ndarray, iteration: int | None = None) -> None:
    """Raise if any per-observation mixture density is unusable.

    Args:
        norm: Mixture density per observation (N,)
        iteration: 1-based iteration for error context

    Raises:
        NumericalInstabilityError: On the first zero, negative or non-finite entry.
    """
    bad = np.flatnonzero(~(np.isfinite(norm) & (norm > 0)))
    if bad.size:
        i = int(bad[0])
        raise NumericalInstabilityError(i, float(norm[i]), iteration=iteration)


def check_mass(mass: np.ndarray, iteration: int | None = None) -> None:
    """Raise if any component has zero responsibility mass S_k."""
    zero_mass = np.flatnonzero(~(mass > 0))
    if zero_mass.size:
        raise DegenerateComponentError(
            int(zero_mass[0]), iteration=iteration, reason="zero responsibility mass"
        )


def check_components(
    mass: np.ndarray,
    means: np.ndarray,
    sds: np.ndarray,
    iteration: int | None = None,
) -> None:
    """Raise if any component collapsed during an M-step.

    Args:
        mass: Responsibility mass S_k per component (K,)
        means: Updated means (K,)
        sds: Updated standard deviations (K,)
        iteration: 1-based iteration for error context

    Raises:
        DegenerateComponentError: If S_k is zero, or the updated mean or
            standard deviation of a component is not usable.
    """
    check_mass(mass, iteration)
    bad = np.flatnonzero(~(np.isfinite(means) & np.isfinite(sds) & (sds > 0)))
    if bad.size:
        k = int(bad[0])
        raise DegenerateComponentError(
            k,
            iteration=iteration,
            reason=f"mean={means[k]!r}, sd={sds[k]!r} (mass {mass[k]:.3e})",
        )


def responsibilities_from_weighted(
    weighted: np.ndarray, iteration: int | None = None
) -> np.ndarray:
    """E-step from a precomputed weighted density matrix.

    Args:
        weighted: w_k * phi(x_i; mu_k, sigma_k), shape (N, K)
        iteration: 1-based iteration for error context

    Returns:
        Responsibility matrix (N, K), non-negative, rows summing to 1.

    Raises:
        NumericalInstabilityError: If a row's normalizing constant is zero,
            negative or non-finite.
    """
    # One normalizing constant per row, reused for every column
    norm = weighted.sum(axis=1)
    check_normalizers(norm, iteration)

    resp = np.empty_like(weighted)
    resp[:, :-1] = weighted[:, :-1] / norm[:, None]
    # Last column by subtraction; clip round-off below zero
    resp[:, -1] = np.maximum(1.0 - resp[:, :-1].sum(axis=1), 0.0)
    # A zero weighted density gives exactly zero responsibility
    resp[weighted[:, -1] == 0.0, -1] = 0.0
    return resp


def e_step(
    x: np.ndarray, params: MixtureParams, iteration: int | None = None
) -> np.ndarray:
    """Posterior membership probabilities of each observation.

    Args:
        x: Observations (N,)
        params: Current parameter set (K components)
        iteration: 1-based iteration for error context

    Returns:
        Responsibility matrix (N, K)
    """
    return responsibilities_from_weighted(weighted_densities(x, params), iteration)


def m_step(
    x: np.ndarray, resp: np.ndarray, iteration: int | None = None
) -> MixtureParams:
    """Closed-form maximum-likelihood update from responsibilities.

    Means are finalized before the standard deviations, which are computed
    around the new means.

    Args:
        x: Observations (N,)
        resp: Responsibility matrix (N, K)
        iteration: 1-based iteration for error context

    Returns:
        New parameter set.

    Raises:
        ValueError: If resp does not have one row per observation.
        DegenerateComponentError: If a component's mass S_k is zero.
    """
    if resp.ndim != 2 or resp.shape[0] != x.shape[0]:
        raise ValueError(
            f"Responsibility matrix shape {resp.shape} does not match "
            f"{x.shape[0]} observations"
        )
    n = x.shape[0]

    mass = resp.sum(axis=0)
    check_mass(mass, iteration)

    means = (resp * x[:, None]).sum(axis=0) / mass
    dev = x[:, None] - means[None, :]
    sds = np.sqrt((resp * dev * dev).sum(axis=0) / mass)
    check_components(mass, means, sds, iteration)

    return MixtureParams(means=means, sds=sds, weights=mass / n)


def log_likelihood_from_weighted(
    weighted: np.ndarray, iteration: int | None = None
) -> float:
    """Total log-likelihood from a precomputed weighted density matrix.

    Raises:
        NumericalInstabilityError: If an observation has zero or non-finite
            mixture density.
    """
    norm = weighted.sum(axis=1)
    check_normalizers(norm, iteration)
    return float(np.sum(np.log(norm)))


def log_likelihood(
    x: np.ndarray, params: MixtureParams, iteration: int | None = None
) -> float:
    """Total log-likelihood sum_i log(sum_k w_k phi(x_i; mu_k, sigma_k)).

    Args:
        x: Observations (N,)
        params: Parameter set to score
        iteration: 1-based iteration for error context

    Returns:
        Log-likelihood as a Python float.
    """
    return log_likelihood_from_weighted(weighted_densities(x, params), iteration)


def em_steps(x: np.ndarray, params: MixtureParams):
    """Generate successive EM iterations starting from ``params``.

    Each yielded item is ``(resp, new_params, ll)`` for iterations 1, 2, ...:
    the E-step responsibilities, the M-step parameters computed from them,
    and the log-likelihood of the new parameters. The weighted densities
    used for scoring are carried into the next E-step.

    Args:
        x: Observations (N,)
        params: Initial parameter set (already validated)

    Yields:
        Tuple of (responsibilities, parameters, log-likelihood).
    """
    weighted = weighted_densities(x, params)
    iteration = 0
    while True:
        iteration += 1
        resp = responsibilities_from_weighted(weighted, iteration)
        params = m_step(x, resp, iteration)
        weighted = weighted_densities(x, params)
        ll = log_likelihood_from_weighted(weighted, iteration)
        yield resp, params, ll
