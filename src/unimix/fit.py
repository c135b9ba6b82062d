"""Top-level fitting API for UNIMIX.

Provides a single-call entry point: validate the data, build starting
parameters, run EM once per restart and keep the best fit.

Example:
    >>> from unimix import fit_mixture
    >>> result = fit_mixture(data, k=3, n_restarts=5, seed=0, max_iter=1000)
    >>> print(f"{result.state.value} after {result.n_iter} iterations")
"""

from __future__ import annotations

import numpy as np
from loguru import logger

from unimix.core.config import EMConfig
from unimix.core.progress import progress_iterator
from unimix.exceptions import (
    ConfigurationError,
    DegenerateComponentError,
    FittingError,
    MonotonicityViolationError,
    NumericalInstabilityError,
)
from unimix.mixture.driver import run_em
from unimix.mixture.init import initial_params
from unimix.mixture.params import MixtureParams, as_observations
from unimix.mixture.results import FitResult

RESTARTABLE_ERRORS = (
    DegenerateComponentError,
    NumericalInstabilityError,
    MonotonicityViolationError,
)


def fit_mixture(
    data,
    k: int | None = None,
    *,
    init: MixtureParams | None = None,
    init_method: str = "uniform",
    n_restarts: int = 1,
    seed: int | np.random.Generator | None = None,
    threshold: float = 0.01,
    max_iter: int = 10,
    verbose: bool = False,
    ll_tolerance: float = 0.0,
    deadline_s: float | None = None,
    backend: str | None = None,
    show_progress: bool = False,
) -> FitResult:
    """Fit a K-component univariate Gaussian mixture.

    With ``init`` given, EM runs once from that parameter set. Otherwise
    ``n_restarts`` starting points are drawn with ``init_method`` and the fit
    with the highest final log-likelihood is returned. A restart that fails
    with a fitting error is logged and skipped; if every restart fails the
    last error is raised.

    Args:
        data: Observations (N,)
        k: Number of components. Required unless ``init`` is given.
        init: Explicit starting parameters. Disables restarts.
        init_method: "uniform" or "quantile" (see unimix.mixture.init).
        n_restarts: Number of independent EM runs.
        seed: Seed or Generator for the starting points.
        threshold: Convergence threshold on the log-likelihood change.
        max_iter: Iteration budget per run.
        verbose: Log every iteration at INFO.
        ll_tolerance: Allowed log-likelihood decrease. The larger of this and
            a 1e-12 relative round-off slack is used.
        deadline_s: Optional wall-clock budget per run, in seconds.
        backend: "numpy" or "jax"; None uses UNIMIX_BACKEND.
        show_progress: Show a progress bar over restarts.

    Returns:
        FitResult of the best run.

    Raises:
        InvalidParameterError: Invalid data or ``init``.
        ConfigurationError: Invalid options, or ``k`` disagrees with ``init``.
        FittingError: Every restart failed (the last failure is re-raised).
    """
    x = as_observations(data)
    config = EMConfig(
        threshold=threshold,
        max_iter=max_iter,
        verbose=verbose,
        ll_tolerance=ll_tolerance,
        deadline_s=deadline_s,
    ).validate()

    if init is not None:
        if k is not None and k != init.n_components:
            raise ConfigurationError(
                f"k={k} does not match the {init.n_components} components of init"
            )
        return run_em(x, init, config, backend=backend)

    if k is None:
        raise ConfigurationError("Either k or init must be given")
    if n_restarts < 1:
        raise ConfigurationError(f"n_restarts must be >= 1, got {n_restarts}")

    rng = np.random.default_rng(seed)
    starts = [initial_params(x, k, init_method, rng) for _ in range(n_restarts)]

    restarts = progress_iterator(
        enumerate(starts, start=1),
        total=n_restarts,
        enabled=show_progress and n_restarts > 1,
    )

    best: FitResult | None = None
    last_error: FittingError | None = None
    for i, start in restarts:
        try:
            result = run_em(x, start, config, backend=backend)
        except RESTARTABLE_ERRORS as e:
            logger.warning(f"Restart {i}/{n_restarts} failed: {e}")
            last_error = e
            continue
        logger.debug(
            f"Restart {i}/{n_restarts}: {result.state.value}, "
            f"log-likelihood {result.log_likelihood:.6f}"
        )
        if best is None or result.log_likelihood > best.log_likelihood:
            best = result

    if best is None:
        raise last_error

    if n_restarts > 1:
        logger.info(
            f"Best of {n_restarts} restarts: log-likelihood "
            f"{best.log_likelihood:.6f} ({best.state.value}, {best.n_iter} iterations)"
        )
    return best
