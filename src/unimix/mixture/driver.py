"""Convergence driver for univariate Gaussian-mixture EM.

Runs E-step, M-step and score repeatedly until the log-likelihood stops
changing, the iteration budget runs out, or an optional deadline passes.
The log-likelihood trace must be non-decreasing: EM guarantees it for exact
arithmetic, so a decrease aborts the run with MonotonicityViolationError.
A drop no larger than floating-point round-off of the log-likelihood
(``LL_ROUNDING_RTOL`` relative to its magnitude) is accepted, and counts
as a change for the convergence test like any other.

State is threaded explicitly through an ``EMTrace`` accumulator:

    RUNNING --(|ll_i - ll_{i-1}| <= threshold)--> CONVERGED
    RUNNING --(i == max_iter)--> MAX_ITER_REACHED
    RUNNING --(elapsed > deadline_s)--> DEADLINE_REACHED
    RUNNING --(ll_i < ll_{i-1} - allowed_decrease)--> DIVERGED (raises)
"""

from __future__ import annotations

import time

import numpy as np
from loguru import logger

from unimix.core.backend import resolve_backend
from unimix.core.config import EMConfig
from unimix.exceptions import InvalidParameterError, MonotonicityViolationError
from unimix.mixture.em import em_steps
from unimix.mixture.params import MixtureParams, as_observations
from unimix.mixture.results import EMTrace, FitResult, FitState

# Relative round-off allowed on a log-likelihood decrease
LL_ROUNDING_RTOL = 1e-12


def allowed_decrease(previous: float, config: EMConfig) -> float:
    """Largest log-likelihood decrease that is not a monotonicity violation.

    The larger of ``config.ll_tolerance`` and ``LL_ROUNDING_RTOL * |previous|``.
    """
    return max(config.ll_tolerance, LL_ROUNDING_RTOL * abs(previous))


def advance(trace: EMTrace, ll: float, config: EMConfig) -> FitState:
    """Record one iteration's log-likelihood and apply the stopping rules.

    Args:
        trace: Accumulator holding the values of previous iterations.
        ll: Log-likelihood after the iteration just completed.
        config: Stopping rules.

    Returns:
        The updated ``trace.state``.

    Raises:
        MonotonicityViolationError: If ``ll`` is below the previous value by
            more than ``allowed_decrease(previous, config)``. ``trace.state``
            is set to DIVERGED and ``ll`` is not appended.
    """
    previous = trace.last
    iteration = trace.n_iter + 1

    if previous is not None and ll < previous - allowed_decrease(previous, config):
        trace.state = FitState.DIVERGED
        raise MonotonicityViolationError(previous, ll, iteration - 1, iteration)

    trace.values.append(ll)

    if previous is not None and abs(ll - previous) <= config.threshold:
        trace.state = FitState.CONVERGED
    elif iteration >= config.max_iter:
        trace.state = FitState.MAX_ITER_REACHED
    return trace.state


def run_em(
    data,
    init_params: MixtureParams,
    config: EMConfig | None = None,
    *,
    backend: str | None = None,
) -> FitResult:
    """Fit a univariate Gaussian mixture by EM from a given starting point.

    Args:
        data: Observations, any 1-D array-like of finite reals (N,).
        init_params: Starting parameter set (K components).
        config: Stopping rules and verbosity. Defaults to ``EMConfig()``
            (threshold 0.01, 10 iterations).
        backend: "numpy" or "jax". None uses the UNIMIX_BACKEND default.

    Returns:
        FitResult with the final parameters, the responsibilities of the last
        E-step, the log-likelihood trace and the terminal state.

    Raises:
        InvalidParameterError: Invalid observations or initial parameters
            (raised before any E-step).
        ConfigurationError: Invalid config values or backend name.
        DegenerateComponentError: A component's mass collapsed to zero.
        NumericalInstabilityError: An observation's mixture density was zero
            or non-finite.
        MonotonicityViolationError: The log-likelihood decreased.

    Example:
        >>> init = MixtureParams.from_sequences([0.0, 5.0], [1.0, 1.0], [0.5, 0.5])
        >>> result = run_em(data, init, EMConfig(threshold=1e-3, max_iter=1000))
        >>> result.state, result.n_iter
        (<FitState.CONVERGED: 'converged'>, 42)
    """
    config = (config if config is not None else EMConfig()).validate()
    backend = resolve_backend(backend)
    x = as_observations(data)
    init_params.validate()

    if init_params.n_components > x.shape[0]:
        raise InvalidParameterError(
            f"{init_params.n_components} components requested for "
            f"{x.shape[0]} observations",
            field="means",
        )

    if backend == "jax":
        from unimix.core.jax_config import configure_jax
        from unimix.mixture.em_jax import jax_em_steps

        configure_jax()
        steps = jax_em_steps(x, init_params)
    else:
        steps = em_steps(x, init_params)

    log = logger.info if config.verbose else logger.debug
    log(
        f"EM start: N={x.shape[0]}, K={init_params.n_components}, "
        f"threshold={config.threshold}, max_iter={config.max_iter}, "
        f"backend={backend}"
    )

    trace = EMTrace()
    params = init_params
    resp = np.empty((x.shape[0], init_params.n_components))
    t_start = time.perf_counter()

    while trace.state is FitState.RUNNING:
        if (
            config.deadline_s is not None
            and trace.n_iter > 0
            and time.perf_counter() - t_start > config.deadline_s
        ):
            trace.state = FitState.DEADLINE_REACHED
            break

        resp, params, ll = next(steps)
        previous = trace.last
        advance(trace, ll, config)

        if previous is None:
            log(f"EM iteration {trace.n_iter}: log-likelihood {ll:.6f}")
        else:
            log(
                f"EM iteration {trace.n_iter}: log-likelihood {ll:.6f} "
                f"(change {ll - previous:.3e})"
            )

    elapsed = time.perf_counter() - t_start
    log(
        f"EM stopped: {trace.state.value} after {trace.n_iter} iterations "
        f"in {elapsed:.3f}s, log-likelihood {trace.last:.6f}"
    )

    return FitResult(
        params=params,
        responsibilities=resp,
        trace=tuple(trace.values),
        n_iter=trace.n_iter,
        state=trace.state,
        elapsed_s=elapsed,
    )
