"""JAX-compiled EM iteration.

One fused, JIT-compiled kernel computes the E-step, M-step and score of an
iteration. Shapes are fixed at (N, K) for a given fit, so every iteration
and every restart on the same data reuses one compilation.

XLA cannot raise from inside a compiled function, so the kernel returns the
intermediate normalizing constants and component masses and the host runs
the same checks as the numpy path, in the same order:

1. E-step normalizers (NumericalInstabilityError)
2. Component masses, means and sds (DegenerateComponentError)
3. Normalizers under the new parameters (NumericalInstabilityError)

Usage:
    from unimix.mixture.em_jax import jax_em_steps
    for resp, params, ll in jax_em_steps(x, init):
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

import jax.numpy as jnp
import numpy as np
from jax import config, jit

from unimix.mixture.em import check_components, check_normalizers
from unimix.mixture.params import MixtureParams

# Ensure 64-bit precision
config.update("jax_enable_x64", True)

if TYPE_CHECKING:
    from jaxtyping import Array, Float

_SQRT_2PI = float(np.sqrt(2.0 * np.pi))


class EMStepJax(NamedTuple):
    """Outputs of one compiled EM iteration (all JAX arrays)."""

    norm: Float[Array, " n"]
    resp: Float[Array, "n k"]
    mass: Float[Array, " k"]
    means: Float[Array, " k"]
    sds: Float[Array, " k"]
    weights: Float[Array, " k"]
    new_norm: Float[Array, " n"]
    ll: Float[Array, ""]


@jit
def weighted_densities_jax(
    x: Float[Array, " n"],
    means: Float[Array, " k"],
    sds: Float[Array, " k"],
    weights: Float[Array, " k"],
) -> Float[Array, "n k"]:
    """Weighted component densities w_k * phi(x_i; mu_k, sigma_k)."""
    z = (x[:, None] - means[None, :]) / sds[None, :]
    return weights[None, :] * jnp.exp(-0.5 * z * z) / (sds[None, :] * _SQRT_2PI)


@jit
def em_step_jax(
    x: Float[Array, " n"],
    means: Float[Array, " k"],
    sds: Float[Array, " k"],
    weights: Float[Array, " k"],
) -> EMStepJax:
    """Run E-step, M-step and score for one iteration.

    Args:
        x: Observations (N,)
        means, sds, weights: Current parameters (K,)

    Returns:
        EMStepJax with the E-step normalizers and responsibilities, the
        component masses, the new parameters, the normalizers under the new
        parameters and the new log-likelihood. Values past a failed check
        may be NaN or inf; callers must check before using them.
    """
    weighted = weighted_densities_jax(x, means, sds, weights)
    norm = weighted.sum(axis=1)

    head = weighted[:, :-1] / norm[:, None]
    last = jnp.where(
        weighted[:, -1] == 0.0, 0.0, jnp.maximum(1.0 - head.sum(axis=1), 0.0)
    )
    resp = jnp.concatenate([head, last[:, None]], axis=1)

    mass = resp.sum(axis=0)
    new_means = (resp * x[:, None]).sum(axis=0) / mass
    dev = x[:, None] - new_means[None, :]
    new_sds = jnp.sqrt((resp * dev * dev).sum(axis=0) / mass)
    new_weights = mass / x.shape[0]

    new_norm = weighted_densities_jax(x, new_means, new_sds, new_weights).sum(axis=1)
    ll = jnp.sum(jnp.log(new_norm))

    return EMStepJax(
        norm=norm,
        resp=resp,
        mass=mass,
        means=new_means,
        sds=new_sds,
        weights=new_weights,
        new_norm=new_norm,
        ll=ll,
    )


def jax_em_steps(x: np.ndarray, params: MixtureParams):
    """Generate successive EM iterations using the compiled kernel.

    Yields the same ``(resp, new_params, ll)`` items as
    ``unimix.mixture.em.em_steps``, converted back to numpy.

    Args:
        x: Observations (N,)
        params: Initial parameter set (already validated)

    Yields:
        Tuple of (responsibilities, parameters, log-likelihood).
    """
    x_dev = jnp.asarray(x, dtype=jnp.float64)
    means = jnp.asarray(params.means)
    sds = jnp.asarray(params.sds)
    weights = jnp.asarray(params.weights)

    iteration = 0
    while True:
        iteration += 1
        step = em_step_jax(x_dev, means, sds, weights)

        check_normalizers(np.asarray(step.norm), iteration)
        new_params = MixtureParams(
            means=np.asarray(step.means),
            sds=np.asarray(step.sds),
            weights=np.asarray(step.weights),
        )
        check_components(
            np.asarray(step.mass), new_params.means, new_params.sds, iteration
        )
        check_normalizers(np.asarray(step.new_norm), iteration)

        means, sds, weights = step.means, step.sds, step.weights
        yield np.asarray(step.resp), new_params, float(step.ll)
