"""Univariate Gaussian-mixture EM.

Key components:
- normal_pdf: Normal density evaluation
- e_step: posterior responsibilities (rows sum to 1 by construction)
- m_step: closed-form maximum-likelihood parameter update
- log_likelihood: total data log-likelihood
- run_em: convergence driver with hard monotonicity check
- em_step_jax: JIT-compiled iteration used by the jax backend
"""

from unimix.mixture.density import normal_pdf, weighted_densities
from unimix.mixture.driver import advance, run_em
from unimix.mixture.em import e_step, log_likelihood, m_step
from unimix.mixture.init import initial_params, quantile_init, uniform_means_init
from unimix.mixture.params import MixtureParams, as_observations
from unimix.mixture.results import EMTrace, FitResult, FitState

__all__ = [
    "EMTrace",
    "FitResult",
    "FitState",
    "MixtureParams",
    "advance",
    "as_observations",
    "e_step",
    "initial_params",
    "log_likelihood",
    "m_step",
    "normal_pdf",
    "quantile_init",
    "run_em",
    "uniform_means_init",
    "weighted_densities",
]
