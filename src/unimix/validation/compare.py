"""Comparison utilities for validating fitted mixtures against ground truth.

Component labels are arbitrary, so estimated components are first matched
to true components (Hungarian assignment on absolute mean differences) and
then compared with absolute tolerances. Functions return structured results
rather than raising, so they can drive restart statistics.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.optimize import linear_sum_assignment

from unimix.mixture.params import MixtureParams
from unimix.validation.tolerances import ToleranceConfig


@dataclass
class ComparisonResult:
    """Result of comparing one array against a reference.

    Attributes:
        passed: Whether every element is within tolerance.
        max_abs_diff: Maximum absolute difference found.
        worst_location: Index of the worst element, or None if passed.
        message: Human-readable description of the result.
    """

    passed: bool
    max_abs_diff: float
    worst_location: int | None
    message: str


@dataclass
class RecoveryResult:
    """Result of comparing a fitted parameter set to the truth.

    Attributes:
        passed: True if means, sds and weights all passed.
        permutation: permutation[j] is the estimated component matched to
            true component j.
        means, sds, weights: Per-field comparison results.
    """

    passed: bool
    permutation: np.ndarray
    means: ComparisonResult
    sds: ComparisonResult
    weights: ComparisonResult

    @property
    def message(self) -> str:
        return "; ".join(r.message for r in (self.means, self.sds, self.weights))


def compare_arrays(
    actual: np.ndarray, expected: np.ndarray, atol: float, name: str = "array"
) -> ComparisonResult:
    """Compare two 1-D arrays elementwise with an absolute tolerance.

    Example:
        >>> compare_arrays(np.array([1.0, 2.0]), np.array([1.1, 2.0]), 0.2).passed
        True
    """
    if actual.shape != expected.shape:
        return ComparisonResult(
            passed=False,
            max_abs_diff=np.inf,
            worst_location=None,
            message=(
                f"{name} shape mismatch: "
                f"actual {actual.shape} vs expected {expected.shape}"
            ),
        )

    abs_diff = np.abs(actual - expected)
    worst = int(np.argmax(abs_diff))
    max_abs_diff = float(abs_diff[worst])

    if max_abs_diff <= atol:
        return ComparisonResult(
            passed=True,
            max_abs_diff=max_abs_diff,
            worst_location=None,
            message=f"{name} passed (max abs diff: {max_abs_diff:.2e})",
        )
    return ComparisonResult(
        passed=False,
        max_abs_diff=max_abs_diff,
        worst_location=worst,
        message=(
            f"{name} failed at {worst}: actual={actual[worst]:.6e}, "
            f"expected={expected[worst]:.6e}, abs_diff={max_abs_diff:.2e} "
            f"(atol={atol})"
        ),
    )


def match_components(estimated: MixtureParams, truth: MixtureParams) -> np.ndarray:
    """Match estimated components to true components by mean.

    Args:
        estimated: Fitted parameters (K components).
        truth: Reference parameters (K components).

    Returns:
        Integer array (K,) where entry j is the estimated component matched
        to true component j.

    Raises:
        ValueError: If the component counts differ.
    """
    if estimated.n_components != truth.n_components:
        raise ValueError(
            f"Cannot match {estimated.n_components} estimated components "
            f"to {truth.n_components} true components"
        )
    cost = np.abs(truth.means[:, None] - estimated.means[None, :])
    rows, cols = linear_sum_assignment(cost)
    permutation = np.empty(truth.n_components, dtype=np.int64)
    permutation[rows] = cols
    return permutation


def compare_params(
    estimated: MixtureParams,
    truth: MixtureParams,
    config: ToleranceConfig | None = None,
    true_weights: np.ndarray | None = None,
) -> RecoveryResult:
    """Check whether a fit recovered the true parameters up to relabelling.

    Args:
        estimated: Fitted parameters.
        truth: Reference parameters.
        config: Tolerances; defaults to ``ToleranceConfig()``.
        true_weights: Weights to compare against instead of ``truth.weights``
            (e.g. realised label proportions of simulated data).

    Returns:
        RecoveryResult with the permutation used and per-field results.
    """
    config = config or ToleranceConfig()
    perm = match_components(estimated, truth)
    weights_ref = truth.weights if true_weights is None else np.asarray(true_weights)

    means = compare_arrays(
        estimated.means[perm], truth.means, config.mean_atol, "means"
    )
    sds = compare_arrays(estimated.sds[perm], truth.sds, config.sd_atol, "sds")
    weights = compare_arrays(
        estimated.weights[perm], weights_ref, config.weight_atol, "weights"
    )
    return RecoveryResult(
        passed=means.passed and sds.passed and weights.passed,
        permutation=perm,
        means=means,
        sds=sds,
        weights=weights,
    )
