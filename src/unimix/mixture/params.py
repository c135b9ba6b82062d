"""Parameter set for a univariate Gaussian mixture.

A parameter set holds K means, K standard deviations and K mixing weights
as float64 arrays. The M-step builds a fresh instance every iteration;
instances are never mutated after construction.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from unimix.exceptions import InvalidParameterError

# Mixing weights must sum to 1 within this absolute tolerance
WEIGHT_SUM_ATOL = 1e-8


@dataclass(frozen=True, eq=False)
class MixtureParams:
    """Means, standard deviations and mixing weights of K components.

    Attributes:
        means: Component means (K,)
        sds: Component standard deviations (K,), strictly positive
        weights: Mixing weights (K,), non-negative and summing to 1

    Example:
        >>> params = MixtureParams.from_sequences([0.0, 6.0], [1.0, 1.0], [0.5, 0.5])
        >>> params.n_components
        2
    """

    means: np.ndarray
    sds: np.ndarray
    weights: np.ndarray

    @classmethod
    def from_sequences(
        cls,
        means: Sequence[float] | np.ndarray,
        sds: Sequence[float] | np.ndarray,
        weights: Sequence[float] | np.ndarray,
    ) -> MixtureParams:
        """Build a parameter set from any array-likes, copying to float64.

        Raises:
            InvalidParameterError: If the three sequences are not 1-D with
                a common, non-zero length.
        """
        arrays = [
            np.array(values, dtype=np.float64, copy=True)
            for values in (means, sds, weights)
        ]
        for name, arr in zip(("means", "sds", "weights"), arrays, strict=True):
            if arr.ndim != 1:
                raise InvalidParameterError(
                    f"{name} must be one-dimensional, got shape {arr.shape}",
                    field=name,
                )
        lengths = {arr.shape[0] for arr in arrays}
        if len(lengths) != 1:
            raise InvalidParameterError(
                "means, sds and weights must have the same length, got "
                f"{[arr.shape[0] for arr in arrays]}"
            )
        if 0 in lengths:
            raise InvalidParameterError("At least one component is required")
        return cls(means=arrays[0], sds=arrays[1], weights=arrays[2])

    @property
    def n_components(self) -> int:
        return int(self.means.shape[0])

    def validate(self) -> MixtureParams:
        """Check the parameter-set invariants.

        Returns:
            self, so the call can be chained.

        Raises:
            InvalidParameterError: If a mean is non-finite, a standard
                deviation is not strictly positive and finite, a weight is
                negative or non-finite, or the weights do not sum to 1.
        """
        if not np.all(np.isfinite(self.means)):
            raise InvalidParameterError(
                f"All means must be finite, got {self.means}", field="means"
            )
        bad_sd = np.flatnonzero(~(np.isfinite(self.sds) & (self.sds > 0)))
        if bad_sd.size:
            k = int(bad_sd[0])
            raise InvalidParameterError(
                f"Standard deviation of component {k} must be positive and "
                f"finite, got {self.sds[k]}",
                field="sds",
            )
        bad_w = np.flatnonzero(~(np.isfinite(self.weights) & (self.weights >= 0)))
        if bad_w.size:
            k = int(bad_w[0])
            raise InvalidParameterError(
                f"Mixing weight of component {k} must be non-negative, "
                f"got {self.weights[k]}",
                field="weights",
            )
        total = float(np.sum(self.weights))
        if abs(total - 1.0) > WEIGHT_SUM_ATOL:
            raise InvalidParameterError(
                f"Mixing weights must sum to 1, got {total:.10g}", field="weights"
            )
        return self

    def max_abs_change(self, other: MixtureParams) -> float:
        """Largest absolute difference across all three parameter arrays."""
        return float(
            max(
                np.max(np.abs(self.means - other.means)),
                np.max(np.abs(self.sds - other.sds)),
                np.max(np.abs(self.weights - other.weights)),
            )
        )

    def sorted_by_mean(self) -> MixtureParams:
        """Return a copy with components ordered by increasing mean."""
        order = np.argsort(self.means, kind="stable")
        return MixtureParams(
            means=self.means[order], sds=self.sds[order], weights=self.weights[order]
        )


def as_observations(data) -> np.ndarray:
    """Convert observations to a validated 1-D float64 array.

    Args:
        data: Array-like of real scalars.

    Returns:
        Read-only float64 array (N,). The caller's array is never written to.

    Raises:
        InvalidParameterError: If the data is empty, not one-dimensional or
            contains non-finite values.
    """
    x = np.asarray(data, dtype=np.float64)
    if x.ndim != 1:
        raise InvalidParameterError(
            f"Observations must be one-dimensional, got shape {x.shape}",
            field="data",
        )
    if x.shape[0] == 0:
        raise InvalidParameterError("No observations", field="data")
    bad = np.flatnonzero(~np.isfinite(x))
    if bad.size:
        raise InvalidParameterError(
            f"Observation {int(bad[0])} is not finite: {x[bad[0]]}", field="data"
        )
    x = x.view()
    x.flags.writeable = False
    return x
