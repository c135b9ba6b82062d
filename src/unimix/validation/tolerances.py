"""Tolerance configuration for comparing fitted mixtures to ground truth.

A fit "recovers" a simulated mixture when, after matching components up to
label permutation, every estimated mean and mixing weight lies within an
absolute tolerance of the truth:

- **Means**: 0.5 (well-separated components, gap of several sds)
- **Mixing weights**: 0.05, compared against the realised label proportions
  rather than the generating weights, which removes multinomial sampling noise
- **Standard deviations**: 0.5
"""

from dataclasses import dataclass


@dataclass
class ToleranceConfig:
    """Absolute tolerances for parameter recovery checks.

    Attributes:
        mean_atol: Absolute tolerance for component means.
        sd_atol: Absolute tolerance for component standard deviations.
        weight_atol: Absolute tolerance for mixing weights.

    Example:
        >>> ToleranceConfig().mean_atol
        0.5
        >>> ToleranceConfig.strict().weight_atol
        0.01
    """

    mean_atol: float = 0.5
    sd_atol: float = 0.5
    weight_atol: float = 0.05

    @classmethod
    def strict(cls) -> "ToleranceConfig":
        """Tolerances for large samples where estimates sit close to the truth."""
        return cls(mean_atol=0.1, sd_atol=0.1, weight_atol=0.01)

    @classmethod
    def relaxed(cls) -> "ToleranceConfig":
        """Tolerances for small or overlapping samples."""
        return cls(mean_atol=1.0, sd_atol=1.0, weight_atol=0.1)
