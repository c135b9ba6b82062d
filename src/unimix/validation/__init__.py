"""Validation modules for UNIMIX.

This package contains utilities for checking fitted mixtures:
- tolerances: Absolute tolerances for means, sds and weights
- compare: Permutation matching and structured comparison results
"""

from unimix.validation.compare import (
    ComparisonResult,
    RecoveryResult,
    compare_arrays,
    compare_params,
    match_components,
)
from unimix.validation.tolerances import ToleranceConfig

__all__ = [
    "ToleranceConfig",
    "ComparisonResult",
    "RecoveryResult",
    "compare_arrays",
    "compare_params",
    "match_components",
]
