"""Configuration dataclasses for UNIMIX.

This module contains dataclasses that configure an EM fit (stopping rules,
verbosity, monotonicity slack) and the output files written by the CLI.
"""

import numbers
from dataclasses import dataclass, field
from pathlib import Path

from unimix.exceptions import ConfigurationError


@dataclass
class EMConfig:
    """Stopping rules and reporting options for the EM driver.

    Attributes:
        threshold: Stop when consecutive log-likelihoods differ by at most this.
        max_iter: Iteration budget. Running out is a valid outcome, not an error.
        verbose: Log every iteration at INFO instead of DEBUG. Has no effect
            on the computed result.
        ll_tolerance: Allowed log-likelihood decrease between iterations before
            the run is aborted. The driver uses the larger of this and a
            1e-12 relative round-off slack, so 0.0 leaves only that slack.
        deadline_s: Optional wall-clock budget in seconds. Checked before each
            iteration after the first.

    Example:
        >>> config = EMConfig(threshold=1e-3, max_iter=1000)
        >>> config.validate().max_iter
        1000
    """

    threshold: float = 0.01
    max_iter: int = 10
    verbose: bool = False
    ll_tolerance: float = 0.0
    deadline_s: float | None = None

    def validate(self) -> "EMConfig":
        """Check option ranges.

        Returns:
            self, so the call can be chained.

        Raises:
            ConfigurationError: If any option is out of range.
        """
        if not self.threshold > 0:
            raise ConfigurationError(
                f"threshold must be positive, got {self.threshold}"
            )
        if isinstance(self.max_iter, bool) or not isinstance(
            self.max_iter, numbers.Integral
        ):
            raise ConfigurationError(
                f"max_iter must be an integer, got {self.max_iter!r}"
            )
        if self.max_iter < 1:
            raise ConfigurationError(f"max_iter must be >= 1, got {self.max_iter}")
        if not self.ll_tolerance >= 0:
            raise ConfigurationError(
                f"ll_tolerance must be non-negative, got {self.ll_tolerance}"
            )
        if self.deadline_s is not None and not self.deadline_s > 0:
            raise ConfigurationError(
                f"deadline_s must be positive, got {self.deadline_s}"
            )
        return self


@dataclass
class OutputConfig:
    """Configuration for output files and directories.

    Attributes:
        outdir: Output directory for result files. Created if it doesn't exist.
        prefix: Prefix for output filenames (e.g., "result" produces "result.log.txt").
        verbose: Enable verbose/debug output to console.
    """

    outdir: Path = field(default_factory=lambda: Path("output"))
    prefix: str = "result"
    verbose: bool = False

    def path_for(self, suffix: str) -> Path:
        """Path to {outdir}/{prefix}.{suffix}."""
        return self.outdir / f"{self.prefix}.{suffix}"

    @property
    def log_path(self) -> Path:
        """Path to the run log file ({outdir}/{prefix}.log.txt)."""
        return self.path_for("log.txt")

    def ensure_outdir(self) -> None:
        """Create output directory if it doesn't exist."""
        self.outdir.mkdir(parents=True, exist_ok=True)
