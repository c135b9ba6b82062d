"""Fit result and terminal states of the EM driver."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from unimix.mixture.params import MixtureParams


class FitState(str, Enum):
    """States of the convergence driver.

    RUNNING is the only non-terminal state. DIVERGED is never returned to the
    caller: the driver raises MonotonicityViolationError instead.
    """

    RUNNING = "running"
    CONVERGED = "converged"
    MAX_ITER_REACHED = "max_iter_reached"
    DEADLINE_REACHED = "deadline_reached"
    DIVERGED = "diverged"


@dataclass
class EMTrace:
    """Log-likelihood trace and state, threaded through the driver loop.

    Attributes:
        values: Log-likelihood after each completed iteration (append-only).
        state: Current driver state.
    """

    values: list[float] = field(default_factory=list)
    state: FitState = FitState.RUNNING

    @property
    def n_iter(self) -> int:
        return len(self.values)

    @property
    def last(self) -> float | None:
        return self.values[-1] if self.values else None


@dataclass
class FitResult:
    """Outcome of an EM fit.

    Attributes:
        params: Final parameter set.
        responsibilities: Responsibility matrix (N, K) from the last completed
            E-step, i.e. the one that produced ``params``.
        trace: Log-likelihood after each iteration.
        n_iter: Number of completed iterations.
        state: Terminal state (CONVERGED, MAX_ITER_REACHED or DEADLINE_REACHED).
        elapsed_s: Wall-clock time spent in the driver loop.
    """

    params: MixtureParams
    responsibilities: np.ndarray
    trace: tuple[float, ...]
    n_iter: int
    state: FitState
    elapsed_s: float = 0.0

    @property
    def converged(self) -> bool:
        return self.state is FitState.CONVERGED

    @property
    def log_likelihood(self) -> float:
        """Log-likelihood of the final parameters."""
        return self.trace[-1]

    @property
    def labels(self) -> np.ndarray:
        """Most probable component per observation (N,)."""
        return np.argmax(self.responsibilities, axis=1)
