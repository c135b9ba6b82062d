"""Exceptions raised by UNIMIX.

Every package error inherits from ``UnimixError`` so callers can catch any
fitting problem with a single except clause:

- ``InvalidParameterError``: the initial parameter set or the observations
  are invalid. Raised at entry, before any E-step runs.
- ``ConfigurationError``: an ``EMConfig`` value, backend name or
  initialisation method is not usable.
- ``FittingError``: something went wrong while iterating. Subclasses carry
  the iteration at which the run was aborted:

  - ``DegenerateComponentError``: a component's responsibility mass collapsed
    to zero during an M-step.
  - ``NumericalInstabilityError``: the mixture density of an observation was
    zero, negative or non-finite.
  - ``MonotonicityViolationError``: the log-likelihood decreased between two
    consecutive iterations.

Example:
    >>> from unimix.exceptions import UnimixError
    >>> try:
    ...     fit_mixture(data, k=3)
    ... except UnimixError as e:
    ...     print(f"fit failed: {e}")
"""

from __future__ import annotations


class UnimixError(Exception):
    """Base exception for all UNIMIX errors."""


class InvalidParameterError(UnimixError, ValueError):
    """Raised when an initial parameter set or observation set is invalid.

    Attributes:
        field: Name of the offending field ("means", "sds", "weights", "data").
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ConfigurationError(UnimixError, ValueError):
    """Raised when fitting options are invalid or incompatible."""


class FittingError(UnimixError):
    """Raised when the EM iteration cannot continue.

    Attributes:
        iteration: 1-based iteration at which the failure was detected,
            or None if unknown.
    """

    def __init__(self, message: str, iteration: int | None = None):
        super().__init__(message)
        self.iteration = iteration


class DegenerateComponentError(FittingError):
    """Raised when a component receives zero responsibility mass.

    Attributes:
        component: 0-based index of the collapsed component.
    """

    def __init__(self, component: int, iteration: int | None = None, reason: str = ""):
        message = f"Component {component} collapsed"
        if iteration is not None:
            message += f" at iteration {iteration}"
        if reason:
            message += f": {reason}"
        super().__init__(message, iteration=iteration)
        self.component = component


class NumericalInstabilityError(FittingError):
    """Raised when an observation's mixture density is zero or non-finite.

    Attributes:
        observation: 0-based index of the first offending observation.
        value: The offending mixture density value.
    """

    def __init__(
        self, observation: int, value: float, iteration: int | None = None
    ):
        message = (
            f"Mixture density for observation {observation} is {value!r} "
            "(must be positive and finite)"
        )
        if iteration is not None:
            message += f" at iteration {iteration}"
        super().__init__(message, iteration=iteration)
        self.observation = observation
        self.value = value


class MonotonicityViolationError(FittingError):
    """Raised when the log-likelihood decreases between iterations.

    Attributes:
        previous: Log-likelihood at ``previous_iteration``.
        current: Log-likelihood at ``current_iteration``.
        previous_iteration: 1-based index of the earlier iteration.
        current_iteration: 1-based index of the later iteration.
    """

    def __init__(
        self,
        previous: float,
        current: float,
        previous_iteration: int,
        current_iteration: int,
    ):
        super().__init__(
            f"Log-likelihood decreased from {previous:.12e} (iteration "
            f"{previous_iteration}) to {current:.12e} (iteration "
            f"{current_iteration}), change {current - previous:.3e}",
            iteration=current_iteration,
        )
        self.previous = previous
        self.current = current
        self.previous_iteration = previous_iteration
        self.current_iteration = current_iteration
