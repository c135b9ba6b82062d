"""EM step backend selection.

UNIMIX can run an EM iteration on two backends:

- numpy: reference implementation (unimix.mixture.em). Default.
- jax: fused JIT-compiled kernel (unimix.mixture.em_jax). Same results and
  error kinds; pays a one-off compilation per (N, K) shape.

The default can be overridden with the UNIMIX_BACKEND environment variable
('numpy', 'jax' or 'auto'). An explicit ``backend=`` argument always wins.
"""

import os
from functools import cache
from typing import Literal

from loguru import logger

from unimix.exceptions import ConfigurationError

Backend = Literal["numpy", "jax"]

BACKENDS: tuple[str, ...] = ("numpy", "jax")

BACKEND_ALIASES: dict[str, str] = {
    "np": "numpy",
    "cpu": "numpy",
    "xla": "jax",
}


def normalize_backend_name(value: str) -> str:
    """Normalize backend name to canonical form.

    Handles case-insensitivity, whitespace and short aliases.

    Examples:
        >>> normalize_backend_name(" JAX ")
        'jax'
        >>> normalize_backend_name("np")
        'numpy'
    """
    normalized = value.lower().strip()
    return BACKEND_ALIASES.get(normalized, normalized)


@cache
def get_default_backend() -> Backend:
    """Resolve the default backend.

    Priority:
    1. UNIMIX_BACKEND environment variable ('numpy', 'jax'; 'auto' or an
       unrecognised value falls through)
    2. numpy

    Returns:
        Backend identifier.

    Examples:
        >>> import os
        >>> os.environ["UNIMIX_BACKEND"] = "jax"
        >>> get_default_backend.cache_clear()
        >>> get_default_backend()
        'jax'
    """
    override = os.environ.get("UNIMIX_BACKEND", "").strip()
    if override:
        override = normalize_backend_name(override)
        if override in BACKENDS:
            logger.debug(f"Backend override via UNIMIX_BACKEND={override}")
            return override
        if override != "auto":
            logger.warning(
                f"UNIMIX_BACKEND={override!r} is not a known backend, "
                "falling back to numpy"
            )

    return "numpy"


def resolve_backend(backend: str | None) -> Backend:
    """Turn a user-supplied backend name (or None) into a canonical backend.

    Raises:
        ConfigurationError: If the explicit name is not a known backend.
    """
    if backend is None:
        return get_default_backend()
    name = normalize_backend_name(backend)
    if name not in BACKENDS:
        raise ConfigurationError(
            f"Unknown backend {backend!r}, expected one of {', '.join(BACKENDS)}"
        )
    return name


def _has_gpu() -> bool:
    """Check if a GPU is available via JAX."""
    try:
        import jax

        return any(d.platform in ("gpu", "cuda", "rocm") for d in jax.devices())
    except Exception as e:
        logger.debug(f"Error checking for GPU: {e}")
        return False


def get_backend_info() -> dict:
    """Get information about backend selection.

    Returns:
        Dictionary with keys:
        - selected: default backend ('numpy' or 'jax')
        - gpu_available: True if JAX can access a GPU
        - override: value of UNIMIX_BACKEND, or None
    """
    return {
        "selected": get_default_backend(),
        "gpu_available": _has_gpu(),
        "override": os.environ.get("UNIMIX_BACKEND", None),
    }
