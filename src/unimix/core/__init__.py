"""Core configuration modules for UNIMIX.

- config: EMConfig and OutputConfig dataclasses
- backend: numpy/jax step backend selection
- jax_config: JAX precision and platform setup
- progress: progress bar over restarts
"""

from unimix.core.backend import get_backend_info, get_default_backend, resolve_backend
from unimix.core.config import EMConfig, OutputConfig
from unimix.core.jax_config import configure_jax, get_jax_info

__all__ = [
    "EMConfig",
    "OutputConfig",
    "configure_jax",
    "get_backend_info",
    "get_default_backend",
    "get_jax_info",
    "resolve_backend",
]
