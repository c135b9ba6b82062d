"""JAX setup for the compiled EM step.

JAX computes in float32 unless told otherwise. The jax backend must agree
with the numpy path to round-off, so the driver calls ``configure_jax()``
before building the first compiled step. The call is cheap and idempotent.
"""

from __future__ import annotations

from typing import Any

import jax
from loguru import logger

from unimix.exceptions import ConfigurationError

PLATFORMS: tuple[str, ...] = ("cpu", "gpu", "tpu")


def configure_jax(
    enable_x64: bool = True, platform: str | None = None
) -> dict[str, Any]:
    """Set JAX precision and, optionally, pin the compute platform.

    Args:
        enable_x64: Run JAX arrays in float64. The jax backend needs this
            to match numpy iterations.
        platform: "cpu", "gpu" or "tpu". None leaves JAX's own choice.

    Returns:
        ``get_jax_info()`` after the update.

    Raises:
        ConfigurationError: If ``platform`` is not a JAX platform name.

    Example:
        >>> configure_jax(platform="cpu")["x64_enabled"]
        True
    """
    if platform is not None:
        platform = platform.lower().strip()
        if platform not in PLATFORMS:
            raise ConfigurationError(
                f"Unknown JAX platform {platform!r}, "
                f"expected one of {', '.join(PLATFORMS)}"
            )
        jax.config.update("jax_platform_name", platform)

    jax.config.update("jax_enable_x64", enable_x64)

    info = get_jax_info()
    logger.debug(
        f"JAX {info['version']} on {info['backend']} "
        f"({len(info['devices'])} device(s)), x64={info['x64_enabled']}"
    )
    return info


def get_jax_info() -> dict[str, Any]:
    """Version, default platform, devices and precision of the JAX runtime."""
    return {
        "version": jax.__version__,
        "backend": jax.default_backend(),
        "devices": [str(d) for d in jax.devices()],
        "x64_enabled": bool(jax.config.jax_enable_x64),
    }
