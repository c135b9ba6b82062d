"""Utility modules for UNIMIX."""

from unimix.utils.logging import setup_logging, write_fit_log

__all__ = ["setup_logging", "write_fit_log"]
