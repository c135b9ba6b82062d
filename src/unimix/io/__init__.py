"""I/O modules for UNIMIX.

- observations: whitespace-delimited observation files, label files
- params: tab-separated mixture parameter files
"""

from unimix.io.observations import read_observations, write_labels, write_observations
from unimix.io.params import read_params, write_params

__all__ = [
    "read_observations",
    "read_params",
    "write_labels",
    "write_observations",
    "write_params",
]
