"""Observation file I/O.

Observation file format:
- Whitespace delimited real numbers, any number per line
- Blank lines are skipped
- Everything after '#' on a line is a comment
"""

from pathlib import Path

import numpy as np


def read_observations(path: Path) -> np.ndarray:
    """Read observations from a whitespace-delimited text file.

    Args:
        path: Path to the observation file.

    Returns:
        float64 array (N,) in file order.

    Raises:
        ValueError: If the file has no values or a token cannot be parsed.

    Example:
        File contents:
        ```
        # batch 1
        0.12 -1.3
        5.8
        ```

        >>> read_observations(Path("obs.txt"))
        array([ 0.12, -1.3 ,  5.8 ])
    """
    values: list[float] = []

    with open(path) as f:
        for line_no, line in enumerate(f, start=1):
            stripped = line.split("#", 1)[0].strip()
            if not stripped:
                continue
            for token in stripped.split():
                try:
                    values.append(float(token))
                except ValueError as e:
                    raise ValueError(
                        f"Observation file line {line_no}: cannot parse "
                        f"'{token}' as a number"
                    ) from e

    if not values:
        raise ValueError(f"Observation file is empty: {path}")

    return np.asarray(values, dtype=np.float64)


def write_observations(x: np.ndarray, path: Path) -> None:
    """Write one observation per line (%.10e), creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savetxt(path, np.asarray(x, dtype=np.float64), fmt="%.10e")


def write_labels(labels: np.ndarray, path: Path) -> None:
    """Write one integer component label per line."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savetxt(path, np.asarray(labels, dtype=np.int64), fmt="%d")
