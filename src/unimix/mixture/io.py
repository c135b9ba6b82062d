"""Writers for EM fit outputs.

- responsibilities: one tab-separated row per observation, one column per
  component, .6e
- trace: one row per iteration with the log-likelihood and its change
"""

from pathlib import Path

import numpy as np

from unimix.mixture.results import FitResult

HEADER_TRACE = "iteration\tlog_likelihood\tchange"


def write_responsibilities(resp: np.ndarray, path: Path) -> None:
    """Write an (N, K) responsibility matrix with a comp_<k> header."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    header = "\t".join(f"comp_{k}" for k in range(resp.shape[1]))
    np.savetxt(path, resp, fmt="%.6e", delimiter="\t", header=header, comments="")


def write_trace(result: FitResult, path: Path) -> None:
    """Write the log-likelihood trace of a fit.

    The change column of the first iteration is "NA".
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        f.write(HEADER_TRACE + "\n")
        previous = None
        for i, ll in enumerate(result.trace, start=1):
            change = "NA" if previous is None else f"{ll - previous:.6e}"
            f.write(f"{i}\t{ll:.10e}\t{change}\n")
            previous = ll
