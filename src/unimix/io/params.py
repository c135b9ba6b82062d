"""Parameter file I/O.

Parameter file format (tab-separated, one row per component):

    component	mean	sd	weight
    0	-1.0000000000e+00	5.0000000000e-01	3.0000000000e-01
    1	6.0000000000e+00	1.0000000000e+00	7.0000000000e-01

Rows are read in file order; the component column is informational.
"""

from pathlib import Path

import numpy as np

from unimix.mixture.params import MixtureParams

HEADER_PARAMS = "component\tmean\tsd\tweight"


def format_params_line(k: int, mean: float, sd: float, weight: float) -> str:
    """Format one component as a tab-separated line (no newline)."""
    return "\t".join([str(k), f"{mean:.10e}", f"{sd:.10e}", f"{weight:.10e}"])


def write_params(params: MixtureParams, path: Path) -> None:
    """Write a parameter set, creating parent directories.

    Args:
        params: Parameter set to write.
        path: Output file path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        f.write(HEADER_PARAMS + "\n")
        for k in range(params.n_components):
            line = format_params_line(
                k,
                float(params.means[k]),
                float(params.sds[k]),
                float(params.weights[k]),
            )
            f.write(line + "\n")


def read_params(path: Path) -> MixtureParams:
    """Read a parameter file written by ``write_params`` (or by hand).

    The header line is optional. The result is not validated; call
    ``MixtureParams.validate()`` before fitting.

    Args:
        path: Path to the parameter file.

    Returns:
        MixtureParams in file row order.

    Raises:
        ValueError: If the file has no component rows, a row does not have
            four columns, or a value cannot be parsed.
    """
    means: list[float] = []
    sds: list[float] = []
    weights: list[float] = []

    with open(path) as f:
        for line_no, line in enumerate(f, start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith("component"):
                continue
            parts = stripped.split()
            if len(parts) != 4:
                raise ValueError(
                    f"Parameter file line {line_no} has {len(parts)} columns, "
                    "expected 4 (component, mean, sd, weight)"
                )
            try:
                mean, sd, weight = (float(v) for v in parts[1:])
            except ValueError as e:
                raise ValueError(
                    f"Parameter file line {line_no}: cannot parse {parts[1:]}"
                ) from e
            means.append(mean)
            sds.append(sd)
            weights.append(weight)

    if not means:
        raise ValueError(f"Parameter file has no components: {path}")

    return MixtureParams.from_sequences(
        np.asarray(means), np.asarray(sds), np.asarray(weights)
    )
