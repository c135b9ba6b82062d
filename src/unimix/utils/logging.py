"""Logging for UNIMIX.

Console and JSON-file sinks for loguru, plus the ``##`` run log that the
``fit`` command writes next to its parameter file.
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

import unimix

if TYPE_CHECKING:
    from unimix.core.config import EMConfig, OutputConfig
    from unimix.mixture.results import FitResult

CONSOLE_FORMAT = "{time:HH:mm:ss} | <level>{level: <8}</level> | {message}"


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Route UNIMIX log records to stdout and, optionally, a JSON-lines file.

    Per-iteration EM records are emitted at DEBUG unless the fit itself is
    verbose, so ``verbose`` here decides whether they reach the console.
    The file sink keeps every DEBUG record, one JSON object per line.
    """
    logger.remove()
    logger.add(
        sys.stdout,
        level="DEBUG" if verbose else "INFO",
        format=CONSOLE_FORMAT,
        colorize=True,
    )
    if log_file is not None:
        logger.add(log_file, level="DEBUG", serialize=True)


def _section(title: str, rows: dict[str, object]) -> list[str]:
    return [f"## {title}:", *(f"## {key} = {value}" for key, value in rows.items())]


def _final_change(result: FitResult) -> str:
    if len(result.trace) < 2:
        return "n/a"
    return f"{result.trace[-1] - result.trace[-2]:.3e}"


def write_fit_log(
    output_config: OutputConfig,
    result: FitResult,
    em_config: EMConfig,
    *,
    input_file: Path,
    init_label: str,
    n_restarts: int,
    seed: int | None,
    backend: str,
    timing: dict[str, float],
    command_line: str,
) -> Path:
    """Write ``{outdir}/{prefix}.log.txt`` describing one ``fit`` run.

    Args:
        output_config: Output directory and prefix.
        result: The fit that was written out.
        em_config: Stopping rules the fit ran with.
        input_file: Observation file.
        init_label: Parameter file path, or the initialisation method name.
        n_restarts: Number of EM runs the best fit was chosen from.
        seed: Seed for the starting points, if any.
        backend: Resolved EM step backend.
        timing: Seconds per phase, e.g. ``{"total": 0.4, "em": 0.3}``.
        command_line: The command line that started the run.

    Returns:
        Path to the written log file.

    Example output format:
        ## UNIMIX Version = 0.1.0
        ## Date = 2026-01-31T10:30:00
        ## Command Line Input = unimix fit -i obs.txt -k 2
        ##
        ## Input:
        ## input_file = obs.txt
        ## n_obs = 300
        ...
        ## Components:
        ## component	mean	sd	weight
        ## 0	-0.012345	1.012345	0.500000
    """
    params = result.params
    n_obs = result.responsibilities.shape[0]

    lines = [
        "##",
        f"## UNIMIX Version = {unimix.__version__}",
        f"## Date = {datetime.now().isoformat()}",
        f"## Command Line Input = {command_line}",
        "##",
    ]
    lines += _section(
        "Input",
        {
            "input_file": input_file,
            "n_obs": n_obs,
            "n_components": params.n_components,
            "init": init_label,
            "n_restarts": n_restarts,
            "seed": seed if seed is not None else "none",
        },
    )
    lines.append("##")
    lines += _section(
        "EM Settings",
        {
            "threshold": em_config.threshold,
            "max_iter": em_config.max_iter,
            "ll_tolerance": em_config.ll_tolerance,
            "deadline_s": em_config.deadline_s or "none",
            "backend": backend,
        },
    )
    lines.append("##")
    lines += _section(
        "Fit Result",
        {
            "state": result.state.value,
            "n_iter": result.n_iter,
            "log_likelihood": f"{result.log_likelihood:.10e}",
            "final_change": _final_change(result),
        },
    )
    lines.append("##")
    lines.append("## Components:")
    lines.append("## component\tmean\tsd\tweight")
    for k, (mean, sd, weight) in enumerate(
        zip(params.means, params.sds, params.weights)
    ):
        lines.append(f"## {k}\t{mean:.6f}\t{sd:.6f}\t{weight:.6f}")
    lines.append("##")
    lines.append("## Computation Time:")
    lines += [f"## {phase} time = {secs:.2f} seconds" for phase, secs in timing.items()]
    lines.append("##")

    output_config.ensure_outdir()
    log_path = output_config.log_path
    log_path.write_text("\n".join(lines) + "\n")
    logger.debug(f"Run log written to {log_path}")
    return log_path
