"""UNIMIX command-line interface.

This module provides a Typer-based CLI with two commands:
- fit: fit a K-component mixture to an observation file
- simulate: draw synthetic observations from well-separated components

Global options -outdir, -o and -v control where outputs go and how much
is logged.
"""

import sys
import time
from pathlib import Path
from typing import Annotated

import typer

import unimix
from unimix.core import EMConfig, OutputConfig, resolve_backend
from unimix.exceptions import UnimixError
from unimix.fit import fit_mixture
from unimix.io import (
    read_observations,
    read_params,
    write_labels,
    write_observations,
    write_params,
)
from unimix.mixture.io import write_responsibilities, write_trace
from unimix.simulate import simulate_mixture
from unimix.utils import setup_logging, write_fit_log

app = typer.Typer(
    name="unimix",
    help="UNIMIX: univariate Gaussian-mixture fitting by EM.",
    add_completion=False,
)

# Store global options set by callback
_global_config: OutputConfig | None = None


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from unimix.core import get_backend_info, get_jax_info

        typer.echo(f"UNIMIX version {unimix.__version__}")
        info = get_backend_info()
        typer.echo(f"Default backend: {info['selected']}")
        typer.echo(f"GPU available: {info['gpu_available']}")
        jax_info = get_jax_info()
        typer.echo(f"JAX {jax_info['version']} on {jax_info['backend']}")
        raise typer.Exit()


@app.callback()
def main(
    outdir: Annotated[
        Path,
        typer.Option("-outdir", help="Output directory"),
    ] = Path("output"),
    output: Annotated[
        str,
        typer.Option("-o", help="Output file prefix"),
    ] = "result",
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="Verbose output"),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """UNIMIX: univariate Gaussian-mixture fitting by EM."""
    global _global_config
    _global_config = OutputConfig(outdir=outdir, prefix=output, verbose=verbose)
    setup_logging(verbose=verbose)


def _config() -> OutputConfig:
    global _global_config
    if _global_config is None:
        _global_config = OutputConfig()
    return _global_config


@app.command("fit")
def fit_command(
    input_file: Annotated[
        Path,
        typer.Option("-i", help="Observation file (whitespace-delimited numbers)"),
    ],
    k: Annotated[
        int | None,
        typer.Option("-k", help="Number of mixture components"),
    ] = None,
    init_params: Annotated[
        Path | None,
        typer.Option("--init-params", help="Starting parameter file"),
    ] = None,
    threshold: Annotated[
        float,
        typer.Option("-eps", help="Convergence threshold on log-likelihood change"),
    ] = 0.01,
    max_iter: Annotated[
        int,
        typer.Option("-maxiter", help="Maximum number of EM iterations"),
    ] = 10,
    restarts: Annotated[
        int,
        typer.Option("--restarts", help="Number of random restarts"),
    ] = 1,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Random seed for starting points"),
    ] = None,
    init_method: Annotated[
        str,
        typer.Option("--init", help="Initialisation method (uniform, quantile)"),
    ] = "uniform",
    backend: Annotated[
        str | None,
        typer.Option("--backend", help="EM step backend (numpy, jax)"),
    ] = None,
    deadline: Annotated[
        float | None,
        typer.Option("--deadline", help="Wall-clock budget per run in seconds"),
    ] = None,
) -> None:
    """Fit a univariate Gaussian mixture to an observation file.

    Writes {prefix}.params.txt, {prefix}.resp.txt, {prefix}.trace.txt and
    {prefix}.log.txt to the output directory.
    """
    config = _config()
    t_start = time.perf_counter()
    command_line = " ".join(sys.argv)

    if not input_file.exists():
        typer.echo(f"Error: Observation file not found: {input_file}", err=True)
        raise typer.Exit(code=1)

    try:
        x = read_observations(input_file)
    except Exception as e:
        typer.echo(f"Error loading observations: {e}", err=True)
        raise typer.Exit(code=1) from None

    init = None
    if init_params is not None:
        if not init_params.exists():
            typer.echo(f"Error: Parameter file not found: {init_params}", err=True)
            raise typer.Exit(code=1)
        try:
            init = read_params(init_params)
        except Exception as e:
            typer.echo(f"Error loading parameter file: {e}", err=True)
            raise typer.Exit(code=1) from None
    elif k is None:
        typer.echo("Error: -k is required unless --init-params is given", err=True)
        raise typer.Exit(code=1)

    n_components = init.n_components if init is not None else k
    typer.echo(f"Loaded {x.shape[0]} observations")
    typer.echo(f"Fitting {n_components} components...")

    em_config = EMConfig(
        threshold=threshold,
        max_iter=max_iter,
        verbose=config.verbose,
        deadline_s=deadline,
    )
    try:
        result = fit_mixture(
            x,
            k,
            init=init,
            init_method=init_method,
            n_restarts=restarts,
            seed=seed,
            threshold=em_config.threshold,
            max_iter=em_config.max_iter,
            verbose=em_config.verbose,
            deadline_s=em_config.deadline_s,
            backend=backend,
            show_progress=restarts > 1,
        )
    except UnimixError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None
    t_fit = time.perf_counter()

    config.ensure_outdir()
    params_path = config.path_for("params.txt")
    write_params(result.params, params_path)
    write_responsibilities(result.responsibilities, config.path_for("resp.txt"))
    write_trace(result, config.path_for("trace.txt"))

    typer.echo(
        f"EM {result.state.value} after {result.n_iter} iterations, "
        f"log-likelihood {result.log_likelihood:.6f}"
    )
    typer.echo(f"Parameters written to {params_path}")

    timing = {
        "total": time.perf_counter() - t_start,
        "em": t_fit - t_start,
    }
    log_path = write_fit_log(
        config,
        result,
        em_config,
        input_file=input_file,
        init_label=str(init_params) if init_params else init_method,
        n_restarts=restarts if init is None else 1,
        seed=seed,
        backend=resolve_backend(backend),
        timing=timing,
        command_line=command_line,
    )
    typer.echo(f"Log written to {log_path}")


@app.command("simulate")
def simulate_command(
    k: Annotated[
        int,
        typer.Option("-k", help="Number of components"),
    ],
    n: Annotated[
        int,
        typer.Option("-n", help="Number of observations"),
    ],
    gap: Annotated[
        float,
        typer.Option("-gap", help="Distance between consecutive component means"),
    ] = 6.0,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Random seed"),
    ] = None,
) -> None:
    """Simulate observations from K well-separated Normal components.

    Writes {prefix}.obs.txt, {prefix}.labels.txt and {prefix}.truth.txt.
    """
    config = _config()

    try:
        sim = simulate_mixture(k, n, gap, seed=seed)
    except UnimixError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    config.ensure_outdir()
    obs_path = config.path_for("obs.txt")
    write_observations(sim.observations, obs_path)
    write_labels(sim.labels, config.path_for("labels.txt"))
    write_params(sim.truth, config.path_for("truth.txt"))

    typer.echo(f"Simulated {n} observations from {k} components")
    typer.echo(f"Observations written to {obs_path}")


if __name__ == "__main__":
    app()
