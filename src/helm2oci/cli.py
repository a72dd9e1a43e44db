"""
helm2oci CLI

Converts a packaged Helm chart archive into an OCI image layout directory:

    helm2oci mychart-0.1.0.tgz --output oci

The layout can then be pushed with e.g. ``oras copy --from-oci-layout oci:0.1.0 <ref>``.
"""
from __future__ import annotations

import logging
import typer
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .operations import Operations, OpsConfig, run_and_exit
from .operations.printers import print_conversion_summary

app = typer.Typer(name="helm2oci", help="Helm chart to OCI layout converter", add_completion=False)


def _configure_logging(level: str) -> None:
    """Route log records to stderr through Rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"helm2oci {__version__}")
        raise typer.Exit()


@app.command()
def convert(
    chart: str = typer.Argument(..., help="Path to Helm chart archive (.tgz)"),
    output: Optional[str] = typer.Option(
        None, "--output", "-o",
        help="Path to output directory. Created if it does not exist. Defaults to the chart name."
    ),
    tag: Optional[str] = typer.Option(None, "--tag", help="Reference tag for the index entry (defaults to the chart version)"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output"),
    verbose: bool = typer.Option(False, "--verbose", help="Show detailed output and debug logs"),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    """Convert Helm chart archive to OCI layout."""

    def _convert() -> None:
        from .settings import create_settings_from_env
        settings = create_settings_from_env()
        _configure_logging("DEBUG" if verbose else settings.log_level)

        config = OpsConfig(quiet=quiet, verbose=verbose)
        ops = Operations(config=config, settings=settings)
        result = ops.convert(chart, output, tag=tag)

        if not quiet:
            print_conversion_summary(result, verbose=verbose)

    run_and_exit(_convert)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
