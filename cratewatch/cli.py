"""CLI entry point: cratewatch.

Usage:
    cratewatch                                  # scan the project in the current directory
    cratewatch --manifest-path path/Cargo.toml  # scan a specific manifest
    cratewatch --format json                    # machine-readable output
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from cratewatch.config import RegistryConfig
from cratewatch.core.logging import setup_logging
from cratewatch.engines.outdated.report import render_json, render_tree
from cratewatch.engines.outdated.runner import check_outdated
from cratewatch.exceptions import SetupError


@click.command()
@click.option(
    "--manifest-path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to Cargo.toml (default: search upward from the current directory).",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["tree", "json"]),
    default="tree",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Max parallel registry requests (default: CPU count).",
)
@click.option("--registry-url", default=None, help="Registry base URL (default: https://crates.io).")
@click.option("--timeout", type=float, default=None, help="Per-request timeout in seconds.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging on stderr.")
def main(
    manifest_path: Path | None,
    output_format: str,
    concurrency: int | None,
    registry_url: str | None,
    timeout: float | None,
    verbose: bool,
) -> None:
    """Report dependencies whose latest crates.io release is outside the declared requirement."""
    setup_logging("DEBUG" if verbose else None)

    try:
        config = RegistryConfig.from_env().override(
            concurrency=concurrency, registry_url=registry_url, timeout=timeout
        )
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    try:
        report = asyncio.run(check_outdated(manifest_path, config))
    except SetupError as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(1)

    if output_format == "json":
        click.echo(render_json(report))
    else:
        click.echo(render_tree(report))
