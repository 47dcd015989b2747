"""Command-line entry point."""

from __future__ import annotations

import asyncio
import sys

import click

from kubetrail.app import main


@click.command(name="kubetrail")
@click.option(
    "--config",
    "config_path",
    default="config.yaml",
    show_default=True,
    type=click.Path(dir_okay=False),
    help="path to the configuration file",
)
def cli(config_path: str) -> None:
    """Watch cluster resources and print one JSON line per notable change."""
    sys.exit(asyncio.run(main(config_path)))
