"""CLI entry point for tinypng-batch."""

from __future__ import annotations

import click

from tinypng_batch import __version__
from tinypng_batch.cli.commands import compress, config_group, git_compress


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "--version", "-v")
def cli() -> None:
    """Image compression tool powered by the TinyPNG API."""


cli.add_command(compress)
cli.add_command(git_compress)
cli.add_command(config_group)
