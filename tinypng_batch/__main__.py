"""Allow ``python -m tinypng_batch``."""

from tinypng_batch.cli import cli

if __name__ == "__main__":
    cli()
