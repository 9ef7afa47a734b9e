"""CLI command implementations for tinypng-batch."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn

import click
from pydantic import ValidationError

from tinypng_batch.core.file_collection import collect_images, dedupe
from tinypng_batch.core.result_aggregation import (
    format_batch_summary,
    format_event,
    format_failure_report,
)
from tinypng_batch.models.config import (
    API_KEY_ENV_VAR,
    CONFIG_KEYS,
    Config,
    ConfigError,
    load_config,
    read_config_sources,
)
from tinypng_batch.models.progress_event import ProgressEventKind
from tinypng_batch.utils.logger import configure_logging

if TYPE_CHECKING:
    from tinypng_batch.models.batch_summary import BatchSummary
    from tinypng_batch.models.progress_event import ProgressEvent


def _fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    click.echo(f"[ERROR] {message}", err=True)
    raise SystemExit(1)


def _get_config() -> Config:
    """Resolve configuration for the current directory, exiting on failure."""
    try:
        config = load_config()
    except ConfigError as exc:
        _fail(str(exc))
    except ValidationError as exc:
        _fail(f"Invalid configuration: {exc}")
    configure_logging(config.log_level)
    click.echo(f"[INFO] Config source: {config.source}")
    return config


def _echo_event(event: ProgressEvent) -> None:
    line = format_event(event)
    if event.kind is ProgressEventKind.FAILED:
        click.echo(f"[ERROR] {line}", err=True)
    elif event.kind is ProgressEventKind.RETRYING:
        click.echo(f"[WARN] {line}")
    else:
        click.echo(f"[SUCCESS] {line}")


def _run_batch(files: list[str], config: Config) -> BatchSummary:
    """Compress ``files`` with the configured client and print the summary."""
    from tinypng_batch.services.batch_processor import compress_batch
    from tinypng_batch.services.tinify_client import TinifyClient

    client = TinifyClient(config.api_key, timeout=config.request_timeout)
    try:
        summary = compress_batch(
            files,
            client,
            max_concurrency=config.max_concurrency,
            retries=config.retries,
            on_event=_echo_event,
        )
    finally:
        client.close()

    click.echo("")
    click.echo(format_batch_summary(summary))
    return summary


# --- Compression ---


@click.command()
@click.argument("paths", nargs=-1, type=click.Path())
@click.option("--deep", "-d", is_flag=True, help="Recursively traverse subdirectories")
@click.option("--dry-run", is_flag=True, help="List the files without compressing them")
def compress(paths: tuple[str, ...], deep: bool, dry_run: bool) -> None:
    """Compress images in the current directory or the given paths."""
    config = _get_config()

    files: list[str] = []
    if not paths:
        scope = "recursive" if deep else "top-level only"
        click.echo(f"[INFO] Compressing images in cwd ({scope})...")
        files = collect_images(Path.cwd(), deep=deep)
    else:
        for raw_path in paths:
            if not Path(raw_path).exists():
                click.echo(f"[WARN] Skipping non-existent path: {raw_path}")
                continue
            files.extend(collect_images(raw_path, deep=deep))

    files = dedupe(files)
    if not files:
        click.echo("[WARN] No images found.")
        return

    if dry_run:
        click.echo(f"[INFO] Dry run: {len(files)} image(s) would be compressed:\n")
        for file in files:
            click.echo(f"  {file}")
        return

    click.echo(f"[INFO] Found {len(files)} image(s), compressing...\n")
    summary = _run_batch(files, config)

    if summary.fail_count > 0:
        raise SystemExit(1)


@click.command("git")
@click.option("--no-stage", is_flag=True, help="Skip auto git-add for this run")
@click.option("--no-ignore", is_flag=True, help="Skip .gitignore filtering for this run")
def git_compress(no_stage: bool, no_ignore: bool) -> None:
    """Compress staged images (suited to a pre-commit hook)."""
    from tinypng_batch.services.git_client import GitClient, GitError

    config = _get_config()
    git = GitClient()

    try:
        if git.has_unstaged_changes():
            _fail("Working tree has unstaged changes. Stage all changes first (git add -A).")
        files = git.staged_images()
    except GitError as exc:
        _fail(str(exc))

    if config.respect_gitignore and not no_ignore:
        files = git.filter_ignored(files)

    if not files:
        click.echo("[WARN] No staged images found.")
        return

    click.echo(f"[INFO] Found {len(files)} staged image(s), compressing...\n")
    summary = _run_batch(files, config)

    if summary.fail_count > 0:
        click.echo("")
        click.echo(f"[ERROR] {format_failure_report(summary)}", err=True)
        compressed = summary.compressed_files
        if compressed:
            click.echo(
                f"[WARN] {len(compressed)} image(s) compressed successfully "
                "and left in working tree (not staged)."
            )
        raise SystemExit(1)

    if config.auto_stage and not no_stage and summary.compressed_files:
        try:
            git.stage(summary.compressed_files)
        except GitError as exc:
            _fail(f"Failed to stage compressed images: {exc}")
        click.echo(f"[SUCCESS] Auto-staged {len(summary.compressed_files)} compressed image(s)")


# --- Configuration (read-only) ---


def _validate_key(key: str) -> None:
    if key in CONFIG_KEYS:
        return
    lines = [f"Unknown config key: {key}", "", "Available keys:"]
    lines.extend(f"  {name}  {description}" for name, (_, description) in CONFIG_KEYS.items())
    _fail("\n".join(lines))


def _echo_source(label: str, values: dict[str, Any], key: str | None) -> None:
    entries = {k: v for k, v in values.items() if key is None or k == key}
    if not entries:
        return
    click.echo(label + ":")
    for name, value in entries.items():
        click.echo(f"  {name}: {value}")
    click.echo("")


@click.group("config")
def config_group() -> None:
    """Inspect configuration."""


@config_group.command("get")
@click.argument("key", required=False)
def config_get(key: str | None) -> None:
    """Show configuration from every source, optionally for one KEY."""
    if key:
        _validate_key(key)

    click.echo("[INFO] === Configuration ===\n")
    sources = read_config_sources()

    if not any(label.startswith("Global") for label, _ in sources):
        click.echo("[WARN] Global config: not set\n")

    for label, values in sources:
        if label == "Environment":
            if key in (None, "apiKey"):
                _echo_source(label, values, None)
            continue
        _echo_source(label, values, key)


@config_group.command("list")
def config_list() -> None:
    """List the available configuration keys."""
    click.echo("[INFO] === Available Config Keys ===\n")
    for name, (_, description) in CONFIG_KEYS.items():
        click.echo(f"  {name}  {description}")
    click.echo(f"\n  ({API_KEY_ENV_VAR} in the environment overrides apiKey)")
