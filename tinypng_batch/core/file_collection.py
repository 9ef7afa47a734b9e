"""Image discovery on the local filesystem."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = structlog.get_logger(__name__)

IMAGE_EXTENSIONS: frozenset[str] = frozenset({".png", ".jpg", ".jpeg", ".webp"})

_SKIPPED_DIRECTORIES = {"node_modules"}


def is_image_file(path: str | Path) -> bool:
    """True when the file extension is one the service accepts (case-insensitive)."""
    return Path(path).suffix.lower() in IMAGE_EXTENSIONS


def collect_images(target: str | Path, deep: bool = False) -> list[str]:
    """Collect absolute image paths under ``target``.

    A file target yields itself if it is an image. A directory yields its
    images, skipping hidden entries and ``node_modules``; subdirectories are
    only visited when ``deep`` is set. Entries that cannot be inspected are
    skipped.
    """
    path = Path(target)

    if path.is_file():
        return [str(path.resolve())] if is_image_file(path) else []

    if not path.is_dir():
        return []

    images: list[str] = []
    try:
        entries = sorted(path.iterdir())
    except OSError as exc:
        logger.warning("directory_unreadable", path=str(path), error=str(exc))
        return images

    for entry in entries:
        if entry.name.startswith(".") or entry.name in _SKIPPED_DIRECTORIES:
            continue
        try:
            if entry.is_file() and is_image_file(entry):
                images.append(str(entry.resolve()))
            elif entry.is_dir() and deep:
                images.extend(collect_images(entry, deep=True))
        except OSError as exc:
            logger.debug("entry_skipped", path=str(entry), error=str(exc))

    return images


def dedupe(files: Iterable[str]) -> list[str]:
    """Drop repeated identifiers by exact value, keeping first-seen order."""
    return list(dict.fromkeys(files))
