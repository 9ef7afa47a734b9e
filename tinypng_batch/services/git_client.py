"""Git staging-area integration via the git command line."""

from __future__ import annotations

import subprocess  # nosec B404
from pathlib import Path

import structlog

from tinypng_batch.core.file_collection import is_image_file

logger = structlog.get_logger(__name__)


class GitError(Exception):
    """git is unavailable or the working directory is not a repository."""


class GitClient:
    """Thin wrapper over the git commands used around a compression run."""

    def __init__(self, cwd: str | Path | None = None, git_executable: str = "git") -> None:
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.git = git_executable

    def _run(self, *args: str, input_text: str | None = None) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(  # nosec B603
                [self.git, *args],
                cwd=self.cwd,
                input=input_text,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            msg = f"git is not available: {exc}"
            raise GitError(msg) from exc

    def _run_checked(self, *args: str) -> str:
        result = self._run(*args)
        if result.returncode != 0:
            msg = result.stderr.strip() or "Not a git repository or git is not available."
            raise GitError(msg)
        return result.stdout

    def has_unstaged_changes(self) -> bool:
        """True when the working tree differs from the index."""
        return self._run_checked("diff", "--name-only").strip() != ""

    def staged_images(self) -> list[str]:
        """Staged image paths (relative to the repository) that still exist on disk."""
        output = self._run_checked("diff", "--cached", "--name-only")
        images = []
        for line in output.splitlines():
            name = line.strip()
            if name and is_image_file(name) and (self.cwd / name).exists():
                images.append(name)
        return images

    def filter_ignored(self, files: list[str]) -> list[str]:
        """Remove files matched by .gitignore.

        ``git check-ignore`` exits 1 when nothing matches; any other failure
        leaves the list unchanged.
        """
        if not files:
            return files

        result = self._run("check-ignore", "--stdin", input_text="\n".join(files))
        if result.returncode not in (0, 1):
            logger.warning("git_check_ignore_failed", error=result.stderr.strip())
            return files

        ignored = {line.strip() for line in result.stdout.splitlines() if line.strip()}
        for name in sorted(ignored):
            logger.warning("skipping_gitignored_file", file=name)
        return [f for f in files if f not in ignored]

    def stage(self, files: list[str]) -> None:
        """``git add`` the given files."""
        if not files:
            return
        self._run_checked("add", "--", *files)
        logger.info("files_staged", count=len(files))
