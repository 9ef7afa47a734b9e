"""Local filesystem storage with atomic write-back."""

from __future__ import annotations

import contextlib
import os
import shutil
import tempfile
from pathlib import Path


class LocalFileStorage:
    """Reads and replaces files on the local disk."""

    def size(self, file: str) -> int:
        return Path(file).stat().st_size

    def read_bytes(self, file: str) -> bytes:
        return Path(file).read_bytes()

    def write_bytes(self, file: str, data: bytes) -> None:
        """Replace ``file`` with ``data`` via a temp file and ``os.replace``.

        The temp file lives in the target directory so the rename stays on
        one filesystem. The original permission bits are kept.
        """
        target = Path(file)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            if target.exists():
                shutil.copymode(target, tmp_path)
            os.replace(tmp_path, target)
        except BaseException:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            raise
