"""Service protocols defining interfaces for dependency injection."""

from __future__ import annotations

from typing import Protocol


class CompressionClientProtocol(Protocol):
    """Protocol for remote compression services."""

    def shrink(self, data: bytes) -> str: ...

    def download(self, location: str) -> bytes: ...


class FileStorageProtocol(Protocol):
    """Protocol for the byte storage holding the files being compressed.

    ``write_bytes`` must be atomic: readers see either the old content or
    the complete new content.
    """

    def size(self, file: str) -> int: ...

    def read_bytes(self, file: str) -> bytes: ...

    def write_bytes(self, file: str, data: bytes) -> None: ...
