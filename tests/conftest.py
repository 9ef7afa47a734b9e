"""Shared test fixtures for tinypng-batch."""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

import pytest
import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


class InMemoryStorage:
    """FileStorageProtocol backed by a dict, recording every write."""

    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self.files: dict[str, bytes] = dict(files or {})
        self.writes: list[str] = []
        self._lock = threading.Lock()

    def size(self, file: str) -> int:
        with self._lock:
            if file not in self.files:
                raise FileNotFoundError(file)
            return len(self.files[file])

    def read_bytes(self, file: str) -> bytes:
        with self._lock:
            if file not in self.files:
                raise FileNotFoundError(file)
            return self.files[file]

    def write_bytes(self, file: str, data: bytes) -> None:
        with self._lock:
            self.files[file] = data
            self.writes.append(file)


class FakeCompressionClient:
    """CompressionClientProtocol fake.

    Compression halves the input. ``script`` maps an input payload to the
    failures to raise on successive uploads of that payload; once the list is
    used up, uploads succeed. Tracks concurrent in-flight uploads.
    """

    def __init__(
        self,
        script: dict[bytes, list[Exception]] | None = None,
        latency: float = 0.0,
        barrier: threading.Barrier | None = None,
    ) -> None:
        self.script = {key: list(value) for key, value in (script or {}).items()}
        self.latency = latency
        self.barrier = barrier
        self.uploads: list[bytes] = []
        self.downloads: list[str] = []
        self._outputs: dict[str, bytes] = {}
        self._lock = threading.Lock()
        self._active = 0
        self.peak_active = 0
        self.closed = False

    def shrink(self, data: bytes) -> str:
        with self._lock:
            self.uploads.append(data)
            self._active += 1
            self.peak_active = max(self.peak_active, self._active)
            pending = self.script.get(data)
            failure = pending.pop(0) if pending else None
            location = f"mem://output/{len(self.uploads)}"
        try:
            if self.barrier is not None:
                self.barrier.wait()
            if self.latency:
                time.sleep(self.latency)
            if failure is not None:
                raise failure
            with self._lock:
                self._outputs[location] = data[: len(data) // 2]
            return location
        finally:
            with self._lock:
                self._active -= 1

    def download(self, location: str) -> bytes:
        with self._lock:
            self.downloads.append(location)
            return self._outputs[location]

    def attempts_for(self, data: bytes) -> int:
        return sum(1 for upload in self.uploads if upload == data)

    def close(self) -> None:
        self.closed = True


class SleepRecorder:
    """Injected in place of time.sleep; records the requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self._lock = threading.Lock()

    def __call__(self, seconds: float) -> None:
        with self._lock:
            self.delays.append(seconds)


def payload(name: str, size: int = 1000) -> bytes:
    """Deterministic, unique image payload for ``name``."""
    seed = f"{name}:".encode()
    return (seed * (size // len(seed) + 1))[:size]


@pytest.fixture
def storage() -> InMemoryStorage:
    """Storage with two files of 1000 and 2000 bytes."""
    return InMemoryStorage({"a.png": payload("a.png", 1000), "b.jpg": payload("b.jpg", 2000)})


@pytest.fixture
def fake_client() -> FakeCompressionClient:
    return FakeCompressionClient()


@pytest.fixture
def make_client() -> type[FakeCompressionClient]:
    """The fake client class, for tests that script failures or latency."""
    return FakeCompressionClient


@pytest.fixture
def no_sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    """Directory tree with images, non-images, hidden and node_modules entries."""
    (tmp_path / "logo.png").write_bytes(payload("logo", 400))
    (tmp_path / "photo.JPG").write_bytes(payload("photo", 600))
    (tmp_path / "notes.txt").write_text("not an image")
    (tmp_path / ".hidden.png").write_bytes(payload("hidden", 100))
    nested = tmp_path / "assets"
    nested.mkdir()
    (nested / "banner.webp").write_bytes(payload("banner", 800))
    modules = tmp_path / "node_modules"
    modules.mkdir()
    (modules / "dep.png").write_bytes(payload("dep", 100))
    return tmp_path


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo configure_logging so no test keeps writing to a closed capture stream."""
    yield
    structlog.reset_defaults()
