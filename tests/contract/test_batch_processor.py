"""Contract tests for bounded-concurrency batch compression."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import pytest
from structlog.testing import capture_logs

from tinypng_batch.models.progress_event import ProgressEvent, ProgressEventKind
from tinypng_batch.services.batch_processor import compress_batch
from tinypng_batch.services.tinify_client import TinifyAPIError

if TYPE_CHECKING:
    from conftest import FakeCompressionClient, InMemoryStorage, SleepRecorder


@pytest.fixture
def many(storage: InMemoryStorage) -> list[str]:
    """Eight extra files of increasing size added to the storage fixture."""
    names = [f"img{i}.png" for i in range(8)]
    for i, name in enumerate(names):
        storage.files[name] = f"{name}:".encode() * (50 + i)
    return names


class TestCompressBatch:
    """Tests for compress_batch."""

    def test_example_summary(
        self,
        storage: InMemoryStorage,
        make_client: type[FakeCompressionClient],
        no_sleep: SleepRecorder,
    ) -> None:
        client = make_client({storage.files["b.jpg"]: [TinifyAPIError(401, "Unauthorized, x")]})

        summary = compress_batch(
            ["a.png", "b.jpg"], client, 2, 3, storage=storage, sleep=no_sleep
        )

        assert summary.total_old_size == 3000
        assert summary.total_new_size == 2500
        assert summary.fail_count == 1
        assert round(summary.saved_percentage, 2) == 16.67
        assert summary.failed_files == ["b.jpg"]

    def test_completion_log_carries_totals(
        self,
        storage: InMemoryStorage,
        make_client: type[FakeCompressionClient],
        no_sleep: SleepRecorder,
    ) -> None:
        client = make_client({storage.files["b.jpg"]: [TinifyAPIError(401, "Unauthorized, x")]})

        with capture_logs() as logs:
            compress_batch(["a.png", "b.jpg"], client, 2, 3, storage=storage, sleep=no_sleep)

        [completed] = [entry for entry in logs if entry["event"] == "batch_completed"]
        assert completed["files"] == 2
        assert completed["successful"] == 1
        assert completed["failed"] == 1
        assert completed["saved_bytes"] == 500
        assert completed["saved_percentage"] == 16.67
        assert completed["errors"] == ["b.jpg: Unauthorized, x"]
        assert 1 <= completed["peak_concurrency"] <= 2

    def test_one_outcome_per_file_in_input_order(
        self,
        storage: InMemoryStorage,
        make_client: type[FakeCompressionClient],
        no_sleep: SleepRecorder,
        many: list[str],
    ) -> None:
        client = make_client(latency=0.005)
        files = list(reversed(many))

        summary = compress_batch(files, client, 3, storage=storage, sleep=no_sleep)

        assert [o.file for o in summary.outcomes] == files
        assert summary.file_count == len(files)
        assert summary.fail_count == 0

    def test_concurrency_never_exceeds_limit(
        self,
        storage: InMemoryStorage,
        make_client: type[FakeCompressionClient],
        no_sleep: SleepRecorder,
        many: list[str],
    ) -> None:
        client = make_client(latency=0.01)

        compress_batch(many, client, 2, storage=storage, sleep=no_sleep)

        assert 1 <= client.peak_active <= 2

    def test_limit_is_reached(
        self,
        storage: InMemoryStorage,
        make_client: type[FakeCompressionClient],
        no_sleep: SleepRecorder,
        many: list[str],
    ) -> None:
        # Every upload waits until three are in flight at once.
        barrier = threading.Barrier(3, timeout=5)
        client = make_client(barrier=barrier)

        summary = compress_batch(many[:3], client, 3, 0, storage=storage, sleep=no_sleep)

        assert summary.fail_count == 0
        assert client.peak_active == 3

    def test_single_slot_is_sequential(
        self,
        storage: InMemoryStorage,
        make_client: type[FakeCompressionClient],
        no_sleep: SleepRecorder,
        many: list[str],
    ) -> None:
        client = make_client(latency=0.002)
        events: list[ProgressEvent] = []

        compress_batch(
            many, client, 1, storage=storage, on_event=events.append, sleep=no_sleep
        )

        assert client.peak_active == 1
        assert [e.file for e in events] == many
        assert [e.index for e in events] == list(range(1, len(many) + 1))

    def test_index_is_input_position(
        self,
        storage: InMemoryStorage,
        make_client: type[FakeCompressionClient],
        no_sleep: SleepRecorder,
        many: list[str],
    ) -> None:
        client = make_client(latency=0.002)
        events: list[ProgressEvent] = []

        compress_batch(
            many, client, 4, storage=storage, on_event=events.append, sleep=no_sleep
        )

        assert {e.file: e.index for e in events} == {
            file: position + 1 for position, file in enumerate(many)
        }
        assert all(e.total == len(many) for e in events)

    def test_wide_limit_matches_narrow_limit(
        self,
        storage: InMemoryStorage,
        make_client: type[FakeCompressionClient],
        no_sleep: SleepRecorder,
        many: list[str],
    ) -> None:
        files = ["a.png", "b.jpg", *many]
        script = {
            storage.files["a.png"]: [TinifyAPIError(503, "HTTP 503")],
            storage.files["b.jpg"]: [TinifyAPIError(415, "Unsupported media type")],
        }
        wide_storage = type(storage)(storage.files)
        narrow_events: list[ProgressEvent] = []
        wide_events: list[ProgressEvent] = []

        narrow = compress_batch(
            files,
            make_client(script),
            2,
            storage=storage,
            on_event=narrow_events.append,
            sleep=no_sleep,
        )
        wide = compress_batch(
            files,
            make_client(script),
            50,
            storage=wide_storage,
            on_event=wide_events.append,
            sleep=no_sleep,
        )

        def per_file(events: list[ProgressEvent]) -> dict[str, list[tuple]]:
            grouped: dict[str, list[tuple]] = {}
            for e in events:
                grouped.setdefault(e.file, []).append((e.kind, e.attempt, e.index, e.total))
            return grouped

        assert wide.outcomes == narrow.outcomes
        assert per_file(wide_events) == per_file(narrow_events)
        assert wide_storage.files == storage.files

    def test_limit_above_file_count(
        self,
        storage: InMemoryStorage,
        fake_client: FakeCompressionClient,
        no_sleep: SleepRecorder,
    ) -> None:
        summary = compress_batch(
            ["a.png", "b.jpg"], fake_client, 50, storage=storage, sleep=no_sleep
        )

        assert summary.file_count == 2
        assert summary.fail_count == 0

    def test_empty_batch(self, fake_client: FakeCompressionClient) -> None:
        summary = compress_batch([], fake_client)

        assert summary.file_count == 0
        assert summary.saved_percentage == 0.0
        assert fake_client.uploads == []

    def test_duplicates_compressed_once(
        self,
        storage: InMemoryStorage,
        fake_client: FakeCompressionClient,
        no_sleep: SleepRecorder,
    ) -> None:
        original = storage.files["a.png"]

        summary = compress_batch(
            ["a.png", "b.jpg", "a.png"], fake_client, 2, storage=storage, sleep=no_sleep
        )

        assert [o.file for o in summary.outcomes] == ["a.png", "b.jpg"]
        assert fake_client.attempts_for(original) == 1
        assert len(fake_client.uploads) == 2

    def test_failures_do_not_stop_the_batch(
        self,
        storage: InMemoryStorage,
        make_client: type[FakeCompressionClient],
        no_sleep: SleepRecorder,
    ) -> None:
        client = make_client({storage.files["a.png"]: [TinifyAPIError(503, "HTTP 503")] * 5})

        summary = compress_batch(
            ["a.png", "b.jpg"], client, 2, 2, storage=storage, sleep=no_sleep
        )

        assert summary.failed_files == ["a.png"]
        assert summary.compressed_files == ["b.jpg"]
        assert summary.outcomes[0].attempts == 3
        assert sorted(no_sleep.delays) == [1.0, 2.0]

    def test_raising_callback_keeps_successful_outcome(
        self,
        storage: InMemoryStorage,
        fake_client: FakeCompressionClient,
        no_sleep: SleepRecorder,
    ) -> None:
        original = storage.files["a.png"]

        def on_event(event: ProgressEvent) -> None:
            if event.file == "a.png" and event.kind is ProgressEventKind.COMPRESSED:
                raise RuntimeError("display broke")

        summary = compress_batch(
            ["a.png", "b.jpg"],
            fake_client,
            2,
            storage=storage,
            on_event=on_event,
            sleep=no_sleep,
        )

        assert summary.file_count == 2
        assert summary.outcomes[0].success is True
        assert summary.outcomes[0].old_size == 1000
        assert summary.outcomes[0].new_size == 500
        assert summary.outcomes[0].error_message is None
        assert summary.outcomes[1].success is True
        assert storage.files["a.png"] == original[:500]
        assert fake_client.attempts_for(original) == 1

    @pytest.mark.parametrize(
        ("max_concurrency", "retries"),
        [(0, 3), (-1, 3), (2, -1)],
    )
    def test_invalid_arguments(
        self,
        fake_client: FakeCompressionClient,
        max_concurrency: int,
        retries: int,
    ) -> None:
        with pytest.raises(ValueError):
            compress_batch(["a.png"], fake_client, max_concurrency, retries)
        assert fake_client.uploads == []
