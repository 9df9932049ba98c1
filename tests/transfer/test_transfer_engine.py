"""
Tests for TransferEngine.

Exercises job preparation and priority ordering, the worker pool, failure
isolation, retries and the statistics invariants of a finished run.
"""

import errno
from datetime import datetime
from pathlib import Path

import pytest

from media_ingest.config import Settings
from media_ingest.core.exceptions import TransferSetupError
from media_ingest.services.classification import FilenameClassifier
from media_ingest.services.transfer import CopyResult, FileCopyExecutor, TransferEngine

pytestmark = pytest.mark.asyncio


def make_engine(settings, **kwargs) -> TransferEngine:
    return TransferEngine(settings, FilenameClassifier(settings), **kwargs)


def failed_result(source: Path, dest: Path, error: BaseException) -> CopyResult:
    now = datetime.now()
    return CopyResult(
        success=False,
        source_path=source,
        destination_path=dest,
        bytes_copied=0,
        elapsed_seconds=0.0,
        start_time=now,
        end_time=now,
        error=error,
    )


class RecordingExecutor(FileCopyExecutor):
    """Real executor that remembers the order files were copied in."""

    def __init__(self, settings):
        super().__init__(settings)
        self.copied = []

    async def copy_file(self, source, dest):
        self.copied.append(source.name)
        return await super().copy_file(source, dest)


class FlakyExecutor(FileCopyExecutor):
    """Fails the first ``failures`` attempts with ``error``, then copies."""

    def __init__(self, settings, error, failures):
        super().__init__(settings)
        self.error = error
        self.failures = failures
        self.calls = 0

    async def copy_file(self, source, dest):
        self.calls += 1
        if self.calls <= self.failures:
            return failed_result(source, dest, self.error)
        return await super().copy_file(source, dest)


@pytest.fixture
def card(tmp_path):
    return tmp_path / "card"


async def test_transfers_every_file_to_classified_destination(
    settings, card, destination, make_file
):
    files = [
        make_file(card / "DCIM" / "BrandVideo_Nike_ACam_001.mp4", b"a" * 3000),
        make_file(card / "Interview_Tesla_CCam_Take5.mxf", b"b" * 10),
        make_file(card / "random_video.mp4", b"c" * 20),
    ]

    stats = await make_engine(settings).transfer_files("sdb1", [str(f) for f in files])

    assert stats.total_files == 3
    assert stats.processed_files == 3
    assert stats.failed_files == 0
    assert stats.total_bytes == 3030
    assert stats.transferred_bytes == 3030
    assert stats.progress_percent == pytest.approx(100.0)
    assert (destination / "Nike" / "BrandVideo" / "ACam" / "001.mp4").read_bytes() == b"a" * 3000
    assert (destination / "Tesla" / "Interview" / "CCam" / "Take5.mxf").exists()
    assert (destination / "Unsorted" / "random_video.mp4").exists()


async def test_empty_file_list(settings):
    stats = await make_engine(settings).transfer_files("sdb1", [])

    assert stats.total_files == 0
    assert stats.processed_files == 0
    assert stats.progress_percent == 0.0


async def test_same_destination_within_run_is_versioned(settings, card, destination, make_file):
    files = [
        make_file(card / "day1" / "Doc_Acme_ACam_001.mov", b"one"),
        make_file(card / "day2" / "Doc_Acme_ACam_001.mov", b"two"),
    ]

    stats = await make_engine(settings).transfer_files("sdb1", [str(f) for f in files])

    target = destination / "Acme" / "Doc" / "ACam"
    assert stats.failed_files == 0
    assert {p.name for p in target.iterdir()} == {"001.mov", "001_v2.mov"}
    assert {p.read_bytes() for p in target.iterdir()} == {b"one", b"two"}


async def test_existing_destination_file_is_preserved(settings, card, destination, make_file):
    make_file(destination / "Unsorted" / "notes.txt", b"keep me")
    source = make_file(card / "notes.txt", b"new")

    await make_engine(settings).transfer_files("sdb1", [str(source)])

    assert (destination / "Unsorted" / "notes.txt").read_bytes() == b"keep me"
    assert (destination / "Unsorted" / "notes_v2.txt").read_bytes() == b"new"


class TestPriority:
    async def test_prepare_jobs_puts_priority_first(self, tmp_path, card, make_file):
        settings = Settings(
            destination_path=str(tmp_path / "storage"),
            priority_prefixes=["PRIORITY_", "URGENT_"],
        )
        names = ["a.mp4", "PRIORITY_b.mp4", "c.mp4", "URGENT_d.mp4", "priority_e.mp4"]
        files = [str(make_file(card / name)) for name in names]

        jobs = await make_engine(settings).prepare_jobs(files)

        assert [job.file_name for job in jobs] == [
            "PRIORITY_b.mp4",
            "URGENT_d.mp4",
            "a.mp4",
            "c.mp4",
            "priority_e.mp4",
        ]
        assert [job.priority for job in jobs] == [True, True, False, False, False]

    async def test_single_worker_copies_priority_files_first(self, tmp_path, card, make_file):
        settings = Settings(
            destination_path=str(tmp_path / "storage"),
            max_workers=1,
            priority_prefixes=["PRIORITY_"],
        )
        names = ["z.mp4", "y.mp4", "PRIORITY_x.mp4", "w.mp4", "PRIORITY_v.mp4"]
        files = [str(make_file(card / name)) for name in names]
        executor = RecordingExecutor(settings)

        await make_engine(settings, copy_executor=executor).transfer_files("sdb1", files)

        assert executor.copied == [
            "PRIORITY_x.mp4",
            "PRIORITY_v.mp4",
            "z.mp4",
            "y.mp4",
            "w.mp4",
        ]

    async def test_empty_prefix_marks_nothing_as_priority(self, tmp_path, card, make_file):
        settings = Settings(destination_path=str(tmp_path / "storage"), priority_prefixes=[""])
        files = [str(make_file(card / "a.mp4"))]

        jobs = await make_engine(settings).prepare_jobs(files)

        assert jobs[0].priority is False


class TestFailureIsolation:
    async def test_missing_file_is_counted_as_failed(self, settings, card, make_file):
        good = make_file(card / "good.mp4", b"12345")
        missing = card / "missing.mp4"

        stats = await make_engine(settings).transfer_files(
            "sdb1", [str(good), str(missing)]
        )

        assert stats.total_files == 2
        assert stats.processed_files == 2
        assert stats.failed_files == 1
        assert stats.transferred_bytes == 5

    async def test_checksum_mismatch_fails_only_that_file(
        self, settings, card, destination, make_file
    ):
        files = [make_file(card / f"clip{i}.mp4", b"payload") for i in range(4)]
        executor = FileCopyExecutor(settings)
        real_stream_copy = executor._stream_copy

        async def corrupt_clip2(src, dst, hasher):
            result = await real_stream_copy(src, dst, hasher)
            if src.name == "clip2.mp4":
                dst.write_bytes(b"garbage")
            return result

        executor._stream_copy = corrupt_clip2

        stats = await make_engine(settings, copy_executor=executor).transfer_files(
            "sdb1", [str(f) for f in files]
        )

        assert stats.processed_files == 4
        assert stats.failed_files == 1
        assert not (destination / "Unsorted" / "clip2.mp4").exists()
        assert (destination / "Unsorted" / "clip0.mp4").read_bytes() == b"payload"

    async def test_failed_job_leaves_no_placeholder(self, settings, card, destination, make_file):
        source = make_file(card / "clip.mp4", b"data")
        executor = FlakyExecutor(settings, OSError(errno.EIO, "I/O error"), failures=1)

        stats = await make_engine(settings, copy_executor=executor).transfer_files(
            "sdb1", [str(source)]
        )

        assert stats.failed_files == 1
        assert not (destination / "Unsorted" / "clip.mp4").exists()

    async def test_unexpected_exception_stays_local(self, settings, card, make_file):
        files = [str(make_file(card / f"f{i}.bin", b"x")) for i in range(3)]

        class ExplodingExecutor(FileCopyExecutor):
            async def copy_file(self, source, dest):
                if source.name == "f1.bin":
                    raise RuntimeError("boom")
                return await super().copy_file(source, dest)

        stats = await make_engine(
            settings, copy_executor=ExplodingExecutor(settings)
        ).transfer_files("sdb1", files)

        assert stats.processed_files == 3
        assert stats.failed_files == 1

    async def test_unusable_destination_root_raises_setup_error(self, tmp_path, make_file):
        blocker = make_file(tmp_path / "not_a_dir", b"")
        settings = Settings(destination_path=str(blocker / "storage"))

        with pytest.raises(TransferSetupError):
            await make_engine(settings).transfer_files("sdb1", [])


class TestRetry:
    async def test_transient_error_is_retried(self, tmp_path, card, make_file):
        settings = Settings(
            destination_path=str(tmp_path / "storage"),
            max_retry_attempts=2,
            retry_delay_seconds=0,
        )
        source = make_file(card / "clip.mp4", b"data")
        executor = FlakyExecutor(settings, OSError(errno.EIO, "I/O error"), failures=2)

        stats = await make_engine(settings, copy_executor=executor).transfer_files(
            "sdb1", [str(source)]
        )

        assert executor.calls == 3
        assert stats.processed_files == 1
        assert stats.failed_files == 0
        assert (tmp_path / "storage" / "Unsorted" / "clip.mp4").read_bytes() == b"data"

    async def test_permanent_error_is_not_retried(self, tmp_path, card, make_file):
        settings = Settings(
            destination_path=str(tmp_path / "storage"),
            max_retry_attempts=3,
            retry_delay_seconds=0,
        )
        source = make_file(card / "clip.mp4", b"data")
        executor = FlakyExecutor(settings, PermissionError("denied"), failures=5)

        stats = await make_engine(settings, copy_executor=executor).transfer_files(
            "sdb1", [str(source)]
        )

        assert executor.calls == 1
        assert stats.failed_files == 1

    async def test_no_retry_by_default(self, settings, card, make_file):
        source = make_file(card / "clip.mp4", b"data")
        executor = FlakyExecutor(settings, OSError(errno.EIO, "I/O error"), failures=1)

        stats = await make_engine(settings, copy_executor=executor).transfer_files(
            "sdb1", [str(source)]
        )

        assert executor.calls == 1
        assert stats.failed_files == 1


async def test_engine_stats_before_and_after_run(settings, card, make_file):
    engine = make_engine(settings)
    assert engine.get_stats().total_files == 0
    assert engine.get_progress() == 0.0

    await engine.transfer_files("sdb1", [str(make_file(card / "a.mp4", b"abc"))])

    assert engine.get_stats().processed_files == 1
    assert engine.get_progress() == pytest.approx(100.0)
