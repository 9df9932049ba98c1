"""
Transfer engine: classify, prioritize and concurrently copy a device's files.

One engine instance serves one device run. Jobs flow through a single
bounded queue to a fixed pool of workers; priority jobs are enqueued before
all normal jobs. Per-file failures are counted, never raised.
"""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

import aiofiles.os

from media_ingest.config import Settings
from media_ingest.core.exceptions import ClassificationError, TransferSetupError
from media_ingest.models import TransferStatsSnapshot
from media_ingest.services.classification import (
    DestinationResolver,
    FilenameClassifier,
)
from media_ingest.services.device_log import DeviceLogAdapter, get_device_logger
from media_ingest.utils.file_operations import is_priority_file, remove_file_quietly
from media_ingest.utils.progress_utils import format_bytes_human_readable

from .copy_error_handler import CopyErrorHandler
from .file_copy_executor import CopyResult, FileCopyExecutor
from .job_models import JobResult, TransferJob
from .transfer_statistics import TransferStatistics

# Queue slots per worker; producers wait when the queue is full
QUEUE_SLOTS_PER_WORKER = 2


class TransferEngine:
    def __init__(
        self,
        settings: Settings,
        classifier: FilenameClassifier,
        resolver: Optional[DestinationResolver] = None,
        copy_executor: Optional[FileCopyExecutor] = None,
        error_handler: Optional[CopyErrorHandler] = None,
    ):
        self.settings = settings
        self.classifier = classifier
        self.resolver = resolver or DestinationResolver(classifier)
        self.copy_executor = copy_executor or FileCopyExecutor(settings)
        self.error_handler = error_handler or CopyErrorHandler(settings)

        self._worker_count = settings.max_workers
        self._priority_prefixes = tuple(settings.priority_prefixes)
        self._stats: Optional[TransferStatistics] = None

    async def transfer_files(
        self, device_name: str, files: Sequence[str]
    ) -> TransferStatsSnapshot:
        """
        Copy ``files`` and return the final statistics.

        Blocks until every job has been processed and every worker has
        exited. Raises TransferSetupError only if the run cannot start.
        """
        log = get_device_logger(device_name, "media_ingest.transfer")
        self._stats = TransferStatistics(total_files=len(files))

        await self._ensure_destination_root()

        jobs = await self.prepare_jobs(files, log)
        priority_count = sum(1 for job in jobs if job.priority)
        log.info(
            f"Found {self._stats.total_files} files "
            f"({priority_count} priority, {len(jobs) - priority_count} normal)"
        )

        await self._dispatch(jobs, log)

        final = self._stats.snapshot()
        log.info(
            f"Transfer finished: {final.succeeded_files}/{final.total_files} files, "
            f"{final.failed_files} failed, "
            f"{format_bytes_human_readable(final.transferred_bytes)} transferred"
        )
        return final

    async def prepare_jobs(
        self, files: Sequence[str], log: Optional[DeviceLogAdapter] = None
    ) -> List[TransferJob]:
        """
        Build jobs for ``files`` in enqueue order: every priority job first,
        then normal jobs, each tier in discovery order.

        Files that cannot be stat'ed or versioned are logged and counted as
        failed here.
        """
        log = log or get_device_logger("-", "media_ingest.transfer")
        if self._stats is None:
            self._stats = TransferStatistics(total_files=len(files))

        priority_jobs: List[TransferJob] = []
        normal_jobs: List[TransferJob] = []

        for file_path in files:
            job = await self._build_job(file_path, log)
            if job is None:
                self._stats.record_preparation_failure()
                continue

            self._stats.add_queued_bytes(job.size)
            if job.priority:
                priority_jobs.append(job)
            else:
                normal_jobs.append(job)

        return priority_jobs + normal_jobs

    async def _build_job(
        self, file_path: str, log: DeviceLogAdapter
    ) -> Optional[TransferJob]:
        source = Path(file_path)

        try:
            stat_result = await aiofiles.os.stat(source)
        except OSError as e:
            log.error(f"Failed to stat file {file_path}: {e}")
            return None

        classification = self.classifier.classify(file_path)

        try:
            destination = await self.resolver.resolve(classification)
        except ClassificationError as e:
            log.error(f"Failed to get destination path for {file_path}: {e}")
            return None
        except OSError as e:
            log.error(f"Failed to claim destination for {file_path}: {e}")
            return None

        return TransferJob(
            source_path=source,
            destination_path=destination,
            size=stat_result.st_size,
            priority=is_priority_file(source.name, self._priority_prefixes),
            classification=classification,
        )

    async def _dispatch(self, jobs: List[TransferJob], log: DeviceLogAdapter) -> None:
        queue: asyncio.Queue[Optional[TransferJob]] = asyncio.Queue(
            maxsize=self._worker_count * QUEUE_SLOTS_PER_WORKER
        )

        workers = [
            asyncio.create_task(
                self._worker_loop(f"worker-{i + 1}", queue, log),
                name=f"transfer-{log.device_name}-worker-{i + 1}",
            )
            for i in range(self._worker_count)
        ]
        log.debug(f"Started {len(workers)} transfer workers")

        for job in jobs:
            await queue.put(job)

        # One stop sentinel per worker closes the queue
        for _ in workers:
            await queue.put(None)

        await queue.join()
        await asyncio.gather(*workers)
        log.debug("All transfer workers stopped")

    async def _worker_loop(
        self,
        worker_id: str,
        queue: "asyncio.Queue[Optional[TransferJob]]",
        log: DeviceLogAdapter,
    ) -> None:
        while True:
            job = await queue.get()
            try:
                if job is None:
                    return

                success = False
                try:
                    result = await self._process_job(job, worker_id, log)
                    success = result.success
                finally:
                    self._stats.record_job_result(success, job.size)
            finally:
                queue.task_done()

    async def _process_job(
        self, job: TransferJob, worker_id: str, log: DeviceLogAdapter
    ) -> JobResult:
        started = datetime.now()
        attempt = 0
        copy_result: Optional[CopyResult] = None
        error_message: Optional[str] = None

        while True:
            attempt += 1
            copy_result = None
            try:
                copy_result = await self.copy_executor.copy_file(
                    job.source_path, job.destination_path
                )
            except Exception as e:
                # Unexpected failures stay local to this job
                log.exception(f"{worker_id}: unexpected error copying {job.file_name}")
                error_message = f"{e.__class__.__name__}: {e}"
                break

            if copy_result.success:
                break

            decision = self.error_handler.decide(copy_result.error, attempt)
            error_message = decision.error_message
            if not decision.should_retry:
                break

            log.warning(
                f"{decision.error_message} - retrying {job.file_name} "
                f"in {decision.delay_seconds:.1f}s"
            )
            await asyncio.sleep(decision.delay_seconds)

        elapsed = (datetime.now() - started).total_seconds()

        if copy_result is not None and copy_result.success:
            self._log_success(job, log)
            return JobResult(
                job=job, success=True, attempts=attempt, processing_time_seconds=elapsed
            )

        try:
            await remove_file_quietly(job.destination_path)
        except OSError as e:
            log.warning(f"Could not remove incomplete destination {job.destination_path}: {e}")

        if copy_result is not None and copy_result.checksum_mismatch:
            log.error(f"Checksum mismatch for {job.source_path}")
        else:
            log.error(f"Failed to transfer {job.source_path}: {error_message}")

        return JobResult(
            job=job,
            success=False,
            attempts=attempt,
            processing_time_seconds=elapsed,
            error_message=error_message,
        )

    def _log_success(self, job: TransferJob, log: DeviceLogAdapter) -> None:
        info = job.classification
        if not info.matched:
            log.info(f"Transferred (unmatched): {job.file_name} -> {job.destination_path}")
        else:
            log.info(
                f"Transferred: {job.file_name} -> "
                f"{info.client}/{info.project}/{info.camera}/{job.destination_path.name}"
            )

    async def _ensure_destination_root(self) -> None:
        root = Path(self.settings.destination_path)
        try:
            await aiofiles.os.makedirs(root, exist_ok=True)
        except OSError as e:
            raise TransferSetupError(
                f"Destination root not available: {root}: {e}"
            ) from e

    def get_stats(self) -> TransferStatsSnapshot:
        if self._stats is None:
            return TransferStatsSnapshot()
        return self._stats.snapshot()

    def get_progress(self) -> float:
        return self._stats.get_progress() if self._stats else 0.0

    def get_speed(self) -> float:
        return self._stats.get_speed() if self._stats else 0.0
