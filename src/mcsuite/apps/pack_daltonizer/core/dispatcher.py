"""Windowed, bounded-concurrency dispatch of image jobs to a worker pool."""

from __future__ import annotations

import itertools
import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, Optional, Tuple

from .errors import ProcessingError
from .models import (
    BatchReport,
    BatchRun,
    BatchState,
    ItemOutcome,
    JobRequest,
    JobResponse,
    ProcessingSettings,
)
from .processor import ImageProcessor, decode_bitmap

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4

ProgressCallback = Callable[[int, int], None]
CompletionCallback = Callable[[BatchReport], None]


@dataclass
class PendingJob:
    job_id: str
    path: str
    submitted_at: float


class BatchDispatcher:
    """Run :class:`ImageProcessor` over many images, a window at a time.

    Jobs are submitted in windows of ``concurrency`` items and the next window
    is only admitted once every job of the current one has settled, which caps
    the number of decoded bitmaps alive at any moment. Completions are matched
    back to their request through an explicit pending-job map; each id is
    resolved at most once and responses for unknown ids are dropped.
    """

    def __init__(
        self,
        processor: Optional[ImageProcessor] = None,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        executor: Optional[Executor] = None,
        progress_callback: Optional[ProgressCallback] = None,
        on_complete: Optional[CompletionCallback] = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("Concurrency must be at least 1")
        self._processor = processor or ImageProcessor()
        self.concurrency = concurrency
        self._executor = executor
        self._owns_executor = executor is None
        self.progress_callback = progress_callback
        self.on_complete = on_complete

        self.progress = BatchRun()
        self.last_report: Optional[BatchReport] = None
        self._pending: Dict[str, PendingJob] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._generation = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def state(self) -> BatchState:
        return self.progress.state

    @property
    def pending_ids(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._pending)

    def run(
        self, items: Iterable[Tuple[str, bytes]], settings: ProcessingSettings
    ) -> BatchReport:
        """Process every ``(path, encoded bytes)`` item and return the report."""

        for _ in self.iter_run(items, settings):
            pass
        assert self.last_report is not None
        return self.last_report

    def iter_run(
        self, items: Iterable[Tuple[str, bytes]], settings: ProcessingSettings
    ) -> Iterator[ItemOutcome]:
        """Yield one :class:`ItemOutcome` per item as soon as it settles.

        *settings* is pinned for the whole batch.
        """

        batch = list(items)
        with self._lock:
            if self.progress.state is BatchState.RUNNING:
                raise RuntimeError("A batch is already running on this dispatcher")
            self._generation += 1
            generation = self._generation
            self._pending.clear()
            self.progress = BatchRun()
            self.progress.start(len(batch))
            report = BatchReport(
                settings=settings, total=len(batch), state=BatchState.RUNNING
            )
            self.last_report = report

        logger.info(
            "batch_start",
            extra={
                "event_type": "batch_start",
                "total": len(batch),
                "concurrency": self.concurrency,
                "settings": settings.as_dict(),
            },
        )
        started = time.monotonic()
        executor = self._ensure_executor()
        finished = False
        try:
            for offset in range(0, len(batch), self.concurrency):
                window = batch[offset : offset + self.concurrency]
                futures: Dict[Future, str] = {}

                for path, data in window:
                    job_id = self._register(path)
                    try:
                        bitmap = decode_bitmap(data)
                    except ProcessingError as exc:
                        outcome = self.resolve(
                            JobResponse(
                                correlation_id=job_id,
                                success=False,
                                error=exc.message,
                                error_kind=exc.kind,
                            )
                        )
                        if outcome is not None:
                            yield outcome
                        if generation != self._generation:
                            return
                        continue

                    request = JobRequest(
                        correlation_id=job_id,
                        bitmap=bitmap,
                        filename=path,
                        settings=settings,
                    )
                    # The request owns the bitmap from here on
                    bitmap = None
                    futures[executor.submit(self._processor.handle, request)] = job_id

                for future in as_completed(futures):
                    try:
                        response = future.result()
                    except Exception as exc:  # noqa: BLE001 - recorded as an item failure
                        response = JobResponse(
                            correlation_id=futures[future],
                            success=False,
                            error=str(exc) or type(exc).__name__,
                        )
                    outcome = self.resolve(response)
                    if outcome is not None:
                        yield outcome
                    if generation != self._generation:
                        logger.info("Batch was reset; remaining jobs will be ignored")
                        return

            with self._lock:
                if generation != self._generation:
                    return
                self.progress.state = BatchState.COMPLETE
                report.state = BatchState.COMPLETE
            finished = True
        finally:
            if not finished:
                # Consumer stopped early or a callback raised
                self._abandon(generation)

        logger.info(
            "batch_complete",
            extra={
                "event_type": "batch_complete",
                "total": report.total,
                "succeeded": len(report.succeeded),
                "failed": len(report.failed),
                "seconds": round(time.monotonic() - started, 3),
            },
        )
        if self.on_complete is not None:
            self.on_complete(report)

    def resolve(self, response: JobResponse) -> Optional[ItemOutcome]:
        """Settle the pending job *response* answers, exactly once.

        Returns ``None`` when the id is unknown (already settled, or dropped by
        :meth:`reset`).
        """

        with self._lock:
            pending = self._pending.pop(response.correlation_id, None)
            if pending is None:
                logger.debug("Ignoring response for unknown job %s", response.correlation_id)
                return None
            completed = self.progress.settle(success=response.success)
            total = self.progress.total
            report = self.last_report

        outcome = ItemOutcome(
            path=pending.path,
            correlation_id=pending.job_id,
            success=response.success,
            data=response.data if response.success else None,
            error=response.error,
            error_kind=response.error_kind,
        )
        if response.success:
            logger.debug(
                "Job %s (%s) done in %.3fs",
                pending.job_id,
                pending.path,
                time.monotonic() - pending.submitted_at,
            )
        else:
            logger.error(
                "Job %s failed for %s: %s", pending.job_id, pending.path, response.error
            )

        if report is not None:
            report.outcomes.append(outcome)
        if self.progress_callback is not None:
            self.progress_callback(completed, total)
        return outcome

    def reset(self) -> None:
        """Forget the current batch. Work still in flight is ignored when it lands."""

        with self._lock:
            dropped = self._drop_batch()
        logger.info("Dispatcher reset; %d in-flight job(s) will be ignored", dropped)

    def close(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "BatchDispatcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _ensure_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.concurrency, thread_name_prefix="daltonize"
            )
        return self._executor

    def _register(self, path: str) -> str:
        job_id = f"job-{next(self._ids)}"
        with self._lock:
            self._pending[job_id] = PendingJob(
                job_id=job_id, path=path, submitted_at=time.monotonic()
            )
        return job_id

    def _abandon(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            dropped = self._drop_batch()
        logger.warning(
            "Batch stopped before completion; %d in-flight job(s) abandoned", dropped
        )

    def _drop_batch(self) -> int:
        # Caller holds self._lock
        self._generation += 1
        dropped = len(self._pending)
        self._pending.clear()
        self.progress = BatchRun()
        if self.last_report is not None and not self.last_report.complete:
            self.last_report.state = BatchState.IDLE
        return dropped
