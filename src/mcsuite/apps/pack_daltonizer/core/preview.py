"""Live single-texture preview that follows the current settings."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import ProcessingError
from .models import PREVIEW_JOB_ID, JobRequest, JobResponse, ProcessingSettings
from .processor import ImageProcessor, decode_bitmap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreviewResult:
    path: str
    settings: ProcessingSettings
    sequence: int
    data: bytes


class PreviewController:
    """Re-render the selected texture whenever the settings or selection change.

    Every refresh is numbered. Only the result of the most recently issued
    refresh is shown; anything older is discarded when it arrives, whatever
    order the worker finishes in. In-flight work is not cancelled.
    """

    def __init__(
        self,
        processor: Optional[ImageProcessor] = None,
        *,
        settings: Optional[ProcessingSettings] = None,
        executor: Optional[Executor] = None,
        on_result: Optional[Callable[[PreviewResult], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._processor = processor or ImageProcessor()
        self._executor = executor
        self._owns_executor = executor is None
        self.on_result = on_result
        self.on_error = on_error

        self._settings = settings or ProcessingSettings()
        self._selected_path: Optional[str] = None
        self._selected_data: Optional[bytes] = None
        self._issued = 0
        self._settled = threading.Condition()
        self._latest_done = True
        self.current: Optional[PreviewResult] = None
        self.last_error: Optional[str] = None

    @property
    def settings(self) -> ProcessingSettings:
        return self._settings

    @property
    def selected_path(self) -> Optional[str]:
        return self._selected_path

    @property
    def loading(self) -> bool:
        with self._settled:
            return not self._latest_done

    def update_settings(self, settings: ProcessingSettings) -> Optional[int]:
        self._settings = settings
        return self.refresh()

    def select_image(self, path: str, data: bytes) -> Optional[int]:
        self._selected_path = path
        self._selected_data = data
        return self.refresh()

    def clear(self) -> None:
        """Drop the selection; any preview still rendering is discarded."""

        with self._settled:
            self._issued += 1
            self._latest_done = True
            self._settled.notify_all()
        self._selected_path = None
        self._selected_data = None
        self.current = None

    def refresh(self) -> Optional[int]:
        """Issue a new preview job. Returns its sequence number, if one was issued."""

        if self._selected_path is None or self._selected_data is None:
            return None

        with self._settled:
            self._issued += 1
            sequence = self._issued
            self._latest_done = False

        path, settings = self._selected_path, self._settings
        try:
            bitmap = decode_bitmap(self._selected_data)
        except ProcessingError as exc:
            self._deliver(
                sequence,
                path,
                settings,
                JobResponse(
                    correlation_id=PREVIEW_JOB_ID,
                    success=False,
                    error=exc.message,
                    error_kind=exc.kind,
                ),
            )
            return sequence

        request = JobRequest(
            correlation_id=PREVIEW_JOB_ID, bitmap=bitmap, filename=path, settings=settings
        )
        future = self._ensure_executor().submit(self._processor.handle, request)
        future.add_done_callback(
            lambda done: self._on_done(done, sequence, path, settings)
        )
        return sequence

    def wait(self, timeout: Optional[float] = None) -> Optional[PreviewResult]:
        """Block until the most recently issued preview has settled."""

        with self._settled:
            self._settled.wait_for(lambda: self._latest_done, timeout=timeout)
        return self.current

    def close(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "PreviewController":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _ensure_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="preview"
            )
        return self._executor

    def _on_done(
        self, future: Future, sequence: int, path: str, settings: ProcessingSettings
    ) -> None:
        try:
            response = future.result()
        except Exception as exc:  # noqa: BLE001 - surfaced through on_error
            response = JobResponse(
                correlation_id=PREVIEW_JOB_ID,
                success=False,
                error=str(exc) or type(exc).__name__,
            )
        self._deliver(sequence, path, settings, response)

    def _deliver(
        self,
        sequence: int,
        path: str,
        settings: ProcessingSettings,
        response: JobResponse,
    ) -> None:
        with self._settled:
            if sequence != self._issued:
                logger.debug(
                    "Discarding stale preview #%d (latest is #%d)", sequence, self._issued
                )
                return
            result: Optional[PreviewResult] = None
            if response.success and response.data is not None:
                result = PreviewResult(
                    path=path, settings=settings, sequence=sequence, data=response.data
                )
                self.current = result
                self.last_error = None
            else:
                self.last_error = response.error
            self._latest_done = True
            self._settled.notify_all()

        if result is not None:
            if self.on_result is not None:
                self.on_result(result)
        else:
            logger.warning("Preview of %s failed: %s", path, response.error)
            if self.on_error is not None:
                self.on_error(response.error or "unknown error")
