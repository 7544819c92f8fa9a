"""Core execution engine for the pack daltonizer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from .archive import ResourcePackArchive
from .config import DaltonizerConfig
from .dispatcher import BatchDispatcher
from .metadata import patch_pack_metadata
from .models import BatchReport, ItemOutcome, ProcessingSettings
from .preview import PreviewController, PreviewResult
from .processor import ImageProcessor

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[ItemOutcome, int, int], None]


class PackDaltonizer:
    """Coordinate archive loading, batch processing and repacking."""

    def __init__(
        self,
        config: DaltonizerConfig,
        *,
        processor: Optional[ImageProcessor] = None,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> None:
        self.config = config
        self._processor = processor or ImageProcessor()
        self.on_outcome = on_outcome
        self.archive: Optional[ResourcePackArchive] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def load(self) -> ResourcePackArchive:
        """Read and validate the configured pack. Raises ``ArchiveValidationError``."""

        if self.archive is None:
            self.archive = ResourcePackArchive.load(self.config.pack_path)
        return self.archive

    def run(self) -> BatchReport:
        """Process every eligible texture and write the repacked archive."""

        archive = self.load()
        settings = self.config.processing_settings()
        items = archive.processable_items()
        if not items:
            logger.warning("No block or item textures found in %s", archive.name)

        def _finish(report: BatchReport) -> None:
            warning = patch_pack_metadata(archive)
            if warning is not None:
                report.metadata_warning = str(warning)

        logger.info(
            "daltonize_start",
            extra={
                "event_type": "daltonize_start",
                "pack": str(self.config.pack_path),
                "textures": len(items),
                "settings": settings.as_dict(),
            },
        )

        with BatchDispatcher(
            self._processor,
            concurrency=self.config.concurrency,
            on_complete=_finish,
        ) as dispatcher:
            for outcome in dispatcher.iter_run(items, settings):
                if outcome.success and outcome.data is not None:
                    archive.write(outcome.path, outcome.data)
                if self.on_outcome is not None:
                    self.on_outcome(
                        outcome, dispatcher.progress.completed, dispatcher.progress.total
                    )
            report = dispatcher.last_report

        assert report is not None
        archive.save(self.config.output_path)
        logger.info(
            "daltonize_complete",
            extra={
                "event_type": "daltonize_complete",
                "output": str(self.config.output_path),
                "succeeded": len(report.succeeded),
                "failed": len(report.failed),
            },
        )
        return report

    def preview(
        self,
        entry: Optional[str] = None,
        *,
        settings: Optional[ProcessingSettings] = None,
        timeout: Optional[float] = 30.0,
    ) -> PreviewResult:
        """Render one texture with the current settings without touching the pack."""

        archive = self.load()
        path = entry or archive.preview_candidate()
        if path is None:
            raise ValueError(f"No PNG textures found in {archive.name}")
        if path not in archive:
            raise ValueError(f"No such entry in {archive.name}: {path}")

        with PreviewController(
            self._processor, settings=settings or self.config.processing_settings()
        ) as controller:
            controller.select_image(path, archive.read(path))
            result = controller.wait(timeout)
            if controller.loading:
                raise TimeoutError(f"Preview of {path} did not finish in time")
            if result is None:
                raise ValueError(
                    f"Preview of {path} failed: {controller.last_error or 'unknown error'}"
                )
        return result


def write_preview(result: PreviewResult, path: Path) -> Path:
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(result.data)
    return target
