"""Single-image unit of work: recolour, stamp an overlay, re-encode."""

from __future__ import annotations

import io
import logging
from typing import Optional, Sequence

import numpy as np
from PIL import Image, UnidentifiedImageError

from mcsuite.libs.vision.daltonize import apply_to_rgba

from .errors import ErrorKind, ProcessingError
from .models import JobRequest, JobResponse, ProcessingSettings
from .overlays import OVERLAY_RULES, OverlayRule, decide, render

logger = logging.getLogger(__name__)


def decode_bitmap(data: Optional[bytes]) -> Image.Image:
    """Open encoded image bytes.

    Only the header is parsed here; pixel data is decoded lazily by whoever
    ends up owning the returned image.
    """

    if not data:
        raise ProcessingError(ErrorKind.INVALID_INPUT, "No image data provided")
    try:
        return Image.open(io.BytesIO(data))
    except (UnidentifiedImageError, OSError) as exc:
        raise ProcessingError(
            ErrorKind.INVALID_INPUT, f"Cannot decode image: {exc}"
        ) from exc


class ImageProcessor:
    """Apply the colour transform and overlays to one bitmap."""

    def __init__(
        self,
        *,
        rules: Sequence[OverlayRule] = OVERLAY_RULES,
        image_format: str = "PNG",
    ) -> None:
        self._rules = tuple(rules)
        self.image_format = image_format

    def process(
        self,
        bitmap: Optional[Image.Image],
        filename: str,
        settings: ProcessingSettings,
    ) -> bytes:
        """Return the encoded result for *bitmap*. The bitmap is closed."""

        if bitmap is None:
            raise ProcessingError(ErrorKind.INVALID_INPUT, "No bitmap provided")

        try:
            try:
                buffer = np.array(bitmap.convert("RGBA"), dtype=np.uint8)
            except (OSError, ValueError) as exc:
                raise ProcessingError(
                    ErrorKind.INVALID_INPUT, f"Cannot read pixels of {filename}: {exc}"
                ) from exc
        finally:
            bitmap.close()

        apply_to_rgba(buffer, settings.profile, settings.mode)
        canvas = Image.fromarray(buffer)

        if settings.overlays_enabled:
            descriptor = decide(filename, self._rules)
            if descriptor is not None and settings.overlay_category_enabled(
                descriptor.category
            ):
                render(canvas, descriptor)

        return self._encode(canvas, filename)

    def handle(self, request: JobRequest) -> JobResponse:
        """Worker entry point: always answers, never raises."""

        bitmap, request.bitmap = request.bitmap, None
        try:
            data = self.process(bitmap, request.filename, request.settings)
        except ProcessingError as exc:
            logger.warning("Failed to process %s: %s", request.filename, exc)
            return JobResponse(
                correlation_id=request.correlation_id,
                success=False,
                error=exc.message,
                error_kind=exc.kind,
            )
        except Exception as exc:  # noqa: BLE001 - the worker must always respond
            logger.exception("Unexpected error processing %s", request.filename)
            return JobResponse(
                correlation_id=request.correlation_id,
                success=False,
                error=str(exc) or type(exc).__name__,
            )
        return JobResponse(
            correlation_id=request.correlation_id, success=True, data=data
        )

    def _encode(self, canvas: Image.Image, filename: str) -> bytes:
        output = io.BytesIO()
        try:
            canvas.save(output, format=self.image_format)
        except (OSError, ValueError, KeyError) as exc:
            raise ProcessingError(
                ErrorKind.ENCODE_FAILURE, f"Cannot encode {filename}: {exc!r}"
            ) from exc
        return output.getvalue()
