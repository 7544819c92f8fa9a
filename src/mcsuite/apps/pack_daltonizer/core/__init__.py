"""Pack Daltonizer core processing modules.

Exposes the per-image processor, the windowed batch dispatcher, the live
preview controller and the archive helpers the CLI builds on.
"""

from .archive import ResourcePackArchive
from .config import DaltonizerConfig, DaltonizerSettings, build_runtime_config, load_config
from .dispatcher import BatchDispatcher
from .engine import PackDaltonizer
from .errors import ArchiveValidationError, ErrorKind, MetadataPatchWarning, ProcessingError
from .metadata import patch_pack_metadata
from .models import (
    BatchReport,
    BatchRun,
    BatchState,
    ItemOutcome,
    JobRequest,
    JobResponse,
    OverlayDescriptor,
    ProcessingSettings,
)
from .overlays import OVERLAY_RULES, OverlayRule, decide, render
from .preview import PreviewController, PreviewResult
from .processor import ImageProcessor, decode_bitmap

__all__ = [
    "ResourcePackArchive",
    "DaltonizerConfig",
    "DaltonizerSettings",
    "build_runtime_config",
    "load_config",
    "BatchDispatcher",
    "PackDaltonizer",
    "ArchiveValidationError",
    "ErrorKind",
    "MetadataPatchWarning",
    "ProcessingError",
    "patch_pack_metadata",
    "BatchReport",
    "BatchRun",
    "BatchState",
    "ItemOutcome",
    "JobRequest",
    "JobResponse",
    "OverlayDescriptor",
    "ProcessingSettings",
    "OVERLAY_RULES",
    "OverlayRule",
    "decide",
    "render",
    "PreviewController",
    "PreviewResult",
    "ImageProcessor",
    "decode_bitmap",
]
