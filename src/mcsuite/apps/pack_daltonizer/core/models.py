"""Data models shared by the processor, dispatcher and preview controller."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional

from mcsuite.libs.vision.daltonize import ProcessingMode, VisionProfile

from .errors import ErrorKind

if TYPE_CHECKING:  # pragma: no cover - typing only
    from PIL import Image

PREVIEW_JOB_ID = "preview"

OVERLAY_CATEGORIES = ("ores", "wool", "logs")


@dataclass(frozen=True)
class ProcessingSettings:
    """Immutable snapshot of the user's choices, captured per job."""

    profile: VisionProfile = VisionProfile.PROTANOPIA
    mode: ProcessingMode = ProcessingMode.SIMULATE
    overlays_enabled: bool = False
    enabled_overlay_categories: Optional[Mapping[str, bool]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "profile", VisionProfile(self.profile))
        object.__setattr__(self, "mode", ProcessingMode(self.mode))
        if self.enabled_overlay_categories is not None:
            object.__setattr__(
                self,
                "enabled_overlay_categories",
                MappingProxyType(dict(self.enabled_overlay_categories)),
            )

    def overlay_category_enabled(self, category: str) -> bool:
        # No category map at all means every category is on
        if self.enabled_overlay_categories is None:
            return True
        return bool(self.enabled_overlay_categories.get(category, False))

    def as_dict(self) -> Dict[str, object]:
        return {
            "profile": self.profile.value,
            "mode": self.mode.value,
            "overlays_enabled": self.overlays_enabled,
            "enabled_overlay_categories": (
                None
                if self.enabled_overlay_categories is None
                else dict(self.enabled_overlay_categories)
            ),
        }


@dataclass(frozen=True)
class OverlayDescriptor:
    """High-contrast label stamped onto a recognised texture."""

    category: str
    text: str
    color: str = "#ffffff"
    position: Optional[str] = None  # "corner" or centred when None
    scale: Optional[float] = None


@dataclass
class JobRequest:
    """Message handed to a worker.

    The bitmap belongs to the request from the moment it is built; the sender
    must not read or close it afterwards.
    """

    correlation_id: str
    bitmap: Optional["Image.Image"]
    filename: str
    settings: ProcessingSettings


@dataclass(frozen=True)
class JobResponse:
    """Message returned by a worker: either result bytes or an error."""

    correlation_id: str
    success: bool
    data: Optional[bytes] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


@dataclass(frozen=True)
class ItemOutcome:
    """Terminal result for one archive entry."""

    path: str
    correlation_id: str
    success: bool
    data: Optional[bytes] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    def to_json(self) -> Dict[str, object]:
        return {
            "path": self.path,
            "job_id": self.correlation_id,
            "success": self.success,
            "bytes": len(self.data) if self.data is not None else 0,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
        }


class BatchState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"


@dataclass
class BatchRun:
    """Progress of a batch. ``completed`` only ever goes up."""

    total: int = 0
    completed: int = 0
    failed: int = 0
    state: BatchState = BatchState.IDLE

    def start(self, total: int) -> None:
        self.total = total
        self.completed = 0
        self.failed = 0
        self.state = BatchState.RUNNING

    def settle(self, *, success: bool) -> int:
        self.completed += 1
        if not success:
            self.failed += 1
        return self.completed

    @property
    def fraction(self) -> float:
        return self.completed / self.total if self.total else 1.0

    def to_dict(self) -> Dict[str, object]:
        return {
            "total": self.total,
            "completed": self.completed,
            "failed": self.failed,
            "state": self.state.value,
        }


@dataclass
class BatchReport:
    """Everything a caller needs once a batch has stopped."""

    settings: ProcessingSettings
    total: int
    outcomes: List[ItemOutcome] = field(default_factory=list)
    state: BatchState = BatchState.IDLE
    metadata_warning: Optional[str] = None

    @property
    def succeeded(self) -> List[ItemOutcome]:
        return [outcome for outcome in self.outcomes if outcome.success]

    @property
    def failed(self) -> List[ItemOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]

    @property
    def complete(self) -> bool:
        return self.state is BatchState.COMPLETE

    def to_json(self) -> Dict[str, object]:
        return {
            "settings": self.settings.as_dict(),
            "state": self.state.value,
            "total": self.total,
            "processed": len(self.outcomes),
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "metadata_warning": self.metadata_warning,
        }
