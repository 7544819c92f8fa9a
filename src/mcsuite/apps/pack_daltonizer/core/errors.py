"""Error types raised while daltonizing a resource pack."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Why a single image could not be processed."""

    INVALID_INPUT = "invalid_input"
    ENCODE_FAILURE = "encode_failure"


class ProcessingError(Exception):
    """Per-image failure. Recorded by the dispatcher, never fatal to a batch."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = ErrorKind(kind)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class ArchiveValidationError(Exception):
    """The uploaded file is not a usable resource pack; nothing was processed."""


class MetadataPatchWarning(UserWarning):
    """``pack.mcmeta`` could not be updated. Logged only."""
