"""In-memory view of a Minecraft resource pack ZIP."""

from __future__ import annotations

import io
import logging
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .errors import ArchiveValidationError

logger = logging.getLogger(__name__)

PACK_METADATA = "pack.mcmeta"

# Only block and item textures are recoloured
PROCESSABLE_PATTERN = re.compile(r"assets/minecraft/textures/(block|item)/.*\.png$")

# Textures that make the most telling preview, best first
PREVIEW_PRIORITY = (
    re.compile(r".*diamond_ore\.png$"),
    re.compile(r".*gold_ore\.png$"),
    re.compile(r".*wool_red\.png$"),
    re.compile(r".*_ore\.png$"),
    re.compile(r".*\.png$"),
)

_DEFAULT_DATE_TIME = (1980, 1, 1, 0, 0, 0)


@dataclass(frozen=True)
class ArchiveEntry:
    path: str
    is_dir: bool


def is_processable(path: str) -> bool:
    return bool(PROCESSABLE_PATTERN.search(path))


class ResourcePackArchive:
    """Entries of a resource pack, editable in place and re-serialisable.

    Writes are expected from a single (coordinating) thread only.
    """

    def __init__(
        self,
        files: Optional[Dict[str, bytes]] = None,
        *,
        name: str = "resource_pack.zip",
        directories: Tuple[str, ...] = (),
    ) -> None:
        self.name = name
        self._files: Dict[str, bytes] = dict(files or {})
        self._directories: List[str] = list(directories)
        self._date_times: Dict[str, Tuple[int, int, int, int, int, int]] = {}

    @classmethod
    def load(
        cls, source: Union[str, Path, bytes], *, name: Optional[str] = None
    ) -> "ResourcePackArchive":
        """Read a pack from a path or raw bytes and check it is a resource pack."""

        if isinstance(source, (bytes, bytearray)):
            handle: Union[Path, io.BytesIO] = io.BytesIO(source)
            archive_name = name or "resource_pack.zip"
        else:
            handle = Path(source).expanduser()
            archive_name = name or handle.name

        files: Dict[str, bytes] = {}
        directories: List[str] = []
        date_times: Dict[str, Tuple[int, int, int, int, int, int]] = {}
        try:
            with zipfile.ZipFile(handle) as zf:
                for info in zf.infolist():
                    if info.is_dir():
                        directories.append(info.filename)
                        continue
                    files[info.filename] = zf.read(info)
                    date_times[info.filename] = info.date_time
        except (zipfile.BadZipFile, OSError) as exc:
            raise ArchiveValidationError(f"Failed to load Zip file: {exc}") from exc

        if PACK_METADATA not in files:
            raise ArchiveValidationError(
                f"Invalid Resource Pack: {PACK_METADATA} not found at root."
            )

        archive = cls(files, name=archive_name, directories=tuple(directories))
        archive._date_times = date_times
        logger.info(
            "Loaded %s: %d files, %d eligible textures",
            archive_name,
            len(files),
            len(archive.processable_paths()),
        )
        return archive

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def entries(self) -> List[ArchiveEntry]:
        listed = [ArchiveEntry(path=path, is_dir=True) for path in self._directories]
        listed.extend(ArchiveEntry(path=path, is_dir=False) for path in self._files)
        return listed

    def read(self, path: str) -> bytes:
        try:
            return self._files[path]
        except KeyError:
            raise KeyError(f"No such entry in {self.name}: {path}") from None

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        return self.read(path).decode(encoding)

    def write(self, path: str, data: bytes) -> None:
        self._files[path] = bytes(data)

    def processable_paths(self) -> List[str]:
        return [path for path in self._files if is_processable(path)]

    def processable_items(self) -> List[Tuple[str, bytes]]:
        return [(path, self._files[path]) for path in self.processable_paths()]

    def preview_candidate(self) -> Optional[str]:
        for pattern in PREVIEW_PRIORITY:
            for path in self._files:
                if pattern.search(path):
                    return path
        return None

    def output_name(self, suffix: str = "_daltonized") -> str:
        stem = self.name[: -len(".zip")] if self.name.lower().endswith(".zip") else self.name
        return f"{stem}{suffix}.zip"

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for directory in self._directories:
                zf.writestr(zipfile.ZipInfo(directory, date_time=_DEFAULT_DATE_TIME), b"")
            for path, data in self._files.items():
                info = zipfile.ZipInfo(
                    path, date_time=self._date_times.get(path, _DEFAULT_DATE_TIME)
                )
                info.compress_type = zipfile.ZIP_DEFLATED
                zf.writestr(info, data)
        return buffer.getvalue()

    def save(self, path: Union[str, Path]) -> Path:
        target = Path(path).expanduser()
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.to_bytes())
        logger.info("Wrote %s (%d files)", target, len(self._files))
        return target
