"""Configuration helpers for the pack daltonizer."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Tuple

import tomllib

from mcsuite.libs.vision.daltonize import ProcessingMode, VisionProfile

from .models import OVERLAY_CATEGORIES, ProcessingSettings

_CONFIG_ENV_PREFIX = "MCSUITE_PACK_DALTONIZER__"


def _find_pyproject(start: Optional[Path] = None) -> Optional[Path]:
    """Locate the closest ``pyproject.toml`` relative to *start*."""

    current = (start or Path.cwd()).resolve()
    for candidate in [current, *current.parents]:
        pyproject = candidate / "pyproject.toml"
        if pyproject.exists():
            return pyproject
    return None


def _coerce_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return default


def _coerce_int(value: object, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _normalise_iterable(value: object) -> Tuple[str, ...]:
    if value is None:
        return tuple()
    if isinstance(value, str):
        parts = [part.strip() for part in value.split(",")]
    elif isinstance(value, Iterable):
        parts = [str(item).strip() for item in value if item]
    else:
        return tuple()
    return tuple(filter(None, parts))


def _as_path(value: object) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value
    if isinstance(value, str) and value.strip():
        return Path(value).expanduser()
    return None


@dataclass(frozen=True)
class DaltonizerSettings:
    """Defaults sourced from project metadata and the environment."""

    default_profile: str = VisionProfile.PROTANOPIA.value
    default_mode: str = ProcessingMode.SIMULATE.value
    default_enable_overlays: bool = False
    default_overlay_categories: Tuple[str, ...] = OVERLAY_CATEGORIES
    default_concurrency: int = 4
    default_output_suffix: str = "_daltonized"
    default_summary_path: Optional[Path] = None
    default_output_jsonl: Optional[Path] = None


@dataclass(frozen=True)
class DaltonizerConfig:
    """Fully resolved runtime configuration for one run."""

    pack_path: Path
    output_path: Path
    profile: VisionProfile
    mode: ProcessingMode
    enable_overlays: bool
    overlay_categories: Tuple[str, ...]
    concurrency: int
    summary_path: Optional[Path]
    output_jsonl: Optional[Path]

    def processing_settings(self) -> ProcessingSettings:
        """Snapshot handed to every job of the run."""

        return ProcessingSettings(
            profile=self.profile,
            mode=self.mode,
            overlays_enabled=self.enable_overlays,
            enabled_overlay_categories={
                category: category in self.overlay_categories
                for category in dict.fromkeys(OVERLAY_CATEGORIES + self.overlay_categories)
            },
        )


def _load_pyproject_settings(start: Optional[Path]) -> Dict[str, object]:
    pyproject = _find_pyproject(start)
    if not pyproject:
        return {}

    try:
        with pyproject.open("rb") as handle:
            data = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError):
        return {}

    tool_cfg = data.get("tool", {}).get("mcsuite", {})
    if not isinstance(tool_cfg, dict):
        return {}

    section = tool_cfg.get("pack_daltonizer")
    return dict(section) if isinstance(section, dict) else {}


def _load_env_settings() -> Dict[str, object]:
    values: Dict[str, object] = {}
    for env_key, env_value in os.environ.items():
        if not env_key.startswith(_CONFIG_ENV_PREFIX):
            continue
        key = env_key[len(_CONFIG_ENV_PREFIX) :].lower()
        values[key] = env_value
    return values


def load_settings(start: Optional[Path] = None) -> DaltonizerSettings:
    """Load project defaults, applying environment overrides when present."""

    raw = _load_pyproject_settings(start)
    raw.update(_load_env_settings())

    profile = str(raw.get("default_profile") or DaltonizerSettings.default_profile)
    mode = str(raw.get("default_mode") or DaltonizerSettings.default_mode)
    enable_overlays = _coerce_bool(
        raw.get("default_enable_overlays"), DaltonizerSettings.default_enable_overlays
    )
    categories = (
        _normalise_iterable(raw.get("default_overlay_categories"))
        or DaltonizerSettings.default_overlay_categories
    )
    concurrency = _coerce_int(
        raw.get("default_concurrency"), DaltonizerSettings.default_concurrency
    )
    output_suffix = str(
        raw.get("default_output_suffix") or DaltonizerSettings.default_output_suffix
    )

    return DaltonizerSettings(
        default_profile=profile.strip().lower(),
        default_mode=mode.strip().lower(),
        default_enable_overlays=enable_overlays,
        default_overlay_categories=tuple(c.lower() for c in categories),
        default_concurrency=concurrency,
        default_output_suffix=output_suffix,
        default_summary_path=_as_path(raw.get("default_summary_path")),
        default_output_jsonl=_as_path(raw.get("default_output_jsonl")),
    )


def _parse_profile(value: str) -> VisionProfile:
    try:
        return VisionProfile(value)
    except ValueError:
        choices = ", ".join(profile.value for profile in VisionProfile)
        raise ValueError(f"Unknown vision profile '{value}' (choose from {choices})") from None


def _parse_mode(value: str) -> ProcessingMode:
    try:
        return ProcessingMode(value)
    except ValueError:
        choices = ", ".join(mode.value for mode in ProcessingMode)
        raise ValueError(f"Unknown processing mode '{value}' (choose from {choices})") from None


def build_runtime_config(
    *,
    settings: DaltonizerSettings,
    pack_path: Path,
    output_path: Optional[Path] = None,
    profile: Optional[str] = None,
    mode: Optional[str] = None,
    enable_overlays: Optional[bool] = None,
    overlay_categories: Optional[Sequence[str]] = None,
    concurrency: Optional[int] = None,
    summary_path: Optional[Path] = None,
    output_jsonl: Optional[Path] = None,
) -> DaltonizerConfig:
    """Merge CLI overrides with defaults to produce a runtime config."""

    resolved_pack = Path(pack_path).expanduser()
    if not resolved_pack.is_file():
        raise ValueError(f"Resource pack not found: {resolved_pack}")

    resolved_profile = _parse_profile(profile or settings.default_profile)
    resolved_mode = _parse_mode(mode or settings.default_mode)

    resolved_concurrency = int(
        settings.default_concurrency if concurrency is None else concurrency
    )
    if resolved_concurrency < 1:
        raise ValueError("Concurrency must be at least 1")

    if output_path is not None:
        resolved_output = Path(output_path).expanduser()
    else:
        stem = resolved_pack.stem if resolved_pack.suffix.lower() == ".zip" else resolved_pack.name
        resolved_output = resolved_pack.with_name(
            f"{stem}{settings.default_output_suffix}.zip"
        )
    if resolved_output.resolve() == resolved_pack.resolve():
        raise ValueError("Output path must differ from the input pack")

    resolved_overlays = (
        settings.default_enable_overlays
        if enable_overlays is None
        else bool(enable_overlays)
    )
    resolved_categories = tuple(
        category.strip().lower()
        for category in (overlay_categories or settings.default_overlay_categories)
        if category and category.strip()
    )

    return DaltonizerConfig(
        pack_path=resolved_pack,
        output_path=resolved_output,
        profile=resolved_profile,
        mode=resolved_mode,
        enable_overlays=resolved_overlays,
        overlay_categories=resolved_categories,
        concurrency=resolved_concurrency,
        summary_path=(summary_path or settings.default_summary_path),
        output_jsonl=(output_jsonl or settings.default_output_jsonl),
    )


def load_config(
    *, start: Optional[Path] = None, pack_path: Path, **overrides: object
) -> DaltonizerConfig:
    """Convenience helper used by the CLI to resolve the runtime config."""

    settings = load_settings(start)
    return build_runtime_config(settings=settings, pack_path=pack_path, **overrides)

