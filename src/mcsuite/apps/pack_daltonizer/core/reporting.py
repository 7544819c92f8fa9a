"""Report generation for the pack daltonizer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from .config import DaltonizerConfig
from .models import BatchReport


def write_jsonl(report: BatchReport, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        for outcome in report.outcomes:
            handle.write(json.dumps(outcome.to_json(), ensure_ascii=False))
            handle.write("\n")


def write_markdown(
    report: BatchReport, path: Path, config: Optional[DaltonizerConfig] = None
) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    settings = report.settings
    lines = ["# Pack Daltonizer Report", ""]
    if config is not None:
        lines.append(f"- Pack: `{config.pack_path}`")
        lines.append(f"- Output: `{config.output_path}`")
    lines.append(f"- Profile: **{settings.profile.value}** ({settings.profile.description})")
    lines.append(f"- Mode: **{settings.mode.value}**")
    lines.append(f"- Overlays: {'on' if settings.overlays_enabled else 'off'}")
    lines.append(
        f"- Processed: {len(report.outcomes)}/{report.total}"
        f" ({len(report.succeeded)} ok, {len(report.failed)} failed)"
    )
    if report.metadata_warning:
        lines.append(f"- Metadata: {report.metadata_warning}")
    lines.append("")

    if not report.outcomes:
        lines.append("No textures were processed.")
    elif report.failed:
        lines.extend(
            [
                "## Failures",
                "",
                "| Texture | Kind | Error |",
                "| --- | --- | --- |",
            ]
        )
        for outcome in report.failed:
            kind = outcome.error_kind.value if outcome.error_kind else "-"
            error = (outcome.error or "").replace("|", "\\|")
            lines.append(f"| `{outcome.path}` | {kind} | {error} |")
    else:
        lines.append("All textures processed successfully.")
    lines.append("")

    path.write_text("\n".join(lines), encoding="utf-8")
