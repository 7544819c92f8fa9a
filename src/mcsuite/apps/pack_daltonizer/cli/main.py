"""Command line interface for the pack daltonizer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table

from mcsuite.libs.vision.daltonize import ProcessingMode, VisionProfile, transform_pixel
from mcsuite.logging_utils import configure_logging

from ..core.config import load_config
from ..core.engine import PackDaltonizer, write_preview
from ..core.errors import ArchiveValidationError
from ..core.models import BatchReport, ItemOutcome
from ..core.reporting import write_jsonl, write_markdown

LOG_PATH = configure_logging("pack_daltonizer")
logger = logging.getLogger(__name__)
logger.info("Pack daltonizer logging initialised → %s", LOG_PATH)

app = typer.Typer(help="Recolour Minecraft resource packs for colour vision deficiencies.")
console = Console()


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code=1)


@app.command()
def process(
    pack: Path = typer.Argument(..., help="Resource pack ZIP to transform."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Where to write the processed pack."
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Vision profile (protanopia, deuteranopia, tritanopia, achromatopsia, normal)."
    ),
    mode: Optional[str] = typer.Option(
        None, "--mode", "-m", help="simulate or correct."
    ),
    overlays: Optional[bool] = typer.Option(
        None, "--overlays/--no-overlays", help="Stamp text labels onto ores, wool and logs."
    ),
    category: List[str] = typer.Option(
        None, "--category", "-c", help="Overlay category to enable (repeatable)."
    ),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-j", help="Number of textures processed at once."
    ),
    summary_path: Optional[Path] = typer.Option(
        None, "--summary", help="Human-readable Markdown summary path."
    ),
    output_jsonl: Optional[Path] = typer.Option(
        None, "--jsonl", help="Machine-readable JSONL output path."
    ),
) -> None:
    """Process every block and item texture in PACK."""

    overrides: dict[str, object] = {
        "output_path": output,
        "profile": profile,
        "mode": mode,
        "enable_overlays": overlays,
        "overlay_categories": category or None,
        "concurrency": concurrency,
        "summary_path": summary_path,
        "output_jsonl": output_jsonl,
    }
    try:
        config = load_config(
            pack_path=pack, **{k: v for k, v in overrides.items() if v is not None}
        )
    except ValueError as exc:
        _fail(str(exc))

    logger.info(
        "daltonize_run_config",
        extra={
            "event_type": "config",
            "pack": str(config.pack_path),
            "output": str(config.output_path),
            "profile": config.profile.value,
            "mode": config.mode.value,
            "overlays": config.enable_overlays,
            "categories": list(config.overlay_categories),
            "concurrency": config.concurrency,
        },
    )

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Processing textures...", total=None)

        def _advance(outcome: ItemOutcome, completed: int, total: int) -> None:
            progress.update(task, completed=completed, total=total)
            if not outcome.success:
                progress.console.print(
                    f"[yellow]skipped[/yellow] {outcome.path}: {outcome.error}"
                )

        engine = PackDaltonizer(config, on_outcome=_advance)
        try:
            report = engine.run()
        except ArchiveValidationError as exc:
            progress.stop()
            _fail(str(exc))

    if config.output_jsonl is not None:
        write_jsonl(report, config.output_jsonl)
    if config.summary_path is not None:
        write_markdown(report, config.summary_path, config)

    _print_terminal_summary(report, config.output_path)


@app.command()
def preview(
    pack: Path = typer.Argument(..., help="Resource pack ZIP to sample."),
    out: Path = typer.Option(..., "--out", help="PNG file to write the preview to."),
    image: Optional[str] = typer.Option(
        None, "--image", help="Archive entry to preview (defaults to the best candidate)."
    ),
    profile: Optional[str] = typer.Option(None, "--profile", "-p"),
    mode: Optional[str] = typer.Option(None, "--mode", "-m"),
    overlays: Optional[bool] = typer.Option(None, "--overlays/--no-overlays"),
    category: List[str] = typer.Option(None, "--category", "-c"),
) -> None:
    """Render a single texture from PACK without writing a new pack."""

    overrides: dict[str, object] = {
        "profile": profile,
        "mode": mode,
        "enable_overlays": overlays,
        "overlay_categories": category or None,
    }
    try:
        config = load_config(
            pack_path=pack, **{k: v for k, v in overrides.items() if v is not None}
        )
        result = PackDaltonizer(config).preview(image)
    except (ArchiveValidationError, ValueError, TimeoutError) as exc:
        _fail(str(exc))

    target = write_preview(result, out)
    console.print(f"Preview of [bold]{result.path}[/bold] → {target}")


@app.command()
def pixel(
    red: int = typer.Argument(..., min=0, max=255),
    green: int = typer.Argument(..., min=0, max=255),
    blue: int = typer.Argument(..., min=0, max=255),
    profile: str = typer.Option(VisionProfile.PROTANOPIA.value, "--profile", "-p"),
    mode: Optional[str] = typer.Option(
        None, "--mode", "-m", help="Only show one mode instead of both."
    ),
) -> None:
    """Show how a single colour is simulated and corrected."""

    try:
        vision = VisionProfile(profile)
        modes = [ProcessingMode(mode)] if mode else list(ProcessingMode)
    except ValueError as exc:
        _fail(str(exc))

    table = Table(title=f"({red}, {green}, {blue}) under {vision.value}")
    table.add_column("Mode")
    table.add_column("RGB")
    table.add_column("Hex")
    for current in modes:
        r, g, b = transform_pixel((red, green, blue), vision, current)
        table.add_row(current.value, f"{r}, {g}, {b}", f"#{r:02x}{g:02x}{b:02x}")
    console.print(table)


def _print_terminal_summary(report: BatchReport, output_path: Path) -> None:
    typer.echo("\nSummary:")
    typer.echo(f"  Textures : {report.total}")
    typer.echo(f"  Processed: {len(report.succeeded)}")
    typer.echo(f"  Failed   : {len(report.failed)}")
    if report.metadata_warning:
        typer.echo(f"  Warning  : {report.metadata_warning}")
    typer.echo(f"\nProcessed pack → {output_path}")


if __name__ == "__main__":  # pragma: no cover
    app()
