"""
splice.cli - Typer CLI entry point.

Every timeline command takes an edit script, replays it, and then shows,
compiles, renders or exports the result.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from splice import __version__
from splice.config import SpliceConfig, load_config
from splice.exceptions import DependencyError, ScriptError, SpliceError
from splice.io import write_json, write_text
from splice.logging import configure_logging
from splice.script import Session, load_session
from splice.timecode import seconds_to_timecode
from splice.utils import format_seconds, format_size

app = typer.Typer(
    name="splice",
    help="Non-linear editing timeline engine.\n\n"
    "Replays edit scripts against a timeline, compiles render plans, and "
    "exports them with FFmpeg or as an EDL.",
    add_completion=False,
)
console = Console()

ScriptArg = typer.Argument(..., help="Edit script (YAML)")
ConfigOpt = typer.Option(None, "--config", "-c", help="splice.yaml overriding the script's config")


def version_callback(value: bool) -> None:
    if value:
        console.print(f"splice {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Splice - non-linear editing timeline engine."""
    configure_logging(verbose)


def open_session(script: str, config_path: str | None) -> Session:
    """Load config and replay a script, exiting with a message on failure."""
    try:
        config: SpliceConfig | None = load_config(Path(config_path)) if config_path else None
        return load_session(Path(script), config=config)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    except ScriptError as e:
        console.print(f"[red]Error: {e}[/red]")
        if e.__cause__ is not None:
            console.print(f"[dim]  Caused by {type(e.__cause__).__name__}[/dim]")
        raise typer.Exit(1)
    except SpliceError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command("show")
def show_timeline(
    script: str = ScriptArg,
    config_path: str | None = ConfigOpt,
    fps: float = typer.Option(30.0, "--fps", help="Frame rate for timecode columns"),
) -> None:
    """Replay an edit script and list tracks and clips."""
    session = open_session(script, config_path)
    timeline = session.timeline

    table = Table(title="Timeline")
    table.add_column("Track", style="cyan")
    table.add_column("Clip")
    table.add_column("Media")
    table.add_column("Start", style="green")
    table.add_column("End", style="green")
    table.add_column("Trim")

    for track in timeline.tracks:
        if not track.clips:
            table.add_row(f"{track.id} {track.name} ({track.kind.value})", "[dim]empty[/dim]")
            continue
        for clip in track.clips:
            table.add_row(
                f"{track.id} {track.name} ({track.kind.value})",
                clip.id,
                clip.name or clip.media_id,
                seconds_to_timecode(clip.start, fps),
                seconds_to_timecode(clip.end, fps),
                f"{clip.trim_start:.3f}-{clip.trim_end:.3f}",
            )
    console.print(table)

    if len(timeline.catalog):
        media_table = Table(title="Media")
        media_table.add_column("Id", style="cyan")
        media_table.add_column("Name")
        media_table.add_column("Duration", style="green")
        media_table.add_column("Size")
        media_table.add_column("Resolution")
        for media in timeline.catalog:
            resolution = f"{media.width}x{media.height}" if media.width and media.height else "-"
            media_table.add_row(
                media.id,
                media.name,
                format_seconds(media.duration, precision=2),
                format_size(media.size_bytes),
                resolution,
            )
        console.print(media_table)

    console.print(f"Total duration: {format_seconds(timeline.total_duration, precision=2)}")


@app.command("plan")
def plan_export(
    script: str = ScriptArg,
    config_path: str | None = ConfigOpt,
    output: str | None = typer.Option(None, "--output", "-o", help="Write plan JSON here"),
) -> None:
    """Compile the render plan for an edit script."""
    from splice.render.plan import compile_plan

    session = open_session(script, config_path)
    try:
        plan = compile_plan(session.timeline)
    except SpliceError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    data = plan.model_dump(mode="json")
    if output:
        write_json(Path(output), data)
        console.print(f"[green]✓[/green] Wrote {plan.step_count}-step plan to {output}")
        return

    table = Table(title=f"Render Plan ({plan.target.width}x{plan.target.height}@{plan.target.frame_rate:g})")
    table.add_column("#", style="cyan")
    table.add_column("Step")
    table.add_column("Detail")
    for index, step in enumerate(plan.steps):
        if step.kind == "trim":
            detail = f"{step.segment_id}: {step.source_locator} [{step.trim_start:.3f}, {step.trim_end:.3f})"
        else:
            detail = " + ".join(step.segments)
        table.add_row(str(index), step.kind, detail)
    console.print(table)
    console.print(f"[dim]Output duration {format_seconds(plan.duration, precision=2)}[/dim]")


@app.command("render")
def render_export(
    script: str = ScriptArg,
    output: str = typer.Option(..., "--output", "-o", help="Output video file"),
    config_path: str | None = ConfigOpt,
    ffmpeg: str = typer.Option("ffmpeg", "--ffmpeg", help="ffmpeg executable"),
) -> None:
    """Compile an edit script and render it with FFmpeg."""
    from splice.render.ffmpeg import FFmpegEncoder
    from splice.render.plan import compile_plan
    from splice.validation import validate_sources

    session = open_session(script, config_path)
    timeline = session.timeline

    try:
        plan = compile_plan(timeline)
        validate_sources([s.source_locator for s in plan.trim_steps])
    except SpliceError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    encoder = FFmpegEncoder(settings=timeline.config.render, ffmpeg=ffmpeg)
    output_path = Path(output)

    with Progress(
        TextColumn("[cyan]Rendering"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("render", total=1.0)
        try:
            encoder.execute(
                plan,
                output_path,
                progress=lambda fraction: progress.update(task, completed=fraction),
                catalog=timeline.catalog,
            )
        except SpliceError as e:
            progress.stop()
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)

    console.print(f"[green]✓[/green] Rendered {len(plan.trim_steps)} clip(s) to {output_path}")


@app.command("edl")
def export_edl(
    script: str = ScriptArg,
    config_path: str | None = ConfigOpt,
    output: str | None = typer.Option(None, "--output", "-o", help="Output .edl path"),
    fps: float = typer.Option(30.0, "--fps", help="Record frame rate"),
    title: str | None = typer.Option(None, "--title", help="EDL title"),
) -> None:
    """Export the playback order of an edit script as a CMX 3600 EDL."""
    from splice.render.edl import generate_edl

    session = open_session(script, config_path)
    try:
        content = generate_edl(
            session.timeline.snapshot(),
            title=title or Path(script).stem,
            fps=fps,
        )
    except SpliceError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if output is None:
        console.print(content, markup=False, highlight=False, soft_wrap=True)
        return
    write_text(Path(output), content)
    console.print(f"[green]✓[/green] Exported to {output}")


@app.command("probe")
def probe_files(
    files: list[str] = typer.Argument(..., help="Media file(s) to probe"),
) -> None:
    """Probe media files and print the metadata the catalog would store."""
    from splice.probe import probe_media

    table = Table(title="Probe Results")
    table.add_column("File", style="cyan")
    table.add_column("Type")
    table.add_column("Duration", style="green")
    table.add_column("Resolution")
    table.add_column("FPS")

    failed = 0
    for name in files:
        path = Path(name).expanduser()
        if not path.exists():
            table.add_row(path.name, "-", "-", "[red]Not found[/red]", "-")
            failed += 1
            continue
        try:
            meta = probe_media(path)
        except DependencyError as e:
            console.print(f"[red]Error: {e}[/red]")
            if e.install_hint:
                console.print(f"[dim]{e.install_hint}[/dim]")
            raise typer.Exit(1)
        except SpliceError as e:
            table.add_row(path.name, "-", "-", f"[red]{e}[/red]", "-")
            failed += 1
            continue

        duration = format_seconds(meta.duration_seconds, 2) if meta.duration_seconds else "?"
        resolution = f"{meta.width_px}x{meta.height_px}" if meta.width_px else "-"
        table.add_row(
            path.name,
            meta.mime_type,
            duration,
            resolution,
            f"{meta.frame_rate:g}" if meta.frame_rate else "-",
        )

    console.print(table)
    if failed:
        raise typer.Exit(1)


@app.command("doctor")
def run_doctor() -> None:
    """Check that the export tools are installed."""
    from splice.validation import tool_version

    table = Table(title="Dependency Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Version/Details")

    all_passed = True
    for tool in ("ffmpeg", "ffprobe"):
        try:
            table.add_row(tool, "✓ Installed", tool_version(tool))
        except DependencyError as e:
            table.add_row(tool, "✗ Missing", e.install_hint or "")
            all_passed = False

    console.print(table)

    if all_passed:
        console.print("\n[green]✓ All checks passed[/green]")
    else:
        console.print("\n[yellow]⚠ Some checks failed[/yellow]")
        raise typer.Exit(1)


@app.command("init")
def init_config(
    path: str = typer.Option("splice.yaml", "--path", "-p", help="Where to write the config"),
    preset: str = typer.Option("720p", "--preset", help="Render preset: 720p, 1080p, preview"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """Write a starter splice.yaml."""
    from splice.config import create_default_config, write_config

    config_path = Path(path)
    if config_path.exists() and not force:
        console.print(f"[red]Error: {config_path} already exists (use --force)[/red]")
        raise typer.Exit(1)

    try:
        write_config(create_default_config(preset), config_path)
    except SpliceError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Wrote {config_path} with preset '{preset}'")
