"""
splice.render.ffmpeg - Execute a render plan with FFmpeg.

Each TrimStep re-encodes its window into an MPEG-TS segment at the plan's
fixed size and frame rate; the ConcatStep then joins the segments with the
concat demuxer and stream copy. Steps run strictly in order, so only one
source is ever open at a time. Segments are deleted whether the export
succeeds, fails or is cancelled.
"""

from __future__ import annotations

import shutil
import subprocess
import tempfile
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from splice.catalog import MediaCatalog
from splice.config import RenderSettings
from splice.exceptions import EncodeFailedError, ExportCancelledError
from splice.logging import get_logger
from splice.render.plan import ConcatStep, RenderPlan, TrimStep

logger = get_logger("render.ffmpeg")

ProgressCallback = Callable[[float], None]


class Encoder(Protocol):
    """Anything that can turn a render plan into a finished file."""

    def execute(
        self,
        plan: RenderPlan,
        output_path: Path,
        progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Path: ...


def normalize_filter(width: int, height: int, frame_rate: float) -> str:
    """Scale to fit, letterbox to the exact size, and resample frame rate."""
    return (
        f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
        f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2,"
        f"setsar=1,fps={frame_rate:g}"
    )


def _concat_entry(path: Path) -> str:
    escaped = str(path).replace("'", "'\\''")
    return f"file '{escaped}'\n"


class FFmpegEncoder:
    """Runs plan steps as ffmpeg subprocesses."""

    def __init__(
        self,
        settings: RenderSettings | None = None,
        ffmpeg: str = "ffmpeg",
        work_dir: Path | None = None,
    ) -> None:
        self.settings = settings or RenderSettings()
        self.ffmpeg = ffmpeg
        self.work_dir = work_dir

    def trim_command(self, step: TrimStep, output: Path) -> list[str]:
        target = step.normalize
        return [
            self.ffmpeg,
            "-y",
            "-i",
            step.source_locator,
            "-ss",
            f"{step.trim_start:.3f}",
            "-t",
            f"{step.duration:.3f}",
            "-vf",
            normalize_filter(target.width, target.height, target.frame_rate),
            "-c:v",
            self.settings.video_codec,
            "-preset",
            self.settings.encoder_preset,
            "-pix_fmt",
            "yuv420p",
            "-c:a",
            self.settings.audio_codec,
            "-ar",
            str(self.settings.audio_sample_rate),
            "-f",
            self.settings.segment_format,
            str(output),
        ]

    def concat_command(self, list_path: Path, output: Path) -> list[str]:
        return [
            self.ffmpeg,
            "-y",
            "-f",
            "concat",
            "-safe",
            "0",
            "-i",
            str(list_path),
            "-c",
            "copy",
            str(output),
        ]

    def _run(self, index: int, cmd: list[str]) -> None:
        logger.debug("Step %d: %s", index, " ".join(cmd))
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise EncodeFailedError(index, f"Could not start ffmpeg: {e}") from e
        if proc.returncode != 0:
            reason = proc.stderr.strip().splitlines()[-1] if proc.stderr.strip() else ""
            raise EncodeFailedError(index, reason or f"ffmpeg exited with {proc.returncode}")

    def execute(
        self,
        plan: RenderPlan,
        output_path: Path,
        progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
        catalog: MediaCatalog | None = None,
    ) -> Path:
        """Run every step of ``plan`` and write the joined file.

        Args:
            plan: Compiled render plan
            output_path: Destination of the final file
            progress: Called with the completed fraction after each step
            cancel_event: Checked before each step; when set, the export stops
            catalog: If given, the plan is refused when it references
                removed media

        Returns:
            Path to the finished file

        Raises:
            StalePlanError: If the plan references removed media
            EncodeFailedError: If any step fails, with its index
            ExportCancelledError: If cancel_event was set
        """
        if catalog is not None:
            plan.ensure_fresh(catalog)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        owns_dir = self.work_dir is None
        work_dir = Path(tempfile.mkdtemp(prefix="splice-")) if owns_dir else self.work_dir
        work_dir.mkdir(parents=True, exist_ok=True)

        segments: dict[str, Path] = {}
        list_path = work_dir / "concat_list.txt"
        try:
            for index, step in enumerate(plan.steps):
                if cancel_event is not None and cancel_event.is_set():
                    raise ExportCancelledError(index)

                if isinstance(step, TrimStep):
                    segment = work_dir / f"{step.segment_id}.ts"
                    segments[step.segment_id] = segment
                    self._run(index, self.trim_command(step, segment))
                elif isinstance(step, ConcatStep):
                    missing = [s for s in step.segments if s not in segments]
                    if missing:
                        raise EncodeFailedError(index, f"Unknown segments: {', '.join(missing)}")
                    list_path.write_text(
                        "".join(_concat_entry(segments[s]) for s in step.segments),
                        encoding="utf-8",
                    )
                    self._run(index, self.concat_command(list_path, output_path))

                if progress:
                    progress(plan.progress(index + 1))
        finally:
            for segment in segments.values():
                segment.unlink(missing_ok=True)
            list_path.unlink(missing_ok=True)
            if owns_dir:
                shutil.rmtree(work_dir, ignore_errors=True)

        logger.debug("Wrote %s", output_path)
        return output_path
