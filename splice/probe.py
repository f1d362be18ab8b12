"""
splice.probe - Source probing with ffprobe.

Produces the ProbeMetadata that MediaCatalog.register consumes. The
timeline engine itself never calls this; it belongs to ingestion.
"""

from __future__ import annotations

import json
import math
import mimetypes
import subprocess
from pathlib import Path
from typing import Any

from splice.exceptions import DependencyError, ProbeIncompleteError
from splice.models import ProbeMetadata
from splice.validation import INSTALL_HINT


def parse_frame_rate(rate: str | None) -> float | None:
    """Parse ffprobe's ``30000/1001`` style rates.

    Raises:
        ProbeIncompleteError: If the rate is not a number or a ratio
    """
    if not rate:
        return None
    try:
        if "/" in rate:
            num, den = rate.split("/", 1)
            if float(den) == 0:
                return None
            fps = float(num) / float(den)
        else:
            fps = float(rate)
    except ValueError as e:
        raise ProbeIncompleteError(f"Unreadable frame rate: {rate!r}") from e
    if not math.isfinite(fps) or fps <= 0:
        return None
    if abs(fps - 23.976) < 0.01:
        return 23.976
    if abs(fps - 29.97) < 0.01:
        return 29.97
    return round(fps, 3)


def guess_mime_type(path: Path, has_video: bool) -> str:
    guessed, _ = mimetypes.guess_type(path.name)
    if guessed:
        return guessed
    return "video/mp4" if has_video else "audio/mpeg"


def metadata_from_ffprobe(path: Path, data: dict[str, Any]) -> ProbeMetadata:
    """Build ProbeMetadata from ffprobe's JSON output."""
    video_stream = None
    for stream in data.get("streams", []):
        if stream.get("codec_type") == "video" and video_stream is None:
            video_stream = stream

    format_info = data.get("format", {})
    duration = format_info.get("duration")

    width = height = frame_rate = None
    if video_stream:
        width = video_stream.get("width") or None
        height = video_stream.get("height") or None
        frame_rate = parse_frame_rate(video_stream.get("r_frame_rate"))
        if duration is None:
            duration = video_stream.get("duration")

    try:
        duration_seconds = float(duration) if duration is not None else None
    except ValueError:
        duration_seconds = None

    return ProbeMetadata(
        mime_type=guess_mime_type(path, video_stream is not None),
        name=path.name,
        size_bytes=int(format_info.get("size", 0) or 0),
        duration_seconds=duration_seconds,
        width_px=width,
        height_px=height,
        frame_rate=frame_rate,
    )


def probe_media(path: Path, ffprobe: str = "ffprobe") -> ProbeMetadata:
    """Probe a media file for duration, size and frame rate.

    Raises:
        DependencyError: If ffprobe cannot be started
        ProbeIncompleteError: If ffprobe rejects the file
    """
    cmd = [
        ffprobe,
        "-v",
        "quiet",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        str(path),
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise DependencyError(
            "ffprobe",
            f"Could not run ffprobe: {e}",
            INSTALL_HINT,
        ) from e
    if result.returncode != 0:
        raise ProbeIncompleteError(f"ffprobe failed for {path}: {result.stderr.strip()}")

    try:
        data = json.loads(result.stdout or "{}")
    except ValueError as e:
        raise ProbeIncompleteError(f"ffprobe returned unreadable output for {path}") from e
    if not isinstance(data, dict):
        raise ProbeIncompleteError(f"ffprobe returned unexpected output for {path}")

    return metadata_from_ffprobe(path, data)
