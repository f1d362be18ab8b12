"""
splice.timecode - Conversion between seconds and SMPTE timecode.

Supports non-drop-frame timecode at any integer-rounded rate and 29.97
drop-frame (``HH:MM:SS;FF``).
"""

from __future__ import annotations

import re

DF_FRAMES_PER_10_MIN = 17982
DF_FRAMES_PER_MIN = 1798

_TIMECODE_RE = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2})([:;])(\d{2})$")


def is_drop_frame_fps(fps: float) -> bool:
    """True for 29.97, the only rate that uses drop-frame timecode here."""
    return abs(fps - 29.97) < 0.01


def _split_frames(frames: int, nominal: int) -> tuple[int, int, int, int]:
    ff = frames % nominal
    total_seconds = frames // nominal
    return total_seconds // 3600, (total_seconds // 60) % 60, total_seconds % 60, ff


def seconds_to_timecode(seconds: float, fps: float, drop_frame: bool = False) -> str:
    """Convert seconds to ``HH:MM:SS:FF`` (or ``HH:MM:SS;FF`` for drop-frame).

    Drop-frame is only applied at 29.97; other rates fall back to NDF.
    """
    if drop_frame and is_drop_frame_fps(fps):
        frames = round(seconds * 29.97)
        tens, rem = divmod(frames, DF_FRAMES_PER_10_MIN)
        skipped = 18 * tens + (2 * ((rem - 2) // DF_FRAMES_PER_MIN) if rem >= 2 else 0)
        hh, mm, ss, ff = _split_frames(frames + skipped, 30)
        return f"{hh:02d}:{mm:02d}:{ss:02d};{ff:02d}"

    hh, mm, ss, ff = _split_frames(round(seconds * fps), round(fps))
    return f"{hh:02d}:{mm:02d}:{ss:02d}:{ff:02d}"


def timecode_to_seconds(timecode: str, fps: float) -> float:
    """Convert a timecode string to seconds; ``;`` marks drop-frame.

    Raises:
        ValueError: If the string is not a timecode
    """
    match = _TIMECODE_RE.match(timecode.strip())
    if not match:
        raise ValueError(f"Not a timecode: {timecode!r}")
    hh, mm, ss, sep, ff = match.groups()
    hh, mm, ss, ff = int(hh), int(mm), int(ss), int(ff)

    if sep == ";":
        total_minutes = hh * 60 + mm
        frames = (hh * 3600 + mm * 60 + ss) * 30 + ff
        frames -= 2 * (total_minutes - total_minutes // 10)
        return frames / 29.97

    return ((hh * 3600 + mm * 60 + ss) * round(fps) + ff) / fps


def parse_time(value: float | int | str, fps: float = 30.0) -> float:
    """Accept seconds (number or numeric string) or a timecode string."""
    if isinstance(value, bool):
        raise ValueError(f"Not a time value: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    try:
        return float(text)
    except ValueError:
        return timecode_to_seconds(text, fps)
