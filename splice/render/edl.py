"""
splice.render.edl - CMX 3600 EDL of the exported sequence.

Events follow the render plan's playback order and are laid end to end on
the record side, so the EDL describes exactly what the encoder produces.
"""

from __future__ import annotations

from splice.exceptions import NoExportableContentError
from splice.models import TimelineSnapshot
from splice.render.plan import playback_order
from splice.timecode import is_drop_frame_fps, seconds_to_timecode

RECORD_START_SECONDS = 3600.0


def reel_names(snapshot: TimelineSnapshot) -> dict[str, str]:
    """Map media ids to 8-character reel names, in playback order."""
    reels: dict[str, str] = {}
    for clip in playback_order(snapshot):
        if clip.media_id not in reels:
            reels[clip.media_id] = f"R{len(reels) + 1:03d}"
    return reels


def generate_edl(
    snapshot: TimelineSnapshot,
    title: str = "Splice Export",
    fps: float = 30.0,
    drop_frame: bool | None = None,
) -> str:
    """Generate a CMX 3600 EDL for the video clips of a snapshot.

    Args:
        snapshot: Timeline snapshot
        title: EDL title line
        fps: Record frame rate
        drop_frame: Force drop-frame on or off; defaults to on for 29.97

    Returns:
        EDL content as string

    Raises:
        NoExportableContentError: If there are no video clips
    """
    clips = playback_order(snapshot)
    if not clips:
        raise NoExportableContentError("No video clips to export")

    if drop_frame is None:
        drop_frame = is_drop_frame_fps(fps)

    lines = [
        f"TITLE: {title}",
        f"FCM: {'DROP FRAME' if drop_frame else 'NON-DROP FRAME'}",
        "",
    ]

    reels = reel_names(snapshot)
    if len(reels) > 1:
        lines.append("* REEL MAPPING:")
        for media_id, reel in reels.items():
            lines.append(f"* {reel} = {snapshot.media[media_id].name}")
        lines.append("")

    record_frame = round(RECORD_START_SECONDS * fps)
    for event, clip in enumerate(clips, 1):
        media = snapshot.media[clip.media_id]
        src_in = seconds_to_timecode(clip.trim_start, fps, drop_frame)
        src_out = seconds_to_timecode(clip.trim_end, fps, drop_frame)

        rec_in = seconds_to_timecode(record_frame / fps, fps, drop_frame)
        record_frame += round(clip.duration * fps)
        rec_out = seconds_to_timecode(record_frame / fps, fps, drop_frame)

        lines.append(
            f"{event:03d}  {reels[clip.media_id]:<8s} V     C        "
            f"{src_in} {src_out} {rec_in} {rec_out}"
        )
        lines.append(f"* FROM CLIP NAME: {media.name}")
        lines.append(f"* COMMENT: {clip.id} track {clip.track_id}")
        lines.append("")

    return "\n".join(lines)
