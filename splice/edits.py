"""
splice.edits - Edit operations against a Timeline.

Every operation validates completely before it touches any state, so a
raised error always leaves the timeline exactly as it was. Removals are
idempotent: removing something already gone is a no-op.
"""

from __future__ import annotations

import math

from splice.exceptions import (
    InvalidPlacementError,
    InvalidTrimError,
    OutOfBoundsError,
    OverlapDetectedError,
    UnknownClipError,
)
from splice.logging import get_logger
from splice.models import Clip, Track, quantize_time
from splice.timeline import Timeline

logger = get_logger("edits")


def _locate(timeline: Timeline, clip_id: str) -> tuple[Track, int, Clip]:
    found = timeline.locate(clip_id)
    if found is None:
        raise UnknownClipError(clip_id)
    track, index = found
    return track, index, track.clips[index]


def _check_free(
    timeline: Timeline, track: Track, clip_id: str, start: float, end: float
) -> None:
    other = timeline.find_overlap(track, start, end, ignore=clip_id)
    if other is not None:
        raise OverlapDetectedError(clip_id, other.id, track.id)


def place_clip(timeline: Timeline, media_id: str, track_id: int) -> Clip:
    """Append the whole of a media item after the last clip on a track.

    Raises:
        UnknownTrackError: If the track does not exist
        UnknownMediaError: If the media is not in the catalog
    """
    track = timeline.require_track(track_id)
    media = timeline.catalog.require(media_id)

    start = track.clips[-1].end if track.clips else 0.0
    trim_start = 0.0
    trim_end = media.duration
    clip = Clip(
        id=timeline.new_clip_id(),
        media_id=media.id,
        track_id=track.id,
        name=media.name,
        start=start,
        duration=trim_end - trim_start,
        trim_start=trim_start,
        trim_end=trim_end,
    )

    track.clips.append(clip)
    timeline.extend_total_duration(clip.end)
    logger.debug(
        "Placed %s (%s) on track %d at %.3fs; total duration %.3fs",
        clip.id,
        media.id,
        track.id,
        clip.start,
        timeline.total_duration,
    )
    return clip


def move_clip(
    timeline: Timeline,
    clip_id: str,
    new_start: float,
    track_id: int | None = None,
) -> Clip:
    """Reposition a clip, optionally onto another track.

    Raises:
        UnknownClipError: If the clip does not exist
        UnknownTrackError: If the target track does not exist
        InvalidPlacementError: If new_start is negative
        OverlapDetectedError: If the clip would intersect a sibling
    """
    source, index, clip = _locate(timeline, clip_id)
    if not math.isfinite(new_start) or new_start < 0:
        raise InvalidPlacementError(f"Clip start must be >= 0, got {new_start!r}")
    new_start = quantize_time(new_start)
    target = source if track_id is None else timeline.require_track(track_id)
    _check_free(timeline, target, clip.id, new_start, new_start + clip.duration)

    moved = clip.model_copy(update={"start": new_start, "track_id": target.id})
    del source.clips[index]
    target.clips.append(moved)
    Timeline.sort_track(target)
    timeline.recompute_total_duration()
    logger.debug("Moved %s to track %d at %.3fs", clip.id, target.id, new_start)
    return moved


def trim_clip(
    timeline: Timeline,
    clip_id: str,
    new_trim_start: float,
    new_trim_end: float,
) -> Clip:
    """Change the media window a clip plays.

    Moving the left handle shifts the clip's start by the same amount, so the
    right edge stays put unless it is trimmed too.

    Raises:
        UnknownClipError: If the clip does not exist
        InvalidTrimError: If the window leaves the media, collapses, or would
            push the clip before zero
        OverlapDetectedError: If the new window intersects a sibling
    """
    track, index, clip = _locate(timeline, clip_id)
    media = timeline.catalog.require(clip.media_id)

    if not (math.isfinite(new_trim_start) and math.isfinite(new_trim_end)):
        raise InvalidTrimError("Trim points must be finite")
    if new_trim_start < 0:
        raise InvalidTrimError(f"Trim start must be >= 0, got {new_trim_start}")
    new_trim_start = quantize_time(new_trim_start)
    new_trim_end = quantize_time(new_trim_end)
    if new_trim_end > media.duration:
        raise InvalidTrimError(
            f"Trim end {new_trim_end} exceeds media duration {media.duration}"
        )
    duration = new_trim_end - new_trim_start
    if duration <= 0:
        raise InvalidTrimError(
            f"Trim window [{new_trim_start}, {new_trim_end}) has no duration"
        )
    if new_trim_start == clip.trim_start and new_trim_end == clip.trim_end:
        return clip

    new_start = clip.start + (new_trim_start - clip.trim_start)
    if new_start < 0:
        raise InvalidTrimError(f"Trim would move clip start to {new_start}")
    _check_free(timeline, track, clip.id, new_start, new_start + duration)

    trimmed = clip.model_copy(
        update={
            "start": new_start,
            "duration": duration,
            "trim_start": new_trim_start,
            "trim_end": new_trim_end,
        }
    )
    track.clips[index] = trimmed
    Timeline.sort_track(track)
    timeline.recompute_total_duration()
    logger.debug(
        "Trimmed %s to [%.3f, %.3f) at %.3fs",
        clip.id,
        new_trim_start,
        new_trim_end,
        new_start,
    )
    return trimmed


def split_clip(timeline: Timeline, clip_id: str, at_time: float) -> tuple[Clip, Clip]:
    """Cut a clip in two at a timeline position.

    The left half keeps the original id; the right half gets a new one and
    sits directly after it on the track. The split point is snapped to the
    timeline grid, so the halves share their edges with each other and with
    the original clip exactly.

    Raises:
        UnknownClipError: If the clip does not exist
        OutOfBoundsError: If at_time is not strictly inside the clip
    """
    track, index, clip = _locate(timeline, clip_id)
    at = quantize_time(at_time) if math.isfinite(at_time) else at_time
    if not clip.start < at < clip.end:
        raise OutOfBoundsError(
            f"Split point {at_time} is outside ({clip.start}, {clip.end}) of {clip.id}"
        )

    left_duration = at - clip.start
    right_duration = clip.duration - left_duration
    cut = clip.trim_start + left_duration

    left = clip.model_copy(update={"trim_end": cut, "duration": left_duration})
    right = clip.model_copy(
        update={
            "id": timeline.new_clip_id(),
            "start": at,
            "trim_start": cut,
            "duration": right_duration,
        }
    )
    track.clips[index] = left
    track.clips.insert(index + 1, right)
    timeline.recompute_total_duration()
    logger.debug("Split %s at %.3fs into %s and %s", clip.id, at, left.id, right.id)
    return left, right


def remove_clip(timeline: Timeline, clip_id: str) -> bool:
    """Remove a clip. Returns False if it was already gone."""
    found = timeline.locate(clip_id)
    if found is None:
        logger.debug("Remove of unknown clip %s ignored", clip_id)
        return False

    track, index = found
    del track.clips[index]
    timeline.recompute_total_duration()
    logger.debug("Removed %s; total duration %.3fs", clip_id, timeline.total_duration)
    return True


def remove_media(timeline: Timeline, media_id: str) -> set[str]:
    """Remove a media item and every clip that uses it.

    Total duration is recomputed once, after all dependent clips are gone.

    Returns:
        Ids of the clips that were removed
    """
    timeline.catalog.remove(media_id)
    removed = {c.id for c in timeline.clips_for_media(media_id)}
    if removed:
        for track in timeline.tracks:
            track.clips[:] = [c for c in track.clips if c.id not in removed]
    timeline.recompute_total_duration()
    logger.debug("Removed media %s and %d dependent clip(s)", media_id, len(removed))
    return removed
