"""
splice.models - Timeline data model.

Media references, tracks and clips, plus the frozen snapshot handed to the
render plan compiler. All times are float seconds.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Timeline times live on a 2**-20 s grid (just under a microsecond). Below
# 2**32 s, sums and differences of grid values are exact in a float, so clip
# edges computed along different paths compare equal.
TIME_RESOLUTION = 2.0**-20


def quantize_time(seconds: float) -> float:
    """Snap a finite time in seconds to the timeline grid."""
    if abs(seconds) >= 2.0**32:
        # float spacing is already >= TIME_RESOLUTION here
        return seconds
    return round(seconds / TIME_RESOLUTION) * TIME_RESOLUTION


class TrackKind(str, Enum):
    """Kind of a track, fixed at creation."""

    VIDEO = "video"
    AUDIO = "audio"


class ProbeMetadata(BaseModel):
    """Results of probing one source file, as reported by ingestion."""

    mime_type: str
    name: str = ""
    size_bytes: int = Field(default=0, ge=0)
    duration_seconds: float | None = None
    width_px: int | None = Field(default=None, gt=0)
    height_px: int | None = Field(default=None, gt=0)
    frame_rate: float | None = Field(default=None, gt=0.0)
    thumbnail: str | None = None


class MediaReference(BaseModel):
    """Catalog entry for one imported source.

    The locator is opaque: the engine never opens it.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    locator: str
    name: str
    size_bytes: int = 0
    mime_type: str
    duration: float = Field(gt=0.0)
    width: int | None = None
    height: int | None = None
    frame_rate: float | None = None
    thumbnail: str | None = None

    @property
    def kind(self) -> TrackKind:
        if self.mime_type.lower().startswith("audio/"):
            return TrackKind.AUDIO
        return TrackKind.VIDEO


class Clip(BaseModel):
    """A trimmed window of a media reference placed on a track."""

    id: str
    media_id: str
    track_id: int
    name: str = ""
    start: float = Field(ge=0.0)
    duration: float = Field(gt=0.0)
    trim_start: float = Field(ge=0.0)
    trim_end: float = Field(gt=0.0)

    @property
    def end(self) -> float:
        return self.start + self.duration

    def overlaps(self, start: float, end: float) -> bool:
        """True if ``[start, end)`` intersects this clip's window."""
        return start < self.end and self.start < end


class Track(BaseModel):
    """An ordered lane of non-overlapping clips."""

    id: int
    name: str
    kind: TrackKind
    clips: list[Clip] = Field(default_factory=list)

    @property
    def end(self) -> float:
        return max((c.end for c in self.clips), default=0.0)


class TimelineSnapshot(BaseModel):
    """Deep copy of a timeline's tracks and the media they reference."""

    model_config = ConfigDict(frozen=True)

    tracks: tuple[Track, ...]
    media: dict[str, MediaReference]
    total_duration: float

    def video_tracks(self) -> list[Track]:
        return [t for t in self.tracks if t.kind == TrackKind.VIDEO]
