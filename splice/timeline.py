"""
splice.timeline - The timeline aggregate.

A Timeline owns its tracks, the media catalog their clips reference, and the
derived total duration. Mutations go through splice.edits; this module holds
the lookups and invariant checks those operations share.

A Timeline assumes a single writer. Callers that edit from several event
sources must serialize their calls.
"""

from __future__ import annotations

from collections.abc import Iterator

from splice.catalog import MediaCatalog
from splice.config import SpliceConfig
from splice.exceptions import UnknownClipError, UnknownTrackError
from splice.ids import IdGenerator
from splice.models import Clip, TimelineSnapshot, Track


class Timeline:
    """Ordered tracks of clips plus the catalog they draw from."""

    def __init__(
        self,
        catalog: MediaCatalog | None = None,
        config: SpliceConfig | None = None,
    ) -> None:
        self.config = config or SpliceConfig()
        self.ids = IdGenerator()
        if catalog is None:
            catalog = MediaCatalog(self.config.supported_mime_prefixes, ids=self.ids)
        self.catalog = catalog
        self.floor_duration = self.config.floor_duration_seconds
        self._tracks = [
            Track(id=i, name=spec.name, kind=spec.kind)
            for i, spec in enumerate(self.config.tracks, 1)
        ]
        self._total_duration = self.floor_duration

    @property
    def tracks(self) -> list[Track]:
        return self._tracks

    @property
    def total_duration(self) -> float:
        return self._total_duration

    def get_track(self, track_id: int) -> Track | None:
        for track in self._tracks:
            if track.id == track_id:
                return track
        return None

    def require_track(self, track_id: int) -> Track:
        track = self.get_track(track_id)
        if track is None:
            raise UnknownTrackError(track_id)
        return track

    def locate(self, clip_id: str) -> tuple[Track, int] | None:
        """Return the owning track and index of a clip, if present."""
        for track in self._tracks:
            for i, clip in enumerate(track.clips):
                if clip.id == clip_id:
                    return track, i
        return None

    def get_clip(self, clip_id: str) -> Clip | None:
        found = self.locate(clip_id)
        if found is None:
            return None
        track, index = found
        return track.clips[index]

    def require_clip(self, clip_id: str) -> Clip:
        clip = self.get_clip(clip_id)
        if clip is None:
            raise UnknownClipError(clip_id)
        return clip

    def clips(self) -> Iterator[Clip]:
        """All clips, in track order then start order."""
        for track in self._tracks:
            yield from track.clips

    def clips_for_media(self, media_id: str) -> list[Clip]:
        return [c for c in self.clips() if c.media_id == media_id]

    def find_overlap(
        self,
        track: Track,
        start: float,
        end: float,
        ignore: str | None = None,
    ) -> Clip | None:
        """First clip on ``track`` whose window intersects ``[start, end)``."""
        for clip in track.clips:
            if clip.id != ignore and clip.overlaps(start, end):
                return clip
        return None

    def new_clip_id(self) -> str:
        return self.ids.next("clip")

    def extend_total_duration(self, end: float) -> None:
        self._total_duration = max(self._total_duration, end)

    def recompute_total_duration(self) -> float:
        """Rebuild total duration from every clip end, floored."""
        self._total_duration = max(
            [self.floor_duration, *(c.end for c in self.clips())]
        )
        return self._total_duration

    def snapshot(self) -> TimelineSnapshot:
        """Deep copy of tracks and referenced media, safe to compile later."""
        tracks = tuple(t.model_copy(deep=True) for t in self._tracks)
        media = {}
        for clip in self.clips():
            if clip.media_id not in media:
                media[clip.media_id] = self.catalog.require(clip.media_id)
        return TimelineSnapshot(
            tracks=tracks,
            media=media,
            total_duration=self._total_duration,
        )

    @staticmethod
    def sort_track(track: Track) -> None:
        track.clips.sort(key=lambda c: c.start)
