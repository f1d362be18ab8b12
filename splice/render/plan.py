"""
splice.render.plan - Render plan compiler.

Turns a timeline snapshot into an ordered list of declarative steps: one
TrimStep per video clip in playback order, then a single ConcatStep joining
the normalized segments. The compiler never touches media or an encoder.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from splice.catalog import MediaCatalog
from splice.config import RenderSettings
from splice.exceptions import NoExportableContentError, StalePlanError
from splice.logging import get_logger
from splice.models import Clip, TimelineSnapshot
from splice.timeline import Timeline

logger = get_logger("render.plan")


class NormalizeTarget(BaseModel):
    """Fixed output format shared by every segment of one plan."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)
    frame_rate: float = Field(gt=0.0)

    @classmethod
    def from_settings(cls, settings: RenderSettings) -> NormalizeTarget:
        return cls(width=settings.width, height=settings.height, frame_rate=settings.frame_rate)


class TrimStep(BaseModel):
    """Produce a normalized segment covering one clip's trim window."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["trim"] = "trim"
    segment_id: str
    clip_id: str
    media_id: str
    source_locator: str
    trim_start: float
    trim_end: float
    normalize: NormalizeTarget

    @property
    def duration(self) -> float:
        return self.trim_end - self.trim_start


class ConcatStep(BaseModel):
    """Join segments in order without re-encoding."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["concat"] = "concat"
    segments: list[str]


RenderStep = Annotated[Union[TrimStep, ConcatStep], Field(discriminator="kind")]


class RenderPlan(BaseModel):
    """Ordered render steps: every TrimStep, then one ConcatStep."""

    model_config = ConfigDict(frozen=True)

    steps: list[RenderStep]
    target: NormalizeTarget

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def trim_steps(self) -> list[TrimStep]:
        return [s for s in self.steps if isinstance(s, TrimStep)]

    @property
    def concat_step(self) -> ConcatStep:
        return self.steps[-1]

    @property
    def media_ids(self) -> set[str]:
        return {s.media_id for s in self.trim_steps}

    @property
    def duration(self) -> float:
        return sum(s.duration for s in self.trim_steps)

    def progress(self, completed_steps: int) -> float:
        """Fraction of the plan done after ``completed_steps`` steps."""
        if not self.steps:
            return 1.0
        return min(max(completed_steps / self.step_count, 0.0), 1.0)

    def is_stale(self, catalog: MediaCatalog) -> bool:
        return any(media_id not in catalog for media_id in self.media_ids)

    def ensure_fresh(self, catalog: MediaCatalog) -> None:
        """Raise StalePlanError if any referenced media has been removed."""
        missing = {m for m in self.media_ids if m not in catalog}
        if missing:
            raise StalePlanError(missing)


def playback_order(snapshot: TimelineSnapshot) -> list[Clip]:
    """Video clips sorted by start; ties keep track creation order."""
    clips = [clip for track in snapshot.video_tracks() for clip in track.clips]
    # list.sort is stable, so equal starts stay in track order
    clips.sort(key=lambda c: c.start)
    return clips


def compile_plan(
    source: TimelineSnapshot | Timeline,
    target: NormalizeTarget | RenderSettings | None = None,
) -> RenderPlan:
    """Compile a timeline snapshot into a render plan.

    Args:
        source: Snapshot to compile; a live Timeline is snapshotted first
        target: Normalization target; defaults to the timeline's render
            settings, or the built-in defaults for a bare snapshot

    Raises:
        NoExportableContentError: If no video track holds any clip
    """
    if isinstance(source, Timeline):
        if target is None:
            target = source.config.render
        source = source.snapshot()
    if target is None:
        target = RenderSettings()
    if isinstance(target, RenderSettings):
        target = NormalizeTarget.from_settings(target)

    clips = playback_order(source)
    if not clips:
        raise NoExportableContentError(
            "No video clips to export. Add media to a video track first."
        )

    steps: list[TrimStep | ConcatStep] = []
    for i, clip in enumerate(clips):
        media = source.media[clip.media_id]
        steps.append(
            TrimStep(
                segment_id=f"seg{i}",
                clip_id=clip.id,
                media_id=media.id,
                source_locator=media.locator,
                trim_start=clip.trim_start,
                trim_end=clip.trim_end,
                normalize=target,
            )
        )
    steps.append(ConcatStep(segments=[s.segment_id for s in steps]))

    plan = RenderPlan(steps=steps, target=target)
    logger.debug(
        "Compiled %d clip(s) into %d step(s) at %dx%d@%g",
        len(clips),
        plan.step_count,
        target.width,
        target.height,
        target.frame_rate,
    )
    return plan
