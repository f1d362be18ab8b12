"""
splice.script - Edit scripts.

An edit script is a YAML file that declares media and a list of edit
operations. Replaying it against a fresh Timeline reproduces an edit
session, which is how the CLI gets a timeline to show, compile or render.

Schema::

    fps: 30                      # for timecode values below
    config:                      # optional inline SpliceConfig overrides
      render: {preset: preview}
    media:
      - id: intro
        locator: clips/intro.mp4   # relative paths resolve against the script
        mime_type: video/mp4
        duration_seconds: 10
        probe: false               # true fills missing fields via ffprobe
    edits:
      - {op: place, media: intro, track: 1, as: a}
      - {op: trim, clip: a, trim_start: 2, trim_end: 7}
      - {op: move, clip: a, start: "00:00:05:00", track: 2}
      - {op: split, clip: a, at: 8, as: b}
      - {op: remove, clip: b}
      - {op: remove_media, media: intro}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Any, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from splice import edits
from splice.config import SpliceConfig, build_config
from splice.exceptions import ScriptError, SpliceError
from splice.io import read_yaml
from splice.logging import get_logger
from splice.models import ProbeMetadata
from splice.timecode import parse_time
from splice.timeline import Timeline

logger = get_logger("script")

TimeValue = Union[float, str]


class MediaSpec(BaseModel):
    """One media entry: probe results plus an id to refer to it by."""

    id: str
    locator: str
    mime_type: str | None = None
    name: str = ""
    size_bytes: int = 0
    duration_seconds: float | None = None
    width_px: int | None = None
    height_px: int | None = None
    frame_rate: float | None = None
    thumbnail: str | None = None
    probe: bool = False


class _Edit(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class PlaceEdit(_Edit):
    op: Literal["place"]
    media: str
    track: int
    bind: str | None = Field(default=None, alias="as")


class MoveEdit(_Edit):
    op: Literal["move"]
    clip: str
    start: TimeValue
    track: int | None = None


class TrimEdit(_Edit):
    op: Literal["trim"]
    clip: str
    trim_start: TimeValue
    trim_end: TimeValue


class SplitEdit(_Edit):
    op: Literal["split"]
    clip: str
    at: TimeValue
    bind: str | None = Field(default=None, alias="as")


class RemoveEdit(_Edit):
    op: Literal["remove"]
    clip: str


class RemoveMediaEdit(_Edit):
    op: Literal["remove_media"]
    media: str


Edit = Annotated[
    Union[PlaceEdit, MoveEdit, TrimEdit, SplitEdit, RemoveEdit, RemoveMediaEdit],
    Field(discriminator="op"),
]


class EditScript(BaseModel):
    """Parsed edit script."""

    fps: float = Field(default=30.0, gt=0.0)
    config: dict[str, Any] = Field(default_factory=dict)
    media: list[MediaSpec] = Field(default_factory=list)
    edits: list[Edit] = Field(default_factory=list)


@dataclass
class Session:
    """A timeline rebuilt from a script, with the script's clip aliases."""

    timeline: Timeline
    script: EditScript
    aliases: dict[str, str] = field(default_factory=dict)

    def clip_id(self, ref: str) -> str:
        return self.aliases.get(ref, ref)


def parse_script(raw: Any) -> EditScript:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ScriptError("Edit script must be a mapping")
    try:
        return EditScript.model_validate(raw)
    except ValidationError as e:
        raise ScriptError(f"Invalid edit script: {e}") from e


def load_script(path: Path) -> EditScript:
    """Read and validate an edit script file."""
    if not path.exists():
        raise FileNotFoundError(f"Edit script not found: {path}")
    try:
        raw = read_yaml(path)
    except yaml.YAMLError as e:
        raise ScriptError(f"Could not parse {path}: {e}") from e
    return parse_script(raw)


def resolve_locator(locator: str, base_dir: Path | None) -> str:
    if base_dir is None or "://" in locator:
        return locator
    path = Path(locator).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return str(path)


def _probe_metadata(spec: MediaSpec, locator: str) -> ProbeMetadata:
    explicit = spec.model_dump(
        exclude={"id", "locator", "probe"},
        exclude_none=True,
        exclude_defaults=True,
    )
    if spec.probe:
        from splice.probe import probe_media

        probed = probe_media(Path(locator)).model_dump(exclude_none=True)
        explicit = {**probed, **explicit}
    explicit.setdefault("mime_type", "video/mp4")
    return ProbeMetadata.model_validate(explicit)


def _apply_edit(session: Session, edit: Edit) -> None:
    timeline = session.timeline
    fps = session.script.fps

    if isinstance(edit, PlaceEdit):
        clip = edits.place_clip(timeline, edit.media, edit.track)
        if edit.bind:
            session.aliases[edit.bind] = clip.id
    elif isinstance(edit, MoveEdit):
        edits.move_clip(
            timeline, session.clip_id(edit.clip), parse_time(edit.start, fps), edit.track
        )
    elif isinstance(edit, TrimEdit):
        edits.trim_clip(
            timeline,
            session.clip_id(edit.clip),
            parse_time(edit.trim_start, fps),
            parse_time(edit.trim_end, fps),
        )
    elif isinstance(edit, SplitEdit):
        _, right = edits.split_clip(timeline, session.clip_id(edit.clip), parse_time(edit.at, fps))
        if edit.bind:
            session.aliases[edit.bind] = right.id
    elif isinstance(edit, RemoveEdit):
        edits.remove_clip(timeline, session.clip_id(edit.clip))
    elif isinstance(edit, RemoveMediaEdit):
        edits.remove_media(timeline, edit.media)


def apply_script(
    script: EditScript,
    base_dir: Path | None = None,
    config: SpliceConfig | None = None,
) -> Session:
    """Replay a script against a fresh Timeline.

    Args:
        script: Parsed edit script
        base_dir: Directory relative locators resolve against
        config: Overrides the script's inline config when given

    Raises:
        ScriptError: If any media entry or edit fails; the original
            SpliceError is chained as the cause
    """
    if config is None:
        config = build_config(script.config)
    session = Session(timeline=Timeline(config=config), script=script)
    catalog = session.timeline.catalog

    for spec in script.media:
        locator = resolve_locator(spec.locator, base_dir)
        try:
            catalog.register(locator, _probe_metadata(spec, locator), media_id=spec.id)
        except (SpliceError, ValidationError) as e:
            raise ScriptError(f"Media '{spec.id}': {e}") from e

    for index, edit in enumerate(script.edits):
        try:
            _apply_edit(session, edit)
        except (SpliceError, ValueError) as e:
            raise ScriptError(f"Edit {index} ({edit.op}): {e}") from e

    logger.debug(
        "Replayed %d media and %d edit(s); total duration %.3fs",
        len(script.media),
        len(script.edits),
        session.timeline.total_duration,
    )
    return session


def load_session(path: Path, config: SpliceConfig | None = None) -> Session:
    """Load a script file and replay it, resolving paths next to it."""
    return apply_script(load_script(path), base_dir=path.parent, config=config)
