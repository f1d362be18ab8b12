"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
import yaml

from splice.models import MediaReference
from splice.timeline import Timeline


@pytest.fixture
def timeline() -> Timeline:
    """A fresh timeline with the default tracks: 1, 2 video and 3 audio."""
    return Timeline()


@pytest.fixture
def add_media(timeline: Timeline) -> Callable[..., MediaReference]:
    """Register media on the timeline's catalog with a given duration."""

    def _add(
        duration: float = 10.0,
        mime_type: str = "video/mp4",
        name: str | None = None,
        **extra,
    ) -> MediaReference:
        index = len(timeline.catalog) + 1
        return timeline.catalog.register(
            f"/media/source_{index}.mp4",
            {
                "mime_type": mime_type,
                "name": name or f"source_{index}.mp4",
                "size_bytes": 1024 * index,
                "duration_seconds": duration,
                **extra,
            },
        )

    return _add


@pytest.fixture
def sample_script() -> dict:
    """An edit script placing, trimming and splitting two clips."""
    return {
        "fps": 25,
        "media": [
            {
                "id": "intro",
                "locator": "clips/intro.mp4",
                "mime_type": "video/mp4",
                "name": "intro.mp4",
                "duration_seconds": 10.0,
                "width_px": 1920,
                "height_px": 1080,
            },
            {
                "id": "broll",
                "locator": "clips/broll.mov",
                "mime_type": "video/quicktime",
                "duration_seconds": 6.0,
            },
            {
                "id": "music",
                "locator": "clips/music.mp3",
                "mime_type": "audio/mpeg",
                "duration_seconds": 30.0,
            },
        ],
        "edits": [
            {"op": "place", "media": "intro", "track": 1, "as": "a"},
            {"op": "place", "media": "broll", "track": 1, "as": "b"},
            {"op": "place", "media": "music", "track": 3},
            {"op": "trim", "clip": "a", "trim_start": 2, "trim_end": 10},
            {"op": "split", "clip": "b", "at": "00:00:13:00", "as": "c"},
        ],
    }


@pytest.fixture
def script_file(tmp_path: Path, sample_script: dict) -> Path:
    """The sample script written next to empty source files."""
    clips = tmp_path / "clips"
    clips.mkdir()
    for name in ("intro.mp4", "broll.mov", "music.mp3"):
        (clips / name).write_bytes(b"fake media")

    path = tmp_path / "edit.yaml"
    with open(path, "w") as f:
        yaml.dump(sample_script, f)
    return path
