"""
splice.config - YAML config loading, render preset merging, validation.

Handles loading splice.yaml, applying render preset defaults, and validating
all parameters.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from splice.exceptions import ConfigError
from splice.models import TrackKind

CONFIG_FILENAME = "splice.yaml"


class TrackSpec(BaseModel):
    """A track created at session start."""

    name: str
    kind: TrackKind


class RenderSettings(BaseModel):
    """Normalization target and encoder settings for exported segments."""

    preset: str = "720p"
    width: int = Field(default=1280, gt=0)
    height: int = Field(default=720, gt=0)
    frame_rate: float = Field(default=30.0, gt=0.0)

    video_codec: str = "libx264"
    encoder_preset: str = "ultrafast"
    audio_codec: str = "aac"
    audio_sample_rate: int = Field(default=44100, gt=0)
    segment_format: str = "mpegts"

    @field_validator("width", "height")
    @classmethod
    def validate_even(cls, v: int) -> int:
        if v % 2:
            raise ValueError("Dimensions must be even for yuv420p output")
        return v

    @field_validator("segment_format")
    @classmethod
    def validate_segment_format(cls, v: str) -> str:
        valid = {"mpegts"}
        if v not in valid:
            raise ValueError(f"segment_format must be one of: {valid}")
        return v


def default_tracks() -> list[TrackSpec]:
    return [
        TrackSpec(name="Video Track 1", kind=TrackKind.VIDEO),
        TrackSpec(name="Video Track 2", kind=TrackKind.VIDEO),
        TrackSpec(name="Audio Track 1", kind=TrackKind.AUDIO),
    ]


class SpliceConfig(BaseModel):
    """Resolved configuration for a Splice session."""

    floor_duration_seconds: float = Field(default=120.0, gt=0.0)
    tracks: list[TrackSpec] = Field(default_factory=default_tracks)
    supported_mime_prefixes: list[str] = Field(default_factory=lambda: ["video/", "audio/"])
    render: RenderSettings = Field(default_factory=RenderSettings)

    config_path: Path | None = None

    @field_validator("tracks")
    @classmethod
    def validate_tracks(cls, v: list[TrackSpec]) -> list[TrackSpec]:
        if not v:
            raise ValueError("At least one track is required")
        return v

    @field_validator("supported_mime_prefixes")
    @classmethod
    def validate_prefixes(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("At least one supported mime prefix is required")
        return [p.lower() for p in v]


BUILTIN_PRESETS: dict[str, dict[str, Any]] = {
    "720p": {
        "width": 1280,
        "height": 720,
        "frame_rate": 30.0,
        "encoder_preset": "ultrafast",
    },
    "1080p": {
        "width": 1920,
        "height": 1080,
        "frame_rate": 30.0,
        "encoder_preset": "veryfast",
    },
    "preview": {
        "width": 640,
        "height": 360,
        "frame_rate": 24.0,
        "encoder_preset": "ultrafast",
    },
}


def load_preset(name: str) -> dict[str, Any]:
    """Return a copy of a built-in render preset."""
    if name in BUILTIN_PRESETS:
        return {"preset": name, **BUILTIN_PRESETS[name]}
    raise ConfigError(f"Unknown render preset: {name}")


def merge_config(project_config: dict[str, Any], defaults: dict[str, Any]) -> dict[str, Any]:
    """Merge project config over defaults. Project config takes precedence."""
    merged = defaults.copy()
    for key, value in project_config.items():
        if key == "render" and isinstance(value, dict):
            merged["render"] = {**merged.get("render", {}), **value}
        elif value is not None:
            merged[key] = value
    return merged


def build_config(raw_config: dict[str, Any], config_path: Path | None = None) -> SpliceConfig:
    """Apply the named render preset under ``raw_config`` and validate."""
    render = raw_config.get("render") or {}
    if not isinstance(render, dict):
        raise ConfigError(f"render must be a mapping, got {type(render).__name__}")
    preset_name = render.get("preset", "720p")
    if not isinstance(preset_name, str):
        raise ConfigError(f"render.preset must be a name, got {preset_name!r}")
    preset = load_preset(preset_name)
    merged = merge_config(raw_config, {"render": preset})
    merged["config_path"] = config_path
    try:
        return SpliceConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(path: Path | None = None) -> SpliceConfig:
    """Load and validate configuration.

    Args:
        path: A splice.yaml file or a directory containing one. ``None``
            returns the defaults.

    Raises:
        FileNotFoundError: If an explicit path has no config file
        ConfigError: If the file contents are invalid
    """
    if path is None:
        return build_config({})

    config_file = path / CONFIG_FILENAME if path.is_dir() else path
    if not config_file.exists():
        raise FileNotFoundError(f"No {CONFIG_FILENAME} found at {path}")

    with open(config_file) as f:
        raw_config = yaml.safe_load(f) or {}
    if not isinstance(raw_config, dict):
        raise ConfigError(f"{config_file} must contain a mapping")

    return build_config(raw_config, config_file)


def create_default_config(preset: str = "720p") -> dict[str, Any]:
    """Create a default config for a new session."""
    defaults = {
        "floor_duration_seconds": 120.0,
        "tracks": [t.model_dump(mode="json") for t in default_tracks()],
        "render": {"preset": preset},
    }
    defaults["render"] = merge_config(defaults["render"], load_preset(preset))
    return defaults


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)
