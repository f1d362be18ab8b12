"""
splice.exceptions - Custom exception classes.

All Splice-specific exceptions inherit from SpliceError. Edit operations
raise before mutating anything, so catching one of these never requires a
rollback.
"""


class SpliceError(Exception):
    """Base exception for all Splice errors."""

    pass


class ConfigError(SpliceError):
    """Configuration loading or validation error."""

    pass


class ScriptError(SpliceError):
    """Edit script is malformed or references unknown aliases."""

    pass


# Not found


class NotFoundError(SpliceError):
    """A referenced entity does not exist."""

    pass


class UnknownTrackError(NotFoundError):
    """Track id is not part of the timeline."""

    def __init__(self, track_id: int):
        self.track_id = track_id
        super().__init__(f"Unknown track: {track_id}")


class UnknownMediaError(NotFoundError):
    """Media id is not registered in the catalog."""

    def __init__(self, media_id: str):
        self.media_id = media_id
        super().__init__(f"Unknown media: {media_id}")


class UnknownClipError(NotFoundError):
    """Clip id is not on any track."""

    def __init__(self, clip_id: str):
        self.clip_id = clip_id
        super().__init__(f"Unknown clip: {clip_id}")


# Ingestion


class IngestError(SpliceError):
    """Media could not be registered."""

    pass


class InvalidMediaError(IngestError):
    """Declared media type is unsupported or metadata is malformed."""

    pass


class ProbeIncompleteError(IngestError):
    """Probe results lack a usable duration."""

    pass


# Invariant violations


class EditRejectedError(SpliceError):
    """An edit operation would break a timeline invariant."""

    pass


class InvalidPlacementError(EditRejectedError):
    """Clip would be placed before the timeline origin."""

    pass


class InvalidTrimError(EditRejectedError):
    """Trim window falls outside the media or collapses to nothing."""

    pass


class OutOfBoundsError(EditRejectedError):
    """Split point is not strictly inside the clip."""

    pass


class OverlapDetectedError(EditRejectedError):
    """Clip window would intersect a sibling on the same track."""

    def __init__(self, clip_id: str, other_id: str, track_id: int):
        self.clip_id = clip_id
        self.other_id = other_id
        self.track_id = track_id
        super().__init__(f"Clip {clip_id} would overlap {other_id} on track {track_id}")


# Export


class ExportError(SpliceError):
    """Render plan compilation or execution error."""

    pass


class NoExportableContentError(ExportError):
    """Timeline has no clips on any video track."""

    pass


class StalePlanError(ExportError):
    """Plan references media that has since been removed."""

    def __init__(self, media_ids: set[str]):
        self.media_ids = media_ids
        super().__init__(f"Plan references removed media: {', '.join(sorted(media_ids))}")


class EncodeFailedError(ExportError):
    """Encoder failed while executing a plan step."""

    def __init__(self, step_index: int, reason: str):
        self.step_index = step_index
        self.reason = reason
        super().__init__(f"Step {step_index} failed: {reason}")


class ExportCancelledError(ExportError):
    """Export was aborted between steps."""

    def __init__(self, step_index: int):
        self.step_index = step_index
        super().__init__(f"Export cancelled before step {step_index}")


class DependencyError(SpliceError):
    """Required dependency missing or misconfigured."""

    def __init__(self, dependency: str, message: str, install_hint: str | None = None):
        self.dependency = dependency
        self.message = message
        self.install_hint = install_hint
        super().__init__(f"{dependency}: {message}")
