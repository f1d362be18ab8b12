"""
splice.catalog - Registry of imported media and their probed metadata.

The catalog knows nothing about clips. Removing media here only drops the
entry; the timeline reacts to that removal and cascades to its clips.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping
from typing import Any

from pydantic import ValidationError

from splice.exceptions import InvalidMediaError, ProbeIncompleteError, UnknownMediaError
from splice.ids import IdGenerator
from splice.logging import get_logger
from splice.models import MediaReference, ProbeMetadata, quantize_time

logger = get_logger("catalog")

DEFAULT_MIME_PREFIXES = ("video/", "audio/")


class MediaCatalog:
    """In-memory registry of media references, in registration order."""

    def __init__(
        self,
        supported_mime_prefixes: tuple[str, ...] | list[str] = DEFAULT_MIME_PREFIXES,
        ids: IdGenerator | None = None,
    ) -> None:
        self.supported_mime_prefixes = tuple(p.lower() for p in supported_mime_prefixes)
        self._ids = ids or IdGenerator()
        self._media: dict[str, MediaReference] = {}

    def __contains__(self, media_id: object) -> bool:
        return media_id in self._media

    def __len__(self) -> int:
        return len(self._media)

    def __iter__(self) -> Iterator[MediaReference]:
        return iter(list(self._media.values()))

    def register(
        self,
        locator: str,
        metadata: ProbeMetadata | Mapping[str, Any],
        media_id: str | None = None,
    ) -> MediaReference:
        """Register a probed source and return its reference.

        Args:
            locator: Opaque handle for the raw bytes
            metadata: Probe results; mappings are validated into ProbeMetadata
            media_id: Optional explicit id (must be unused)

        Raises:
            InvalidMediaError: Unsupported type, malformed metadata or id clash
            ProbeIncompleteError: Duration missing or not positive
        """
        if not isinstance(metadata, ProbeMetadata):
            try:
                metadata = ProbeMetadata.model_validate(metadata)
            except ValidationError as e:
                raise InvalidMediaError(f"Malformed probe metadata for {locator}: {e}") from e

        mime_type = metadata.mime_type.lower()
        if not mime_type.startswith(self.supported_mime_prefixes):
            raise InvalidMediaError(
                f"Unsupported media type '{metadata.mime_type}' for {locator}. "
                f"Supported: {', '.join(self.supported_mime_prefixes)}"
            )

        duration = metadata.duration_seconds
        if duration is None or not math.isfinite(duration) or quantize_time(duration) <= 0:
            raise ProbeIncompleteError(f"Could not determine duration of {locator}")
        duration = quantize_time(duration)

        if media_id is None:
            media_id = self._ids.next("media")
        elif media_id in self._media:
            raise InvalidMediaError(f"Media id already registered: {media_id}")
        else:
            self._ids.reserve([media_id])

        media = MediaReference(
            id=media_id,
            locator=locator,
            name=metadata.name or locator.rsplit("/", 1)[-1],
            size_bytes=metadata.size_bytes,
            mime_type=metadata.mime_type,
            duration=duration,
            width=metadata.width_px,
            height=metadata.height_px,
            frame_rate=metadata.frame_rate,
            thumbnail=metadata.thumbnail,
        )
        self._media[media.id] = media
        logger.debug("Registered %s (%s, %.3fs)", media.id, media.name, media.duration)
        return media

    def attach_visual_metadata(
        self,
        media_id: str,
        width: int | None = None,
        height: int | None = None,
        thumbnail: str | None = None,
        frame_rate: float | None = None,
    ) -> MediaReference:
        """Fill in optional metadata that was absent at registration.

        Each field may go from absent to present once. Re-sending the value
        already stored is accepted.
        """
        media = self.require(media_id)
        updates: dict[str, Any] = {}
        for field, value in (
            ("width", width),
            ("height", height),
            ("thumbnail", thumbnail),
            ("frame_rate", frame_rate),
        ):
            if value is None:
                continue
            if field != "thumbnail" and value <= 0:
                raise InvalidMediaError(f"{field} must be positive, got {value!r}")
            current = getattr(media, field)
            if current is not None and current != value:
                raise InvalidMediaError(f"{field} of {media_id} is already set to {current!r}")
            updates[field] = value

        if not updates:
            return media

        media = media.model_copy(update=updates)
        self._media[media_id] = media
        logger.debug("Attached %s to %s", ", ".join(sorted(updates)), media_id)
        return media

    def remove(self, media_id: str) -> MediaReference | None:
        """Drop a media entry. Unknown ids are a no-op returning None."""
        media = self._media.pop(media_id, None)
        if media is None:
            logger.debug("Remove of unknown media %s ignored", media_id)
        else:
            logger.debug("Removed media %s", media_id)
        return media

    def get(self, media_id: str) -> MediaReference | None:
        return self._media.get(media_id)

    def require(self, media_id: str) -> MediaReference:
        media = self._media.get(media_id)
        if media is None:
            raise UnknownMediaError(media_id)
        return media
