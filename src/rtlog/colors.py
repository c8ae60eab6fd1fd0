"""Stable per-session colors for log rows."""

from __future__ import annotations

import hashlib
from collections.abc import Mapping

from rtlog.events import BaseEvent, Snapshot

DEFAULT_COLOR = "#ffffff"


def session_uuids(snapshot: Snapshot) -> dict[str, str]:
    """Map each sessionId (as a string) in the session collection to its sessionUuid."""
    return {
        str(session.session_id): session.session_uuid
        for session in snapshot.sessions
        if session.session_id is not None and session.session_uuid
    }


def string_to_color(value: str) -> str:
    """Derive a hex color from a string.

    Uses a content hash so the same string maps to the same color in every
    process, unlike the builtin ``hash``.
    """
    if not value:
        return DEFAULT_COLOR
    digest = hashlib.sha256(value.encode()).hexdigest()
    return f"#{digest[:6]}"


def color_of(event: BaseEvent, uuids: Mapping[str, str]) -> str:
    """Return the status color for an event's session.

    Prefers the session UUID from the snapshot's session collection, then the
    UUID on the event itself, and finally a seed built from the sessionId.
    """
    if event.session_id is None:
        return DEFAULT_COLOR
    seed = uuids.get(str(event.session_id)) or event.session_uuid or str(event.session_id)
    return string_to_color(seed)


def hex_to_rgb(color: str) -> tuple[int, int, int]:
    """Convert ``#rrggbb`` to an RGB tuple."""
    value = color.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)
