"""Event records and classification for the realtime log."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class RealtimeLogError(Exception):
    """Base exception for realtime log errors."""

    pass


class SnapshotError(RealtimeLogError):
    """Raised when a snapshot payload cannot be read."""

    pass


class EventType(str, Enum):
    PAGEVIEW = "pageview"
    SESSION = "session"
    EVENT = "event"
    UNKNOWN = "unknown"


class FilterSelection(str, Enum):
    ALL = "all"
    PAGEVIEW = "pageview"
    SESSION = "session"
    EVENT = "event"


Identifier = Union[int, str]


class BaseEvent(BaseModel):
    """A single activity record.

    Accepts the camelCase keys sent by the collector (``createdAt``,
    ``sessionId``...) as well as snake_case field names. Records are frozen:
    nothing downstream of parsing may modify them.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    type: EventType = EventType.UNKNOWN
    created_at: datetime
    website_id: str | None = None
    session_id: Identifier | None = None
    session_uuid: str | None = None
    pageview_id: Identifier | None = None
    event_id: Identifier | None = None
    event_name: str | None = None
    url: str | None = None
    browser: str | None = None
    os: str | None = None
    country: str | None = None
    device: str | None = None

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive and aware timestamps must stay comparable within a snapshot
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Pageview(BaseEvent):
    type: Literal[EventType.PAGEVIEW] = EventType.PAGEVIEW


class Session(BaseEvent):
    type: Literal[EventType.SESSION] = EventType.SESSION


class CustomEvent(BaseEvent):
    type: Literal[EventType.EVENT] = EventType.EVENT


class UnknownEvent(BaseEvent):
    type: Literal[EventType.UNKNOWN] = EventType.UNKNOWN


AnyEvent = Union[Pageview, Session, CustomEvent, UnknownEvent]

EVENT_MODELS: dict[EventType, type[BaseEvent]] = {
    EventType.PAGEVIEW: Pageview,
    EventType.SESSION: Session,
    EventType.EVENT: CustomEvent,
    EventType.UNKNOWN: UnknownEvent,
}

# Checked in order; the first identifier present decides the type
CLASSIFICATION_ORDER: tuple[tuple[str, str, EventType], ...] = (
    ("eventId", "event_id", EventType.EVENT),
    ("pageviewId", "pageview_id", EventType.PAGEVIEW),
    ("sessionId", "session_id", EventType.SESSION),
)


def _present(value: Any) -> bool:
    return value is not None and value != ""


def classify(record: Mapping[str, Any] | BaseEvent) -> EventType:
    """Return the type tag for a raw record or a parsed event.

    A record carrying several identifiers resolves by precedence:
    eventId, then pageviewId, then sessionId. A record with none of them
    is UNKNOWN.
    """
    if isinstance(record, BaseEvent):
        return record.type

    for camel, snake, event_type in CLASSIFICATION_ORDER:
        if _present(record.get(camel)) or _present(record.get(snake)):
            return event_type
    return EventType.UNKNOWN


def parse_event(record: Mapping[str, Any] | BaseEvent) -> BaseEvent:
    """Classify a record once and validate it into the matching variant.

    Raises:
        ValidationError: If the record is missing ``createdAt`` or has
            fields of the wrong type.
    """
    if isinstance(record, BaseEvent):
        return record
    event_type = classify(record)
    data = {key: value for key, value in record.items() if key != "type"}
    return EVENT_MODELS[event_type].model_validate(data)


class Snapshot(BaseModel):
    """One refresh of the three event collections, as pushed by the collector."""

    model_config = ConfigDict(frozen=True)

    pageviews: tuple[AnyEvent, ...] = ()
    sessions: tuple[AnyEvent, ...] = ()
    events: tuple[AnyEvent, ...] = ()

    @field_validator("pageviews", "sessions", "events", mode="before")
    @classmethod
    def _parse_records(cls, value: Any) -> Any:
        if value is None:
            return ()
        if not isinstance(value, (list, tuple)):
            return value
        parsed = []
        for i, record in enumerate(value):
            if not isinstance(record, (Mapping, BaseEvent)):
                raise ValueError(f"record {i} is not an object")
            parsed.append(parse_event(record))
        return tuple(parsed)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Snapshot:
        """Build a snapshot from a ``{"pageviews", "sessions", "events"}`` payload."""
        return cls.model_validate(data)

    def __len__(self) -> int:
        return len(self.pageviews) + len(self.sessions) + len(self.events)


def load_snapshot(raw: str | bytes) -> Snapshot:
    """Parse a JSON snapshot payload.

    Raises:
        SnapshotError: If the payload is not valid JSON or does not
            describe a snapshot.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise SnapshotError(f"expected a JSON object, got {type(data).__name__}")

    try:
        snapshot = Snapshot.from_mapping(data)
    except ValidationError as e:
        raise SnapshotError(f"validation error: {e}") from e

    logger.debug(
        "Loaded snapshot: %d pageviews, %d sessions, %d events",
        len(snapshot.pageviews),
        len(snapshot.sessions),
        len(snapshot.events),
    )
    return snapshot
