"""Tests for event parsing and classification."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from rtlog.events import (
    CustomEvent,
    EventType,
    Pageview,
    Session,
    Snapshot,
    SnapshotError,
    UnknownEvent,
    classify,
    load_snapshot,
    parse_event,
)


class TestClassify:
    """Tests for the identifier precedence."""

    def test_event_id_wins_over_everything(self):
        """A record carrying all three identifiers is a custom event."""
        record = {"eventId": 5, "pageviewId": 1, "sessionId": 9, "createdAt": 1}
        assert classify(record) == EventType.EVENT

    def test_pageview_id_wins_over_session_id(self):
        """Page views carry a sessionId too; pageviewId takes precedence."""
        record = {"pageviewId": 1, "sessionId": 9, "createdAt": 1}
        assert classify(record) == EventType.PAGEVIEW

    def test_session_id_only(self):
        """A bare sessionId marks a session."""
        assert classify({"sessionId": 9, "createdAt": 1}) == EventType.SESSION

    def test_no_identifiers_is_unknown(self):
        """Records with no identifier are unknown."""
        assert classify({"createdAt": 1, "url": "/a"}) == EventType.UNKNOWN

    def test_none_and_empty_identifiers_are_absent(self):
        """None and empty-string identifiers do not count as present."""
        record = {"eventId": None, "pageviewId": "", "sessionId": "s1", "createdAt": 1}
        assert classify(record) == EventType.SESSION

    def test_zero_identifier_is_present(self):
        """An identifier of 0 still counts as present."""
        assert classify({"pageviewId": 0, "createdAt": 1}) == EventType.PAGEVIEW

    def test_snake_case_keys(self):
        """snake_case identifier keys classify too."""
        assert classify({"event_id": "e1", "created_at": 1}) == EventType.EVENT

    def test_parsed_event_uses_its_tag(self):
        """Parsed events are classified by their stored tag."""
        event = parse_event({"pageviewId": 1, "createdAt": 1})
        assert classify(event) == EventType.PAGEVIEW


class TestParseEvent:
    """Tests for validating records into variants."""

    def test_variant_matches_classification(self):
        """Each record becomes the model for its type."""
        assert isinstance(parse_event({"eventId": 5, "createdAt": 1}), CustomEvent)
        assert isinstance(parse_event({"pageviewId": 1, "createdAt": 1}), Pageview)
        assert isinstance(parse_event({"sessionId": 9, "createdAt": 1}), Session)
        assert isinstance(parse_event({"createdAt": 1}), UnknownEvent)

    def test_camel_case_fields(self):
        """camelCase keys populate snake_case fields."""
        event = parse_event(
            {
                "sessionId": 9,
                "sessionUuid": "u9",
                "createdAt": "2025-01-25T10:00:00Z",
                "country": "US",
                "browser": "chrome",
            }
        )
        assert event.session_id == 9
        assert event.session_uuid == "u9"
        assert event.created_at == datetime(2025, 1, 25, 10, tzinfo=timezone.utc)
        assert event.country == "US"

    def test_naive_timestamp_is_utc(self):
        """Timestamps without an offset are treated as UTC."""
        event = parse_event({"eventId": 1, "createdAt": "2025-01-25T10:00:00"})
        assert event.created_at.tzinfo is not None
        assert event.created_at.utcoffset().total_seconds() == 0

    def test_epoch_timestamp(self):
        """Numeric timestamps are unix seconds."""
        event = parse_event({"eventId": 1, "createdAt": 100})
        assert event.created_at == datetime(1970, 1, 1, 0, 1, 40, tzinfo=timezone.utc)

    def test_incoming_type_key_is_ignored(self):
        """A stray 'type' field cannot override the classification."""
        event = parse_event({"type": "session", "eventId": 1, "createdAt": 1})
        assert event.type == EventType.EVENT

    def test_missing_created_at_raises(self):
        """createdAt is required."""
        with pytest.raises(ValidationError):
            parse_event({"eventId": 1})

    def test_events_are_frozen(self):
        """Parsed events cannot be modified."""
        event = parse_event({"eventId": 1, "createdAt": 1, "eventName": "signup"})
        with pytest.raises(ValidationError):
            event.event_name = "other"

    def test_unknown_fields_are_ignored(self):
        """Extra collector fields are dropped."""
        event = parse_event({"eventId": 1, "createdAt": 1, "referrer": "x"})
        assert not hasattr(event, "referrer")


class TestSnapshot:
    """Tests for snapshot parsing."""

    def test_missing_collections_default_empty(self):
        """Collections absent from the payload are empty."""
        snapshot = Snapshot.from_mapping({"pageviews": [{"pageviewId": 1, "createdAt": 1}]})
        assert len(snapshot.pageviews) == 1
        assert snapshot.sessions == ()
        assert snapshot.events == ()
        assert len(snapshot) == 1

    def test_null_collection_is_empty(self):
        """A null collection is treated as empty."""
        snapshot = Snapshot.from_mapping({"events": None})
        assert snapshot.events == ()

    def test_records_classified_by_content_not_collection(self):
        """A record in the sessions list carrying a pageviewId is a pageview."""
        snapshot = Snapshot.from_mapping(
            {"sessions": [{"sessionId": 9, "pageviewId": 3, "createdAt": 1}]}
        )
        assert snapshot.sessions[0].type == EventType.PAGEVIEW

    def test_load_snapshot(self):
        """A JSON payload loads into a snapshot."""
        snapshot = load_snapshot('{"events": [{"eventId": 5, "createdAt": 150, "eventName": "signup"}]}')
        assert snapshot.events[0].event_name == "signup"

    def test_load_snapshot_invalid_json(self):
        """Unparseable input raises SnapshotError."""
        with pytest.raises(SnapshotError, match="invalid JSON"):
            load_snapshot("not json")

    def test_load_snapshot_not_an_object(self):
        """A top-level JSON array is rejected."""
        with pytest.raises(SnapshotError, match="expected a JSON object"):
            load_snapshot("[1, 2]")

    def test_load_snapshot_invalid_record(self):
        """A record missing createdAt is rejected."""
        with pytest.raises(SnapshotError, match="validation error"):
            load_snapshot('{"events": [{"eventId": 5}]}')

    @pytest.mark.parametrize("record", ["null", "1", '"pv"', "[1]"])
    def test_load_snapshot_non_object_record(self, record):
        """A record that is not a JSON object becomes a SnapshotError."""
        with pytest.raises(SnapshotError, match="record 0 is not an object"):
            load_snapshot(f'{{"pageviews": [{record}]}}')

    def test_non_object_record_position_reported(self):
        """The error names the offending record's index."""
        with pytest.raises(SnapshotError, match="record 1 is not an object"):
            load_snapshot('{"sessions": [{"sessionId": 9, "createdAt": 1}, 7]}')
