"""Tests for role events and event sinks."""

from __future__ import annotations

import json

import pytest

from rolekeeper.events import (
    CallbackEventSink,
    EventSink,
    InMemoryEventSink,
    JsonlEventSink,
    RoleEvent,
    RoleEventKind,
    as_sink,
)
from rolekeeper.registry import RoleRegistry
from rolekeeper.roles import RoleKey

ROLE = RoleKey("tests.Moderator", "0xA")
OTHER = RoleKey("tests.Bridge", "0xA")


def grant(account: str, role: RoleKey = ROLE, ts: int = 1) -> RoleEvent:
    return RoleEvent(RoleEventKind.GRANT_ROLE, role, account, ts)


def revoke(account: str, role: RoleKey = ROLE, ts: int = 2) -> RoleEvent:
    return RoleEvent(RoleEventKind.REVOKE_ROLE, role, account, ts)


class TestRoleEvent:
    """Tests for the RoleEvent value."""

    def test_kind_values(self):
        assert RoleEventKind.GRANT_ROLE.value == "grant_role"
        assert RoleEventKind.REVOKE_ROLE.value == "revoke_role"
        assert RoleEventKind("grant_role") is RoleEventKind.GRANT_ROLE

    def test_event_ids_unique(self):
        assert grant("U1").event_id != grant("U1").event_id

    def test_json_round_trip(self):
        event = revoke("U1", ts=42)
        restored = RoleEvent.from_dict(json.loads(event.to_json()))
        assert restored == event


class TestInMemoryEventSink:
    """Tests for InMemoryEventSink."""

    def test_query_filters(self):
        sink = InMemoryEventSink()
        events = [grant("U1"), grant("U2"), revoke("U1"), grant("U1", role=OTHER)]
        for event in events:
            sink.publish(event)

        assert sink.query(kind=RoleEventKind.REVOKE_ROLE) == [events[2]]
        assert sink.query(account="U1", role=ROLE) == [events[2], events[0]]
        assert sink.query(role=OTHER) == [events[3]]
        assert len(sink.query(limit=2)) == 2

    def test_max_events_trims_oldest(self):
        sink = InMemoryEventSink(max_events=2)
        events = [grant(f"U{i}") for i in range(3)]
        for event in events:
            sink.publish(event)

        assert sink.all_events() == events[1:]

    def test_clear(self):
        sink = InMemoryEventSink()
        sink.publish(grant("U1"))
        sink.clear()
        assert sink.all_events() == []


class TestJsonlEventSink:
    """Tests for JsonlEventSink."""

    def test_appends_lines(self, tmp_path):
        path = tmp_path / "logs" / "events.jsonl"
        sink = JsonlEventSink(path)
        events = [grant("U1"), revoke("U1")]
        for event in events:
            sink.publish(event)

        lines = path.read_text().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["kind"] == "grant_role"
        assert sink.read_events() == events

    def test_read_missing_file(self, tmp_path):
        assert JsonlEventSink(tmp_path / "none.jsonl").read_events() == []

    def test_skips_malformed_lines(self, tmp_path):
        path = tmp_path / "events.jsonl"
        event = grant("U1")
        path.write_text("not json\n\n" + event.to_json() + "\n")

        assert JsonlEventSink(path).read_events() == [event]

    def test_skips_lines_that_are_not_objects(self, tmp_path):
        path = tmp_path / "events.jsonl"
        event = grant("U1")
        bad_kind = dict(event.to_dict(), kind="promote")
        lines = ["5", "[]", '"text"', "null", json.dumps(bad_kind), event.to_json()]
        path.write_text("\n".join(lines) + "\n")

        assert JsonlEventSink(path).read_events() == [event]

    def test_registry_writes_jsonl(self, tmp_path, clock, settings, moderator):
        sink = JsonlEventSink(tmp_path / "events.jsonl")
        registry = RoleRegistry(clock=clock, sinks=[sink], settings=settings)
        manage, _ = registry.register(moderator, "0xA")

        registry.grant_role(manage, "U1")
        registry.revoke_role(manage, "U1")

        assert [e.kind for e in sink.read_events()] == [
            RoleEventKind.GRANT_ROLE,
            RoleEventKind.REVOKE_ROLE,
        ]


class TestAsSink:
    """Tests for sink adaptation."""

    def test_sink_passes_through(self):
        sink = InMemoryEventSink()
        assert as_sink(sink) is sink
        assert isinstance(sink, EventSink)

    def test_callable_wrapped(self):
        received = []
        sink = as_sink(received.append)

        assert isinstance(sink, CallbackEventSink)
        event = grant("U1")
        sink.publish(event)
        assert received == [event]

    def test_rejects_non_callable(self):
        with pytest.raises(TypeError):
            as_sink(42)
