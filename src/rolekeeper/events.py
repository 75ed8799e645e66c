# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Grant/revoke event log.

Every successful grant or revoke produces a RoleEvent. The event is appended
to the registry record's own log and published to any configured sinks so
external observers (indexers, monitoring, audit pipelines) can follow along.
The registry never reads events back.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from .roles import RoleKey

logger = logging.getLogger(__name__)


class RoleEventKind(str, Enum):
    """Kinds of membership events."""

    GRANT_ROLE = "grant_role"
    REVOKE_ROLE = "revoke_role"


@dataclass(frozen=True)
class RoleEvent:
    """One membership change.

    Attributes:
        kind: GRANT_ROLE or REVOKE_ROLE
        role: Key of the affected role
        account: Account whose membership changed
        timestamp: Clock time of the change (integer seconds)
        event_id: Unique identifier for this event
    """

    kind: RoleEventKind
    role: RoleKey
    account: str
    timestamp: int
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "kind": self.kind.value,
            "role": self.role.name,
            "owner": self.role.owner,
            "account": self.account,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RoleEvent:
        return cls(
            kind=RoleEventKind(data["kind"]),
            role=RoleKey(data["role"], data["owner"]),
            account=data["account"],
            timestamp=int(data["timestamp"]),
            event_id=data.get("event_id", str(uuid.uuid4())),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@runtime_checkable
class EventSink(Protocol):
    """Append-only destination for role events."""

    def publish(self, event: RoleEvent) -> None:
        ...


class InMemoryEventSink:
    """In-memory event sink for testing and development.

    Thread-safe but not persistent.
    """

    def __init__(self, max_events: int = 10000):
        self._events: list[RoleEvent] = []
        self._max_events = max_events
        self._lock = threading.Lock()

    def publish(self, event: RoleEvent) -> None:
        with self._lock:
            self._events.append(event)
            if len(self._events) > self._max_events:
                self._events = self._events[-self._max_events :]

    def query(
        self,
        kind: RoleEventKind | None = None,
        role: RoleKey | None = None,
        account: str | None = None,
        limit: int = 100,
    ) -> list[RoleEvent]:
        """Query events, most recent first."""
        with self._lock:
            results = []
            for event in reversed(self._events):
                if kind and event.kind != kind:
                    continue
                if role and event.role != role:
                    continue
                if account and event.account != account:
                    continue
                results.append(event)
                if len(results) >= limit:
                    break
            return results

    def all_events(self) -> list[RoleEvent]:
        with self._lock:
            return list(self._events)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


class JsonlEventSink:
    """Appends events to a file as JSON lines (one event per line)."""

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def publish(self, event: RoleEvent) -> None:
        line = event.to_json() + "\n"
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line)

    def read_events(self) -> list[RoleEvent]:
        """Read every event back, oldest first. For observers, not the registry."""
        if not self.path.exists():
            return []
        events = []
        with self._lock:
            with open(self.path, encoding="utf-8") as f:
                for lineno, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        data = json.loads(line)
                        if not isinstance(data, dict):
                            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
                        events.append(RoleEvent.from_dict(data))
                    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                        logger.warning(f"Skipping malformed event at {self.path}:{lineno}: {e}")
        return events


class CallbackEventSink:
    """Adapts a plain callable to the EventSink protocol."""

    def __init__(self, callback: Callable[[RoleEvent], Any]):
        self.callback = callback

    def publish(self, event: RoleEvent) -> None:
        self.callback(event)


def as_sink(sink: EventSink | Callable[[RoleEvent], Any]) -> EventSink:
    """Wrap callables; pass sinks through unchanged."""
    if isinstance(sink, EventSink):
        return sink
    if callable(sink):
        return CallbackEventSink(sink)
    raise TypeError(f"Not an event sink: {sink!r}")
