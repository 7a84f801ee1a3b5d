"""Mock event sink that records everything for test assertions."""

from __future__ import annotations

from rtcmonitor.models.enums import EventKind
from rtcmonitor.models.event import ClientEvent, ClientIssue, ClientMetaData
from rtcmonitor.sinks.base import EventSink


class MockEventSink(EventSink):
    """Records events, metadata and issues in lists.

    Example::

        sink = MockEventSink()
        client = ClientMonitor(sink=sink)
        client.add_peer_connection(pc)
        assert sink.kinds() == [EventKind.PEER_CONNECTION_OPENED]
    """

    def __init__(self) -> None:
        self.events: list[ClientEvent] = []
        self.meta_data: list[ClientMetaData] = []
        self.issues: list[ClientIssue] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "mock"

    def add_event(self, event: ClientEvent) -> None:
        self.events.append(event)

    def add_meta_data(self, meta_data: ClientMetaData) -> None:
        self.meta_data.append(meta_data)

    def add_issue(self, issue: ClientIssue) -> None:
        self.issues.append(issue)

    def get_events(self, kind: EventKind) -> list[ClientEvent]:
        """Get recorded events of a specific kind."""
        return [e for e in self.events if e.kind == kind]

    def kinds(self) -> list[EventKind]:
        """Event kinds in delivery order."""
        return [e.kind for e in self.events]

    def for_connection(self, peer_connection_id: str) -> list[ClientEvent]:
        """Events whose payload belongs to one connection."""
        return [
            e for e in self.events if e.payload.get("peer_connection_id") == peer_connection_id
        ]

    def close(self) -> None:
        self.closed = True

    def reset(self) -> None:
        """Clear all recorded data."""
        self.events.clear()
        self.meta_data.clear()
        self.issues.clear()
