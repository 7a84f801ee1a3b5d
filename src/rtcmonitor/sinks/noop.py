"""No-op event sink."""

from __future__ import annotations

from rtcmonitor.models.event import ClientEvent
from rtcmonitor.sinks.base import EventSink


class NoopEventSink(EventSink):
    """Default sink that discards every event."""

    @property
    def name(self) -> str:
        return "noop"

    def add_event(self, event: ClientEvent) -> None:
        pass
