"""Event sinks for the normalized event stream."""

from rtcmonitor.sinks.base import EventSink
from rtcmonitor.sinks.console import LoggingEventSink
from rtcmonitor.sinks.mock import MockEventSink
from rtcmonitor.sinks.noop import NoopEventSink

__all__ = [
    "EventSink",
    "LoggingEventSink",
    "MockEventSink",
    "NoopEventSink",
]
