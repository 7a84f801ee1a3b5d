"""Logging event sink that writes envelopes through Python logging."""

from __future__ import annotations

import logging

from rtcmonitor.models.event import ClientEvent, ClientIssue, ClientMetaData
from rtcmonitor.sinks.base import EventSink

logger = logging.getLogger("rtcmonitor.events")


class LoggingEventSink(EventSink):
    """Logs every event to the ``rtcmonitor.events`` logger.

    Useful for development and debugging.

    Example::

        import logging
        logging.basicConfig(level=logging.INFO)

        from rtcmonitor import ClientMonitor
        from rtcmonitor.sinks import LoggingEventSink

        client = ClientMonitor(sink=LoggingEventSink())
    """

    def __init__(self, *, level: int = logging.INFO, include_none: bool = False) -> None:
        self._level = level
        self._include_none = include_none
        self.count = 0

    @property
    def name(self) -> str:
        return "logging"

    def add_event(self, event: ClientEvent) -> None:
        self.count += 1
        logger.log(self._level, "[EVENT] %s%s", event.kind, self._format(event.payload))

    def add_meta_data(self, meta_data: ClientMetaData) -> None:
        logger.log(self._level, "[META] %s%s", meta_data.kind, self._format(meta_data.payload))

    def add_issue(self, issue: ClientIssue) -> None:
        logger.warning("[ISSUE] %s%s", issue.kind, self._format(issue.payload))

    def _format(self, payload: dict[str, object]) -> str:
        parts = [
            f"{k}={v}" for k, v in payload.items() if self._include_none or v is not None
        ]
        return f" [{', '.join(parts)}]" if parts else ""
