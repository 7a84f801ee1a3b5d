"""Envelope construction and delivery to the sink."""

from __future__ import annotations

import logging
from typing import Any

from rtcmonitor.core.payloads import PayloadProvider
from rtcmonitor.models.enums import EventKind
from rtcmonitor.models.event import ClientEvent
from rtcmonitor.sinks.base import EventSink
from rtcmonitor.sinks.noop import NoopEventSink

logger = logging.getLogger("rtcmonitor.dispatcher")


class EventDispatcher:
    """Turns typed payloads into envelopes and hands them to the sink.

    ``payload_provider`` and ``sink`` are plain attributes and may be
    swapped at any time; they are read again for every event.
    """

    def __init__(
        self,
        sink: EventSink | None = None,
        payload_provider: PayloadProvider | None = None,
        *,
        enabled_events: set[EventKind] | None = None,
    ) -> None:
        self.sink: EventSink = sink or NoopEventSink()
        self.payload_provider = payload_provider or PayloadProvider()
        self.enabled_events = enabled_events
        self.dispatched = 0

    def dispatch(self, kind: EventKind, payload: Any) -> ClientEvent | None:
        """Build the envelope for ``kind`` and deliver it.

        Returns the delivered envelope, or None if the event was filtered
        out or could not be built. Failures in a payload transform or in
        the sink are logged and never propagate to the native callback.
        """
        if self.enabled_events is not None and kind not in self.enabled_events:
            return None
        try:
            event = ClientEvent(
                kind=kind,
                payload=self.payload_provider.create_payload(kind, payload),
            )
        except Exception:
            logger.exception("Failed to build payload for %s", kind)
            return None
        try:
            self.sink.add_event(event)
        except Exception:
            logger.exception("Sink %s failed to accept %s", self.sink.name, kind)
            return None
        self.dispatched += 1
        return event
