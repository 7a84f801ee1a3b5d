"""Client monitor configuration."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rtcmonitor.core.payloads import PayloadProvider
    from rtcmonitor.models.enums import EventKind
    from rtcmonitor.monitor import ConnectionMonitor
    from rtcmonitor.sinks.base import EventSink


def _generate_id() -> str:
    return str(uuid.uuid4())


@dataclass
class MonitorConfig:
    """Configuration for a :class:`~rtcmonitor.client.ClientMonitor`.

    Attributes:
        sink: Receives every event. Defaults to ``NoopEventSink`` if not set.
        payload_provider: Shapes payloads per event kind. Defaults to a
            ``PayloadProvider`` with identity transforms.
        enabled_events: If set, only these event kinds reach the sink.
            ``None`` means all kinds are delivered.
        monitor_factory: Builds the per-connection monitor from the
            connection id. Defaults to ``ConnectionMonitor``.
        id_factory: Generates connection ids when the caller supplies none.
    """

    sink: EventSink | None = None
    payload_provider: PayloadProvider | None = None
    enabled_events: set[EventKind] | None = None
    monitor_factory: Callable[[str], ConnectionMonitor] | None = None
    id_factory: Callable[[], str] = field(default=_generate_id)
