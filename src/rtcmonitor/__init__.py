"""rtcmonitor - Lifecycle event normalization for WebRTC and SFU clients."""

from rtcmonitor._version import __version__
from rtcmonitor.client import ClientMonitor
from rtcmonitor.config import MonitorConfig
from rtcmonitor.core.dispatcher import EventDispatcher
from rtcmonitor.core.payloads import PayloadProvider, PayloadTransform
from rtcmonitor.core.registry import BindingRegistry
from rtcmonitor.core.subscription import Subscription, SubscriptionGroup
from rtcmonitor.errors import MonitorClosedError, RtcMonitorError, UnsupportedSourceError
from rtcmonitor.models.enums import BindingState, EventKind, SourceType
from rtcmonitor.models.event import (
    PAYLOAD_TYPES,
    ClientEvent,
    ClientIssue,
    ClientMetaData,
    EventPayload,
)
from rtcmonitor.monitor import ConnectionMonitor
from rtcmonitor.sinks import EventSink, LoggingEventSink, MockEventSink, NoopEventSink
from rtcmonitor.sources import (
    ConnectionBinding,
    DeviceBinding,
    PeerConnectionBinding,
    TransportBinding,
    infer_source_type,
)

__all__ = [
    "__version__",
    # Core
    "ClientMonitor",
    "MonitorConfig",
    "EventDispatcher",
    "BindingRegistry",
    "Subscription",
    "SubscriptionGroup",
    # Errors
    "RtcMonitorError",
    "MonitorClosedError",
    "UnsupportedSourceError",
    # Models
    "BindingState",
    "ClientEvent",
    "ClientIssue",
    "ClientMetaData",
    "EventKind",
    "EventPayload",
    "PAYLOAD_TYPES",
    "SourceType",
    # Payloads
    "PayloadProvider",
    "PayloadTransform",
    # Sinks
    "EventSink",
    "LoggingEventSink",
    "MockEventSink",
    "NoopEventSink",
    # Sources
    "ConnectionBinding",
    "ConnectionMonitor",
    "DeviceBinding",
    "PeerConnectionBinding",
    "TransportBinding",
    "infer_source_type",
]
