"""All string enums for rtcmonitor."""

from __future__ import annotations

from enum import StrEnum, unique


@unique
class EventKind(StrEnum):
    # Client lifecycle
    CLIENT_JOINED = "client_joined"
    CLIENT_LEFT = "client_left"
    # Connection lifecycle
    PEER_CONNECTION_OPENED = "peer_connection_opened"
    PEER_CONNECTION_CLOSED = "peer_connection_closed"
    PEER_CONNECTION_STATE_CHANGED = "peer_connection_state_changed"
    ICE_CONNECTION_STATE_CHANGED = "ice_connection_state_changed"
    ICE_GATHERING_STATE_CHANGED = "ice_gathering_state_changed"
    ICE_CANDIDATE = "ice_candidate"
    ICE_CANDIDATE_ERROR = "ice_candidate_error"
    NEGOTIATION_NEEDED = "negotiation_needed"
    SIGNALING_STATE_CHANGED = "signaling_state_changed"
    # Media tracks
    MEDIA_TRACK_ADDED = "media_track_added"
    MEDIA_TRACK_REMOVED = "media_track_removed"
    MEDIA_TRACK_MUTED = "media_track_muted"
    MEDIA_TRACK_UNMUTED = "media_track_unmuted"
    # Data channels
    DATA_CHANNEL_OPEN = "data_channel_open"
    DATA_CHANNEL_CLOSED = "data_channel_closed"
    DATA_CHANNEL_ERROR = "data_channel_error"
    # SFU producers / consumers
    PRODUCER_ADDED = "producer_added"
    PRODUCER_REMOVED = "producer_removed"
    PRODUCER_PAUSED = "producer_paused"
    PRODUCER_RESUMED = "producer_resumed"
    CONSUMER_ADDED = "consumer_added"
    CONSUMER_REMOVED = "consumer_removed"
    CONSUMER_PAUSED = "consumer_paused"
    CONSUMER_RESUMED = "consumer_resumed"
    DATA_PRODUCER_CREATED = "data_producer_created"
    DATA_PRODUCER_CLOSED = "data_producer_closed"
    DATA_CONSUMER_CREATED = "data_consumer_created"
    DATA_CONSUMER_CLOSED = "data_consumer_closed"


@unique
class BindingState(StrEnum):
    """Subscription state of a binding. Transitions only move forward."""

    UNBOUND = "unbound"
    BOUND = "bound"
    CLOSED = "closed"


@unique
class SourceType(StrEnum):
    PEER_CONNECTION = "peer_connection"
    MEDIASOUP_TRANSPORT = "mediasoup_transport"
    MEDIASOUP_DEVICE = "mediasoup_device"
