"""Event envelope and typed payload models."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from rtcmonitor.models.enums import EventKind

logger = logging.getLogger("rtcmonitor.models")


class ClientEvent(BaseModel):
    """A normalized lifecycle event handed to the sink.

    The envelope is immutable once built. The order in which envelopes
    reach the sink is the delivery order.
    """

    model_config = ConfigDict(frozen=True)

    kind: EventKind
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "kind": self.kind.value,
            "payload": dict(self.payload),
            "timestamp": self.timestamp.isoformat(),
        }


class ClientMetaData(BaseModel):
    """Client metadata record (user agent, devices, ...)."""

    model_config = ConfigDict(frozen=True)

    kind: str
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ClientIssue(BaseModel):
    """A detected client-side issue."""

    model_config = ConfigDict(frozen=True)

    kind: str
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


class EventPayload(BaseModel):
    """Base for all typed payloads."""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_native(cls, **fields: Any) -> Self:
        """Build a payload from values read off a native object.

        Values that do not fit the declared types are kept as they are
        instead of being rejected.
        """
        try:
            return cls(**fields)
        except ValidationError as exc:
            logger.debug("Unvalidated %s: %d malformed field(s)", cls.__name__, exc.error_count())
            return cls.model_construct(**fields)


class ClientJoinedPayload(EventPayload):
    message: str | None = None
    attachments: dict[str, Any] | None = None


class ClientLeftPayload(EventPayload):
    message: str | None = None
    attachments: dict[str, Any] | None = None


class ConnectionPayload(EventPayload):
    """Base for payloads produced by a connection binding."""

    peer_connection_id: str
    app_data: dict[str, Any] | None = None


class PeerConnectionOpenedPayload(ConnectionPayload):
    connection_state: str | None = None
    ice_connection_state: str | None = None
    ice_gathering_state: str | None = None
    signaling_state: str | None = None


class PeerConnectionClosedPayload(ConnectionPayload):
    connection_state: str | None = None
    ice_connection_state: str | None = None
    ice_gathering_state: str | None = None
    signaling_state: str | None = None


class PeerConnectionStateChangedPayload(ConnectionPayload):
    connection_state: str | None = None


class IceConnectionStateChangedPayload(ConnectionPayload):
    ice_connection_state: str | None = None


class IceGatheringStateChangedPayload(ConnectionPayload):
    ice_gathering_state: str | None = None


class SignalingStateChangedPayload(ConnectionPayload):
    signaling_state: str | None = None


class NegotiationNeededPayload(ConnectionPayload):
    pass


class IceCandidatePayload(ConnectionPayload):
    """A locally gathered candidate. All fields are ``None`` at end-of-candidates."""

    candidate: str | None = None
    sdp_mid: str | None = None
    sdp_m_line_index: int | str | None = None
    username_fragment: str | None = None
    foundation: str | None = None
    component: int | str | None = None
    priority: int | str | None = None
    address: str | None = None
    port: int | str | None = None
    protocol: str | None = None
    candidate_type: str | None = None
    related_address: str | None = None
    related_port: int | str | None = None
    tcp_type: str | None = None


class IceCandidateErrorPayload(ConnectionPayload):
    """ICE candidate error. Platforms populate these fields partially."""

    error_code: int | str | None = None
    error_text: str | None = None
    address: str | None = None
    port: int | str | None = None
    url: str | None = None


class MediaTrackPayload(ConnectionPayload):
    track_id: str | None = None
    kind: str | None = None
    label: str | None = None
    muted: bool | None = None
    enabled: bool | None = None
    ready_state: str | None = None
    content_hint: str | None = None
    producer_id: str | None = None
    consumer_id: str | None = None


class MediaTrackAddedPayload(MediaTrackPayload):
    constraints: dict[str, Any] | None = None
    capabilities: dict[str, Any] | None = None
    settings: dict[str, Any] | None = None


class MediaTrackRemovedPayload(MediaTrackPayload):
    pass


class MediaTrackMutedPayload(MediaTrackPayload):
    pass


class MediaTrackUnmutedPayload(MediaTrackPayload):
    pass


class DataChannelPayload(ConnectionPayload):
    data_channel_id: int | str | None = None
    label: str | None = None
    ready_state: str | None = None


class DataChannelOpenPayload(DataChannelPayload):
    pass


class DataChannelClosedPayload(DataChannelPayload):
    pass


class DataChannelErrorPayload(DataChannelPayload):
    error: str | None = None


class ProducerPayload(ConnectionPayload):
    producer_id: str | None = None
    track_id: str | None = None


class ProducerAddedPayload(ProducerPayload):
    pass


class ProducerRemovedPayload(ProducerPayload):
    pass


class ProducerPausedPayload(ProducerPayload):
    pass


class ProducerResumedPayload(ProducerPayload):
    pass


class ConsumerPayload(ConnectionPayload):
    consumer_id: str | None = None
    producer_id: str | None = None
    track_id: str | None = None


class ConsumerAddedPayload(ConsumerPayload):
    pass


class ConsumerRemovedPayload(ConsumerPayload):
    pass


class ConsumerPausedPayload(ConsumerPayload):
    pass


class ConsumerResumedPayload(ConsumerPayload):
    pass


class DataProducerCreatedPayload(ConnectionPayload):
    data_producer_id: str | None = None


class DataProducerClosedPayload(ConnectionPayload):
    data_producer_id: str | None = None


class DataConsumerCreatedPayload(ConnectionPayload):
    data_consumer_id: str | None = None
    data_producer_id: str | None = None


class DataConsumerClosedPayload(ConnectionPayload):
    data_consumer_id: str | None = None
    data_producer_id: str | None = None


PAYLOAD_TYPES: dict[EventKind, type[EventPayload]] = {
    EventKind.CLIENT_JOINED: ClientJoinedPayload,
    EventKind.CLIENT_LEFT: ClientLeftPayload,
    EventKind.PEER_CONNECTION_OPENED: PeerConnectionOpenedPayload,
    EventKind.PEER_CONNECTION_CLOSED: PeerConnectionClosedPayload,
    EventKind.PEER_CONNECTION_STATE_CHANGED: PeerConnectionStateChangedPayload,
    EventKind.ICE_CONNECTION_STATE_CHANGED: IceConnectionStateChangedPayload,
    EventKind.ICE_GATHERING_STATE_CHANGED: IceGatheringStateChangedPayload,
    EventKind.ICE_CANDIDATE: IceCandidatePayload,
    EventKind.ICE_CANDIDATE_ERROR: IceCandidateErrorPayload,
    EventKind.NEGOTIATION_NEEDED: NegotiationNeededPayload,
    EventKind.SIGNALING_STATE_CHANGED: SignalingStateChangedPayload,
    EventKind.MEDIA_TRACK_ADDED: MediaTrackAddedPayload,
    EventKind.MEDIA_TRACK_REMOVED: MediaTrackRemovedPayload,
    EventKind.MEDIA_TRACK_MUTED: MediaTrackMutedPayload,
    EventKind.MEDIA_TRACK_UNMUTED: MediaTrackUnmutedPayload,
    EventKind.DATA_CHANNEL_OPEN: DataChannelOpenPayload,
    EventKind.DATA_CHANNEL_CLOSED: DataChannelClosedPayload,
    EventKind.DATA_CHANNEL_ERROR: DataChannelErrorPayload,
    EventKind.PRODUCER_ADDED: ProducerAddedPayload,
    EventKind.PRODUCER_REMOVED: ProducerRemovedPayload,
    EventKind.PRODUCER_PAUSED: ProducerPausedPayload,
    EventKind.PRODUCER_RESUMED: ProducerResumedPayload,
    EventKind.CONSUMER_ADDED: ConsumerAddedPayload,
    EventKind.CONSUMER_REMOVED: ConsumerRemovedPayload,
    EventKind.CONSUMER_PAUSED: ConsumerPausedPayload,
    EventKind.CONSUMER_RESUMED: ConsumerResumedPayload,
    EventKind.DATA_PRODUCER_CREATED: DataProducerCreatedPayload,
    EventKind.DATA_PRODUCER_CLOSED: DataProducerClosedPayload,
    EventKind.DATA_CONSUMER_CREATED: DataConsumerCreatedPayload,
    EventKind.DATA_CONSUMER_CLOSED: DataConsumerClosedPayload,
}

_missing = set(EventKind) - PAYLOAD_TYPES.keys()
if _missing:
    raise RuntimeError(f"No payload type registered for: {sorted(_missing)}")
del _missing
