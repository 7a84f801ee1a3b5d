"""Binding for raw WebRTC peer connections.

Works with any pyee-style peer connection, e.g. ``aiortc.RTCPeerConnection``::

    pc = RTCPeerConnection()
    client.add_peer_connection(pc, peer_connection_id="pc-1")

Each native event maps to exactly one event kind:

==========================  ==================================
native event                event kind
==========================  ==================================
connectionstatechange       peer_connection_state_changed
iceconnectionstatechange    ice_connection_state_changed
icegatheringstatechange     ice_gathering_state_changed
icecandidate                ice_candidate
icecandidateerror           ice_candidate_error
negotiationneeded           negotiation_needed
signalingstatechange        signaling_state_changed
track                       media_track_added (and its watcher)
datachannel                 data channel watcher
==========================  ==================================
"""

from __future__ import annotations

import logging
from typing import Any

from rtcmonitor.models.enums import EventKind, SourceType
from rtcmonitor.models.event import (
    EventPayload,
    IceCandidateErrorPayload,
    IceCandidatePayload,
    IceConnectionStateChangedPayload,
    IceGatheringStateChangedPayload,
    NegotiationNeededPayload,
    PeerConnectionClosedPayload,
    PeerConnectionOpenedPayload,
    PeerConnectionStateChangedPayload,
    SignalingStateChangedPayload,
)
from rtcmonitor.sources._helpers import as_str, iter_children, native_attr
from rtcmonitor.sources.base import ConnectionBinding
from rtcmonitor.sources.watchers import DataChannelWatcher, TrackWatcher

logger = logging.getLogger("rtcmonitor.sources.peer_connection")

CLOSED_STATE = "closed"

STATE_FIELDS: dict[str, tuple[str, str]] = {
    "connection_state": ("connectionState", "connection_state"),
    "ice_connection_state": ("iceConnectionState", "ice_connection_state"),
    "ice_gathering_state": ("iceGatheringState", "ice_gathering_state"),
    "signaling_state": ("signalingState", "signaling_state"),
}


class PeerConnectionBinding(ConnectionBinding):
    """Normalizes the callbacks of one peer connection.

    Reaching ``connectionState == "closed"`` is the only way the binding
    unbinds itself; every other unbind comes from the caller.
    """

    source_type = SourceType.PEER_CONNECTION

    def _subscribe(self) -> None:
        pc = self._native
        self._listen(pc, "connectionstatechange", self._on_connection_state_change)
        self._listen(pc, "iceconnectionstatechange", self._on_ice_connection_state_change)
        self._listen(pc, "icegatheringstatechange", self._on_ice_gathering_state_change)
        self._listen(pc, "icecandidate", self._on_ice_candidate)
        self._listen(pc, "icecandidateerror", self._on_ice_candidate_error)
        self._listen(pc, "negotiationneeded", self._on_negotiation_needed)
        self._listen(pc, "signalingstatechange", self._on_signaling_state_change)
        self._listen(pc, "track", self._on_track)
        self._listen(pc, "datachannel", self._on_data_channel)

    def _scan(self) -> None:
        for receiver in iter_children(self._native, "getReceivers", "get_receivers"):
            self._watch_child(TrackWatcher, native_attr(receiver, "track"))

    def add_track(self, track: Any) -> TrackWatcher | None:
        """Watch a track the platform did not announce (e.g. a local one)."""
        return self._watch_child(TrackWatcher, track)

    def add_data_channel(self, channel: Any) -> DataChannelWatcher | None:
        """Watch a locally created data channel."""
        return self._watch_child(DataChannelWatcher, channel)

    # -------------------------------------------------------------------------
    # Payloads
    # -------------------------------------------------------------------------

    def _native_state(self, *names: str) -> str | None:
        return as_str(native_attr(self._native, *names))

    def _state_fields(self) -> dict[str, str | None]:
        return {field: self._native_state(*names) for field, names in STATE_FIELDS.items()}

    def _opened_payload(self) -> EventPayload:
        return PeerConnectionOpenedPayload.from_native(
            **self.common_fields(), **self._state_fields()
        )

    def _closed_payload(self) -> EventPayload:
        return PeerConnectionClosedPayload.from_native(
            **self.common_fields(), **self._state_fields()
        )

    # -------------------------------------------------------------------------
    # Native handlers
    # -------------------------------------------------------------------------

    def _on_connection_state_change(self, *_: Any) -> None:
        state = self._native_state(*STATE_FIELDS["connection_state"])
        self._monitor.connection_state = state
        self.emit_event(
            EventKind.PEER_CONNECTION_STATE_CHANGED,
            PeerConnectionStateChangedPayload.from_native(
                **self.common_fields(), connection_state=state
            ),
        )
        if state == CLOSED_STATE:
            self.unbind()

    def _on_ice_connection_state_change(self, *_: Any) -> None:
        self.emit_event(
            EventKind.ICE_CONNECTION_STATE_CHANGED,
            IceConnectionStateChangedPayload.from_native(
                **self.common_fields(),
                ice_connection_state=self._native_state(*STATE_FIELDS["ice_connection_state"]),
            ),
        )

    def _on_ice_gathering_state_change(self, *_: Any) -> None:
        self.emit_event(
            EventKind.ICE_GATHERING_STATE_CHANGED,
            IceGatheringStateChangedPayload.from_native(
                **self.common_fields(),
                ice_gathering_state=self._native_state(*STATE_FIELDS["ice_gathering_state"]),
            ),
        )

    def _on_signaling_state_change(self, *_: Any) -> None:
        self.emit_event(
            EventKind.SIGNALING_STATE_CHANGED,
            SignalingStateChangedPayload.from_native(
                **self.common_fields(),
                signaling_state=self._native_state(*STATE_FIELDS["signaling_state"]),
            ),
        )

    def _on_negotiation_needed(self, *_: Any) -> None:
        self.emit_event(
            EventKind.NEGOTIATION_NEEDED,
            NegotiationNeededPayload.from_native(**self.common_fields()),
        )

    def _on_ice_candidate(self, event: Any = None, *_: Any) -> None:
        # Either an event wrapping the candidate or the candidate itself.
        candidate = native_attr(event, "candidate", default=event)
        if isinstance(candidate, str):
            candidate = event
        self.emit_event(
            EventKind.ICE_CANDIDATE,
            IceCandidatePayload.from_native(**self.common_fields(), **candidate_fields(candidate)),
        )

    def _on_ice_candidate_error(self, event: Any = None, *_: Any) -> None:
        self.emit_event(
            EventKind.ICE_CANDIDATE_ERROR,
            IceCandidateErrorPayload.from_native(
                **self.common_fields(),
                error_code=native_attr(event, "errorCode", "error_code"),
                error_text=as_str(native_attr(event, "errorText", "error_text")),
                address=as_str(native_attr(event, "address")),
                port=native_attr(event, "port"),
                url=as_str(native_attr(event, "url")),
            ),
        )

    def _on_track(self, event: Any = None, *_: Any) -> None:
        track = native_attr(event, "track", default=event)
        if track is None:
            return
        self._watch_child(TrackWatcher, track)

    def _on_data_channel(self, event: Any = None, *_: Any) -> None:
        channel = native_attr(event, "channel", default=event)
        if channel is None:
            return
        self._watch_child(DataChannelWatcher, channel)


def candidate_fields(candidate: Any) -> dict[str, Any]:
    """Flatten an ICE candidate. ``None`` yields all-``None`` fields."""
    return {
        "candidate": as_str(native_attr(candidate, "candidate")),
        "sdp_mid": as_str(native_attr(candidate, "sdpMid", "sdp_mid")),
        "sdp_m_line_index": native_attr(candidate, "sdpMLineIndex", "sdp_m_line_index"),
        "username_fragment": as_str(
            native_attr(candidate, "usernameFragment", "username_fragment")
        ),
        "foundation": as_str(native_attr(candidate, "foundation")),
        "component": native_attr(candidate, "component"),
        "priority": native_attr(candidate, "priority"),
        "address": as_str(native_attr(candidate, "address", "ip")),
        "port": native_attr(candidate, "port"),
        "protocol": as_str(native_attr(candidate, "protocol")),
        "candidate_type": as_str(native_attr(candidate, "type", "candidate_type")),
        "related_address": as_str(native_attr(candidate, "relatedAddress", "related_address")),
        "related_port": native_attr(candidate, "relatedPort", "related_port"),
        "tcp_type": as_str(native_attr(candidate, "tcpType", "tcp_type")),
    }
