"""In-memory native objects for testing bindings without a media stack.

The mocks are pyee emitters shaped like aiortc peer connections and
mediasoup-client transports. Helper methods change a field and fire the
matching native event, the way the real platform would.
"""

from __future__ import annotations

import itertools
from typing import Any

from pyee import EventEmitter

_ids = itertools.count(1)


def _next_id(prefix: str) -> str:
    return f"{prefix}-{next(_ids)}"


def _emit_error(emitter: EventEmitter, error: Any) -> None:
    # pyee raises unhandled "error" events
    if emitter.listeners("error"):
        emitter.emit("error", error)


# ---------------------------------------------------------------------------
# Peer-to-peer
# ---------------------------------------------------------------------------


class MockMediaStreamTrack(EventEmitter):
    """A media track with ``ended``/``mute``/``unmute`` notifications."""

    def __init__(
        self,
        kind: str = "audio",
        *,
        id: str | None = None,  # noqa: A002
        label: str = "",
        settings: dict[str, Any] | None = None,
    ) -> None:
        super().__init__()
        self.id = id or _next_id("track")
        self.kind = kind
        self.label = label
        self.enabled = True
        self.muted = False
        self.readyState = "live"
        self.contentHint = ""
        self._settings = dict(settings or {})

    def getSettings(self) -> dict[str, Any]:  # noqa: N802
        return dict(self._settings)

    def getConstraints(self) -> dict[str, Any]:  # noqa: N802
        return {}

    def getCapabilities(self) -> dict[str, Any]:  # noqa: N802
        return {}

    def mute(self) -> None:
        self.muted = True
        self.emit("mute")

    def unmute(self) -> None:
        self.muted = False
        self.emit("unmute")

    def end(self) -> None:
        """Simulate the remote side ending the track."""
        if self.readyState == "ended":
            return
        self.readyState = "ended"
        self.emit("ended")


class MockDataChannel(EventEmitter):
    def __init__(self, label: str = "data", *, id: int | None = None) -> None:  # noqa: A002
        super().__init__()
        self.id = id
        self.label = label
        self.readyState = "connecting"

    def open(self) -> None:
        self.readyState = "open"
        self.emit("open")

    def fail(self, error: Any) -> None:
        _emit_error(self, error)

    def close(self) -> None:
        if self.readyState == "closed":
            return
        self.readyState = "closed"
        self.emit("close")


class MockRtpReceiver:
    def __init__(self, track: MockMediaStreamTrack) -> None:
        self.track = track


class MockPeerConnection(EventEmitter):
    """Peer connection with camelCase state fields, like aiortc."""

    def __init__(self) -> None:
        super().__init__()
        self.connectionState = "new"
        self.iceConnectionState = "new"
        self.iceGatheringState = "new"
        self.signalingState = "stable"
        self.receivers: list[MockRtpReceiver] = []

    def setLocalDescription(self, description: Any) -> None:  # noqa: N802
        self.local_description = description

    def getReceivers(self) -> list[MockRtpReceiver]:  # noqa: N802
        return list(self.receivers)

    def receive_track(self, track: MockMediaStreamTrack) -> MockMediaStreamTrack:
        """Simulate a remote track arriving."""
        self.receivers.append(MockRtpReceiver(track))
        self.emit("track", track)
        return track

    def receive_data_channel(self, channel: MockDataChannel) -> MockDataChannel:
        self.emit("datachannel", channel)
        return channel

    def set_connection_state(self, state: str) -> None:
        self.connectionState = state
        self.emit("connectionstatechange")

    def set_ice_connection_state(self, state: str) -> None:
        self.iceConnectionState = state
        self.emit("iceconnectionstatechange")

    def set_ice_gathering_state(self, state: str) -> None:
        self.iceGatheringState = state
        self.emit("icegatheringstatechange")

    def set_signaling_state(self, state: str) -> None:
        self.signalingState = state
        self.emit("signalingstatechange")

    def gather_candidate(self, candidate: Any) -> None:
        self.emit("icecandidate", candidate)

    def candidate_error(self, event: Any) -> None:
        self.emit("icecandidateerror", event)

    def need_negotiation(self) -> None:
        self.emit("negotiationneeded")

    def close(self) -> None:
        if self.connectionState == "closed":
            return
        self.signalingState = "closed"
        self.set_connection_state("closed")


# ---------------------------------------------------------------------------
# SFU
# ---------------------------------------------------------------------------


class _SfuObject:
    """Common shape of mediasoup-client objects: ``id``, ``observer``, ``closed``."""

    def __init__(self, id: str | None, prefix: str) -> None:  # noqa: A002
        self.id = id or _next_id(prefix)
        self.observer = EventEmitter()
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.observer.emit("close")


class _PausableSfuObject(_SfuObject):
    def __init__(self, id: str | None, prefix: str, track: Any) -> None:  # noqa: A002
        super().__init__(id, prefix)
        self.track = track
        self.paused = False

    def pause(self) -> None:
        self.paused = True
        self.observer.emit("pause")

    def resume(self) -> None:
        self.paused = False
        self.observer.emit("resume")


class MockProducer(_PausableSfuObject):
    def __init__(self, track: Any = None, *, id: str | None = None) -> None:  # noqa: A002
        super().__init__(id, "producer", track)

    def replace_track(self, track: Any) -> None:
        """Swap the sent track. Emits nothing, like mediasoup-client."""
        self.track = track


class MockConsumer(_PausableSfuObject):
    def __init__(
        self,
        track: Any = None,
        *,
        producer_id: str | None = None,
        id: str | None = None,  # noqa: A002
    ) -> None:
        super().__init__(id, "consumer", track)
        self.producerId = producer_id


class MockDataProducer(_SfuObject):
    def __init__(self, *, id: str | None = None) -> None:  # noqa: A002
        super().__init__(id, "data-producer")


class MockDataConsumer(_SfuObject):
    def __init__(
        self, *, data_producer_id: str | None = None, id: str | None = None  # noqa: A002
    ) -> None:
        super().__init__(id, "data-consumer")
        self.dataProducerId = data_producer_id


class MockTransport(EventEmitter):
    """A send or receive transport.

    State changes are emitted on the transport with the new state as the
    argument; lifecycle notifications go through ``observer``.
    """

    def __init__(self, direction: str = "send", *, id: str | None = None) -> None:  # noqa: A002
        super().__init__()
        self.id = id or _next_id("transport")
        self.direction = direction
        self.observer = EventEmitter()
        self.closed = False
        self.connectionState = "new"
        self.iceGatheringState = "new"
        self.producers: dict[str, MockProducer] = {}
        self.consumers: dict[str, MockConsumer] = {}
        self.dataProducers: dict[str, MockDataProducer] = {}
        self.dataConsumers: dict[str, MockDataConsumer] = {}

    def produce(self, track: Any = None, *, id: str | None = None) -> MockProducer:  # noqa: A002
        producer = MockProducer(track, id=id)
        self.producers[producer.id] = producer
        producer.observer.once("close", lambda: self.producers.pop(producer.id, None))
        self.observer.emit("newproducer", producer)
        return producer

    def consume(
        self,
        track: Any = None,
        *,
        producer_id: str | None = None,
        id: str | None = None,  # noqa: A002
    ) -> MockConsumer:
        consumer = MockConsumer(track, producer_id=producer_id, id=id)
        self.consumers[consumer.id] = consumer
        consumer.observer.once("close", lambda: self.consumers.pop(consumer.id, None))
        self.observer.emit("newconsumer", consumer)
        return consumer

    def produce_data(self, *, id: str | None = None) -> MockDataProducer:  # noqa: A002
        data_producer = MockDataProducer(id=id)
        self.dataProducers[data_producer.id] = data_producer
        self.observer.emit("newdataproducer", data_producer)
        return data_producer

    def consume_data(
        self, *, data_producer_id: str | None = None, id: str | None = None  # noqa: A002
    ) -> MockDataConsumer:
        data_consumer = MockDataConsumer(data_producer_id=data_producer_id, id=id)
        self.dataConsumers[data_consumer.id] = data_consumer
        self.observer.emit("newdataconsumer", data_consumer)
        return data_consumer

    def set_connection_state(self, state: str) -> None:
        self.connectionState = state
        self.emit("connectionstatechange", state)

    def set_ice_gathering_state(self, state: str) -> None:
        self.iceGatheringState = state
        self.emit("icegatheringstatechange", state)

    def close(self) -> None:
        """Close children first, then announce the transport close."""
        if self.closed:
            return
        self.closed = True
        self.connectionState = "closed"
        for child in [
            *self.producers.values(),
            *self.consumers.values(),
            *self.dataProducers.values(),
            *self.dataConsumers.values(),
        ]:
            child.close()
        self.observer.emit("close")


class MockDevice:
    """A loaded device that announces the transports it creates."""

    def __init__(self, handler_name: str = "Chrome111") -> None:
        self.handlerName = handler_name
        self.loaded = True
        self.observer = EventEmitter()

    def create_send_transport(self, *, id: str | None = None) -> MockTransport:  # noqa: A002
        return self._create_transport("send", id)

    def create_recv_transport(self, *, id: str | None = None) -> MockTransport:  # noqa: A002
        return self._create_transport("recv", id)

    def _create_transport(self, direction: str, id: str | None) -> MockTransport:  # noqa: A002
        transport = MockTransport(direction, id=id)
        self.observer.emit("newtransport", transport)
        return transport
