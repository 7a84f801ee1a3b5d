"""Tests for TransportBinding and the SFU child watchers."""

from __future__ import annotations

import pytest

from rtcmonitor.client import ClientMonitor
from rtcmonitor.models.enums import EventKind
from rtcmonitor.sinks.mock import MockEventSink
from rtcmonitor.sources.mock import MockMediaStreamTrack, MockTransport
from rtcmonitor.sources.transport import TransportBinding
from rtcmonitor.sources.watchers import ConsumerWatcher, ProducerWatcher


@pytest.fixture
def binding(client: ClientMonitor, transport: MockTransport) -> TransportBinding:
    return client.add_transport(transport)


class TestTransportLifecycle:
    def test_opened_payload(
        self, client: ClientMonitor, transport: MockTransport, sink: MockEventSink
    ) -> None:
        binding = client.add_transport(transport, app_data={"peer": "alice"})
        assert binding.id == "t-1"
        [event] = sink.events
        assert event.kind == EventKind.PEER_CONNECTION_OPENED
        assert event.payload["peer_connection_id"] == "t-1"
        assert event.payload["connection_state"] == "new"
        assert event.payload["ice_gathering_state"] == "new"
        assert event.payload["signaling_state"] is None
        assert event.payload["app_data"] == {"peer": "alice"}

    def test_explicit_transport_id(self, client: ClientMonitor, transport: MockTransport) -> None:
        binding = client.add_transport(transport, transport_id="send-1")
        assert binding.id == "send-1"
        assert client.get_binding("send-1") is binding

    def test_state_changes(
        self, binding: TransportBinding, transport: MockTransport, sink: MockEventSink
    ) -> None:
        sink.reset()
        transport.set_ice_gathering_state("gathering")
        transport.set_connection_state("connected")
        assert sink.kinds() == [
            EventKind.ICE_GATHERING_STATE_CHANGED,
            EventKind.PEER_CONNECTION_STATE_CHANGED,
        ]
        assert sink.events[0].payload["ice_gathering_state"] == "gathering"
        assert sink.events[1].payload["connection_state"] == "connected"
        assert binding.monitor.connection_state == "connected"

    def test_transport_close_unbinds(
        self,
        client: ClientMonitor,
        binding: TransportBinding,
        transport: MockTransport,
        sink: MockEventSink,
    ) -> None:
        transport.produce(MockMediaStreamTrack(id="ta"), id="p1")
        sink.reset()
        transport.close()
        assert sink.kinds() == [
            EventKind.PRODUCER_REMOVED,
            EventKind.PEER_CONNECTION_CLOSED,
        ]
        assert binding.closed
        assert client.get_binding("t-1") is None

    def test_caller_unbind_cascades(
        self,
        client: ClientMonitor,
        binding: TransportBinding,
        transport: MockTransport,
        sink: MockEventSink,
    ) -> None:
        transport.produce(id="p1")
        transport.consume(producer_id="remote", id="c1")
        transport.produce_data(id="dp1")
        sink.reset()
        assert client.remove_transport(transport) is True
        assert sink.kinds() == [
            EventKind.PRODUCER_REMOVED,
            EventKind.CONSUMER_REMOVED,
            EventKind.DATA_PRODUCER_CLOSED,
            EventKind.PEER_CONNECTION_CLOSED,
        ]
        assert transport.observer.listeners("newproducer") == []
        assert transport.listeners("connectionstatechange") == []


class TestProducers:
    def test_producers_with_late_track(
        self, client: ClientMonitor, transport: MockTransport, sink: MockEventSink
    ) -> None:
        p1 = transport.produce(id="P1")
        transport.produce(id="P2")
        binding = client.add_transport(transport)
        sink.reset()

        # no native signal for a new track, the stats tick picks it up
        p1.replace_track(MockMediaStreamTrack("video", id="Ta"))
        binding.monitor.update()

        assert sink.kinds() == [EventKind.MEDIA_TRACK_ADDED]
        assert sink.events[0].payload["track_id"] == "Ta"
        assert sink.events[0].payload["producer_id"] == "P1"

    def test_discovery_order(
        self, client: ClientMonitor, transport: MockTransport, sink: MockEventSink
    ) -> None:
        p1 = transport.produce(id="P1")
        transport.produce(id="P2")
        binding = client.add_transport(transport)
        p1.replace_track(MockMediaStreamTrack("video", id="Ta"))
        binding.monitor.update()

        assert sink.kinds()[1:] == [
            EventKind.PRODUCER_ADDED,
            EventKind.PRODUCER_ADDED,
            EventKind.MEDIA_TRACK_ADDED,
        ]
        assert [e.payload["producer_id"] for e in sink.events[1:]] == ["P1", "P2", "P1"]

    def test_new_producer_with_track(
        self, binding: TransportBinding, transport: MockTransport, sink: MockEventSink
    ) -> None:
        sink.reset()
        transport.produce(MockMediaStreamTrack(id="t1"), id="p1")
        assert sink.kinds() == [EventKind.PRODUCER_ADDED, EventKind.MEDIA_TRACK_ADDED]
        assert sink.events[0].payload["track_id"] == "t1"
        assert binding.monitor.tracks["t1"].attachments == {"producer_id": "p1"}

    def test_track_replacement(
        self, binding: TransportBinding, transport: MockTransport, sink: MockEventSink
    ) -> None:
        producer = transport.produce(MockMediaStreamTrack(id="old"), id="p1")
        sink.reset()

        binding.monitor.update()
        assert sink.events == []

        producer.replace_track(MockMediaStreamTrack(id="new"))
        binding.monitor.update()
        binding.monitor.update()

        assert sink.kinds() == [EventKind.MEDIA_TRACK_ADDED]
        assert sink.events[0].payload["track_id"] == "new"
        assert "old" not in binding.monitor.tracks
        assert "new" in binding.monitor.tracks

    def test_replaced_track_goes_quiet(
        self, binding: TransportBinding, transport: MockTransport, sink: MockEventSink
    ) -> None:
        old = MockMediaStreamTrack(id="old")
        producer = transport.produce(old, id="p1")
        producer.replace_track(MockMediaStreamTrack(id="new"))
        binding.monitor.update()
        sink.reset()

        old.mute()
        old.unmute()
        old.end()
        assert sink.events == []
        assert old.listeners("mute") == []
        assert old.listeners("ended") == []

    def test_track_without_id_is_announced_once(
        self, binding: TransportBinding, transport: MockTransport, sink: MockEventSink
    ) -> None:
        track = MockMediaStreamTrack()
        track.id = None
        transport.produce(track, id="p1")
        binding.monitor.update()
        binding.monitor.update()
        assert sink.kinds().count(EventKind.MEDIA_TRACK_ADDED) == 1
        assert len(track.listeners("mute")) == 1

    def test_producer_track_comes_and_goes(
        self, binding: TransportBinding, transport: MockTransport, sink: MockEventSink
    ) -> None:
        producer = transport.produce(None, id="p1")
        binding.monitor.update()
        assert EventKind.MEDIA_TRACK_ADDED not in sink.kinds()

        track = MockMediaStreamTrack(id="t1")
        producer.replace_track(track)
        binding.monitor.update()
        binding.monitor.update()
        assert sink.kinds().count(EventKind.MEDIA_TRACK_ADDED) == 1
        assert "t1" in binding.monitor.tracks

        producer.replace_track(None)
        binding.monitor.update()
        sink.reset()
        track.mute()
        binding.monitor.update()
        assert sink.events == []
        assert "t1" not in binding.monitor.tracks
        watcher = binding.get_watcher(ProducerWatcher, producer)
        assert watcher is not None
        assert watcher.track_watcher is None

    def test_pause_resume_close(
        self, binding: TransportBinding, transport: MockTransport, sink: MockEventSink
    ) -> None:
        track = MockMediaStreamTrack(id="t1")
        producer = transport.produce(track, id="p1")
        sink.reset()
        producer.pause()
        producer.resume()
        producer.close()
        track.mute()
        producer.pause()
        assert sink.kinds() == [
            EventKind.PRODUCER_PAUSED,
            EventKind.PRODUCER_RESUMED,
            EventKind.PRODUCER_REMOVED,
        ]
        assert binding.producers == []
        assert binding.monitor.tracks == {}

    def test_closed_producer_ignores_stats(
        self, binding: TransportBinding, transport: MockTransport, sink: MockEventSink
    ) -> None:
        producer = transport.produce(id="p1")
        watcher = binding.get_watcher(ProducerWatcher, producer)
        assert watcher is not None
        producer.close()
        producer.replace_track(MockMediaStreamTrack(id="late"))
        sink.reset()
        binding.monitor.update()
        assert watcher.check_track() is False
        assert sink.events == []

    def test_check_track_same_id_is_noop(
        self, binding: TransportBinding, transport: MockTransport
    ) -> None:
        producer = transport.produce(MockMediaStreamTrack(id="t1"), id="p1")
        watcher = binding.get_watcher(ProducerWatcher, producer)
        assert watcher is not None
        assert watcher.registered_track_id == "t1"
        assert watcher.check_track() is False


class TestConsumers:
    def test_consumer_lifecycle(
        self, binding: TransportBinding, transport: MockTransport, sink: MockEventSink
    ) -> None:
        track = MockMediaStreamTrack("audio", id="rt1")
        sink.reset()
        consumer = transport.consume(track, producer_id="remote-p", id="c1")
        consumer.pause()
        consumer.resume()
        track.mute()
        consumer.close()
        assert sink.kinds() == [
            EventKind.CONSUMER_ADDED,
            EventKind.MEDIA_TRACK_ADDED,
            EventKind.CONSUMER_PAUSED,
            EventKind.CONSUMER_RESUMED,
            EventKind.MEDIA_TRACK_MUTED,
            EventKind.CONSUMER_REMOVED,
        ]
        added = sink.events[0].payload
        assert added["consumer_id"] == "c1"
        assert added["producer_id"] == "remote-p"
        assert added["track_id"] == "rt1"
        assert sink.events[1].payload["consumer_id"] == "c1"
        assert binding.consumers == []

    def test_existing_consumers_are_scanned(
        self, client: ClientMonitor, transport: MockTransport
    ) -> None:
        consumer = transport.consume(MockMediaStreamTrack(id="rt1"), id="c1")
        binding = client.add_transport(transport)
        watcher = binding.get_watcher(ConsumerWatcher, consumer)
        assert watcher is not None
        assert watcher.track_watcher is not None
        assert watcher.registered_track_id == "rt1"


class TestDataProducersAndConsumers:
    def test_data_producer(
        self, binding: TransportBinding, transport: MockTransport, sink: MockEventSink
    ) -> None:
        sink.reset()
        data_producer = transport.produce_data(id="dp1")
        data_producer.close()
        data_producer.close()
        assert sink.kinds() == [
            EventKind.DATA_PRODUCER_CREATED,
            EventKind.DATA_PRODUCER_CLOSED,
        ]
        assert sink.events[0].payload["data_producer_id"] == "dp1"

    def test_data_consumer(
        self, binding: TransportBinding, transport: MockTransport, sink: MockEventSink
    ) -> None:
        sink.reset()
        data_consumer = transport.consume_data(data_producer_id="dp9", id="dc1")
        data_consumer.close()
        assert sink.kinds() == [
            EventKind.DATA_CONSUMER_CREATED,
            EventKind.DATA_CONSUMER_CLOSED,
        ]
        for event in sink.events:
            assert event.payload["data_consumer_id"] == "dc1"
            assert event.payload["data_producer_id"] == "dp9"
